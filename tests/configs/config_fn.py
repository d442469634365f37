import sys
from pathlib import Path

root = Path(__file__).resolve().parents[2]
sys.path.append(str(root))

from relay_proxy.config import Config  # noqa
from relay_proxy.transport import TransportConfig  # noqa


def print_entry(entry: dict) -> None:
    print(entry["method"], entry["target_url"], entry["status_code"])


config = Config(
    port=8151,
    host="127.0.0.1",
    transport=TransportConfig(timeout=10, response_header_timeout=10),
    loggers=[{"class": "relay_proxy.loggers.BaseLogger", "log_writer": print_entry}],
)
