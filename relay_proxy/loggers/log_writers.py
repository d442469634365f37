import json
import logging
import os
import threading
from dataclasses import dataclass, field

from ..utils import CustomJsonEncoder


@dataclass
class JsonLogWriter:
    """Appends one JSON document per line to a file."""

    file_name: str | os.PathLike
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        dir_name = os.path.dirname(os.fspath(self.file_name))
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

    def __call__(self, data: dict) -> None:
        line = json.dumps(data, cls=CustomJsonEncoder, ensure_ascii=False)
        with self._lock, open(self.file_name, "a", encoding="utf-8") as f:
            f.write(line + "\n")


@dataclass
class StdLogWriter:
    """Writes entries to a stdlib logger."""

    logger_name: str = "relay_proxy.requests"
    level: int = logging.INFO

    def __call__(self, data: dict) -> None:
        logging.getLogger(self.logger_name).log(
            self.level, json.dumps(data, cls=CustomJsonEncoder, ensure_ascii=False)
        )
