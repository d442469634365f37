from .app import create_app
from .bootstrap import Env, bootstrap
from .config import Config
from .errors import RelayError, RelayErrorKind
from .transport import TransportConfig

__all__ = ["create_app", "bootstrap", "Env", "Config", "TransportConfig", "RelayError", "RelayErrorKind"]
