from .base_logger import BaseLogger
from .log_writers import JsonLogWriter, StdLogWriter

__all__ = ["BaseLogger", "JsonLogWriter", "StdLogWriter"]
