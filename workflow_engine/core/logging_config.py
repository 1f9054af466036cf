"""
Root logger setup for the API process and the maintenance scripts.
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# HTTP client libraries used by webhook and SMS actions log every request at INFO.
_CHATTY_LOGGERS = ("urllib3", "twilio.http_client")


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO, log_file: Optional[str] = None) -> None:
    """Configure the root logger once per process; repeated calls are no-ops.

    `level` accepts a logging constant or a name such as ``"DEBUG"``. When
    `log_file` is given records are written there as well as to stderr.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=_resolve_level(level), format=LOG_FORMAT, handlers=handlers)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
