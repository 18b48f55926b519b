"""Console and per-run file logging."""

import logging
import uuid
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
REDACTED = "***REDACTED***"


def generate_run_id() -> str:
    """Return an 8-character hex run identifier."""
    return uuid.uuid4().hex[:8]


class TokenRedactionFilter(logging.Filter):
    """Logging filter that replaces a raw token with ``***REDACTED***``."""

    def __init__(self, token: str) -> None:
        super().__init__()
        self._token = token

    def _redact(self, value: object) -> object:
        if self._token and self._token in str(value):
            return str(value).replace(self._token, REDACTED)
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(self._redact(a) for a in record.args)
        elif isinstance(record.args, dict):
            record.args = {k: self._redact(v) for k, v in record.args.items()}
        return True


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Configure console logging with RichHandler.

    The root logger stays at DEBUG so the per-run log file gets everything;
    *verbose* only changes what the console shows.
    """
    handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
    handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def redact_token(token: str, logger: logging.Logger | None = None) -> None:
    """Attach a ``TokenRedactionFilter`` to every handler on *logger* (root by default)."""
    if not token:
        return
    for handler in (logger or logging.getLogger()).handlers:
        handler.addFilter(TokenRedactionFilter(token))


def create_file_handler(
    log_dir: Path,
    run_id: str,
    token: str = "",
    level: int = logging.DEBUG,
) -> logging.FileHandler:
    """Create a handler writing to ``<log_dir>/<date>_<run_id>.log``."""
    log_dir.mkdir(parents=True, exist_ok=True)
    date_str = datetime.now().strftime("%Y-%m-%d")
    log_path = log_dir / f"{date_str}_{run_id}.log"

    handler = logging.FileHandler(str(log_path), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if token:
        handler.addFilter(TokenRedactionFilter(token))
    return handler
