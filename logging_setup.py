import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE = "ttd.log"

_OWN_LOGGERS = ("main", "commands", "storage", "config", "timeparse", "matcher", "render", "models")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the terminal readable: our own warnings pass,
    third-party libraries only reach stderr on errors.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.split(".")[0] in _OWN_LOGGERS:
            return True
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path, console_level: int = logging.WARNING, file_level: int = logging.DEBUG):
    """
    Console handler on stderr plus a small rotating file in log_dir.
    Call once per process, before the first log record.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        if isinstance(h, logging.FileHandler):
            h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = RotatingFileHandler(log_dir / LOG_FILE, maxBytes=256 * 1024, backupCount=1, encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
