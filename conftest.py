import io
import logging
from datetime import datetime, timezone
import pytest
from rich.console import Console
import commands
from config import AppConfig
from models import Store, Task

# Wednesday, 13:00 local with the default +3h offset
NOW = datetime(2025, 3, 12, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def output(monkeypatch):
    """Capture everything the command handlers print."""
    buf = io.StringIO()
    monkeypatch.setattr(commands, "console", Console(file=buf, width=200, color_system=None))
    return buf


@pytest.fixture
def app_config():
    return AppConfig()


@pytest.fixture
def store():
    return Store(sessions={
        "default": [
            Task("wash car", time=datetime(2025, 3, 13, 9, 0, tzinfo=timezone.utc)),
            Task("pay rent", time=datetime(2025, 3, 20, 9, 0, tzinfo=timezone.utc), done=True),
            Task("call mom"),
        ],
    })


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    root = logging.getLogger()
    for h in list(root.handlers):
        if not type(h).__module__.startswith("_pytest"):
            root.removeHandler(h)
            h.close()
