import json
import logging
from pathlib import Path
from models import Store

logger = logging.getLogger(__name__)


def _load_json(filepath: Path):
    # A missing or blank file is an empty store; read and decode errors propagate.
    if not filepath.exists():
        return None
    text = filepath.read_text(encoding="utf-8")
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.info("Malformed JSON in %s, starting with an empty store", filepath)
        return None


def _save_json(filepath: Path, data):
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w', encoding="utf-8") as f:
        json.dump(data, f, indent=4, ensure_ascii=False)


def load_data(filepath: Path) -> Store:
    data = _load_json(filepath)
    if data is None:
        return Store()
    try:
        store = Store.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError):
        logger.info("Unexpected data layout in %s, starting with an empty store", filepath)
        return Store()
    store.sort_all()
    logger.debug(
        "Loaded %d sessions from %s (current=%s)",
        len(store.sessions), filepath, store.current_session,
    )
    return store


def save_data(store: Store, filepath: Path):
    _save_json(filepath, store.to_dict())
    logger.debug("Saved %d sessions to %s", len(store.sessions), filepath)
