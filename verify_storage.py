import json
from datetime import datetime, timezone
import pytest
import storage
from models import DEFAULT_SESSION, Store, Task, sort_tasks

UTC = timezone.utc


def _at(day, hour=0):
    return datetime(2025, 3, day, hour, 0, tzinfo=UTC)


def test_sort_puts_untimed_last_and_keeps_order():
    tasks = [
        Task("no time a"),
        Task("late", time=_at(20)),
        Task("no time b"),
        Task("early", time=_at(1)),
        Task("late too", time=_at(20)),
    ]
    sort_tasks(tasks)
    assert [t.description for t in tasks] == ["early", "late", "late too", "no time a", "no time b"]


def test_sort_property_holds_for_mixed_lists():
    tasks = [Task(str(i), time=_at(28 - i) if i % 3 else None) for i in range(20)]
    sort_tasks(tasks)
    times = [t.time for t in tasks]
    timed = [t for t in times if t is not None]
    assert times[:len(timed)] == timed
    assert all(t is None for t in times[len(timed):])
    assert timed == sorted(timed)


def test_current_name_falls_back_to_default():
    store = Store()
    assert store.current_name == DEFAULT_SESSION
    assert store.get_session(DEFAULT_SESSION) is None
    store.current_session = "work"
    assert store.current_name == "work"


def test_ensure_session_creates_once():
    store = Store()
    tasks = store.ensure_session("work")
    tasks.append(Task("x"))
    assert store.ensure_session("work") is tasks
    assert list(store.sessions) == ["work"]


def test_remove_current_session_resets_pointer():
    store = Store(current_session="work", sessions={"work": [], "home": []})
    store.remove_session("work")
    assert store.current_session == DEFAULT_SESSION
    store.current_session = "home"
    store.sessions["other"] = []
    store.remove_session("other")
    assert store.current_session == "home"


def test_round_trip(tmp_path):
    path = tmp_path / "nested" / "tasks.json"
    store = Store(current_session="work", sessions={
        "work": [Task("later", time=_at(14, 9)), Task("someday", done=True)],
        "default": [],
    })
    storage.save_data(store, path)
    assert storage.load_data(path) == store


def test_saved_layout(tmp_path):
    path = tmp_path / "tasks.json"
    storage.save_data(Store(sessions={"default": [Task("réveil", time=_at(14, 9))]}), path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == {
        "current_session": None,
        "sessions": {
            "default": [{"description": "réveil", "time": "2025-03-14T09:00:00Z", "done": False}],
        },
    }


def test_load_sorts_sessions(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps({
        "current_session": None,
        "sessions": {"default": [
            {"description": "untimed", "time": None, "done": False},
            {"description": "timed", "time": "2025-03-14T09:00:00Z", "done": False},
        ]},
    }))
    store = storage.load_data(path)
    assert [t.description for t in store.sessions["default"]] == ["timed", "untimed"]
    assert store.sessions["default"][0].time == _at(14, 9)


@pytest.mark.parametrize("content", [None, "", "   \n", "{not json", "[1, 2, 3]", '{"sessions": {"a": [{"time": null}]}}'])
def test_missing_blank_or_broken_file_is_empty_store(tmp_path, content):
    path = tmp_path / "tasks.json"
    if content is not None:
        path.write_text(content)
    assert storage.load_data(path) == Store()


def test_unreadable_file_is_fatal(tmp_path):
    path = tmp_path / "tasks.json"
    path.mkdir()
    with pytest.raises(OSError):
        storage.load_data(path)


def test_undecodable_file_is_fatal(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_bytes(b'{"sessions": {"\xff": []}}')
    with pytest.raises(UnicodeDecodeError):
        storage.load_data(path)
