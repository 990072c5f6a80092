from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
import commands
from conftest import NOW
from models import DEFAULT_SESSION, Store, Task


def descriptions(store, name=DEFAULT_SESSION):
    return [t.description for t in store.sessions[name]]


def test_add_creates_session_on_demand(output, app_config):
    store = Store()
    commands.add_task(store, app_config, ["wash car"])
    assert descriptions(store) == ["wash car"]
    assert "Added new task 'wash car'" in output.getvalue()


def test_add_with_relative_time_sorts(output, app_config, store):
    commands.add_task(store, app_config, ["feed cat", "in", "1h"], now=NOW)
    assert descriptions(store)[0] == "feed cat"
    assert store.sessions[DEFAULT_SESSION][0].time == NOW + timedelta(hours=1)


def test_add_rejects_numeric_name(output, app_config):
    store = Store()
    commands.add_task(store, app_config, ["42"])
    assert store.sessions == {}
    assert "looks like index" in output.getvalue()


def test_add_usage_and_bad_prefix(output, app_config, store):
    before = descriptions(store)
    commands.add_task(store, app_config, [])
    commands.add_task(store, app_config, ["feed cat", "on", "2h"])
    commands.add_task(store, app_config, ["feed cat", "in"])
    text = output.getvalue()
    assert "Usage: a <task> [in|at] <time>" in text
    assert "Unknown time prefix 'on'" in text
    assert descriptions(store) == before


def test_add_existing_without_override(output, app_config, store):
    cfg = replace(app_config, can_override=False)
    commands.add_task(store, cfg, ["wash car", "in", "2h"], now=NOW)
    assert "Task 'wash car' already exists" in output.getvalue()
    assert len(store.sessions[DEFAULT_SESSION]) == 3
    assert store.sessions[DEFAULT_SESSION][0].time == datetime(2025, 3, 13, 9, 0, tzinfo=timezone.utc)


def test_add_existing_with_override_resets_time_and_done(output, app_config, store):
    commands.add_task(store, app_config, ["PAY RENT"])
    tasks = store.sessions[DEFAULT_SESSION]
    assert len(tasks) == 3
    rent = [t for t in tasks if t.description == "pay rent"][0]
    assert rent.time is None
    assert rent.done is False
    assert "Overrode existing task 'PAY RENT'" in output.getvalue()


def test_add_fuzzy_collision_in_strict_mode_aborts(output, app_config, store):
    cfg = replace(app_config, strict_comparison=True)
    commands.add_task(store, cfg, ["wash cat"])
    text = output.getvalue()
    assert "No exact match found for 'wash cat'" in text
    assert 'Possible match: "wash car"' in text
    assert "wash cat" not in descriptions(store)


def test_add_fuzzy_collision_overrides_when_allowed(output, app_config, store):
    commands.add_task(store, app_config, ["wash cat"])
    text = output.getvalue()
    assert '"wash cat" accepted as "wash car"' in text
    assert "Overriding due to can_override=true" in text
    assert descriptions(store) == ["pay rent", "wash car", "call mom"]
    assert store.sessions[DEFAULT_SESSION][1].time is None


def test_add_fuzzy_collision_without_override_aborts(output, app_config, store):
    cfg = replace(app_config, can_override=False)
    commands.add_task(store, cfg, ["wash cat"])
    assert "Set can_override=true to override or use different name" in output.getvalue()
    assert len(store.sessions[DEFAULT_SESSION]) == 3


def test_remove_by_index_twice(output, app_config):
    store = Store(sessions={DEFAULT_SESSION: [Task("alpha"), Task("bravo"), Task("charlie")]})
    commands.remove_task(store, app_config, ["0"])
    commands.remove_task(store, app_config, ["0"])
    text = output.getvalue()
    assert "Removed task #0 'alpha'" in text
    assert "Removed task #0 'bravo'" in text
    assert descriptions(store) == ["charlie"]


def test_remove_reports_index_not_found(output, app_config, store):
    commands.remove_task(store, app_config, ["7"])
    commands.remove_task(store, app_config, ["-1"])
    text = output.getvalue()
    assert "Index 7 not found" in text
    assert "Index -1 not found" in text
    assert len(store.sessions[DEFAULT_SESSION]) == 3


def test_remove_reports_name_not_found(output, app_config, store):
    commands.remove_task(store, app_config, ["walk the dog"])
    assert "Task 'walk the dog' not found" in output.getvalue()


def test_remove_without_session(output, app_config):
    commands.remove_task(Store(), app_config, ["0"])
    assert "Session 'default' not found" in output.getvalue()


def test_strict_mode_suggests_without_mutating(output, app_config, store):
    cfg = replace(app_config, strict_comparison=True)
    commands.set_done(store, cfg, ["wash cat"], True)
    text = output.getvalue()
    assert "No exact match found for 'wash cat'" in text
    assert 'Possible match: "wash car" (confidence: 88.0%)' in text
    assert "strict_comparison=false" in text
    assert store.sessions[DEFAULT_SESSION][0].done is False


def test_non_strict_mode_resolves_and_mutates(output, app_config, store):
    commands.set_done(store, app_config, ["wash cat"], True)
    assert '"wash cat" accepted as "wash car" (confidence: 88.0%)' in output.getvalue()
    assert store.sessions[DEFAULT_SESSION][0].done is True


def test_done_and_undone_report_state(output, app_config, store):
    commands.set_done(store, app_config, ["0"], True)
    commands.set_done(store, app_config, ["0"], True)
    commands.set_done(store, app_config, ["pay rent"], False)
    text = output.getvalue()
    assert "Marked #0 'wash car' as done" in text
    assert "Task #0 'wash car' is already done" in text
    assert "Marked #1 'pay rent' as NOT done" in text


def test_reschedule_sets_and_clears_time(output, app_config, store):
    commands.reschedule(store, app_config, ["call mom", "at", "y2025M3d10h8"], now=NOW)
    assert descriptions(store)[0] == "call mom"
    commands.reschedule(store, app_config, ["0"])
    text = output.getvalue()
    assert "Changed time for 'call mom': end of times -> 2025-03-10 08:00" in text
    assert "Changed time for 'call mom': 2025-03-10 08:00 -> end of times" in text
    assert descriptions(store) == ["wash car", "pay rent", "call mom"]


def test_reschedule_misses(output, app_config, store):
    commands.reschedule(store, app_config, ["9", "in", "2h"])
    commands.reschedule(store, app_config, ["0", "soon", "2h"])
    text = output.getvalue()
    assert "Index 9 not found" in text
    assert "Unknown time prefix 'soon'" in text
    assert store.sessions[DEFAULT_SESSION][0].time is not None


def test_switch_and_show_session(output):
    store = Store()
    commands.switch_session(store, None)
    commands.switch_session(store, "work")
    commands.switch_session(store, None)
    text = output.getvalue()
    assert "No current session (using 'default')" in text
    assert "Switched to session 'work'" in text
    assert "Current session: 'work'" in text
    assert store.current_session == "work"
    assert store.sessions == {"work": []}


def test_list_sessions(output, store):
    store.sessions["work"] = []
    store.current_session = "work"
    commands.list_sessions(store)
    text = output.getvalue()
    assert "Available sessions: default, work" in text
    assert "Current session: work" in text


def test_remove_default_session_always_refused(output, store):
    confirm = MagicMock(return_value=True)
    commands.remove_session(store, [DEFAULT_SESSION], confirm=confirm)
    assert "Cannot remove default session" in output.getvalue()
    confirm.assert_not_called()
    assert DEFAULT_SESSION in store.sessions


def test_remove_unknown_session(output, store):
    commands.remove_session(store, ["nope"], confirm=MagicMock())
    assert "Session 'nope' not found" in output.getvalue()


def test_remove_session_asks_about_uncompleted_tasks(output):
    store = Store(current_session="work", sessions={"work": [Task("a"), Task("b", done=True)]})
    confirm = MagicMock(return_value=False)
    commands.remove_session(store, ["work"], confirm=confirm)
    assert "with uncompleted tasks" in confirm.call_args[0][0]
    assert "Session deletion cancelled" in output.getvalue()
    assert "work" in store.sessions

    confirm.return_value = True
    commands.remove_session(store, ["work"], confirm=confirm)
    text = output.getvalue()
    assert "Session 'work' contains 2 tasks (1 uncompleted)" in text
    assert "Switched to default session" in text
    assert "Session 'work' deleted successfully" in text
    assert store.current_session == DEFAULT_SESSION
    assert "work" not in store.sessions


def test_remove_session_with_only_completed_tasks(output):
    store = Store(sessions={"old": [Task("a", done=True)]})
    confirm = MagicMock(return_value=True)
    commands.remove_session(store, ["old"], confirm=confirm)
    assert "only completed tasks" in confirm.call_args[0][0]
    assert store.sessions == {}


def test_remove_empty_session_skips_confirmation(output):
    store = Store(sessions={"empty": []})
    confirm = MagicMock()
    commands.remove_session(store, ["empty"], confirm=confirm)
    confirm.assert_not_called()
    assert store.sessions == {}


def test_prompt_confirm_accepts_only_yes(monkeypatch):
    answers = iter([" Y ", "yes", "n", "yep", ""])
    monkeypatch.setattr(commands.Prompt, "ask", MagicMock(side_effect=lambda *a, **kw: next(answers)))
    assert [commands.prompt_confirm("?") for _ in range(5)] == [True, True, False, False, False]


def test_list_renders_table(output, app_config, store):
    commands.list_tasks(store, app_config)
    text = output.getvalue()
    assert "Current session: 'default'" in text
    assert "Completed: 1/3" in text
    for header in ("№", "STATUS", "DESCRIPTION", "TIME"):
        assert header in text
    assert "end of times" in text
    assert "2025-03-13 12:00" in text


def test_list_empty_session(output, app_config):
    commands.list_tasks(Store(), app_config)
    assert "No tasks in session 'default'" in output.getvalue()


def test_list_all_marks_current(output, app_config, store):
    store.sessions["work"] = []
    store.current_session = "work"
    commands.list_all(store, app_config)
    text = output.getvalue()
    assert "---> Session: 'default' (1/3)" in text
    assert "---> Session: 'work' [CURRENT] (0/0)" in text
    assert "(empty)" in text


def test_list_all_without_sessions(output, app_config):
    commands.list_all(Store(), app_config)
    assert "No sessions available" in output.getvalue()


def test_prompt_confirm_treats_end_of_input_as_no(output, monkeypatch):
    monkeypatch.setattr(commands.Prompt, "ask", MagicMock(side_effect=EOFError))
    assert commands.prompt_confirm("Delete? [y/N]") is False


def test_long_descriptions_are_not_truncated(output, app_config, monkeypatch):
    monkeypatch.setattr(commands, "console", commands.Console(file=output, width=60, color_system=None))
    desc = "renew the passport before summer holiday"
    store = Store(sessions={DEFAULT_SESSION: [Task(desc)]})
    commands.list_tasks(store, app_config)
    text = output.getvalue()
    assert "…" not in text
    for word in desc.split():
        assert word in text
