import json
import pytest
from typer.testing import CliRunner
import main

runner = CliRunner()


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("TTD_CONFIG_DIR", str(tmp_path))
    return tmp_path


def ttd(*args, input=None):
    return runner.invoke(main.app, list(args), input=input)


def saved(home):
    return json.loads((home / "tasks.json").read_text(encoding="utf-8"))


def test_add_and_list(home):
    assert ttd("a", "wash car", "in", "2h").exit_code == 0
    assert ttd("add", "buy milk").exit_code == 0

    result = ttd("l")
    assert result.exit_code == 0
    assert "Completed: 0/2" in result.output
    assert "wash car" in result.output

    data = saved(home)
    assert data["current_session"] is None
    assert [t["description"] for t in data["sessions"]["default"]] == ["wash car", "buy milk"]
    assert data["sessions"]["default"][0]["time"].endswith("Z")


def test_duplicate_add_without_override(home):
    (home / "config.toml").write_text("[app]\ntimezone_offset_hours = 3\ncan_override = false\n")
    ttd("a", "wash car")
    result = ttd("a", "wash car")
    assert result.exit_code == 0
    assert "Task 'wash car' already exists" in result.output
    assert len(saved(home)["sessions"]["default"]) == 1


def test_duplicate_add_with_override(home):
    ttd("a", "wash car")
    ttd("d", "0")
    result = ttd("a", "wash car", "at", "h9")
    assert "Overrode existing task 'wash car'" in result.output
    tasks = saved(home)["sessions"]["default"]
    assert len(tasks) == 1
    assert tasks[0]["done"] is False
    assert tasks[0]["time"] is not None


def test_remove_by_index(home):
    for name in ("alpha", "bravo", "charlie"):
        ttd("a", name)
    assert "Removed task #0 'alpha'" in ttd("r", "0").output
    assert "Removed task #0 'bravo'" in ttd("remove", "0").output


def test_negative_index_is_a_positional(home):
    ttd("a", "alpha")
    result = ttd("r", "-1")
    assert result.exit_code == 0
    assert "Index -1 not found" in result.output


def test_sessions_flow(home):
    assert "Switched to session 'work'" in ttd("s", "work").output
    ttd("a", "write report")
    assert "Current session: 'work'" in ttd("session").output
    assert "Available sessions: work" in ttd("ss").output

    result = ttd("ll")
    assert "---> Session: 'work' [CURRENT] (0/1)" in result.output

    result = ttd("rs", "work", input="y\n")
    assert "Session 'work' deleted successfully" in result.output
    data = saved(home)
    assert data["current_session"] == "default"
    assert "work" not in data["sessions"]


def test_remove_session_cancelled(home):
    ttd("s", "work")
    ttd("a", "write report")
    result = ttd("remove-session", "work", input="n\n")
    assert "Session deletion cancelled" in result.output
    assert "work" in saved(home)["sessions"]


def test_remove_default_session_refused(home):
    ttd("a", "wash car")
    result = ttd("rs", "default", input="yes\n")
    assert result.exit_code == 0
    assert "Cannot remove default session" in result.output
    assert "default" in saved(home)["sessions"]


def test_time_field_error_is_fatal_and_not_saved(home):
    result = ttd("a", "wash car", "at", "M13d1")
    assert result.exit_code == 1
    assert "Month must be between 1 and 12" in result.output
    assert not (home / "tasks.json").exists()


def test_broken_config_is_fatal(home):
    (home / "config.toml").write_text("[app]\ncan_override = true\n")
    result = ttd("l")
    assert result.exit_code == 1
    assert "timezone_offset_hours" in result.output


def test_malformed_data_file_is_replaced(home):
    (home / "tasks.json").write_text("{oops")
    result = ttd("a", "wash car")
    assert result.exit_code == 0
    assert list(saved(home)["sessions"]) == ["default"]


def test_reschedule_and_done_by_name(home):
    ttd("a", "wash car")
    result = ttd("t", "wash car", "at", "y2030M1d2h3")
    assert "end of times -> 2030-01-02 03:00" in result.output
    result = ttd("done", "WASH CAR")
    assert "Marked #0 'wash car' as done" in result.output
    result = ttd("ud", "wash car")
    assert "as NOT done" in result.output


def test_usage_messages_exit_zero(home):
    for command in ("a", "r", "d", "ud", "t", "rs"):
        result = ttd(command)
        assert result.exit_code == 0
        assert "Usage:" in result.output


def test_version():
    result = ttd("--version")
    assert result.exit_code == 0
    assert "ttd 1.2" in result.output


def test_remove_session_at_end_of_input_is_cancelled(home):
    ttd("s", "work")
    ttd("a", "write report")
    result = ttd("rs", "work", input="")
    assert result.exit_code == 0
    assert "Session deletion cancelled" in result.output
    assert "work" in saved(home)["sessions"]


def test_undecodable_data_file_is_fatal(home):
    (home / "tasks.json").write_bytes(b'{"sessions": {"\xff": []}}')
    result = ttd("l")
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert (home / "tasks.json").read_bytes() == b'{"sessions": {"\xff": []}}'


def test_undecodable_config_is_fatal(home):
    (home / "config.toml").write_bytes(b"[app]\n# \xff\n")
    result = ttd("l")
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert not (home / "tasks.json").exists()


def test_absolute_clock_time_through_cli(home):
    (home / "config.toml").write_text("[app]\ntimezone_offset_hours = 0\ncan_override = true\n")
    ttd("a", "wash car", "at", "y2030M6d1h23m59s59")
    assert saved(home)["sessions"]["default"][0]["time"] == "2030-06-01T23:59:59Z"
