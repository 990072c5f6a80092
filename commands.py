import logging
from typing import Callable, List, Optional
from datetime import datetime
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
import render
from config import AppConfig, CONFIG_FILE
from matcher import MatchResult, find_task
from models import DEFAULT_SESSION, Store, Task, sort_tasks
from timeparse import UnknownPrefixError, format_time, parse_time_args

logger = logging.getLogger(__name__)

console = Console()

ADD_USAGE = "Usage: a <task> [in|at] <time>"
REMOVE_USAGE = "Usage: r <index|task_name>"
TIME_USAGE = "Usage: t <index|task_name> [in|at] <time>"
REMOVE_SESSION_USAGE = "Usage: rs <session>"

STRICT_HINT = f"To enable fuzzy matching, set strict_comparison=false in {CONFIG_FILE}"
FUZZY_HINT = f"To enable strict matching, set strict_comparison=true in {CONFIG_FILE}"


def prompt_confirm(prompt: str) -> bool:
    """
    Blocking yes/no question; only "y" or "yes" count as consent.
    End of input counts as "no".
    """
    try:
        answer = Prompt.ask(escape(prompt), default="", show_default=False, console=console)
    except EOFError:
        console.print()
        return False
    return answer.strip().lower() in ("y", "yes")


def _pct(score: float) -> str:
    return f"{score * 100:.1f}%"


def _say(message: str, style: Optional[str] = None):
    text = escape(message)
    console.print(f"[{style}]{text}[/{style}]" if style else text)


def _parse_time(parts: List[str], start: int, config: AppConfig, usage: str, now: Optional[datetime] = None):
    """
    Read an optional "in|at <token>" pair at parts[start].
    Returns (ok, time); ok is False when the command should stop.
    """
    if len(parts) <= start:
        return True, None
    if len(parts) == start + 1:
        _say(usage, "yellow")
        return False, None
    try:
        return True, parse_time_args(parts[start], parts[start + 1], config.timezone_offset_hours, now)
    except UnknownPrefixError as e:
        _say(str(e), "yellow")
        return False, None


def report_miss(query: str, result: MatchResult, config: AppConfig):
    if result.is_index:
        _say(f"Index {query} not found", "red")
        return
    if result.suggestion is None:
        _say(f"Task '{query}' not found", "red")
        return

    if config.strict_comparison:
        _say(f"No exact match found for '{query}'", "yellow")
        _say(f'Possible match: "{result.suggestion.description}" (confidence: {_pct(result.suggestion.score)})')
        _say(STRICT_HINT, "dim")
    else:
        _say(
            f'No task found matching "{query}" with confidence > {config.exact_match_threshold * 100:.0f}%',
            "yellow",
        )
        _say(f'Closest match was "{result.suggestion.description}" (confidence: {_pct(result.suggestion.score)})')
        _say(FUZZY_HINT, "dim")


def resolve(tasks: List[Task], query: str, config: AppConfig) -> Optional[int]:
    """
    Look the query up with the configured policy and report the outcome.
    Returns the task index, or None after printing why nothing matched.
    """
    result = find_task(tasks, query, config.exact_match_threshold, config.strict_comparison)
    if not result.resolved:
        report_miss(query, result, config)
        return None
    if result.fuzzy:
        _say(f'"{query}" accepted as "{result.suggestion.description}" (confidence: {_pct(result.suggestion.score)})', "cyan")
    return result.index


def _current_tasks(store: Store) -> Optional[List[Task]]:
    name = store.current_name
    tasks = store.get_session(name)
    if tasks is None:
        _say(f"Session '{name}' not found", "red")
    return tasks


def list_sessions(store: Store):
    names = ", ".join(store.sessions) or "(none)"
    _say(f"Available sessions: {names}")
    if store.current_session:
        _say(f"Current session: {store.current_session}")
    else:
        _say(f"No current session (using '{DEFAULT_SESSION}')")


def switch_session(store: Store, name: Optional[str]):
    if name is None:
        if store.current_session:
            _say(f"Current session: '{store.current_session}'")
        else:
            _say(f"No current session (using '{DEFAULT_SESSION}')")
        return
    if not name:
        _say("Session name cannot be empty", "yellow")
        return

    store.ensure_session(name)
    store.current_session = name
    logger.info("Switched to session %r", name)
    _say(f"Switched to session '{name}'", "bold green")


def add_task(store: Store, config: AppConfig, parts: List[str], now: Optional[datetime] = None):
    """
    Add a task to the current session, or override a colliding one.
    A collision is a case-insensitive equal description, or failing that
    the best fuzzy candidate under strict scoring.
    """
    if not parts:
        _say(ADD_USAGE, "yellow")
        return
    desc = parts[0]
    if not desc.strip():
        _say("Task name cannot be empty", "yellow")
        return
    if desc.isascii() and desc.isdigit():
        _say(f"Task name '{desc}' looks like index. Use letters!", "yellow")
        _say("Example: a 'buy milk'")
        return

    ok, time = _parse_time(parts, 1, config, ADD_USAGE, now)
    if not ok:
        return

    tasks = store.ensure_session(store.current_name)
    exact = next((i for i, t in enumerate(tasks) if t.description.lower() == desc.lower()), None)

    if exact is not None:
        if not config.can_override:
            _say(f"Task '{desc}' already exists", "yellow")
            _say(f"Set can_override=true in {CONFIG_FILE} to override", "dim")
            return
        tasks[exact].time = time
        tasks[exact].done = False
        logger.info("Overrode task %r in %r", tasks[exact].description, store.current_name)
        _say(f"Overrode existing task '{desc}'", "bold green")
    else:
        probe = find_task(tasks, desc, config.exact_match_threshold, True)
        if probe.suggestion is not None:
            match = probe.suggestion
            if config.strict_comparison:
                _say(f"No exact match found for '{desc}'", "yellow")
                _say(f'Possible match: "{match.description}" (confidence: {_pct(match.score)})')
                _say(STRICT_HINT, "dim")
                return
            _say(f'"{desc}" accepted as "{match.description}" (confidence: {_pct(match.score)})', "cyan")
            _say(FUZZY_HINT, "dim")
            if not config.can_override:
                _say("Set can_override=true to override or use different name", "yellow")
                return
            _say("Overriding due to can_override=true")
            tasks[match.index].time = time
            tasks[match.index].done = False
            logger.info("Overrode fuzzy match %r for %r in %r", match.description, desc, store.current_name)
        else:
            tasks.append(Task(description=desc, time=time))
            logger.info("Added task %r to %r", desc, store.current_name)
            _say(f"Added new task '{desc}'", "bold green")

    sort_tasks(tasks)


def remove_task(store: Store, config: AppConfig, parts: List[str]):
    if not parts:
        _say(REMOVE_USAGE, "yellow")
        return
    tasks = _current_tasks(store)
    if tasks is None:
        return

    idx = resolve(tasks, parts[0], config)
    if idx is None:
        return
    task = tasks.pop(idx)
    logger.info("Removed task %r from %r", task.description, store.current_name)
    _say(f"Removed task #{idx} '{task.description}'", "bold green")


def set_done(store: Store, config: AppConfig, parts: List[str], done: bool):
    if not parts:
        _say(f"Usage: {'d' if done else 'ud'} <index|task_name>", "yellow")
        return
    tasks = _current_tasks(store)
    if tasks is None:
        return

    idx = resolve(tasks, parts[0], config)
    if idx is None:
        return
    task = tasks[idx]
    state = "done" if done else "NOT done"
    if task.done == done:
        _say(f"Task #{idx} '{task.description}' is already {state}")
        return
    task.done = done
    logger.info("Marked %r as %s", task.description, state)
    _say(f"Marked #{idx} '{task.description}' as {state}", "bold green")


def reschedule(store: Store, config: AppConfig, parts: List[str], now: Optional[datetime] = None):
    """
    Give a task a new time, or clear it when no time is passed.
    """
    if not parts:
        _say(TIME_USAGE, "yellow")
        return
    tasks = _current_tasks(store)
    if tasks is None:
        return

    idx = resolve(tasks, parts[0], config)
    if idx is not None:
        ok, time = _parse_time(parts, 1, config, TIME_USAGE, now)
        if ok:
            task = tasks[idx]
            old_time = format_time(task.time, config.timezone_offset_hours)
            task.time = time
            new_time = format_time(task.time, config.timezone_offset_hours)
            logger.info("Rescheduled %r: %s -> %s", task.description, old_time, new_time)
            _say(f"Changed time for '{task.description}': {old_time} -> {new_time}", "bold green")
    sort_tasks(tasks)


def remove_session(store: Store, parts: List[str], confirm: Callable[[str], bool] = prompt_confirm):
    if not parts:
        _say(REMOVE_SESSION_USAGE, "yellow")
        return
    name = parts[0]
    if not name:
        _say("Session name cannot be empty", "yellow")
        return
    if name == DEFAULT_SESSION:
        _say("Cannot remove default session", "red")
        return
    tasks = store.get_session(name)
    if tasks is None:
        _say(f"Session '{name}' not found", "red")
        return

    if tasks:
        uncompleted = sum(1 for t in tasks if not t.done)
        _say(f"Session '{name}' contains {len(tasks)} tasks ({uncompleted} uncompleted)")
        if uncompleted:
            question = "Are you sure you want to delete this session with uncompleted tasks? [y/N]"
        else:
            question = "Session contains only completed tasks. Delete anyway? [y/N]"
        if not confirm(question):
            _say("Session deletion cancelled", "yellow")
            return

    was_current = store.current_session == name
    store.remove_session(name)
    logger.info("Removed session %r (%d tasks)", name, len(tasks))
    if was_current:
        _say(f"Switched to {DEFAULT_SESSION} session")
    _say(f"Session '{name}' deleted successfully", "bold green")


def list_tasks(store: Store, config: AppConfig):
    name = store.current_name
    render.print_session(console, name, store.get_session(name), config.timezone_offset_hours)


def list_all(store: Store, config: AppConfig):
    render.print_all_sessions(console, store.sessions, store.current_session, config.timezone_offset_hours)
