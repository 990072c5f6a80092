import logging
from contextlib import contextmanager
from typing import List, Optional, Annotated
import typer
from rich.console import Console
from rich.markup import escape
import commands
import config
import storage
from config import ConfigError
from logging_setup import setup_logging
from timeparse import TimeParseError

__version__ = "1.2"

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="ttd",
    no_args_is_help=True,
    add_completion=False,
    help="""
    Simple text task manager.

    Keeps tasks in named sessions, finds them by index or by strict/fuzzy name
    matching, sorts them by time and prints them as a colored table.

    Examples:

      ttd a 'put the kettle on' in 2h

      ttd a 'call mom' at w5h18

      ttd d 0

      ttd s work

      ttd l
    """,
)
console = Console()

# Positional lists must accept tokens such as "-1" instead of treating them as options.
PARTS_SETTINGS = {"ignore_unknown_options": True}

Parts = Annotated[Optional[List[str]], typer.Argument(help="Task name or index, optionally followed by in|at <time>.")]


@contextmanager
def open_store():
    """
    Load config and data once, hand them to a command, save once at the end.
    Fatal errors are printed and turned into exit code 1 without saving.
    """
    try:
        setup_logging(config.log_dir())
        app_config = config.load_config(config.config_path())
        store = storage.load_data(config.data_path())
        yield store, app_config
        storage.save_data(store, config.data_path())
    except (ConfigError, TimeParseError, OSError, UnicodeDecodeError) as e:
        logger.error("Command failed: %s", e)
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)


def _version_callback(value: bool):
    if value:
        console.print(f"ttd {__version__}")
        raise typer.Exit()


@app.callback()
def cli(
    version: Annotated[Optional[bool], typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit.")] = None,
):
    pass


@app.command("ss", hidden=True)
@app.command("sessions")
def sessions():
    """
    List all sessions and the current one (short: ss).
    """
    with open_store() as (store, _):
        commands.list_sessions(store)


@app.command("s", hidden=True)
@app.command("session")
def session(name: Annotated[Optional[str], typer.Argument(help="Session to switch to.")] = None):
    """
    Switch to a session, creating it if needed; show the current one without a name (short: s).
    """
    with open_store() as (store, _):
        commands.switch_session(store, name)


@app.command("a", hidden=True, context_settings=PARTS_SETTINGS)
@app.command("add", context_settings=PARTS_SETTINGS)
def add(parts: Parts = None):
    """
    Add a task: add <task> [in|at <time>] (short: a).

    "in" takes a duration (2h30m, 90s, 3d); "at" takes fields such as y2025M3d14h9 or w5h18.
    """
    with open_store() as (store, app_config):
        commands.add_task(store, app_config, parts or [])


@app.command("r", hidden=True, context_settings=PARTS_SETTINGS)
@app.command("remove", context_settings=PARTS_SETTINGS)
def remove(parts: Parts = None):
    """
    Remove a task by index or name (short: r).
    """
    with open_store() as (store, app_config):
        commands.remove_task(store, app_config, parts or [])


@app.command("rs", hidden=True, context_settings=PARTS_SETTINGS)
@app.command("remove-session", context_settings=PARTS_SETTINGS)
def remove_session(parts: Annotated[Optional[List[str]], typer.Argument(help="Session to remove.")] = None):
    """
    Remove a session, asking first when it still holds tasks (short: rs).
    """
    with open_store() as (store, _):
        commands.remove_session(store, parts or [])


@app.command("d", hidden=True, context_settings=PARTS_SETTINGS)
@app.command("done", context_settings=PARTS_SETTINGS)
def done(parts: Parts = None):
    """
    Mark a task as done (short: d).
    """
    with open_store() as (store, app_config):
        commands.set_done(store, app_config, parts or [], True)


@app.command("ud", hidden=True, context_settings=PARTS_SETTINGS)
@app.command("undone", context_settings=PARTS_SETTINGS)
def undone(parts: Parts = None):
    """
    Mark a task as not done (short: ud).
    """
    with open_store() as (store, app_config):
        commands.set_done(store, app_config, parts or [], False)


@app.command("t", hidden=True, context_settings=PARTS_SETTINGS)
@app.command("time", context_settings=PARTS_SETTINGS)
def time(parts: Parts = None):
    """
    Change a task's time: time <index|task> [in|at <time>]; no time clears it (short: t).
    """
    with open_store() as (store, app_config):
        commands.reschedule(store, app_config, parts or [])


@app.command("l", hidden=True)
@app.command("list")
def list_tasks():
    """
    Show the tasks of the current session (short: l).
    """
    with open_store() as (store, app_config):
        commands.list_tasks(store, app_config)


@app.command("ll", hidden=True)
@app.command("list-all")
def list_all():
    """
    Show the tasks of every session (short: ll).
    """
    with open_store() as (store, app_config):
        commands.list_all(store, app_config)


if __name__ == "__main__":
    app()
