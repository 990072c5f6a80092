from typing import Dict, List, Optional
from datetime import datetime
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.padding import Padding
from rich.table import Table
from rich.text import Text
from models import Task
from timeparse import format_time, is_overdue

MIN_DESC_WIDTH = 12
MIN_DESC_WIDTH_ALL = 5


def time_style(task: Task, now: Optional[datetime] = None) -> str:
    if task.time is None:
        return "blue"
    if is_overdue(task.time, now):
        return "red"
    return "yellow"


def status_badge(task: Task) -> Text:
    if task.done:
        return Text("DONE", style="green")
    return Text("TODO", style="yellow")


def description_width(tasks: List[Task], minimum: int) -> int:
    return max([len(t.description) for t in tasks] + [minimum])


def build_table(tasks: List[Task], desc_width: int, offset_hours: int, now: Optional[datetime] = None) -> Table:
    table = Table(box=box.SIMPLE_HEAD, pad_edge=False, show_edge=False)
    table.add_column("№", justify="left", min_width=2)
    table.add_column("STATUS", min_width=7)
    table.add_column("DESCRIPTION", min_width=desc_width, overflow="fold")
    table.add_column("TIME", min_width=16, no_wrap=True)

    for i, t in enumerate(tasks):
        table.add_row(
            str(i),
            status_badge(t),
            Text(t.description, style="strike" if t.done else ""),
            Text(format_time(t.time, offset_hours), style=time_style(t, now)),
        )
    return table


def print_session(console: Console, name: str, tasks: Optional[List[Task]], offset_hours: int):
    console.print(f"Current session: '{escape(name)}'")
    if not tasks:
        console.print(f"[yellow]No tasks in session '{escape(name)}'[/yellow]")
        return

    completed = sum(1 for t in tasks if t.done)
    console.print(f"Completed: [bold]{completed}/{len(tasks)}[/bold]")
    console.print(build_table(tasks, description_width(tasks, MIN_DESC_WIDTH), offset_hours))


def print_all_sessions(console: Console, sessions: Dict[str, List[Task]], current: Optional[str], offset_hours: int):
    if not sessions:
        console.print("[yellow]No sessions available[/yellow]")
        return

    # One description width for every session so the tables line up
    all_tasks = [t for tasks in sessions.values() for t in tasks]
    width = description_width(all_tasks, MIN_DESC_WIDTH_ALL)

    for name, tasks in sessions.items():
        completed = sum(1 for t in tasks if t.done)
        marker = " [bold cyan]\\[CURRENT][/bold cyan]" if name == current else ""
        console.print()
        console.print(f"[bold]---> Session: '{escape(name)}'[/bold]{marker} ({completed}/{len(tasks)})")
        console.print()
        if not tasks:
            console.print("  (empty)")
            continue
        console.print(Padding(build_table(tasks, width, offset_hours), (0, 0, 0, 2)))
