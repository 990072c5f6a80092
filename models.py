from dataclasses import dataclass, field
from typing import Dict, List, Optional
from datetime import datetime, timezone

DEFAULT_SESSION = "default"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """RFC3339 in UTC with a trailing Z."""
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Task:
    description: str
    time: Optional[datetime] = None
    done: bool = False

    def to_dict(self):
        return {
            "description": self.description,
            "time": format_timestamp(self.time) if self.time else None,
            "done": self.done,
        }

    @classmethod
    def from_dict(cls, data):
        raw_time = data.get("time")
        return cls(
            description=str(data["description"]),
            time=parse_timestamp(raw_time) if raw_time else None,
            done=bool(data.get("done", False)),
        )


def sort_tasks(tasks: List[Task]):
    """
    Sort in place: timed tasks ascending, then tasks without a time.
    The sort is stable, so equal times keep their insertion order.
    """
    tasks.sort(key=lambda t: (t.time is None, t.time or _EPOCH))


@dataclass
class Store:
    current_session: Optional[str] = None
    sessions: Dict[str, List[Task]] = field(default_factory=dict)

    @property
    def current_name(self) -> str:
        return self.current_session or DEFAULT_SESSION

    def get_session(self, name: str) -> Optional[List[Task]]:
        return self.sessions.get(name)

    def ensure_session(self, name: str) -> List[Task]:
        return self.sessions.setdefault(name, [])

    def remove_session(self, name: str) -> List[Task]:
        tasks = self.sessions.pop(name)
        if self.current_session == name:
            self.current_session = DEFAULT_SESSION
        return tasks

    def sort_all(self):
        for tasks in self.sessions.values():
            sort_tasks(tasks)

    def to_dict(self):
        return {
            "current_session": self.current_session,
            "sessions": {
                name: [t.to_dict() for t in tasks]
                for name, tasks in self.sessions.items()
            },
        }

    @classmethod
    def from_dict(cls, data):
        current = data.get("current_session")
        if current is not None and not isinstance(current, str):
            raise TypeError("current_session must be a string or null")
        sessions = {
            str(name): [Task.from_dict(t) for t in tasks]
            for name, tasks in (data.get("sessions") or {}).items()
        }
        return cls(current_session=current, sessions=sessions)
