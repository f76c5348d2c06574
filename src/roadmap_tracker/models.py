"""Data classes for the roadmap tracker domain model."""
import math
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Optional

PROJECT_STATUSES = ("not-started", "in-progress", "completed")

ACHIEVEMENT_CATEGORIES = (
    "daily", "streak", "leetcode", "project", "phase",
    "time", "progress", "milestone", "special", "social",
)


def _parse_date(value) -> Optional[date]:
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _parse_progress(value) -> Optional[float]:
    if value is None:
        return None
    try:
        progress = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(progress) else progress


@dataclass
class Resource:
    id: str
    name: str
    url: str = ""
    type: str = "documentation"
    completed: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Resource":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            url=data.get("url", ""),
            type=data.get("type", "documentation"),
            completed=bool(data.get("completed", False)),
        )


@dataclass
class Topic:
    id: str
    name: str
    description: str = ""
    completed: bool = False
    resources: list[Resource] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Topic":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            completed=bool(data.get("completed", False)),
            resources=[Resource.from_dict(r) for r in data.get("resources", [])],
        )


@dataclass
class Project:
    id: str
    name: str
    description: str = ""
    status: str = "not-started"
    technologies: list[str] = field(default_factory=list)
    is_custom: bool = False
    github_url: Optional[str] = None
    live_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            status=data.get("status", "not-started"),
            technologies=list(data.get("technologies", [])),
            is_custom=bool(data.get("is_custom", False)),
            github_url=data.get("github_url"),
            live_url=data.get("live_url"),
        )


@dataclass
class Phase:
    """A curriculum unit. ``progress`` is None when the stored value was unusable."""
    id: str
    title: str
    description: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weeks: int = 0
    progress: Optional[float] = 0
    status: str = "not-started"
    topics: list[Topic] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    leetcode_target: int = 0
    leetcode_completed: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat() if self.start_date else None
        data["end_date"] = self.end_date.isoformat() if self.end_date else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Phase":
        return cls(
            id=str(data["id"]),
            title=data["title"],
            description=data.get("description", ""),
            start_date=_parse_date(data.get("start_date")),
            end_date=_parse_date(data.get("end_date")),
            weeks=int(data.get("weeks") or 0),
            progress=_parse_progress(data.get("progress", 0)),
            status=data.get("status", "not-started"),
            topics=[Topic.from_dict(t) for t in data.get("topics", [])],
            projects=[Project.from_dict(p) for p in data.get("projects", [])],
            leetcode_target=int(data.get("leetcode_target") or 0),
            leetcode_completed=int(data.get("leetcode_completed") or 0),
        )


@dataclass
class DailyLog:
    date: date
    phase_id: str
    hours_spent: float = 0.0
    leetcode_problems: int = 0
    activities: list[str] = field(default_factory=list)
    key_takeaway: str = ""
    topic_id: Optional[str] = None
    project_id: Optional[str] = None
    reading_minutes: Optional[int] = None
    project_work_minutes: Optional[int] = None
    leetcode_minutes: Optional[int] = None
    networking_minutes: Optional[int] = None
    logged_at: Optional[datetime] = None
    id: Optional[int] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        data["logged_at"] = self.logged_at.isoformat() if self.logged_at else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DailyLog":
        return cls(
            id=data.get("id"),
            date=_parse_date(data["date"]),
            phase_id=str(data["phase_id"]),
            topic_id=data.get("topic_id"),
            project_id=data.get("project_id"),
            hours_spent=float(data.get("hours_spent") or 0),
            leetcode_problems=int(data.get("leetcode_problems") or 0),
            activities=list(data.get("activities") or []),
            key_takeaway=data.get("key_takeaway") or "",
            reading_minutes=data.get("reading_minutes"),
            project_work_minutes=data.get("project_work_minutes"),
            leetcode_minutes=data.get("leetcode_minutes"),
            networking_minutes=data.get("networking_minutes"),
            logged_at=_parse_datetime(data.get("logged_at")),
        )


@dataclass
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    category: str
    points: int
    requirement: str = ""
    unlocked: bool = False
    unlocked_date: Optional[date] = None
    is_active: bool = True
    order: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["unlocked_date"] = self.unlocked_date.isoformat() if self.unlocked_date else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Achievement":
        return cls(
            id=str(data["id"]),
            title=data["title"],
            description=data.get("description", ""),
            icon=data.get("icon", ""),
            category=data.get("category", "special"),
            points=int(data.get("points") or 0),
            requirement=data.get("requirement") or "",
            unlocked=bool(data.get("unlocked", False)),
            unlocked_date=_parse_date(data.get("unlocked_date")),
            is_active=bool(data.get("is_active", True)),
            order=int(data.get("order") or 0),
        )


@dataclass(frozen=True)
class AchievementTemplate:
    title: str
    description: str
    icon: str
    category: str
    points: int


@dataclass(frozen=True)
class Level:
    name: str
    icon: str
    min_points: int


@dataclass
class UserMetrics:
    current_streak: int = 0
    longest_streak: int = 0
    total_hours: float = 0.0
    total_problems_solved: int = 0
    total_points: int = 0
    level: str = "Bronze"
    points_to_next_level: int = 501
    total_achievements_unlocked: int = 0
    total_projects_completed: int = 0
    total_topics_completed: int = 0
    total_phases_completed: int = 0
    last_activity_date: Optional[date] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_activity_date"] = (
            self.last_activity_date.isoformat() if self.last_activity_date else None
        )
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "UserMetrics":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        known["last_activity_date"] = _parse_date(known.get("last_activity_date"))
        return cls(**known)
