"""Data models for pipeline state."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple

from ..errors import InvalidStatusError


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialize a datetime as ISO-8601 UTC text with a ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def parse_timestamp(value: str) -> datetime:
    """Parse ISO-8601 text produced by ``format_timestamp``."""
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class StepStatus(str, Enum):
    """Status of a single pipeline step."""
    SUCCESS = "success"
    PENDING = "pending"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: str) -> "StepStatus":
        """Parse status text case-insensitively.

        Raises:
            InvalidStatusError: If the text is not a known status
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidStatusError(value)

    @property
    def emoji(self) -> str:
        return STATUS_EMOJIS[self]

    @property
    def color(self) -> int:
        return STATUS_COLORS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.SUCCESS, StepStatus.FAILED)


STATUS_EMOJIS = {
    StepStatus.SUCCESS: '✅',
    StepStatus.PENDING: '⏳',
    StepStatus.FAILED: '❌',
}

# Discord brand palette
STATUS_COLORS = {
    StepStatus.SUCCESS: 0x57F287,
    StepStatus.PENDING: 0xFEE75C,
    StepStatus.FAILED: 0xED4245,
}


@dataclass
class Step:
    """One tracked unit of pipeline work."""
    number: int
    name: str
    status: StepStatus
    additional_info: List[Tuple[str, str]] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    def mark_completed(self, when: Optional[datetime] = None) -> None:
        """Stamp the completion time once; later calls keep the first stamp."""
        if self.completed_at is None:
            self.completed_at = when or utcnow()

    def duration(self) -> Optional[timedelta]:
        if self.completed_at is None:
            return None
        return self.completed_at - self.started_at

    def format_duration(self) -> str:
        """Format elapsed time as ``(+350ms)``, ``(+2s)`` or ``(+1.5s)``."""
        duration = self.duration()
        if duration is None:
            return ''

        millis = int(duration.total_seconds() * 1000)
        if millis < 1000:
            return f'(+{millis}ms)'

        seconds, remaining = divmod(millis, 1000)
        if remaining == 0:
            return f'(+{seconds}s)'
        fraction = f'{remaining:03d}'.rstrip('0')
        return f'(+{seconds}.{fraction}s)'

    def format_for_embed(self) -> str:
        """Render the step as one line of an embed description."""
        parts = [f'{self.number}. {self.name}']

        duration = self.format_duration()
        if duration:
            parts.append(duration)

        if self.additional_info:
            info = ', '.join(f'{key}:{value}' for key, value in self.additional_info)
            parts.append(f'- {info}')

        return f"{self.status.emoji} {' '.join(parts)}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Step":
        """Create Step from dictionary."""
        completed_at = data.get("completed_at")
        return cls(
            number=int(data["number"]),
            name=data["name"],
            status=StepStatus.parse(data["status"]),
            additional_info=[
                (str(key), str(value))
                for key, value in data.get("additional_info", [])
            ],
            started_at=parse_timestamp(data["started_at"]),
            completed_at=parse_timestamp(completed_at) if completed_at else None
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert Step to dictionary."""
        return {
            "number": self.number,
            "name": self.name,
            "status": self.status.value,
            "additional_info": [[key, value] for key, value in self.additional_info],
            "started_at": format_timestamp(self.started_at),
            "completed_at": (
                format_timestamp(self.completed_at) if self.completed_at else None
            )
        }


@dataclass(frozen=True)
class PipelineContext:
    """Pull request metadata fixed by ``init``."""
    pr_number: str
    pr_title: str
    author: str
    repository: str
    branch: str
    started_at: datetime = field(default_factory=utcnow)


def parse_pr_number(pr_number: str) -> int:
    """Best-effort integer PR number, 0 when the text is not numeric."""
    try:
        return int(pr_number.strip())
    except ValueError:
        return 0


@dataclass
class PipelineSnapshot:
    """Persisted pipeline progress."""
    message_id: str
    context: PipelineContext
    steps: List[Step] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineSnapshot":
        """Create PipelineSnapshot from dictionary."""
        context = PipelineContext(
            pr_number=str(data["pr_number"]),
            pr_title=data["pr_title"],
            author=data["author"],
            repository=data["repository"],
            branch=data["branch"],
            started_at=parse_timestamp(data["pipeline_started_at"])
        )
        return cls(
            message_id=data.get("message_id") or "",
            context=context,
            steps=[Step.from_dict(step) for step in data.get("steps", [])]
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert PipelineSnapshot to dictionary."""
        return {
            "message_id": self.message_id,
            "pr_number": parse_pr_number(self.context.pr_number),
            "pr_title": self.context.pr_title,
            "author": self.context.author,
            "repository": self.context.repository,
            "branch": self.context.branch,
            "steps": [step.to_dict() for step in self.steps],
            "pipeline_started_at": format_timestamp(self.context.started_at)
        }
