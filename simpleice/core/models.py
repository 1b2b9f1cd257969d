import dataclasses
from datetime import datetime
from enum import Enum


class Status(str, Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    SENT = "Sent"
    INACTIVE = "Inactive"

    def __str__(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True)
class IceMail:
    id: str
    name: str
    recipient: str
    subject: str
    body: str
    status: Status = Status.DRAFT
    trigger_at: datetime | None = None
    sent_at: datetime | None = None
    created_at: datetime | None = None


@dataclasses.dataclass
class CycleReport:
    sent: list[str] = dataclasses.field(default_factory=list)
    failed: list[tuple[str, str]] = dataclasses.field(default_factory=list)

    @property
    def sent_count(self) -> int:
        return len(self.sent)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed
