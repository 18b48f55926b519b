"""Data classes shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class OutcomeStatus(StrEnum):
    """Terminal status of a single group."""

    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class SourceRef:
    """Where in the input file a group came from."""

    sheet: str
    row: int | None = None

    def __str__(self) -> str:
        if self.row is None:
            return f"sheet '{self.sheet}'"
        return f"sheet '{self.sheet}' row {self.row}"


@dataclass(frozen=True)
class ResourceEntry:
    """One resource type and the IDs attached to it."""

    type: str
    ids: tuple[str, ...] = ()
    value: str | None = None


@dataclass(frozen=True)
class GroupSpec:
    """A parsed group definition.

    ``principals`` keeps first-seen order. ``role_assignments`` holds
    ``(principal, roles)`` pairs in the same order, only for listed principals.
    """

    name: str
    source: SourceRef
    description: str | None = None
    resources: tuple[ResourceEntry, ...] = ()
    principals: tuple[str, ...] = ()
    role_assignments: tuple[tuple[str, tuple[str, ...]], ...] = ()
    parse_errors: tuple[str, ...] = ()

    def roles_for(self, principal: str) -> tuple[str, ...]:
        for name, roles in self.role_assignments:
            if name == principal:
                return roles
        return ()


@dataclass(frozen=True)
class ValidationResult:
    """Validation verdict for one group."""

    group_name: str
    source: SourceRef
    errors: tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        return "; ".join(self.errors)


@dataclass(frozen=True)
class GroupOutcome:
    """Final result for one group, as written to the report."""

    group_name: str
    status: OutcomeStatus
    source: SourceRef | None = None
    http_status: int | None = None
    error_message: str | None = None
    request_id: str | None = None
    group_id: str | None = None
    attempts: int = 0

    def to_row(self) -> dict[str, object]:
        """Flatten into a report row."""
        return {
            "group_name": self.group_name,
            "status": str(self.status),
            "http_status": self.http_status,
            "error_message": self.error_message,
            "request_id": self.request_id,
            "group_id": self.group_id,
            "attempts": self.attempts,
            "source": str(self.source) if self.source else None,
        }
