"""
Data models for statements and filter criteria.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Phase(str, Enum):
    """Statement lifecycle phases as reported by the API."""
    PROVISIONING = "PROVISIONING"
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    STOPPED = "STOPPED"
    DELETING = "DELETING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Phase":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


_FRACTION = re.compile(r"\.(\d+)")


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; fractions beyond microseconds are truncated."""
    if not value:
        return None
    try:
        text = value.replace("Z", "+00:00")
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        return datetime.fromisoformat(text)
    except (ValueError, TypeError, AttributeError):
        return None


@dataclass(frozen=True)
class StatementRecord:
    """
    A statement as seen in one listing snapshot.

    The name is only unique within a snapshot; the service may recreate a
    statement under the same name after it is deleted.
    """
    name: str
    phase: Phase
    principal: Optional[str] = None
    created_at: Optional[datetime] = None
    latest_offsets: Optional[Dict[str, str]] = None
    latest_offsets_timestamp: Optional[str] = None
    statement: Optional[str] = None
    compute_pool_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "StatementRecord":
        """Normalize one element of the API's ``data`` array."""
        spec = item.get("spec") or {}
        status = item.get("status") or {}
        metadata = item.get("metadata") or {}

        offsets = status.get("latest_offsets")
        if offsets:
            offsets = {str(topic): str(offset) for topic, offset in offsets.items()}
        else:
            offsets = None

        return cls(
            name=item.get("name", ""),
            phase=Phase.parse(status.get("phase")),
            principal=spec.get("principal"),
            created_at=_parse_timestamp(metadata.get("created_at")),
            latest_offsets=offsets,
            latest_offsets_timestamp=status.get("latest_offsets_timestamp"),
            statement=spec.get("statement"),
            compute_pool_id=spec.get("compute_pool_id"),
            raw=item,
        )

    @property
    def created_at_display(self) -> str:
        if self.created_at:
            return self.created_at.isoformat()
        raw_value = (self.raw.get("metadata") or {}).get("created_at")
        return str(raw_value) if raw_value else "N/A"

    @property
    def is_running(self) -> bool:
        return self.phase is Phase.RUNNING


@dataclass(frozen=True)
class FilterCriteria:
    """
    Exact-match filters over statement records.

    Unset fields match everything. ``exclude_phase`` is used by cleanup to
    keep running statements out of the candidate set.
    """
    principal: Optional[str] = None
    phase: Optional[str] = None
    exclude_phase: Optional[str] = None

    @classmethod
    def for_cleanup(cls, principal: Optional[str] = None, phase: Optional[str] = None) -> "FilterCriteria":
        if phase:
            return cls(principal=principal, phase=phase)
        return cls(principal=principal, exclude_phase=Phase.RUNNING.value)

    @property
    def explicit_principal(self) -> bool:
        return self.principal is not None

    def describe(self) -> str:
        parts = []
        if self.principal is not None:
            parts.append(f" (Principal: {self.principal})")
        if self.phase is not None:
            parts.append(f" (Status: {self.phase})")
        elif self.exclude_phase is not None:
            parts.append(f" (Status: not {self.exclude_phase})")
        return "".join(parts)


@dataclass
class CleanupPlan:
    """Filtered statements split by whether the acting principal may delete them."""
    deletable: List[StatementRecord]
    blocked: List[StatementRecord]

    @property
    def is_empty(self) -> bool:
        return not self.deletable and not self.blocked
