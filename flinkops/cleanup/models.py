"""
Data models for the cleanup run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from ..models import CleanupPlan, FilterCriteria, Phase, StatementRecord


class CleanupState(Enum):
    """States a cleanup run passes through."""
    COLLECTING = "collecting"
    PLANNING = "planning"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    DELETING = "deleting"
    RECONCILING = "reconciling"
    DONE = "done"


@dataclass
class DeleteOutcome:
    """Result of one delete request."""
    name: str
    phase: Phase
    status_code: Optional[int]
    accepted: bool
    body: Any = None  # kept for the final report on failure


@dataclass
class CleanupReport:
    """Everything a cleanup run observed and did."""
    criteria: FilterCriteria
    plan: Optional[CleanupPlan] = None
    states: List[CleanupState] = field(default_factory=list)
    outcomes: List[DeleteOutcome] = field(default_factory=list)
    still_visible: Optional[List[StatementRecord]] = None  # None when reconciliation did not run
    reconcile_error: Optional[str] = None
    cancelled: bool = False
    nothing_to_clean: bool = False

    def enter(self, state: CleanupState) -> None:
        self.states.append(state)

    @property
    def state(self) -> Optional[CleanupState]:
        return self.states[-1] if self.states else None

    @property
    def accepted(self) -> List[DeleteOutcome]:
        return [o for o in self.outcomes if o.accepted]

    @property
    def failed(self) -> List[DeleteOutcome]:
        return [o for o in self.outcomes if not o.accepted]

    @property
    def accepted_count(self) -> int:
        return len(self.accepted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def reconciled(self) -> bool:
        return CleanupState.RECONCILING in self.states
