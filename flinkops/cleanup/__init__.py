"""
Cleanup of finished statements.
"""

from .models import CleanupReport, CleanupState, DeleteOutcome
from .orchestrator import CleanupOrchestrator
from .verify import verify_clean

__all__ = [
    "CleanupOrchestrator",
    "CleanupReport",
    "CleanupState",
    "DeleteOutcome",
    "verify_clean",
]
