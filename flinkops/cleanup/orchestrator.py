"""
Cleanup orchestration for non-running statements.

A run moves through COLLECTING, PLANNING, optionally AWAITING_CONFIRMATION,
DELETING, RECONCILING and DONE. Deletes are asynchronous on the server side,
so an accepted delete is not a completed one; the reconciliation pass only
reports what is still visible and never retries.
"""

import logging
import time
from typing import Callable, List, Optional

from .. import filters
from ..client import ResourceClient
from ..errors import RemoteCallError, UserCancelled
from ..lister import list_records
from ..models import CleanupPlan, FilterCriteria, Phase, StatementRecord
from ..ownership import partition
from .models import CleanupReport, CleanupState, DeleteOutcome

logger = logging.getLogger(__name__)

DELETE_ACCEPTED_STATUSES = (202, 204)
DEFAULT_RECONCILE_DELAY = 2.0

ConfirmCallback = Callable[[List[StatementRecord]], bool]
OutcomeCallback = Callable[[DeleteOutcome], None]
PlanCallback = Callable[[CleanupPlan], None]


class CleanupOrchestrator:
    """Drives one best-effort bulk cleanup."""

    def __init__(
        self,
        client: ResourceClient,
        acting_principal: Optional[str],
        confirm: Optional[ConfirmCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
        reconcile_delay: float = DEFAULT_RECONCILE_DELAY,
        on_outcome: Optional[OutcomeCallback] = None,
        on_plan: Optional[PlanCallback] = None,
    ):
        self.client = client
        self.acting_principal = acting_principal
        self.confirm = confirm
        self.sleep = sleep
        self.reconcile_delay = reconcile_delay
        self.on_outcome = on_outcome
        self.on_plan = on_plan

    def run(self, criteria: FilterCriteria, force: bool = False) -> CleanupReport:
        """
        Execute a cleanup run.

        Args:
            criteria: Filter criteria, usually from FilterCriteria.for_cleanup
            force: Skip the confirmation step

        Returns:
            CleanupReport describing the run

        Raises:
            RemoteListError: If the initial listing fails (nothing is deleted)
            UserCancelled: If confirmation is declined (nothing is deleted)
        """
        report = CleanupReport(criteria=criteria)

        report.enter(CleanupState.COLLECTING)
        records = list_records(self.client)

        report.enter(CleanupState.PLANNING)
        candidates = filters.apply(records, criteria)
        plan = partition(candidates, self.acting_principal, criteria.explicit_principal)
        report.plan = plan
        logger.info(
            f"Cleanup plan: {len(plan.deletable)} deletable, {len(plan.blocked)} blocked "
            f"out of {len(records)} statements"
        )

        if self.on_plan:
            self.on_plan(plan)

        if not plan.deletable:
            report.nothing_to_clean = True
            report.enter(CleanupState.DONE)
            return report

        if not force:
            report.enter(CleanupState.AWAITING_CONFIRMATION)
            approved = self.confirm(list(plan.deletable)) if self.confirm else False
            if not approved:
                report.cancelled = True
                report.enter(CleanupState.DONE)
                raise UserCancelled(report=report)

        report.enter(CleanupState.DELETING)
        for record in plan.deletable:
            outcome = self._delete(record)
            report.outcomes.append(outcome)
            if self.on_outcome:
                self.on_outcome(outcome)

        if report.accepted_count:
            self._reconcile(report)

        report.enter(CleanupState.DONE)
        return report

    def _delete(self, record: StatementRecord) -> DeleteOutcome:
        try:
            response = self.client.delete_statement(record.name)
        except RemoteCallError as e:
            logger.error(f"Error deleting statement {record.name}: {e}")
            return DeleteOutcome(record.name, record.phase, None, False, str(e))

        accepted = response.status_code in DELETE_ACCEPTED_STATUSES
        if accepted:
            logger.info(f"Delete accepted for {record.name} (HTTP {response.status_code})")
        else:
            logger.warning(f"Failed to delete {record.name} (HTTP {response.status_code})")
        return DeleteOutcome(record.name, record.phase, response.status_code, accepted, response.body)

    def _reconcile(self, report: CleanupReport) -> None:
        report.enter(CleanupState.RECONCILING)
        self.sleep(self.reconcile_delay)
        try:
            records = list_records(self.client)
        except RemoteCallError as e:
            logger.warning(f"Reconciliation listing failed: {e}")
            report.reconcile_error = str(e)
            return

        report.still_visible = [r for r in records if r.phase is not Phase.RUNNING]
