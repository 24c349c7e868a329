"""
Ownership classification for cleanup candidates.
"""

from typing import Iterable

from .models import CleanupPlan, StatementRecord


def partition(
    records: Iterable[StatementRecord],
    acting_principal: str,
    explicit_principal_filter_given: bool = False,
) -> CleanupPlan:
    """
    Split records into those the acting principal may delete and the rest.

    When the operator named a principal explicitly, every record has already
    been narrowed to that principal and all of them are treated as deletable.
    This is classification only; the API still decides whether a delete is
    authorized.

    Args:
        records: Filtered statement records
        acting_principal: Service account the tool runs as
        explicit_principal_filter_given: Whether --principal was supplied

    Returns:
        CleanupPlan with deletable and blocked records
    """
    records = list(records)
    if explicit_principal_filter_given:
        return CleanupPlan(deletable=records, blocked=[])

    deletable = [r for r in records if r.principal == acting_principal]
    blocked = [r for r in records if r.principal != acting_principal]
    return CleanupPlan(deletable=deletable, blocked=blocked)
