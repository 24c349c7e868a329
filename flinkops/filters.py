"""
Exact-match filtering of statement records.

Matching is case-sensitive string equality. No wildcards or regexes.
"""

from typing import Iterable, List

from .models import FilterCriteria, StatementRecord


def matches(record: StatementRecord, criteria: FilterCriteria) -> bool:
    if criteria.principal is not None and record.principal != criteria.principal:
        return False
    if criteria.phase is not None and record.phase.value != criteria.phase:
        return False
    if criteria.exclude_phase is not None and record.phase.value == criteria.exclude_phase:
        return False
    return True


def apply(records: Iterable[StatementRecord], criteria: FilterCriteria) -> List[StatementRecord]:
    """Return the records matching every set criterion, in input order."""
    return [record for record in records if matches(record, criteria)]
