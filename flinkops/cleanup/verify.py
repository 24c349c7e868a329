"""
Read-only check for leftover non-running statements.
"""

from .. import filters
from ..client import ResourceClient
from ..lister import list_records
from ..models import CleanupPlan, FilterCriteria
from ..ownership import partition


def verify_clean(client: ResourceClient, acting_principal: str) -> CleanupPlan:
    """
    List non-running statements split by what the acting principal may delete.

    Raises:
        RemoteListError: If the listing fails
    """
    records = filters.apply(list_records(client), FilterCriteria.for_cleanup())
    return partition(records, acting_principal)
