"""
Statement listing and normalization.
"""

from typing import List

from .client import ResourceClient
from .models import StatementRecord


def list_records(client: ResourceClient) -> List[StatementRecord]:
    """
    Fetch all statements in the environment as records.

    Raises:
        RemoteListError: If the collection cannot be fetched
    """
    return [StatementRecord.from_api(item) for item in client.list_statements()]
