"""
Connectivity probe for the management API.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from .client import ApiResponse, ResourceClient
from .errors import RemoteCallError

logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    description: str
    path: str
    status_code: Optional[int]
    elapsed: float
    body: Any


def _probe(description: str, path: str, call: Callable[[], ApiResponse]) -> ProbeResult:
    try:
        response = call()
    except RemoteCallError as e:
        logger.warning(f"Probe failed for {path}: {e}")
        return ProbeResult(description, path, None, 0.0, str(e))
    return ProbeResult(description, path, response.status_code, response.elapsed, response.body)


def probe(client: ResourceClient) -> List[ProbeResult]:
    """Hit the statements collection and, if configured, the compute pool."""
    credentials = client.credentials
    statements_path = credentials.statements_path()
    results = [_probe(
        "List Flink SQL statements",
        statements_path,
        lambda: client.request("GET", statements_path),
    )]

    pool_id = credentials.compute_pool_id
    if pool_id:
        results.append(_probe(
            "Get compute pool details",
            f"/fcpm/v2/compute-pools/{pool_id}",
            lambda: client.get_compute_pool(pool_id),
        ))
    return results
