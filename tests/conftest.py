"""
Shared fakes for flinkops tests.
"""

import pytest
from unittest.mock import Mock

from flinkops.client import ApiResponse, ResourceClient
from flinkops.config import Credentials


def make_item(name, phase, principal, offsets=None, created_at="2025-08-08T09:27:55Z"):
    """Build a statement as returned in the API's ``data`` array."""
    status = {"phase": phase}
    if offsets is not None:
        status["latest_offsets"] = offsets
        status["latest_offsets_timestamp"] = "2025-08-08T10:00:00Z"
    return {
        "name": name,
        "spec": {"principal": principal, "statement": "SELECT 1;", "compute_pool_id": "lfcp-1"},
        "status": status,
        "metadata": {"created_at": created_at},
    }


SCENARIO_ITEMS = [
    make_item("a", "COMPLETED", "sa-1"),
    make_item("b", "RUNNING", "sa-1"),
    make_item("c", "FAILED", "sa-2"),
]


def http_response(status_code, body=None, text=None):
    """Mock a requests.Response with a JSON body, a text body or no body."""
    response = Mock()
    response.status_code = status_code
    if body is not None:
        response.content = b"{}"
        response.json.return_value = body
    elif text is not None:
        response.content = text.encode()
        response.json.side_effect = ValueError("not json")
        response.text = text
    else:
        response.content = b""
    return response


def session_client(credentials, *responses):
    """Real ResourceClient over a mocked session that returns ``responses`` in order."""
    session = Mock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return ResourceClient(credentials, session=session), session

class FakeClient:
    """Stand-in for ResourceClient that records calls instead of using HTTP."""

    def __init__(self, credentials, listings, delete_statuses=None):
        self.credentials = credentials
        self.listings = list(listings)
        self.delete_statuses = delete_statuses or {}
        self.list_calls = 0
        self.deleted = []

    def list_statements(self):
        self.list_calls += 1
        result = self.listings[min(self.list_calls, len(self.listings)) - 1]
        if isinstance(result, Exception):
            raise result
        return result

    def delete_statement(self, name):
        self.deleted.append(name)
        status = self.delete_statuses.get(name, 202)
        if isinstance(status, Exception):
            raise status
        body = None if status in (202, 204) else {"errors": [{"detail": f"cannot delete {name}"}]}
        return ApiResponse(status_code=status, body=body)


@pytest.fixture
def credentials():
    return Credentials(
        management_api_key="KEY1234567890",
        management_api_secret="secret",
        environment_id="env-1",
        organization_id="org-1",
        base_url="https://flink.example.com",
        compute_pool_id="lfcp-1",
        execution_service_account_id="sa-1",
    )


@pytest.fixture
def scenario_items():
    return [dict(item) for item in SCENARIO_ITEMS]
