"""
HTTP client for the Confluent Cloud management API.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import requests

from .config import Credentials
from .errors import PermissionDenied, RemoteCallError, RemoteListError

logger = logging.getLogger(__name__)

ACCEPTED_STATUS = 202
PERMISSION_DENIED_STATUS = 403


@dataclass
class ApiResponse:
    """Status code and decoded body of one API call."""
    status_code: int
    body: Any = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def accepted(self) -> bool:
        """True when the server accepted the request for asynchronous processing."""
        return self.status_code == ACCEPTED_STATUS


def _decode_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ResourceClient:
    """Authenticated access to statement and compute pool endpoints."""

    def __init__(self, credentials: Credentials, session: Optional[requests.Session] = None, timeout: float = 30):
        self.credentials = credentials
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (credentials.management_api_key, credentials.management_api_secret)
        self.session.headers.update({"Content-Type": "application/json"})

    def request(self, method: str, path: str, payload: Any = None) -> ApiResponse:
        """
        Issue one request and return its status and body.

        HTTP error statuses are returned, not raised, so callers can decide
        which codes they accept.

        Args:
            method: HTTP method
            path: API path, or an absolute URL (used for pagination links)
            payload: Optional JSON body

        Returns:
            ApiResponse with status code and decoded body

        Raises:
            RemoteCallError: If no response was received at all
        """
        url = path if path.startswith("http") else f"{self.credentials.base_url}{path}"
        kwargs: Dict[str, Any] = {"timeout": self.timeout}
        if payload is not None:
            kwargs["json"] = payload

        started = time.monotonic()
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            raise RemoteCallError(f"{method} {path} failed: {e}", method=method, path=path) from e
        elapsed = time.monotonic() - started

        logger.debug(f"{method} {path} -> HTTP {response.status_code} ({elapsed:.2f}s)")
        return ApiResponse(status_code=response.status_code, body=_decode_body(response), elapsed=elapsed)

    def check(
        self,
        response: ApiResponse,
        method: str,
        path: str,
        allowed: Iterable[int],
        error_cls: type = RemoteCallError,
        action: str = "call API",
    ) -> ApiResponse:
        """Raise unless the response status is one of ``allowed``."""
        if response.status_code in allowed:
            return response
        if response.status_code == PERMISSION_DENIED_STATUS:
            raise PermissionDenied(
                f"Permission denied trying to {action} (HTTP 403)",
                status_code=response.status_code,
                body=response.body,
                method=method,
                path=path,
            )
        raise error_cls(
            f"Failed to {action} (HTTP {response.status_code})",
            status_code=response.status_code,
            body=response.body,
            method=method,
            path=path,
        )

    # Statements

    def list_statements(self) -> List[Dict[str, Any]]:
        """
        Fetch every statement in the environment, following page links.

        Raises:
            RemoteListError: If any page cannot be fetched
        """
        items: List[Dict[str, Any]] = []
        path: Optional[str] = self.credentials.statements_path()

        while path:
            try:
                response = self.request("GET", path)
            except RemoteCallError as e:
                raise RemoteListError(str(e), method="GET", path=path) from e
            try:
                self.check(response, "GET", path, (200,), error_cls=RemoteListError, action="list statements")
            except PermissionDenied as e:
                raise RemoteListError(
                    f"{e}. {e.hint}",
                    status_code=e.status_code,
                    body=e.body,
                    method="GET",
                    path=path,
                ) from e

            body = response.body if isinstance(response.body, dict) else {}
            items.extend(body.get("data") or [])
            path = (body.get("metadata") or {}).get("next") or None

        return items

    def get_statement(self, name: str) -> Dict[str, Any]:
        path = self.credentials.statements_path(name)
        response = self.request("GET", path)
        self.check(response, "GET", path, (200,), action=f"get statement {name}")
        return response.body

    def create_statement(self, name: str, sql: str) -> ApiResponse:
        """Submit a new statement running as the execution service account."""
        self.credentials.require_deployment()
        path = self.credentials.statements_path()
        payload = {
            "name": name,
            "spec": {
                "statement": sql,
                "compute_pool_id": self.credentials.compute_pool_id,
                "principal": self.credentials.execution_service_account_id,
            },
        }
        response = self.request("POST", path, payload)
        return self.check(response, "POST", path, (200, 201), action=f"deploy statement {name}")

    def stop_statement(self, name: str) -> ApiResponse:
        path = self.credentials.statements_path(name)
        payload = [{"op": "replace", "path": "/spec/stopped", "value": True}]
        response = self.request("PATCH", path, payload)
        return self.check(response, "PATCH", path, (200, 202), action=f"stop statement {name}")

    def delete_statement(self, name: str) -> ApiResponse:
        """Issue a delete and return the raw response for the caller to classify."""
        return self.request("DELETE", self.credentials.statements_path(name))

    def delete_statement_checked(self, name: str) -> ApiResponse:
        path = self.credentials.statements_path(name)
        response = self.request("DELETE", path)
        return self.check(response, "DELETE", path, (202, 204), action=f"delete statement {name}")

    # Compute pools

    def get_compute_pool(self, pool_id: str) -> ApiResponse:
        return self.request("GET", f"/fcpm/v2/compute-pools/{pool_id}")
