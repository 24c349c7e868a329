"""
Error types raised by flinkops.
"""

from typing import Any, List, Optional


class FlinkOpsError(Exception):
    """Base class for all flinkops errors."""


class ConfigError(FlinkOpsError):
    """Missing or invalid credentials / identifiers."""

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []


class RemoteCallError(FlinkOpsError):
    """A management API call returned an unexpected status or never completed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
        method: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path


class RemoteListError(RemoteCallError):
    """Fetching the statement collection failed."""


class PermissionDenied(RemoteCallError):
    """The API rejected the call with 403, usually a principal/role mismatch."""

    hint = (
        "The credentials are valid but not authorized for this statement. "
        "Only the owning principal (or a FlinkAdmin) can modify it."
    )


class UserCancelled(FlinkOpsError):
    """The operator declined the confirmation prompt."""

    def __init__(self, message: str = "Clean operation cancelled.", report: Any = None):
        super().__init__(message)
        self.report = report


class ConsumerGroupError(FlinkOpsError):
    """The kafka-consumer-groups tool is missing or failed."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output
