"""
Credential loading for management and Kafka API access.

Credentials live in a ``credentials.properties`` file of ``key=value`` lines,
the same file the operators already keep next to their SQL. It is read once at
process start into an immutable :class:`Credentials` object.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, List, Optional, Union

from dotenv import dotenv_values

from .errors import ConfigError

logger = logging.getLogger(__name__)

CREDENTIALS_FILENAME = "credentials.properties"
CREDENTIALS_ENV_VAR = "FLINKOPS_CREDENTIALS"
DEFAULT_BASE_URL = "https://api.confluent.cloud"

REQUIRED_KEYS = [
    "management_api_key",
    "management_api_secret",
    "environment_id",
    "organization_id",
]
DEPLOYMENT_KEYS = ["compute_pool_id", "execution_service_account_id"]
KAFKA_KEYS = ["kafka_api_key", "kafka_api_secret", "kafka_rest_endpoint"]


@dataclass(frozen=True)
class Credentials:
    """Validated credentials and identifiers for one environment."""
    management_api_key: str
    management_api_secret: str
    environment_id: str
    organization_id: str
    base_url: str = DEFAULT_BASE_URL
    compute_pool_id: Optional[str] = None
    execution_service_account_id: Optional[str] = None
    kafka_api_key: Optional[str] = None
    kafka_api_secret: Optional[str] = None
    kafka_rest_endpoint: Optional[str] = None
    cluster_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Dict[str, Optional[str]]) -> "Credentials":
        """
        Build credentials from raw key/value pairs.

        Blank values count as missing. Every missing required key is reported
        in a single ConfigError.

        Raises:
            ConfigError: If any required key is missing
        """
        cleaned = {k: v.strip() for k, v in values.items() if v is not None and v.strip()}

        missing = [key for key in REQUIRED_KEYS if key not in cleaned]
        if missing:
            raise ConfigError(
                f"Missing required credentials: {', '.join(missing)}",
                missing=missing,
            )

        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in cleaned.items() if k in known}
        kwargs["base_url"] = kwargs.get("base_url", DEFAULT_BASE_URL).rstrip("/")
        return cls(**kwargs)

    @property
    def acting_principal(self) -> Optional[str]:
        return self.execution_service_account_id

    def require_deployment(self) -> None:
        """Check the identifiers needed to deploy or to act as a principal."""
        self._require(DEPLOYMENT_KEYS, "Missing required deployment credentials")

    def require_principal(self) -> str:
        self._require(["execution_service_account_id"], "Missing acting principal")
        return self.execution_service_account_id

    def require_kafka(self) -> None:
        """Check the cluster-scoped Kafka credentials used for consumer groups."""
        self._require(KAFKA_KEYS, "Missing Kafka API credentials")

    def masked_key(self) -> str:
        return f"{self.management_api_key[:8]}..."

    def statements_path(self, name: Optional[str] = None) -> str:
        path = (
            f"/sql/v1/organizations/{self.organization_id}"
            f"/environments/{self.environment_id}/statements"
        )
        if name:
            path += f"/{name}"
        return path

    def _require(self, keys: List[str], message: str) -> None:
        missing = [key for key in keys if not getattr(self, key)]
        if missing:
            raise ConfigError(f"{message}: {', '.join(missing)}", missing=missing)


def resolve_credentials_path(path: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve where the credentials file should be read from.

    Order: explicit path, then $FLINKOPS_CREDENTIALS, then ./credentials.properties.
    """
    if path:
        return Path(path)
    env_path = os.environ.get(CREDENTIALS_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / CREDENTIALS_FILENAME


def load_credentials(path: Optional[Union[str, Path]] = None) -> Credentials:
    """
    Load and validate credentials from a properties file.

    Args:
        path: Optional explicit path to the properties file

    Returns:
        Credentials: Validated credentials

    Raises:
        ConfigError: If the file is missing or required keys are absent
    """
    credentials_file = resolve_credentials_path(path)

    if not credentials_file.is_file():
        message = f"{CREDENTIALS_FILENAME} not found at {credentials_file}"
        template = credentials_file.with_name(f"{CREDENTIALS_FILENAME}.template")
        if template.is_file():
            message += (
                f". Found {template.name} - copy it to {CREDENTIALS_FILENAME} "
                "and fill in your actual values"
            )
        raise ConfigError(message)

    logger.debug(f"Loading credentials from {credentials_file}")
    return Credentials.from_mapping(dict(dotenv_values(credentials_file)))
