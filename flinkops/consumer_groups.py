"""
Consumer group offsets via the kafka-consumer-groups CLI.

The describe output is reformatted into ``scan.startup.specific-offsets``
settings and SQL hints so a Flink statement can resume where a consumer
group left off.
"""

import logging
import os
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .config import Credentials
from .errors import ConsumerGroupError

logger = logging.getLogger(__name__)

TOOL_NAMES = ["kafka-consumer-groups", "kafka-consumer-groups.sh"]
BOOTSTRAP_PORT = 9092
NO_OFFSET = "-"

INSTALL_HINT = (
    "kafka-consumer-groups command not found. Install Kafka tools "
    "(macOS: brew install kafka, Ubuntu/Debian: sudo apt install kafka, "
    "or download from https://kafka.apache.org/downloads). "
    "Alternatively use: confluent kafka consumer group describe <group>"
)


@dataclass
class PartitionOffset:
    """One row of ``kafka-consumer-groups --describe``."""
    group: str
    topic: str
    partition: int
    current_offset: str

    @property
    def committed(self) -> bool:
        return self.current_offset not in (NO_OFFSET, "")


def bootstrap_servers(rest_endpoint: str) -> str:
    """Convert a REST endpoint URL into a ``host:9092`` bootstrap address."""
    host = re.sub(r"^https?://", "", rest_endpoint.strip()).rstrip("/")
    host = re.sub(r":\d+$", "", host)
    return f"{host}:{BOOTSTRAP_PORT}"


def command_config_text(credentials: Credentials) -> str:
    credentials.require_kafka()
    return (
        f"bootstrap.servers={bootstrap_servers(credentials.kafka_rest_endpoint)}\n"
        "security.protocol=SASL_SSL\n"
        "sasl.mechanism=PLAIN\n"
        "sasl.jaas.config=org.apache.kafka.common.security.plain.PlainLoginModule required "
        f'username="{credentials.kafka_api_key}" password="{credentials.kafka_api_secret}";\n'
    )


def find_tool() -> str:
    for name in TOOL_NAMES:
        path = shutil.which(name)
        if path:
            return path
    raise ConsumerGroupError(INSTALL_HINT)


def _run_tool(credentials: Credentials, args: List[str], timeout: float = 60) -> str:
    """
    Run kafka-consumer-groups with a throwaway command-config file.

    Args:
        credentials: Credentials with Kafka API keys
        args: Extra arguments, e.g. ["--list"]
        timeout: Seconds before giving up on the tool

    Returns:
        Combined stdout/stderr of the tool

    Raises:
        ConsumerGroupError: If the tool is missing, times out or exits non-zero
    """
    tool = find_tool()
    config_text = command_config_text(credentials)

    fd, config_path = tempfile.mkstemp(suffix=".properties")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(config_text)

        command = [
            tool,
            "--bootstrap-server", bootstrap_servers(credentials.kafka_rest_endpoint),
            "--command-config", config_path,
        ] + args
        logger.debug(f"Running {tool} {' '.join(args)}")

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ConsumerGroupError(f"{tool} timed out after {timeout}s") from e
    finally:
        os.unlink(config_path)

    if result.returncode != 0:
        raise ConsumerGroupError(
            f"{Path(tool).name} exited with status {result.returncode}",
            output=result.stdout,
        )
    return result.stdout


def list_groups(credentials: Credentials) -> List[str]:
    output = _run_tool(credentials, ["--list"])
    return [line.strip() for line in output.splitlines() if line.strip()]


def describe_group(credentials: Credentials, group: str) -> str:
    return _run_tool(credentials, ["--group", group, "--describe"])


def parse_describe_output(text: str) -> List[PartitionOffset]:
    """
    Parse describe output into partition rows.

    Header lines, blank lines and informational messages (such as "has no
    active members") are skipped.
    """
    rows = []
    for line in text.splitlines():
        columns = line.split()
        if len(columns) < 4 or columns[0] == "GROUP" or not columns[2].isdigit():
            continue
        rows.append(PartitionOffset(
            group=columns[0],
            topic=columns[1],
            partition=int(columns[2]),
            current_offset=columns[3],
        ))
    return rows


def filter_topic(rows: List[PartitionOffset], topic: Optional[str]) -> List[PartitionOffset]:
    if not topic:
        return list(rows)
    return [row for row in rows if row.topic == topic]


def topics_of(rows: List[PartitionOffset]) -> List[str]:
    return sorted({row.topic for row in rows})


def _group_by_topic(rows: List[PartitionOffset]) -> Dict[str, List[PartitionOffset]]:
    grouped: Dict[str, List[PartitionOffset]] = {}
    for row in sorted(rows, key=lambda r: (r.topic, r.partition)):
        grouped.setdefault(row.topic, []).append(row)
    return grouped


def specific_offsets(rows: List[PartitionOffset]) -> str:
    """Build the ``partition:P,offset:O;...`` value for committed partitions."""
    return ";".join(
        f"partition:{row.partition},offset:{row.current_offset}"
        for row in rows
        if row.committed
    )


def format_for_flink(rows: List[PartitionOffset], group: str, now: Optional[datetime] = None) -> str:
    """
    Render connector options and SQL hints for every topic in ``rows``.

    Args:
        rows: Parsed describe rows
        group: Consumer group name, echoed in the header
        now: Generation timestamp (defaults to the current UTC time)

    Returns:
        Text ready to paste into a Flink statement
    """
    now = now or datetime.now(timezone.utc)
    lines = [
        f"-- Consumer group: {group}",
        f"-- Generated on: {now.strftime('%Y-%m-%d %H:%M:%S')} UTC",
        "",
    ]

    if not rows:
        lines.append("-- No offset data found in CLI output")
        return "\n".join(lines)

    grouped = _group_by_topic(rows)

    for topic, topic_rows in grouped.items():
        lines.append(f"-- Topic: {topic}")
        for row in topic_rows:
            if not row.committed:
                lines.append(f"-- Partition {row.partition}: No committed offset (skipping)")

        value = specific_offsets(topic_rows)
        if value:
            lines.append("-- For Flink Kafka connector:")
            lines.append("'scan.startup.mode' = 'specific-offsets',")
            lines.append(f"'scan.startup.specific-offsets' = '{value}',")
        else:
            lines.append("-- No valid offsets found for this topic")
        lines.append("")

    lines.append("-- Confluent Cloud SQL Hint Examples:")
    lines.append("")
    for topic, topic_rows in grouped.items():
        value = specific_offsets(topic_rows)
        if not value:
            continue
        lines.extend([
            f"-- SQL Hint for topic: {topic}",
            f"SELECT * FROM `{topic}`",
            "/*+ OPTIONS(",
            "  'scan.startup.mode'='specific-offsets',",
            f"  'scan.startup.specific-offsets'='{value}'",
            ") */;",
            "",
        ])

    return "\n".join(lines)


def write_config_file(credentials: Credentials, path: Path, now: Optional[datetime] = None) -> Path:
    """Write a reusable kafka-consumer-groups.properties file."""
    now = now or datetime.now(timezone.utc)
    header = (
        "# Kafka Consumer Groups CLI Configuration\n"
        f"# Generated on: {now.strftime('%Y-%m-%d %H:%M:%S')} UTC\n"
        "# Contains API credentials - keep this file out of version control\n\n"
    )
    path.write_text(header + command_config_text(credentials))
    logger.info(f"Wrote consumer group config to {path}")
    return path
