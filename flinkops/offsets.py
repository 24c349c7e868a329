"""
Rendering of statement offsets for connector configuration.

Offsets are opaque tokens copied through from the API; nothing here parses
or validates them.
"""

from typing import Iterable, List

from .models import StatementRecord

NO_OFFSETS_MESSAGE = "No offset information available"
NO_OFFSETS_HINT = (
    "Offsets are typically available for STOPPED statements "
    "or statements that have processed data."
)


def _offset_lines(record: StatementRecord, indent: str) -> List[str]:
    return [f"{indent}{topic}: {offset}" for topic, offset in record.latest_offsets.items()]


def render(records: Iterable[StatementRecord]) -> str:
    """
    Render offsets for several statements.

    Statements without offsets get an explicit line so an empty section is
    never mistaken for a tool error.
    """
    blocks = []
    for record in records:
        lines = [
            f"Statement: {record.name}",
            f"   Status: {record.phase.value} | Principal: {record.principal}",
        ]
        if record.latest_offsets:
            lines.append(f"   Timestamp: {record.latest_offsets_timestamp or 'N/A'}")
            lines.append("   Offsets:")
            lines.extend(_offset_lines(record, "     "))
        else:
            lines.append(f"   Offsets: {NO_OFFSETS_MESSAGE}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def render_statement(record: StatementRecord) -> str:
    """Render the detailed offset view for a single statement."""
    lines = [
        f"Statement: {record.name}",
        f"Status: {record.phase.value}",
        f"Principal: {record.principal}",
        f"Timestamp: {record.latest_offsets_timestamp or 'N/A'}",
        "",
    ]
    if record.latest_offsets:
        lines.append("Latest Offsets by Topic:")
        lines.extend(_offset_lines(record, "  "))
    else:
        lines.append(f"{NO_OFFSETS_MESSAGE} for this statement.")
        lines.append(NO_OFFSETS_HINT)
    return "\n".join(lines)
