"""Shared record formatting helpers.

Keeping formatting here prevents drift between the CLI and chat integrations
and keeps listings consistent regardless of where they are shown.
"""

from __future__ import annotations

from typing import Sequence

from core.models import Duplicate, Record, TableSchema

_LABELS = {
    "bugs": ("Reported by", "Description", "Steps", "No bugs have been reported yet."),
    "features": ("Requested by", "Feature", "Reason", "No feature requests have been submitted yet."),
}

_TITLES = {"bugs": "Bug Reports", "features": "Feature Requests"}


def _labels(schema: TableSchema) -> tuple[str, str, str, str]:
    try:
        return _LABELS[schema.name]
    except KeyError:
        primary = schema.primary_field.replace("_", " ").capitalize()
        secondary = schema.secondary_field.replace("_", " ").capitalize()
        return ("Submitted by", primary, secondary, f"No {schema.name} yet.")


def _escape_md(value: str) -> str:
    for ch in r"*_`[":
        value = value.replace(ch, f"\\{ch}")
    return value


def format_record(record: Record, schema: TableSchema, mode: str = "plain", show_status: bool = True) -> str:
    """Render one record as a multi-line block."""

    if mode not in {"plain", "markdown"}:
        raise ValueError(f"Unsupported listing format: {mode}")

    submitter_label, primary_label, secondary_label, _ = _labels(schema)
    date = record.created_at.astimezone().strftime("%Y-%m-%d")
    status = f" - {record.status.upper()}" if show_status else ""

    if mode == "plain":
        return "\n".join(
            [
                f"#{record.id}{status} ({record.upvotes} upvotes)",
                f"{submitter_label}: {record.username} ({record.user_id})",
                f"Date: {date}",
                f"{primary_label}: {record.primary_text}",
                f"{secondary_label}: {record.secondary_text}",
            ]
        )

    return "\n".join(
        [
            f"**#{record.id}**{status} ({record.upvotes} upvotes)",
            f"{submitter_label}: {_escape_md(record.username)} (<@{record.user_id}>)",
            f"Date: {date}",
            f"{primary_label}: {_escape_md(record.primary_text)}",
            f"{secondary_label}: {_escape_md(record.secondary_text)}",
        ]
    )


def format_listing(records: Sequence[Record], schema: TableSchema, mode: str = "plain") -> str:
    """Render a whole table, or the kind's empty message."""

    if not records:
        return _labels(schema)[3]

    title = _TITLES.get(schema.name, schema.name.capitalize())
    heading = f"**{title}**" if mode == "markdown" else title
    body = "\n\n".join(format_record(record, schema, mode) for record in records)
    return f"{heading}\n\n{body}"


def format_duplicate_notice(result: Duplicate, schema: TableSchema, mode: str = "plain") -> str:
    """Explain that a submission was not stored and list what it matched."""

    similar = "\n\n".join(
        format_record(record, schema, mode, show_status=False) for record in result.similar_entries
    )
    heading = f"Similar {schema.name} already exist"
    if mode == "markdown":
        heading = f"**{heading}!**"
    return (
        f"{heading}\n\n"
        "Please upvote one of these if it matches yours:\n\n"
        f"{similar}\n\n"
        "If none of these match, submit again with more specific details."
    )
