"""Calculated columns: ``{column}`` templates evaluated over records.

A calculated column such as ``{first_name} {last_name}`` is rendered under
the key ``calc_<id>`` next to the regular columns of a record.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping

from schemalens.architecture.metadata import (
    CALCULATED_COLUMN_PREFIX,
    CalculatedColumn,
    TableDetails,
    ViewColumn,
)
from schemalens.onto import ViewKind

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{([^}]+)\}")


def _render_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Mapping) and "value" in value:
        # resolved foreign key
        inner = value["value"]
        return "" if inner is None else str(inner)
    return str(value).strip()


def evaluate_template(template: str, record: Mapping[str, Any]) -> str:
    """Replace ``{column}`` placeholders with the record's values.

    Missing and null values render as empty strings.

    Example:
        >>> evaluate_template("{first_name} {last_name}", {"first_name": "Ada", "last_name": "Lovelace"})
        'Ada Lovelace'
    """
    return PLACEHOLDER.sub(
        lambda match: _render_value(record.get(match.group(1).strip())), template
    )


def add_calculated_columns(
    records: Iterable[Mapping[str, Any]], calculated: Iterable[CalculatedColumn]
) -> list[dict[str, Any]]:
    """Return copies of the records with the visible calculated columns added."""
    visible = [c for c in calculated if not c.hidden]
    enriched = []
    for record in records:
        row = dict(record)
        for column in visible:
            row[column.key] = evaluate_template(column.template, record)
        enriched.append(row)
    return enriched


def add_calculated_column(
    details: TableDetails,
    display_name: str,
    template: str,
    icon: str = "Calculator",
) -> CalculatedColumn:
    """Define a new calculated column and append it to every view."""
    order = len(details.columns) + len(details.calculated_columns)
    calculated = CalculatedColumn(
        display_name=display_name, template=template, icon=icon, order=order
    )
    details.calculated_columns.append(calculated)
    for kind in ViewKind:
        view = details.view(kind)
        next_order = max((c.order for c in view.columns.values()), default=-1) + 1
        view.columns[calculated.key] = ViewColumn(order=next_order, hidden=False)
    logger.debug(f"Added calculated column '{display_name}' ({calculated.key})")
    return calculated


def remove_calculated_column(details: TableDetails, calculated_id: str) -> bool:
    """Delete a calculated column and its view entries.

    Returns:
        bool: Whether the column existed
    """
    remaining = [c for c in details.calculated_columns if c.id != calculated_id]
    if len(remaining) == len(details.calculated_columns):
        return False
    details.calculated_columns = remaining
    key = f"{CALCULATED_COLUMN_PREFIX}{calculated_id}"
    for kind in ViewKind:
        details.view(kind).columns.pop(key, None)
    return True
