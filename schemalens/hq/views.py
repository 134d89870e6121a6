"""Per-view column order and visibility.

Each table has an inline, a card and a list view. A view maps column keys
(column names and ``calc_<id>`` keys of calculated columns) to an order and
a hidden flag. Stored order values need not be contiguous; the effective
order sorts by ``(order, declaration index)`` so it is always total and
stable.
"""

from __future__ import annotations

import logging
from typing import Sequence

from schemalens.architecture.metadata import (
    CalculatedColumn,
    ColumnMetadata,
    TableDetails,
    ViewColumn,
    ViewConfiguration,
)
from schemalens.hq.fk_guesser import ID_SUFFIX, strip_id_suffix
from schemalens.onto import ColumnKind, ViewKind

logger = logging.getLogger(__name__)

MAX_DEFAULT_VISIBLE = 4
DESCRIPTIVE_WORDS = ("name", "title", "description")
HIDDEN_KINDS = frozenset({ColumnKind.UUID.value, ColumnKind.JSON.value})


def should_hide_column(column: ColumnMetadata) -> bool:
    """Identifier and document columns are hidden by default.

    A column named only ``id`` (or ``uuid``, ``guid``) stays visible.
    """
    if str(column.kind) in HIDDEN_KINDS:
        return True
    normalized = column.normalized_name
    return bool(ID_SUFFIX.search(normalized)) and bool(strip_id_suffix(normalized))


def _is_default_visible(column: ColumnMetadata) -> bool:
    normalized = column.normalized_name
    if any(word in normalized for word in DESCRIPTIVE_WORDS):
        return True
    return not ID_SUFFIX.search(normalized) and str(column.kind) not in HIDDEN_KINDS


def default_view_columns(columns: Sequence[ColumnMetadata]) -> ViewConfiguration:
    """Initial view: declaration order, first four relevant columns visible."""
    visible = {
        c.name for c in [c for c in columns if _is_default_visible(c)][:MAX_DEFAULT_VISIBLE]
    }
    return ViewConfiguration(
        columns={
            column.name: ViewColumn(order=index, hidden=column.name not in visible)
            for index, column in enumerate(columns)
        }
    )


def declared_keys(details: TableDetails) -> list[str]:
    """Column names then calculated column keys, in declaration order."""
    return list(details.columns) + [c.key for c in details.calculated_columns]


def ordered_keys(
    view: ViewConfiguration, declaration: Sequence[str] | None = None
) -> list[str]:
    """Keys of a view in effective order.

    Ties on ``order`` are broken by position in ``declaration``; keys missing
    from it come after declared keys, in view insertion order.
    """
    declaration = list(view.columns) if declaration is None else list(declaration)
    position = {key: i for i, key in enumerate(declaration)}
    fallback = len(position)
    insertion = {key: i for i, key in enumerate(view.columns)}
    return sorted(
        view.columns,
        key=lambda k: (view.columns[k].order, position.get(k, fallback), insertion[k]),
    )


def _renumbered(view: ViewConfiguration, keys: Sequence[str]) -> ViewConfiguration:
    return ViewConfiguration(
        columns={
            key: ViewColumn(order=i, hidden=view.columns[key].hidden)
            for i, key in enumerate(keys)
        }
    )


def move_column(
    view: ViewConfiguration,
    key: str,
    new_order: int,
    declaration: Sequence[str] | None = None,
) -> ViewConfiguration:
    """Move one key to a new position and renumber the view contiguously.

    Args:
        view: View to reorder
        key: Column or calculated column key
        new_order: Target position; clamped to the valid range
        declaration: Declaration order used to break ties

    Returns:
        ViewConfiguration: New view with orders ``0..n-1``

    Raises:
        KeyError: If ``key`` is not part of the view
    """
    if key not in view.columns:
        raise KeyError(key)
    keys = [k for k in ordered_keys(view, declaration) if k != key]
    position = max(0, min(new_order, len(keys)))
    keys.insert(position, key)
    return _renumbered(view, keys)


def sync_view_columns(
    view: ViewConfiguration,
    columns: Sequence[ColumnMetadata],
    calculated_columns: Sequence[CalculatedColumn] = (),
) -> ViewConfiguration:
    """Reconcile a stored view with the current columns.

    Existing entries keep their relative order and visibility, new columns
    and calculated columns are appended, and keys of columns that no longer
    exist are dropped.
    """
    declaration = [c.name for c in columns] + [c.key for c in calculated_columns]
    current = set(declaration)
    kept = ViewConfiguration(
        columns={k: v for k, v in view.columns.items() if k in current}
    )
    dropped = len(view.columns) - len(kept.columns)
    if dropped:
        logger.debug(f"Dropped {dropped} stale view column(s)")

    keys = ordered_keys(kept, declaration)
    for column in columns:
        if column.name not in kept.columns:
            kept.columns[column.name] = ViewColumn(hidden=should_hide_column(column))
            keys.append(column.name)
    for calculated in calculated_columns:
        if calculated.key not in kept.columns:
            kept.columns[calculated.key] = ViewColumn(hidden=calculated.hidden)
            keys.append(calculated.key)
    return _renumbered(kept, keys)


def update_view_column(
    details: TableDetails,
    view_kind: ViewKind | str,
    key: str,
    order: int | None = None,
    hidden: bool | None = None,
) -> TableDetails:
    """Change the position and/or visibility of one key in one view.

    Moving a calculated column also updates its own ``order``.

    Raises:
        ValueError: If ``view_kind`` is not a view kind
        KeyError: If ``key`` is not part of the view
    """
    view = details.view(view_kind)
    if key not in view.columns:
        raise KeyError(key)

    if order is not None:
        view = move_column(view, key, order, declared_keys(details))
        for calculated in details.calculated_columns:
            if calculated.key == key:
                calculated.order = view.columns[key].order
    if hidden is not None:
        view.columns[key] = ViewColumn(order=view.columns[key].order, hidden=hidden)

    details.set_view(view_kind, view)
    return details


def reset_views(details: TableDetails, columns: Sequence[ColumnMetadata]) -> None:
    """Give every view kind the same default configuration."""
    defaults = default_view_columns(columns)
    for kind in ViewKind:
        details.set_view(kind, defaults.model_copy(deep=True))
