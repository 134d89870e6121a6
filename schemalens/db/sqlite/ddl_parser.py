"""Parser for the ``CREATE TABLE`` statements SQLite keeps in ``sqlite_master``.

The pragmas report columns and foreign keys but not constraint names; those
only live in the statement text. Statements are parsed with sqlglot using the
SQLite dialect. Column types are rendered by sqlglot and may differ from the
declared text.
"""

import logging

import sqlglot
from pydantic import BaseModel, Field
from sqlglot import exp
from sqlglot.errors import SqlglotError

from schemalens.architecture.onto_sql import DeclaredForeignKey, RawColumnInfo
from schemalens.errors import SchemaParseError

logger = logging.getLogger(__name__)


class TableDefinition(BaseModel):
    """Columns and constraints declared by one ``CREATE TABLE`` statement."""

    name: str
    columns: list[RawColumnInfo] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list)
    foreign_keys: list[DeclaredForeignKey] = Field(default_factory=list)


def _identifier(node: exp.Expression | None) -> str:
    """Name of the first identifier inside a node (column, ordered, identifier)."""
    if node is None:
        return ""
    ident = node.find(exp.Identifier)
    return ident.name if ident is not None else node.name


def _reference_target(reference: exp.Reference) -> tuple[str, list[str]]:
    """Target table and columns of a ``REFERENCES t(a, b)`` clause."""
    target = reference.this
    if isinstance(target, exp.Schema):
        table = target.this
        columns = [_identifier(e) for e in target.expressions]
    else:
        table = target
        columns = []
    if isinstance(table, exp.Table):
        return table.name, columns
    return _identifier(table), columns


def _parse_column(
    column_def: exp.ColumnDef, position: int, definition: TableDefinition
) -> None:
    name = column_def.name
    raw_type = column_def.kind.sql() if column_def.kind is not None else ""
    is_nullable = True
    is_generated = False
    default = None

    for constraint in column_def.args.get("constraints") or []:
        kind = constraint.kind
        if isinstance(kind, exp.PrimaryKeyColumnConstraint):
            definition.primary_key.append(name)
            is_nullable = False
        elif isinstance(kind, exp.NotNullColumnConstraint):
            is_nullable = bool(kind.args.get("allow_null"))
        elif isinstance(kind, exp.DefaultColumnConstraint):
            default = kind.this.sql(dialect="sqlite") if kind.this is not None else None
        elif isinstance(
            kind,
            (exp.ComputedColumnConstraint, exp.GeneratedAsIdentityColumnConstraint),
        ):
            is_generated = True
        elif isinstance(kind, exp.Reference):
            target_table, target_columns = _reference_target(kind)
            definition.foreign_keys.append(
                DeclaredForeignKey(
                    column=name,
                    target_table=target_table,
                    target_column=target_columns[0] if target_columns else "",
                )
            )

    definition.columns.append(
        RawColumnInfo(
            name=name,
            raw_type=raw_type,
            is_nullable=is_nullable,
            default=default,
            is_generated=is_generated,
            ordinal_position=position,
        )
    )


def _parse_table_constraint(
    node: exp.Expression, definition: TableDefinition, constraint_name: str | None
) -> None:
    if isinstance(node, exp.PrimaryKey):
        # table-level key replaces column-level markers
        definition.primary_key = [_identifier(e) for e in node.expressions]
    elif isinstance(node, exp.ForeignKey):
        reference = node.args.get("reference")
        if reference is None:
            return
        target_table, target_columns = _reference_target(reference)
        for i, source in enumerate(node.expressions):
            definition.foreign_keys.append(
                DeclaredForeignKey(
                    column=_identifier(source),
                    target_table=target_table,
                    target_column=target_columns[i] if i < len(target_columns) else "",
                    constraint_name=constraint_name,
                )
            )


def parse_create_table(sql: str, table_name: str) -> TableDefinition:
    """Parse a ``CREATE TABLE`` statement.

    Foreign keys that reference the target's primary key implicitly
    (``REFERENCES users`` without a column list) are returned with an empty
    ``target_column``; the adapter resolves them.

    Args:
        sql: Statement text from ``sqlite_master.sql``
        table_name: Name of the table, used in error messages

    Returns:
        TableDefinition: Columns in declaration order with declared constraints

    Raises:
        SchemaParseError: If the statement cannot be parsed or is not a
            ``CREATE TABLE`` with a column list
    """
    if not sql:
        raise SchemaParseError(table_name, "no statement text")

    try:
        statement = sqlglot.parse_one(sql, read="sqlite")
    except SqlglotError as e:
        raise SchemaParseError(table_name, str(e)) from e

    if not isinstance(statement, exp.Create) or not isinstance(
        statement.this, exp.Schema
    ):
        raise SchemaParseError(table_name, "not a CREATE TABLE statement with columns")

    definition = TableDefinition(name=table_name)
    position = 0
    for node in statement.this.expressions:
        if isinstance(node, exp.ColumnDef):
            position += 1
            _parse_column(node, position, definition)
        elif isinstance(node, exp.Identifier):
            # column declared without a type
            position += 1
            _parse_column(exp.ColumnDef(this=node), position, definition)
        elif isinstance(node, exp.Constraint):
            constraint_name = _identifier(node.this) or None
            for inner in node.expressions:
                _parse_table_constraint(inner, definition, constraint_name)
        else:
            _parse_table_constraint(node, definition, None)

    logger.debug(
        f"Parsed table '{table_name}': {len(definition.columns)} columns, "
        f"pk={definition.primary_key}, {len(definition.foreign_keys)} foreign keys"
    )
    return definition
