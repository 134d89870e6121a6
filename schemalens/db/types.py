"""Classification of raw database type strings into semantic column kinds.

PostgreSQL reports canonical ``udt_name`` values (``int4``, ``varchar``,
``timestamptz``) while SQLite keeps whatever was written in the table
definition (``INTEGER``, ``VARCHAR(255)``, ``unsigned big int``). Both are
normalized here once, at introspection time.
"""

import logging
import re

from schemalens.onto import ColumnKind

logger = logging.getLogger(__name__)

# Long-form names mapped to their short aliases
TYPE_ALIASES = {
    "character varying": "varchar",
    "character": "char",
    "double precision": "float8",
    "real": "float4",
    "integer": "int4",
    "bigint": "int8",
    "smallint": "int2",
    "timestamp without time zone": "timestamp",
    "timestamp with time zone": "timestamptz",
    "time without time zone": "time",
    "time with time zone": "timetz",
    "boolean": "bool",
}

INTEGER_TYPES = {
    "int",
    "int2",
    "int4",
    "int8",
    "tinyint",
    "mediumint",
    "serial",
    "serial2",
    "serial4",
    "serial8",
    "smallserial",
    "bigserial",
    "unsigned big int",
}

_INTEGER_PATTERN = re.compile(r"^(tiny|small|medium|big)?int(eger|\d)?$")

KIND_BY_TYPE: dict[str, ColumnKind] = {
    **{t: ColumnKind.NUMERIC for t in INTEGER_TYPES},
    "numeric": ColumnKind.NUMERIC,
    "decimal": ColumnKind.NUMERIC,
    "float": ColumnKind.NUMERIC,
    "float4": ColumnKind.NUMERIC,
    "float8": ColumnKind.NUMERIC,
    "double": ColumnKind.NUMERIC,
    "money": ColumnKind.NUMERIC,
    "varchar": ColumnKind.TEXT,
    "char": ColumnKind.TEXT,
    "bpchar": ColumnKind.TEXT,
    "text": ColumnKind.TEXT,
    "citext": ColumnKind.TEXT,
    "name": ColumnKind.TEXT,
    "string": ColumnKind.TEXT,
    "clob": ColumnKind.TEXT,
    "nvarchar": ColumnKind.TEXT,
    "nchar": ColumnKind.TEXT,
    "date": ColumnKind.DATE,
    "time": ColumnKind.DATE,
    "timetz": ColumnKind.DATE,
    "timestamp": ColumnKind.DATE,
    "timestamptz": ColumnKind.DATE,
    "datetime": ColumnKind.DATE,
    "interval": ColumnKind.DATE,
    "bool": ColumnKind.BOOLEAN,
    "json": ColumnKind.JSON,
    "jsonb": ColumnKind.JSON,
    "uuid": ColumnKind.UUID,
    "uniqueidentifier": ColumnKind.UUID,
    "enum": ColumnKind.ENUM,
}


def base_type(raw_type: str | None) -> str:
    """Lowercase a raw type and strip length/precision modifiers.

    Example:
        >>> base_type("CHARACTER VARYING(255)")
        'varchar'
    """
    if not raw_type:
        return ""
    type_str = raw_type.strip().lower()
    if "(" in type_str:
        type_str = type_str.split("(")[0].strip()
    type_str = re.sub(r"\s+", " ", type_str)
    return TYPE_ALIASES.get(type_str, type_str)


def is_integer_type(raw_type: str | None) -> bool:
    """Whether a raw type denotes an integer (including serial types)."""
    base = base_type(raw_type)
    if base.endswith(" unsigned"):
        base = base[: -len(" unsigned")]
    return base in INTEGER_TYPES or bool(_INTEGER_PATTERN.match(base))


class ColumnTypeMapper:
    """Maps raw type strings to :class:`ColumnKind`.

    Exact aliases are looked up first; SQLite-style affinity rules (a type
    name containing ``char``, ``text`` or ``clob`` is text, one containing
    ``int`` is numeric) are applied to anything else.
    """

    def map_type(self, raw_type: str | None, is_user_defined_enum: bool = False) -> str:
        """Classify a raw type.

        Args:
            raw_type: Type string as reported by the adapter
            is_user_defined_enum: Whether the catalog reports a user-defined enum

        Returns:
            str: ColumnKind value
        """
        if is_user_defined_enum:
            return ColumnKind.ENUM.value

        base = base_type(raw_type)
        if not base:
            return ColumnKind.UNKNOWN.value

        if is_integer_type(base):
            return ColumnKind.NUMERIC.value

        kind = KIND_BY_TYPE.get(base)
        if kind is not None:
            return kind.value

        if any(marker in base for marker in ("char", "text", "clob")):
            return ColumnKind.TEXT.value
        if "timestamp" in base:
            return ColumnKind.DATE.value
        if any(marker in base for marker in ("real", "floa", "doub", "numeric", "decimal")):
            return ColumnKind.NUMERIC.value

        logger.debug(f"Unrecognized column type '{raw_type}', classified as unknown")
        return ColumnKind.UNKNOWN.value
