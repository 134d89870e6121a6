import pytest

from schemalens.db.types import ColumnTypeMapper, base_type, is_integer_type
from schemalens.onto import ColumnKind


@pytest.fixture(scope="module")
def mapper():
    return ColumnTypeMapper()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("CHARACTER VARYING(255)", "varchar"),
        ("timestamp with time zone", "timestamptz"),
        ("  INTEGER ", "int4"),
        ("numeric(10, 2)", "numeric"),
        ("", ""),
        (None, ""),
    ],
)
def test_base_type(raw, expected):
    assert base_type(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("int4", True),
        ("INTEGER", True),
        ("INT", True),
        ("bigserial", True),
        ("BIGINT", True),
        ("int unsigned", True),
        ("unsigned big int", True),
        ("numeric", False),
        ("float8", False),
        ("point", False),
    ],
)
def test_is_integer_type(raw, expected):
    assert is_integer_type(raw) is expected


@pytest.mark.parametrize(
    "raw, kind",
    [
        ("int4", ColumnKind.NUMERIC),
        ("numeric(10,2)", ColumnKind.NUMERIC),
        ("double precision", ColumnKind.NUMERIC),
        ("varchar(255)", ColumnKind.TEXT),
        ("bpchar", ColumnKind.TEXT),
        ("NVARCHAR(30)", ColumnKind.TEXT),
        ("timestamptz", ColumnKind.DATE),
        ("DATETIME", ColumnKind.DATE),
        ("bool", ColumnKind.BOOLEAN),
        ("jsonb", ColumnKind.JSON),
        ("uuid", ColumnKind.UUID),
        ("bytea", ColumnKind.UNKNOWN),
        ("", ColumnKind.UNKNOWN),
    ],
)
def test_map_type(mapper, raw, kind):
    assert mapper.map_type(raw) == kind


def test_user_defined_enum(mapper):
    assert mapper.map_type("mood", is_user_defined_enum=True) == ColumnKind.ENUM
    assert mapper.map_type("mood") == ColumnKind.UNKNOWN
