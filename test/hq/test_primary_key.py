import pytest

from schemalens.errors import PrimaryKeyResolutionError
from schemalens.hq.primary_key import fetch_primary_key, resolve_primary_key


class _FakeAdapter:
    def __init__(self, pk):
        self.pk = pk
        self.calls = []

    def get_primary_keys(self, table_name, schema_name=None):
        self.calls.append((table_name, schema_name))
        return self.pk


def test_declared_key_is_returned_verbatim():
    assert resolve_primary_key(["tenant_id", "id"], ["id", "tenant_id", "name"]) == [
        "tenant_id",
        "id",
    ]


def test_first_column_is_used_without_declared_key():
    assert resolve_primary_key([], ["sku", "qty"], "widgets") == ["sku"]


def test_table_without_columns_is_rejected():
    with pytest.raises(PrimaryKeyResolutionError) as exc_info:
        resolve_primary_key(["id"], [], "ghosts")
    assert exc_info.value.table_name == "ghosts"
    assert exc_info.value.code == "PRIMARY_KEY_PRECONDITION"


def test_fetch_primary_key_reads_catalog():
    adapter = _FakeAdapter([])
    assert fetch_primary_key(adapter, "widgets", ["sku", "qty"], "public") == ["sku"]
    assert adapter.calls == [("widgets", "public")]
