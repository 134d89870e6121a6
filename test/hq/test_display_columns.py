from schemalens.hq.display_columns import select_display_columns


def test_vocabulary_column_wins(make_column):
    columns = [
        make_column("id", "int4"),
        make_column("email", "text"),
        make_column("title", "text"),
        make_column("name", "text"),
    ]
    assert select_display_columns(columns, ["id"]) == ["name"]


def test_first_and_last_name(make_column):
    columns = [
        make_column("id", "int4"),
        make_column("lastName", "text"),
        make_column("first_name", "text"),
        make_column("email", "text"),
    ]
    assert select_display_columns(columns, ["id"]) == ["first_name", "lastName"]


def test_email_column(make_column):
    columns = [
        make_column("id", "int4"),
        make_column("nickname", "text"),
        make_column("email_address", "text"),
    ]
    assert select_display_columns(columns, ["id"]) == ["email_address"]


def test_first_text_column_outside_key(make_column):
    columns = [
        make_column("code", "text"),
        make_column("uuid", "text"),
        make_column("size", "int4"),
        make_column("colour", "varchar"),
    ]
    assert select_display_columns(columns, ["code"]) == ["colour"]


def test_primary_key_fallback(make_column):
    columns = [make_column("qty", "int4"), make_column("sku", "int8")]
    assert select_display_columns(columns, ["sku"]) == ["sku"]


def test_first_column_fallback(make_column):
    columns = [make_column("qty", "int4"), make_column("price", "numeric")]
    assert select_display_columns(columns, []) == ["qty"]


def test_no_columns():
    assert select_display_columns([], []) == []
