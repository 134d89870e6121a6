import pytest

from schemalens.architecture.metadata import (
    CalculatedColumn,
    TableDetails,
    ViewColumn,
    ViewConfiguration,
)
from schemalens.hq.views import (
    default_view_columns,
    move_column,
    ordered_keys,
    reset_views,
    should_hide_column,
    sync_view_columns,
    update_view_column,
)
from schemalens.onto import ViewKind


def _view(**orders):
    return ViewConfiguration(
        columns={key: ViewColumn(order=order) for key, order in orders.items()}
    )


@pytest.fixture
def user_columns(make_column):
    return [
        make_column("id", "int4"),
        make_column("name", "text"),
        make_column("account_id", "int4"),
        make_column("email", "text"),
        make_column("profile", "jsonb"),
        make_column("external_uuid", "uuid"),
        make_column("created_at", "timestamptz"),
        make_column("bio", "text"),
        make_column("age", "int4"),
    ]


def test_should_hide_column(make_column):
    assert should_hide_column(make_column("account_id", "int4"))
    assert should_hide_column(make_column("payload", "json"))
    assert should_hide_column(make_column("token", "uuid"))
    assert not should_hide_column(make_column("id", "int4"))
    assert not should_hide_column(make_column("paid", "bool"))


def test_hidden_flag_matches_default_views(make_column):
    for name in ("owner_guid", "owner_uuid", "ownerId"):
        column = make_column(name, "text")
        assert should_hide_column(column)
        assert default_view_columns([column]).columns[name].hidden is True
    assert not should_hide_column(make_column("uuid", "text"))


def test_default_view_columns(user_columns):
    view = default_view_columns(user_columns)

    assert list(view.columns) == [c.name for c in user_columns]
    assert [view.columns[c.name].order for c in user_columns] == list(
        range(len(user_columns))
    )
    visible = [k for k, v in view.columns.items() if not v.hidden]
    assert visible == ["name", "email", "created_at", "bio"]


def test_ordered_keys_breaks_ties_by_declaration():
    view = _view(b=1, a=1, c=0)
    assert ordered_keys(view, ["a", "b", "c"]) == ["c", "a", "b"]
    assert ordered_keys(view) == ["c", "b", "a"]


def test_move_column_renumbers_contiguously():
    view = _view(a=0, b=5, c=10, d=20)
    moved = move_column(view, "d", 1)
    assert ordered_keys(moved) == ["a", "d", "b", "c"]
    assert sorted(v.order for v in moved.columns.values()) == [0, 1, 2, 3]


def test_move_column_clamps_position():
    view = _view(a=0, b=1, c=2)
    assert ordered_keys(move_column(view, "a", 99)) == ["b", "c", "a"]
    assert ordered_keys(move_column(view, "c", -5)) == ["c", "a", "b"]


def test_move_column_keeps_hidden_flags():
    view = ViewConfiguration(
        columns={"a": ViewColumn(order=0, hidden=True), "b": ViewColumn(order=1)}
    )
    moved = move_column(view, "b", 0)
    assert moved.columns["a"].hidden is True
    assert moved.columns["b"].hidden is False


def test_move_unknown_column():
    with pytest.raises(KeyError):
        move_column(_view(a=0), "zzz", 0)


def test_sync_view_columns(make_column):
    stored = ViewConfiguration(
        columns={
            "title": ViewColumn(order=0),
            "dropped": ViewColumn(order=1),
            "body": ViewColumn(order=2, hidden=True),
        }
    )
    columns = [
        make_column("body", "text"),
        make_column("title", "text"),
        make_column("author_id", "int4"),
    ]
    calculated = [CalculatedColumn(id="abc", display_name="Teaser", template="{title}")]

    synced = sync_view_columns(stored, columns, calculated)

    assert ordered_keys(synced) == ["title", "body", "author_id", "calc_abc"]
    assert synced.columns["body"].hidden is True
    assert synced.columns["author_id"].hidden is True
    assert synced.columns["calc_abc"].hidden is False
    assert [synced.columns[k].order for k in ordered_keys(synced)] == [0, 1, 2, 3]


def test_update_view_column(user_columns):
    details = TableDetails(columns={c.name: c for c in user_columns})
    reset_views(details, user_columns)

    update_view_column(details, "card", "bio", order=0, hidden=True)

    assert ordered_keys(details.card_view)[0] == "bio"
    assert details.card_view.columns["bio"].hidden is True
    # other views are untouched
    assert ordered_keys(details.list_view)[0] == "id"
    assert details.list_view.columns["bio"].hidden is False


def test_update_view_column_invalid_kind(user_columns):
    details = TableDetails(columns={c.name: c for c in user_columns})
    reset_views(details, user_columns)
    with pytest.raises(ValueError):
        update_view_column(details, "grid", "bio", hidden=True)


def test_update_view_column_unknown_key(user_columns):
    details = TableDetails(columns={c.name: c for c in user_columns})
    reset_views(details, user_columns)
    with pytest.raises(KeyError):
        update_view_column(details, ViewKind.INLINE, "missing", order=1)


def test_reset_views_gives_independent_copies(user_columns):
    details = TableDetails(columns={c.name: c for c in user_columns})
    reset_views(details, user_columns)
    details.inline_view.columns["bio"].hidden = True
    assert details.card_view.columns["bio"].hidden is False
