from schemalens.architecture.metadata import CalculatedColumn, TableDetails
from schemalens.hq.calculated import (
    add_calculated_column,
    add_calculated_columns,
    evaluate_template,
    remove_calculated_column,
)
from schemalens.hq.views import ordered_keys, reset_views
from schemalens.onto import ViewKind


def test_evaluate_template():
    record = {"first_name": "Ada", "last_name": " Lovelace ", "age": 36}
    assert evaluate_template("{first_name} {last_name}", record) == "Ada Lovelace"
    assert evaluate_template("{ age } years", record) == "36 years"


def test_evaluate_template_missing_and_null_values():
    assert evaluate_template("[{missing}]", {}) == "[]"
    assert evaluate_template("[{nickname}]", {"nickname": None}) == "[]"


def test_evaluate_template_resolved_reference():
    record = {"author_id": {"value": "Grace Hopper", "id": 7}}
    assert evaluate_template("by {author_id}", record) == "by Grace Hopper"


def test_add_calculated_columns_skips_hidden():
    visible = CalculatedColumn(id="v1", display_name="Full", template="{a}-{b}")
    hidden = CalculatedColumn(
        id="h1", display_name="Secret", template="{a}", hidden=True
    )
    records = [{"a": 1, "b": 2}]

    enriched = add_calculated_columns(records, [visible, hidden])

    assert enriched == [{"a": 1, "b": 2, "calc_v1": "1-2"}]
    assert records == [{"a": 1, "b": 2}]


def test_add_and_remove_calculated_column(make_column):
    columns = [make_column("id", "int4"), make_column("name", "text")]
    details = TableDetails(columns={c.name: c for c in columns})
    reset_views(details, columns)

    calculated = add_calculated_column(details, "Label", "#{id} {name}")

    assert details.calculated_columns == [calculated]
    for kind in ViewKind:
        view = details.view(kind)
        assert ordered_keys(view)[-1] == calculated.key
        assert view.columns[calculated.key].order == 2

    assert remove_calculated_column(details, calculated.id) is True
    assert details.calculated_columns == []
    for kind in ViewKind:
        assert calculated.key not in details.view(kind).columns

    assert remove_calculated_column(details, calculated.id) is False
