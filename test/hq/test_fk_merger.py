from schemalens.architecture.onto_sql import DeclaredForeignKey
from schemalens.hq.fk_guesser import NO_MATCH, ForeignKeyGuess
from schemalens.hq.fk_merger import merge_foreign_keys


def _guess(column, table, target_column="id", confidence=1.0):
    return ForeignKeyGuess(
        source_column=column,
        target_schema="public",
        target_table=table,
        target_column=target_column,
        confidence=confidence,
    )


def test_declared_link_wins_over_guess():
    declared = [
        DeclaredForeignKey(
            column="owner_id",
            target_table="accounts",
            target_column="account_no",
            target_schema="billing",
        )
    ]
    links = merge_foreign_keys(declared, [_guess("owner_id", "owners")])

    assert list(links) == ["owner_id"]
    link = links["owner_id"]
    assert link.target_table == "accounts"
    assert link.target_column == "account_no"
    assert link.target_schema == "billing"
    assert link.is_guessed is False
    assert link.confidence is None


def test_guesses_fill_columns_without_declared_links():
    declared = [
        DeclaredForeignKey(column="org_id", target_table="organizations", target_column="id")
    ]
    guesses = [NO_MATCH, _guess("user_id", "users"), _guess("org_id", "orgs")]

    links = merge_foreign_keys(declared, guesses)

    assert list(links) == ["org_id", "user_id"]
    assert links["org_id"].is_guessed is False
    assert links["user_id"].is_guessed is True
    assert links["user_id"].confidence == 1.0
    assert links["user_id"].target_schema == "public"


def test_zero_confidence_guesses_are_dropped():
    links = merge_foreign_keys([], [_guess("user_id", "users", confidence=0.0)])
    assert links == {}


def test_composite_declared_key_keeps_first_link_per_column():
    declared = [
        DeclaredForeignKey(column="a", target_table="t1", target_column="x"),
        DeclaredForeignKey(column="a", target_table="t2", target_column="y"),
    ]
    links = merge_foreign_keys(declared, [])
    assert links["a"].target_table == "t1"


def test_empty_inputs():
    assert merge_foreign_keys([], []) == {}
