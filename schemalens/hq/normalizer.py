"""Name normalization for tables and columns.

A normalized name is the lowercase, space-separated, singular form of a raw
identifier: ``OrderItems``, ``order_items`` and ``order-item`` all normalize
to ``order item``. It is the join key used when guessing foreign keys, so
normalization is idempotent.

Inflection is done with ``inflect`` and applies to the last word of the
phrase only.
"""

import logging
import re
from functools import lru_cache

import inflect

logger = logging.getLogger(__name__)

p = inflect.engine()

_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_WORD = re.compile(r"([A-Z])([A-Z][a-z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")

# endings of words that are already singular
SINGULAR_S_ENDINGS = ("ss", "us", "is")


def no_case(raw: str) -> str:
    """Split an identifier into lowercase words joined by single spaces.

    Example:
        >>> no_case("userID_HTTPStatus")
        'user id http status'
    """
    text = _LOWER_UPPER.sub(r"\1 \2", raw)
    text = _ACRONYM_WORD.sub(r"\1 \2", text)
    return " ".join(word.lower() for word in _SEPARATORS.split(text) if word)


def _singular_word(word: str) -> str:
    if not word.isalpha() or word.endswith(SINGULAR_S_ENDINGS):
        return word
    seen = [word]
    current = word
    while True:
        singular = p.singular_noun(current)
        if not singular or singular == current or not singular.isalpha():
            return current
        singular = singular.lower()
        if singular in seen:
            # cycle: pick a stable representative
            return min(seen[seen.index(singular) :])
        seen.append(singular)
        current = singular
        if current.endswith(SINGULAR_S_ENDINGS):
            return current


def _plural_word(word: str) -> str:
    if not word.isalpha():
        return word
    return p.plural_noun(word) or word


def _map_last_word(phrase: str, transform) -> str:
    if not phrase:
        return phrase
    head, _, last = phrase.rpartition(" ")
    last = transform(last)
    return f"{head} {last}" if head else last


@lru_cache(maxsize=4096)
def normalize_name(raw: str) -> str:
    """Normalize a raw table or column name.

    Args:
        raw: Identifier as found in the database

    Returns:
        str: Lowercase singular phrase; empty when ``raw`` has no
            alphanumeric characters
    """
    return _map_last_word(no_case(raw or ""), _singular_word)


def singularize(phrase: str) -> str:
    return _map_last_word(phrase, _singular_word)


def pluralize(phrase: str) -> str:
    return _map_last_word(phrase, _plural_word)


def title_case(phrase: str) -> str:
    """Capitalize every word: ``order item`` -> ``Order Item``."""
    return " ".join(word[:1].upper() + word[1:] for word in phrase.split(" ") if word)


def singular_name(raw: str) -> str:
    """Human singular display name of a table: ``order_items`` -> ``Order Item``."""
    return title_case(singularize(normalize_name(raw)))


def plural_name(raw: str) -> str:
    """Human plural display name of a table: ``order_items`` -> ``Order Items``."""
    return title_case(pluralize(normalize_name(raw)))


def display_name(raw: str) -> str:
    """Human display name of a column: ``created_at`` -> ``Created At``."""
    return title_case(normalize_name(raw))
