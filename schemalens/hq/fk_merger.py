"""Merging of declared and guessed foreign keys."""

import logging
from typing import Iterable

from schemalens.architecture.metadata import ForeignKeyLink
from schemalens.architecture.onto_sql import DeclaredForeignKey
from schemalens.hq.fk_guesser import ForeignKeyGuess

logger = logging.getLogger(__name__)


def merge_foreign_keys(
    declared: Iterable[DeclaredForeignKey], guessed: Iterable[ForeignKeyGuess]
) -> dict[str, ForeignKeyLink]:
    """Combine declared and guessed links, one link per source column.

    Declared links always win and are kept unchanged. Guesses are only kept
    for columns without a declared link and with a positive confidence.

    Args:
        declared: Foreign keys read from the catalog
        guessed: Output of the guesser

    Returns:
        dict[str, ForeignKeyLink]: Source column to link; declared links
            first, then guesses, each in input order
    """
    links: dict[str, ForeignKeyLink] = {}

    for fk in declared:
        if fk.column in links:
            # multi-column constraints are reported column by column
            continue
        links[fk.column] = ForeignKeyLink(
            target_table=fk.target_table,
            target_column=fk.target_column,
            target_schema=fk.target_schema,
            is_guessed=False,
        )

    declared_count = len(links)
    for guess in guessed:
        if guess.confidence <= 0 or guess.source_column in links:
            continue
        links[guess.source_column] = ForeignKeyLink(
            target_table=guess.target_table,
            target_column=guess.target_column,
            target_schema=guess.target_schema or None,
            is_guessed=True,
            confidence=guess.confidence,
        )

    logger.debug(
        f"Merged {declared_count} declared and {len(links) - declared_count} guessed foreign keys"
    )
    return links
