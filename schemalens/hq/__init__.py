"""High-level analysis modules for schemalens.

This package holds the inference heuristics (names, keys, display columns,
views, icons) and the orchestration that runs them over a connection.
"""

from schemalens.hq.analyzer import DiscoveredTable, TableAnalyzer
from schemalens.hq.calculated import (
    add_calculated_column,
    add_calculated_columns,
    evaluate_template,
    remove_calculated_column,
)
from schemalens.hq.display_columns import select_display_columns
from schemalens.hq.engine import (
    AnalysisResult,
    AnalysisSummary,
    BulkAnalysisResult,
    MetadataEngine,
)
from schemalens.hq.fk_guesser import NO_MATCH, ForeignKeyGuess, guess_foreign_keys
from schemalens.hq.fk_merger import merge_foreign_keys
from schemalens.hq.icons import CachedIconResolver, IconResolver, KeywordIconResolver
from schemalens.hq.normalizer import normalize_name
from schemalens.hq.primary_key import resolve_primary_key
from schemalens.hq.views import (
    default_view_columns,
    move_column,
    ordered_keys,
    should_hide_column,
    sync_view_columns,
    update_view_column,
)

__all__ = [
    "AnalysisResult",
    "AnalysisSummary",
    "BulkAnalysisResult",
    "CachedIconResolver",
    "DiscoveredTable",
    "ForeignKeyGuess",
    "IconResolver",
    "KeywordIconResolver",
    "MetadataEngine",
    "NO_MATCH",
    "TableAnalyzer",
    "add_calculated_column",
    "add_calculated_columns",
    "default_view_columns",
    "evaluate_template",
    "guess_foreign_keys",
    "merge_foreign_keys",
    "move_column",
    "normalize_name",
    "ordered_keys",
    "remove_calculated_column",
    "resolve_primary_key",
    "select_display_columns",
    "should_hide_column",
    "sync_view_columns",
    "update_view_column",
]
