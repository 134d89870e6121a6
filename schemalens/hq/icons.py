"""Icon assignment for tables and columns.

The analysis pipeline only depends on the :class:`IconResolver` protocol.
The default resolver looks names up in a keyword dictionary shipped with the
package (``resources/icons.yaml``), falling back to close matches.

Example:
    >>> resolver = CachedIconResolver(KeywordIconResolver.from_package())
    >>> resolver.best_icon_for("customer")
    'User'
"""

from __future__ import annotations

import logging
import threading
from difflib import get_close_matches
from importlib import resources
from typing import Protocol

import yaml

from schemalens.onto import ColumnKind

logger = logging.getLogger(__name__)

DEFAULT_TABLE_ICON = "Table"
DEFAULT_KIND_ICON = "FileQuestion"


class IconResolver(Protocol):
    """Chooses an icon identifier for a name or a column kind."""

    def best_icon_for(self, text: str) -> str: ...

    def best_icon_for_kind(self, kind: ColumnKind | str) -> str: ...


class KeywordIconResolver:
    """Keyword dictionary lookup with close-match fallback.

    Lookup order for a text:

    1. the whole text
    2. each word longer than two characters, last word first
    3. the closest keyword to the whole text
    4. the closest keyword to each word, last word first

    Attributes:
        keywords: Keyword to icon mapping
        kind_icons: Column kind to icon mapping
        default: Icon returned when nothing matches
        cutoff: Minimum similarity ratio for close matches
    """

    def __init__(
        self,
        keywords: dict[str, str],
        kind_icons: dict[str, str] | None = None,
        default: str = DEFAULT_TABLE_ICON,
        cutoff: float = 0.8,
    ):
        self.keywords = {k.lower(): v for k, v in keywords.items()}
        self.kind_icons = kind_icons or {}
        self.default = default
        self.cutoff = cutoff

    @classmethod
    def from_yaml(cls, path: str, **kwargs) -> KeywordIconResolver:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls._from_data(data, **kwargs)

    @classmethod
    def from_package(cls, **kwargs) -> KeywordIconResolver:
        """Resolver over the dictionary shipped with schemalens."""
        text = (
            resources.files("schemalens.resources")
            .joinpath("icons.yaml")
            .read_text(encoding="utf-8")
        )
        return cls._from_data(yaml.safe_load(text) or {}, **kwargs)

    @classmethod
    def _from_data(cls, data: dict, **kwargs) -> KeywordIconResolver:
        kwargs.setdefault("default", data.get("default", DEFAULT_TABLE_ICON))
        return cls(
            keywords=data.get("keywords") or {},
            kind_icons=data.get("kinds") or {},
            **kwargs,
        )

    def _close_match(self, text: str) -> str | None:
        matches = get_close_matches(text, self.keywords.keys(), n=1, cutoff=self.cutoff)
        return self.keywords[matches[0]] if matches else None

    def best_icon_for(self, text: str) -> str:
        phrase = " ".join(text.lower().replace("_", " ").replace("-", " ").split())
        if not phrase:
            return self.default

        if phrase in self.keywords:
            return self.keywords[phrase]

        words = [w for w in reversed(phrase.split(" ")) if len(w) > 2]
        for word in words:
            if word in self.keywords:
                return self.keywords[word]

        icon = self._close_match(phrase)
        if icon is not None:
            return icon
        for word in words:
            icon = self._close_match(word)
            if icon is not None:
                return icon

        logger.debug(f"No icon found for '{text}', using '{self.default}'")
        return self.default

    def best_icon_for_kind(self, kind: ColumnKind | str) -> str:
        return self.kind_icons.get(str(kind), DEFAULT_KIND_ICON)


class CachedIconResolver:
    """Memoizes another resolver; safe to share between threads."""

    def __init__(self, resolver: IconResolver):
        self.resolver = resolver
        self._by_text: dict[str, str] = {}
        self._by_kind: dict[str, str] = {}
        self._lock = threading.Lock()

    def best_icon_for(self, text: str) -> str:
        with self._lock:
            if text in self._by_text:
                return self._by_text[text]
        icon = self.resolver.best_icon_for(text)
        with self._lock:
            self._by_text[text] = icon
        return icon

    def best_icon_for_kind(self, kind: ColumnKind | str) -> str:
        key = str(kind)
        with self._lock:
            if key in self._by_kind:
                return self._by_kind[key]
        icon = self.resolver.best_icon_for_kind(kind)
        with self._lock:
            self._by_kind[key] = icon
        return icon

    def clear(self) -> None:
        with self._lock:
            self._by_text.clear()
            self._by_kind.clear()
