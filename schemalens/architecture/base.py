"""Base models for schemalens configuration and metadata classes."""

from __future__ import annotations

import json
from typing import Any, Self

import yaml
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ConfigBaseModel(BaseModel):
    """Base model for all schemalens configuration classes.

    Provides YAML/dict loading and the standard configuration for all
    Pydantic models in the system.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        use_enum_values=True,
        validate_assignment=True,
    )

    @classmethod
    def from_yaml(cls, path: str) -> Self:
        """Load a single instance from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Load from a dictionary."""
        return cls.model_validate(data)

    def to_dict(self, **kwargs: Any) -> dict[str, Any]:
        """Convert instance to a dictionary keyed by field aliases."""
        return self.model_dump(by_alias=True, exclude_none=True, **kwargs)


class PersistedModel(ConfigBaseModel):
    """Base for structures stored as JSON blobs in the state database.

    Attribute names are snake_case in Python and camelCase on disk; unknown
    keys written by other versions are ignored on load.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="ignore",
    )

    @classmethod
    def from_json(cls, payload: str | bytes | dict[str, Any]) -> Self:
        """Deserialize from a JSON string (or an already decoded dict)."""
        if isinstance(payload, dict):
            return cls.model_validate(payload)
        return cls.model_validate(json.loads(payload))

    def to_json(self) -> str:
        """Serialize to the on-disk JSON shape."""
        return json.dumps(self.model_dump(mode="json", by_alias=True))
