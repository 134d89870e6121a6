"""Process-level settings read from the environment.

Every field can be overridden with a ``SCHEMALENS_`` prefixed environment
variable, e.g. ``SCHEMALENS_MAX_CONCURRENT_ANALYSES=5``.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaLensSettings(BaseSettings):
    """Settings of the metadata engine and state store."""

    model_config = SettingsConfigDict(env_prefix="SCHEMALENS_", extra="ignore")

    state_db_path: Path = Field(
        default=Path.home() / ".schemalens" / "state.db",
        description="SQLite file holding connections and table metadata.",
    )
    max_concurrent_analyses: int = Field(
        default=3, ge=1, description="Upper bound on tables analyzed at once."
    )
    default_schema: str = "public"
    default_color: str = "green"

    @property
    def state_db_url(self) -> str:
        """SQLAlchemy URL of the state store."""
        return f"sqlite:///{self.state_db_path}"
