"""Raw records produced by database adapters during schema introspection."""

from pydantic import BaseModel


class TableRef(BaseModel):
    """A table discovered in the live schema."""

    name: str
    schema_name: str


class RawColumnInfo(BaseModel):
    """Column information as reported by an adapter, before classification."""

    name: str
    raw_type: str
    is_nullable: bool = True
    default: str | None = None
    is_user_defined_enum: bool = False
    is_generated: bool = False
    ordinal_position: int | None = None


class DeclaredForeignKey(BaseModel):
    """Foreign key constraint declared in the database catalog."""

    column: str
    target_table: str
    target_column: str
    target_schema: str | None = None
    constraint_name: str | None = None
