from .metadata_store import MetadataStore, connections_table, tables_table

__all__ = [
    "MetadataStore",
    "connections_table",
    "tables_table",
]
