import argparse
import asyncio
import logging
from os import environ

from schemalens import (
    Connection,
    ConnectionRegistry,
    MetadataEngine,
    MetadataStore,
    SchemaLensSettings,
)

parser = argparse.ArgumentParser(
    description="register a database connection and analyze all of its tables"
)
parser.add_argument("--name", required=True, help="connection display name")
parser.add_argument(
    "--type", choices=["postgres", "sqlite"], default="postgres", help="database kind"
)
parser.add_argument("--path", help="sqlite database file")
parser.add_argument("--host", default="localhost")
parser.add_argument("--port", type=int, default=5432)
parser.add_argument("--database", default="postgres")
parser.add_argument("--schema", default="public", help="postgres schema to analyze")
parser.add_argument(
    "--state-db", default=None, help="state store file (default from settings)"
)
parser.add_argument("-v", "--verbose", action="store_true")

args = parser.parse_args()

logging.basicConfig(
    level=logging.DEBUG if args.verbose else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

settings = (
    SchemaLensSettings(state_db_path=args.state_db)
    if args.state_db
    else SchemaLensSettings()
)

if args.type == "sqlite":
    details = {"path": args.path}
else:
    details = {
        "host": args.host,
        "port": args.port,
        "database": args.database,
        "username": environ.get("PGUSER", "postgres"),
        "password": environ.get("PGPASSWORD"),
        "schema_name": args.schema,
    }

store = MetadataStore(settings.state_db_url)
store.boot()

existing = {c.name: c for c in store.list_connections()}
connection = existing.get(args.name) or Connection(name=args.name, type=args.type)
connection.type = args.type
connection.details = details

with ConnectionRegistry(store) as registry:
    engine = MetadataEngine(store, registry, settings=settings)
    engine.save_connection(connection)
    result = asyncio.run(engine.analyze_connection(connection.id))

print(result.message)
if result.details is not None:
    for failed in result.details.failed_tables:
        print(f"  {failed.name}: {failed.error}")
    for table in store.get_tables(connection.id):
        links = {
            name: f"{c.foreign_key.target_table}.{c.foreign_key.target_column}"
            + (" (guessed)" if c.foreign_key.is_guessed else "")
            for name, c in table.details.columns.items()
            if c.foreign_key is not None
        }
        print(
            f"{table.name}: display={table.details.display_columns} "
            f"pk={table.details.pk} fk={links}"
        )
