"""Adds columns and indexes that exist in the models but not yet in the database."""

import logging
from typing import List

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.schema import CreateColumn, CreateIndex, MetaData

logger = logging.getLogger(__name__)


def _names(rows) -> set:
    return {str(row["name"]) for row in rows if row.get("name")}


def sync_missing_schema_objects(engine: Engine, metadata: MetaData) -> List[str]:
    """Bring existing tables up to date with ``metadata``. Returns what was added.

    Missing tables are left to ``create_all``. NOT NULL columns without a server
    default cannot be added to populated tables and are only reported.
    """
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    preparer = engine.dialect.identifier_preparer
    added = []

    with engine.begin() as conn:
        for table in metadata.sorted_tables:
            if table.name not in existing_tables:
                continue

            existing_columns = _names(inspector.get_columns(table.name))
            for column in table.columns:
                if column.name in existing_columns:
                    continue
                if not column.nullable and column.server_default is None:
                    logger.warning(
                        "Column %s.%s is missing and needs a manual migration", table.name, column.name
                    )
                    continue
                column_sql = str(CreateColumn(column).compile(dialect=engine.dialect)).strip()
                conn.execute(text(f"ALTER TABLE {preparer.format_table(table)} ADD COLUMN {column_sql}"))
                added.append(f"{table.name}.{column.name}")

            existing_indexes = _names(inspector.get_indexes(table.name))
            for index in table.indexes:
                if index.name and index.name not in existing_indexes:
                    conn.execute(CreateIndex(index))
                    added.append(index.name)

    for name in added:
        logger.info("Schema sync added %s", name)
    return added
