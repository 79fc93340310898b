"""
Data Migration Script: SQLite → PostgreSQL (Supabase)

Copies every newsroom table from a SQLite database into a PostgreSQL database.
Tables are copied parents first so foreign keys always resolve, rows whose id
already exists in the target are skipped, and the PostgreSQL id sequences are
moved past the copied ids afterwards so new inserts do not collide.

Usage:
    python migrate_sqlite_to_postgresql.py --sqlite-path ./newsroom.db --postgres-url postgresql://...

Prerequisites:
    - The newsroom package is installed (pip install -e .)
    - JWT_SECRET_KEY is set (or present in .env); settings load on import
"""

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List

from sqlalchemy import MetaData, Table, inspect, select, text
from sqlalchemy.engine import Engine

from newsroom.config import sqlalchemy_url
from newsroom.database import Base, create_storage_engine
import newsroom.models  # noqa: F401

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Parents before children
TABLE_ORDER = [
    "users",
    "user_sessions",
    "channels",
    "subscriptions",
    "articles",
    "comments",
    "reactions",
    "notes",
]


class DataMigration:
    """Handles migration from SQLite to PostgreSQL."""

    def __init__(self, sqlite_url: str, target_url: str, batch_size: int = 500):
        """
        Initialize migration.

        Args:
            sqlite_url: SQLAlchemy URL of the source SQLite database
            target_url: URL of the target database (postgres:// is accepted)
            batch_size: Rows inserted per statement
        """
        self.source_engine: Engine = create_storage_engine(sqlite_url)
        self.target_engine: Engine = create_storage_engine(sqlalchemy_url(target_url))
        self.batch_size = batch_size

        # Statistics
        self.stats: Dict[str, Dict[str, int]] = {
            name: {"copied": 0, "skipped": 0} for name in TABLE_ORDER
        }

    def create_schema(self):
        """Create any missing tables in the target."""
        Base.metadata.create_all(bind=self.target_engine)

    def _read_source(self, name: str) -> List[dict]:
        """Read a source table ordered by id, keeping only columns the target knows."""
        if not inspect(self.source_engine).has_table(name):
            logger.warning(f"Source table not found, skipping: {name}")
            return []

        source_table = Table(name, MetaData(), autoload_with=self.source_engine)
        target_columns = set(Base.metadata.tables[name].columns.keys())

        with self.source_engine.connect() as conn:
            rows = conn.execute(select(source_table).order_by(source_table.c.id)).mappings().all()

        return [{k: v for k, v in row.items() if k in target_columns} for row in rows]

    def migrate_table(self, name: str) -> int:
        """
        Copy one table.

        Returns:
            Number of rows inserted
        """
        table = Base.metadata.tables[name]
        rows = self._read_source(name)
        if not rows:
            return 0

        with self.target_engine.begin() as conn:
            existing = set(conn.execute(select(table.c.id)).scalars())
            pending = [row for row in rows if row["id"] not in existing]

            for start in range(0, len(pending), self.batch_size):
                conn.execute(table.insert(), pending[start:start + self.batch_size])

        self.stats[name]["copied"] = len(pending)
        self.stats[name]["skipped"] = len(rows) - len(pending)
        logger.info(f"Migrated {name}: {len(pending)} copied, {len(rows) - len(pending)} already present")
        return len(pending)

    def reset_sequences(self):
        """Move each PostgreSQL id sequence past the highest copied id."""
        if self.target_engine.dialect.name != "postgresql":
            logger.info("Target is not PostgreSQL, no sequences to reset")
            return

        with self.target_engine.begin() as conn:
            for name in TABLE_ORDER:
                conn.execute(text(
                    f"SELECT setval(pg_get_serial_sequence('{name}', 'id'), "
                    f"COALESCE((SELECT MAX(id) FROM {name}), 0) + 1, false)"
                ))
        logger.info("PostgreSQL sequences reset")

    def run(self, create_schema: bool = True) -> Dict[str, Dict[str, int]]:
        """Run complete migration."""
        logger.info("=" * 60)
        logger.info("Starting Data Migration: SQLite → PostgreSQL")
        logger.info("=" * 60)

        start_time = datetime.now()

        try:
            if create_schema:
                self.create_schema()

            for name in TABLE_ORDER:
                self.migrate_table(name)

            self.reset_sequences()

            duration = (datetime.now() - start_time).total_seconds()

            logger.info("=" * 60)
            logger.info("Migration Complete!")
            logger.info("=" * 60)
            logger.info(f"Duration: {duration:.2f} seconds")
            for name in TABLE_ORDER:
                logger.info(f"  {name}: {self.stats[name]['copied']} copied, {self.stats[name]['skipped']} skipped")

            return self.stats

        except Exception as e:
            logger.error(f"Migration failed: {e}")
            raise
        finally:
            self.source_engine.dispose()
            self.target_engine.dispose()


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Migrate newsroom data from SQLite to PostgreSQL")
    parser.add_argument("--sqlite-path", required=True, help="Path to the SQLite database file")
    parser.add_argument("--postgres-url", help="PostgreSQL connection URL (or set DATABASE_URL env var)")
    parser.add_argument("--batch-size", type=int, default=500, help="Rows per insert statement")
    parser.add_argument("--skip-schema", action="store_true", help="Do not create missing tables first")

    args = parser.parse_args(argv)

    sqlite_path = Path(args.sqlite_path)
    if not sqlite_path.exists():
        logger.error(f"SQLite database not found: {sqlite_path}")
        sys.exit(1)

    # Get PostgreSQL URL
    postgres_url = args.postgres_url or os.getenv("DATABASE_URL")
    if not postgres_url:
        logger.error("PostgreSQL URL not provided. Use --postgres-url or set DATABASE_URL environment variable")
        sys.exit(1)

    # Run migration
    migration = DataMigration(
        sqlite_url=f"sqlite:///{sqlite_path}",
        target_url=postgres_url,
        batch_size=args.batch_size
    )

    migration.run(create_schema=not args.skip_schema)


if __name__ == "__main__":
    main()
