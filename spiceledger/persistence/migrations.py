from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Engine, inspect, insert, select, text

from spiceledger.persistence.models import Base, SchemaMigrationModel

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "sql"

# (table, index) whose presence proves a migration ran before tracking existed.
LEGACY_MARKERS = {
    "0001_initial_schema.sql": ("users", None),
    "0002_ledger_indexes.sql": ("daily_prices", "ix_daily_prices_date"),
}


@dataclass
class MigrationResult:
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    bootstrapped: list[str] = field(default_factory=list)


def _split_statements(sql: str) -> list[str]:
    return [chunk.strip() for chunk in sql.split(";") if chunk.strip()]


class MigrationRunner:
    def __init__(self, engine: Engine, migrations_dir: Path = MIGRATIONS_DIR):
        self.engine = engine
        self.migrations_dir = migrations_dir
        self._tracking = SchemaMigrationModel.__table__

    def discover(self) -> list[Path]:
        return sorted(self.migrations_dir.glob("*.sql"), key=lambda p: p.name)

    def applied_versions(self) -> set[str]:
        self._tracking.create(bind=self.engine, checkfirst=True)
        with self.engine.connect() as conn:
            return set(conn.scalars(select(self._tracking.c.version)).all())

    def _record(self, conn, version: str) -> None:
        conn.execute(
            insert(self._tracking).values(version=version, applied_at=datetime.now(timezone.utc))
        )

    def _legacy_applied(self) -> list[str]:
        inspector = inspect(self.engine)
        tables = set(inspector.get_table_names())
        if "users" not in tables:
            return []

        found: list[str] = []
        for version, (table, index_name) in LEGACY_MARKERS.items():
            if table not in tables:
                continue
            if index_name is None:
                found.append(version)
                continue
            if any(index.get("name") == index_name for index in inspector.get_indexes(table)):
                found.append(version)
        return found

    def _bootstrap(self) -> list[str]:
        versions = self._legacy_applied()
        if not versions:
            return []
        logger.info("existing schema without migration tracking, marking applied: %s", versions)
        with self.engine.begin() as conn:
            for version in versions:
                self._record(conn, version)
        return versions

    def up(self) -> MigrationResult:
        result = MigrationResult()
        applied = self.applied_versions()
        if not applied:
            result.bootstrapped = self._bootstrap()
            applied = set(result.bootstrapped)

        for path in self.discover():
            version = path.name
            if version in applied:
                logger.info("skipping %s (already applied)", version)
                result.skipped.append(version)
                continue

            logger.info("applying migration %s", version)
            with self.engine.begin() as conn:
                for statement in _split_statements(path.read_text()):
                    conn.execute(text(statement))
                self._record(conn, version)
            result.applied.append(version)

        logger.info("migrations complete: applied=%d skipped=%d", len(result.applied), len(result.skipped))
        return result

    def down(self) -> None:
        Base.metadata.drop_all(bind=self.engine)
        logger.info("dropped all application tables")

    def status(self) -> list[dict]:
        applied = self.applied_versions()
        return [{"version": path.name, "applied": path.name in applied} for path in self.discover()]
