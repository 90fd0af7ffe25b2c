from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    inspect,
    select,
    text,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from .errors import StoreError
from .models import Job


logger = logging.getLogger(__name__)

metadata = MetaData()

jobs_table = Table(
    "jobs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("external_id", String(20), nullable=False, unique=True),
    Column("title", String(500), nullable=False),
    Column("organization", String(500)),
    Column("location", String(200)),
    Column("deadline", String(50)),
    Column("sectors", JSON().with_variant(postgresql.ARRAY(Text), "postgresql")),
    Column("description", Text),
    Column("original_url", String(500)),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    # 1 on insert, +1 on every upsert that hits an existing row.
    Column("revision", Integer, nullable=False, server_default=text("1")),
    Index("idx_jobs_deadline", "deadline"),
)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _ensure_sqlite_dir(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


class JobStore:
    def __init__(self, database_url: str, *, engine: Optional[Engine] = None):
        if engine is None:
            _ensure_sqlite_dir(database_url)
            engine = create_engine(database_url, pool_pre_ping=True)
        self.engine = engine
        dialect = self.engine.dialect.name
        if dialect not in _INSERTS:
            raise StoreError(f"unsupported database backend: {dialect}")
        self._insert = _INSERTS[dialect]

    def ensure_schema(self) -> None:
        """Create the jobs table and indexes if they are missing."""
        try:
            metadata.create_all(self.engine, checkfirst=True)
            self._migrate()
        except SQLAlchemyError as e:
            raise StoreError(f"cannot prepare schema: {e}") from e
        logger.info("Database table ready")

    def _migrate(self) -> None:
        # Tables created before upserts were versioned have no revision column.
        cols = {c["name"] for c in inspect(self.engine).get_columns("jobs")}
        if "revision" not in cols:
            with self.engine.begin() as conn:
                conn.execute(text("ALTER TABLE jobs ADD COLUMN revision INTEGER NOT NULL DEFAULT 1"))

    def upsert(self, job: Job) -> bool:
        """Insert or overwrite the row keyed on external_id in one statement.

        Returns True when the row was inserted, False when it was updated.
        """

        row = {
            "external_id": job.external_id,
            "title": job.title,
            "organization": job.organization,
            "location": job.location,
            "deadline": job.deadline,
            "sectors": list(job.sectors),
            "description": job.description,
            "original_url": job.original_url,
        }
        stmt = self._insert(jobs_table).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[jobs_table.c.external_id],
            set_={
                "title": stmt.excluded.title,
                "organization": stmt.excluded.organization,
                "location": stmt.excluded.location,
                "deadline": stmt.excluded.deadline,
                "sectors": stmt.excluded.sectors,
                "description": stmt.excluded.description,
                "original_url": stmt.excluded.original_url,
                "updated_at": func.current_timestamp(),
                "revision": jobs_table.c.revision + 1,
            },
        ).returning(jobs_table.c.revision)

        try:
            with self.engine.begin() as conn:
                revision = conn.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(str(e).splitlines()[0]) from e
        return revision == 1

    def get(self, external_id: str) -> Optional[dict]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(jobs_table).where(jobs_table.c.external_id == external_id)
            ).mappings().first()
        return dict(row) if row else None

    def count(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(jobs_table)).scalar_one()

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def close(self) -> None:
        self.engine.dispose()
