"""SQLite store of locally installed templates."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from scaffoldhub.models import InstalledTemplate


class SQLiteTemplateRegistry:
    """Persistence layer recording which templates are installed and from where."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLiteTemplateRegistry":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS templates (
                    id TEXT PRIMARY KEY,
                    source TEXT NOT NULL,
                    path TEXT NOT NULL,
                    content_sha256 TEXT NOT NULL,
                    description TEXT,
                    installed_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TRIGGER IF NOT EXISTS templates_updated
                AFTER UPDATE ON templates
                BEGIN
                    UPDATE templates SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
                END;
                """
            )

    @staticmethod
    def _to_record(row: sqlite3.Row) -> InstalledTemplate:
        return InstalledTemplate(
            id=row["id"],
            source=row["source"],
            path=Path(row["path"]),
            content_sha256=row["content_sha256"],
            description=row["description"] or "",
            installed_at=row["installed_at"],
        )

    def get(self, template_id: str) -> InstalledTemplate | None:
        row = self._conn.execute(
            "SELECT * FROM templates WHERE id = ?", (template_id,)
        ).fetchone()
        return self._to_record(row) if row else None

    def upsert(self, template: InstalledTemplate, *, force: bool = False) -> str:
        """Record a template.

        Returns:
            'inserted', 'updated', or 'skipped' when the stored content hash,
            source and path are unchanged and ``force`` is not set.
        """
        with self.transaction() as conn:
            existing = conn.execute(
                "SELECT source, path, content_sha256 FROM templates WHERE id = ?",
                (template.id,),
            ).fetchone()
            if (
                existing
                and not force
                and existing["content_sha256"] == template.content_sha256
                and existing["source"] == template.source
                and existing["path"] == str(template.path)
            ):
                return "skipped"

            if existing:
                conn.execute(
                    """
                    UPDATE templates
                    SET source = ?, path = ?, content_sha256 = ?, description = ?
                    WHERE id = ?
                    """,
                    (
                        template.source,
                        str(template.path),
                        template.content_sha256,
                        template.description,
                        template.id,
                    ),
                )
                return "updated"

            conn.execute(
                """
                INSERT INTO templates(id, source, path, content_sha256, description)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    template.id,
                    template.source,
                    str(template.path),
                    template.content_sha256,
                    template.description,
                ),
            )
            return "inserted"

    def list(self) -> List[InstalledTemplate]:
        rows = self._conn.execute("SELECT * FROM templates ORDER BY id").fetchall()
        return [self._to_record(row) for row in rows]

    def remove(self, template_id: str) -> bool:
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM templates WHERE id = ?", (template_id,))
        return cursor.rowcount > 0

    def remove_missing(self) -> int:
        """Remove templates whose directories no longer exist."""
        with self.transaction() as conn:
            rows = conn.execute("SELECT id, path FROM templates").fetchall()
            missing = [row for row in rows if not Path(row["path"]).exists()]
            for row in missing:
                conn.execute("DELETE FROM templates WHERE id = ?", (row["id"],))
        return len(missing)
