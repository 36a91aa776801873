"""Tests for SQLiteTemplateRegistry."""

from pathlib import Path

import pytest

from scaffoldhub.models import InstalledTemplate
from scaffoldhub.templates.registry import SQLiteTemplateRegistry


@pytest.fixture
def registry(tmp_path):
    """Create a temporary registry for testing."""
    store = SQLiteTemplateRegistry(tmp_path / "templates.db")
    yield store
    store.close()


def _record(tmp_path, template_id="http-py", sha="abc", source="https://example.com/t.git"):
    path = tmp_path / "templates" / template_id
    path.mkdir(parents=True, exist_ok=True)
    return InstalledTemplate(
        id=template_id,
        source=source,
        path=path,
        content_sha256=sha,
        description="HTTP handler",
    )


class TestSQLiteTemplateRegistry:
    """Test registry schema and CRUD."""

    def test_init_creates_database(self, tmp_path):
        db_path = tmp_path / "new.db"
        assert not db_path.exists()

        store = SQLiteTemplateRegistry(db_path)

        assert db_path.exists()
        assert store.db_path == db_path
        store.close()

    def test_schema_creation(self, registry):
        cursor = registry.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='templates'"
        )
        assert cursor.fetchone() is not None

    def test_pragma_settings(self, registry):
        mode = registry.connection.execute("PRAGMA journal_mode").fetchone()[0]
        assert mode.lower() == "wal"

    def test_insert_and_get(self, registry, tmp_path):
        record = _record(tmp_path)

        assert registry.upsert(record) == "inserted"
        stored = registry.get("http-py")

        assert stored is not None
        assert stored.source == record.source
        assert stored.path == record.path
        assert stored.content_sha256 == "abc"
        assert stored.description == "HTTP handler"
        assert stored.installed_at

    def test_get_missing(self, registry):
        assert registry.get("nope") is None

    def test_upsert_same_content_skipped(self, registry, tmp_path):
        registry.upsert(_record(tmp_path))
        assert registry.upsert(_record(tmp_path)) == "skipped"

    def test_upsert_changed_content_updated(self, registry, tmp_path):
        registry.upsert(_record(tmp_path))

        assert registry.upsert(_record(tmp_path, sha="def")) == "updated"
        assert registry.get("http-py").content_sha256 == "def"

    def test_upsert_changed_source_updated(self, registry, tmp_path):
        registry.upsert(_record(tmp_path))
        assert registry.upsert(_record(tmp_path, source="https://other/t.git")) == "updated"

    def test_upsert_forced_same_content_updated(self, registry, tmp_path):
        registry.upsert(_record(tmp_path))
        assert registry.upsert(_record(tmp_path), force=True) == "updated"

    def test_list_sorted(self, registry, tmp_path):
        registry.upsert(_record(tmp_path, "zeta"))
        registry.upsert(_record(tmp_path, "alpha"))

        assert [record.id for record in registry.list()] == ["alpha", "zeta"]

    def test_remove(self, registry, tmp_path):
        registry.upsert(_record(tmp_path))

        assert registry.remove("http-py") is True
        assert registry.remove("http-py") is False
        assert registry.get("http-py") is None

    def test_remove_missing(self, registry, tmp_path):
        kept = _record(tmp_path, "kept")
        gone = _record(tmp_path, "gone")
        registry.upsert(kept)
        registry.upsert(gone)
        gone.path.rmdir()

        assert registry.remove_missing() == 1
        assert [record.id for record in registry.list()] == ["kept"]

    def test_transaction_rollback(self, registry, tmp_path):
        with pytest.raises(RuntimeError):
            with registry.transaction() as conn:
                conn.execute(
                    "INSERT INTO templates(id, source, path, content_sha256) VALUES ('x', 's', 'p', 'h')"
                )
                raise RuntimeError("boom")

        assert registry.get("x") is None
