"""
Tests for local project persistence and file export/import
"""
import json
from datetime import date

import aiosqlite
import pytest

from conftest import make_project
from policast.services.project_store import (
    STORAGE_KEY,
    ImportFormatError,
    ProjectStore,
    ProjectStoreError,
)


class TestPersistence:
    """Test the single-key project list"""

    async def test_empty_store(self, store):
        assert await store.load_projects() == []

    async def test_round_trip(self, store, tmp_path):
        await store.save_project(make_project("proj-1", 0))
        await store.save_project(make_project("proj-2", 1))

        reopened = ProjectStore(db_path=str(tmp_path / "policast.db"))
        projects = await reopened.load_projects()

        assert {p.id for p in projects} == {"proj-1", "proj-2"}
        assert projects[0].id == "proj-2"  # new projects are prepended
        assert projects[1] == make_project("proj-1", 0)

    async def test_whole_list_under_one_key(self, store):
        await store.save_project(make_project("proj-1"))
        await store.save_project(make_project("proj-2"))

        async with aiosqlite.connect(store.db_path) as db:
            cur = await db.execute("SELECT key, value FROM local_storage")
            rows = await cur.fetchall()

        assert len(rows) == 1
        assert rows[0][0] == STORAGE_KEY
        assert [p["id"] for p in json.loads(rows[0][1])] == ["proj-2", "proj-1"]

    async def test_update_in_place(self, store):
        await store.save_project(make_project("proj-1", 0))
        await store.save_project(make_project("proj-2", 1))

        updated = make_project("proj-1", 7)
        await store.save_project(updated)

        projects = await store.load_projects()
        assert [p.id for p in projects] == ["proj-2", "proj-1"]
        assert projects[1].news_item.title == "Headline 7"

    async def test_project_without_content(self, store):
        await store.save_project(make_project("proj-1", with_content=False))

        project = await store.get_project("proj-1")

        assert project.generated_content is None

    async def test_delete(self, store):
        await store.save_project(make_project("proj-1"))
        await store.save_project(make_project("proj-2"))

        assert await store.delete_project("proj-1") is True
        assert await store.delete_project("proj-1") is False
        assert [p.id for p in await store.load_projects()] == ["proj-2"]

    async def test_clear_all(self, store):
        await store.save_project(make_project("proj-1"))

        assert await store.clear_all() == 1
        assert await store.load_projects() == []

    async def test_corrupt_value(self, store):
        async with aiosqlite.connect(store.db_path) as db:
            await db.execute("INSERT INTO local_storage (key, value) VALUES (?, ?)", (STORAGE_KEY, "{oops"))
            await db.commit()

        with pytest.raises(ProjectStoreError, match="corrupt"):
            await store.load_projects()

    async def test_statistics(self, store):
        first = make_project("proj-1")
        second = make_project("proj-2", with_content=False)
        second.saved_at = "2026-10-19T10:00:00"
        await store.save_project(first)
        await store.save_project(second)

        stats = await store.get_statistics()

        assert stats["total_projects"] == 2
        assert stats["with_content"] == 1
        assert stats["grounding_images"] == 2
        assert stats["date_range"]["oldest"].startswith("2026-10-18T09:00:00")
        assert stats["date_range"]["newest"].startswith("2026-10-19T10:00:00")


class TestExportImport:
    """Test JSON file export and merging import"""

    async def test_export_default_name(self, store, tmp_path):
        await store.save_project(make_project("proj-1"))

        path = await store.export_to_file()

        assert path == tmp_path / "exports" / f"policast-backup-{date.today().isoformat()}.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data[0]["id"] == "proj-1"
        assert data[0]["newsItem"]["publishedDate"] == "2026-10-18"
        assert data[0]["generatedContent"]["burmeseTitles"][0] == "ခေါင်းစဉ် ၁"

    async def test_export_single_project(self, store, tmp_path):
        project = make_project("proj-1", 4)

        path = await store.export_project(project)

        assert path.name == "policast-news-1700000000000-4.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"newsItem", "generatedContent", "groundingImages"}

    async def test_export_single_requires_content(self, store):
        with pytest.raises(ProjectStoreError, match="no generated content"):
            await store.export_project(make_project(with_content=False))

    async def test_import_merges_by_id(self, store, tmp_path):
        await store.save_project(make_project("proj-1", 0))
        incoming = [make_project("proj-1", 9).to_dict(), make_project("proj-2", 2).to_dict()]
        path = tmp_path / "backup.json"
        path.write_text(json.dumps(incoming), encoding="utf-8")

        result = await store.import_from_file(str(path))

        assert (result.total, result.imported, result.skipped) == (2, 1, 1)
        projects = await store.load_projects()
        assert [p.id for p in projects] == ["proj-2", "proj-1"]
        # the existing entry is untouched
        assert projects[1].news_item.title == "Headline 0"

    async def test_export_then_import_into_fresh_store(self, store, tmp_path):
        await store.save_project(make_project("proj-1", 0))
        await store.save_project(make_project("proj-2", 1))
        path = await store.export_to_file(str(tmp_path / "all.json"))

        fresh = ProjectStore(db_path=str(tmp_path / "fresh.db"))
        await fresh.initialize_db()
        result = await fresh.import_from_file(str(path))

        assert result.imported == 2
        assert await fresh.load_projects() == await store.load_projects()

    async def test_import_rejects_non_array(self, store, tmp_path):
        path = tmp_path / "single.json"
        path.write_text(json.dumps(make_project().to_dict()), encoding="utf-8")

        with pytest.raises(ImportFormatError, match="Expected an array"):
            await store.import_from_file(str(path))

        assert await store.load_projects() == []

    async def test_import_rejects_bad_json(self, store, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(ImportFormatError, match="Failed to parse"):
            await store.import_from_file(str(path))

    async def test_import_rejects_non_utf8(self, store, tmp_path):
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe\x00[garbage")

        with pytest.raises(ImportFormatError, match="Failed to parse"):
            await store.import_from_file(str(path))

        assert await store.load_projects() == []

    async def test_import_rejects_malformed_entry(self, store, tmp_path):
        path = tmp_path / "bad-entry.json"
        path.write_text(json.dumps([{"id": "proj-9"}]), encoding="utf-8")

        with pytest.raises(ImportFormatError, match="Invalid project entry"):
            await store.import_from_file(str(path))
