from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, timezone
from pathlib import Path
from typing import List, Optional

import aiosqlite
from dateutil.parser import isoparse

from policast.models.content import SavedProject


STORAGE_KEY = "policast_saved"


class ProjectStoreError(Exception):
    """Local persistence failure"""
    pass


class ImportFormatError(ProjectStoreError):
    """Import file is not a JSON array of projects"""
    pass


@dataclass
class ImportResult:
    total: int
    imported: int
    skipped: int


class ProjectStore:
    """
    Saved projects kept under a single key of a SQLite key/value table.

    The whole project list is serialized as one JSON array and rewritten on
    every mutation, so the stored value is always a complete snapshot.
    """

    def __init__(self, db_path: str = "data/policast.db", export_dir: str = "."):
        self.db_path = db_path
        self.export_dir = Path(export_dir)
        self.logger = logging.getLogger(__name__)
        # Call await initialize_db() after constructing.

    async def initialize_db(self) -> None:
        """Create the key/value table."""
        parent = Path(self.db_path).parent
        parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS local_storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                );
                """
            )
            await db.commit()

    async def _read_raw(self) -> Optional[str]:
        async with aiosqlite.connect(self.db_path) as db:
            cur = await db.execute("SELECT value FROM local_storage WHERE key = ?", (STORAGE_KEY,))
            row = await cur.fetchone()
            return row[0] if row else None

    async def _write_projects(self, projects: List[SavedProject]) -> None:
        payload = json.dumps([p.to_dict() for p in projects], ensure_ascii=False)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO local_storage (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (STORAGE_KEY, payload),
            )
            await db.commit()
        self.logger.debug(f"Persisted {len(projects)} projects")

    async def load_projects(self) -> List[SavedProject]:
        """Return the persisted projects, newest first."""
        raw = await self._read_raw()
        if not raw:
            return []
        try:
            data = json.loads(raw)
            return [SavedProject.from_dict(item) for item in data]
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise ProjectStoreError(f"Stored project list is corrupt: {e}") from e

    async def get_project(self, project_id: str) -> Optional[SavedProject]:
        for project in await self.load_projects():
            if project.id == project_id:
                return project
        return None

    async def save_project(self, project: SavedProject) -> None:
        """Replace the project with the same id in place, or prepend it."""
        projects = await self.load_projects()
        for index, existing in enumerate(projects):
            if existing.id == project.id:
                projects[index] = project
                self.logger.info(f"Updated project {project.id}")
                break
        else:
            projects.insert(0, project)
            self.logger.info(f"Saved new project {project.id}: '{project.news_item.title[:50]}'")
        await self._write_projects(projects)

    async def delete_project(self, project_id: str) -> bool:
        projects = await self.load_projects()
        remaining = [p for p in projects if p.id != project_id]
        if len(remaining) == len(projects):
            return False
        await self._write_projects(remaining)
        self.logger.info(f"Deleted project {project_id}")
        return True

    async def clear_all(self) -> int:
        """Remove every saved project. Returns how many were removed."""
        projects = await self.load_projects()
        self.logger.warning("Clearing ALL saved projects - this is irreversible!")
        await self._write_projects([])
        return len(projects)

    def _default_path(self, filename: str) -> Path:
        return self.export_dir / filename

    async def export_to_file(self, path: Optional[str] = None) -> Path:
        """Write the full project list as indented JSON."""
        target = Path(path) if path else self._default_path(f"policast-backup-{date.today().isoformat()}.json")
        projects = await self.load_projects()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            json.dumps([p.to_dict() for p in projects], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        self.logger.info(f"Exported {len(projects)} projects to {target}")
        return target

    async def export_project(self, project: SavedProject, path: Optional[str] = None) -> Path:
        """Write one project's news item, content kit and images."""
        if project.generated_content is None:
            raise ProjectStoreError(f"Project {project.id} has no generated content to export")
        target = Path(path) if path else self._default_path(f"policast-{project.news_item.id}.json")
        payload = {
            "newsItem": project.news_item.to_dict(),
            "generatedContent": project.generated_content.to_dict(),
            "groundingImages": [img.to_dict() for img in project.grounding_images],
        }
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        self.logger.info(f"Exported project {project.id} to {target}")
        return target

    async def import_from_file(self, path: str) -> ImportResult:
        """
        Merge projects from an exported file.

        Entries whose id is already stored are skipped; new ones are
        prepended in file order.
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ImportFormatError("Failed to parse JSON file.") from e

        if not isinstance(data, list):
            raise ImportFormatError("Invalid JSON format. Expected an array of projects.")

        try:
            incoming = [SavedProject.from_dict(item) for item in data]
        except (TypeError, ValueError) as e:
            raise ImportFormatError(f"Invalid project entry: {e}") from e

        projects = await self.load_projects()
        known_ids = {p.id for p in projects}
        new_items = []
        for project in incoming:
            if project.id in known_ids:
                continue
            known_ids.add(project.id)
            new_items.append(project)

        if new_items:
            await self._write_projects(new_items + projects)

        result = ImportResult(total=len(incoming), imported=len(new_items), skipped=len(incoming) - len(new_items))
        self.logger.info(f"Imported {result.imported} of {result.total} projects from {path}")
        return result

    async def get_statistics(self) -> dict:
        projects = await self.load_projects()
        stats = {
            "total_projects": len(projects),
            "with_content": sum(1 for p in projects if p.generated_content is not None),
            "grounding_images": sum(len(p.grounding_images) for p in projects),
            "date_range": {},
        }

        timestamps = []
        for project in projects:
            try:
                parsed = isoparse(project.saved_at)
                timestamps.append(parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc))
            except (ValueError, TypeError):
                self.logger.debug(f"Unparseable savedAt on {project.id}: {project.saved_at!r}")
        if timestamps:
            stats["date_range"] = {
                "oldest": min(timestamps).isoformat(),
                "newest": max(timestamps).isoformat(),
            }
        return stats
