"""
Project store
Accepted briefs, their lifecycle, and persistence to projects.json
"""
import re
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from briefdesk.errors import AuthRequired, ProjectStateError
from briefdesk.models import Brief, Feedback, Project, ProjectStatus, User
from briefdesk.services.timer_service import ProjectTimer, utc_now
from briefdesk.utils.log import get_logger
from briefdesk.utils.storage import read_envelope, read_saved_at, write_envelope

logger = get_logger(__name__)

PROJECTS_FILE = "projects.json"
PROJECTS_SCHEMA_VERSION = 2

# Fields fixed at creation
_FROZEN_FIELDS = {"id", "brief"}


def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _snake_keys(d: Any) -> Any:
    if not isinstance(d, dict):
        return d
    return {_snake(k): v for k, v in d.items()}


def migrate_v1_projects(items: Any) -> list:
    """
    Version 1 -> 2

    Version 1 was a bare list with camelCase keys, startTime in epoch
    milliseconds and the submission inlined as a base64 data URL.
    Inline images are dropped; version 2 stores only file references.
    """
    if not isinstance(items, list):
        return []
    migrated = []
    for item in items:
        if not isinstance(item, dict):
            migrated.append(item)
            continue
        p = _snake_keys(item)
        p["brief"] = _snake_keys(p.get("brief"))
        if p.get("feedback") is not None:
            p["feedback"] = _snake_keys(p["feedback"])
        start = p.get("start_time")
        if isinstance(start, (int, float)):
            p["start_time"] = datetime.fromtimestamp(start / 1000, tz=timezone.utc).isoformat()
        image = p.get("user_image")
        if isinstance(image, str) and image.startswith("data:"):
            p["user_image"] = None
        migrated.append(p)
    return migrated


MIGRATIONS = {1: migrate_v1_projects}


class ProjectStore:
    """
    Sole owner of the project list

    The list is kept most-recent-first. Every mutation writes the whole
    list back to disk.
    """

    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / PROJECTS_FILE
        self._projects: List[Project] = []
        self._saved_at: Optional[datetime] = None
        self._lock = threading.RLock()

    # =========================
    # Persistence
    # =========================
    def load(self) -> List[Project]:
        """
        Read the persisted list, migrating older versions

        Entries that do not validate after migration are skipped with a warning.
        An unreadable file is moved aside and the store starts empty.
        """
        try:
            items, saved_at = read_envelope(self.path, PROJECTS_SCHEMA_VERSION, "projects", MIGRATIONS)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            backup = self.path.with_name(f"{self.path.name}.corrupt-{utc_now():%Y%m%d%H%M%S}")
            self.path.replace(backup)
            logger.error("projects.unreadable", path=str(self.path), backup=str(backup), error=str(e))
            items, saved_at = [], None
        projects = []
        for i, item in enumerate(items):
            try:
                projects.append(Project.model_validate(item))
            except ValidationError as e:
                logger.warning("projects.malformed_entry_skipped", index=i, errors=e.error_count())
        with self._lock:
            self._projects = projects
            self._saved_at = saved_at
        logger.info("projects.loaded", count=len(projects), path=str(self.path))
        return list(projects)

    def _save(self) -> None:
        on_disk = read_saved_at(self.path)
        if on_disk is not None and (self._saved_at is None or on_disk > self._saved_at):
            # Another writer saved since we loaded; last writer wins
            logger.warning("projects.external_write_overwritten", path=str(self.path), on_disk=on_disk.isoformat())
        self._saved_at = write_envelope(
            self.path,
            PROJECTS_SCHEMA_VERSION,
            "projects",
            [p.model_dump(mode="json") for p in self._projects],
        )

    # =========================
    # Queries
    # =========================
    def list_projects(self, status: Optional[ProjectStatus] = None) -> List[Project]:
        with self._lock:
            if status is None:
                return list(self._projects)
            return [p for p in self._projects if p.status == status]

    def get_project(self, project_id: str) -> Optional[Project]:
        with self._lock:
            for p in self._projects:
                if p.id == project_id:
                    return p
        return None

    # =========================
    # Lifecycle
    # =========================
    def create_project(self, brief: Brief, user: Optional[User]) -> Project:
        """
        Start a project from an accepted brief

        Raises:
            AuthRequired: no user is logged in; the store is left untouched
        """
        if user is None:
            raise AuthRequired("log in to accept a brief")

        project = Project(id=str(uuid.uuid4()), brief=brief, start_time=utc_now())
        with self._lock:
            self._projects = [project] + self._projects
            self._save()
        logger.info("projects.created", project_id=project.id, brief_id=brief.id)
        return project

    def update_project(self, project_id: str, **fields) -> Optional[Project]:
        """
        Merge fields into a project

        Args:
            project_id: target project
            **fields: Project fields to replace (id and brief are fixed)

        Returns:
            the updated project, or None when the id is unknown (nothing is written)
        """
        frozen = _FROZEN_FIELDS.intersection(fields)
        if frozen:
            raise ValueError(f"cannot update {', '.join(sorted(frozen))}")

        with self._lock:
            for i, p in enumerate(self._projects):
                if p.id != project_id:
                    continue
                updated = Project.model_validate({**p.model_dump(), **fields})
                # A new list; other entries keep their identity
                self._projects = self._projects[:i] + [updated] + self._projects[i + 1:]
                self._save()
                logger.info("projects.updated", project_id=project_id, fields=sorted(fields))
                return updated
        return None

    def complete_project(self, project_id: str, feedback: Feedback, user_image: Optional[str]) -> Optional[Project]:
        """
        Evaluation transition: active -> completed with feedback and image

        Returns:
            the completed project, or None when the id is unknown

        Raises:
            ProjectStateError: the project is no longer active
        """
        with self._lock:
            project = self.get_project(project_id)
            if project is None:
                return None
            if project.status != ProjectStatus.ACTIVE:
                raise ProjectStateError(f"project is {project.status.value}")
            return self.update_project(
                project_id,
                status=ProjectStatus.COMPLETED,
                feedback=feedback,
                user_image=user_image,
            )

    def expire_overdue(self, now: Optional[datetime] = None) -> List[Project]:
        """
        Move active projects past their deadline to expired

        Only runs when called; the countdown never triggers it.

        Returns:
            the projects that were expired
        """
        now = now or utc_now()
        expired = []
        with self._lock:
            for p in list(self._projects):
                if p.status != ProjectStatus.ACTIVE:
                    continue
                if ProjectTimer(p.start_time, p.brief.deadline_hours).state(now).expired:
                    expired.append(self.update_project(p.id, status=ProjectStatus.EXPIRED))
        if expired:
            logger.info("projects.expired", count=len(expired))
        return expired
