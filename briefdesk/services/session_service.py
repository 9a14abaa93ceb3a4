"""
Application context
Owns the user session, the wizard, the project store and the AI gateway
"""
import mimetypes
import os
import uuid
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from briefdesk import config
from briefdesk.errors import AuthRequired, ProjectStateError
from briefdesk.models import Feedback, Project, ProjectStatus, User
from briefdesk.services.ai_service import DesignAIService
from briefdesk.services.project_service import ProjectStore
from briefdesk.services.wizard_service import BriefWizard
from briefdesk.utils.log import get_logger
from briefdesk.utils.storage import read_envelope, write_envelope

logger = get_logger(__name__)

USER_FILE = "user.json"
USER_SCHEMA_VERSION = 1


class AppContext:
    """
    Everything one browser profile used to keep in memory

    Created at startup and passed to the handlers; logout tears the
    session down.
    """

    def __init__(self, ai: DesignAIService, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.ai = ai
        self.store = ProjectStore(self.data_dir)
        self.wizard = BriefWizard(ai)
        self.user: Optional[User] = None

    @classmethod
    def from_config(cls) -> "AppContext":
        return cls(DesignAIService(config.build_openai_client()), config.DATA_DIR)

    @property
    def user_path(self) -> Path:
        return self.data_dir / USER_FILE

    def start(self) -> None:
        """Create the data directories and load the persisted state."""
        config.ensure_data_dirs(self.data_dir)
        self.store.load()
        self.user = self._load_user()

    def _load_user(self) -> Optional[User]:
        try:
            data, _ = read_envelope(self.user_path, USER_SCHEMA_VERSION, "user", {}, container=dict)
            return User.model_validate(data) if data else None
        except (ValueError, ValidationError) as e:
            logger.warning("session.user_unreadable", error=str(e))
            return None

    # =========================
    # Mock authentication
    # =========================
    def login(self, name: str = "", email: str = "") -> User:
        """Create the local user; no password check, no server round-trip."""
        defaults = User()
        user = User(name=name.strip() or defaults.name, email=email.strip() or defaults.email)
        write_envelope(self.user_path, USER_SCHEMA_VERSION, "user", user.model_dump(mode="json"))
        self.user = user
        logger.info("session.login", name=user.name)
        return user

    def logout(self) -> None:
        self.user = None
        self.user_path.unlink(missing_ok=True)
        self.wizard.reset()
        logger.info("session.logout")

    # =========================
    # Project actions
    # =========================
    def accept_current_brief(self) -> Project:
        """
        Turn the wizard's brief into an active project

        Raises:
            WizardStateError: the wizard is not showing a generated brief
            GenerationInProgress: the brief is being regenerated
            AuthRequired: nobody is logged in; nothing is created
        """
        brief = self.wizard.accepted_brief()
        project = self.store.create_project(brief, self.user)
        self.wizard.reset()
        return project

    def submit_design(self, project_id: str, image: bytes, mime_type: str = "image/jpeg") -> Optional[Project]:
        """
        Store a submission, evaluate it and complete the project

        Returns:
            the completed project, or None when the id is unknown

        Raises:
            AuthRequired: nobody is logged in
            ProjectStateError: the project is not active
        """
        if self.user is None:
            raise AuthRequired("log in to submit a design")
        project = self.store.get_project(project_id)
        if project is None:
            return None
        if project.status != ProjectStatus.ACTIVE:
            raise ProjectStateError(f"project is {project.status.value}")

        ext = mimetypes.guess_extension(mime_type) or ".img"
        path = config.upload_dir(self.data_dir) / f"{project_id}{ext}"
        # Moved into place only once the project is claimed
        staged = path.with_name(f".{path.name}.{uuid.uuid4().hex}")
        staged.parent.mkdir(parents=True, exist_ok=True)
        staged.write_bytes(image)
        try:
            feedback: Feedback = self.ai.evaluate_submission(project.brief, image, mime_type)
            done = self.store.complete_project(project_id, feedback, path.relative_to(self.data_dir).as_posix())
        except BaseException:
            staged.unlink(missing_ok=True)
            raise
        if done is None:
            staged.unlink(missing_ok=True)
            return None
        os.replace(staged, path)
        return done
