"""Idempotent seeding of the records every installation needs."""
import logging
from typing import Optional

from nulltasker.core.config import Settings
from nulltasker.core.constants import default_project_settings
from nulltasker.models import DEFAULT_PROJECT_ID, Project, User, UserRole

logger = logging.getLogger(__name__)

# Id of the bootstrap administrator who owns the default project
BOOTSTRAP_ADMIN_ID = "admin"


def ensure_default_project(storage, project_id: str = DEFAULT_PROJECT_ID) -> Project:
    project = storage.projects.get_by_id(project_id)
    if project:
        return project
    project = storage.projects.create(
        Project(
            id=project_id,
            name="Default Project",
            description="Initial project",
            owner=BOOTSTRAP_ADMIN_ID,
            members=[BOOTSTRAP_ADMIN_ID],
            admins=[BOOTSTRAP_ADMIN_ID],
            settings=default_project_settings(),
        )
    )
    logger.info("Created default project '%s'", project_id)
    return project


def init_storage(storage, config: Settings) -> None:
    ensure_default_project(storage, config.DEFAULT_PROJECT_ID)
    ensure = getattr(storage.settings, "ensure", None)
    if ensure is not None:
        ensure()


def create_bootstrap_admin(
    storage,
    email: str,
    password_hash: str,
    display_name: str = "Administrator",
) -> Optional[User]:
    """
    Create the ``admin`` system administrator if it does not exist yet.

    Returns the new user, or None when an admin (or the email) already exists.
    """
    if storage.users.get_by_id(BOOTSTRAP_ADMIN_ID) or storage.users.get_by_email(email):
        return None
    user = storage.users.create(
        User(
            id=BOOTSTRAP_ADMIN_ID,
            display_name=display_name,
            email=email,
            password=password_hash,
            role=UserRole.SYSTEM_ADMIN,
            projects=[DEFAULT_PROJECT_ID],
        )
    )
    storage.projects.add_member(DEFAULT_PROJECT_ID, user.id)
    storage.projects.add_admin(DEFAULT_PROJECT_ID, user.id)
    logger.info("Created bootstrap administrator %s", email)
    return user
