"""
FastAPI dependencies shared by the routers.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.auth import AuthenticatedUser, get_current_user
from tasknest.config import Settings, get_settings
from tasknest.database import get_session
from tasknest.repository import TaskRepository
from tasknest.services.collaboration import CollaborationService
from tasknest.services.lifecycle import TaskService
from tasknest.services.notifications import ArqNotifier, Notifier, NullNotifier
from tasknest.services.queries import TaskQueries
from tasknest.services.users import UserDirectory


def get_notifier(settings: Settings = Depends(get_settings)) -> Notifier:
    if settings.notifications_enabled:
        return ArqNotifier()
    return NullNotifier()


async def get_actor(
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> str:
    """Id of the calling user, registered in the user directory on first sight."""
    await UserDirectory(session).register(user.uid, email=user.email, name=user.name)
    return user.uid


def get_task_service(
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> TaskService:
    return TaskService(TaskRepository(session), UserDirectory(session), notifier, settings)


def get_collaboration_service(
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> CollaborationService:
    return CollaborationService(TaskRepository(session), UserDirectory(session), notifier, settings)


def get_queries(session: AsyncSession = Depends(get_session)) -> TaskQueries:
    return TaskQueries(TaskRepository(session))
