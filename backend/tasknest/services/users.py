"""
User directory: which user ids the service knows about.

Users are registered the first time they call the API with a valid token;
sharing, watching and assignment only accept registered ids.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.logging_config import get_logger
from tasknest.models import User
from tasknest.timeutils import utcnow

logger = get_logger(__name__)


class UserDirectory:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, user_id: str) -> bool:
        return await self.session.get(User, user_id) is not None

    async def register(self, user_id: str, email: str | None = None, name: str | None = None) -> User:
        """Create the user on first sight, otherwise refresh profile fields."""
        user = await self.session.get(User, user_id)
        if user is None:
            user = User(id=user_id, email=email, name=name)
            self.session.add(user)
            logger.info(f"Registered user {user_id} ({email})")
        else:
            user.email = email or user.email
            user.name = name or user.name
            user.last_seen_at = utcnow()
        await self.session.flush()
        return user
