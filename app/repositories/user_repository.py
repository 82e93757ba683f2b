from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.errors import EmailAlreadyRegistered, OriginFailure
from app.models import User


class UserRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_by_email(self, email: str) -> User | None:
        try:
            async with self._session_factory() as db:
                result = await db.exec(select(User).where(User.email == email))
                return result.first()
        except SQLAlchemyError as e:
            raise OriginFailure("failed to look up user") from e

    async def find_by_id(self, user_id: int) -> User | None:
        try:
            async with self._session_factory() as db:
                return await db.get(User, user_id)
        except SQLAlchemyError as e:
            raise OriginFailure(f"failed to load user {user_id}") from e

    async def create(self, user: User) -> User:
        try:
            async with self._session_factory() as db:
                db.add(user)
                await db.commit()
                await db.refresh(user)
                return user
        except IntegrityError as e:
            # unique index on email lost a race with a concurrent register
            raise EmailAlreadyRegistered() from e
        except SQLAlchemyError as e:
            raise OriginFailure("failed to create user") from e
