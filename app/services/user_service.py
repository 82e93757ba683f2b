import asyncio
import logging

from app.core.errors import EmailAlreadyRegistered, InvalidCredentials
from app.core.security import create_access_token, hash_password, verify_password
from app.models import Token, User, UserCreate, UserRead
from app.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, repo: UserRepository, jwt_secret: str, jwt_ttl_seconds: int = 3600):
        self.repo = repo
        self._jwt_secret = jwt_secret
        self._jwt_ttl_seconds = jwt_ttl_seconds

    async def register(self, user_data: UserCreate) -> UserRead:
        email = user_data.email.lower()
        if await self.repo.find_by_email(email) is not None:
            raise EmailAlreadyRegistered()

        user = User(
            email=email,
            password_hash=await asyncio.to_thread(hash_password, user_data.password),
        )
        user = await self.repo.create(user)
        logger.info(f"registered user id={user.id}")
        return UserRead.model_validate(user)

    async def authenticate(self, email: str, password: str) -> Token:
        user = await self.repo.find_by_email(email.lower())
        # same error for unknown email and wrong password
        if user is None:
            raise InvalidCredentials()
        # PBKDF2 is CPU-bound; keep it off the event loop
        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            raise InvalidCredentials()
        return Token(
            access_token=create_access_token(
                user.id, self._jwt_secret, self._jwt_ttl_seconds
            )
        )

    async def get_user(self, user_id: int) -> UserRead:
        user = await self.repo.find_by_id(user_id)
        if user is None:
            raise InvalidCredentials("unknown user")
        return UserRead.model_validate(user)
