import uuid
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from assetvault.core.config import Settings
from assetvault.core.db import ledger_guard
from assetvault.core.errors import DuplicateEmailError, LoginFailedError, NotFoundError
from assetvault.core.security import hash_password, verify_password, create_access_token, ROLE_USER
from assetvault.modules.users.repository import UserRepository
from assetvault.modules.users.schemas import RegisterIn, LoginIn
from assetvault.modules.users.models import User
from assetvault.modules.audit.service import ActivityLogService

log = logging.getLogger(__name__)

class UserService:
    def __init__(self, s: AsyncSession, settings: Settings):
        self.s = s
        self.settings = settings
        self.repo = UserRepository(s)
        self.activity = ActivityLogService(s)

    async def register(self, p: RegisterIn) -> User:
        email = p.email.lower()
        async with ledger_guard(self.s, "check existing user"):
            existing = await self.repo.get_by_email(email)
        if existing:
            raise DuplicateEmailError()
        hashed = hash_password(p.password)
        async with ledger_guard(self.s, "register user"):
            try:
                user = await self.repo.create(name=p.name, email=email, password_hash=hashed, role=ROLE_USER)
                self.activity.record("user_registered", user.id, message=f"User {email} registered")
                await self.s.commit()
            except IntegrityError:
                # lost a race with a concurrent registration for the same e-mail
                await self.s.rollback()
                raise DuplicateEmailError()
        log.info(f"registered user {user.id}")
        return user

    async def login(self, p: LoginIn) -> str:
        async with ledger_guard(self.s, "load user for login"):
            user = await self.repo.get_by_email(p.email.lower())
        if not user or not verify_password(p.password, user.password_hash):
            raise LoginFailedError()
        return create_access_token(self.settings, user.id, user.role)

    async def profile(self, user_id: uuid.UUID) -> User:
        async with ledger_guard(self.s, "load profile"):
            user = await self.repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
