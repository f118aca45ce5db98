"""
Identity collaborator - account sign-in, sign-up and lookup.

DatabaseIdentityProvider keeps accounts in the users table (argon2 hashes).
MockIdentityProvider accepts any credentials and is used when DATABASE_URL
is not configured.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from auth_utils import hash_password, verify_password
from backend.errors import AuthError
from crud.user import UserRepository
from models.session import SubscriptionTier
from utils.security_utils import normalize_language

logger = logging.getLogger(__name__)


@dataclass
class Account:
    id: str
    email: str
    tier: SubscriptionTier = SubscriptionTier.FREE
    preferred_language: str = "en"


class IdentityProvider:
    """Identity collaborator contract"""

    live = False

    async def sign_in(self, email: str, password: str) -> Account:
        raise NotImplementedError

    async def sign_up(self, email: str, password: str, profile: Optional[dict] = None) -> Account:
        raise NotImplementedError

    async def sign_out(self, account_id: str) -> None:
        raise NotImplementedError

    async def fetch_account(self, email: str) -> Optional[Account]:
        raise NotImplementedError

    async def record_tier(self, account_id: str, tier: SubscriptionTier) -> None:
        """Remember the confirmed tier so the next sign-in resolves it"""
        raise NotImplementedError


def _account_from_user(user) -> Account:
    return Account(
        id=str(user.id),
        email=user.email,
        tier=SubscriptionTier.resolve(user.subscription_status),
        preferred_language=user.preferred_language or "en",
    )


class DatabaseIdentityProvider(IdentityProvider):

    live = True

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def sign_in(self, email: str, password: str) -> Account:
        try:
            async with self.session_factory() as db:
                user = await UserRepository(db).get_user_by_email(email)
        except SQLAlchemyError as e:
            logger.error(f"Account lookup failed: {e}", exc_info=True)
            raise AuthError("Sign-in is temporarily unavailable. Please try again.")

        if user is None or not verify_password(password, user.hashed_password):
            raise AuthError("Invalid email or password")
        return _account_from_user(user)

    async def sign_up(self, email: str, password: str, profile: Optional[dict] = None) -> Account:
        profile = profile or {}
        try:
            async with self.session_factory() as db:
                user_repo = UserRepository(db)
                if await user_repo.get_user_by_email(email):
                    raise AuthError("Email already registered")
                user = await user_repo.create_user({
                    "email": email,
                    "hashed_password": hash_password(password),
                    "subscription_status": SubscriptionTier.FREE.value,
                    "preferred_language": normalize_language(profile.get("preferred_language")),
                })
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Account creation failed: {e}", exc_info=True)
            raise AuthError("Sign-up is temporarily unavailable. Please try again.")

        logger.info(f"Created account {user.id}")
        account = _account_from_user(user)
        # New accounts always start free
        account.tier = SubscriptionTier.FREE
        return account

    async def sign_out(self, account_id: str) -> None:
        # Sessions live in the signed client cookie; nothing to revoke server side
        logger.info(f"Account {account_id} signed out")

    async def fetch_account(self, email: str) -> Optional[Account]:
        async with self.session_factory() as db:
            user = await UserRepository(db).get_user_by_email(email)
        return _account_from_user(user) if user else None

    async def record_tier(self, account_id: str, tier: SubscriptionTier) -> None:
        async with self.session_factory() as db:
            user_repo = UserRepository(db)
            user = await user_repo.get_user_by_id(int(account_id))
            if user is None:
                logger.warning(f"Cannot record tier for unknown account {account_id}")
                return
            await user_repo.update_user(user, {"subscription_status": SubscriptionTier.resolve(tier).value})
            await db.commit()


class MockIdentityProvider(IdentityProvider):
    """Demo accounts kept in memory; any password is accepted"""

    def __init__(self):
        self._accounts: Dict[str, Account] = {}

    @staticmethod
    def _mock_id(email: str) -> str:
        return "mock-" + hashlib.sha1(email.lower().encode("utf-8")).hexdigest()[:12]

    async def sign_in(self, email: str, password: str) -> Account:
        email = email.lower()
        account = self._accounts.get(email)
        if account is None:
            account = Account(id=self._mock_id(email), email=email)
            self._accounts[email] = account
        return Account(**vars(account))

    async def sign_up(self, email: str, password: str, profile: Optional[dict] = None) -> Account:
        profile = profile or {}
        email = email.lower()
        account = Account(
            id=self._mock_id(email),
            email=email,
            preferred_language=normalize_language(profile.get("preferred_language")),
        )
        self._accounts[email] = account
        return Account(**vars(account))

    async def sign_out(self, account_id: str) -> None:
        return None

    async def fetch_account(self, email: str) -> Optional[Account]:
        account = self._accounts.get(email.lower())
        return Account(**vars(account)) if account else None

    async def record_tier(self, account_id: str, tier: SubscriptionTier) -> None:
        for account in self._accounts.values():
            if account.id == account_id:
                account.tier = SubscriptionTier.resolve(tier)
