"""
Unit tests for UserRepository and the database identity collaborator
"""
import pytest
import auth_utils
from crud.user import UserRepository
from auth_utils import (
    DEV_SECRET_FILENAME,
    load_dev_secret,
    hash_password,
    verify_password,
    create_session_token,
    create_expired_session_token,
    decode_session_token,
)
from backend.errors import AuthError
from models.session import SubscriptionTier
from services.identity_service import DatabaseIdentityProvider, MockIdentityProvider


@pytest.mark.asyncio
async def test_create_and_get_user(test_db):
    """
    Test creating a new user and retrieving it by email.

    This test verifies:
    - User creation via UserRepository.create_user
    - User retrieval via UserRepository.get_user_by_email
    - Email is stored lowercased and defaults are applied
    """
    user_repo = UserRepository(test_db)

    test_email = "Test@Example.com"
    hashed_pwd = hash_password("test_password_123")

    created_user = await user_repo.create_user({
        "email": test_email,
        "hashed_password": hashed_pwd,
    })

    assert created_user is not None
    assert created_user.email == test_email.lower()
    assert created_user.hashed_password == hashed_pwd
    assert created_user.subscription_status == "free"
    assert created_user.preferred_language == "en"

    await test_db.commit()

    retrieved_user = await user_repo.get_user_by_email(test_email)
    assert retrieved_user is not None
    assert retrieved_user.id == created_user.id


@pytest.mark.asyncio
async def test_login_verification(test_db):
    """Password hashing round trip: the right password verifies, a wrong one does not"""
    user_repo = UserRepository(test_db)
    test_password = "secure_password_456"

    created_user = await user_repo.create_user({
        "email": "login_test@example.com",
        "hashed_password": hash_password(test_password),
    })
    await test_db.commit()

    assert created_user.hashed_password != test_password
    assert verify_password(test_password, created_user.hashed_password) is True
    assert verify_password("wrong_password", created_user.hashed_password) is False


@pytest.mark.asyncio
async def test_update_user_subscription_status(test_db):
    user_repo = UserRepository(test_db)
    user = await user_repo.create_user({
        "email": "tier@example.com",
        "hashed_password": hash_password("password1"),
    })

    updated = await user_repo.update_user(user, {"subscription_status": "active", "not_a_column": 1})

    assert updated.subscription_status == "active"
    assert not hasattr(updated, "not_a_column")


@pytest.mark.asyncio
async def test_database_identity_sign_up_then_sign_in(session_factory):
    identity = DatabaseIdentityProvider(session_factory)

    account = await identity.sign_up("New@Example.com", "password1", {"preferred_language": "es"})
    assert account.email == "new@example.com"
    assert account.tier == SubscriptionTier.FREE
    assert account.preferred_language == "es"

    signed_in = await identity.sign_in("new@example.com", "password1")
    assert signed_in.id == account.id


@pytest.mark.asyncio
async def test_database_identity_rejects_bad_credentials(session_factory):
    identity = DatabaseIdentityProvider(session_factory)
    await identity.sign_up("user@example.com", "password1")

    with pytest.raises(AuthError, match="Invalid email or password"):
        await identity.sign_in("user@example.com", "wrong-password")

    with pytest.raises(AuthError, match="Invalid email or password"):
        await identity.sign_in("nobody@example.com", "password1")


@pytest.mark.asyncio
async def test_database_identity_rejects_duplicate_email(session_factory):
    identity = DatabaseIdentityProvider(session_factory)
    await identity.sign_up("dupe@example.com", "password1")

    with pytest.raises(AuthError, match="already registered"):
        await identity.sign_up("DUPE@example.com", "password2")


@pytest.mark.asyncio
async def test_database_identity_records_tier(session_factory):
    identity = DatabaseIdentityProvider(session_factory)
    account = await identity.sign_up("tier@example.com", "password1")

    await identity.record_tier(account.id, SubscriptionTier.TRIALING)

    fetched = await identity.fetch_account("tier@example.com")
    assert fetched.tier == SubscriptionTier.TRIALING


@pytest.mark.asyncio
async def test_mock_identity_accepts_any_credentials():
    identity = MockIdentityProvider()

    first = await identity.sign_in("Someone@Example.com", "x")
    second = await identity.sign_in("someone@example.com", "y")

    assert first.id == second.id
    assert first.id.startswith("mock-")
    assert first.tier == SubscriptionTier.FREE


def test_session_token_round_trip():
    token = create_session_token("client-abc")
    assert decode_session_token(token) == "client-abc"


def test_dev_secret_is_stable_across_restarts(tmp_path):
    first = load_dev_secret(tmp_path)
    second = load_dev_secret(tmp_path)

    assert first == second
    assert (tmp_path / DEV_SECRET_FILENAME).read_text(encoding="utf-8") == first


def test_session_tokens_survive_restart_without_jwt_secret(tmp_path, monkeypatch):
    """Without JWT_SECRET_KEY, a cookie issued before a restart still verifies after it"""
    monkeypatch.setattr(auth_utils.settings, "jwt_secret_key", None)
    monkeypatch.setattr(auth_utils.settings, "state_dir", tmp_path)
    monkeypatch.setattr(auth_utils, "_fallback_secret", None)
    token = create_session_token("client-abc")

    # A new process starts with no cached secret
    monkeypatch.setattr(auth_utils, "_fallback_secret", None)

    assert decode_session_token(token) == "client-abc"


def test_expired_or_tampered_session_token_is_rejected():
    assert decode_session_token(create_expired_session_token("client-abc")) is None
    assert decode_session_token(create_session_token("client-abc") + "x") is None
    assert decode_session_token(None) is None
