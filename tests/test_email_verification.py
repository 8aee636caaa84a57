from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from vinyl_store.email_verification import EmailVerificationService, VerificationStatus, is_expired
from vinyl_store.models import EmailVerificationToken, User


def make_user(verified=False):
    return User(
        id="user-1",
        name="Ana",
        email="ana@example.com",
        password="hash",
        roles=["USER"],
        email_verified=verified,
    )


def make_token(expires_in: timedelta):
    return EmailVerificationToken(
        id="tok-1",
        user_id="user-1",
        token="abc",
        expires_at=datetime.now(timezone.utc) + expires_in,
    )


@pytest.fixture
def tokens():
    repo = AsyncMock()
    repo.save.side_effect = lambda token: token
    return repo


@pytest.fixture
def users():
    return AsyncMock()


@pytest.fixture
def mailer():
    m = MagicMock()
    m.send_async = AsyncMock()
    return m


@pytest.fixture
def service(tokens, users, mailer):
    return EmailVerificationService(tokens, users, mailer, verify_url="http://localhost/verify")


@pytest.mark.asyncio
async def test_create_token_replaces_previous(service, tokens):
    """
    Test case 1: Issuing a token drops the user's older tokens first.
    """
    token = await service.create_token_for_user(make_user(), ttl=timedelta(hours=1))

    tokens.delete_by_user_id.assert_awaited_once_with("user-1")
    tokens.save.assert_awaited_once()
    assert token.user_id == "user-1"
    assert token.token
    assert not is_expired(token)


@pytest.mark.asyncio
async def test_verification_email_contains_link(service, mailer):
    token = make_token(timedelta(hours=1))

    await service.send_verification_email(make_user(), token)

    to, subject, body = mailer.send_async.await_args.args
    assert to == "ana@example.com"
    assert subject == "Confirm your email"
    assert "http://localhost/verify?token=abc" in body


@pytest.mark.asyncio
async def test_verify_unknown_token(service, tokens):
    tokens.find_by_token.return_value = None

    assert await service.verify_token("nope") == VerificationStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_verify_expired_token_deletes_it(service, tokens, users):
    """
    Test case 2: An expired token is removed and the user stays unverified.
    """
    tokens.find_by_token.return_value = make_token(timedelta(minutes=-1))

    assert await service.verify_token("abc") == VerificationStatus.EXPIRED
    tokens.delete.assert_awaited_once_with("tok-1")
    users.save.assert_not_awaited()


@pytest.mark.asyncio
async def test_verify_marks_user_verified(service, tokens, users):
    user = make_user()
    tokens.find_by_token.return_value = make_token(timedelta(hours=1))
    users.get.return_value = user

    assert await service.verify_token("abc") == VerificationStatus.SUCCESS
    assert user.email_verified is True
    users.save.assert_awaited_once_with(user)
    tokens.delete_by_user_id.assert_awaited_once_with("user-1")


@pytest.mark.asyncio
async def test_verify_token_of_deleted_user(service, tokens, users):
    tokens.find_by_token.return_value = make_token(timedelta(hours=1))
    users.get.return_value = None

    assert await service.verify_token("abc") == VerificationStatus.NOT_FOUND


def test_naive_expiry_is_read_as_utc():
    token = EmailVerificationToken(
        id="t", user_id="u", token="x", expires_at=datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1)
    )
    assert not is_expired(token)
