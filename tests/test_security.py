import jwt
import pytest

from vinyl_store.security import (
    ANONYMOUS,
    InvalidToken,
    JwtService,
    RequestContext,
    hash_password,
    verify_password,
)


@pytest.fixture
def jwt_service():
    return JwtService(secret="test-secret-key-with-enough-length", ttl_seconds=60, issuer="v-disk")


def test_token_round_trip(jwt_service):
    """
    Test case 1: Generated tokens validate and keep subject and extra claims.
    """
    token = jwt_service.generate_token("ana@example.com", {"userId": "u-1", "roles": ["USER"]})

    claims = jwt_service.validate_token(token)

    assert claims["sub"] == "ana@example.com"
    assert claims["userId"] == "u-1"
    assert claims["roles"] == ["USER"]
    assert claims["iss"] == "v-disk"


def test_wrong_issuer_is_rejected(jwt_service):
    other = JwtService(secret=jwt_service.secret, ttl_seconds=60, issuer="someone-else")
    token = other.generate_token("ana@example.com")

    with pytest.raises(InvalidToken):
        jwt_service.validate_token(token)


def test_expired_token_is_rejected(jwt_service):
    expired = JwtService(secret=jwt_service.secret, ttl_seconds=-10, issuer="v-disk")
    token = expired.generate_token("ana@example.com")

    with pytest.raises(InvalidToken):
        jwt_service.validate_token(token)


def test_wrong_secret_is_rejected(jwt_service):
    token = jwt.encode({"sub": "x", "iss": "v-disk", "exp": 9999999999}, "another-secret-key-long-enough!!", algorithm="HS256")

    with pytest.raises(InvalidToken):
        jwt_service.validate_token(token)


def test_password_hashing():
    """
    Test case 2: bcrypt hashes verify only against the original password.
    """
    hashed = hash_password("password123")

    assert hashed != "password123"
    assert verify_password("password123", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_against_non_bcrypt_value():
    assert verify_password("password123", "plain-text") is False


def test_request_context_roles():
    ctx = RequestContext(user_id="u-1", email="ana@example.com", roles=frozenset({"ADMIN"}))

    assert ctx.authenticated
    assert ctx.has_role("ADMIN")
    assert not ctx.has_role("USER")
    assert not ANONYMOUS.authenticated
