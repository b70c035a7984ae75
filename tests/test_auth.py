"""Tests for AuthService: registration, login, refresh rotation and replay detection."""

from datetime import timedelta

import pytest

from app.core.config import jwt_settings
from app.core.errors import (
    DuplicateResourceError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidTokenError,
    UnauthenticatedError,
)
from app.db.repositories.refresh_tokens import RefreshTokenRepository
from app.db.repositories.users import UserRepository
from app.features.authentication.schemas import LoginIn, LogoutIn, RefreshIn, RegisterIn
from app.features.authentication.services import AuthService
from app.security.tokens import TokenKind, decode_token, encode_token


@pytest.fixture
def auth(session) -> AuthService:
    return AuthService(
        user_repo=UserRepository(session),
        refresh_repo=RefreshTokenRepository(session),
        jwt_settings=jwt_settings,
    )


@pytest.fixture
def carol(auth):
    return auth.register(
        RegisterIn(email="Carol@Example.com", username="carol", password="carol-password")
    )


class TestRegisterLogin:
    def test_register_returns_session(self, carol) -> None:
        assert carol.user.email == "carol@example.com"
        assert carol.token_type == "bearer"
        assert carol.expires_in == int(jwt_settings.access_ttl.total_seconds())

    def test_duplicate_email(self, auth, carol) -> None:
        with pytest.raises(DuplicateResourceError):
            auth.register(RegisterIn(email="carol@example.com", username="carol2", password="whatever1"))

    def test_login(self, auth, carol) -> None:
        session = auth.login(LoginIn(email="carol@example.com", password="carol-password"))

        assert session.user.id == carol.user.id
        assert auth.authenticate(session.access_token) == carol.user.id

    def test_wrong_password(self, auth, carol) -> None:
        with pytest.raises(InvalidCredentialsError):
            auth.login(LoginIn(email="carol@example.com", password="nope-nope"))

    def test_concurrent_duplicate_hits_the_unique_constraint(self, auth, carol, monkeypatch) -> None:
        # les deux inscriptions ont passé le contrôle préalable avant l'INSERT
        monkeypatch.setattr(auth.user_repo, "get_by_email", lambda email: None)
        monkeypatch.setattr(auth.user_repo, "get_by_username", lambda username: None)

        with pytest.raises(DuplicateResourceError):
            auth.register(RegisterIn(email="carol@example.com", username="carol", password="carol-password"))

        monkeypatch.undo()
        assert auth.login(LoginIn(email="carol@example.com", password="carol-password")).user.id == carol.user.id


class TestAccessToken:
    def test_missing_token(self, auth) -> None:
        with pytest.raises(UnauthenticatedError):
            auth.authenticate(None)

    def test_refresh_token_is_not_an_access_token(self, auth, carol) -> None:
        with pytest.raises(UnauthenticatedError):
            auth.authenticate(carol.refresh_token)

    def test_garbage_token(self, auth) -> None:
        with pytest.raises(UnauthenticatedError):
            auth.authenticate("not.a.jwt")

    def test_access_token_carries_username(self, carol) -> None:
        claims = decode_token(carol.access_token, kind=TokenKind.ACCESS, settings=jwt_settings)

        assert claims["username"] == "carol"
        assert claims["sub"] == str(carol.user.id)

    def test_current_user_requires_matching_account(self, auth, carol) -> None:
        forged, _ = encode_token(carol.user.id, TokenKind.ACCESS, jwt_settings, username="someone-else")

        assert auth.get_current_user(access_token=carol.access_token).id == carol.user.id
        with pytest.raises(UnauthenticatedError):
            auth.get_current_user(access_token=forged)

    def test_token_older_than_account_is_rejected(self, auth, carol) -> None:
        user = auth.user_repo.get(carol.user.id)
        auth.user_repo.update(user, created_at=user.created_at + timedelta(minutes=5))

        with pytest.raises(UnauthenticatedError):
            auth.get_current_user(access_token=carol.access_token)


class TestRefreshRotation:
    def test_rotation_issues_new_pair(self, auth, carol) -> None:
        pair = auth.refresh(RefreshIn(refresh_token=carol.refresh_token))

        assert pair.refresh_token != carol.refresh_token
        assert auth.authenticate(pair.access_token) == carol.user.id

    def test_replayed_token_revokes_the_whole_session(self, auth, carol) -> None:
        rotated = auth.refresh(RefreshIn(refresh_token=carol.refresh_token))

        with pytest.raises(InvalidOrExpiredTokenError):
            auth.refresh(RefreshIn(refresh_token=carol.refresh_token))

        # le token légitime issu de la rotation est révoqué lui aussi
        with pytest.raises(InvalidOrExpiredTokenError):
            auth.refresh(RefreshIn(refresh_token=rotated.refresh_token))

    def test_access_token_cannot_refresh(self, auth, carol) -> None:
        with pytest.raises(InvalidOrExpiredTokenError):
            auth.refresh(RefreshIn(refresh_token=carol.access_token))


class TestLogout:
    def test_logout_revokes_refresh(self, auth, carol) -> None:
        auth.log_out(LogoutIn(refresh_token=carol.refresh_token))

        with pytest.raises(InvalidOrExpiredTokenError):
            auth.refresh(RefreshIn(refresh_token=carol.refresh_token))

    def test_logout_is_idempotent(self, auth, carol) -> None:
        auth.log_out(LogoutIn(refresh_token=carol.refresh_token))
        auth.log_out(LogoutIn(refresh_token=carol.refresh_token))

    def test_logout_with_invalid_token(self, auth) -> None:
        with pytest.raises(InvalidTokenError):
            auth.log_out(LogoutIn(refresh_token="garbage"))
