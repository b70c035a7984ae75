from datetime import datetime, timezone
from typing import Callable, Optional

import structlog
from jose import JWTError
from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    DuplicateResourceError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidTokenError,
    UnauthenticatedError,
)
from app.db.models.users import User
from app.db.repositories.users import UserRepository
from app.db.repositories.refresh_tokens import RefreshTokenRepository
from app.security.password import verify_password, hash_password
from app.security.tokens import Claims, JWTSettings, MintedPair, TokenKind, decode_token, mint_token_pair
from app.features.authentication.schemas import (
    RegisterIn,
    LoginIn,
    TokenPairOut,
    SessionOut,
    RefreshIn,
    LogoutIn,
)
from app.features.users.schemas import UserOut
from app.utils.clock import utcnow

log = structlog.get_logger(__name__)


class AuthService:
    """
    Service d'authentification : orchestre les repositories + tokens.
    Ne contient pas d'accès SQL direct et lève des AppError (converties en enveloppe JSON).

    Rotation des refresh tokens : chaque refresh révoque l'ancien (compare-and-rotate)
    et en émet un nouveau. Un token déjà tourné qui revient = rejeu → toute la famille
    de tokens de l'utilisateur est révoquée.
    """

    def __init__(
        self,
        *,
        user_repo: UserRepository,
        refresh_repo: RefreshTokenRepository,
        jwt_settings: JWTSettings,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.user_repo = user_repo
        self.refresh_repo = refresh_repo
        self.jwt = jwt_settings
        self.now_fn = now_fn

    # ---------- Helpers ----------

    def _issue(self, user: User, *, ip: Optional[str], user_agent: Optional[str], commit: bool = True) -> MintedPair:
        pair = mint_token_pair(user.id, user.username, self.jwt)
        # Persist refresh (révocable)
        self.refresh_repo.create(
            commit=commit,
            jti=pair["refresh_jti"],
            user_id=user.id,
            expires_at=self.now_fn() + self.jwt.refresh_ttl,
            user_agent=user_agent,
            ip=ip,
        )
        return pair

    @staticmethod
    def _token_out(pair: MintedPair) -> TokenPairOut:
        return TokenPairOut(
            access_token=pair["access_token"],
            refresh_token=pair["refresh_token"],
            token_type=pair["token_type"],
            expires_in=pair["expires_in"],
        )

    def _session_out(self, user: User, pair: MintedPair) -> SessionOut:
        return SessionOut(**self._token_out(pair).model_dump(), user=UserOut.model_validate(user))

    # ---------- Register ----------
    def register(self, payload: RegisterIn, *, ip: Optional[str] = None, user_agent: Optional[str] = None) -> SessionOut:
        if self.user_repo.get_by_email(payload.email):
            raise DuplicateResourceError("Email already registered")
        if self.user_repo.get_by_username(payload.username):
            raise DuplicateResourceError("Username already taken")

        try:
            user = self.user_repo.create(
                email=payload.email,
                username=payload.username,
                hashed_password=hash_password(payload.password),
            )
        except IntegrityError:
            # inscription concurrente : la contrainte unique a tranché
            self.user_repo.session.rollback()
            raise DuplicateResourceError("Email or username already registered")
        pair = self._issue(user, ip=ip, user_agent=user_agent)
        log.info("user_registered", user_id=user.id)
        return self._session_out(user, pair)

    # ---------- Login ----------
    def login(self, payload: LoginIn, *, ip: Optional[str] = None, user_agent: Optional[str] = None) -> SessionOut:
        user = self.user_repo.get_by_email(payload.email)
        if not user or not verify_password(payload.password, user.hashed_password):
            # Ne pas révéler si l'utilisateur existe
            log.info("login_failed", ip=ip)
            raise InvalidCredentialsError()

        pair = self._issue(user, ip=ip, user_agent=user_agent)
        log.info("login_succeeded", user_id=user.id)
        return self._session_out(user, pair)

    # ---------- Refresh (rotation) ----------
    def refresh(self, payload: RefreshIn, *, ip: Optional[str] = None, user_agent: Optional[str] = None) -> TokenPairOut:
        # 1) Décoder et valider type
        try:
            decoded = decode_token(payload.refresh_token, kind=TokenKind.REFRESH, settings=self.jwt)
        except JWTError:
            raise InvalidOrExpiredTokenError()

        jti = decoded["jti"]

        # 2) Vérifier en base (existe, non expiré)
        rec = self.refresh_repo.get_by_jti(jti)
        if not rec or rec.expires_at <= self.now_fn():
            raise InvalidOrExpiredTokenError()
        if rec.revoked_at is not None and rec.replaced_by is None:
            # révoqué par logout : refus simple, pas un rejeu
            raise InvalidOrExpiredTokenError()

        # 3) Vérifier l'utilisateur
        user = self.user_repo.get(int(decoded["sub"]))
        if not user or user.id != rec.user_id:
            raise InvalidOrExpiredTokenError()

        # 4) Rotation : l'ancien n'est révoqué que s'il est encore actif
        pair = mint_token_pair(user.id, user.username, self.jwt)
        if not self.refresh_repo.compare_and_revoke(jti, replaced_by=pair["refresh_jti"]):
            self.refresh_repo.session.rollback()
            revoked = self.refresh_repo.revoke_all_for_user(user.id)
            log.warning("refresh_token_replay", user_id=user.id, jti=jti, revoked=revoked)
            raise InvalidOrExpiredTokenError()

        self.refresh_repo.create(
            commit=False,
            jti=pair["refresh_jti"],
            user_id=user.id,
            expires_at=self.now_fn() + self.jwt.refresh_ttl,
            user_agent=user_agent,
            ip=ip,
        )
        self.refresh_repo.session.commit()
        log.info("refresh_token_rotated", user_id=user.id)
        return self._token_out(pair)

    # ---------- Logout ----------
    def log_out(self, payload: LogoutIn) -> None:
        """Révoque le refresh token ; idempotent si déjà révoqué."""
        try:
            decoded = decode_token(payload.refresh_token, kind=TokenKind.REFRESH, settings=self.jwt)
        except JWTError:
            raise InvalidTokenError()

        rec = self.refresh_repo.get_by_jti(decoded["jti"])
        if not rec:
            raise InvalidTokenError()
        self.refresh_repo.revoke(rec.jti)
        log.info("logged_out", user_id=rec.user_id)

    # ---------- Identité depuis access token ----------
    def _access_claims(self, access_token: Optional[str]) -> Claims:
        if not access_token:
            raise UnauthenticatedError()
        try:
            return decode_token(access_token, kind=TokenKind.ACCESS, settings=self.jwt)
        except JWTError:
            raise UnauthenticatedError("Invalid or expired access token")

    def authenticate(self, access_token: Optional[str]) -> int:
        """Résout un access token en user_id, ou lève UnauthenticatedError."""
        return int(self._access_claims(access_token)["sub"])

    def get_current_user(self, *, access_token: str) -> User:
        """
        Comme authenticate, mais exige que le token ait été émis pour ce compte :
        le compte existe, porte le même username et n'a pas été créé après le token.
        """
        claims = self._access_claims(access_token)
        user = self.user_repo.get(int(claims["sub"]))
        if not user:
            # compte supprimé après émission du token
            raise UnauthenticatedError("User no longer exists")
        created = int(user.created_at.replace(tzinfo=timezone.utc).timestamp())
        if claims.get("username") != user.username or claims.get("iat", 0) < created:
            log.warning("access_token_account_mismatch", user_id=user.id)
            raise UnauthenticatedError("Access token was issued for another account")
        return user
