"""
➡️ But : émettre et vérifier les JWT de l'API (access court + refresh long).

Un access token n'est jamais persisté : il est vérifié par signature seule.
Un refresh token porte un `jti` enregistré en base (table refresh_tokens) pour
pouvoir être tourné, révoqué, et détecté en cas de rejeu.

🔹 Avantages :

Les services ne manipulent que `mint_token_pair` et `decode_token`.

`typ` empêche d'utiliser un refresh token comme access token (et inversement).
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Tuple, TypedDict

from jose import JWTError, jwt


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class JWTSettings:
    """Paramètres de signature ; construits depuis `Settings` dans app.core.config."""
    secret: str
    issuer: str = "videomemo-api"
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=30)

    def ttl_for(self, kind: TokenKind) -> timedelta:
        return self.access_ttl if kind is TokenKind.ACCESS else self.refresh_ttl


class Claims(TypedDict, total=False):
    iss: str
    sub: str        # user id (str, imposé par la RFC)
    username: str   # access token uniquement
    typ: str        # TokenKind
    jti: str
    iat: int
    exp: int


class MintedPair(TypedDict):
    access_token: str
    refresh_token: str
    refresh_jti: str    # à persister côté serveur
    token_type: str
    expires_in: int     # secondes, access token


def encode_token(user_id: int, kind: TokenKind, settings: JWTSettings, *, username: Optional[str] = None) -> Tuple[str, str]:
    """Signe un token du type demandé ; renvoie (token, jti)."""
    jti = uuid.uuid4().hex
    issued = datetime.now(timezone.utc)
    claims: Claims = {
        "iss": settings.issuer,
        "sub": str(user_id),
        "typ": kind.value,
        "jti": jti,
        "iat": int(issued.timestamp()),
        "exp": int((issued + settings.ttl_for(kind)).timestamp()),
    }
    if username is not None:
        claims["username"] = username
    return jwt.encode(claims, settings.secret, algorithm=settings.algorithm), jti


def decode_token(token: str, *, kind: TokenKind, settings: JWTSettings) -> Claims:
    """
    Vérifie signature, expiration, émetteur et type.
    Lève JWTError si l'un des contrôles échoue (à convertir en AppError par l'appelant).
    """
    claims: Claims = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
    )
    if claims.get("typ") != kind.value or not claims.get("sub") or not claims.get("jti"):
        raise JWTError(f"Expected a {kind.value} token")
    return claims


def mint_token_pair(user_id: int, username: str, settings: JWTSettings) -> MintedPair:
    access_token, _ = encode_token(user_id, TokenKind.ACCESS, settings, username=username)
    refresh_token, refresh_jti = encode_token(user_id, TokenKind.REFRESH, settings)
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "refresh_jti": refresh_jti,
        "token_type": "bearer",
        "expires_in": int(settings.access_ttl.total_seconds()),
    }
