from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from dataclasses import dataclass
from typing import Any, Literal

from fastapi import Header, HTTPException
from pydantic import BaseModel

from spiceledger.core.config import get_settings
from spiceledger.domain.errors import InvalidTokenError

Role = Literal["admin", "user"]
TokenType = Literal["access", "refresh"]

PASSWORD_SCHEME = "pbkdf2_sha256"
_JWT_HEADER = {"alg": "HS256", "typ": "JWT"}


class Principal(BaseModel):
    user_id: str
    role: Role = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 0


def hash_password(password: str, iterations: int | None = None) -> str:
    rounds = iterations or get_settings().password_hash_iterations
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), rounds).hex()
    return f"{PASSWORD_SCHEME}${rounds}${salt}${digest}"


def verify_password(password: str, stored: str) -> bool:
    try:
        scheme, rounds, salt, digest = stored.split("$", 3)
        if scheme != PASSWORD_SCHEME:
            return False
        candidate = hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            bytes.fromhex(salt),
            int(rounds),
        ).hex()
    except ValueError:
        return False
    return hmac.compare_digest(candidate, digest)


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode((text + padding).encode("ascii"))


def _segment(obj: dict) -> str:
    return _b64url_encode(json.dumps(obj, separators=(",", ":"), sort_keys=True).encode("utf-8"))


def _sign(signing_input: bytes) -> bytes:
    return hmac.new(get_settings().jwt_secret.encode("utf-8"), signing_input, hashlib.sha256).digest()


def encode_token(claims: dict[str, Any]) -> str:
    signing_input = f"{_segment(_JWT_HEADER)}.{_segment(claims)}"
    signature = _sign(signing_input.encode("ascii"))
    return f"{signing_input}.{_b64url_encode(signature)}"


def decode_token(token: str, expected_type: TokenType = "access") -> dict[str, Any]:
    parts = token.split(".")
    if len(parts) != 3:
        raise InvalidTokenError("malformed token")
    header_b64, claims_b64, signature_b64 = parts

    try:
        header = json.loads(_b64url_decode(header_b64))
        claims = json.loads(_b64url_decode(claims_b64))
        signature = _b64url_decode(signature_b64)
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidTokenError("invalid token encoding") from exc

    if not isinstance(header, dict) or header.get("alg") != "HS256":
        raise InvalidTokenError("unsupported token algorithm")
    expected = _sign(f"{header_b64}.{claims_b64}".encode("ascii"))
    if not hmac.compare_digest(signature, expected):
        raise InvalidTokenError("token signature mismatch")
    if not isinstance(claims, dict):
        raise InvalidTokenError("invalid token claims")
    if int(time.time()) > int(claims.get("exp", 0)):
        raise InvalidTokenError("token expired")
    if claims.get("type") != expected_type:
        raise InvalidTokenError("wrong token type")
    if not claims.get("user_id"):
        raise InvalidTokenError("invalid user_id in token")
    return claims


def issue_token_pair(user_id: str, role: str) -> TokenPair:
    settings = get_settings()
    now = int(time.time())
    access = encode_token(
        {
            "user_id": user_id,
            "role": role,
            "type": "access",
            "iat": now,
            "exp": now + settings.access_token_ttl_seconds,
        }
    )
    refresh = encode_token(
        {
            "user_id": user_id,
            "role": role,
            "type": "refresh",
            "jti": secrets.token_hex(8),
            "iat": now,
            "exp": now + settings.refresh_token_ttl_seconds,
        }
    )
    return TokenPair(access_token=access, refresh_token=refresh, expires_in=settings.access_token_ttl_seconds)


def _auth_error(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def _extract_bearer(authorization: str) -> str:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _auth_error("invalid authorization header format")
    return token.strip()


def principal_from_token(token: str) -> Principal:
    try:
        claims = decode_token(token, expected_type="access")
    except InvalidTokenError as exc:
        raise _auth_error(str(exc)) from exc
    role = claims.get("role")
    return Principal(user_id=str(claims["user_id"]), role=role if role in {"admin", "user"} else "user")


def get_principal(authorization: str | None = Header(default=None)) -> Principal:
    if not authorization:
        raise _auth_error("missing authorization header")
    return principal_from_token(_extract_bearer(authorization))


def get_optional_principal(authorization: str | None = Header(default=None)) -> Principal | None:
    if not authorization:
        return None
    return principal_from_token(_extract_bearer(authorization))


def require_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="admins only")
