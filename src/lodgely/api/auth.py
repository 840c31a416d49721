"""OIDC JWT authentication.

The identity provider issues RS256 tokens; we validate them against its
JWKS and resolve the ``sub`` claim to a local user row. The reservation
engine trusts the resulting user id as requester or owner.

Provides:
- verify_token(): Validates JWT and returns subject claim
- get_current_user(): FastAPI dependency for authenticated user context
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass
from typing import Any

import jwt
import requests
from fastapi import Depends, HTTPException, Request

_JWKS_CACHE_TTL = 600  # seconds


@dataclass
class CurrentUser:
    """Authenticated user context."""

    id: str
    external_subject: str
    email: str | None
    name: str | None


@dataclass(frozen=True)
class OidcSettings:
    issuer: str | None
    audience: str | None
    jwks_url: str | None
    authorized_parties: tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> OidcSettings:
        raw = os.environ.get("OIDC_AUTHORIZED_PARTIES", "")
        return cls(
            issuer=os.environ.get("OIDC_ISSUER"),
            audience=os.environ.get("OIDC_AUDIENCE"),
            jwks_url=os.environ.get("OIDC_JWKS_URL"),
            authorized_parties=tuple(p.strip() for p in raw.split(",") if p.strip()),
        )

    @property
    def configured(self) -> bool:
        return bool(self.issuer and self.audience and self.jwks_url)


class JwksCache:
    """Thread-safe JWKS cache with TTL and forced refresh on unknown kid."""

    def __init__(self, ttl: float = _JWKS_CACHE_TTL) -> None:
        self.ttl = ttl
        self._jwks: dict[str, Any] | None = None
        self._fetched_at: float = 0
        self._lock = threading.Lock()

    def clear(self) -> None:
        with self._lock:
            self._jwks = None
            self._fetched_at = 0

    def get(self, jwks_url: str, *, force_refresh: bool = False) -> dict[str, Any]:
        with self._lock:
            now = time.time()
            fresh = self._jwks is not None and (now - self._fetched_at) < self.ttl
            if fresh and not force_refresh:
                return self._jwks

            try:
                resp = requests.get(jwks_url, timeout=10)
                resp.raise_for_status()
                self._jwks = resp.json()
            except requests.RequestException:
                raise HTTPException(status_code=503, detail="Auth temporarily unavailable")
            self._fetched_at = now
            return self._jwks

    def find_key(self, jwks_url: str, kid: str) -> dict[str, Any] | None:
        key = _find_key(self.get(jwks_url), kid)
        if key is None:
            # Key may have rotated since the last fetch
            key = _find_key(self.get(jwks_url, force_refresh=True), kid)
        return key


_jwks_cache = JwksCache()


def _find_key(jwks: dict[str, Any], kid: str) -> dict[str, Any] | None:
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    return None


def _decode(token: str, jwk_data: dict[str, Any], settings: OidcSettings) -> dict[str, Any]:
    try:
        public_key = jwt.algorithms.RSAAlgorithm.from_jwk(jwk_data)
    except (ValueError, TypeError, jwt.InvalidKeyError):
        raise HTTPException(status_code=401, detail="Invalid token")

    return jwt.decode(
        token,
        public_key,
        algorithms=["RS256"],
        issuer=settings.issuer,
        audience=settings.audience,
        options={"require": ["exp", "iss", "aud", "sub"]},
    )


def verify_token(token: str) -> str:
    """Verify JWT and return its subject claim.

    Raises:
        HTTPException: 401 if the token is invalid or OIDC is not configured,
            503 if the JWKS cannot be fetched.
    """
    settings = OidcSettings.from_env()
    if not settings.configured:
        raise HTTPException(status_code=401, detail="OIDC not configured")

    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except jwt.exceptions.DecodeError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not kid:
        raise HTTPException(status_code=401, detail="Invalid token")

    key_data = _jwks_cache.find_key(settings.jwks_url, kid)
    if key_data is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        payload = _decode(token, key_data, settings)
    except jwt.InvalidSignatureError:
        # Stale key with a reused kid: refetch once and retry
        jwks = _jwks_cache.get(settings.jwks_url, force_refresh=True)
        key_data = _find_key(jwks, kid)
        if key_data is None:
            raise HTTPException(status_code=401, detail="Invalid token")
        try:
            payload = _decode(token, key_data, settings)
        except jwt.InvalidTokenError:
            raise HTTPException(status_code=401, detail="Invalid token")
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if settings.authorized_parties and "azp" in payload:
        if payload["azp"] not in settings.authorized_parties:
            raise HTTPException(status_code=401, detail="Invalid token")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Invalid token")
    return sub


def _extract_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    return parts[1]


def _get_user_from_db(external_subject: str) -> CurrentUser | None:
    from lodgely.infra.db import txn

    with txn() as cur:
        cur.execute(
            "SELECT id, external_subject, email, name FROM users WHERE external_subject = %s",
            (external_subject,),
        )
        row = cur.fetchone()
        if row is None:
            return None
        return CurrentUser(
            id=str(row[0]),
            external_subject=row[1],
            email=row[2],
            name=row[3],
        )


def get_current_user(request: Request) -> CurrentUser:
    """FastAPI dependency: authenticated user.

    Raises:
        HTTPException: 401 if token invalid/missing, 403 if user not found.
    """
    token = _extract_bearer_token(request)
    sub = verify_token(token)

    user = _get_user_from_db(sub)
    if user is None:
        raise HTTPException(status_code=403, detail="User not found")
    return user


# Dependency alias for cleaner imports
CurrentUserDep = Depends(get_current_user)
