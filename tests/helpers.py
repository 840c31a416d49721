"""Shared test helpers (plain functions, not fixtures).

Importable from conftest.py and from individual test modules.
"""

from __future__ import annotations

import base64
import time
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

ISSUER = "https://id.example.com"
AUDIENCE = "lodgely-api"


def generate_rsa_keypair():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key, private_key.public_key()


def create_jwks(public_key, kid: str = "test-key-1") -> dict:
    numbers = public_key.public_numbers()

    def b64(n: int) -> str:
        raw = n.to_bytes((n.bit_length() + 7) // 8, "big")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    return {
        "keys": [
            {
                "kty": "RSA",
                "use": "sig",
                "alg": "RS256",
                "kid": kid,
                "n": b64(numbers.n),
                "e": b64(numbers.e),
            }
        ]
    }


def create_token(
    private_key,
    kid: str = "test-key-1",
    sub: str = "user-123",
    iss: str = ISSUER,
    aud: str = AUDIENCE,
    exp: int | None = None,
    azp: str | None = None,
) -> str:
    now = int(time.time())
    payload = {
        "sub": sub,
        "iss": iss,
        "aud": aud,
        "exp": exp if exp is not None else now + 3600,
        "iat": now,
    }
    if azp:
        payload["azp"] = azp
    return jwt.encode(payload, private_key, algorithm="RS256", headers={"kid": kid})


def request_row(**overrides: Any) -> dict[str, Any]:
    """A reservation_requests row as returned by the repository."""
    row: dict[str, Any] = {
        "id": "11111111-1111-1111-1111-111111111111",
        "property_id": "prop-1",
        "requester_id": "guest-1",
        "owner_id": "owner-1",
        "check_in": date(2030, 1, 10),
        "check_out": date(2030, 1, 15),
        "nights": 5,
        "guest_count": 2,
        "price_per_night_cents": 10000,
        "applied_discount_percent": Decimal("5.00"),
        "total_price_cents": 47500,
        "savings_cents": 2500,
        "currency": "BRL",
        "status": "pending",
        "message": None,
        "share_phone": False,
        "contact_phone": None,
        "response_message": None,
        "created_at": datetime(2029, 12, 1, 12, 0, tzinfo=timezone.utc),
        "decided_at": None,
    }
    row.update(overrides)
    return row
