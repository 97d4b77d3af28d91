"""
Admin sign-in and bearer-token checks.

Admins are looked up in an ``AdminDirectory``; today it is seeded with the
single identity from config, but callers only ever go through
``authenticate`` so more accounts can be added without touching the routes.
Tokens are stateless HS256 JWTs and stay valid until they expire.
"""

import hmac
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

import jwt
from fastapi import Header, HTTPException

import config
from schemas import AdminIdentity

logger = logging.getLogger(__name__)

NO_TOKEN = "No authentication token, access denied"
INVALID_TOKEN = "Token is invalid or expired"


class AdminDirectory:
    def __init__(self):
        self._accounts: Dict[str, tuple] = {}

    def add(self, identity: AdminIdentity, password: str) -> None:
        self._accounts[identity.username] = (identity, password)

    def authenticate(self, username: str, password: str) -> Optional[AdminIdentity]:
        entry = self._accounts.get(username)
        if entry is None:
            return None
        identity, expected = entry
        if not hmac.compare_digest(password.encode(), expected.encode()):
            return None
        return identity


admins = AdminDirectory()
admins.add(
    AdminIdentity(username=config.ADMIN_USERNAME, email=config.ADMIN_EMAIL, role="admin"),
    config.ADMIN_PASSWORD,
)


def create_access_token(identity: AdminIdentity) -> str:
    payload = identity.model_dump()
    payload["exp"] = datetime.utcnow() + timedelta(days=config.TOKEN_EXPIRES_DAYS)
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> AdminIdentity:
    payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    return AdminIdentity(**payload)


def require_admin(authorization: Optional[str] = Header(None)) -> AdminIdentity:
    """FastAPI dependency guarding every /api/admin route except login."""
    token = (authorization or "").replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=401, detail=NO_TOKEN)
    try:
        return decode_access_token(token)
    except (jwt.PyJWTError, ValueError) as e:
        logger.info(f"Rejected admin token: {e}")
        raise HTTPException(status_code=401, detail=INVALID_TOKEN)
