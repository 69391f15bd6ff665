"""
Access/refresh JWT issuance, verification and rotation.

Access tokens are stateless. Refresh tokens are signed with a separate
secret and stored on the account, one per account: issuing a new one
overwrites the old, so presenting a superseded token is detected as reuse.

Expiry is checked against the injected Clock rather than wall time.
"""
from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import timedelta

from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.constants import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE
from app.auth.security import tokens_equal
from app.clock import Clock
from app.config import Settings
from app.exceptions import AccountBlocked, ExpiredToken, InvalidSignature, TokenMismatch
from app.models import Account
from shared.constants import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    account_id: uuid.UUID
    role: Role


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    def __init__(self, db: AsyncSession, settings: Settings, clock: Clock) -> None:
        self._db = db
        self._settings = settings
        self._clock = clock

    # ── Issuance ──────────────────────────────────────────────────────────────

    def issue_access_token(self, account_id: uuid.UUID, role: Role) -> str:
        now = self._clock.now()
        payload = {
            "sub": str(account_id),
            "role": role.value,
            "type": ACCESS_TOKEN_TYPE,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self._settings.access_token_expire_seconds)).timestamp()),
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
        }
        return jwt.encode(payload, self._settings.jwt_secret, algorithm=self._settings.jwt_algorithm)

    async def issue_refresh_token(self, account: Account) -> str:
        """Sign a refresh token and persist it on the account, replacing the previous one."""
        now = self._clock.now()
        payload = {
            "sub": str(account.id),
            "type": REFRESH_TOKEN_TYPE,
            "jti": secrets.token_hex(16),
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self._settings.refresh_token_expire_seconds)).timestamp()),
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
        }
        token = jwt.encode(
            payload, self._settings.jwt_refresh_secret, algorithm=self._settings.jwt_algorithm
        )
        account.refresh_token = token
        await self._db.flush()
        return token

    async def issue_pair(self, account: Account) -> TokenPair:
        access = self.issue_access_token(account.id, account.role)
        refresh = await self.issue_refresh_token(account)
        return TokenPair(access_token=access, refresh_token=refresh)

    # ── Verification ──────────────────────────────────────────────────────────

    def _decode(self, token: str, secret: str, expected_type: str) -> dict:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._settings.jwt_algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidSignature() from exc

        if payload.get("type") != expected_type:
            raise InvalidSignature()
        exp = payload.get("exp")
        if not isinstance(exp, int):
            raise InvalidSignature()
        if self._clock.now().timestamp() >= exp:
            raise ExpiredToken()
        return payload

    @staticmethod
    def _subject(payload: dict) -> uuid.UUID:
        try:
            return uuid.UUID(payload["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidSignature() from exc

    def verify(self, token: str) -> TokenClaims:
        """Validate an access token. Raises ExpiredToken or InvalidSignature."""
        payload = self._decode(token, self._settings.jwt_secret, ACCESS_TOKEN_TYPE)
        try:
            role = Role(payload.get("role"))
        except ValueError as exc:
            raise InvalidSignature() from exc
        return TokenClaims(account_id=self._subject(payload), role=role)

    # ── Rotation / revocation ─────────────────────────────────────────────────

    async def rotate(self, old_refresh_token: str) -> TokenPair:
        payload = self._decode(
            old_refresh_token, self._settings.jwt_refresh_secret, REFRESH_TOKEN_TYPE
        )
        account = await self._db.get(Account, self._subject(payload))
        if account is None or not tokens_equal(account.refresh_token, old_refresh_token):
            logger.warning("Refresh token reuse or unknown account sub=%s", payload.get("sub"))
            raise TokenMismatch()
        if account.is_blocked:
            raise AccountBlocked()
        return await self.issue_pair(account)

    async def revoke(self, account: Account) -> None:
        account.refresh_token = None
        await self._db.flush()
