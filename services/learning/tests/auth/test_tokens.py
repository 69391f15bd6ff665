import uuid

import pytest
from jose import jwt

from app.exceptions import AccountBlocked, ExpiredToken, InvalidSignature, TokenMismatch
from shared.constants import Role


@pytest.mark.asyncio
async def test_access_token_round_trip(tokens, learner) -> None:
    token = tokens.issue_access_token(learner.id, learner.role)
    claims = tokens.verify(token)
    assert claims.account_id == learner.id
    assert claims.role is Role.LEARNER


@pytest.mark.asyncio
async def test_access_token_expires_on_injected_clock(tokens, learner, clock, settings) -> None:
    token = tokens.issue_access_token(learner.id, learner.role)
    clock.advance(seconds=settings.access_token_expire_seconds - 1)
    tokens.verify(token)
    clock.advance(seconds=1)
    with pytest.raises(ExpiredToken):
        tokens.verify(token)


@pytest.mark.asyncio
async def test_tampered_token_is_invalid_signature(tokens, learner) -> None:
    token = tokens.issue_access_token(learner.id, learner.role)
    header, payload, signature = token.split(".")
    flipped = signature[:-2] + ("A" if signature[-2] != "A" else "B") + signature[-1]
    with pytest.raises(InvalidSignature):
        tokens.verify(".".join([header, payload, flipped]))


@pytest.mark.asyncio
async def test_token_signed_with_other_secret_is_rejected(tokens, settings, clock) -> None:
    forged = jwt.encode(
        {
            "sub": str(uuid.uuid4()),
            "role": "admin",
            "type": "access",
            "exp": int(clock.now().timestamp()) + 60,
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
        },
        "not-the-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidSignature):
        tokens.verify(forged)


@pytest.mark.asyncio
async def test_refresh_token_cannot_be_used_as_access_token(tokens, learner) -> None:
    refresh = await tokens.issue_refresh_token(learner)
    with pytest.raises(InvalidSignature):
        tokens.verify(refresh)


@pytest.mark.asyncio
async def test_issue_refresh_token_persists_on_account(tokens, learner) -> None:
    first = await tokens.issue_refresh_token(learner)
    assert learner.refresh_token == first
    second = await tokens.issue_refresh_token(learner)
    assert second != first
    assert learner.refresh_token == second


@pytest.mark.asyncio
async def test_rotate_returns_new_pair_and_supersedes_old(tokens, learner) -> None:
    old = await tokens.issue_refresh_token(learner)
    pair = await tokens.rotate(old)

    assert tokens.verify(pair.access_token).account_id == learner.id
    assert pair.refresh_token != old
    assert learner.refresh_token == pair.refresh_token

    # Presenting the superseded token again is treated as reuse
    with pytest.raises(TokenMismatch):
        await tokens.rotate(old)


@pytest.mark.asyncio
async def test_rotate_after_revoke_is_mismatch(tokens, learner) -> None:
    refresh = await tokens.issue_refresh_token(learner)
    await tokens.revoke(learner)
    with pytest.raises(TokenMismatch):
        await tokens.rotate(refresh)


@pytest.mark.asyncio
async def test_rotate_rejects_expired_refresh_token(tokens, learner, clock, settings) -> None:
    refresh = await tokens.issue_refresh_token(learner)
    clock.advance(seconds=settings.refresh_token_expire_seconds)
    with pytest.raises(ExpiredToken):
        await tokens.rotate(refresh)


@pytest.mark.asyncio
async def test_rotate_rejects_blocked_account(tokens, make_account) -> None:
    account = await make_account("blocked@example.com")
    refresh = await tokens.issue_refresh_token(account)
    account.is_blocked = True
    with pytest.raises(AccountBlocked):
        await tokens.rotate(refresh)
