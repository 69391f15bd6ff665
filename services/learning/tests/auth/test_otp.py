import asyncio

import pytest
from sqlalchemy import func, select

from app.auth.otp import OTPWorkflow
from app.exceptions import (
    AccountAlreadyExists,
    AccountNotFound,
    CodeExpired,
    CodeMismatch,
    CodeNotFound,
    InvalidEmailFormat,
    NotificationDeliveryFailed,
)
from app.models import OneTimeCode, OTPPurpose
from conftest import FailingMailer, RecordingMailer

EMAIL = "new.learner@example.com"


async def _code_rows(db_session, email: str = EMAIL) -> int:
    return await db_session.scalar(
        select(func.count()).select_from(OneTimeCode).where(OneTimeCode.email == email)
    )


@pytest.mark.asyncio
async def test_request_then_verify_succeeds_exactly_once(otp, mailer, db_session) -> None:
    await otp.request_code(EMAIL, OTPPurpose.REGISTRATION)
    code = mailer.last_code(EMAIL)
    assert len(code) == 6

    await otp.verify_code(EMAIL, code, OTPPurpose.REGISTRATION)
    assert await _code_rows(db_session) == 0

    with pytest.raises(CodeNotFound):
        await otp.verify_code(EMAIL, code, OTPPurpose.REGISTRATION)


@pytest.mark.asyncio
async def test_code_is_stored_hashed(otp, mailer, db_session) -> None:
    await otp.request_code(EMAIL, OTPPurpose.REGISTRATION)
    row = await db_session.scalar(select(OneTimeCode).where(OneTimeCode.email == EMAIL))
    assert row.code_hash != mailer.last_code(EMAIL)


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["plainaddress", "no-at.example.com", "a@b", "sp ace@x.io"])
async def test_invalid_email_rejected_before_any_side_effect(otp, mailer, email) -> None:
    with pytest.raises(InvalidEmailFormat):
        await otp.request_code(email, OTPPurpose.REGISTRATION)
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_registration_code_refused_for_existing_account(otp, learner, mailer) -> None:
    with pytest.raises(AccountAlreadyExists):
        await otp.request_code(learner.email, OTPPurpose.REGISTRATION)
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_reset_code_requires_existing_account(otp) -> None:
    with pytest.raises(AccountNotFound):
        await otp.request_code("ghost@example.com", OTPPurpose.PASSWORD_RESET)


@pytest.mark.asyncio
async def test_wrong_code_is_mismatch_and_keeps_code_live(otp, mailer) -> None:
    await otp.request_code(EMAIL, OTPPurpose.REGISTRATION)
    code = mailer.last_code(EMAIL)
    wrong = "000000" if code != "000000" else "111111"

    with pytest.raises(CodeMismatch):
        await otp.verify_code(EMAIL, wrong, OTPPurpose.REGISTRATION)
    await otp.verify_code(EMAIL, code, OTPPurpose.REGISTRATION)


@pytest.mark.asyncio
async def test_code_expires_after_ttl(otp, mailer, clock, settings) -> None:
    await otp.request_code(EMAIL, OTPPurpose.REGISTRATION)
    code = mailer.last_code(EMAIL)
    clock.advance(seconds=settings.otp_expire_seconds)
    with pytest.raises(CodeExpired):
        await otp.verify_code(EMAIL, code, OTPPurpose.REGISTRATION)


@pytest.mark.asyncio
async def test_code_for_other_purpose_is_not_found(otp, mailer) -> None:
    await otp.request_code(EMAIL, OTPPurpose.REGISTRATION)
    with pytest.raises(CodeNotFound):
        await otp.verify_code(EMAIL, mailer.last_code(EMAIL), OTPPurpose.PASSWORD_RESET)


@pytest.mark.asyncio
async def test_resend_supersedes_previous_code(otp, mailer, db_session) -> None:
    await otp.request_code(EMAIL, OTPPurpose.REGISTRATION)
    first = mailer.last_code(EMAIL)
    await otp.resend(EMAIL, OTPPurpose.REGISTRATION)
    second = mailer.last_code(EMAIL)

    assert await _code_rows(db_session) == 1
    if first != second:
        with pytest.raises(CodeMismatch):
            await otp.verify_code(EMAIL, first, OTPPurpose.REGISTRATION)
    await otp.verify_code(EMAIL, second, OTPPurpose.REGISTRATION)


@pytest.mark.asyncio
async def test_resend_skips_existence_rules(otp, learner, mailer) -> None:
    await otp.resend(learner.email, OTPPurpose.REGISTRATION)
    assert mailer.sent[-1][0] == learner.email


@pytest.mark.asyncio
async def test_delivery_failure_surfaces_but_keeps_code(
    db_session, clock, settings
) -> None:
    failing = FailingMailer()
    workflow = OTPWorkflow(db_session, failing, clock, settings)

    with pytest.raises(NotificationDeliveryFailed):
        await workflow.request_code(EMAIL, OTPPurpose.REGISTRATION)
    await db_session.rollback()

    assert await _code_rows(db_session) == 1


@pytest.mark.asyncio
async def test_verified_reset_code_grants_reset(otp, mailer, learner, clock) -> None:
    await otp.request_code(learner.email, OTPPurpose.PASSWORD_RESET)
    await otp.verify_code(learner.email, mailer.last_code(learner.email), OTPPurpose.PASSWORD_RESET)
    assert learner.reset_authorized_at == clock.now()


# ── Concurrency ───────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_concurrent_verifications_consume_code_once(
    session_factory, otp, mailer, db_session, clock, settings
) -> None:
    await otp.request_code(EMAIL, OTPPurpose.REGISTRATION)
    code = mailer.last_code(EMAIL)

    async def verify() -> str:
        async with session_factory() as session:
            workflow = OTPWorkflow(session, mailer, clock, settings)
            try:
                await workflow.verify_code(EMAIL, code, OTPPurpose.REGISTRATION)
            except CodeNotFound:
                await session.rollback()
                return "gone"
            await session.commit()
            return "ok"

    outcomes = await asyncio.gather(verify(), verify())
    assert sorted(outcomes) == ["gone", "ok"]
    assert await _code_rows(db_session) == 0


@pytest.mark.asyncio
async def test_concurrent_requests_leave_one_live_code(
    session_factory, db_session, clock, settings
) -> None:
    mailer = RecordingMailer()

    async def request() -> None:
        async with session_factory() as session:
            await OTPWorkflow(session, mailer, clock, settings).request_code(
                EMAIL, OTPPurpose.REGISTRATION
            )

    await asyncio.gather(request(), request())

    assert await _code_rows(db_session) == 1
    assert len(mailer.sent) == 2
