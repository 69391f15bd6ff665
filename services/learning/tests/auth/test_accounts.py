import pytest

from app.auth.security import verify_secret
from app.exceptions import (
    AccountAlreadyExists,
    AccountBlocked,
    CodeNotFound,
    InstructorNotApproved,
    InsufficientRole,
    InvalidCredentials,
    PasswordMismatch,
    PasswordNotSet,
    ResetNotAuthorized,
    TokenMismatch,
)
from app.models import InstructorStatus, OTPPurpose
from conftest import PASSWORD
from shared.constants import Role


async def _register(accounts, otp, mailer, email: str, role: Role = Role.LEARNER):
    await otp.request_code(email, OTPPurpose.REGISTRATION)
    return await accounts.register(
        email, mailer.last_code(email.lower()), "s3cure-passw0rd", "New Person", role
    )


# ── Registration ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_register_learner_issues_tokens(accounts, otp, mailer, tokens) -> None:
    account, pair = await _register(accounts, otp, mailer, "Fresh@Example.com")

    assert account.email == "fresh@example.com"
    assert account.role is Role.LEARNER
    assert account.is_verified is True
    assert account.account_status is None
    assert tokens.verify(pair.access_token).account_id == account.id


@pytest.mark.asyncio
async def test_register_instructor_starts_pending(accounts, otp, mailer) -> None:
    account, _ = await _register(accounts, otp, mailer, "new.teacher@example.com", Role.INSTRUCTOR)
    assert account.account_status is InstructorStatus.PENDING


@pytest.mark.asyncio
async def test_admin_role_cannot_self_register(accounts) -> None:
    with pytest.raises(InsufficientRole):
        await accounts.register("boss@example.com", "123456", "s3cure-passw0rd", "Boss", Role.ADMIN)


@pytest.mark.asyncio
async def test_register_requires_a_pending_code(accounts) -> None:
    with pytest.raises(CodeNotFound):
        await accounts.register("nobody@example.com", "123456", "s3cure-passw0rd", "Nobody")


@pytest.mark.asyncio
async def test_register_twice_is_refused(accounts, otp, mailer) -> None:
    await _register(accounts, otp, mailer, "twice@example.com")
    with pytest.raises(AccountAlreadyExists):
        await otp.request_code("twice@example.com", OTPPurpose.REGISTRATION)


# ── Sign in ───────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_login_with_correct_password(accounts, learner) -> None:
    account, pair = await accounts.login(learner.email, PASSWORD)
    assert account.id == learner.id
    assert pair.refresh_token == learner.refresh_token


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("email", "password", "role"),
    [
        ("student@example.com", "wrong-password", Role.LEARNER),
        ("student@example.com", PASSWORD, Role.INSTRUCTOR),
        ("unknown@example.com", PASSWORD, Role.LEARNER),
    ],
)
async def test_login_failures_share_one_error(accounts, learner, email, password, role) -> None:
    with pytest.raises(InvalidCredentials):
        await accounts.login(email, password, role)


@pytest.mark.asyncio
async def test_blocked_learner_cannot_login(accounts, make_account) -> None:
    await make_account("blocked@example.com", blocked=True)
    with pytest.raises(AccountBlocked):
        await accounts.login("blocked@example.com", PASSWORD)


@pytest.mark.asyncio
async def test_rejected_instructor_cannot_login(accounts, make_account) -> None:
    await make_account("rejected@example.com", Role.INSTRUCTOR, status=InstructorStatus.REJECTED)
    with pytest.raises(InstructorNotApproved):
        await accounts.login("rejected@example.com", PASSWORD, Role.INSTRUCTOR)


@pytest.mark.asyncio
async def test_pending_instructor_can_login(accounts, make_account) -> None:
    await make_account("pending@example.com", Role.INSTRUCTOR, status=InstructorStatus.PENDING)
    account, _ = await accounts.login("pending@example.com", PASSWORD, Role.INSTRUCTOR)
    assert account.account_status is InstructorStatus.PENDING


@pytest.mark.asyncio
async def test_federated_login_creates_then_finds(accounts) -> None:
    first, _, created = await accounts.federated_login("sso.user@example.com", "Sso User")
    again, _, created_again = await accounts.federated_login("SSO.User@example.com", "Sso User")

    assert created is True
    assert created_again is False
    assert again.id == first.id
    assert first.password_hash is None


@pytest.mark.asyncio
async def test_logout_revokes_refresh_token(accounts, tokens, learner) -> None:
    _, pair = await accounts.login(learner.email, PASSWORD)
    await accounts.logout(learner.id)
    with pytest.raises(TokenMismatch):
        await tokens.rotate(pair.refresh_token)


# ── Passwords ─────────────────────────────────────────────────────────────────


async def _grant_reset(otp, mailer, email: str) -> None:
    await otp.request_code(email, OTPPurpose.PASSWORD_RESET)
    await otp.verify_code(email, mailer.last_code(email), OTPPurpose.PASSWORD_RESET)


@pytest.mark.asyncio
async def test_reset_password_consumes_grant(accounts, otp, mailer, learner) -> None:
    await _grant_reset(otp, mailer, learner.email)
    await accounts.reset_password(learner.email, "brand-new-pass", "brand-new-pass")

    assert verify_secret("brand-new-pass", learner.password_hash)
    assert learner.reset_authorized_at is None
    assert learner.refresh_token is None
    with pytest.raises(ResetNotAuthorized):
        await accounts.reset_password(learner.email, "another-pass", "another-pass")


@pytest.mark.asyncio
async def test_reset_password_without_grant(accounts, learner) -> None:
    with pytest.raises(ResetNotAuthorized):
        await accounts.reset_password(learner.email, "brand-new-pass", "brand-new-pass")


@pytest.mark.asyncio
async def test_reset_grant_expires(accounts, otp, mailer, learner, clock, settings) -> None:
    await _grant_reset(otp, mailer, learner.email)
    clock.advance(seconds=settings.reset_grant_expire_seconds)
    with pytest.raises(ResetNotAuthorized):
        await accounts.reset_password(learner.email, "brand-new-pass", "brand-new-pass")


@pytest.mark.asyncio
async def test_reset_password_confirmation_must_match(accounts, learner) -> None:
    with pytest.raises(PasswordMismatch):
        await accounts.reset_password(learner.email, "brand-new-pass", "brand-new-pazz")


@pytest.mark.asyncio
async def test_change_password(accounts, learner) -> None:
    with pytest.raises(InvalidCredentials):
        await accounts.change_password(learner.id, "not-it", "brand-new-pass")

    await accounts.change_password(learner.id, PASSWORD, "brand-new-pass")
    await accounts.login(learner.email, "brand-new-pass")


@pytest.mark.asyncio
async def test_change_password_needs_a_password(accounts) -> None:
    account, _, _ = await accounts.federated_login("sso.only@example.com", "Sso Only")
    with pytest.raises(PasswordNotSet):
        await accounts.change_password(account.id, "anything", "brand-new-pass")


# ── Blocking ──────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_set_blocked_toggles_learner(accounts, learner) -> None:
    await accounts.login(learner.email, PASSWORD)
    blocked = await accounts.set_blocked(learner.id, True)
    assert blocked.is_blocked is True
    assert blocked.refresh_token is None

    unblocked = await accounts.set_blocked(learner.id, False)
    assert unblocked.is_blocked is False


@pytest.mark.asyncio
async def test_set_blocked_refuses_instructors(accounts, instructor) -> None:
    with pytest.raises(InsufficientRole):
        await accounts.set_blocked(instructor.id, True)
