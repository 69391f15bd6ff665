import re
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

import app.models  # noqa: F401 - register with Base
from app.auth.otp import OTPWorkflow
from app.auth.security import hash_secret
from app.auth.service import AccountService
from app.auth.tokens import TokenService
from app.config import Settings, get_settings
from app.dependencies import get_clock, get_mailer, get_payment_provider
from app.email import DeliveryError
from app.instructors.service import InstructorLifecycle
from app.lms.service import ContentHierarchy
from app.main import create_app
from app.models import Account, InstructorStatus
from app.payments.razorpay import ProviderOrder
from app.payments.service import PaymentGateway
from app.progress.service import ProgressionEngine
from app.rate_limit import limiter
from shared.constants import Role
from shared.database.postgres import AsyncSessionFactory, Base, session_factory_for

PASSWORD = "correct-horse-battery"
RAZORPAY_SECRET = "rzp_test_secret"


# ── Fakes ─────────────────────────────────────────────────────────────────────


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current += timedelta(**delta)


class RecordingMailer:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, to: str, subject: str, body: str) -> None:
        self.sent.append((to, subject, body))

    def last_code(self, email: str) -> str:
        for to, _subject, body in reversed(self.sent):
            if to == email:
                return re.search(r"\b(\d{6})\b", body).group(1)
        raise AssertionError(f"no mail sent to {email}")


class FailingMailer(RecordingMailer):
    async def send(self, to: str, subject: str, body: str) -> None:
        raise DeliveryError("smtp unavailable")


class FakePaymentProvider:
    def __init__(self) -> None:
        self.orders: list[tuple[int, str, str]] = []

    async def create_order(self, amount: int, currency: str, receipt: str) -> ProviderOrder:
        self.orders.append((amount, currency, receipt))
        return ProviderOrder(id=f"order_{len(self.orders):04d}", amount=amount, currency=currency)


# ── Infrastructure ────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        learning_database_url="sqlite+aiosqlite://",
        jwt_secret="test-access-secret",
        jwt_refresh_secret="test-refresh-secret",
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret=RAZORPAY_SECRET,
        otp_expire_seconds=600,
        enforce_unlock_on_complete=True,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def payment_provider() -> FakePaymentProvider:
    return FakePaymentProvider()


@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'learning.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> AsyncSessionFactory:
    return session_factory_for(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory: AsyncSessionFactory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ── Components ────────────────────────────────────────────────────────────────


@pytest.fixture
def tokens(db_session, settings, clock) -> TokenService:
    return TokenService(db_session, settings, clock)


@pytest.fixture
def otp(db_session, mailer, clock, settings) -> OTPWorkflow:
    return OTPWorkflow(db_session, mailer, clock, settings)


@pytest.fixture
def accounts(db_session, otp, tokens, clock, settings) -> AccountService:
    return AccountService(db_session, otp, tokens, clock, settings)


@pytest.fixture
def lifecycle(db_session) -> InstructorLifecycle:
    return InstructorLifecycle(db_session)


@pytest.fixture
def hierarchy(db_session, lifecycle) -> ContentHierarchy:
    return ContentHierarchy(db_session, lifecycle)


@pytest.fixture
def gateway(db_session, payment_provider, clock) -> PaymentGateway:
    return PaymentGateway(db_session, payment_provider, RAZORPAY_SECRET, clock)


@pytest.fixture
def progression(db_session, clock, hierarchy, gateway) -> ProgressionEngine:
    return ProgressionEngine(db_session, clock, hierarchy, gateway, enforce_unlock_on_complete=True)


# ── Data builders ─────────────────────────────────────────────────────────────


@pytest.fixture
def make_account(db_session):
    async def _make(
        email: str,
        role: Role = Role.LEARNER,
        *,
        status: InstructorStatus | None = None,
        verified: bool = True,
        blocked: bool = False,
    ) -> Account:
        if role is Role.INSTRUCTOR and status is None:
            status = InstructorStatus.APPROVED
        account = Account(
            email=email,
            full_name=email.split("@")[0].title(),
            password_hash=hash_secret(PASSWORD),
            role=role,
            is_verified=verified,
            is_blocked=blocked,
            account_status=status,
        )
        db_session.add(account)
        await db_session.flush()
        return account

    return _make


@pytest_asyncio.fixture
async def instructor(make_account) -> Account:
    return await make_account("teacher@example.com", Role.INSTRUCTOR)


@pytest_asyncio.fixture
async def learner(make_account) -> Account:
    return await make_account("student@example.com")


@pytest.fixture
def make_course(hierarchy, instructor):
    async def _make(lecture_counts=(2, 1, 1), *, price: int = 499, title: str = "Python Basics"):
        course = await hierarchy.create_course(instructor.id, title=title, price=price)
        modules, lectures = [], []
        for index, count in enumerate(lecture_counts):
            module = await hierarchy.create_module(
                instructor.id, course.course_id, title=f"Module {index + 1}"
            )
            modules.append(module)
            lectures.append([
                await hierarchy.create_lecture(
                    instructor.id,
                    module.module_id,
                    title=f"Lecture {index + 1}.{n + 1}",
                    video_url=f"https://cdn.example.com/{index}/{n}.mp4",
                )
                for n in range(count)
            ])
        return SimpleNamespace(course=course, modules=modules, lectures=lectures)

    return _make


# ── HTTP ──────────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(
    session_factory, settings, clock, mailer, payment_provider
) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(settings)
    app.state.session_factory = session_factory
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_payment_provider] = lambda: payment_provider
    limiter.enabled = False
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    limiter.enabled = True
