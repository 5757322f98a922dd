import os

# Must be set before education_api.config is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("LOG_FORMAT", "console")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from education_api import models  # noqa: E402,F401
from education_api.core.security import PasswordHasher, TokenService, TokenSettings  # noqa: E402
from education_api.db.base import Base  # noqa: E402
from education_api.services.auth_service import AuthService  # noqa: E402
from education_api.services.credential_store import SqlAlchemyCredentialStore  # noqa: E402
from education_api.services.email_service import EmailSender  # noqa: E402
from education_api.services.email_templates import EmailTemplateBuilder  # noqa: E402
from education_api.services.otp_service import OtpService  # noqa: E402

TEST_SECRET = "unit-test-signing-key-0123456789abcdef"


class FakeEmailSender(EmailSender):
    def __init__(self, result: bool = True) -> None:
        self.sent = []
        self.result = result

    async def send(self, message) -> bool:
        self.sent.append(message)
        return self.result


class FakeClock:
    def __init__(self, start: datetime = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now = self.now + timedelta(minutes=minutes)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session):
    return SqlAlchemyCredentialStore(session)


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_settings():
    return TokenSettings(secret_key=TEST_SECRET, issuer="test-issuer", audience="test-audience")


@pytest.fixture
def tokens(token_settings):
    return TokenService(token_settings)


@pytest.fixture
def clock():
    return FakeClock(datetime.now(timezone.utc))


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def templates():
    return EmailTemplateBuilder("Education", "support@example.com", "https://example.com")


@pytest.fixture
def otp_service(store, hasher, clock):
    return OtpService(store, hasher, expire_minutes=10, clock=clock)


@pytest.fixture
def auth_service(store, hasher, tokens, otp_service, email_sender, templates):
    return AuthService(
        store=store,
        hasher=hasher,
        tokens=tokens,
        otp=otp_service,
        email_sender=email_sender,
        templates=templates,
    )
