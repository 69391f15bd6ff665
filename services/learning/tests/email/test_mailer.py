import pytest

from app.config import Settings
from app.email import ConsoleMailer, SmtpMailer, build_mailer


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.mark.parametrize(
    ("env_name", "backend", "expected"),
    [
        ("production", "", SmtpMailer),
        ("development", "", ConsoleMailer),
        ("production", "console", ConsoleMailer),
        ("development", "smtp", SmtpMailer),
    ],
)
def test_build_mailer_picks_backend(env_name, backend, expected) -> None:
    mailer = build_mailer(_settings(env_name=env_name, email_backend=backend))
    assert isinstance(mailer, expected)


def test_unset_backend_in_production_never_logs_codes(caplog) -> None:
    with caplog.at_level("INFO", logger="app.email.mailer"):
        mailer = build_mailer(_settings(env_name="production"))
    assert isinstance(mailer, SmtpMailer)
    assert caplog.records == []
