import pytest

from scanqueue import settings
from scanqueue.errors import ConfigError


@pytest.fixture
def memory_backend(monkeypatch):
    monkeypatch.setattr(settings, "REPOSITORY_BACKEND", "memory")
    monkeypatch.setattr(settings, "MEMORY_MEMBERS_FILE", None)
    monkeypatch.setattr(settings, "CHECKSUM_POLICY", "warn")
    monkeypatch.setattr(settings, "SCAN_COOLDOWN_MS", 1000)
    monkeypatch.setattr(settings, "SCAN_THROTTLE_MS", 500)
    monkeypatch.setattr(settings, "CONFIRMATION_MS", 3000)


def test_memory_backend_needs_nothing(memory_backend):
    settings.validate_config()


def test_postgres_requires_database_url(memory_backend, monkeypatch):
    monkeypatch.setattr(settings, "REPOSITORY_BACKEND", "postgres")
    monkeypatch.setattr(settings, "DATABASE_URL", None)

    with pytest.raises(ConfigError, match="DATABASE_URL"):
        settings.validate_config()


def test_errors_are_collected(memory_backend, monkeypatch):
    monkeypatch.setattr(settings, "REPOSITORY_BACKEND", "supabase")
    monkeypatch.setattr(settings, "SUPABASE_URL", None)
    monkeypatch.setattr(settings, "SUPABASE_KEY", None)
    monkeypatch.setattr(settings, "CHECKSUM_POLICY", "ignore")
    monkeypatch.setattr(settings, "SCAN_THROTTLE_MS", -1)

    with pytest.raises(ConfigError) as excinfo:
        settings.validate_config()

    message = str(excinfo.value)
    for expected in ("SUPABASE_URL", "SUPABASE_KEY", "CHECKSUM_POLICY", "SCAN_THROTTLE_MS"):
        assert expected in message


def test_config_error_is_a_value_error():
    assert issubclass(ConfigError, ValueError)
