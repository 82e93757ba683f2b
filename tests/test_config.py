"""Tests for settings loading."""

from app.core.config import Settings


class TestSettings:
    def test_reads_dotenv_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("CACHE_BACKEND", raising=False)
        (tmp_path / ".env").write_text(
            "DATABASE_URL=postgresql+asyncpg://app@db:5432/tasks\nCACHE_BACKEND=memory\n"
        )
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.database_url == "postgresql+asyncpg://app@db:5432/tasks"
        assert settings.cache_backend == "memory"

    def test_environment_overrides_dotenv(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("CACHE_BACKEND=memory\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CACHE_BACKEND", "none")

        settings = Settings()

        assert settings.cache_backend == "none"
        assert not settings.cache_enabled
