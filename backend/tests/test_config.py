"""
Tests for settings loading.
"""

from informer.config import NewsProviderSettings, Settings


class TestSettings:
    def test_dotenv_fills_provider_and_app_keys(self, tmp_path, monkeypatch):
        for name in ("NEWS_API_KEY", "NEWS_LANGUAGE", "OPENAI_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        (tmp_path / ".env").write_text(
            "NEWS_API_KEY=from-dotenv\nNEWS_LANGUAGE=fr\nOPENAI_API_KEY=oa\n",
            encoding="utf-8",
        )
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.openai_api_key == "oa"
        assert settings.news.api_key == "from-dotenv"
        assert settings.news.language == "fr"

    def test_environment_overrides_dotenv(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("NEWS_API_KEY=from-dotenv\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("NEWS_API_KEY", "from-env")

        assert NewsProviderSettings().api_key == "from-env"

    def test_no_dotenv(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NEWS_API_KEY", raising=False)
        monkeypatch.chdir(tmp_path)

        assert NewsProviderSettings().api_key is None
