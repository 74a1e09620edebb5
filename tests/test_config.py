from quotation.config import Settings


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("EDIT_LOCK_TTL_MINUTES", "15")
    monkeypatch.setenv("QUOTE_NUMBER_START", "1000")

    settings = Settings()

    assert settings.EDIT_LOCK_TTL_MINUTES == 15
    assert settings.QUOTE_NUMBER_START == 1000
    assert Settings.model_config["env_file"].endswith(".env")
