from wizard_prompts.config import DEFAULT_SETTINGS, load_settings


def test_missing_settings_file_returns_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("WIZARD_PROMPTS_PATH", raising=False)
    settings = load_settings(str(tmp_path / "absent.yaml"))
    assert settings == DEFAULT_SETTINGS
    assert settings is not DEFAULT_SETTINGS


def test_settings_are_deep_merged(tmp_path, monkeypatch):
    monkeypatch.delenv("WIZARD_PROMPTS_PATH", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text("streaming:\n  max_retries: 5\nlogging:\n  level: DEBUG\n", encoding="utf-8")

    settings = load_settings(str(path))

    assert settings["streaming"]["max_retries"] == 5
    assert settings["streaming"]["base_delay_ms"] == 1000
    assert settings["logging"]["level"] == "DEBUG"
    assert DEFAULT_SETTINGS["streaming"]["max_retries"] == 3


def test_prompts_path_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("WIZARD_PROMPTS_PATH", "/srv/prompts")
    assert load_settings(str(tmp_path / "absent.yaml"))["prompts"]["path"] == "/srv/prompts"
