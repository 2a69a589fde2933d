import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from leadsplit.core.settings import load_settings


def test_upload_dir_defaults_to_working_directory(tmp_path, monkeypatch):
    monkeypatch.delenv("LEADSPLIT_UPLOAD_DIR", raising=False)
    monkeypatch.chdir(tmp_path)

    settings = load_settings()

    assert settings.upload_dir.resolve() == (tmp_path / "uploads").resolve()


def test_environment_overrides_yaml_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv("LEADSPLIT_UPLOAD_DIR", str(tmp_path / "incoming"))
    monkeypatch.setenv("LEADSPLIT_DEFAULT_AGENT_COUNT", "3")
    monkeypatch.setenv("API_CORS_ORIGINS", "http://a.test, http://b.test")

    settings = load_settings()

    assert settings.upload_dir == (tmp_path / "incoming").resolve()
    assert settings.default_agent_count == 3
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.max_upload_bytes == 5242880
