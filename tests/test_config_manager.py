import pytest
import yaml

from poster_core.config_manager import DEFAULT_BASE_URL, DEFAULT_MODEL, AppConfig, ConfigManager


@pytest.fixture
def mock_config_file(tmp_path):
    """Creates a temporary config file."""
    config_data = {
        "paths": {"log_dir": str(tmp_path / "logs")},
        "generation": {
            "api_key": "sk-from-yaml",
            "base_url": "https://llm.example.com/v1",
            "model_name": "gemini-test",
            "temperature": 0.5,
        },
        "resolver": {"timeout_seconds": 2.5},
        "packaging": {"max_tags": 2},
        "pipeline": {"generate_share": False},
    }

    config_path = tmp_path / "test_settings.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)

    return str(config_path)


def test_config_load_valid(mock_config_file):
    """Test loading a valid configuration file."""
    manager = ConfigManager(config_path=mock_config_file)
    assert isinstance(manager.config, AppConfig)
    assert manager.generation.api_key == "sk-from-yaml"
    assert manager.generation.model_name == "gemini-test"
    assert manager.generation.temperature == 0.5
    assert manager.resolver.timeout_seconds == 2.5
    assert manager.packaging.max_tags == 2
    assert manager.pipeline.generate_share is False
    assert manager.has_credential


def test_config_file_not_found():
    """An explicit path that does not exist is an error."""
    with pytest.raises(FileNotFoundError):
        ConfigManager(config_path="non_existent.yaml")


def test_default_values(tmp_path, monkeypatch):
    """Without a settings file the built-in defaults apply."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_BASE_URL", raising=False)
    monkeypatch.delenv("GEMINI_MODEL", raising=False)

    manager = ConfigManager()
    assert manager.generation.base_url == DEFAULT_BASE_URL
    assert manager.generation.model_name == DEFAULT_MODEL
    assert manager.generation.temperature == 0.7
    assert manager.generation.max_tokens == 2048
    assert manager.resolver.timeout_seconds == 5.0
    assert manager.paths.log_dir == "logs"
    assert manager.has_credential is False


def test_empty_yaml_values_fall_back_to_env(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "sk-from-env")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-env")
    config_path = tmp_path / "settings.yaml"
    config_path.write_text("generation:\n  api_key:\n  model_name: ''\n  max_tokens: 512\n")

    manager = ConfigManager(config_path=str(config_path))
    assert manager.generation.api_key == "sk-from-env"
    assert manager.generation.model_name == "gemini-env"
    assert manager.generation.max_tokens == 512


def test_empty_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("")

    manager = ConfigManager(config_path=str(config_path))
    assert manager.packaging.max_tags == 3
    assert manager.pipeline.generate_share is True
    assert manager.has_credential is False
