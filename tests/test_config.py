import pytest

from config import AppConfig, ENV_PREFIX

KEYS = ["DATA_DIR", "API_URL", "LOG_LEVEL", "MAX_UPLOAD_MB"]


@pytest.fixture
def clean_env(monkeypatch):
    # 一度設定してから削除し、.envで読み込まれた値もテスト後に取り除かれるようにする
    for key in KEYS:
        monkeypatch.setenv(ENV_PREFIX + key, "")
        monkeypatch.delenv(ENV_PREFIX + key)
    return monkeypatch


def test_defaults_without_env(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")
    config = AppConfig.from_env(str(env_file))
    assert config.data_dir == "data"
    assert config.api_base_url == ""
    assert config.max_upload_mb == 10


def test_values_are_read_from_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        f"{ENV_PREFIX}DATA_DIR={tmp_path / 'reviews'}\n"
        f"{ENV_PREFIX}API_URL=https://api.example.com\n"
        f"{ENV_PREFIX}LOG_LEVEL=debug\n"
        f"{ENV_PREFIX}MAX_UPLOAD_MB=25\n",
        encoding="utf-8"
    )
    config = AppConfig.from_env(str(env_file))
    assert config.data_dir == str(tmp_path / "reviews")
    assert config.api_base_url == "https://api.example.com"
    assert config.log_level == "DEBUG"
    assert config.max_upload_mb == 25


def test_environment_wins_over_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(f"{ENV_PREFIX}DATA_DIR=from-file\n", encoding="utf-8")
    clean_env.setenv(ENV_PREFIX + "DATA_DIR", "from-env")
    assert AppConfig.from_env(str(env_file)).data_dir == "from-env"


def test_invalid_upload_limit_is_ignored(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(f"{ENV_PREFIX}MAX_UPLOAD_MB=lots\n", encoding="utf-8")
    assert AppConfig.from_env(str(env_file)).max_upload_mb == 10
