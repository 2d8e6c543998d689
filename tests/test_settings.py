# tests/test_settings.py
import logging

from core.settings import DEFAULT_API_URL, configure_logging, load_settings, normalize_base_url


def test_defaults_without_a_file(settings):
    assert settings.api.base_url == DEFAULT_API_URL
    assert settings.api.timeout_seconds == 15.0
    assert settings.app.name == "Institute CRM"


def test_yaml_values_are_read(tmp_path):
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("app:\n  name: Demo Academy\napi:\n  base_url: http://crm.test/\n  timeout_seconds: 3\n",
                   encoding="utf-8")
    s = load_settings(cfg, env={})
    assert s.app.name == "Demo Academy"
    assert s.api.base_url == "http://crm.test/api"
    assert s.api.timeout_seconds == 3


def test_environment_overrides_file(tmp_path):
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("api:\n  base_url: http://file.test/api\n", encoding="utf-8")
    s = load_settings(cfg, env={"INSTITUTE_API_URL": "https://env.test", "DATABASE_URL": "sqlite:///x.db",
                                "INSTITUTE_LOG_LEVEL": "DEBUG"})
    assert s.api.base_url == "https://env.test/api"
    assert s.seed.database_url == "sqlite:///x.db"
    assert s.logging.level == "DEBUG"


def test_normalize_base_url_variants():
    assert normalize_base_url(None) == DEFAULT_API_URL
    assert normalize_base_url("  http://a.test  ") == "http://a.test/api"
    assert normalize_base_url("http://a.test/api/") == "http://a.test/api"


def test_shipped_settings_file_loads():
    s = load_settings(env={})
    assert s.storage.url.startswith("sqlite:///")
    assert s.seed.student_hint == "student3"


def test_configure_logging_sets_root_level(settings):
    settings.logging.level = "warning"
    configure_logging(settings)
    assert logging.getLogger().level == logging.WARNING
