"""
Tests for settings loading.
"""

from core.config import Settings, get_settings, load_yaml_config, parse_selector_overrides


class TestSettings:
    """Test env and YAML configuration."""

    def test_defaults(self, tmp_path, monkeypatch):
        for name in ('JOBHUNT_READY_MAX_ATTEMPTS', 'JOBHUNT_READY_INTERVAL_MS', 'JOBHUNT_STORAGE_PATH',
                     'JOBHUNT_MAX_STORED_JOBS', 'JOBHUNT_SNAPSHOT_PATH', 'ANTHROPIC_API_KEY'):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(config_file=str(tmp_path / "missing.yaml"))

        assert settings.ready_max_attempts == 10
        assert settings.ready_interval_ms == 500
        assert settings.ready_interval_seconds == 0.5
        assert settings.max_stored_jobs == 100
        assert settings.storage_path == 'data/storage.json'
        assert settings.snapshot_path is None
        assert settings.anthropic_api_key is None
        assert settings.selector_overrides == {}

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv('JOBHUNT_READY_MAX_ATTEMPTS', '4')
        monkeypatch.setenv('JOBHUNT_READY_INTERVAL_MS', '250')
        monkeypatch.setenv('JOBHUNT_STORAGE_PATH', str(tmp_path / 'jobs.json'))
        monkeypatch.setenv('JOBHUNT_LOG_LEVEL', 'debug')

        settings = Settings(config_file=str(tmp_path / "missing.yaml"))

        assert settings.ready_max_attempts == 4
        assert settings.ready_interval_seconds == 0.25
        assert settings.storage_path == str(tmp_path / 'jobs.json')
        assert settings.log_level == 'DEBUG'

    def test_bad_integer_falls_back(self, tmp_path, monkeypatch):
        monkeypatch.setenv('JOBHUNT_READY_MAX_ATTEMPTS', 'lots')
        settings = Settings(config_file=str(tmp_path / "missing.yaml"))
        assert settings.ready_max_attempts == 10

    def test_yaml_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv('JOBHUNT_READY_MAX_ATTEMPTS', raising=False)
        monkeypatch.delenv('JOBHUNT_READY_INTERVAL_MS', raising=False)
        config = tmp_path / "jobhunt.yaml"
        config.write_text(
            "selectors:\n"
            "  linkedin:\n"
            "    title: ['h1.brand-new-title']\n"
            "readiness:\n"
            "  max_attempts: 15\n"
            "  interval_ms: 400\n"
        )

        settings = Settings(config_file=str(config))

        assert settings.ready_max_attempts == 15
        assert settings.ready_interval_ms == 400
        assert settings.selector_overrides == {'linkedin': {'title': ['h1.brand-new-title']}}

    def test_readiness_not_a_mapping(self, tmp_path, monkeypatch):
        monkeypatch.delenv('JOBHUNT_READY_MAX_ATTEMPTS', raising=False)
        monkeypatch.delenv('JOBHUNT_READY_INTERVAL_MS', raising=False)
        config = tmp_path / "jobhunt.yaml"
        config.write_text("readiness: 5\n")

        settings = Settings(config_file=str(config))

        assert settings.ready_max_attempts == 10
        assert settings.ready_interval_ms == 500

    def test_readiness_bad_values_fall_back(self, tmp_path, monkeypatch):
        monkeypatch.delenv('JOBHUNT_READY_MAX_ATTEMPTS', raising=False)
        monkeypatch.delenv('JOBHUNT_READY_INTERVAL_MS', raising=False)
        config = tmp_path / "jobhunt.yaml"
        config.write_text(
            "readiness:\n"
            "  max_attempts: lots\n"
            "  interval_ms: [1, 2]\n"
        )

        settings = Settings(config_file=str(config))

        assert settings.ready_max_attempts == 10
        assert settings.ready_interval_ms == 500

    def test_singleton(self):
        assert get_settings() is get_settings()


class TestSelectorOverrides:

    def test_invalid_selectors_dropped(self):
        overrides = parse_selector_overrides({
            'greenhouse': {'title': ['h1.ok', 'h1[[broken', '']},
        })
        assert overrides == {'greenhouse': {'title': ['h1.ok']}}

    def test_unknown_platform_and_field_ignored(self):
        overrides = parse_selector_overrides({
            'indeed': {'title': ['h1']},
            'lever': {'salary': ['.pay'], 'company': '.org'},
        })
        assert overrides == {'lever': {'company': ['.org']}}

    def test_non_mapping(self):
        assert parse_selector_overrides(None) == {}
        assert parse_selector_overrides(['h1']) == {}

    def test_broken_yaml_file(self, tmp_path):
        config = tmp_path / "broken.yaml"
        config.write_text("selectors: [unclosed")
        assert load_yaml_config(config) == {}
