import json
import logging

import pytest

from study_scheduler.utils.config import get_default_config, load_config, merge_config, resolve_config
from study_scheduler.utils.logging_config import configure_logging


class TestConfig:

    def test_yaml_overrides_merge_with_defaults(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text("estimation:\n  smoothing_factor: 0.5\nallocation:\n  urgency_horizon_hours: 12\n")

        config = resolve_config(str(path))

        assert config['estimation']['smoothing_factor'] == 0.5
        assert config['estimation']['max_velocity'] == 4.0
        assert config['allocation']['urgency_horizon_hours'] == 12
        assert config['allocation']['policy'] == 'urgency'

    def test_json_config(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'concurrency': {'max_profile_retries': 5}}))

        assert load_config(str(path)) == {'concurrency': {'max_profile_retries': 5}}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / 'nope.yaml'))

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / 'config.ini'
        path.write_text("[estimation]\n")

        with pytest.raises(ValueError):
            load_config(str(path))

    def test_no_path_gives_defaults(self):
        assert resolve_config(None) == get_default_config()

    def test_merge_does_not_mutate_base(self):
        base = get_default_config()

        merge_config(base, {'estimation': {'smoothing_factor': 0.9}})

        assert base['estimation']['smoothing_factor'] == 0.2


class TestLogging:

    def test_explicit_level(self):
        configure_logging('debug')

        assert logging.getLogger().level == logging.DEBUG

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv('STUDY_SCHEDULER_LOG_LEVEL', 'warning')

        configure_logging()

        assert logging.getLogger().level == logging.WARNING
