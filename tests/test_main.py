import json

import pytest
import yaml

from main import main

STORE = {
    'tasks': [
        {
            'id': 'essay',
            'user_id': 'user-1',
            'title': 'History essay',
            'priority': 3,
            'estimated_minutes': 45,
            'due_at': '2024-03-04T09:00:00',
        },
        {
            'id': 'flashcards',
            'user_id': 'user-1',
            'title': 'Spanish flashcards',
            'rrule': 'FREQ=DAILY',
            'estimated_minutes': 20,
            'due_at': '2024-03-01T18:00:00',
        },
    ],
}


@pytest.fixture
def store_path(tmp_path):
    path = tmp_path / 'store.yaml'
    path.write_text(yaml.safe_dump(STORE))
    return str(path)


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.safe_dump({'allocation': {'urgency_horizon_hours': 24}}))
    return str(path)


def run(capsys, config_path, *argv):
    code = main(['--config', config_path, *argv])
    return code, capsys.readouterr().out


class TestCli:

    def test_plan_json(self, capsys, config_path, store_path):
        code, out = run(
            capsys, config_path, '--store', store_path, '--format', 'json',
            'plan', '--user', 'user-1', '--date', '2024-03-04', '--budget', '60',
            '--now', '2024-03-04T08:00:00',
        )

        assert code == 0
        plan = json.loads(out)
        assert [o['task_id'] for o in plan['scheduled']] == ['essay']
        assert [o['task_id'] for o in plan['deferred']] == ['flashcards']
        assert plan['remaining_minutes'] == 15

    def test_plan_text(self, capsys, config_path, store_path):
        code, out = run(
            capsys, config_path, '--store', store_path,
            'plan', '--user', 'user-1', '--date', '2024-03-04', '--now', '2024-03-04T08:00:00',
        )

        assert code == 0
        assert 'Study plan for 2024-03-04' in out
        assert 'History essay' in out

    def test_complete_persists(self, capsys, config_path, store_path):
        code, out = run(
            capsys, config_path, '--store', store_path, '--format', 'json',
            'complete', '--user', 'user-1', '--task', 'flashcards', '--date', '2024-03-04',
            '--minutes', '15', '--completed-at', '2024-03-04T19:00:00',
        )

        assert code == 0
        assert [o['task_id'] for o in json.loads(out)['scheduled']] == ['essay']
        saved = yaml.safe_load(open(store_path))
        assert saved['completions'][0]['task_id'] == 'flashcards'
        assert saved['profiles'][0]['learning_velocity'] > 1.0

    def test_errors_exit_with_status_two(self, capsys, config_path, store_path):
        code, _ = run(
            capsys, config_path, '--store', store_path,
            'complete', '--user', 'user-1', '--task', 'missing', '--date', '2024-03-04', '--minutes', '15',
        )

        assert code == 2

    def test_missing_explicit_config_is_an_error(self, tmp_path, store_path):
        with pytest.raises(FileNotFoundError):
            main([
                '--config', str(tmp_path / 'nope.yaml'), '--store', store_path,
                'plan', '--user', 'user-1', '--date', '2024-03-04',
            ])

    def test_missing_default_config_falls_back(self, capsys, tmp_path, store_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        code = main([
            '--store', store_path,
            'plan', '--user', 'user-1', '--date', '2024-03-04', '--now', '2024-03-04T08:00:00',
        ])

        assert code == 0
        assert 'History essay' in capsys.readouterr().out
