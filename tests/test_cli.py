"""Tests for the command-line entry points."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from discord_tracker import action as action_module
from discord_tracker.cli import app
from discord_tracker.discord.client import DiscordClient
from discord_tracker.errors import DiscordApiError
from discord_tracker.state.manager import STATE_FILE_NAME


runner = CliRunner()

INIT_ARGS = [
    'init',
    '--pr-number', '42',
    '--pr-title', 'Add feature',
    '--author', 'alice',
    '--repository', 'org/repo',
    '--branch', 'feature-x',
]


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run in an isolated directory with Discord credentials set."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('DISCORD_BOT_TOKEN', 'bot-token')
    monkeypatch.setenv('DISCORD_CHANNEL_ID', '123456789012345678')
    monkeypatch.delenv('DISCORD_TRACKER_STATE_FILE', raising=False)
    return tmp_path


@pytest.fixture
def discord_api():
    """Patch the Discord client's network calls."""
    with patch.object(DiscordClient, 'send_message', return_value='998877') as send, \
            patch.object(DiscordClient, 'update_message', return_value=None) as update:
        yield send, update


class TestTrackerCli:
    """Test the flag-based CLI."""

    def test_init_writes_snapshot(self, workdir, discord_api):
        send, _ = discord_api

        result = runner.invoke(app, INIT_ARGS)

        assert result.exit_code == 0, result.output
        send.assert_called_once()
        data = json.loads((workdir / STATE_FILE_NAME).read_text())
        assert data['message_id'] == '998877'
        assert data['repository'] == 'org/repo'

    def test_step_parses_additional_info(self, workdir, discord_api):
        _, update = discord_api
        runner.invoke(app, INIT_ARGS)

        result = runner.invoke(app, [
            'step',
            '--step-number', '1',
            '--total-steps', '2',
            '--step-name', 'Test',
            '--status', 'failed',
            '--additional-info', 'error,timeout,retries,3',
        ])

        assert result.exit_code == 0, result.output
        data = json.loads((workdir / STATE_FILE_NAME).read_text())
        assert data['steps'][0]['additional_info'] == [['error', 'timeout'], ['retries', '3']]
        update.assert_called_once()

    def test_complete_removes_snapshot(self, workdir, discord_api):
        _, update = discord_api
        runner.invoke(app, INIT_ARGS)

        result = runner.invoke(app, ['complete'])

        assert result.exit_code == 0, result.output
        update.assert_called_once()
        assert not (workdir / STATE_FILE_NAME).exists()

    def test_fail_records_failed_step(self, workdir, discord_api):
        runner.invoke(app, INIT_ARGS)

        result = runner.invoke(app, [
            'fail', '--step-name', 'Deploy', '--error-message', 'connection refused',
        ])

        assert result.exit_code == 0, result.output
        data = json.loads((workdir / STATE_FILE_NAME).read_text())
        assert data['steps'][0]['status'] == 'failed'
        assert data['steps'][0]['additional_info'] == [['error', 'connection refused']]

    def test_invalid_status_exits_non_zero(self, workdir, discord_api):
        result = runner.invoke(app, [
            'step',
            '--step-number', '1',
            '--total-steps', '2',
            '--step-name', 'Build',
            '--status', 'done',
        ])

        assert result.exit_code == 1
        assert 'Invalid status: done' in result.output

    def test_step_exceeding_total(self, workdir, discord_api):
        result = runner.invoke(app, [
            'step',
            '--step-number', '3',
            '--total-steps', '2',
            '--step-name', 'Build',
            '--status', 'success',
        ])

        assert result.exit_code == 1
        assert 'cannot be greater than total steps' in result.output

    def test_missing_credentials(self, workdir, discord_api, monkeypatch):
        monkeypatch.delenv('DISCORD_BOT_TOKEN')

        result = runner.invoke(app, INIT_ARGS)

        assert result.exit_code == 1
        assert 'Missing environment variable: DISCORD_BOT_TOKEN' in result.output

    def test_blank_init_field(self, workdir, discord_api):
        args = list(INIT_ARGS)
        args[args.index('feature-x')] = ' '

        result = runner.invoke(app, args)

        assert result.exit_code == 1
        assert 'branch' in result.output

    def test_api_error_exits_non_zero(self, workdir, discord_api):
        send, _ = discord_api
        send.side_effect = DiscordApiError(403, 'Missing Access')

        result = runner.invoke(app, INIT_ARGS)

        assert result.exit_code == 1
        assert 'Missing Access' in result.output
        assert not (workdir / STATE_FILE_NAME).exists()

    def test_config_file_overrides_state_path(self, workdir, discord_api):
        config_file = workdir / 'tracker.yaml'
        config_file.write_text('state:\n  state_file: custom-state.json\n')

        result = runner.invoke(app, ['--config', str(config_file)] + INIT_ARGS)

        assert result.exit_code == 0, result.output
        assert (workdir / 'custom-state.json').exists()
        assert not (workdir / STATE_FILE_NAME).exists()

    def test_bad_timeout_exits_non_zero(self, workdir, discord_api, monkeypatch):
        monkeypatch.setenv('DISCORD_TIMEOUT_SEC', 'thirty')

        result = runner.invoke(app, ['complete'])

        assert result.exit_code == 1
        assert 'Error: Invalid timeout in DISCORD_TIMEOUT_SEC' in result.output


class TestActionEntryPoint:
    """Test the hosted CI entry point."""

    @pytest.fixture
    def output_file(self, workdir, monkeypatch):
        path = workdir / 'github_output'
        monkeypatch.setenv('GITHUB_OUTPUT', str(path))
        return path

    def invoke(self, *args):
        values = list(args) + [''] * (12 - len(args))
        return runner.invoke(action_module.app, values)

    def test_init_success(self, workdir, discord_api, output_file):
        result = self.invoke('init', '42', 'Add feature', 'alice', 'org/repo', 'feature-x')

        assert result.exit_code == 0, result.output
        assert output_file.read_text() == 'success=true\n'
        assert (workdir / STATE_FILE_NAME).exists()

    def test_step_with_json_info(self, workdir, discord_api, output_file):
        self.invoke('init', '42', 'Add feature', 'alice', 'org/repo', 'feature-x')

        result = self.invoke(
            'step', '', '', '', '', '', '1', '3', 'Lint', 'success', '{"warnings": 2}'
        )

        assert result.exit_code == 0, result.output
        data = json.loads((workdir / STATE_FILE_NAME).read_text())
        assert data['steps'][0]['additional_info'] == [['warnings', '2']]

    def test_missing_init_inputs(self, workdir, discord_api, output_file):
        result = self.invoke('init', '42')

        assert result.exit_code == 1
        content = output_file.read_text()
        assert content.startswith('error=Action failed: Missing required input:')
        assert content.endswith('success=false\n')

    def test_invalid_action(self, workdir, discord_api, output_file):
        result = self.invoke('deploy')

        assert result.exit_code == 1
        assert 'error=Action failed: Invalid action: deploy\n' in output_file.read_text()

    def test_credentials_from_arguments(self, workdir, discord_api, output_file, monkeypatch):
        monkeypatch.delenv('DISCORD_BOT_TOKEN')
        monkeypatch.delenv('DISCORD_CHANNEL_ID')

        values = ['complete'] + [''] * 11 + ['arg-token', '1.39589530256487E+18']
        result = runner.invoke(action_module.app, values)

        assert result.exit_code == 0, result.output
        assert output_file.read_text() == 'success=true\n'

    def test_bad_timeout_reported(self, workdir, discord_api, output_file, monkeypatch):
        monkeypatch.setenv('DISCORD_TIMEOUT_SEC', 'thirty')

        result = self.invoke('complete')

        assert result.exit_code == 1
        content = output_file.read_text()
        assert content.startswith('error=Action failed: Invalid timeout in DISCORD_TIMEOUT_SEC')
        assert content.endswith('success=false\n')

    def test_non_numeric_step_number(self, workdir, discord_api, output_file):
        result = self.invoke('step', '', '', '', '', '', 'abc', '3', 'Lint', 'success')

        assert result.exit_code == 1
        assert 'error=Action failed: Invalid input: step_number for step action\n' in output_file.read_text()

    def test_unexpected_error_reported(self, workdir, discord_api, output_file):
        send, _ = discord_api
        send.side_effect = RuntimeError('boom')

        result = self.invoke('init', '42', 'Add feature', 'alice', 'org/repo', 'feature-x')

        assert result.exit_code == 1
        assert output_file.read_text() == 'error=Action failed: boom\nsuccess=false\n'

    def test_missing_output_env(self, workdir, discord_api, monkeypatch):
        monkeypatch.delenv('GITHUB_OUTPUT', raising=False)

        result = self.invoke('complete')

        assert result.exit_code == 1
        assert 'success=false' in (workdir / action_module.ERROR_LOG_FILE).read_text()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
