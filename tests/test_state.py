"""Tests for pipeline snapshot models and the state manager."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from discord_tracker.errors import InvalidStatusError, SerializationError
from discord_tracker.state.manager import StateManager, STATE_FILE_NAME
from discord_tracker.state.models import (
    PipelineContext,
    PipelineSnapshot,
    Step,
    StepStatus,
)


STARTED = datetime(2026, 2, 16, 12, 0, 0, tzinfo=timezone.utc)


def make_context(pr_number='42'):
    return PipelineContext(
        pr_number=pr_number,
        pr_title='Add feature',
        author='alice',
        repository='org/repo',
        branch='feature-x',
        started_at=STARTED
    )


class TestStepStatus:
    """Test StepStatus parsing."""

    @pytest.mark.parametrize('text,expected', [
        ('success', StepStatus.SUCCESS),
        ('SUCCESS', StepStatus.SUCCESS),
        ('Pending', StepStatus.PENDING),
        (' failed ', StepStatus.FAILED),
    ])
    def test_parse(self, text, expected):
        assert StepStatus.parse(text) is expected

    def test_parse_invalid(self):
        with pytest.raises(InvalidStatusError) as exc_info:
            StepStatus.parse('skipped')

        assert exc_info.value.status == 'skipped'

    def test_terminal_statuses(self):
        assert StepStatus.SUCCESS.is_terminal
        assert StepStatus.FAILED.is_terminal
        assert not StepStatus.PENDING.is_terminal


class TestStep:
    """Test Step data class."""

    def test_step_creation(self):
        """Test creating a Step object."""
        step = Step(number=1, name='Build', status=StepStatus.PENDING)

        assert step.additional_info == []
        assert step.started_at.tzinfo is not None
        assert step.completed_at is None
        assert step.duration() is None
        assert step.format_duration() == ''

    def test_mark_completed_keeps_first_stamp(self):
        step = Step(number=1, name='Build', status=StepStatus.SUCCESS, started_at=STARTED)
        first = STARTED + timedelta(seconds=5)

        step.mark_completed(first)
        step.mark_completed(first + timedelta(seconds=30))

        assert step.completed_at == first

    @pytest.mark.parametrize('elapsed,expected', [
        (timedelta(milliseconds=350), '(+350ms)'),
        (timedelta(seconds=2), '(+2s)'),
        (timedelta(milliseconds=1500), '(+1.5s)'),
        (timedelta(milliseconds=1050), '(+1.05s)'),
    ])
    def test_format_duration(self, elapsed, expected):
        step = Step(
            number=1,
            name='Build',
            status=StepStatus.SUCCESS,
            started_at=STARTED,
            completed_at=STARTED + elapsed
        )

        assert step.format_duration() == expected

    def test_format_for_embed(self):
        step = Step(
            number=2,
            name='Test',
            status=StepStatus.FAILED,
            additional_info=[('error', 'timeout'), ('retries', '3')],
            started_at=STARTED,
            completed_at=STARTED + timedelta(seconds=4)
        )

        assert step.format_for_embed() == '❌ 2. Test (+4s) - error:timeout, retries:3'

    def test_format_for_embed_pending(self):
        step = Step(number=3, name='Deploy', status=StepStatus.PENDING)

        assert step.format_for_embed() == '⏳ 3. Deploy'


class TestPipelineSnapshot:
    """Test PipelineSnapshot serialization."""

    def test_round_trip(self):
        snapshot = PipelineSnapshot(
            message_id='1122334455',
            context=make_context(),
            steps=[
                Step(
                    number=1,
                    name='Build',
                    status=StepStatus.SUCCESS,
                    additional_info=[('artifact', 'app.tar.gz')],
                    started_at=STARTED,
                    completed_at=STARTED + timedelta(seconds=61, microseconds=250)
                ),
                Step(number=2, name='Test', status=StepStatus.PENDING, started_at=STARTED),
            ]
        )

        restored = PipelineSnapshot.from_dict(json.loads(json.dumps(snapshot.to_dict())))

        assert restored == snapshot

    def test_to_dict_layout(self):
        snapshot = PipelineSnapshot(message_id='99', context=make_context())

        data = snapshot.to_dict()

        assert data == {
            'message_id': '99',
            'pr_number': 42,
            'pr_title': 'Add feature',
            'author': 'alice',
            'repository': 'org/repo',
            'branch': 'feature-x',
            'steps': [],
            'pipeline_started_at': '2026-02-16T12:00:00Z',
        }

    def test_non_numeric_pr_number_defaults_to_zero(self):
        snapshot = PipelineSnapshot(message_id='99', context=make_context('abc'))

        assert snapshot.to_dict()['pr_number'] == 0


class TestStateManager:
    """Test StateManager class."""

    @pytest.fixture
    def manager(self, tmp_path):
        """Create StateManager with temp file."""
        return StateManager(tmp_path / STATE_FILE_NAME)

    @pytest.fixture
    def snapshot(self):
        return PipelineSnapshot(
            message_id='1122334455',
            context=make_context(),
            steps=[Step(number=1, name='Build', status=StepStatus.PENDING, started_at=STARTED)]
        )

    def test_default_path_is_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        manager = StateManager()

        assert manager.state_file == tmp_path / STATE_FILE_NAME

    def test_load_missing_file(self, manager):
        assert manager.load() is None

    def test_load_blank_file(self, manager):
        manager.state_file.write_text('  \n')

        assert manager.load() is None

    def test_save_and_load(self, manager, snapshot):
        manager.save(snapshot)

        assert manager.exists()
        assert manager.load() == snapshot

    def test_save_is_pretty_json(self, manager, snapshot):
        manager.save(snapshot)

        content = manager.state_file.read_text()
        assert content.startswith('{\n  "message_id"')
        assert json.loads(content)['pr_number'] == 42

    def test_save_overwrites(self, manager, snapshot):
        manager.save(snapshot)
        snapshot.steps[0].status = StepStatus.SUCCESS
        manager.save(snapshot)

        assert manager.load().steps[0].status is StepStatus.SUCCESS
        leftovers = [p for p in manager.state_file.parent.iterdir() if p.suffix == '.tmp']
        assert leftovers == []

    def test_load_corrupt_json(self, manager):
        manager.state_file.write_text('{"message_id": ')

        with pytest.raises(SerializationError):
            manager.load()

    def test_load_missing_keys(self, manager):
        manager.state_file.write_text('{"message_id": "1"}')

        with pytest.raises(SerializationError):
            manager.load()

    def test_clear(self, manager, snapshot):
        manager.save(snapshot)

        manager.clear()

        assert not manager.exists()

    def test_clear_missing_file_is_noop(self, manager):
        manager.clear()

        assert not manager.exists()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
