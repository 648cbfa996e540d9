"""Pipeline tracker orchestrating Discord notifications.

Each CLI invocation builds a fresh ``PipelineTracker``. ``init`` posts the
progress message and writes the snapshot; later ``step`` and ``complete``
invocations reload that snapshot before mutating it, so separate CI job
steps keep editing the same Discord message.
"""

import logging
from typing import Optional, List, Sequence, Tuple

from .config import Config
from .discord.client import DiscordClient
from .discord.embeds import (
    build_completion_embed,
    build_init_embed,
    build_step_update_embed,
)
from .discord.models import DiscordMessage
from .errors import MessageIdNotFoundError
from .state.manager import StateManager
from .state.models import (
    PipelineContext,
    PipelineSnapshot,
    Step,
    StepStatus,
    utcnow,
)
from .utils.logging_config import log_with_fields
from .validators import validate_step_number


logger = logging.getLogger("discord_tracker.tracker")


class PipelineTracker:
    """Tracks step progress and mirrors it into one Discord message."""

    def __init__(self, client: DiscordClient, state_manager: StateManager):
        """Initialize tracker.

        Args:
            client: Discord client for the target channel
            state_manager: Snapshot store
        """
        self.client = client
        self.state_manager = state_manager

        self._message_id: Optional[str] = None
        self._context: Optional[PipelineContext] = None
        self._steps: List[Step] = []

    @classmethod
    def from_config(
        cls,
        config: Config,
        bot_token: Optional[str] = None,
        channel_id: Optional[str] = None
    ) -> "PipelineTracker":
        """Create a tracker from configuration.

        Args:
            config: Loaded configuration
            bot_token: Overrides the configured bot token
            channel_id: Overrides the configured channel ID

        Returns:
            Configured PipelineTracker
        """
        client = DiscordClient(
            bot_token=bot_token if bot_token is not None else config.discord.bot_token,
            channel_id=channel_id if channel_id is not None else config.discord.channel_id,
            base_url=config.discord.api_base_url,
            timeout=config.discord.timeout_sec,
        )
        return cls(client, StateManager(config.state.state_file))

    @property
    def message_id(self) -> Optional[str]:
        return self._message_id

    @property
    def context(self) -> Optional[PipelineContext]:
        return self._context

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    def _resume(self) -> None:
        """Load the persisted snapshot unless this tracker already holds one."""
        if self._context is not None:
            return

        snapshot = self.state_manager.load()
        if snapshot is None:
            return

        self._message_id = snapshot.message_id
        self._context = snapshot.context
        self._steps = list(snapshot.steps)
        logger.debug(
            f"Resumed PR #{snapshot.context.pr_number} "
            f"(message {snapshot.message_id}, {len(snapshot.steps)} steps)"
        )

    def _snapshot(self) -> PipelineSnapshot:
        return PipelineSnapshot(
            message_id=self._message_id or "",
            context=self._context,
            steps=list(self._steps),
        )

    def _require_message_id(self) -> str:
        if not self._message_id:
            raise MessageIdNotFoundError()
        return self._message_id

    def _upsert_step(
        self,
        step_number: int,
        step_name: str,
        status: StepStatus,
        additional_info: List[Tuple[str, str]]
    ) -> Step:
        for step in self._steps:
            if step.number == step_number:
                step.name = step_name
                step.status = status
                step.additional_info = additional_info
                break
        else:
            step = Step(
                number=step_number,
                name=step_name,
                status=status,
                additional_info=additional_info,
            )
            self._steps.append(step)

        if status.is_terminal:
            step.mark_completed()
        return step

    def init_pipeline(
        self,
        pr_number: str,
        pr_title: str,
        author: str,
        repository: str,
        branch: str
    ) -> str:
        """Post the initial progress message and record the snapshot.

        Returns:
            ID of the created Discord message
        """
        context = PipelineContext(
            pr_number=pr_number,
            pr_title=pr_title,
            author=author,
            repository=repository,
            branch=branch,
            started_at=utcnow(),
        )

        embed = build_init_embed(pr_number, pr_title, author, repository, branch)
        message_id = self.client.send_message(DiscordMessage(embeds=[embed]))

        self._context = context
        self._message_id = message_id
        self._steps = []

        self.state_manager.save(self._snapshot())
        log_with_fields(
            logger, 'info', f"Pipeline initialized for PR #{pr_number}",
            pr_number=pr_number, repository=repository, message_id=message_id
        )
        return message_id

    def update_step(
        self,
        step_number: int,
        total_steps: int,
        step_name: str,
        status: str,
        additional_info: Sequence[Tuple[str, str]] = ()
    ) -> Step:
        """Record a step update and edit the progress message.

        Args:
            step_number: 1-based step number
            total_steps: Declared number of steps
            step_name: Step name
            status: success, pending or failed (case-insensitive)
            additional_info: Ordered (key, value) metadata

        Returns:
            The created or updated Step

        Raises:
            InvalidStepNumberError, InvalidTotalStepsError,
            StepNumberExceedsTotalError: If the step numbers are out of range
            InvalidStatusError: If status is not recognised
            MessageIdNotFoundError: If the snapshot has no message ID
        """
        validate_step_number(step_number, total_steps)
        step_status = StepStatus.parse(status)

        self._resume()
        step = self._upsert_step(step_number, step_name, step_status, list(additional_info))

        if self._context is None:
            logger.warning(
                f"No pipeline initialized; step {step_number} recorded locally only"
            )
            return step

        message_id = self._require_message_id()
        embed = build_step_update_embed(
            self._context, self._steps, step_number, total_steps
        )
        self.client.update_message(message_id, DiscordMessage(embeds=[embed]))
        self.state_manager.save(self._snapshot())

        log_with_fields(
            logger, 'info', f"Step {step_number}/{total_steps} '{step_name}' is {step_status.value}",
            step_number=step_number, total_steps=total_steps, status=step_status.value
        )
        return step

    def complete_pipeline(self) -> None:
        """Post the final summary and clear the snapshot.

        Raises:
            MessageIdNotFoundError: If the snapshot has no message ID
        """
        self._resume()

        if self._context is None:
            logger.warning("No pipeline initialized; nothing to complete")
        else:
            message_id = self._require_message_id()
            embed = build_completion_embed(self._context, self._steps, len(self._steps))
            self.client.update_message(message_id, DiscordMessage(embeds=[embed]))
            logger.info(f"Pipeline completed for PR #{self._context.pr_number}")

        self.state_manager.clear()
        self._context = None
        self._message_id = None
        self._steps = []

    def fail_pipeline(self, step_name: str, error_message: str) -> Step:
        """Report a pipeline failure as a single failed step."""
        logger.error(f"Pipeline failed at step: {step_name}")
        return self.update_step(1, 1, step_name, "failed", [("error", error_message)])
