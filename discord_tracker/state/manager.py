"""Snapshot file manager for the Discord pipeline tracker.

Handles all JSON file operations for the persisted pipeline snapshot.
Implements atomic writes (write to temp, then rename) to prevent corruption.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..errors import InvalidStatusError, SerializationError, StateError
from .models import PipelineSnapshot


logger = logging.getLogger("discord_tracker.state")

STATE_FILE_NAME = ".discord-pipeline-state"


class StateManager:
    """Reads, writes and clears the pipeline snapshot file."""

    def __init__(self, state_file: Optional[Path] = None):
        """Initialize state manager.

        Args:
            state_file: Path to snapshot file. Defaults to
                .discord-pipeline-state in the current working directory
        """
        self.state_file = Path(state_file) if state_file else Path.cwd() / STATE_FILE_NAME

    def exists(self) -> bool:
        return self.state_file.exists()

    def load(self) -> Optional[PipelineSnapshot]:
        """Read the snapshot from disk.

        Returns:
            PipelineSnapshot, or None if the file is missing or blank

        Raises:
            SerializationError: If the file is not a valid snapshot
            StateError: If the file cannot be read
        """
        if not self.state_file.exists():
            return None

        try:
            with open(self.state_file, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise StateError(f"Failed to read state file: {e}")

        if not content.strip():
            return None

        try:
            data = json.loads(content)
            snapshot = PipelineSnapshot.from_dict(data)
        except json.JSONDecodeError as e:
            raise SerializationError(f"Invalid JSON in state file: {e}")
        except (KeyError, TypeError, ValueError, InvalidStatusError) as e:
            raise SerializationError(f"Malformed state file: {e}")

        logger.debug(
            f"Loaded snapshot for PR #{snapshot.context.pr_number} "
            f"with {len(snapshot.steps)} steps"
        )
        return snapshot

    def save(self, snapshot: PipelineSnapshot) -> None:
        """Write the snapshot atomically using temp file + rename.

        Raises:
            StateError: If the file cannot be written
        """
        self.state_file.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=self.state_file.parent,
            suffix='.tmp'
        )

        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(snapshot.to_dict(), f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp_path, str(self.state_file))
        except OSError as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise StateError(f"Failed to write state file: {e}")

        logger.debug(f"Saved snapshot to {self.state_file}")

    def clear(self) -> None:
        """Delete the snapshot file if present.

        Raises:
            StateError: If the file exists but cannot be removed
        """
        try:
            self.state_file.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StateError(f"Failed to remove state file: {e}")

        logger.debug(f"Cleared snapshot {self.state_file}")
