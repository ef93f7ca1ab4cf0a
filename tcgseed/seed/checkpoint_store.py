"""
Checkpoint store for resumable seeding
"""

import logging
import pathlib

import orjson
import pydantic

from ..models import CheckpointState, CheckpointStatus
from ..utils import utc_timestamp, write_json_atomic

LOGGER = logging.getLogger(__name__)


class CheckpointStore:
    """
    Sole owner of the checkpoint file.

    The file is read once when a run starts and rewritten whole after each
    unit of work. Writes go through a temp file and a rename, so a crash
    mid-write leaves the previous checkpoint intact.
    """

    checkpoint_path: pathlib.Path
    resume: bool
    enabled: bool

    def __init__(
        self, checkpoint_path: pathlib.Path, resume: bool = False, enabled: bool = True
    ) -> None:
        """
        :param checkpoint_path: Where the checkpoint lives
        :param resume: Pick up a previous checkpoint, if one exists
        :param enabled: When False (dry runs) nothing is written
        """
        self.checkpoint_path = checkpoint_path
        self.resume = resume
        self.enabled = enabled

    @staticmethod
    def fresh_state() -> CheckpointState:
        """Checkpoint for a run that starts from nothing"""
        now = utc_timestamp()
        return CheckpointState(started_at=now, last_updated=now)

    def load(self) -> CheckpointState:
        """
        Read the checkpoint to resume from.
        A missing or unreadable file is never fatal, the run simply starts fresh.
        :return: Previous state when resuming, a fresh state otherwise
        """
        if not self.resume:
            return self.fresh_state()

        if not self.checkpoint_path.is_file():
            LOGGER.info("No checkpoint found, starting fresh")
            return self.fresh_state()

        try:
            state = CheckpointState.model_validate(
                orjson.loads(self.checkpoint_path.read_bytes())
            )
        except (orjson.JSONDecodeError, pydantic.ValidationError, OSError) as error:
            LOGGER.warning(f"Failed to load checkpoint: {error}. Starting fresh.")
            return self.fresh_state()

        if state.status == CheckpointStatus.COMPLETED:
            LOGGER.info(
                f"Previous run completed at {state.last_updated}, starting a new run"
            )
            return self.fresh_state()

        if state.status == CheckpointStatus.FAILED:
            LOGGER.info("Previous run failed, resuming from its last saved point")
            state.status = CheckpointStatus.IN_PROGRESS

        LOGGER.info(
            f"Checkpoint loaded: {len(state.processed_files)} files already processed"
        )
        return state

    def save(self, state: CheckpointState) -> None:
        """
        Persist state, replacing the previous checkpoint atomically
        :param state: Current progress
        """
        state.last_updated = utc_timestamp()
        if not self.enabled:
            return
        write_json_atomic(self.checkpoint_path, state.to_json())
