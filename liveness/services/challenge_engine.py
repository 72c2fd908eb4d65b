"""
Challenge Engine for issuing random liveness challenges
"""
import logging
import secrets
import time
from typing import Optional

from ..config import Config
from ..models.data_models import ChallengeState, LivenessAction
from ..models.motion_history import MotionHistory

logger = logging.getLogger(__name__)


class ChallengeEngine:
    """
    Issues unpredictable liveness challenges.

    A challenge is a random subset of the action pool plus a cryptographic
    challenge id, so a recorded response cannot be replayed against a
    different challenge.
    """

    ACTION_POOL = list(LivenessAction)

    # Human-readable instructions for each action
    INSTRUCTIONS = {
        LivenessAction.BLINK: "Blink your eyes",
        LivenessAction.HEAD_TURN_LEFT: "Turn your head to the left",
        LivenessAction.HEAD_TURN_RIGHT: "Turn your head to the right",
        LivenessAction.SMILE: "Smile",
    }

    def __init__(self, motion_history_size: Optional[int] = None):
        self.motion_history_size = (
            Config.MOTION_HISTORY_SIZE if motion_history_size is None else motion_history_size
        )

    def generate_nonce(self) -> str:
        """
        Generate a cryptographic nonce used as the challenge id.

        Returns:
            str: A 32-character hexadecimal nonce
        """
        return secrets.token_hex(16)  # 16 bytes = 32 hex characters

    def generate_challenge(
        self,
        num_actions: Optional[int] = None,
        now: Optional[float] = None
    ) -> ChallengeState:
        """
        Pick the actions the user must perform and open a challenge.

        Args:
            num_actions: How many distinct actions to require; all actions
                         in the pool when None
            now: Challenge start time in seconds, defaults to now

        Returns:
            ChallengeState: Fresh state with the time budget starting at now

        Raises:
            ValueError: If num_actions is outside 1..len(ACTION_POOL)
        """
        if num_actions is None:
            required = set(self.ACTION_POOL)
        else:
            if not 1 <= num_actions <= len(self.ACTION_POOL):
                raise ValueError(
                    f"num_actions must be between 1 and {len(self.ACTION_POOL)}, got {num_actions}"
                )
            pool = list(self.ACTION_POOL)
            required = set()
            while len(required) < num_actions:
                action = secrets.choice(pool)
                pool.remove(action)
                required.add(action)

        state = ChallengeState(
            required_actions=required,
            start_time=time.time() if now is None else now,
            challenge_id=self.generate_nonce(),
            motion_history=MotionHistory(self.motion_history_size)
        )
        logger.info(f"Challenge {state.challenge_id} issued: {self.describe(state)}")
        return state

    def describe(self, state: ChallengeState) -> str:
        """Instructions for the actions still pending, in pool order"""
        return ", then ".join(
            self.INSTRUCTIONS[action]
            for action in self.ACTION_POOL
            if action in state.pending_actions
        )
