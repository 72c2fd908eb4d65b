"""
Liveness session driving a challenge over a stream of tracked frames
"""
import logging
from typing import Iterable, Optional

from ..models.data_models import (
    ChallengeResult,
    ChallengeState,
    ChallengeStatus,
    FacialMetricsSample,
    TimeoutPolicy,
)
from .challenge_engine import ChallengeEngine
from .liveness_evaluator import LivenessEvaluator

logger = logging.getLogger(__name__)


class LivenessSession:
    """
    Feeds tracked frames to the evaluator for one user.

    Under the reset timeout policy a timed-out challenge is replaced by a
    freshly drawn one with the same number of actions.
    """

    def __init__(
        self,
        evaluator: Optional[LivenessEvaluator] = None,
        engine: Optional[ChallengeEngine] = None,
        num_actions: Optional[int] = None
    ):
        self.evaluator = evaluator or LivenessEvaluator()
        self.engine = engine or ChallengeEngine()
        self.num_actions = num_actions
        self.state: Optional[ChallengeState] = None
        self.challenges_issued = 0

    def start(self, now: Optional[float] = None) -> ChallengeState:
        """Issue a new challenge, discarding any current one"""
        self.state = self.engine.generate_challenge(self.num_actions, now=now)
        self.challenges_issued += 1
        return self.state

    @property
    def verified(self) -> bool:
        return self.state is not None and self.state.verified

    def process(self, sample: FacialMetricsSample) -> ChallengeResult:
        """
        Evaluate one frame, starting a challenge on the first frame seen.

        Args:
            sample: Facial metrics of the tracked frame

        Returns:
            ChallengeResult: Classification of the frame
        """
        if self.state is None:
            self.start(now=sample.timestamp)

        self.state, result = self.evaluator.evaluate(sample, self.state)

        if (
            result.status == ChallengeStatus.TIMED_OUT
            and self.evaluator.timeout_policy == TimeoutPolicy.RESET
        ):
            self.start(now=sample.timestamp)

        return result

    def run(self, samples: Iterable[FacialMetricsSample]) -> Optional[ChallengeResult]:
        """
        Consume samples until the challenge is verified or the stream ends.

        Returns:
            The last frame result, or None if the stream was empty
        """
        result = None
        for sample in samples:
            result = self.process(sample)
            if result.is_final:
                break

        if result is None:
            logger.warning("No frames received, liveness not verified")
        elif not result.is_final:
            logger.warning(f"Liveness not verified, last status {result.status.value}")
        return result
