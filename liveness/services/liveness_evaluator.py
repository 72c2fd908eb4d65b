"""
Liveness Evaluator for interpreting per-frame facial metrics
"""
import logging
import secrets
from typing import Dict, Optional, Set, Tuple, Union

import numpy as np

from ..config import Config
from ..models.data_models import (
    ChallengeResult,
    ChallengeState,
    ChallengeStatus,
    FacialMetricsSample,
    LivenessAction,
    LivenessThresholds,
    TimeoutPolicy,
)
from .actions import ACTION_PREDICATES, ActionPredicate

logger = logging.getLogger(__name__)


class LivenessEvaluator:
    """
    Classifies tracked frames against a liveness challenge.

    Each check is a plain boolean classification over one sample. The only
    state touched is the ChallengeState passed in by the caller, so one
    evaluator can serve any number of challenges on the tracking thread.
    """

    def __init__(
        self,
        thresholds: Optional[LivenessThresholds] = None,
        timeout_seconds: Optional[float] = None,
        timeout_policy: Union[TimeoutPolicy, str, None] = None,
        predicates: Optional[Dict[LivenessAction, ActionPredicate]] = None
    ):
        """
        Initialize the evaluator.

        Args:
            thresholds: Detection and spoof thresholds, defaults to Config
            timeout_seconds: Challenge time budget, defaults to Config
            timeout_policy: "reset" or "warn", defaults to Config
            predicates: Action to detection-predicate table, defaults to
                        ACTION_PREDICATES

        Raises:
            ValueError: If the timeout policy is not recognized
        """
        self.thresholds = thresholds or Config.thresholds()
        self.timeout_seconds = (
            Config.CHALLENGE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self.timeout_policy = TimeoutPolicy(
            Config.TIMEOUT_POLICY if timeout_policy is None else timeout_policy
        )
        self.predicates = dict(ACTION_PREDICATES if predicates is None else predicates)

    def is_occluded(self, sample: FacialMetricsSample) -> bool:
        """
        Flag frames whose blend shapes look blocked or masked.

        Checks, OR-combined:
        1. Both eyes statically near-closed (tracker can't resolve a blink)
        2. Jaw region flat
        3. Cheek deformation beyond what a real face produces

        A coefficient the tracker did not report disables the check that
        needs it.
        """
        t = self.thresholds

        if (
            sample.left_eye_blink is not None
            and sample.right_eye_blink is not None
            and sample.left_eye_blink < t.occlusion_eye
            and sample.right_eye_blink < t.occlusion_eye
        ):
            return True

        if sample.jaw_open is not None and sample.jaw_open < t.occlusion_jaw:
            return True

        if sample.cheek_puff is not None and sample.cheek_puff > t.occlusion_cheek:
            return True

        return False

    def is_moving_naturally(self, sample: FacialMetricsSample, state: ChallengeState) -> bool:
        """
        Reject static images by averaging recent head displacement.

        The displacement from the previous head position is pushed into the
        state's motion history; a mean below the motion threshold means the
        head has not moved over the window. The previous head position is
        always updated.

        Returns:
            bool: False if average motion is near zero, True otherwise
                  (including the first frame of a challenge)
        """
        position = sample.head_position
        previous = state.previous_head_position
        state.previous_head_position = position

        if previous is None:
            return True

        displacement = float(np.linalg.norm(position - previous))
        if np.isfinite(displacement):
            state.motion_history.append(displacement)
        else:
            logger.debug(f"Skipping non-finite head displacement for challenge {state.challenge_id}")
        mean_motion = state.motion_history.mean()
        logger.debug(f"Head displacement {displacement:.6f}, window mean {mean_motion:.6f}")

        return mean_motion >= self.thresholds.motion_min_mean

    def detect_actions(self, sample: FacialMetricsSample) -> Set[LivenessAction]:
        """Every action whose predicate holds for the sample"""
        return {
            action
            for action, predicate in self.predicates.items()
            if predicate(sample, self.thresholds)
        }

    def advance_challenge(
        self,
        state: ChallengeState,
        detected: Set[LivenessAction],
        now: float
    ) -> Tuple[ChallengeState, ChallengeResult]:
        """
        Fold detected actions into the challenge and classify it.

        Args:
            state: Challenge to advance
            detected: Actions seen in the current frame
            now: Frame time in seconds

        Returns:
            Tuple of the (possibly reset) state and the frame result
        """
        if state.verified:
            return state, self._result(state, ChallengeStatus.VERIFIED, now, message="Challenge already verified")

        newly_completed = detected - state.completed_actions
        state.completed_actions |= detected
        elapsed = state.elapsed(now)

        if elapsed > self.timeout_seconds:
            return self._handle_timeout(state, newly_completed, elapsed, now)

        for action in sorted(newly_completed & state.required_actions, key=lambda a: a.value):
            logger.info(f"Challenge {state.challenge_id}: action {action.value} completed after {elapsed:.2f}s")

        if state.required_actions <= state.completed_actions:
            state.verified = True
            logger.info(f"Challenge {state.challenge_id} verified in {elapsed:.2f}s")
            return state, ChallengeResult(
                status=ChallengeStatus.VERIFIED,
                elapsed_seconds=elapsed,
                timestamp=now,
                newly_completed=newly_completed,
                message="Liveness verified"
            )

        if newly_completed & state.required_actions:
            status = ChallengeStatus.ACTION_COMPLETED
            pending = ", ".join(sorted(a.value for a in state.pending_actions))
            message = f"Remaining actions: {pending}"
        else:
            status = ChallengeStatus.WAITING
            message = ""

        return state, ChallengeResult(
            status=status,
            elapsed_seconds=elapsed,
            timestamp=now,
            newly_completed=newly_completed,
            message=message
        )

    def evaluate(
        self,
        sample: FacialMetricsSample,
        state: ChallengeState
    ) -> Tuple[ChallengeState, ChallengeResult]:
        """
        Run the full per-frame pipeline for one sample.

        Motion is tracked on every frame so the history stays continuous.
        Occlusion and unnatural motion make the frame inconclusive and leave
        completed actions untouched.
        """
        now = sample.timestamp
        if state.verified:
            return state, self._result(state, ChallengeStatus.VERIFIED, now, message="Challenge already verified")

        occluded = self.is_occluded(sample)
        moving = self.is_moving_naturally(sample, state)

        if occluded:
            logger.warning(f"Challenge {state.challenge_id}: face occlusion suspected")
            return state, self._result(state, ChallengeStatus.OCCLUDED, now, message="Face occlusion suspected")

        if not moving:
            logger.warning(f"Challenge {state.challenge_id}: no natural head motion, possible photo spoof")
            return state, self._result(
                state, ChallengeStatus.MOTION_SUSPECTED, now, message="Unnatural motion, possible spoof"
            )

        return self.advance_challenge(state, self.detect_actions(sample), now)

    def _handle_timeout(
        self,
        state: ChallengeState,
        newly_completed: Set[LivenessAction],
        elapsed: float,
        now: float
    ) -> Tuple[ChallengeState, ChallengeResult]:
        if self.timeout_policy == TimeoutPolicy.RESET:
            new_id = secrets.token_hex(16)
            logger.warning(
                f"Challenge {state.challenge_id} timed out after {elapsed:.2f}s, "
                f"possible spoof; restarting as {new_id}"
            )
            state.reset(now, challenge_id=new_id)
            message = "Challenge timed out and was restarted"
        else:
            # Completed actions stay on record but the budget is spent
            if not state.timed_out:
                logger.warning(f"Challenge {state.challenge_id} timed out after {elapsed:.2f}s, possible spoof")
            state.timed_out = True
            message = "Challenge timed out"

        return state, ChallengeResult(
            status=ChallengeStatus.TIMED_OUT,
            elapsed_seconds=elapsed,
            timestamp=now,
            newly_completed=newly_completed,
            message=message
        )

    @staticmethod
    def _result(
        state: ChallengeState,
        status: ChallengeStatus,
        now: float,
        message: str = ""
    ) -> ChallengeResult:
        return ChallengeResult(
            status=status,
            elapsed_seconds=state.elapsed(now),
            timestamp=now,
            message=message
        )
