from .data_models import (
    ChallengeResult,
    ChallengeState,
    ChallengeStatus,
    FacialMetricsSample,
    LivenessAction,
    LivenessThresholds,
    SampleFormatError,
    TimeoutPolicy,
)
from .motion_history import MotionHistory

__all__ = [
    "ChallengeResult",
    "ChallengeState",
    "ChallengeStatus",
    "FacialMetricsSample",
    "LivenessAction",
    "LivenessThresholds",
    "MotionHistory",
    "SampleFormatError",
    "TimeoutPolicy",
]
