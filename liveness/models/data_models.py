"""
Data models for liveness challenges and per-frame facial metrics
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Set

import numpy as np

from .motion_history import MotionHistory


class SampleFormatError(ValueError):
    """Raised when a serialized facial metrics sample cannot be decoded"""


class LivenessAction(Enum):
    """Facial actions a user can be asked to perform"""
    BLINK = "blink"
    HEAD_TURN_LEFT = "head_turn_left"
    HEAD_TURN_RIGHT = "head_turn_right"
    SMILE = "smile"


class ChallengeStatus(Enum):
    """Per-frame classification of a challenge"""
    WAITING = "waiting"
    ACTION_COMPLETED = "action_completed"
    VERIFIED = "verified"
    TIMED_OUT = "timed_out"
    OCCLUDED = "occluded"
    MOTION_SUSPECTED = "motion_suspected"


class TimeoutPolicy(Enum):
    """What happens to challenge state once the time budget is exceeded"""
    RESET = "reset"
    WARN = "warn"


@dataclass(frozen=True)
class LivenessThresholds:
    """Numeric cut-offs for action detection and spoof heuristics"""
    blink: float = 0.7
    smile: float = 0.5
    head_turn: float = 0.2
    occlusion_eye: float = 0.1
    occlusion_jaw: float = 0.1
    occlusion_cheek: float = 0.5
    motion_min_mean: float = 0.0001


# Vendor blend-shape coefficient names
BLEND_SHAPE_EYE_BLINK_LEFT = "eyeBlinkLeft"
BLEND_SHAPE_EYE_BLINK_RIGHT = "eyeBlinkRight"
BLEND_SHAPE_MOUTH_SMILE_LEFT = "mouthSmileLeft"
BLEND_SHAPE_MOUTH_SMILE_RIGHT = "mouthSmileRight"
BLEND_SHAPE_JAW_OPEN = "jawOpen"
BLEND_SHAPE_CHEEK_PUFF = "cheekPuff"


@dataclass(frozen=True)
class FacialMetricsSample:
    """
    One tracked frame of facial metrics.

    Blend-shape intensities are normalized to [0, 1]. A value of None means
    the tracker did not report that coefficient for the frame.
    """
    left_eye_blink: Optional[float]
    right_eye_blink: Optional[float]
    mouth_smile: Optional[float]
    jaw_open: Optional[float]
    cheek_puff: Optional[float]
    head_x: float
    head_y: float
    head_z: float
    timestamp: float = field(default_factory=time.time)

    @property
    def head_position(self) -> np.ndarray:
        return np.array([self.head_x, self.head_y, self.head_z], dtype=float)

    @classmethod
    def from_blend_shapes(
        cls,
        blend_shapes: Mapping[str, float],
        transform: Any,
        timestamp: Optional[float] = None
    ) -> "FacialMetricsSample":
        """
        Build a sample from named blend-shape coefficients and a pose transform.

        Args:
            blend_shapes: Coefficients keyed by vendor name (eyeBlinkLeft, ...)
            transform: 4x4 face anchor transform; the translation column is
                       taken as the head position
            timestamp: Frame time in seconds, defaults to now

        Returns:
            FacialMetricsSample: The decoded sample

        Raises:
            SampleFormatError: If the transform is not a 4x4 matrix or its
                               translation is not finite
        """
        matrix = np.asarray(transform, dtype=float)
        if matrix.shape != (4, 4):
            raise SampleFormatError(f"Expected a 4x4 transform, got shape {matrix.shape}")
        if not np.all(np.isfinite(matrix[:3, 3])):
            raise SampleFormatError(f"Head position must be finite, got {matrix[:3, 3].tolist()}")

        # Either smile side may drop out independently
        smiles = [
            blend_shapes[name]
            for name in (BLEND_SHAPE_MOUTH_SMILE_LEFT, BLEND_SHAPE_MOUTH_SMILE_RIGHT)
            if blend_shapes.get(name) is not None
        ]
        mouth_smile = float(np.mean(smiles)) if smiles else None

        x, y, z = matrix[:3, 3]
        return cls(
            left_eye_blink=_optional_float(blend_shapes.get(BLEND_SHAPE_EYE_BLINK_LEFT)),
            right_eye_blink=_optional_float(blend_shapes.get(BLEND_SHAPE_EYE_BLINK_RIGHT)),
            mouth_smile=mouth_smile,
            jaw_open=_optional_float(blend_shapes.get(BLEND_SHAPE_JAW_OPEN)),
            cheek_puff=_optional_float(blend_shapes.get(BLEND_SHAPE_CHEEK_PUFF)),
            head_x=float(x),
            head_y=float(y),
            head_z=float(z),
            timestamp=time.time() if timestamp is None else float(timestamp)
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FacialMetricsSample":
        """
        Decode a sample from its replay-file representation.

        Raises:
            SampleFormatError: If head position or timestamp is missing,
                               not finite, or a field is not numeric
        """
        if not isinstance(data, Mapping):
            raise SampleFormatError(f"Expected an object, got {type(data).__name__}")

        missing = [key for key in ("head_x", "head_y", "head_z", "timestamp") if key not in data]
        if missing:
            raise SampleFormatError(f"Sample is missing required fields: {', '.join(missing)}")

        try:
            sample = cls(
                left_eye_blink=_optional_float(data.get("left_eye_blink")),
                right_eye_blink=_optional_float(data.get("right_eye_blink")),
                mouth_smile=_optional_float(data.get("mouth_smile")),
                jaw_open=_optional_float(data.get("jaw_open")),
                cheek_puff=_optional_float(data.get("cheek_puff")),
                head_x=float(data["head_x"]),
                head_y=float(data["head_y"]),
                head_z=float(data["head_z"]),
                timestamp=float(data["timestamp"])
            )
        except (TypeError, ValueError) as e:
            raise SampleFormatError(f"Invalid sample field: {e}") from e

        # json accepts NaN and Infinity literals
        if not np.all(np.isfinite([sample.head_x, sample.head_y, sample.head_z, sample.timestamp])):
            raise SampleFormatError("Head position and timestamp must be finite")
        return sample

    def to_dict(self) -> Dict[str, Any]:
        return {
            "left_eye_blink": self.left_eye_blink,
            "right_eye_blink": self.right_eye_blink,
            "mouth_smile": self.mouth_smile,
            "jaw_open": self.jaw_open,
            "cheek_puff": self.cheek_puff,
            "head_x": self.head_x,
            "head_y": self.head_y,
            "head_z": self.head_z,
            "timestamp": self.timestamp,
        }


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass
class ChallengeState:
    """
    Mutable state of one liveness challenge.

    Created when a challenge is issued and mutated on every accepted frame.
    reset() discards everything transient and restarts the time budget.
    """
    required_actions: Set[LivenessAction]
    start_time: float = field(default_factory=time.time)
    challenge_id: str = ""
    completed_actions: Set[LivenessAction] = field(default_factory=set)
    motion_history: MotionHistory = field(default_factory=MotionHistory)
    previous_head_position: Optional[np.ndarray] = None
    verified: bool = False
    timed_out: bool = False

    @property
    def pending_actions(self) -> Set[LivenessAction]:
        return self.required_actions - self.completed_actions

    def elapsed(self, now: float) -> float:
        return now - self.start_time

    def reset(self, now: Optional[float] = None, challenge_id: Optional[str] = None) -> None:
        """
        Restart the challenge with the same required actions.

        The challenge id is kept unless a new one is given.
        """
        if challenge_id is not None:
            self.challenge_id = challenge_id
        self.completed_actions = set()
        self.motion_history.clear()
        self.previous_head_position = None
        self.verified = False
        self.timed_out = False
        self.start_time = time.time() if now is None else now


@dataclass
class ChallengeResult:
    """Outcome of evaluating one frame against a challenge"""
    status: ChallengeStatus
    elapsed_seconds: float
    timestamp: float
    newly_completed: Set[LivenessAction] = field(default_factory=set)
    message: str = ""

    @property
    def is_final(self) -> bool:
        return self.status == ChallengeStatus.VERIFIED
