"""
Detection predicates for each liveness action
"""
from typing import Callable, Dict

from ..models.data_models import FacialMetricsSample, LivenessAction, LivenessThresholds

ActionPredicate = Callable[[FacialMetricsSample, LivenessThresholds], bool]


def is_blinking(sample: FacialMetricsSample, thresholds: LivenessThresholds) -> bool:
    """Both eyes closed at or past the blink threshold"""
    if sample.left_eye_blink is None or sample.right_eye_blink is None:
        return False
    return (
        sample.left_eye_blink >= thresholds.blink
        and sample.right_eye_blink >= thresholds.blink
    )


def is_smiling(sample: FacialMetricsSample, thresholds: LivenessThresholds) -> bool:
    if sample.mouth_smile is None:
        return False
    return sample.mouth_smile > thresholds.smile


def is_head_turned_left(sample: FacialMetricsSample, thresholds: LivenessThresholds) -> bool:
    return sample.head_x < -thresholds.head_turn


def is_head_turned_right(sample: FacialMetricsSample, thresholds: LivenessThresholds) -> bool:
    return sample.head_x > thresholds.head_turn


# New actions only need an enum member and an entry here
ACTION_PREDICATES: Dict[LivenessAction, ActionPredicate] = {
    LivenessAction.BLINK: is_blinking,
    LivenessAction.HEAD_TURN_LEFT: is_head_turned_left,
    LivenessAction.HEAD_TURN_RIGHT: is_head_turned_right,
    LivenessAction.SMILE: is_smiling,
}
