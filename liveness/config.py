"""
Configuration management for the liveness evaluator
"""
import os
from dotenv import load_dotenv

from .models.data_models import LivenessThresholds

load_dotenv()


class Config:
    """Evaluator configuration"""

    # Challenge Configuration
    CHALLENGE_TIMEOUT_SECONDS = float(os.getenv('CHALLENGE_TIMEOUT_SECONDS', '5.0'))
    TIMEOUT_POLICY = os.getenv('TIMEOUT_POLICY', 'reset').lower()

    # Motion Configuration
    MOTION_HISTORY_SIZE = int(os.getenv('MOTION_HISTORY_SIZE', '10'))
    MOTION_MIN_MEAN = float(os.getenv('MOTION_MIN_MEAN', '0.0001'))

    # Action Thresholds
    BLINK_THRESHOLD = float(os.getenv('BLINK_THRESHOLD', '0.7'))
    SMILE_THRESHOLD = float(os.getenv('SMILE_THRESHOLD', '0.5'))
    HEAD_TURN_THRESHOLD = float(os.getenv('HEAD_TURN_THRESHOLD', '0.2'))

    # Occlusion Thresholds
    OCCLUSION_EYE_THRESHOLD = float(os.getenv('OCCLUSION_EYE_THRESHOLD', '0.1'))
    OCCLUSION_JAW_THRESHOLD = float(os.getenv('OCCLUSION_JAW_THRESHOLD', '0.1'))
    OCCLUSION_CHEEK_THRESHOLD = float(os.getenv('OCCLUSION_CHEEK_THRESHOLD', '0.5'))

    # Logging Configuration
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    @classmethod
    def thresholds(cls) -> LivenessThresholds:
        """Build the threshold set used by action and occlusion checks"""
        return LivenessThresholds(
            blink=cls.BLINK_THRESHOLD,
            smile=cls.SMILE_THRESHOLD,
            head_turn=cls.HEAD_TURN_THRESHOLD,
            occlusion_eye=cls.OCCLUSION_EYE_THRESHOLD,
            occlusion_jaw=cls.OCCLUSION_JAW_THRESHOLD,
            occlusion_cheek=cls.OCCLUSION_CHEEK_THRESHOLD,
            motion_min_mean=cls.MOTION_MIN_MEAN,
        )


config = Config()
