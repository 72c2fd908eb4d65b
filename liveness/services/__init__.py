from .challenge_engine import ChallengeEngine
from .liveness_evaluator import LivenessEvaluator
from .liveness_session import LivenessSession

__all__ = ["ChallengeEngine", "LivenessEvaluator", "LivenessSession"]
