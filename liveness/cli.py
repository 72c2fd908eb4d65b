#!/usr/bin/env python3
"""
Replay recorded facial metrics through a liveness challenge.

Each line of the input file is one JSON-encoded sample with the fields of
FacialMetricsSample. Exit code is 0 when liveness is verified, 1 when it is
not, and 2 when the input cannot be read.
"""
import argparse
import json
import logging
import sys
from typing import IO, Iterator, List, Optional

from .config import Config
from .models.data_models import ChallengeStatus, FacialMetricsSample, SampleFormatError
from .services.challenge_engine import ChallengeEngine
from .services.liveness_evaluator import LivenessEvaluator
from .services.liveness_session import LivenessSession

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay facial metrics through a liveness challenge")
    parser.add_argument("samples", help="JSON-lines file of samples, '-' for stdin")
    parser.add_argument("--actions", type=int, default=None,
                        help="Number of random actions to require (default: all)")
    parser.add_argument("--timeout-policy", choices=["reset", "warn"], default=None,
                        help="What to do when the challenge times out")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Challenge time budget in seconds")
    parser.add_argument("--log-level", default=Config.LOG_LEVEL, help="Logging level")
    args = parser.parse_args(argv)

    pool_size = len(ChallengeEngine.ACTION_POOL)
    if args.actions is not None and not 1 <= args.actions <= pool_size:
        parser.error(f"--actions must be between 1 and {pool_size}")
    return args


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def read_samples(stream: IO[str]) -> Iterator[FacialMetricsSample]:
    """
    Decode samples line by line, skipping blank lines.

    Raises:
        SampleFormatError: On invalid JSON or an incomplete sample
    """
    for line_number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise SampleFormatError(f"Line {line_number}: invalid JSON: {e}") from e
        try:
            yield FacialMetricsSample.from_dict(data)
        except SampleFormatError as e:
            raise SampleFormatError(f"Line {line_number}: {e}") from e


def run(args: argparse.Namespace, stream: IO[str]) -> int:
    evaluator = LivenessEvaluator(
        timeout_seconds=args.timeout,
        timeout_policy=args.timeout_policy
    )
    session = LivenessSession(evaluator=evaluator, engine=ChallengeEngine(), num_actions=args.actions)

    try:
        result = session.run(read_samples(stream))
    except SampleFormatError as e:
        print(f"✗ Could not read samples: {e}")
        return 2

    if result is not None and result.status == ChallengeStatus.VERIFIED:
        print(f"✓ Liveness verified in {result.elapsed_seconds:.2f}s")
        return 0

    status = "no frames" if result is None else result.status.value
    print(f"✗ Liveness not verified ({status})")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        if args.samples == "-":
            return run(args, sys.stdin)
        with open(args.samples, "r") as f:
            return run(args, f)
    except OSError as e:
        print(f"✗ Could not open {args.samples}: {e}")
        return 2
    except ValueError as e:
        # Bad --actions count or timeout policy
        print(f"✗ {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
