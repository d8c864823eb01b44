"""Analyze command for handrom CLI.

Replays a JSON Lines landmark recording through a MeasurementSession and
prints (optionally saves) the session summary.
"""

import logging
import sys

from handrom.config import RomConfig
from handrom.persistence import load_frames, save_summary
from handrom.session import MeasurementSession
from handrom.types import ALL_CHANNELS

logger = logging.getLogger(__name__)


def _load_config(args) -> RomConfig:
    config = RomConfig.from_yaml(args.config) if args.config else RomConfig()
    if args.algorithm:
        config.angle.wrist_algorithm = args.algorithm
    if args.no_smoothing:
        config.smoothing.enabled = False
    return config


def run_analyze(args):
    """Summarize a landmark recording."""
    try:
        config = _load_config(args)
        frames = load_frames(args.path)
        session = MeasurementSession(config, step=args.step, target_hand=args.hand)
    except (FileNotFoundError, ValueError, KeyError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logger.info("Loaded %d frames from %s", len(frames), args.path)

    session.start()
    for frame in frames:
        session.add_frame(frame)
    summary = session.stop()

    _print_summary(summary)

    if args.output:
        save_summary(summary, args.output)
        print(f"\nReport saved: {args.output}")


def _print_summary(summary):
    print("Session Summary")
    print("=" * 60)
    print(f"  Algorithm:  {summary.algorithm}")
    print(f"  Frames:     {summary.total_frames} total, "
          f"{summary.detected_frames} with hand, {summary.accepted_samples} accepted")
    print(f"  Accuracy:   {summary.accuracy_score:.2f}")
    print(f"  Duration:   {summary.duration_s:.1f}s")

    print("\n[Angles]")
    print("-" * 60)
    print(f"  {'channel':28s} {'mean':>8s} {'std':>8s} {'peak':>8s}")
    for channel in ALL_CHANNELS:
        stats = summary.channels[channel]
        print(f"  {channel:28s} {stats.mean:8.2f} {stats.std:8.2f} {stats.peak:8.2f}")

    if summary.step is not None:
        print("\n[Step]")
        print("-" * 60)
        print(f"  {summary.step}: {summary.step_angle:.2f} deg, {summary.achievement:.1f}% of target")
