"""Command-line interface for handrom."""

import argparse
import logging
import sys
from typing import List, Optional


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="handrom",
        description="handrom - Wrist and thumb range-of-motion from hand landmarks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  handrom analyze session.jsonl                          # Summarize a recording
  handrom analyze session.jsonl --step palmar-flexion    # Score against a step target
  handrom analyze session.jsonl --hand right -o out.json # Right hand only, save report
  handrom info                                           # Algorithms and configuration
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # info command
    info_parser = subparsers.add_parser(
        "info",
        help="Show wrist algorithms and effective configuration",
    )
    info_parser.add_argument(
        "--config", type=str, metavar="PATH",
        help="Path to config YAML file",
    )

    # analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Replay a landmark recording through a measurement session",
        description="Read a JSON Lines landmark recording and summarize the measured angles.",
    )
    analyze_parser.add_argument("path", help="Path to JSON Lines recording")
    analyze_parser.add_argument(
        "--config", type=str, metavar="PATH",
        help="Path to config YAML file",
    )
    analyze_parser.add_argument(
        "--algorithm", type=str, default=None,
        help="Wrist algorithm (default: from config, 'directional')",
    )
    analyze_parser.add_argument(
        "--step",
        choices=["palmar-flexion", "dorsal-flexion", "ulnar-deviation", "radial-deviation"],
        default=None,
        help="Measurement step to score achievement against",
    )
    analyze_parser.add_argument(
        "--hand", choices=["left", "right", "auto"], default="auto",
        help="Only measure this hand (default: auto)",
    )
    analyze_parser.add_argument(
        "--no-smoothing", action="store_true",
        help="Disable moving-average smoothing",
    )
    analyze_parser.add_argument(
        "--output", "-o", type=str, metavar="PATH",
        help="Save session report to JSON file",
    )
    analyze_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``handrom`` CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)

    from handrom.cli import commands

    if args.command == "analyze":
        commands.run_analyze(args)

    elif args.command == "info":
        commands.run_info(args)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
