"""Info command for handrom CLI.

Shows registered wrist algorithms, measurement steps and the effective
configuration.
"""

import sys

from handrom.calculator import available_wrist_algorithms, get_wrist_algorithm
from handrom.config import RomConfig
from handrom.session import MeasurementStep


def run_info(args):
    """Show algorithms and configuration."""
    try:
        config = RomConfig.from_yaml(args.config) if getattr(args, "config", None) else RomConfig()
    except (FileNotFoundError, ValueError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print("handrom - System Information")
    print("=" * 60)
    _print_version_info()

    print("\n[Wrist Algorithms]")
    print("-" * 60)
    for name in available_wrist_algorithms():
        algorithm = get_wrist_algorithm(name)
        marker = " (active)" if name == config.angle.wrist_algorithm else ""
        print(f"  {name:16s} v{algorithm.version}{marker}")

    print("\n[Measurement Steps]")
    print("-" * 60)
    for step in MeasurementStep:
        print(f"  {step.value:18s} target {step.target_angle:.0f} deg")

    print("\n[Configuration]")
    print("-" * 60)
    for section, values in config.to_dict().items():
        print(f"  {section}:")
        for key, value in values.items():
            print(f"    {key}: {value}")


def _print_version_info():
    from handrom import __version__

    import numpy

    print(f"  handrom: {__version__}")
    print(f"  numpy: {numpy.__version__}")
