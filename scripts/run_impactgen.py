#!/usr/bin/env python3
"""Agent forcing generation runner.

Usage:
    python scripts/run_impactgen.py scripts/user_config.py
    python scripts/run_impactgen.py scripts/user_config.py --output-file forcing.nc
    python scripts/run_impactgen.py scripts/user_config.py --combination max -v

Note: User config in scripts/user_config.py, expert defaults in
src/impactgen/schemas/param.py
"""

import sys
import argparse
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from impactgen.cli import run_impactgen


def main():
    parser = argparse.ArgumentParser(description="Generate agent forcing from gridded hazard data")
    parser.add_argument("config", help="Path to user config file")
    parser.add_argument("--output-file", help="Override output file")
    parser.add_argument("--reference", help="Override time reference, e.g. 'days since 2000-01-01'")
    parser.add_argument("--combination", choices=["add", "max", "min", "mult"],
                        help="How hazard forcings are combined")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    run_impactgen(
        args.config,
        cli_args={
            "output_file": args.output_file,
            "reference": args.reference,
            "combination": args.combination,
        },
        verbose=args.verbose,
    )


if __name__ == "__main__":
    main()
