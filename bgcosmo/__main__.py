"""Command-line entry point: compute a background cosmology and write its table.

    python -m bgcosmo params.yaml --output background.txt
"""

from __future__ import annotations

import argparse
import logging
import sys

from bgcosmo.config import load_parameter_file
from bgcosmo.errors import CosmologyError
from bgcosmo.models import COSMOLOGY_REGISTRY, cosmology_from_parameters

logger = logging.getLogger("bgcosmo")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bgcosmo",
        description="Background cosmology with exact massive neutrinos",
        epilog=f"Models (key cosmology_model): {', '.join(COSMOLOGY_REGISTRY)}",
    )
    parser.add_argument("parameter_file", type=str,
                        help="YAML file with the cosmology_* parameters")
    parser.add_argument("--output", type=str, default="background.txt",
                        help="Output table (default: background.txt)")
    parser.add_argument("--a-low", type=float, default=1e-4,
                        help="Smallest scale factor in the table")
    parser.add_argument("--a-high", type=float, default=10.0,
                        help="Largest scale factor in the table")
    parser.add_argument("--n-points", type=int, default=1000,
                        help="Number of log-spaced rows")
    parser.add_argument("--rank", type=int, default=0,
                        help="Process rank; only rank 0 logs info and writes output")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        param = load_parameter_file(args.parameter_file)
        cosmo = cosmology_from_parameters(
            param,
            a_low=args.a_low,
            a_high=args.a_high,
            n_points_loga=args.n_points,
        )
        cosmo.init()
        cosmo.info(rank=args.rank)
        cosmo.output(args.output, rank=args.rank)
    except (CosmologyError, ValueError) as exc:
        logger.error("Failed to compute background: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
