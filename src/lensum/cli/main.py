"""CLI main module with subcommands for inspect, sum, reduce and validate.

Usage:
    python -m lensum.cli inspect lensout.dat --config run.yaml
    python -m lensum.cli sum lensout.dat --nbin 21 -o total.dat
    python -m lensum.cli reduce split-*.dat --nbin 21 --shear-style lensfit -o reduced.dat
    python -m lensum.cli validate lensout.dat --config run.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ..core.config import LensumConfig, load_config
from ..core.errors import ConfigError, LensumError
from ..core.logging import get_logger, setup_logging
from ..core.types import ShearStyle
from ..io import iter_lensums, read_lensums, reduce_files, write_lensums
from ..records import LensumCollection

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_DATA_ERROR = 1
EXIT_USAGE_ERROR = 2


def resolve_config(args: argparse.Namespace) -> LensumConfig:
    """Merge ``--config`` with ``--nbin``/``--shear-style``; flags win."""
    data: dict = {}
    if getattr(args, "config", None):
        data = load_config(args.config).model_dump()
    if args.nbin is not None:
        data["nbin"] = args.nbin
    if args.shear_style is not None:
        data["shear_style"] = args.shear_style
    if "nbin" not in data:
        raise ConfigError("nbin must be given with --nbin or --config")
    try:
        return LensumConfig(**data)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def cmd_inspect(args: argparse.Namespace, cfg: LensumConfig) -> int:
    """Print first, last and summed records of a lensout file."""
    lensums = read_lensums(args.file, cfg.nbin, cfg.shear_style)
    logger.info(f"{args.file}: {len(lensums)} lensums")
    if len(lensums) == 0:
        logger.warning("no lensums to inspect")
        return EXIT_OK
    lensums.print_first_last()
    logger.info("sum of all lensums:")
    lensums.print_sum()
    return EXIT_OK


def cmd_sum(args: argparse.Namespace, cfg: LensumConfig) -> int:
    """Collapse every record of a file into one aggregate record."""
    lensums = read_lensums(args.file, cfg.nbin, cfg.shear_style)
    total = lensums.sum()
    write_lensums(LensumCollection.from_records([total]), args.out)
    logger.info(f"Wrote {args.out}")
    return EXIT_OK


def cmd_reduce(args: argparse.Namespace, cfg: LensumConfig) -> int:
    """Add several split outputs lens by lens."""
    logger.info(f"Will combine into file: {args.out}")
    data = reduce_files(args.files, cfg.nbin, cfg.shear_style)
    write_lensums(data, args.out)
    logger.info(f"Wrote {len(data)} lensums to {args.out}")
    return EXIT_OK


def cmd_validate(args: argparse.Namespace, cfg: LensumConfig) -> int:
    """Check that every line of a file parses with the configured shape."""
    count = 0
    for _ in iter_lensums(args.file, cfg.nbin, cfg.shear_style):
        count += 1
    if cfg.nlens is not None and count != cfg.nlens:
        logger.error(f"expected {cfg.nlens} lensums, found {count}")
        return EXIT_DATA_ERROR
    logger.info(
        f"{args.file}: {count} valid lensums ({cfg.tokens_per_record} tokens each)"
    )
    return EXIT_OK


def _add_shape_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="YAML/JSON config giving nbin and shear_style",
    )
    parser.add_argument("--nbin", type=int, help="Number of radial bins")
    parser.add_argument(
        "--shear-style",
        choices=[s.value for s in ShearStyle],
        help="Shear accumulation mode (default: reduced)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lensum",
        description="Inspect, sum and reduce lensout files",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", type=Path, help="Also write JSON lines log here")

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    parser_inspect = subparsers.add_parser(
        "inspect",
        help="Print first, last and summed lensums of a file",
    )
    parser_inspect.add_argument("file", type=Path, help="Lensout file")
    _add_shape_arguments(parser_inspect)
    parser_inspect.set_defaults(func=cmd_inspect)

    parser_sum = subparsers.add_parser(
        "sum",
        help="Sum all lensums of a file into one record",
    )
    parser_sum.add_argument("file", type=Path, help="Lensout file")
    parser_sum.add_argument("--out", "-o", type=Path, required=True, help="Output file")
    _add_shape_arguments(parser_sum)
    parser_sum.set_defaults(func=cmd_sum)

    parser_reduce = subparsers.add_parser(
        "reduce",
        help="Add split lensout files lens by lens",
    )
    parser_reduce.add_argument("files", type=Path, nargs="+", help="Split lensout files")
    parser_reduce.add_argument("--out", "-o", type=Path, required=True, help="Output file")
    _add_shape_arguments(parser_reduce)
    parser_reduce.set_defaults(func=cmd_reduce)

    parser_validate = subparsers.add_parser(
        "validate",
        help="Check that every line of a file parses",
    )
    parser_validate.add_argument("file", type=Path, help="Lensout file")
    _add_shape_arguments(parser_validate)
    parser_validate.set_defaults(func=cmd_validate)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(args.log_file, level=level)

    try:
        cfg = resolve_config(args)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR

    try:
        return int(args.func(args, cfg) or 0)
    except (LensumError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DATA_ERROR


if __name__ == "__main__":
    sys.exit(main())
