# -*- coding: utf-8 -*-
"""
RDSAR Command Line - Plan, simulate and combine SAR chunks.

Sub-commands::

    rdsar plan CONFIG --sar-coord FILE --fc HZ --max-time S
    rdsar combine CONFIG
    rdsar simulate CONFIG --out DIR [--combine]

``simulate`` runs the configured chunk task on a synthetic point-target
segment (``rdsar.simulation``) and writes its artifacts under ``DIR``.

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-16

Modified
--------
2026-10-18
"""

# Standard library
import argparse
import dataclasses
import logging
from pathlib import Path
from typing import List, Optional

# RDSAR internal
from rdsar.config import load_config
from rdsar.exceptions import RdsarError
from rdsar.IO.segment import read_sar_coordinates, write_sar_coordinates
from rdsar.processing.chunking import ChunkPlanner
from rdsar.processing.combine import ChunkCombiner
from rdsar.processing.task import SarChunkTask, execute
from rdsar.simulation import simulate_point_target

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog="rdsar",
        description="Radar depth sounder SAR image formation.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Log processing stages at INFO level.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    plan = commands.add_parser("plan", help="Print the plan of a chunk.")
    plan.add_argument("config", type=Path, help="YAML configuration file.")
    plan.add_argument(
        "--sar-coord",
        type=Path,
        required=True,
        help="SAR coordinate file of the segment.",
    )
    plan.add_argument(
        "--fc",
        type=float,
        required=True,
        help="Center frequency in Hz.",
    )
    plan.add_argument(
        "--max-time",
        type=float,
        required=True,
        help="Last two-way travel time of the fast-time window in seconds.",
    )

    combine = commands.add_parser(
        "combine", help="Combine the chunk artifacts of a frame.")
    combine.add_argument("config", type=Path, help="YAML configuration file.")

    simulate = commands.add_parser(
        "simulate", help="Run a chunk task on a simulated point target.")
    simulate.add_argument("config", type=Path, help="YAML configuration file.")
    simulate.add_argument(
        "--out",
        type=Path,
        required=True,
        help="Output directory (replaces out_path of the configuration).",
    )
    simulate.add_argument(
        "--combine",
        action="store_true",
        default=False,
        help="Combine the frame after the chunk task.",
    )
    return parser.parse_args(argv)


def run_plan(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    sar_coords = read_sar_coordinates(args.sar_coord)
    planner = ChunkPlanner(
        config.sar.sigma_x, args.fc, args.max_time,
        config.sar.start_eps, config.sar.time_of_full_support,
    )
    plan = planner.plan(
        sar_coords.along_track, sar_coords.output_along_track,
        config.load.recs, sar_coords.surface_at,
    )
    print(f"Output lines:   {plan.out_rlines[0]}-{plan.out_rlines[-1]} "
          f"({len(plan.out_rlines)})")
    print(f"Records:        {plan.recs[0]}-{plan.recs[1]} "
          f"({plan.num_records})")
    print(f"Overlap:        {plan.overlap_start:.1f} m / "
          f"{plan.overlap_stop:.1f} m")
    print(f"Zero padding:   {plan.start_zero_pad} / {plan.stop_zero_pad}")
    print(f"Padded lines:   {plan.num_pre} / {plan.num_post}")
    return 0


def run_combine(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    for path in ChunkCombiner(config).run():
        print(path)
    return 0


def run_simulate(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    config = dataclasses.replace(config, out_path=str(args.out))
    channels = sorted({ch for img in config.load.imgs for ch in img})
    segment = simulate_point_target(
        sigma_x=config.sar.sigma_x, channels=channels)
    write_sar_coordinates(args.out / "sar_coord.h5", segment.sar_coords)

    task = SarChunkTask(
        config, segment.sar_coords, segment.trajectory_service(),
        segment.sample_loader(), verbose=args.verbose,
    )
    if not execute(task):
        return 1
    if args.combine:
        for path in ChunkCombiner(config).run():
            print(path)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the ``rdsar`` command."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    handlers = {
        "plan": run_plan,
        "combine": run_combine,
        "simulate": run_simulate,
    }
    try:
        return handlers[args.command](args)
    except RdsarError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
