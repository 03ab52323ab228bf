"""
Command-line entry point: measure structures and list hole trajectories.

Usage:
    python main.py measure --p1 X Y Z --p2 X Y Z --p3 X Y Z [--boh1 A] [--boh2 A]
                           [--azimuth AZ] [--dip DIP] [--depth D] [--collar E N Z] [--json]
    python main.py trajectory TOTAL_DEPTH [--interval I] [--azimuth AZ] [--dip DIP]
    python main.py init-config [--output PATH]

Examples:
    python main.py measure --p1 -2.6836 1.6822 14.6413 --p2 -0.5745 3.1184 14.8241 \\
        --p3 2.3582 2.1072 14.8742 --azimuth 60 --dip -60 --depth 515
    python main.py --config hole.json trajectory 50000 --interval 1000
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from core_orient.errors import CoreOrientError
from core_orient.geometry.primitives import Point3D, PointTrio
from core_orient.logging_config import setup_logging
from core_orient.measurement import format_orientation, format_position, measure_structure
from core_orient.orientation.boh import BOHReferenceModel
from core_orient.orientation.rotation import DrillHoleOrientation
from core_orient.project_config import (
    CONFIG_FILENAME,
    ProjectConfig,
    create_sample_config,
    load_config,
)
from core_orient.trajectory import CollarPosition, trajectory

logger = logging.getLogger("core_orient.cli")


def _drill_hole(args: argparse.Namespace, config: ProjectConfig) -> DrillHoleOrientation:
    azimuth = config.drill_hole.azimuth if args.azimuth is None else args.azimuth
    dip = config.drill_hole.dip if args.dip is None else args.dip
    return DrillHoleOrientation(azimuth, dip)


def _collar(args: argparse.Namespace, config: ProjectConfig) -> CollarPosition:
    if getattr(args, "collar", None):
        east, north, elevation = args.collar
        return CollarPosition(east, north, elevation)
    hole = config.drill_hole
    return CollarPosition(hole.utm_east, hole.utm_north, hole.elevation)


def _cmd_measure(args: argparse.Namespace, config: ProjectConfig) -> int:
    trio = PointTrio(
        Point3D.from_sequence(args.p1),
        Point3D.from_sequence(args.p2),
        Point3D.from_sequence(args.p3),
        label=args.label,
    )

    boh_model = BOHReferenceModel(config.boh, radius=config.cylinder.radius_cm)
    boh_model.update(
        config.boh.line1_base if args.boh1 is None else args.boh1,
        config.boh.line2_base if args.boh2 is None else args.boh2,
    )

    measurement = measure_structure(
        trio,
        boh_model,
        _drill_hole(args, config),
        collar=_collar(args, config),
        depth_along_hole=args.depth,
        cylinder=config.cylinder,
    )

    if args.json:
        print(json.dumps(measurement.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(f"Dip / dip direction: {format_orientation(measurement.real)}")
    print(f"Alpha: {measurement.alpha:.2f}°  Beta: {measurement.beta:.2f}°  "
          f"(BOH{measurement.boh_line} at {measurement.boh_angle:.1f}°)")
    if measurement.position is not None:
        print(f"Position: {format_position(measurement.position)}")
    for issue in measurement.issues:
        print(str(issue))
    return 0


def _cmd_trajectory(args: argparse.Namespace, config: ProjectConfig) -> int:
    drill_hole = _drill_hole(args, config)
    collar = _collar(args, config)
    for depth_index, position in enumerate(trajectory(args.total_depth, drill_hole,
                                                      args.interval, collar)):
        print(f"{depth_index * args.interval:>10.2f}  {format_position(position)}")
    return 0


def _cmd_init_config(args: argparse.Namespace, config: ProjectConfig) -> int:
    create_sample_config(args.output)
    print(f"Sample configuration written to {args.output}")
    return 0


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Drill-core structure orientation.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help=f"Path to a {CONFIG_FILENAME} configuration file.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable DEBUG logging.",
    )
    parser.add_argument(
        "--log-json",
        default=None,
        dest="log_json",
        help="Also write JSON-lines logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    measure = subparsers.add_parser("measure", help="Orientation of one structure from three points.")
    for name in ("p1", "p2", "p3"):
        measure.add_argument(
            f"--{name}",
            nargs=3,
            type=float,
            required=True,
            metavar=("X", "Y", "Z"),
            help=f"Point {name[1]} on the core surface (local frame, cm).",
        )
    measure.add_argument("--label", default="", help="Structure label.")
    measure.add_argument("--boh1", type=float, default=None, help="BOH line 1 angle (deg).")
    measure.add_argument("--boh2", type=float, default=None, help="BOH line 2 angle (deg).")
    measure.add_argument("--azimuth", type=float, default=None, help="Hole azimuth (deg from North).")
    measure.add_argument("--dip", type=float, default=None, help="Hole dip (deg, negative down).")
    measure.add_argument("--depth", type=float, default=None,
                         help="Depth of the structure along the hole.")
    measure.add_argument("--collar", nargs=3, type=float, default=None,
                         metavar=("EAST", "NORTH", "ELEV"), help="Collar position.")
    measure.add_argument("--json", action="store_true", help="Print the result as JSON.")
    measure.set_defaults(handler=_cmd_measure)

    traj = subparsers.add_parser("trajectory", help="Positions along a straight hole.")
    traj.add_argument("total_depth", type=float, help="Hole length.")
    traj.add_argument("--interval", type=float, default=1000.0,
                      help="Spacing between stations (default: 1000).")
    traj.add_argument("--azimuth", type=float, default=None, help="Hole azimuth (deg from North).")
    traj.add_argument("--dip", type=float, default=None, help="Hole dip (deg, negative down).")
    traj.add_argument("--collar", nargs=3, type=float, default=None,
                      metavar=("EAST", "NORTH", "ELEV"), help="Collar position.")
    traj.set_defaults(handler=_cmd_trajectory)

    init = subparsers.add_parser("init-config", help="Write a documented sample configuration.")
    init.add_argument("--output", "-o", default=CONFIG_FILENAME,
                      help=f"Output path (default: {CONFIG_FILENAME}).")
    init.set_defaults(handler=_cmd_init_config)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_file=args.log_json,
    )
    config = load_config(args.config)

    try:
        return args.handler(args, config)
    except CoreOrientError as exc:
        logger.critical("Measurement error: %s", exc)
        return 1
    except ValueError as exc:
        logger.critical("Invalid input: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
