"""
ADU Feasibility Engine - command line entry point.

Usage:
    python main.py "123 Main St, Hamilton, ON"
    python main.py "123 Main St, Hamilton, ON" --lot-width 30 --lot-depth 100 \
        --house-width 25 --house-depth 40 --json
"""

import argparse
import json
import logging
import sys

from core import AddressNotFound, FeasibilityReport, GeometryInput
from core.config import get_settings
from core.feasibility import FeasibilityEngine
from core.report import yes_no
from data_sink import create_report_sink

log = logging.getLogger("main")


def parse_geometry(args: argparse.Namespace):
    """GeometryInput from CLI args, or None when no lot dimensions were given."""
    if args.lot_width is None and args.lot_depth is None:
        return None
    if args.lot_width is None or args.lot_depth is None:
        raise ValueError("--lot-width and --lot-depth must be given together")
    return GeometryInput(
        lot_width=args.lot_width,
        lot_depth=args.lot_depth,
        house_width=args.house_width,
        house_depth=args.house_depth,
    )


def print_report(report: FeasibilityReport):
    verdict = report.verdict
    print("\n=== ADU FEASIBILITY REPORT ===")
    print(f"Address:        {report.address}")
    print(f"Coordinates:    ({report.coordinates.latitude:.5f}, {report.coordinates.longitude:.5f})")
    print(f"Zoning:         {report.zoning.category_label}")
    print(f"Heritage:       {yes_no(report.overlays.heritage_designated)}")
    print(f"Greenbelt:      {yes_no(report.overlays.in_greenbelt)}")
    print(f"Soil Type:      {report.overlays.soil_type or 'Unknown'}")
    print(f"Sewer / Water:  {yes_no(report.utilities.sewer_available)} / "
          f"{yes_no(report.utilities.water_available)}")
    print(f"Allowed:        {'YES' if verdict.allowed else 'NO'} ({verdict.reason})")
    if verdict.max_buildable_area is not None:
        print(f"Max ADU Size:   {verdict.max_buildable_area:.0f} sq ft")
    print(f"Setbacks:       rear {verdict.required_setbacks.rear:.0f} ft, "
          f"side {verdict.required_setbacks.side:.0f} ft")
    print(f"Incentive:      {'Eligible' if report.incentive_eligible else 'Not eligible'}")
    print(f"Confidence:     {report.confidence.value}{' (fallback)' if report.is_fallback else ''}")
    for warning in report.warnings:
        print(f"  ! {warning}")
    print(f"\n{report.summary}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="ADU feasibility report for a property address")
    parser.add_argument("address", help="Property address, e.g. '123 Main St, Hamilton, ON'")
    parser.add_argument("--lot-width", type=float, help="Lot width in feet")
    parser.add_argument("--lot-depth", type=float, help="Lot depth in feet")
    parser.add_argument("--house-width", type=float, help="House width in feet")
    parser.add_argument("--house-depth", type=float, help="House depth in feet")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--no-save", action="store_true", help="Do not archive the report")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s │ %(name)-20s │ %(levelname)-8s │ %(message)s',
        datefmt='%H:%M:%S',
    )

    try:
        geometry = parse_geometry(args)
    except ValueError as e:
        parser.error(str(e))

    settings = get_settings()
    sink = None if args.no_save else create_report_sink(settings.report_log_path)
    engine = FeasibilityEngine(sink=sink, settings=settings)

    try:
        report = engine.generate_feasibility_report(args.address, geometry)
    except AddressNotFound as e:
        log.error(str(e))
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
