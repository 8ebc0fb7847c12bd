#!/usr/bin/env python3
"""
Virtual Dyno - estimate wheel horsepower and torque from an ECU datalog
Reads an engine-sensor CSV log and produces a dyno-style curve without a dynamometer
"""

import argparse
import dataclasses
import logging
import sys

from .analyzer import DynoAnalyzer
from .constants import AnalysisConstants
from .data_loader import DataLoader
from .plotting import Plotter
from .vehicle_specs import CalculationSettings, DriveType, VehicleProfile, available_presets

DEFAULT_WEIGHT_LB = 3000
DEFAULT_DISPLACEMENT_L = 2.0


def build_profile(args) -> VehicleProfile:
    """Vehicle profile from a preset, or from the command-line specs"""
    if args.vehicle:
        profile = VehicleProfile.from_preset(args.vehicle, weight_lb=args.weight)
        if args.displacement or args.drive_type or args.naturally_aspirated:
            overrides = {}
            if args.displacement:
                overrides['displacement_l'] = args.displacement
            if args.drive_type:
                overrides['drive_type'] = DriveType(args.drive_type)
            if args.naturally_aspirated:
                overrides['forced_induction'] = False
            profile = dataclasses.replace(profile, **overrides)
        return profile

    return VehicleProfile(
        weight_lb=int(args.weight or DEFAULT_WEIGHT_LB),
        displacement_l=args.displacement or DEFAULT_DISPLACEMENT_L,
        drive_type=DriveType(args.drive_type or 'FWD'),
        forced_induction=not args.naturally_aspirated,
    )


def build_settings(args) -> CalculationSettings:
    return CalculationSettings(
        use_afr_correction=not args.no_afr_correction,
        use_knock_correction=not args.no_knock_correction,
        use_atmospheric_correction=not args.no_atmospheric_correction,
        use_volumetric_efficiency=not args.no_ve_correction,
        use_boost_correction=not args.no_boost_correction,
        calibration_override=args.calibration,
    )


def main(argv=None):
    """Main entry point"""
    presets = ', '.join(sorted(available_presets()))
    parser = argparse.ArgumentParser(
        description='Estimate a dyno curve (wheel HP and torque) from an ECU datalog',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Vehicle presets: {presets}

Examples:
  # Mazdaspeed3 log pulled in 4th gear
  virtual-dyno log.csv --vehicle mazdaspeed3

  # WRX with passenger, 3rd gear pull, heavier smoothing
  virtual-dyno log.csv --vehicle wrx --weight 3400 --gear 3 --smoothing 3

  # Custom car, raw curve printed as a table
  virtual-dyno log.csv --weight 2900 --displacement 1.8 --drive-type RWD --smoothing 0 --table --no-plot

  # Log with the header on the second line and a units row below it
  virtual-dyno log.csv --vehicle gti --header-row 1 --units-row
        """
    )

    # Required arguments
    parser.add_argument('csv_file', help='Path to CSV datalog file')

    # Vehicle
    parser.add_argument('--vehicle', help='Vehicle preset key (sets weight, engine, drivetrain and calibration)')
    parser.add_argument('--weight', type=int, default=None,
                        help=f'Vehicle weight in lb (default: preset weight or {DEFAULT_WEIGHT_LB})')
    parser.add_argument('--displacement', type=float, default=None,
                        help=f'Engine displacement in liters (default: preset or {DEFAULT_DISPLACEMENT_L})')
    parser.add_argument('--drive-type', choices=[d.value for d in DriveType], default=None,
                        help='Driven wheels (default: preset or FWD)')
    parser.add_argument('--naturally-aspirated', action='store_true',
                        help='Engine has no turbo or supercharger (default: forced induction)')
    parser.add_argument('--gear', type=int, choices=sorted(AnalysisConstants.GEAR_CORRECTIONS),
                        default=AnalysisConstants.DEFAULT_GEAR,
                        help=f'Gear the pull was logged in (default: {AnalysisConstants.DEFAULT_GEAR})')

    # Calculation
    parser.add_argument('--smoothing', type=int, choices=range(0, AnalysisConstants.MAX_SMOOTHING_LEVEL + 1),
                        default=AnalysisConstants.DEFAULT_SMOOTHING_LEVEL,
                        help='Smoothing level 0-5, 0 disables (default: 1)')
    parser.add_argument('--calibration', type=float, default=None,
                        help='Calibration factor overriding the vehicle calibration table')
    parser.add_argument('--no-afr-correction', action='store_true', help='Disable air/fuel ratio correction')
    parser.add_argument('--no-knock-correction', action='store_true', help='Disable knock retard correction')
    parser.add_argument('--no-atmospheric-correction', action='store_true',
                        help='Disable intake air temperature correction')
    parser.add_argument('--no-ve-correction', action='store_true', help='Disable volumetric efficiency curve')
    parser.add_argument('--no-boost-correction', action='store_true',
                        help='Disable boost factor in the load-based method')

    # Input format
    parser.add_argument('--header-row', type=int, default=0, help='0-indexed row holding column names (default: 0)')
    parser.add_argument('--units-row', action='store_true', help='Skip a units row directly below the header')

    # Output options
    parser.add_argument('--out', help='Output file for plot (optional)')
    parser.add_argument('--title', help='Custom title for the plot')
    parser.add_argument('--no-plot', action='store_true', help='Skip generating plot')
    parser.add_argument('--table', action='store_true', help='Print the curve as a table')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        profile = build_profile(args)
        analyzer = DynoAnalyzer(profile, build_settings(args))

        table = DataLoader(header_row=args.header_row, units_row=args.units_row).load_table(args.csv_file)
        result = analyzer.estimate(table, gear=args.gear, smoothing_level=args.smoothing)

        print(analyzer.generate_report(result))
        if args.table:
            print()
            print(analyzer.generate_curve_table(result.curve))

        if not args.no_plot:
            Plotter(profile).plot_dyno_curve(result.curve, result.peaks, args.out, args.title)

    except (ValueError, OSError) as e:
        # DynoError is a ValueError; loader and preset failures are too
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())


"""
=============================================================================
CSV FILE REQUIREMENTS FOR VIRTUAL-DYNO
=============================================================================

REQUIRED COLUMNS (matched case-insensitively by substring):
------------------------------------------------------------
1. Engine speed - 'RPM', 'Engine Speed', 'Engine RPM'
   - Integer-rounded; samples at or below 2000 RPM are ignored

2. Engine load - 'Calculated Load', 'Engine Load', 'Load'
   - Fraction (0-1) or percent when the header contains '%'

3. At least one airflow or pressure channel:
   - 'MAF', 'Mass Airflow' - grams per second
   - 'Boost', 'Boost Pressure' - psi gauge
   - 'MAP (kPa)', 'Manifold Pressure (kPa)' - kPa absolute, converted to boost

NICE-TO-HAVE COLUMNS (enable corrections):
------------------------------------------
4. AFR / Lambda - air/fuel correction (lambda is scaled by 14.7)
5. Intake air temperature - atmospheric correction (Celsius headers converted)
6. Knock retard / Feedback knock - timing loss correction
7. Dynamic advance multiplier, fuel trims - Subaru-style knock estimate
8. Throttle position - recorded only

CSV FORMAT:
-----------
- Header row defaults to the first line (--header-row to change)
- An optional units row directly under the header is skipped with --units-row
- UTF-8 (with or without BOM) or Latin-1
- Rows with a blank or non-numeric RPM or load cell are skipped and counted
- Blank or non-numeric cells in other columns read as "not logged" for that row;
  a blank MAP (kPa) cell reads as full vacuum, so the row is filtered

TROUBLESHOOTING:
----------------
- "Could not find required column": rename the column or add an alias in
  virtualdyno/data/channel_aliases.toml
- "No valid dyno data found": the log has no wide-open-throttle samples
  above 2000 RPM with load over 15%
"""
