"""
RPM-bucket aggregation of per-sample power estimates
"""

from typing import Iterable, List, Sequence, Tuple, Union

import numpy as np

from .constants import AnalysisConstants
from .models import CurvePoint
from .power_calculator import calculate_torque

CURVE_FIELDS = ('rpm', 'horsepower', 'torque', 'boost', 'mass_airflow', 'load')

PointLike = Union[CurvePoint, Sequence[float]]


# Lazy imports for heavy dependencies
def _import_pandas():
    import pandas as pd
    return pd


def _as_tuple(point: PointLike) -> Tuple:
    if isinstance(point, CurvePoint):
        return (point.rpm, point.horsepower, point.torque, point.boost, point.mass_airflow, point.load)
    return tuple(point)


def aggregate_curve(points: Iterable[PointLike]) -> List[CurvePoint]:
    """
    Collapse repeated rpm readings into one averaged point per rpm

    Args:
        points: CurvePoints or (rpm, horsepower, torque, boost, mass_airflow, load) tuples

    Returns:
        One CurvePoint per distinct rpm, ascending
    """
    records = [_as_tuple(p) for p in points]
    if not records:
        return []

    pd = _import_pandas()
    frame = pd.DataFrame.from_records(records, columns=list(CURVE_FIELDS))
    frame['rpm'] = frame['rpm'].astype(int)
    grouped = frame.groupby('rpm', sort=True).mean()

    decimals = AnalysisConstants.OUTPUT_DECIMALS
    curve = []
    for rpm, row in grouped.iterrows():
        rpm = int(rpm)
        horsepower = round(max(float(row['horsepower']), 0.0), decimals)
        # Within one rpm group the mean torque is the torque of the mean horsepower
        torque = round(calculate_torque(horsepower, rpm), decimals)
        curve.append(CurvePoint(
            rpm=rpm,
            horsepower=horsepower,
            torque=torque,
            boost=round(float(row['boost']), decimals),
            mass_airflow=float(row['mass_airflow']),
            load=float(row['load']),
        ))
    return curve


def curve_arrays(curve: Sequence[CurvePoint]) -> dict:
    """Column arrays of a curve, keyed by field name"""
    return {name: np.array([getattr(p, name) for p in curve], dtype=float) for name in CURVE_FIELDS}
