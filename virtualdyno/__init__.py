"""
Virtual Dyno - ECU Datalog Power Estimation Tool

Estimates wheel horsepower and torque curves from engine-sensor datalogs
similar to a chassis dynamometer sheet.
"""

from .analyzer import DynoAnalyzer, estimate, extract_peaks, resmooth
from .constants import AnalysisConstants, SmoothingConstants
from .data_loader import DataLoader
from .errors import ConfigurationError, DynoError, EmptyResultError
from .models import CalculationMethod, CurvePoint, DatalogTable, DynoResult, PeakSummary
from .plotting import Plotter
from .power_calculator import PowerCalculator
from .smoothing import CurveSmoother
from .vehicle_specs import CalculationSettings, DriveType, VehicleProfile

__version__ = "1.0.0"

# Main exports for easy importing
__all__ = [
    'DynoAnalyzer',
    'estimate',
    'resmooth',
    'extract_peaks',
    'AnalysisConstants',
    'SmoothingConstants',
    'DataLoader',
    'DynoError',
    'ConfigurationError',
    'EmptyResultError',
    'CalculationMethod',
    'CurvePoint',
    'DatalogTable',
    'DynoResult',
    'PeakSummary',
    'Plotter',
    'PowerCalculator',
    'CurveSmoother',
    'CalculationSettings',
    'DriveType',
    'VehicleProfile',
]
