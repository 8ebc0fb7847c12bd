"""
Constants and analysis parameters for dyno estimation
"""


class AnalysisConstants:
    """Constants used throughout the power estimation"""

    # Physics constants
    HP_TORQUE_CROSSOVER_RPM = 5252
    ATMOSPHERIC_PSI = 14.7
    ATMOSPHERIC_KPA = 101.3
    KPA_TO_PSI = 0.145038
    RANKINE_OFFSET = 459.67
    STANDARD_TEMP_RANKINE = 537.67
    STOICH_AFR = 14.7

    # Sample validity thresholds
    MIN_VALID_RPM = 2000
    MIN_VALID_LOAD = 0.15
    MIN_VALID_MAF = 5.0  # g/s
    MIN_VALID_BOOST = -10.0  # psi

    # Knock derivation for advance-multiplier platforms
    DAM_RETARD_SCALE = 10.0
    LTFT_THRESHOLD = 5.0
    LTFT_SCALE = 0.1
    STFT_THRESHOLD = 10.0
    STFT_SCALE = 0.05

    # Base power formulas
    AIRFLOW_TO_HP = 1.08
    MAF_LOAD_SCALE = 1.15
    MAP_LOAD_SCALE = 1.2
    MAX_LOAD_FACTOR = 1.05
    DISPLACEMENT_BASELINE_L = 2.0
    MAF_DISPLACEMENT_SCALE = 0.025
    MAP_AIRFLOW_SCALE = 0.0135
    LOAD_HP_SCALE = 0.025
    LOAD_DISPLACEMENT_EXPONENT = 0.8
    LOAD_BOOST_SCALE = 0.04  # per psi

    # Pressure-method baseline VE as (upper rpm bound, ve)
    MAP_BASE_VE_BANDS = (
        (2500, 0.75),
        (3500, 0.85),
        (4500, 0.95),
        (5500, 0.90),
    )
    MAP_BASE_VE_HIGH_RPM = 0.85

    # AFR correction
    OPTIMAL_AFR_FORCED = 11.8
    OPTIMAL_AFR_NATURAL = 12.8
    MIN_PLAUSIBLE_AFR = 9.0
    MAX_PLAUSIBLE_AFR = 19.0
    BAD_AFR_FACTOR = 0.95
    AFR_TOLERANCE = 1.0
    AFR_GENTLE_LIMIT = 2.0
    AFR_GENTLE_PENALTY = 0.025
    AFR_STEEP_PENALTY = 0.03
    AFR_STEEP_OFFSET = 0.05

    # Knock and atmospheric corrections
    KNOCK_LOSS_PER_DEGREE = 0.018
    MIN_ATMOSPHERIC_FACTOR = 0.95
    MAX_ATMOSPHERIC_FACTOR = 1.05

    # Engine breathing curve
    VE_LOW_RPM = 0.90
    VE_RAMP_START_RPM = 2500
    VE_RAMP_PER_RPM = 0.0003
    VE_BANDS = (
        (3200, 1.08),  # building torque
        (3800, 1.12),  # peak torque zone
        (4200, 1.09),  # mid-range
        (5000, 1.06),  # peak HP zone
        (5700, 1.03),  # high rpm
        (6200, 0.99),  # over-rev
    )

    GEAR_CORRECTIONS = {3: 0.975, 4: 1.0, 5: 1.015}
    DRIVETRAIN_CORRECTIONS = {'FWD': 1.0, 'AWD': 0.955, 'RWD': 0.98}

    # Peak extraction guards
    HP_PEAK_MIN_RPM = 4000
    TORQUE_PEAK_MIN_RPM = 2500
    TORQUE_PEAK_MAX_RPM = 5500

    # Output
    OUTPUT_DECIMALS = 1
    DEFAULT_GEAR = 4
    DEFAULT_SMOOTHING_LEVEL = 1
    MAX_SMOOTHING_LEVEL = 5


class SmoothingConstants:
    """Genuine-peak detection and smoothing window parameters"""

    NEIGHBOR_MARGIN = 2.0
    REGIONAL_TOLERANCE = 1.0
    REGIONAL_WINDOW = 5
    MAX_HALF_WIDTH = 2
