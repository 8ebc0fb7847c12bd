"""
Plotting and visualization of dyno curves
"""

import logging
from typing import Optional, Sequence

import numpy as np

from .constants import AnalysisConstants
from .curve_aggregator import curve_arrays
from .models import CurvePoint, PeakSummary
from .vehicle_specs import VehicleProfile

logger = logging.getLogger(__name__)


# Lazy imports for heavy dependencies
def _import_matplotlib():
    import matplotlib.pyplot as plt
    return plt


class Plotter:
    """Draws dyno-sheet style power and torque charts"""

    def __init__(self, profile: VehicleProfile):
        self.profile = profile

    def plot_dyno_curve(self, curve: Sequence[CurvePoint], peaks: PeakSummary,
                        save_path: Optional[str] = None, title: Optional[str] = None):
        """
        Create a power and torque chart on shared rpm axis

        Args:
            curve: Curve to draw, ascending rpm
            peaks: Peak summary used for the annotations
            save_path: Optional path to save the plot; the figure is shown otherwise
            title: Optional custom title for the plot

        Returns:
            The matplotlib Figure
        """
        if not curve:
            raise ValueError("No curve points to plot.")

        plt = _import_matplotlib()
        arrays = curve_arrays(curve)
        rpm = arrays['rpm']
        power = arrays['horsepower']
        torque = arrays['torque']

        fig, ax1 = plt.subplots(figsize=(12, 8))
        ax2 = ax1.twinx()

        ax1.plot(rpm, power, color='blue', linewidth=2.5, linestyle='-', label='Power (HP)')
        ax2.plot(rpm, torque, color='red', linewidth=2.5, linestyle=':', label='Torque (lb-ft)')

        # HP and torque cross at 5252 rpm
        crossover_rpm = AnalysisConstants.HP_TORQUE_CROSSOVER_RPM
        if rpm.min() < crossover_rpm < rpm.max():
            ax1.axvline(x=crossover_rpm, color='gray', linestyle='--', alpha=0.5, linewidth=1)

        # Same scale on both axes so 100 HP sits level with 100 lb-ft
        max_scale = max(float(np.max(power)), float(np.max(torque)), 1.0) * 1.1
        ax1.set_ylim(0, max_scale)
        ax2.set_ylim(0, max_scale)

        if peaks.max_horsepower > 0:
            ax1.annotate(f'{peaks.max_horsepower:.1f} HP @ {peaks.max_horsepower_rpm}',
                         xy=(peaks.max_horsepower_rpm, peaks.max_horsepower),
                         xytext=(0, 12), textcoords='offset points', ha='center', fontsize=9, color='blue')
        if peaks.max_torque > 0:
            ax2.annotate(f'{peaks.max_torque:.1f} lb-ft @ {peaks.max_torque_rpm}',
                         xy=(peaks.max_torque_rpm, peaks.max_torque),
                         xytext=(0, -18), textcoords='offset points', ha='center', fontsize=9, color='red')

        ax1.set_xlabel('Engine Speed (RPM)', fontsize=12, fontweight='bold')
        ax1.set_ylabel('Power (HP)', fontsize=12, fontweight='bold', color='blue')
        ax2.set_ylabel('Torque (lb-ft)', fontsize=12, fontweight='bold', color='red')
        ax1.tick_params(axis='y', labelcolor='blue')
        ax2.tick_params(axis='y', labelcolor='red')
        ax1.grid(True, alpha=0.3)

        lines1, labels1 = ax1.get_legend_handles_labels()
        lines2, labels2 = ax2.get_legend_handles_labels()
        ax1.legend(lines1 + lines2, labels1 + labels2, loc='upper left')

        vehicle = self.profile.name or f'{self.profile.displacement_l:.1f}L Engine'
        ax1.set_title(title if title else f'Virtual Dyno - {vehicle}', fontsize=14, fontweight='bold')

        fig.text(0.02, 0.01,
                 f"Vehicle: {self.profile.weight_lb:.0f} lb, {self.profile.drive_type.value} | "
                 f"Peak Power: {peaks.max_horsepower:.1f} HP @ {peaks.max_horsepower_rpm} RPM | "
                 f"Peak Torque: {peaks.max_torque:.1f} lb-ft @ {peaks.max_torque_rpm} RPM",
                 fontsize=10, style='italic')

        fig.tight_layout(rect=(0, 0.03, 1, 1))

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info("Plot saved to %s", save_path)
            plt.close(fig)
        else:
            plt.show()

        return fig
