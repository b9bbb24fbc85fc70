"""Visualization tools for baseline fits and AC / non-AC splits."""

from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .models import Observation, OptimizationOutcome, OptimizationResult, RegressionModel
from .prediction import hours_in_period

class FitPlotter:
    """Plots fitted models against the data they were fitted to."""

    def plot_fit(
        self,
        observations: Sequence[Observation],
        models: Sequence[RegressionModel],
        target_non_ac_energy: float = 0.0,
        figsize: Tuple[int, int] = (10, 6)
    ) -> plt.Figure:
        """Plot average AC power per period and each model's curve."""
        temps = np.array([obs.temperature for obs in observations], dtype=float)
        power = np.array([
            (obs.total_energy - target_non_ac_energy) / hours_in_period(obs.date)
            for obs in observations
        ])

        fig, ax = plt.subplots(figsize=figsize)
        ax.scatter(temps, power, color="black", zorder=3, label="Observed")

        grid = np.linspace(temps.min(), temps.max(), 200) if temps.size else np.array([])
        for model in models:
            curve = [model.evaluate(t) for t in grid]
            ax.plot(
                grid, curve,
                label=f"{model.kind.value}: {model.equation} (R²={model.clamped_r_squared:.3f})"
            )

        ax.set_xlabel("Temperature (°C)")
        ax.set_ylabel("Average AC power (kW)")
        ax.set_title("AC Power vs Temperature")
        ax.grid(True)
        ax.legend(loc="upper left", fontsize="small")
        fig.tight_layout()

        return fig

    def plot_outcome(
        self,
        observations: Sequence[Observation],
        outcome: OptimizationOutcome,
        figsize: Tuple[int, int] = (10, 6)
    ) -> plt.Figure:
        """Plot every fitted candidate over the synthetic AC series."""
        return self.plot_fit(
            observations,
            [result.model for result in outcome.candidates],
            outcome.target_non_ac_energy,
            figsize
        )

class SplitPlotter:
    """Plots per-period AC / non-AC breakdowns."""

    def plot_split(
        self,
        result: OptimizationResult,
        target_non_ac_energy: Optional[float] = None,
        figsize: Tuple[int, int] = (12, 6)
    ) -> plt.Figure:
        """Stacked bars of expected AC and non-AC energy per period."""
        labels = [row.date for row in result.monthly_results]
        ac = np.array([max(0.0, row.expected_ac_energy) for row in result.monthly_results])
        non_ac = np.array([row.non_ac_energy for row in result.monthly_results])
        positions = np.arange(len(labels))

        fig, ax = plt.subplots(figsize=figsize)
        ax.bar(positions, non_ac, label="Non-AC", color="tab:cyan")
        ax.bar(positions, ac, bottom=non_ac, label="AC", color="tab:purple")

        for position, row in zip(positions, result.monthly_results):
            if not row.is_valid:
                ax.annotate("!", (position, row.total_energy), ha="center", va="bottom", color="red")

        if target_non_ac_energy is not None:
            ax.axhline(target_non_ac_energy, color="gray", linestyle="--", label="Target non-AC")

        ax.set_xticks(positions)
        ax.set_xticklabels(labels, rotation=45, ha="right")
        ax.set_ylabel("Energy (kWh)")
        ax.set_title(f"AC vs Non-AC Usage ({result.model.kind.value})")
        ax.legend()
        fig.tight_layout()

        return fig
