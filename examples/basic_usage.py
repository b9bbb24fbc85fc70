"""
Basic usage example of the AC baseline library.
This example demonstrates core functionality including:
- Configuring the engine
- Ranking model families against a base-load target
- Reading per-month diagnostics
- Projecting future AC usage with the chosen model
"""

from pathlib import Path

from acbaseline import BaselineEngine
from acbaseline.analysis import compare_candidates
from acbaseline.config import BaselineConfig, MonitoringConfig

BILLS = [
    {"temperature": 11.2, "totalEnergy": 612, "date": "2023-01"},
    {"temperature": 13.0, "totalEnergy": 575, "date": "2023-02"},
    {"temperature": 16.4, "totalEnergy": 655, "date": "2023-03"},
    {"temperature": 20.1, "totalEnergy": 720, "date": "2023-04"},
    {"temperature": 24.8, "totalEnergy": 905, "date": "2023-05"},
    {"temperature": 28.9, "totalEnergy": 1180, "date": "2023-06"},
    {"temperature": 31.5, "totalEnergy": 1420, "date": "2023-07"},
    {"temperature": 31.0, "totalEnergy": 1395, "date": "2023-08"},
    {"temperature": 27.6, "totalEnergy": 1090, "date": "2023-09"},
    {"temperature": 22.3, "totalEnergy": 780, "date": "2023-10"},
    {"temperature": 16.9, "totalEnergy": 640, "date": "2023-11"},
    {"temperature": 12.4, "totalEnergy": 620, "date": "2023-12"},
]

def main():
    # Create basic configuration
    config = BaselineConfig(
        name="Basic Baseline Example",
        monitoring=MonitoringConfig(
            configure_logging=True,
            log_level="INFO",
            log_file=str(Path("basic_baseline.log"))
        )
    )

    engine = BaselineEngine(config)

    print("Initializing baseline engine...")
    print(f"Name: {config.name}")
    print(f"Logging to: {config.monitoring.log_file}")

    target = 550  # kWh of base load per month
    print(f"\nRanking model families against a {target} kWh/month base load...")
    outcome = engine.optimize(BILLS, target)

    print("\nCandidates:")
    print(compare_candidates(outcome)[["fitted", "equation", "mean_deviation", "invalid_count"]])

    best = outcome.best
    print(f"\nBest model: {best.requested_kind.value} ({best.model.equation})")
    print(f"R²: {best.model.r_squared:.3f}")
    if not best.is_valid:
        print(f"Warning: {best.invalid_count} months fall outside (0, total usage)")

    print("\nMonthly Breakdown:")
    for row in best.monthly_results:
        flag = "" if row.is_valid else "  (invalid)"
        print(
            f"  {row.date}: {row.total_energy:7.1f} kWh total, "
            f"{row.expected_ac_energy:7.1f} AC, {row.non_ac_energy:7.1f} non-AC{flag}"
        )

    print("\nProjecting next summer...")
    projections = engine.projector.project_months(
        best.model,
        {"2024-06": [27.5, 29.0, 30.1], "2024-07": [31.0, 32.4], "2024-08": [30.2, 31.8]}
    )
    for projection in projections:
        print(f"  {projection.label}: {projection.value:.1f} kWh at {projection.temperature:.1f}°C")

    print("\nBasic usage demonstration completed!")

if __name__ == "__main__":
    main()
