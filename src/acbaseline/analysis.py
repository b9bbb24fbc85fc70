"""Bill analysis and reporting tools.

Splits utility bills into AC and non-AC usage with a saved baseline model,
and tabulates optimizer output for reporting.
"""

from dataclasses import asdict, dataclass
from io import StringIO
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging
import re

import pandas as pd

from .config import AnalysisConfig
from .exceptions import AnalysisError
from .models import OptimizationOutcome, OptimizationResult, RegressionModel
from .prediction import UsagePredictor, hours_in_period

SECONDS_PER_HOUR = 3600

@dataclass(frozen=True)
class BillRow:
    """One month of a utility bill."""
    year: int
    month: int
    kwh: float
    cost: float
    temperature: float  # average °C

    @property
    def period(self) -> str:
        return f"{self.year}-{self.month:02d}"

@dataclass(frozen=True)
class BillBreakdown:
    """AC / non-AC split of one bill month."""
    year: int
    month: int
    date: str
    total_kwh: float
    total_cost: float
    cost_per_kwh: float
    temperature: float
    expected_ac_kwh: float
    expected_ac_cost: float
    non_ac_kwh: float
    non_ac_cost: float
    ac_percentage: float
    used_hourly_data: bool

@dataclass(frozen=True)
class BillTotals:
    """Aggregates over a run of bill months."""
    total_kwh: float
    total_cost: float
    expected_ac_kwh: float
    expected_ac_cost: float
    non_ac_kwh: float
    non_ac_cost: float
    avg_temp: float
    avg_ac_percentage: float
    start_date: str
    end_date: str

@dataclass(frozen=True)
class BillAnalysis:
    """Result of analyzing a bill table."""
    rows: List[BillBreakdown]
    totals: BillTotals
    trailing: BillTotals

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(row) for row in self.rows]).set_index("date")

def _to_number(value: Any, strip: str = ",") -> Optional[float]:
    if value is None:
        return None
    text = re.sub(f"[{re.escape(strip)}\\s]", "", str(value))
    try:
        number = float(text)
    except ValueError:
        return None
    return None if pd.isna(number) else number

def parse_bill_table(text: str) -> List[BillRow]:
    """Parse a tab-separated bill export.

    The export holds several column groups; the one used ends in an
    "Avg Temp." column preceded by Year, Month, kWh, $ and $ per kWh.
    Rows with unparseable values are skipped.
    """
    if not text or not text.strip():
        raise AnalysisError("Bill table is empty")

    frame = pd.read_csv(
        StringIO(text.strip()),
        sep="\t",
        dtype=str,
        keep_default_na=False,
        on_bad_lines="skip"
    )

    temp_idx = next(
        (i for i, name in enumerate(frame.columns) if "avg temp" in str(name).lower()),
        None
    )
    if temp_idx is None:
        raise AnalysisError("Could not find 'Avg Temp.' column")
    if temp_idx < 5:
        raise AnalysisError("'Avg Temp.' column must follow Year, Month, kWh, $ and $ per kWh")

    year_idx, month_idx, kwh_idx, cost_idx = temp_idx - 5, temp_idx - 4, temp_idx - 3, temp_idx - 2

    rows = []
    for values in frame.itertuples(index=False):
        year = _to_number(values[year_idx])
        month = _to_number(values[month_idx])
        kwh = _to_number(values[kwh_idx])
        cost = _to_number(values[cost_idx], strip=",$")
        temperature = _to_number(values[temp_idx])

        if None in (year, month, kwh, cost, temperature):
            continue
        if not 1 <= month <= 12:
            continue

        rows.append(BillRow(
            year=int(year),
            month=int(month),
            kwh=kwh,
            cost=cost,
            temperature=temperature
        ))

    return rows

def parse_hourly_temperatures(text: str) -> Dict[int, float]:
    """Parse ``unix_seconds,temperature[,...]`` lines (first line is a header)."""
    if not text or not text.strip():
        return {}

    frame = pd.read_csv(StringIO(text.strip()), header=0, dtype=str, on_bad_lines="skip")
    if frame.shape[1] < 2:
        raise AnalysisError("Hourly temperature data needs timestamp and temperature columns")

    timestamps = pd.to_numeric(frame.iloc[:, 0], errors="coerce")
    temperatures = pd.to_numeric(frame.iloc[:, 1], errors="coerce")
    valid = timestamps.notna() & temperatures.notna()

    return {
        int(ts): float(temp)
        for ts, temp in zip(timestamps[valid], temperatures[valid])
    }

class BillAnalyzer:
    """Splits bill months into expected AC and non-AC usage."""

    def __init__(
        self,
        predictor: Optional[UsagePredictor] = None,
        config: Optional[AnalysisConfig] = None
    ):
        self.predictor = predictor or UsagePredictor()
        self.config = config or AnalysisConfig()
        self.logger = logging.getLogger("acbaseline.analysis")

    def month_hours(self, year: int, month: int) -> List[int]:
        """Unix timestamps of every hour of a month in the configured timezone."""
        start = pd.Timestamp(year=year, month=month, day=1, tz=self.config.timezone)
        end = start + pd.DateOffset(months=1)
        return list(range(int(start.timestamp()), int(end.timestamp()), SECONDS_PER_HOUR))

    def analyze(
        self,
        rows: Sequence[BillRow],
        model: RegressionModel,
        hourly_temperatures: Optional[Mapping[int, float]] = None
    ) -> BillAnalysis:
        """Break down every bill row with ``model``."""
        breakdowns = [self._breakdown(row, model, hourly_temperatures or {}) for row in rows]

        if not breakdowns:
            raise AnalysisError("No valid data rows found")

        trailing = breakdowns[-self.config.trailing_months:]
        self.logger.info(
            f"Analyzed {len(breakdowns)} bill months with {model.kind.value} model "
            f"({sum(1 for b in breakdowns if b.used_hourly_data)} from hourly data)"
        )

        return BillAnalysis(
            rows=breakdowns,
            totals=self._totals(breakdowns),
            trailing=self._totals(trailing)
        )

    def _breakdown(
        self,
        row: BillRow,
        model: RegressionModel,
        hourly_temperatures: Mapping[int, float]
    ) -> BillBreakdown:
        expected = None
        used_hourly = False

        if hourly_temperatures:
            hours = self.month_hours(row.year, row.month)
            temps = [hourly_temperatures[ts] for ts in hours if ts in hourly_temperatures]
            if temps and len(temps) >= self.predictor.config.min_hourly_coverage * len(hours):
                expected = self.predictor.predict(model, temps, len(hours))
                used_hourly = True
            else:
                self.logger.debug(
                    f"{row.period}: {len(temps)}/{len(hours)} hourly temperatures, "
                    f"using average {row.temperature}°C"
                )

        if expected is None:
            expected = self.predictor.predict(model, row.temperature, hours_in_period(row.period))

        ac_share = expected / row.kwh if row.kwh else 0.0
        expected_cost = ac_share * row.cost

        return BillBreakdown(
            year=row.year,
            month=row.month,
            date=row.period,
            total_kwh=row.kwh,
            total_cost=row.cost,
            cost_per_kwh=row.cost / row.kwh if row.kwh else 0.0,
            temperature=row.temperature,
            expected_ac_kwh=expected,
            expected_ac_cost=expected_cost,
            non_ac_kwh=row.kwh - expected,
            non_ac_cost=row.cost - expected_cost,
            ac_percentage=ac_share * 100 if row.kwh > 0 else 0.0,
            used_hourly_data=used_hourly
        )

    @staticmethod
    def _totals(breakdowns: Sequence[BillBreakdown]) -> BillTotals:
        frame = pd.DataFrame([asdict(b) for b in breakdowns])
        return BillTotals(
            total_kwh=float(frame["total_kwh"].sum()),
            total_cost=float(frame["total_cost"].sum()),
            expected_ac_kwh=float(frame["expected_ac_kwh"].sum()),
            expected_ac_cost=float(frame["expected_ac_cost"].sum()),
            non_ac_kwh=float(frame["non_ac_kwh"].sum()),
            non_ac_cost=float(frame["non_ac_cost"].sum()),
            avg_temp=float(frame["temperature"].mean()),
            avg_ac_percentage=float(frame["ac_percentage"].mean()),
            start_date=breakdowns[0].date,
            end_date=breakdowns[-1].date
        )

def compare_candidates(outcome: OptimizationOutcome) -> pd.DataFrame:
    """Tabulate ranked candidates, one row per requested family."""
    metrics = {}

    for rank, result in enumerate(outcome.candidates, start=1):
        metrics[result.requested_kind.value] = {
            "rank": rank,
            "fitted": result.model.kind.value,
            "equation": result.model.equation,
            "r_squared": result.model.r_squared,
            "mean_deviation": result.mean_deviation,
            "rmse": result.rmse,
            "max_deviation": result.max_deviation,
            "min_deviation": result.min_deviation,
            "invalid_count": result.invalid_count,
            "is_valid": result.is_valid,
            "is_best": result is outcome.best
        }

    return pd.DataFrame.from_dict(metrics, orient="index")

def monthly_frame(result: OptimizationResult) -> pd.DataFrame:
    """Per-period diagnostics of one candidate."""
    return pd.DataFrame([asdict(row) for row in result.monthly_results]).set_index("date")
