"""Exceptions raised by the benchmark and KPI calculation engine."""

from typing import Iterable, List


class BenchmarkEngineError(Exception):
    """Base exception for engine errors."""

    pass


class InvalidObjective(BenchmarkEngineError):
    """Requested objective has no registered calculator."""

    def __init__(self, objective: str, supported: Iterable[str]):
        self.objective = objective
        self.supported: List[str] = list(supported)
        super().__init__(
            f"Unknown objective: {objective}. "
            f"Supported objectives: {', '.join(self.supported)}"
        )


class UnknownCurrency(BenchmarkEngineError):
    """Currency code is missing from the exchange-rate snapshot."""

    def __init__(self, currency: str, snapshot_version: str = ""):
        self.currency = currency
        self.snapshot_version = snapshot_version
        message = f"No exchange rate for currency: {currency}"
        if snapshot_version:
            message += f" (rate snapshot {snapshot_version})"
        super().__init__(message)


class AggregationFailure(BenchmarkEngineError):
    """The metrics store failed while producing aggregates."""

    pass


class ForecastUnavailable(BenchmarkEngineError):
    """The industry has no benchmark population to project results from."""

    def __init__(self, industry: str):
        self.industry = industry
        super().__init__(f"Not enough data to calculate predictions for {industry} industry")
