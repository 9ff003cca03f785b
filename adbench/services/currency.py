"""
Currency normalization for cross-account aggregation.

Accounts report spend and revenue in their own currency. Before any KPI is
computed across accounts, monetary counters are converted into the single
reporting currency using a read-only exchange-rate snapshot owned by the
rate-management component.

Key Types:
- ExchangeRateSnapshot: immutable (reporting_currency, rates, version)
- CurrencyNormalizer: amount conversion against one snapshot

Rules:
- Identity when source currency equals the reporting currency (no rounding)
- Unknown currency codes raise UnknownCurrency; falling back to
  treating the amount as already normalized is a caller policy
- The snapshot is never mutated or cached here
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional

from adbench.exceptions import UnknownCurrency
from adbench.services.aggregates import MONETARY_FIELDS, MetricAggregate


@dataclass(frozen=True)
class ExchangeRateSnapshot:
    """
    Rates to the reporting currency, as published by the rate store.

    Attributes:
        reporting_currency: Target currency code (e.g. "SAR").
        rates: Mapping of currency code -> multiplier into the reporting currency.
        version: Identifier of the snapshot (timestamp or "fallback").
    """
    reporting_currency: str
    rates: Mapping[str, float] = field(default_factory=dict)
    version: str = "fallback"

    def __post_init__(self):
        normalized = {code.upper(): float(rate) for code, rate in self.rates.items()}
        object.__setattr__(self, "reporting_currency", self.reporting_currency.upper())
        object.__setattr__(self, "rates", MappingProxyType(normalized))

    def rate(self, currency: str) -> float:
        """Return the multiplier for ``currency``; the reporting currency is always 1."""
        code = (currency or "").upper()
        if code == self.reporting_currency:
            return 1.0
        try:
            return self.rates[code]
        except KeyError:
            raise UnknownCurrency(code, self.version) from None

    def supports(self, currency: Optional[str]) -> bool:
        code = (currency or "").upper()
        return code == self.reporting_currency or code in self.rates


class CurrencyNormalizer:
    """
    Converts monetary amounts into the reporting currency of a snapshot.

    Stateless apart from the snapshot reference, so one instance can be shared
    by concurrent aggregation pipelines.
    """

    def __init__(self, snapshot: ExchangeRateSnapshot):
        self.snapshot = snapshot

    @property
    def reporting_currency(self) -> str:
        return self.snapshot.reporting_currency

    def to_reporting_currency(self, amount: float, source_currency: str) -> float:
        """
        Convert ``amount`` from ``source_currency`` into the reporting currency.

        Args:
            amount: Monetary amount; zero and negative values are allowed.
            source_currency: ISO-like currency code of ``amount``.

        Returns:
            The converted amount. When the source is the reporting currency the
            input is returned unchanged.

        Raises:
            UnknownCurrency: If the snapshot has no rate for ``source_currency``.
        """
        if (source_currency or "").upper() == self.snapshot.reporting_currency:
            return amount
        return amount * self.snapshot.rate(source_currency)

    def normalize_aggregate(self, aggregate: MetricAggregate) -> MetricAggregate:
        """
        Return a copy of ``aggregate`` with spend and revenue in the reporting
        currency. Count fields are untouched.
        """
        source = aggregate.currency or self.snapshot.reporting_currency
        converted = {
            name: self.to_reporting_currency(getattr(aggregate, name), source)
            for name in MONETARY_FIELDS
        }
        return replace(aggregate, currency=self.snapshot.reporting_currency, **converted)
