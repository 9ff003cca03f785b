"""
Metric aggregate value types and group-by helpers.

A MetricAggregate is the sum of raw daily counters over some grouping key
(account, campaign, date, platform or an industry group). Aggregates are
immutable: every regrouping produces new instances from the underlying rows.

Key Types:
- MetricAggregate: summed counters + currency + optional campaign metadata
- MetricRow: one materialized daily metric row joined with its catalog entries
- AccountMetrics: one account's aggregate plus the dimensions it is grouped under
- RowGroup: result of grouping rows by arbitrary columns

Group-by is done with pandas so that the summary, timeseries and spend
breakdown views share one aggregation path.
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd


# =============================================================================
# Counter Definitions
# =============================================================================

# Counters summed from daily rows; order is the column order of frames
COUNTER_FIELDS: Tuple[str, ...] = (
    "spend",
    "impressions",
    "clicks",
    "conversions",
    "revenue",
    "leads",
    "calls",
    "purchases",
    "reach",
    "video_views",
    "sessions",
    "atc",
)

# Currency-denominated counters converted by the CurrencyNormalizer
MONETARY_FIELDS: Tuple[str, ...] = ("spend", "revenue")


# =============================================================================
# Value Types
# =============================================================================


@dataclass(frozen=True)
class MetricAggregate:
    """
    Summed raw counters for one grouping key.

    Attributes:
        spend/revenue: Monetary totals in ``currency``.
        impressions ... atc: Count totals.
        currency: Currency code of the monetary totals (None when unknown).
        campaign_name: Campaign name, set when the aggregate is per campaign.
        campaign_objective: Declared campaign objective, same condition.
    """
    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    revenue: float = 0.0
    leads: int = 0
    calls: int = 0
    purchases: int = 0
    reach: int = 0
    video_views: int = 0
    sessions: int = 0
    atc: int = 0
    currency: Optional[str] = None
    campaign_name: Optional[str] = None
    campaign_objective: Optional[str] = None

    def counters(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in COUNTER_FIELDS}

    @classmethod
    def from_counters(cls, counters: Dict[str, Any], **metadata) -> "MetricAggregate":
        """Build an aggregate from a mapping, coercing missing/None counters to 0."""
        values = {}
        for name in COUNTER_FIELDS:
            raw = counters.get(name)
            if raw is None or pd.isna(raw):
                raw = 0
            values[name] = float(raw) if name in MONETARY_FIELDS else int(raw)
        return cls(**values, **metadata)


@dataclass(frozen=True)
class MetricRow:
    """
    One daily metric row with its campaign and account catalog entries.

    Rows are produced by the repository; all monetary counters are in the
    account's ``currency`` until normalized.
    """
    date: date
    account_id: int
    account_name: str
    campaign_id: int
    campaign_name: str
    platform: str
    currency: Optional[str] = None
    campaign_objective: Optional[str] = None
    industry: Optional[str] = None
    sub_industry: Optional[str] = None
    funnel_stage: Optional[str] = None
    user_journey: Optional[str] = None
    has_pixel_data: bool = False
    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    revenue: float = 0.0
    leads: int = 0
    calls: int = 0
    purchases: int = 0
    reach: int = 0
    video_views: int = 0
    sessions: int = 0
    atc: int = 0

    def to_aggregate(self) -> MetricAggregate:
        return MetricAggregate(
            **{name: getattr(self, name) for name in COUNTER_FIELDS},
            currency=self.currency,
            campaign_name=self.campaign_name,
            campaign_objective=self.campaign_objective,
        )


@dataclass(frozen=True)
class AccountMetrics:
    """
    One account's aggregate over the benchmark window.

    ``aggregate`` must already be in the reporting currency. ``dimensions``
    holds the classification values the account is grouped under
    (industry, platform, funnel_stage, ...).
    """
    account_id: int
    account_name: str
    aggregate: MetricAggregate
    dimensions: Dict[str, Any] = field(default_factory=dict)

    def dimension(self, name: str) -> Any:
        return self.dimensions.get(name)


@dataclass
class RowGroup:
    """Rows sharing the same values for the requested group-by columns."""
    key: Dict[str, Any]
    aggregate: MetricAggregate
    active_days: int
    rows: List[MetricRow]


# =============================================================================
# Aggregation Helpers
# =============================================================================


def sum_aggregates(
    aggregates: Iterable[MetricAggregate],
    currency: Optional[str] = None,
) -> MetricAggregate:
    """
    Sum counters of ``aggregates`` into a new aggregate.

    Campaign metadata survives only when every input agrees on it. The
    currency is ``currency`` when given, otherwise the shared input currency.
    """
    items = list(aggregates)
    if not items:
        return MetricAggregate(currency=currency)

    totals = {name: sum(getattr(item, name) for item in items) for name in COUNTER_FIELDS}

    def shared(attr: str) -> Optional[str]:
        values = {getattr(item, attr) for item in items}
        return values.pop() if len(values) == 1 else None

    return MetricAggregate(
        **totals,
        currency=currency if currency is not None else shared("currency"),
        campaign_name=shared("campaign_name"),
        campaign_objective=shared("campaign_objective"),
    )


def rows_to_frame(rows: Sequence[MetricRow]) -> pd.DataFrame:
    """Return one DataFrame column per MetricRow field (empty frame for no rows)."""
    columns = [f.name for f in fields(MetricRow)]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([asdict(row) for row in rows], columns=columns)


def group_rows(
    rows: Sequence[MetricRow],
    keys: Sequence[str],
    currency: Optional[str] = None,
) -> List[RowGroup]:
    """
    Group ``rows`` by the MetricRow attributes named in ``keys``.

    Groups are returned in ascending key order. ``active_days`` counts the
    distinct dates in each group.

    Args:
        rows: Rows to group; monetary counters should already be normalized.
        keys: MetricRow attribute names to group by (e.g. ["date"]).
        currency: Currency stamped on the summed aggregates.

    Returns:
        List of RowGroup, one per distinct key combination.
    """
    if not rows:
        return []

    frame = rows_to_frame(rows)
    frame["_row"] = range(len(rows))
    keys = list(keys)

    groups: List[RowGroup] = []
    for index, members in frame.groupby(keys, sort=True, dropna=False):
        values = index if isinstance(index, tuple) else (index,)
        key = {name: _to_python(value) for name, value in zip(keys, values)}
        member_rows = [rows[i] for i in members["_row"].tolist()]
        aggregate = sum_aggregates(
            (row.to_aggregate() for row in member_rows),
            currency=currency,
        )
        groups.append(
            RowGroup(
                key=key,
                aggregate=aggregate,
                active_days=int(members["date"].nunique()),
                rows=member_rows,
            )
        )
    return groups


def build_account_metrics(
    rows: Sequence[MetricRow],
    dimensions: Sequence[str] = ("industry",),
    currency: Optional[str] = None,
) -> List[AccountMetrics]:
    """
    Collapse normalized daily rows into one AccountMetrics per account.

    Dimension values are taken from the account catalog columns of the rows.
    An account whose campaigns carry different values for a dimension (for
    example two platforms) yields one AccountMetrics per distinct value.
    """
    keys = ["account_id", "account_name"] + list(dimensions)
    accounts = []
    for group in group_rows(rows, keys, currency=currency):
        accounts.append(
            AccountMetrics(
                account_id=group.key["account_id"],
                account_name=group.key["account_name"],
                aggregate=group.aggregate,
                dimensions={name: group.key.get(name) for name in dimensions},
            )
        )
    return accounts


def _to_python(value: Any) -> Any:
    """Convert pandas/numpy scalars and NaN keys back to plain Python values."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, float) and pd.isna(value):
        return None
    if hasattr(value, "item"):
        value = value.item()
        return None if isinstance(value, float) and pd.isna(value) else value
    return value
