"""
Enumeration definitions for the ad benchmark backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, enabling automatic serialization and
deserialization in API responses and query parameter validation in FastAPI.
"""

from enum import Enum


class Objective(str, Enum):
    """
    Advertiser campaign objectives with a registered KPI calculator.

    The objective decides which KPIs are primary/secondary and, for the
    results-based objectives (leads, website_sales, in_app_actions), which
    counter is used as the cost-per-result denominator.
    """
    AWARENESS = "awareness"
    ENGAGEMENT = "engagement"
    TRAFFIC = "traffic"
    MESSAGES = "messages"
    APP_INSTALLS = "app_installs"
    IN_APP_ACTIONS = "in_app_actions"
    LEADS = "leads"
    WEBSITE_SALES = "website_sales"
    SALES = "sales"
    CALLS = "calls"
    RETENTION = "retention"


class PerformanceStatus(str, Enum):
    """
    Classification of an actual KPI value against a percentile band.

    - no_data: actual value or band missing (insufficient population)
    - poor / below_average / average / good / excellent: ordered from worst
      to best regardless of metric direction
    """
    NO_DATA = "no_data"
    POOR = "poor"
    BELOW_AVERAGE = "below_average"
    AVERAGE = "average"
    GOOD = "good"
    EXCELLENT = "excellent"


class MetricDirection(str, Enum):
    """
    Whether higher or lower values of a metric indicate better performance.

    Cost metrics (CPC, CPM, CPL, CPA, cost per call) are lower-is-better;
    rate metrics (CTR, CVR, ROAS) are higher-is-better.
    """
    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


class InsightType(str, Enum):
    """Kind of insight emitted by the insight generators."""
    IMPROVEMENT = "improvement"
    STRENGTH = "strength"
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


class InsightPriority(str, Enum):
    """Display priority for insights."""
    HIGH = "high"
    MEDIUM = "medium"
    INFO = "info"


class Platform(str, Enum):
    """Advertising networks that accounts can be connected from."""
    FACEBOOK = "facebook"
    GOOGLE = "google"
    TIKTOK = "tiktok"
    SNAPCHAT = "snapchat"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"


class FunnelStage(str, Enum):
    """
    Marketing funnel stage tag carried by accounts and campaigns.

    - TOF: Top of Funnel (Awareness)
    - MOF: Middle of Funnel (Consideration)
    - BOF: Bottom of Funnel (Conversion)
    """
    TOF = "TOF"
    MOF = "MOF"
    BOF = "BOF"


class UserJourney(str, Enum):
    """Where a click lands: an instant lead form or a landing page."""
    INSTANT_FORM = "instant_form"
    LANDING_PAGE = "landing_page"


class BenchmarkDimension(str, Enum):
    """
    Classification dimensions accounts can be grouped by for benchmarks.

    Industry is always part of the grouping; the others are refinements.
    """
    INDUSTRY = "industry"
    PLATFORM = "platform"
    FUNNEL_STAGE = "funnel_stage"
    USER_JOURNEY = "user_journey"
    SUB_INDUSTRY = "sub_industry"
    HAS_PIXEL_DATA = "has_pixel_data"


class TimeseriesGroupBy(str, Enum):
    """Grouping key for KPI timeseries."""
    DATE = "date"
    CAMPAIGN = "campaign"
    ACCOUNT = "account"
    PLATFORM = "platform"


class SpendGroupBy(str, Enum):
    """Grouping key for spend breakdowns."""
    ACCOUNT = "account"
    CAMPAIGN = "campaign"


class TimeseriesMetric(str, Enum):
    """
    Metrics that can be plotted as a timeseries.

    Raw counters (spend, revenue, impressions, clicks, leads, calls) are
    plotted as summed values; the rest are KPIs computed per period.
    """
    ROAS = "roas"
    CPL = "cpl"
    CPM = "cpm"
    CPC = "cpc"
    CTR = "ctr"
    CVR = "cvr"
    COST_PER_CALL = "cost_per_call"
    SPEND = "spend"
    REVENUE = "revenue"
    IMPRESSIONS = "impressions"
    CLICKS = "clicks"
    LEADS = "leads"
    CALLS = "calls"
