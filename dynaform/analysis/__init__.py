# ==============================================
# TOPIC 4: ANALYSIS (dashboard statistics)
# ==============================================
#
# Stateless aggregation over a Field/FormType/Record snapshot.
#
# Modules:
# --------
# - field_stats.py  → Accumulators: NumericSummary, CategoricalDistribution,
#                     PivotBucket, round_half_up
# - dashboard.py    → compute_dashboard() and its building blocks
#
# ==============================================

from .field_stats import (
    CategoricalDistribution,
    NumericSummary,
    PivotBucket,
    ValueCount,
    round_half_up,
)
from .dashboard import (
    ALL_FORMS,
    UNSET_BUCKET,
    DailyCount,
    DashboardSelection,
    DashboardView,
    FormTotal,
    GlobalCounts,
    GroupedPivot,
    categorical_distributions,
    compute_dashboard,
    filter_records,
    global_counts,
    grouped_pivot,
    numeric_summaries,
    per_form_totals,
    trailing_days,
)

__all__ = [
    "CategoricalDistribution",
    "NumericSummary",
    "PivotBucket",
    "ValueCount",
    "round_half_up",
    "ALL_FORMS",
    "UNSET_BUCKET",
    "DailyCount",
    "DashboardSelection",
    "DashboardView",
    "FormTotal",
    "GlobalCounts",
    "GroupedPivot",
    "categorical_distributions",
    "compute_dashboard",
    "filter_records",
    "global_counts",
    "grouped_pivot",
    "numeric_summaries",
    "per_form_totals",
    "trailing_days",
]
