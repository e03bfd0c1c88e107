# ==============================================
# Dashboard Aggregation Engine
# ==============================================
#
# PURPOSE:
#   Turn the current snapshot (fields, form types, records) plus the
#   caller's selection into every statistic the dashboard shows.
#   Pure: no I/O, no mutation of inputs, no module state. The clock
#   (`today`) and timezone can be injected so results are repeatable.
#
# INPUT:
# ------
#   DashboardSelection(form_type_id="all" | <id>, group_by_field=None | <id>)
#
# OUTPUT: DashboardView
# ---------------------
#   counts              → GlobalCounts(total_fields, total_form_types,
#                                      total_records, records_today)
#   per_form_totals     → [FormTotal(form_type_id, name, count)]
#   last_7_days         → [DailyCount(day, label, count)] oldest → newest
#   numeric_summaries   → [NumericSummary]          (specific form only)
#   distributions       → [CategoricalDistribution] (specific form only)
#   pivot               → GroupedPivot | None       (specific form only)
#
# RULES:
# ------
#   - Field-level statistics run on records of the selected form type
#     only; with "all" (or an unknown id) they are empty.
#   - Number values that do not decode are skipped by the summary and
#     count as 0 in pivot sums.
#   - Unset values never form a category; in the pivot they fall into
#     the "N/A" bucket.
#   - Numeric fields with no decodable value and selector fields with
#     no populated value are left out.
#
# ==============================================

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from dynaform.normalization.value_codec import ValueCodec
from dynaform.schema.models import DataType, Field, FormType, Record, key_of
from .field_stats import CategoricalDistribution, NumericSummary, PivotBucket


ALL_FORMS = "all"
UNSET_BUCKET = "N/A"
TRAILING_DAYS = 7


@dataclass(frozen=True)
class DashboardSelection:
    """UI-owned selection state; the engine only reads it."""
    form_type_id: Any = ALL_FORMS
    group_by_field: Any = None

    @property
    def is_all(self) -> bool:
        return self.form_type_id is None or self.form_type_id == ALL_FORMS


@dataclass(frozen=True)
class GlobalCounts:
    total_fields: int
    total_form_types: int
    total_records: int
    records_today: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_fields": self.total_fields,
            "total_form_types": self.total_form_types,
            "total_records": self.total_records,
            "records_today": self.records_today,
        }


@dataclass(frozen=True)
class FormTotal:
    form_type_id: Any
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"form_type_id": self.form_type_id, "name": self.name, "count": self.count}


@dataclass(frozen=True)
class DailyCount:
    day: date
    label: str  # e.g. "Oct 19"
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.day.isoformat(), "label": self.label, "count": self.count}


@dataclass
class GroupedPivot:
    group_by_field: Any
    numeric_field_ids: List[Any] = field(default_factory=list)
    buckets: Dict[str, PivotBucket] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_by_field": self.group_by_field,
            "numeric_field_ids": list(self.numeric_field_ids),
            "buckets": [bucket.to_dict() for bucket in self.buckets.values()],
        }


@dataclass
class DashboardView:
    selection: DashboardSelection
    counts: GlobalCounts
    per_form_totals: List[FormTotal]
    last_7_days: List[DailyCount]
    numeric_summaries: List[NumericSummary] = field(default_factory=list)
    distributions: List[CategoricalDistribution] = field(default_factory=list)
    pivot: Optional[GroupedPivot] = None

    @property
    def has_field_statistics(self) -> bool:
        return bool(self.numeric_summaries or self.distributions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selection": {
                "form_type_id": self.selection.form_type_id,
                "group_by_field": self.selection.group_by_field,
            },
            "counts": self.counts.to_dict(),
            "per_form_totals": [total.to_dict() for total in self.per_form_totals],
            "last_7_days": [day.to_dict() for day in self.last_7_days],
            "numeric_summaries": [summary.to_dict() for summary in self.numeric_summaries],
            "distributions": [dist.to_dict() for dist in self.distributions],
            "pivot": self.pivot.to_dict() if self.pivot else None,
        }


# ======================================
# Time helpers
# ======================================
def local_date(created_at: str, tz: Optional[tzinfo] = None) -> Optional[date]:
    """
    Calendar date of an ISO-8601 timestamp in local time.

    Aware timestamps are converted to `tz` (system local when None);
    naive ones are taken as already local. Unparseable → None.
    """
    if not created_at:
        return None
    try:
        moment = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(tz)
    return moment.date()


def _today(today: Optional[date], tz: Optional[tzinfo]) -> date:
    if today is not None:
        return today
    return datetime.now(tz).date()


# ======================================
# Whole-snapshot statistics
# ======================================
def global_counts(fields: List[Field], form_types: List[FormType], records: List[Record],
                  today: Optional[date] = None, tz: Optional[tzinfo] = None) -> GlobalCounts:
    current = _today(today, tz)
    return GlobalCounts(
        total_fields=len(fields),
        total_form_types=len(form_types),
        total_records=len(records),
        records_today=sum(1 for r in records if local_date(r.created_at, tz) == current),
    )


def per_form_totals(form_types: List[FormType], records: List[Record]) -> List[FormTotal]:
    counts: Dict[str, int] = {}
    for record in records:
        key = key_of(record.form_type_id)
        counts[key] = counts.get(key, 0) + 1
    return [
        FormTotal(form.id, form.name, counts.get(key_of(form.id), 0))
        for form in form_types
    ]


def trailing_days(records: List[Record], today: Optional[date] = None,
                  tz: Optional[tzinfo] = None, days: int = TRAILING_DAYS) -> List[DailyCount]:
    current = _today(today, tz)
    window = [current - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    counts = {day: 0 for day in window}
    for record in records:
        day = local_date(record.created_at, tz)
        if day in counts:
            counts[day] += 1
    return [DailyCount(day, f"{day.strftime('%b')} {day.day}", counts[day]) for day in window]


# ======================================
# Selection-dependent statistics
# ======================================
def find_form_type(form_types: Iterable[FormType], form_type_id: Any) -> Optional[FormType]:
    wanted = key_of(form_type_id)
    for form in form_types:
        if key_of(form.id) == wanted:
            return form
    return None


def filter_records(records: List[Record], selection: DashboardSelection) -> List[Record]:
    if selection.is_all:
        return list(records)
    wanted = key_of(selection.form_type_id)
    return [r for r in records if key_of(r.form_type_id) == wanted]


def _fields_of_type(form_type: FormType, data_type: DataType) -> List[Field]:
    return [f for f in form_type.ordered_fields() if f.data_type == data_type]


def numeric_summaries(form_type: FormType, records: List[Record]) -> List[NumericSummary]:
    summaries = []
    for number_field in _fields_of_type(form_type, DataType.NUMBER):
        summary = NumericSummary(number_field.id, number_field.name)
        for record in records:
            decoded = ValueCodec.try_decode(number_field, record.raw(number_field.id))
            if decoded is not None:
                summary.update(decoded.value)
        if summary.count:
            summaries.append(summary)
    return summaries


def categorical_distributions(form_type: FormType, records: List[Record]) -> List[CategoricalDistribution]:
    distributions = []
    for selector in _fields_of_type(form_type, DataType.SELECTOR):
        distribution = CategoricalDistribution(selector.id, selector.name)
        for record in records:
            decoded = ValueCodec.try_decode(selector, record.raw(selector.id))
            if decoded is not None:
                distribution.update(decoded.value)
        if distribution.counts:
            distributions.append(distribution)
    return distributions


def grouped_pivot(form_type: FormType, records: List[Record],
                  group_by_field: Any = None) -> Optional[GroupedPivot]:
    """
    Bucket records by the raw value at `group_by_field`.

    Defaults to the form type's first field. Each bucket carries its
    record count and, per numeric field, the sum of decoded values.
    """
    if group_by_field is None:
        if not form_type.fields:
            return None
        group_by_field = form_type.fields[0].field_id

    number_fields = _fields_of_type(form_type, DataType.NUMBER)
    pivot = GroupedPivot(group_by_field, [f.id for f in number_fields])

    for record in records:
        raw = record.raw(group_by_field)
        key = UNSET_BUCKET if raw is None else str(raw)
        bucket = pivot.buckets.get(key)
        if bucket is None:
            bucket = pivot.buckets[key] = PivotBucket(key)
        values = {}
        for number_field in number_fields:
            decoded = ValueCodec.try_decode(number_field, record.raw(number_field.id))
            values[number_field.key] = decoded.value if decoded is not None else 0.0
        bucket.update(values)

    return pivot


# ======================================
# Entry point
# ======================================
def compute_dashboard(
    fields: List[Field],
    form_types: List[FormType],
    records: List[Record],
    selection: Optional[DashboardSelection] = None,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> DashboardView:
    """
    Compute every dashboard statistic for one snapshot and selection.

    Args:
        fields: All Fields
        form_types: All FormTypes, resolved with their ordered Fields
        records: All Records
        selection: Selected form type and pivot field (default: all forms)
        today: Date considered "today" (default: now in `tz`)
        tz: Timezone used for calendar days (default: system local)

    Returns:
        DashboardView
    """
    selection = selection or DashboardSelection()
    current = _today(today, tz)

    view = DashboardView(
        selection=selection,
        counts=global_counts(fields, form_types, records, current, tz),
        per_form_totals=per_form_totals(form_types, records),
        last_7_days=trailing_days(records, current, tz),
    )

    if selection.is_all:
        return view
    form_type = find_form_type(form_types, selection.form_type_id)
    if form_type is None:
        return view

    selected = filter_records(records, selection)
    view.numeric_summaries = numeric_summaries(form_type, selected)
    view.distributions = categorical_distributions(form_type, selected)
    view.pivot = grouped_pivot(form_type, selected, selection.group_by_field)
    return view
