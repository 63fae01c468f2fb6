"""Longitudinal trend analysis over a patient's assessment history.

Scores are severities on a 0-100 scale, so a falling score is an improvement.
Every function here is pure; callers pass the history oldest first.
"""

from __future__ import annotations

import calendar
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Protocol, TypedDict, TypeVar

from app.core.config import settings

TrendDirection = Literal["improving", "stable", "declining", "critical"]
TimeRange = Literal["1m", "3m", "6m", "1y"]
RiskBand = Literal["high", "elevated", "moderate", "low"]

CATEGORY_NAMES: tuple[str, ...] = ("depression", "anxiety", "suicide_risk", "substance_abuse", "trauma")
TIME_RANGE_MONTHS: dict[str, int] = {"1m": 1, "3m": 3, "6m": 6, "1y": 12}

IMPROVING_RECOMMENDATIONS = ("Continue current treatment plan", "Consider reducing assessment frequency")
DECLINING_RECOMMENDATIONS = ("Review and adjust treatment plan", "Increase monitoring frequency")


@dataclass(frozen=True, slots=True)
class TrendThresholds:
    critical_score: float = 70.0
    declining_change: float = -10.0
    improving_change: float = 15.0
    significant_category_change: float = 20.0
    intensify_category_score: float = 60.0

    @classmethod
    def from_settings(cls) -> "TrendThresholds":
        return cls(
            critical_score=settings.trend_critical_score,
            declining_change=settings.trend_declining_change,
            improving_change=settings.trend_improving_change,
            significant_category_change=settings.trend_significant_category_change,
            intensify_category_score=settings.trend_intensify_category_score,
        )


@dataclass(frozen=True, slots=True)
class AssessmentPoint:
    assessed_at: datetime
    overall_score: float
    categories: Mapping[str, float] = field(default_factory=dict)


class TrendSummary(TypedDict):
    direction: TrendDirection
    percentage: float
    overall_change: float
    significant_changes: list[str]
    recommendations: list[str]


def _relative_change(before: float, after: float) -> float | None:
    """Percent drop from ``before`` to ``after``; None when ``before`` is zero."""
    if before == 0:
        return None
    return (before - after) / before * 100


def _display_name(category: str) -> str:
    return category.replace("_", " ")


def _classify(latest_score: float, recent_change: float, thresholds: TrendThresholds) -> TrendDirection:
    # Severity overrides the recent direction.
    if latest_score > thresholds.critical_score:
        return "critical"
    if recent_change < thresholds.declining_change:
        return "declining"
    if recent_change > thresholds.improving_change:
        return "improving"
    return "stable"


def analyze_trend(
    history: Sequence[AssessmentPoint],
    thresholds: TrendThresholds | None = None,
) -> TrendSummary:
    if len(history) < 2:
        return {
            "direction": "stable",
            "percentage": 0.0,
            "overall_change": 0.0,
            "significant_changes": [],
            "recommendations": [],
        }

    thresholds = thresholds or TrendThresholds.from_settings()
    latest = history[-1]
    previous = history[-2]
    first = history[0]

    recent_change = _relative_change(previous.overall_score, latest.overall_score) or 0.0
    overall_change = _relative_change(first.overall_score, latest.overall_score) or 0.0
    direction = _classify(latest.overall_score, recent_change, thresholds)

    significant_changes: list[str] = []
    recommendations: list[str] = []

    for category, current_score in latest.categories.items():
        previous_score = previous.categories.get(category)
        change = _relative_change(previous_score, current_score) if previous_score is not None else None
        name = _display_name(category)

        if change is not None and abs(change) > thresholds.significant_category_change:
            if change > 0:
                significant_changes.append(f"Significant improvement in {name}")
            else:
                significant_changes.append(f"Notable decline in {name}")

        if current_score > thresholds.intensify_category_score:
            recommendations.append(f"Consider intensifying treatment for {name}")

    if direction == "improving":
        recommendations.extend(IMPROVING_RECOMMENDATIONS)
    elif direction == "declining":
        recommendations.extend(DECLINING_RECOMMENDATIONS)

    return {
        "direction": direction,
        "percentage": abs(recent_change),
        "overall_change": overall_change,
        "significant_changes": significant_changes,
        "recommendations": list(dict.fromkeys(recommendations)),
    }


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _subtract_months(value: datetime, months: int) -> datetime:
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def time_range_cutoff(time_range: TimeRange, now: datetime) -> datetime:
    if time_range not in TIME_RANGE_MONTHS:
        raise ValueError(f"Unsupported time range: {time_range}")
    return _subtract_months(as_utc(now), TIME_RANGE_MONTHS[time_range])


class _Timestamped(Protocol):
    assessed_at: datetime


_T = TypeVar("_T", bound=_Timestamped)


def filter_by_time_range(history: Sequence[_T], time_range: TimeRange, now: datetime) -> list[_T]:
    """Keep the points assessed on or after ``now`` minus the range."""
    cutoff = time_range_cutoff(time_range, now)
    return [point for point in history if as_utc(point.assessed_at) >= cutoff]


def score_for_category(point: AssessmentPoint, category: str) -> float:
    if category == "overall":
        return point.overall_score
    if category not in CATEGORY_NAMES:
        raise ValueError(f"Unknown category: {category}")
    return float(point.categories.get(category, 0))


def risk_band(score: float) -> RiskBand:
    if score >= 70:
        return "high"
    if score >= 50:
        return "elevated"
    if score >= 30:
        return "moderate"
    return "low"
