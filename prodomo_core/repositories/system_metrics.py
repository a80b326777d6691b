# =============================================================================
# prodomo_core/repositories/system_metrics.py
# Read-only metric series with a synthesized fallback
# =============================================================================
"""
System metrics.

The remote ``system_metrics`` table holds daily aggregates. When it returns
nothing (unreachable, or simply no rows yet) the dashboard still needs
something to chart, so a plausible series is generated instead. The
generator is seeded per (metric type, date), so the same day always gets
the same value.
"""

from __future__ import annotations
import zlib
from datetime import date, timedelta
from typing import Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from prodomo_core.models import MetricType, SystemMetric
from .base import BaseRepository, Source

# Half-open [low, high) value range per metric type
SYNTHETIC_RANGES = {
    MetricType.DOWNLOADS: (1000, 2000),
    MetricType.USERS: (40, 60),
    MetricType.STORAGE: (1500, 2500),
    MetricType.BANDWIDTH: (800, 1300),
}


def synthesize_metrics(
    metric_type: MetricType,
    days: int,
    today: Optional[date] = None,
) -> List[SystemMetric]:
    """
    Generate ``days`` daily rows for one metric, newest first.

    Args:
        metric_type: Metric to generate
        days: Number of consecutive days ending today
        today: Last day of the series (defaults to the current date)
    """
    today = today or date.today()
    low, high = SYNTHETIC_RANGES[metric_type]
    rows = []
    for offset in range(days):
        day = (today - timedelta(days=offset)).isoformat()
        seed = zlib.crc32(f"{metric_type.value}:{day}".encode("utf-8"))
        value = int(np.random.default_rng(seed).integers(low, high))
        rows.append(SystemMetric(
            id=f"mock_{metric_type.value}_{day}",
            metric_type=metric_type,
            value=value,
            date=day,
            created_at=f"{day}T00:00:00+00:00",
        ))
    return rows


def metrics_frame(metrics: Iterable[SystemMetric]) -> pd.DataFrame:
    """Pivot metric rows into a date-indexed frame with one column per type."""
    records = [
        {"date": m.date, "metric_type": MetricType(m.metric_type).value, "value": m.value}
        for m in metrics
    ]
    if not records:
        return pd.DataFrame()

    df = pd.DataFrame(records)
    df["date"] = pd.to_datetime(df["date"])
    frame = df.pivot_table(index="date", columns="metric_type", values="value", aggfunc="sum")
    frame.columns.name = None
    return frame.sort_index()


class SystemMetricRepository(BaseRepository[SystemMetric]):
    TABLE = "system_metrics"
    RECORD = SystemMetric
    LABEL = "system metric"

    def get_system_metrics(
        self,
        metric_type: Optional[Union[MetricType, str]] = None,
        days: int = 30,
        today: Optional[date] = None,
    ) -> List[SystemMetric]:
        """
        Latest metric rows, or a synthesized series when the remote has none.

        Never returns an empty list for days > 0. Without a metric type the
        fallback generates every type. An unknown metric type yields [].
        """
        filters = {}
        if metric_type is not None:
            try:
                metric_type = MetricType(metric_type)
            except ValueError as e:
                self.logger.warning(f"Unknown metric type, returning no metrics: {e}")
                return []
            filters["metric_type"] = metric_type.value

        result = self.remote.select(
            self.TABLE,
            filters=filters or None,
            order="created_at",
            ascending=False,
            limit=days,
        )
        if result.ok and result.data:
            self.last_source = Source.REMOTE
            return self._to_records(result.data)

        if not result.ok:
            self.logger.warning(f"Failed to fetch system metrics, using generated series: {result.error}")

        self.last_source = Source.LOCAL
        types = [metric_type] if metric_type is not None else list(MetricType)
        metrics: List[SystemMetric] = []
        for t in types:
            metrics.extend(synthesize_metrics(t, days, today))
        return metrics
