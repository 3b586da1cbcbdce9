"""
Per-stage pipeline metrics.

Two kinds of delay are measured for each stage:

- historical: every order (across the whole dataset) whose history shows the
  stage completed; TAT is end - start in fractional days, on time when
  TAT <= SLA
- live: orders in the current view sitting in the stage right now, delayed
  when (now - start) > SLA

The displayed delay percentage prefers the live ratio, falls back to the
historical ratio, and is 0 when neither has data.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..constants import DEFAULT_SLA_DAYS_PER_STAGE, ORDER_STATUS_LIST, OrderStatus
from ..models import Order

SECONDS_PER_DAY = 24 * 3600

DANGER_DELAY_PERCENTAGE = 50
WARNING_DELAY_PERCENTAGE = 20


class StageHealth(str, Enum):
    """Health of a pipeline stage, derived from its delay percentage."""

    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"
    NEUTRAL = "neutral"


@dataclass
class StageMetrics:
    """
    Metrics for one pipeline stage.

    Attributes:
        stage: Stage these metrics describe
        sla: SLA days for the stage
        current_in_stage: Orders in view currently in the stage
        avg_tat: Historical average turnaround time in days (1 decimal)
        on_time: Historical completions within SLA
        delayed: Historical completions over SLA
        delay_percentage: Live ratio if any order is in the stage, else historical
        delayed_instances: Numerator behind delay_percentage
        health: StageHealth
    """
    stage: OrderStatus
    sla: int
    current_in_stage: int = 0
    avg_tat: float = 0.0
    on_time: int = 0
    delayed: int = 0
    delay_percentage: float = 0.0
    delayed_instances: int = 0
    health: StageHealth = StageHealth.GOOD

    def to_dict(self) -> Dict[str, Any]:
        return {
            'stage': self.stage.value,
            'sla': self.sla,
            'current_in_stage': self.current_in_stage,
            'avg_tat': self.avg_tat,
            'on_time': self.on_time,
            'delayed': self.delayed,
            'delay_percentage': round(self.delay_percentage, 1),
            'delayed_instances': self.delayed_instances,
            'health': self.health.value,
        }


def _elapsed_days(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY


def _stage_health(stage: OrderStatus, delay_percentage: float) -> StageHealth:
    if stage == OrderStatus.CANCELLED:
        return StageHealth.NEUTRAL
    if delay_percentage > DANGER_DELAY_PERCENTAGE:
        return StageHealth.DANGER
    if delay_percentage > WARNING_DELAY_PERCENTAGE:
        return StageHealth.WARNING
    return StageHealth.GOOD


def orders_in_stage(orders: Sequence[Order], stage: OrderStatus) -> List[Order]:
    """Orders whose current stage is ``stage``."""
    return [o for o in orders if o.current_stage == stage]


def calculate_stage_metrics(
    orders_in_view: Sequence[Order],
    all_orders: Sequence[Order],
    stage: OrderStatus,
    now: Optional[datetime] = None,
    sla_days_per_stage: Optional[Dict[OrderStatus, int]] = None,
) -> StageMetrics:
    """
    Compute metrics for one stage.

    Args:
        orders_in_view: Filtered orders (drives current counts and live delay)
        all_orders: Whole active dataset (drives historical TAT)
        stage: Stage to measure
        now: Reference time for live delay (default: now)
        sla_days_per_stage: SLA table (default: DEFAULT_SLA_DAYS_PER_STAGE)

    Returns:
        StageMetrics
    """
    now = now or datetime.now()
    sla = (sla_days_per_stage or DEFAULT_SLA_DAYS_PER_STAGE).get(stage, 0) or 0

    tats = []
    for order in all_orders:
        entry = order.stage_entry(stage)
        if entry is not None and entry.end_date is not None:
            tats.append(_elapsed_days(entry.start_date, entry.end_date))
    tat_array = np.array(tats, dtype=float)

    completed = int(tat_array.size)
    on_time = int(np.count_nonzero(tat_array <= sla)) if completed else 0
    delayed = completed - on_time
    avg_tat = round(float(np.mean(tat_array)), 1) if completed else 0.0

    in_stage = orders_in_stage(orders_in_view, stage)
    live_days = []
    for order in in_stage:
        entry = order.stage_entry(stage)
        if entry is not None:
            live_days.append(_elapsed_days(entry.start_date, now))
    live_array = np.array(live_days, dtype=float)
    live_delayed = int(np.count_nonzero(live_array > sla)) if live_array.size else 0

    if live_array.size:
        delay_percentage = live_delayed / live_array.size * 100
        delayed_instances = live_delayed
    elif completed:
        delay_percentage = delayed / completed * 100
        delayed_instances = delayed
    else:
        delay_percentage = 0.0
        delayed_instances = 0

    return StageMetrics(
        stage=stage,
        sla=sla,
        current_in_stage=len(in_stage),
        avg_tat=avg_tat,
        on_time=on_time,
        delayed=delayed,
        delay_percentage=float(delay_percentage),
        delayed_instances=delayed_instances,
        health=_stage_health(stage, delay_percentage),
    )


def pipeline_summary(
    orders_in_view: Sequence[Order],
    all_orders: Sequence[Order],
    now: Optional[datetime] = None,
) -> List[StageMetrics]:
    """
    Metrics for every stage in pipeline order.

    The Cancelled stage is left out when no order in the dataset or the
    view is cancelled.
    """
    now = now or datetime.now()
    any_cancelled = any(o.is_cancelled for o in all_orders) or any(
        o.is_cancelled for o in orders_in_view
    )

    summary = []
    for stage in ORDER_STATUS_LIST:
        if stage == OrderStatus.CANCELLED and not any_cancelled:
            continue
        summary.append(calculate_stage_metrics(orders_in_view, all_orders, stage, now=now))
    return summary
