"""
Cost Aggregator
Joins resolved rates onto instances and sums cost accrued since launch
"""
import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping

from errors import AggregationError
from models import AggregateCostReport, InstanceCost, InstanceDescriptor, PriceQuoteResult

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


def round_cost(value: float) -> float:
    """Round half-up to cents on the shortest decimal form of the float"""
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def elapsed_seconds(launch_time: datetime, now: datetime, instance_id: str = '') -> float:
    elapsed = (now - launch_time).total_seconds()
    if elapsed < 0:
        logger.warning(
            f"Instance {instance_id} reports launch time {launch_time.isoformat()} "
            f"after evaluation time {now.isoformat()}; counting 0 seconds"
        )
        return 0.0
    return elapsed


class CostAggregator:
    """Turns priced instances into one rounded total"""

    @staticmethod
    def instance_cost(instance: InstanceDescriptor, hourly_rate: float, now: datetime) -> InstanceCost:
        per_second_rate = hourly_rate / SECONDS_PER_HOUR
        elapsed = elapsed_seconds(instance.launch_time, now, instance.id)
        accrued = per_second_rate * elapsed

        logger.debug(
            f"{instance.id} ({instance.instance_type}): ${per_second_rate}/s, "
            f"launched {instance.launch_time.isoformat()}, accrued ${accrued}"
        )
        return InstanceCost(
            instance_id=instance.id,
            instance_type=instance.instance_type,
            hourly_rate_usd=hourly_rate,
            elapsed_seconds=elapsed,
            accrued_cost_usd=accrued,
        )

    @staticmethod
    def aggregate(instances: Iterable[InstanceDescriptor],
                  price_results: Mapping[str, PriceQuoteResult],
                  now: datetime) -> AggregateCostReport:
        """
        Price every instance and sum.

        Raises AggregationError on the first instance whose type has no rate;
        no partial total is ever returned.
        """
        costs = []
        for instance in instances:
            quote = price_results.get(instance.instance_type)
            if quote is None or quote.hourly_rate_usd is None:
                raise AggregationError(
                    f"No price for instance {instance.id} of type {instance.instance_type}",
                    operation='aggregate',
                    instance_type=instance.instance_type,
                    instance_id=instance.id,
                )
            costs.append(CostAggregator.instance_cost(instance, quote.hourly_rate_usd, now))

        total = round_cost(sum(c.accrued_cost_usd for c in costs))
        return AggregateCostReport(total_cost_usd=total, computed_at=now, instance_costs=costs)
