"""Tests for CostAggregator."""
import logging
from datetime import timedelta

import pytest

from conftest import NOW, make_instance
from cost_aggregator import CostAggregator, elapsed_seconds, round_cost
from errors import AggregationError
from models import PriceQuoteResult


def prices(**rates):
    return {t.replace('_', '.'): PriceQuoteResult(t.replace('_', '.'), r) for t, r in rates.items()}


def test_one_hour_at_3_60():
    report = CostAggregator.aggregate(
        [make_instance('i-1', 'm5.xlarge', seconds_ago=3600)], prices(m5_xlarge=3.60), NOW
    )

    cost = report.instance_costs[0]
    assert cost.elapsed_seconds == 3600
    assert cost.accrued_cost_usd == pytest.approx(3.60, abs=1e-6)
    assert report.total_cost_usd == 3.60


def test_two_types_sum_to_two_dollars():
    instances = [
        make_instance('i-a', 't3.large', seconds_ago=3600),
        make_instance('i-b', 'm5.large', seconds_ago=1800),
    ]
    report = CostAggregator.aggregate(instances, prices(t3_large=1.00, m5_large=2.00), NOW)

    assert [c.accrued_cost_usd for c in report.instance_costs] == pytest.approx([1.00, 1.00])
    assert report.total_cost_usd == 2.00
    assert report.instance_count == 2
    assert report.computed_at == NOW


def test_empty_set_totals_zero():
    report = CostAggregator.aggregate([], {}, NOW)
    assert report.total_cost_usd == 0.0
    assert report.instance_costs == []


def test_future_launch_time_is_clamped(caplog):
    instance = make_instance('i-future', 't3.micro', seconds_ago=-600)

    with caplog.at_level(logging.WARNING, logger='cost_aggregator'):
        report = CostAggregator.aggregate([instance], prices(t3_micro=0.0104), NOW)

    assert report.instance_costs[0].elapsed_seconds == 0.0
    assert report.total_cost_usd == 0.0
    assert 'i-future' in caplog.text


def test_missing_type_raises_with_instance_and_type():
    instances = [make_instance('i-1', 't3.micro'), make_instance('i-2', 'm5.large')]

    with pytest.raises(AggregationError) as exc_info:
        CostAggregator.aggregate(instances, prices(t3_micro=0.0104), NOW)

    assert exc_info.value.instance_id == 'i-2'
    assert exc_info.value.instance_type == 'm5.large'


def test_absent_rate_is_not_treated_as_zero():
    absent = {'t3.micro': PriceQuoteResult('t3.micro', None)}
    with pytest.raises(AggregationError):
        CostAggregator.aggregate([make_instance('i-1', 't3.micro')], absent, NOW)


def test_total_is_never_negative():
    instances = [make_instance(f'i-{n}', 't3.micro', seconds_ago=s) for n, s in enumerate([-5, 0, 1, 86400])]
    report = CostAggregator.aggregate(instances, prices(t3_micro=0.0104), NOW)

    assert report.total_cost_usd >= 0
    assert all(c.accrued_cost_usd >= 0 for c in report.instance_costs)


def test_elapsed_seconds_keeps_fractions():
    assert elapsed_seconds(NOW - timedelta(seconds=1.5), NOW) == 1.5


@pytest.mark.parametrize('value, expected', [
    (1.005, 1.01),
    (2.675, 2.68),
    (0.125, 0.13),
    (0.124999, 0.12),
    (0.0, 0.0),
])
def test_round_cost_half_up(value, expected):
    assert round_cost(value) == expected


def test_rounding_is_deterministic():
    instances = [make_instance('i-1', 'c5.large', seconds_ago=1809)]
    totals = {CostAggregator.aggregate(instances, prices(c5_large=0.085), NOW).total_cost_usd for _ in range(50)}
    assert len(totals) == 1
