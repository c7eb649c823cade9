from __future__ import annotations

import unittest

import pytest

from project_risk_monitor.core import compute_critical_path, get_strategy, normalize_activity, simulate_mitigation
from project_risk_monitor.core.mitigation import DELAY_COST_PER_DAY
from project_risk_monitor.errors import ValidationError
from project_risk_monitor.models import RiskAssessment, Severity


def _network():
    return [
        normalize_activity({"id": "A", "plannedDuration": 3}),
        normalize_activity({"id": "B", "plannedDuration": 2, "predecessorIds": ["A"]}),
        normalize_activity({"id": "C", "plannedDuration": 4, "predecessorIds": ["B"]}),
        normalize_activity({"id": "D", "plannedDuration": 1, "predecessorIds": ["A", "GHOST"]}),
    ]


class CriticalPathTests(unittest.TestCase):
    def test_forward_and_backward_pass(self):
        result = {a.id: a for a in compute_critical_path(_network())}

        self.assertEqual((result["A"].early_start, result["A"].early_finish), (0.0, 3.0))
        self.assertEqual((result["B"].early_start, result["B"].early_finish), (3.0, 5.0))
        self.assertEqual((result["C"].early_start, result["C"].early_finish), (5.0, 9.0))
        self.assertEqual((result["D"].late_start, result["D"].late_finish), (8.0, 9.0))
        self.assertEqual(result["D"].total_float, 5.0)
        self.assertEqual({k for k, a in result.items() if a.is_critical_path}, {"A", "B", "C"})

    def test_successors_are_filled_and_input_order_kept(self):
        result = compute_critical_path(_network())
        self.assertEqual([a.id for a in result], ["A", "B", "C", "D"])
        self.assertEqual(result[0].successor_ids, frozenset({"B", "D"}))
        self.assertEqual(result[2].successor_ids, frozenset())

    def test_cycle_is_rejected(self):
        cyclic = [
            normalize_activity({"id": "X", "predecessorIds": ["Z"]}),
            normalize_activity({"id": "Y", "predecessorIds": ["X"]}),
            normalize_activity({"id": "Z", "predecessorIds": ["Y"]}),
        ]
        with self.assertRaises(ValidationError):
            compute_critical_path(cyclic)

    def test_empty_network(self):
        self.assertEqual(compute_critical_path([]), [])


def _assessment(risk_score: float, delay: float = 10, successors: int = 3) -> RiskAssessment:
    activity = normalize_activity(
        {"id": "M1", "delayImpactDays": delay, "successorIds": [f"S{i}" for i in range(successors)]}
    )
    return RiskAssessment(activity=activity, factors={}, risk_score=risk_score, severity=Severity.CRITICAL)


def test_add_resource_projection() -> None:
    outcome = simulate_mitigation(_assessment(80.0), "Add Resource")

    assert outcome.strategy == "Add Resource"
    assert outcome.after.risk_score == pytest.approx(36.8)
    assert outcome.after.delay_days == 3
    assert outcome.after.blocked_tasks == 2
    assert outcome.delay_cost_avoided == pytest.approx(7 * DELAY_COST_PER_DAY)
    assert outcome.cost == 15_000
    assert outcome.roi_percent == 2333
    assert outcome.savings == pytest.approx(335_000)
    assert outcome.risk_reduction == pytest.approx(43.2)


def test_reduce_scope_has_no_roi_because_it_costs_nothing() -> None:
    outcome = simulate_mitigation(_assessment(60.0), "reduce_scope")
    assert outcome.after.delay_days == 0
    assert outcome.roi_percent is None
    assert outcome.to_dict()["roi_percent"] is None


@pytest.mark.parametrize("strategy", ["add-resource", "fast-track", "reduce-scope"])
def test_mitigation_never_raises_the_score(strategy: str) -> None:
    for before in (0.0, 5.0, 25.0, 64.0, 100.0):
        outcome = simulate_mitigation(_assessment(before), strategy)
        assert outcome.after.risk_score <= before


def test_unknown_strategy_is_rejected() -> None:
    with pytest.raises(ValidationError):
        get_strategy("pray")
    assert get_strategy("Fast Track").name == "Fast-Track"
