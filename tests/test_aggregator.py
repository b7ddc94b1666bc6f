"""
Tests for Risk Aggregator — weight redistribution, neutral fallback, explanations.
"""

import pytest

from spamblocker.core.aggregator import compute_risk_score
from spamblocker.models.risk_models import WEIGHTS_NO_IP, WEIGHTS_WITH_IP, RiskFactorResult


def _factor(name, score, weight):
    return RiskFactorResult(name=name, score=score, weight=weight, explanation=f"{name} test")


def test_effective_weights_sum_to_one():
    result = compute_risk_score(
        [
            _factor("accountAge", 0.9, 0.14),
            _factor("karmaScore", 0.5, 0.12),
            _factor("walletVelocity", 0.0, 0.0),
            _factor("velocityRisk", 0.1, 0.10),
        ]
    )
    active = [f for f in result.factors if f.weight > 0]
    assert sum(f.effective_weight for f in active) == pytest.approx(1.0)


def test_opted_out_factor_has_no_influence():
    base = [_factor("accountAge", 0.9, 0.14), _factor("karmaScore", 0.5, 0.12)]
    with_skipped = base + [_factor("ipRisk", 1.0, 0.0)]

    assert compute_risk_score(base).score == pytest.approx(compute_risk_score(with_skipped).score)
    skipped = compute_risk_score(with_skipped).factors[-1]
    assert skipped.effective_weight == 0.0


def test_redistribution_formula():
    result = compute_risk_score([_factor("a", 0.8, 0.3), _factor("b", 0.2, 0.1)])
    # 0.8 × 0.75 + 0.2 × 0.25
    assert result.score == pytest.approx(0.65)
    assert result.factors[0].effective_weight == pytest.approx(0.75)
    assert result.factors[1].effective_weight == pytest.approx(0.25)


def test_no_active_factors_is_neutral():
    result = compute_risk_score([_factor("a", 0.9, 0.0), _factor("b", 0.1, 0.0)])
    assert result.score == 0.5
    assert "neutral" in result.explanation.lower()
    assert all(f.effective_weight == 0.0 for f in result.factors)


def test_empty_factor_list_is_neutral():
    assert compute_risk_score([]).score == 0.5


def test_score_bounded():
    high = compute_risk_score([_factor("a", 1.0, 5.0), _factor("b", 1.0, 3.0)])
    low = compute_risk_score([_factor("a", 0.0, 5.0), _factor("b", 0.0, 3.0)])
    assert 0.0 <= low.score <= high.score <= 1.0
    assert high.score == pytest.approx(1.0)
    assert low.score == 0.0


def test_out_of_range_factor_scores_are_clamped():
    # model_construct skips validation, like a buggy third-party calculator
    wild_high = RiskFactorResult.model_construct(name="a", score=7.0, weight=1.0, effective_weight=0.0, explanation="")
    wild_low = RiskFactorResult.model_construct(name="b", score=-4.0, weight=1.0, effective_weight=0.0, explanation="")
    assert compute_risk_score([wild_high]).score == 1.0
    assert compute_risk_score([wild_low]).score == 0.0


def test_only_relative_weights_matter():
    small = compute_risk_score([_factor("a", 0.8, 0.1), _factor("b", 0.2, 0.3)])
    large = compute_risk_score([_factor("a", 0.8, 10.0), _factor("b", 0.2, 30.0)])
    assert small.score == pytest.approx(large.score)


def test_explanation_lists_top_three_contributors():
    result = compute_risk_score(
        [
            _factor("accountAge", 0.9, 0.14),
            _factor("karmaScore", 0.5, 0.12),
            _factor("velocityRisk", 0.1, 0.10),
            _factor("commentContentTitleRisk", 0.3, 0.12),
        ]
    )
    assert result.explanation.startswith("Moderate risk (")
    assert "Key factors: accountAge: 90%, karmaScore: 50%, commentContentTitleRisk: 30%" in result.explanation
    assert "velocityRisk" not in result.explanation


def test_risk_levels():
    assert compute_risk_score([_factor("a", 0.1, 1.0)]).explanation.startswith("Low risk (10%)")
    assert compute_risk_score([_factor("a", 0.9, 1.0)]).explanation.startswith("High risk (90%)")


def test_formula_present():
    result = compute_risk_score([_factor("a", 0.5, 1.0)])
    assert "Σ" in result.formula


@pytest.mark.parametrize("preset", [WEIGHTS_NO_IP, WEIGHTS_WITH_IP])
def test_weight_presets_sum_to_one(preset):
    assert sum(preset.as_factor_weights().values()) == pytest.approx(1.0)


def test_no_ip_preset_disables_ip_risk():
    assert WEIGHTS_NO_IP.ip_risk == 0.0
    assert WEIGHTS_WITH_IP.ip_risk > 0.0
    assert WEIGHTS_NO_IP.author_reputation == WEIGHTS_WITH_IP.author_reputation == 0.0
