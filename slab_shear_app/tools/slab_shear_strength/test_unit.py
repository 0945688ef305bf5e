from __future__ import annotations

import math

import pytest

from .calc_trace import CalcTrace, TraceMeta, apply_rounding, compute_step
from .calculator import compute_fcv, compute_vuo, parse_field, require_finite, require_valid, validate
from .constants import OVERFLOW_MESSAGE, PARSE_ERROR_MESSAGE, VALUE_ERROR_MESSAGE
from .errors import ParseError, ValidationError
from .evaluation import evaluate_with_trace
from .models import InputSet
from .paths import compute_input_hash


def _inputs(**overrides) -> InputSet:
    base = dict(u=1000.0, dom=150.0, fc=32.0, sigmacp=1.5, betah=1.5, has_shear_reinforcement=False)
    base.update(overrides)
    return InputSet(**base)


def _trace() -> CalcTrace:
    meta = TraceMeta(
        tool_id="slab_shear_strength",
        tool_version="test",
        report_version="test",
        timestamp="2000-01-01T00:00:00",
        units_system="SI",
        input_hash="testhash",
    )
    return CalcTrace(meta=meta)


def test_fcv_capped_for_small_betah() -> None:
    # 0.17 * (1 + 2/1.5) = 0.3967 > 0.34, so the cap governs
    assert compute_fcv(32.0, 1.5) == pytest.approx(0.34 * math.sqrt(32.0))


def test_fcv_aspect_term_for_large_betah() -> None:
    assert compute_fcv(32.0, 4.0) == pytest.approx(0.17 * 1.5 * math.sqrt(32.0))


def test_fcv_rejects_nonpositive_betah() -> None:
    with pytest.raises(ValueError):
        compute_fcv(32.0, 0.0)


def test_vuo_without_reinforcement_reference_case() -> None:
    vuo = compute_vuo(_inputs())
    assert vuo == pytest.approx(150000.0 * (0.34 * math.sqrt(32.0) + 0.45))
    assert vuo == pytest.approx(356000.0, rel=1e-3)


def test_vuo_with_reinforcement_reference_case() -> None:
    vuo = compute_vuo(_inputs(has_shear_reinforcement=True))
    assert vuo == pytest.approx(150000.0 * (0.5 * math.sqrt(32.0) + 0.45))
    assert vuo == pytest.approx(491700.0, rel=1e-3)


@pytest.mark.parametrize("u,dom,fc,sigmacp,betah", [
    (1000.0, 150.0, 32.0, 1.5, 1.5),
    (2400.0, 220.0, 40.0, 0.5, 3.0),
    (800.0, 120.0, 25.0, 4.0, 2.0),
    (5000.0, 300.0, 65.0, 9.0, 6.5),
])
def test_vuo_matches_closed_form_both_branches(u, dom, fc, sigmacp, betah) -> None:
    off = compute_vuo(_inputs(u=u, dom=dom, fc=fc, sigmacp=sigmacp, betah=betah))
    fcv = min(0.17 * (1 + 2 / betah) * math.sqrt(fc), 0.34 * math.sqrt(fc))
    assert off == pytest.approx(u * dom * (fcv + 0.3 * sigmacp))

    on = compute_vuo(_inputs(u=u, dom=dom, fc=fc, sigmacp=sigmacp, betah=betah, has_shear_reinforcement=True))
    assert on == pytest.approx(min(u * dom * (0.5 * math.sqrt(fc) + 0.3 * sigmacp), 0.2 * u * dom * fc))
    assert on <= 0.2 * u * dom * fc * (1 + 1e-12)


def test_reinforced_cap_governs_for_weak_concrete() -> None:
    # low f'c with high prestress: 0.2 u dom f'c is the smaller candidate
    inputs = _inputs(fc=2.0, sigmacp=10.0, has_shear_reinforcement=True)
    assert compute_vuo(inputs) == pytest.approx(0.2 * 1000.0 * 150.0 * 2.0)


@pytest.mark.parametrize("reinforced", [False, True])
def test_vuo_non_decreasing_in_prestress(reinforced: bool) -> None:
    prev = -1.0
    for sigmacp in (0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 50.0):
        v = compute_vuo(_inputs(sigmacp=sigmacp, has_shear_reinforcement=reinforced))
        assert v >= prev
        prev = v


def test_validate_reports_every_nonpositive_field() -> None:
    inputs, errors = validate({"u": 0, "dom": 150, "fc": -1, "sigmacp": 1.5, "betah": 0, "has_shear_reinforcement": True})
    assert inputs is None
    assert errors == {"u": VALUE_ERROR_MESSAGE, "fc": VALUE_ERROR_MESSAGE, "betah": VALUE_ERROR_MESSAGE}


def test_validate_rejects_text_and_non_finite() -> None:
    _inputs_, errors = validate({"u": "abc", "dom": float("nan"), "fc": 32, "sigmacp": 1.5, "betah": 1.5})
    assert errors == {"u": PARSE_ERROR_MESSAGE, "dom": PARSE_ERROR_MESSAGE}


def test_validate_accepts_positive_inputs() -> None:
    inputs, errors = validate({"u": 1000, "dom": 150, "fc": 32, "sigmacp": 1.5, "betah": 1.5})
    assert errors == {}
    assert inputs is not None and inputs.has_shear_reinforcement is False


def test_require_valid_raises_with_field_map() -> None:
    with pytest.raises(ValidationError) as exc:
        require_valid({"u": 1000, "dom": 150, "fc": 32, "sigmacp": 0, "betah": 1.5})
    assert exc.value.errors == {"sigmacp": VALUE_ERROR_MESSAGE}


@pytest.mark.parametrize("raw", ["", "abc", "1.2.3", "inf", "nan", True])
def test_parse_field_rejects(raw) -> None:
    with pytest.raises(ParseError) as exc:
        parse_field("fc", raw)
    assert exc.value.field == "fc"
    assert exc.value.message == PARSE_ERROR_MESSAGE


def test_parse_field_accepts_numbers_and_text() -> None:
    assert parse_field("u", " 1000 ") == 1000.0
    assert parse_field("betah", "1.5") == 1.5
    assert parse_field("dom", 150) == 150.0
    # sign is not a parse concern; the validation gate rejects it
    assert parse_field("sigmacp", "-2") == -2.0


def test_traced_result_matches_compute_vuo() -> None:
    for reinforced in (False, True):
        tr = _trace()
        inputs = _inputs(has_shear_reinforcement=reinforced)
        vuo = evaluate_with_trace(tr, inputs)
        assert vuo == pytest.approx(compute_vuo(inputs))
        assert tr.step("Vuo").result_rounded.value == round(vuo, 2)
        assert tr.summary.controlling_step_ids[-1] == "Vuo"


def test_trace_identifies_controlling_term() -> None:
    tr = _trace()
    evaluate_with_trace(tr, _inputs())
    assert tr.summary.controlling_step_ids == ["fcv_2", "Vuo"]

    tr = _trace()
    evaluate_with_trace(tr, _inputs(has_shear_reinforcement=True))
    assert tr.summary.controlling_step_ids == ["Vuo_1", "Vuo"]


def test_trace_warns_when_betah_not_above_one() -> None:
    tr = _trace()
    evaluate_with_trace(tr, _inputs(betah=0.8))
    assert tr.summary.warnings
    assert tr.step("Vuo").warnings == tr.summary.warnings


def test_substitution_only_touches_right_hand_side() -> None:
    tr = _trace()
    compute_step(
        tr,
        id="x",
        section="s",
        title="t",
        output_symbol="V_{uo}",
        output_description="d",
        equation_latex="V_{uo} = u\\,d_{om}",
        variables=[
            {"symbol": "u", "description": "u", "value": 1000.0, "units": "mm", "source": "input:u"},
            {"symbol": "d_{om}", "description": "dom", "value": 150.0, "units": "mm", "source": "input:dom"},
        ],
        compute_fn=lambda: 150000.0,
        units="mm^2",
        rounding_rule={"rule": "none", "decimals": 0},
        references=[{"type": "note", "ref": "test"}],
    )
    sub = tr.step("x").substitution_latex
    assert sub.startswith("V_{uo} = ")
    assert "1000\\,\\mathrm{mm}" in sub and "150\\,\\mathrm{mm}" in sub


def test_compute_step_requires_references() -> None:
    with pytest.raises(ValueError):
        compute_step(
            _trace(),
            id="x",
            section="s",
            title="t",
            output_symbol="y",
            output_description="d",
            equation_latex="y = a",
            variables=[{"symbol": "a", "description": "a", "value": 1.0, "units": "-", "source": "input:a"}],
            compute_fn=lambda: 1.0,
            units="-",
            rounding_rule={"rule": "none", "decimals": 0},
            references=[],
        )


def test_input_hash_deterministic() -> None:
    a = {"u": 1000.0, "dom": 150.0}
    b = {"dom": 150.0, "u": 1000.0}
    assert compute_input_hash(a) == compute_input_hash(b)
    assert compute_input_hash(a) != compute_input_hash({"u": 1000.0, "dom": 151.0})


def test_trace_records_limit_checks() -> None:
    tr = _trace()
    evaluate_with_trace(tr, _inputs())
    (check,) = tr.step("fcv").checks
    assert check.pass_fail == "LIMITED"
    assert check.ratio == pytest.approx((0.17 * (1 + 2 / 1.5)) / 0.34)

    tr = _trace()
    evaluate_with_trace(tr, _inputs(has_shear_reinforcement=True))
    (check,) = tr.step("Vuo").checks
    assert check.pass_fail == "OK"
    assert check.demand == pytest.approx(tr.step("Vuo_1").result_unrounded.value)
    assert check.capacity == pytest.approx(0.2 * 1000.0 * 150.0 * 32.0)


def test_trace_step_has_no_warnings_for_normal_betah() -> None:
    tr = _trace()
    evaluate_with_trace(tr, _inputs(betah=2.0))
    assert tr.step("Vuo").warnings is None
    assert tr.summary.warnings == []


def test_unknown_rounding_rule_rejected() -> None:
    with pytest.raises(ValueError):
        apply_rounding(1.234, "sigfigs", 2)


def test_require_finite_rejects_overflow() -> None:
    assert require_finite(12.5) == 12.5
    with pytest.raises(ValidationError) as exc:
        require_finite(float("inf"))
    assert exc.value.errors == {"result": OVERFLOW_MESSAGE}
