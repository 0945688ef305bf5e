from __future__ import annotations

import pytest

from . import state as st
from .calculator import compute_vuo
from .constants import OVERFLOW_MESSAGE, PARSE_ERROR_MESSAGE, VALUE_ERROR_MESSAGE
from .models import NUMERIC_FIELDS

REFERENCE = {"u": "1000", "dom": "150", "fc": "32", "sigmacp": "1.5", "betah": "1.5"}


def _filled(values=None, reinforced: bool = False) -> st.CalculatorState:
    s = st.CalculatorState()
    for name, raw in (values or REFERENCE).items():
        s = st.edit_field(s, name, raw)
    return st.set_reinforcement(s, reinforced)


def test_initial_state_is_blank() -> None:
    s = st.CalculatorState()
    assert s.values == {name: 0.0 for name in NUMERIC_FIELDS}
    assert not s.has_result
    assert not s.errors
    assert len(s.store) == 0


def test_edit_with_bad_text_keeps_previous_value() -> None:
    s = st.edit_field(st.CalculatorState(), "u", "1000")
    s = st.edit_field(s, "u", "12abc")
    assert s.values["u"] == 1000.0
    assert s.errors == {"u": PARSE_ERROR_MESSAGE}

    s = st.edit_field(s, "u", "1200")
    assert s.values["u"] == 1200.0
    assert "u" not in s.errors


def test_calculate_blank_form_flags_every_field() -> None:
    s = st.calculate(st.CalculatorState())
    assert s.result is None
    assert s.errors == {name: VALUE_ERROR_MESSAGE for name in NUMERIC_FIELDS}


def test_calculate_reference_case() -> None:
    s = st.calculate(_filled())
    assert s.errors == {}
    assert s.result == pytest.approx(compute_vuo(s.computed_inputs))
    assert s.computed_inputs.has_shear_reinforcement is False
    assert s.warnings == ()


def test_calculate_blocked_by_pending_parse_error() -> None:
    s = st.edit_field(_filled(), "fc", "not a number")
    s = st.calculate(s)
    assert s.result is None
    assert s.errors == {"fc": PARSE_ERROR_MESSAGE}


def test_failed_calculate_clears_previous_result() -> None:
    s = st.calculate(_filled())
    assert s.has_result
    s = st.calculate(st.edit_field(s, "dom", "-5"))
    assert s.result is None
    assert s.errors == {"dom": VALUE_ERROR_MESSAGE}


def test_reinforcement_flag_changes_branch() -> None:
    off = st.calculate(_filled()).result
    on = st.calculate(_filled(reinforced=True)).result
    assert on > off


def test_betah_warning_can_be_disabled() -> None:
    values = {**REFERENCE, "betah": "0.8"}
    assert st.calculate(_filled(values)).warnings
    assert st.calculate(_filled(values), warn_betah=False).warnings == ()


def test_save_without_result_is_noop(provider) -> None:
    s = st.CalculatorState()
    s2, record = st.save_result(s, provider)
    assert record is None
    assert s2 is s


def test_save_twice_gives_distinct_records(provider) -> None:
    s = st.calculate(_filled())
    s, a = st.save_result(s, provider)
    s, b = st.save_result(s, provider)
    assert a.id != b.id
    assert s.store.ids() == (b.id, a.id)


def test_save_snapshots_computed_inputs(provider) -> None:
    s = st.calculate(_filled())
    s = st.edit_field(s, "u", "5000")
    s, record = st.save_result(s, provider)
    assert record.inputs.u == 1000.0
    assert record.result == pytest.approx(s.result)


def test_reset_keeps_saved_records(provider) -> None:
    s, record = st.save_result(st.calculate(_filled()), provider)
    s = st.reset(s)
    assert not s.has_result
    assert s.values["u"] == 0.0
    assert s.store.ids() == (record.id,)


def test_delete_record(provider) -> None:
    s, record = st.save_result(st.calculate(_filled()), provider)
    assert st.delete_record(s, "nope") is s
    s = st.delete_record(s, record.id)
    assert len(s.store) == 0


def test_export_text_covers_saved_records(provider) -> None:
    s, record = st.save_result(st.calculate(_filled()), provider)
    text = st.export_text(s, "%Y-%m-%d")
    assert f"Calculation ID: {record.id}" in text
    assert "Timestamp: 2024-03-05" in text
    assert st.export_text(st.CalculatorState()) == ""


def test_overflowing_result_is_rejected(provider) -> None:
    s = st.calculate(_filled({**REFERENCE, "u": "1e200", "dom": "1e200"}))
    assert s.result is None
    assert s.errors == {"result": OVERFLOW_MESSAGE}

    s, record = st.save_result(s, provider)
    assert record is None
    assert len(s.store) == 0
