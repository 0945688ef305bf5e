"""
Application state for the calculator form and its transitions.

Every transition takes a CalculatorState and returns a new one; nothing here
touches Qt, files or the clock (ids/timestamps come from a RecordProvider).
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from loguru import logger

from . import session
from .calculator import calculation_warnings, compute_vuo, parse_field, require_finite, validate
from .constants import PARSE_ERROR_MESSAGE
from .errors import ParseError, ValidationError
from .exports import DEFAULT_TIMESTAMP_FORMAT, export_text as _export_text
from .models import NUMERIC_FIELDS, InputSet
from .session import CalculationRecord, RecordProvider, SessionStore


def _blank_values() -> Dict[str, float]:
    return {name: 0.0 for name in NUMERIC_FIELDS}


@dataclass(frozen=True)
class CalculatorState:
    values: Dict[str, float] = field(default_factory=_blank_values)
    has_shear_reinforcement: bool = False
    errors: Dict[str, str] = field(default_factory=dict)
    result: Optional[float] = None
    computed_inputs: Optional[InputSet] = None
    warnings: Tuple[str, ...] = ()
    store: SessionStore = field(default_factory=SessionStore)

    @property
    def has_result(self) -> bool:
        return self.result is not None

    def form_values(self) -> Dict[str, Any]:
        return {**self.values, "has_shear_reinforcement": self.has_shear_reinforcement}


def edit_field(state: CalculatorState, name: str, raw: Any) -> CalculatorState:
    """Store a numeric entry; unparseable text records an error and keeps the old value."""
    try:
        value = parse_field(name, raw)
    except ParseError as e:
        logger.debug(f"Rejected entry for {name}: {raw!r}")
        return replace(state, errors={**state.errors, name: e.message})
    errors = {k: v for k, v in state.errors.items() if k != name}
    return replace(state, values={**state.values, name: value}, errors=errors)


def set_reinforcement(state: CalculatorState, flag: bool) -> CalculatorState:
    return replace(state, has_shear_reinforcement=bool(flag))


def calculate(state: CalculatorState, warn_betah: bool = True) -> CalculatorState:
    """Validate all fields together; compute Vuo only when no field has an error."""
    inputs, errors = validate(state.form_values())
    # a field still holding unparseable text blocks the calculation too
    pending = {k: v for k, v in state.errors.items() if v == PARSE_ERROR_MESSAGE}
    errors = {**errors, **pending}
    if errors or inputs is None:
        logger.debug(f"Calculation withheld: {errors}")
        return replace(state, errors=errors, result=None, computed_inputs=None, warnings=())

    try:
        result = require_finite(compute_vuo(inputs))
    except ValidationError as e:
        logger.warning(f"Calculation rejected: {e}")
        return replace(state, errors=e.errors, result=None, computed_inputs=None, warnings=())
    warnings = tuple(calculation_warnings(inputs)) if warn_betah else ()
    logger.info(f"Computed Vuo = {result:.2f} N ({'with' if inputs.has_shear_reinforcement else 'without'} shear reinforcement)")
    return replace(state, errors={}, result=result, computed_inputs=inputs, warnings=warnings)


def reset(state: CalculatorState) -> CalculatorState:
    """Clear fields, result and errors; saved records are kept."""
    return CalculatorState(store=state.store)


def save_result(
    state: CalculatorState,
    provider: Optional[RecordProvider] = None,
) -> Tuple[CalculatorState, Optional[CalculationRecord]]:
    """Snapshot the current result; no-op without one."""
    if state.result is None or state.computed_inputs is None:
        logger.debug("Save ignored: no computed result")
        return state, None
    store, record = session.save(state.store, state.computed_inputs, state.result, provider)
    return replace(state, store=store), record


def delete_record(state: CalculatorState, record_id: str) -> CalculatorState:
    store = session.remove(state.store, record_id)
    if store is state.store:
        return state
    return replace(state, store=store)


def export_text(state: CalculatorState, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    return _export_text(state.store, timestamp_format)
