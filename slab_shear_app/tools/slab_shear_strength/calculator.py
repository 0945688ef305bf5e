"""Punching-shear strength of a slab (Vuo) and the input validation gate."""
from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

from slab_shear_app.core.schema_utils import validate_inputs

from .constants import (
    FCV_BASE_COEFF,
    FCV_CAP_COEFF,
    MISSING_MESSAGE,
    OVERFLOW_MESSAGE,
    PARSE_ERROR_MESSAGE,
    PRESTRESS_COEFF,
    REINF_CAP_COEFF,
    REINF_SQRT_FC_COEFF,
    UNKNOWN_FIELD_MESSAGE,
    VALUE_ERROR_MESSAGE,
)
from .errors import ParseError, ValidationError
from .models import NUMERIC_FIELDS, InputSet

# pydantic error type -> user-facing message
ERROR_MESSAGES: Dict[str, str] = {
    "greater_than": VALUE_ERROR_MESSAGE,
    "float_parsing": PARSE_ERROR_MESSAGE,
    "float_type": PARSE_ERROR_MESSAGE,
    "finite_number": PARSE_ERROR_MESSAGE,
    "missing": MISSING_MESSAGE,
    "extra_forbidden": UNKNOWN_FIELD_MESSAGE,
}


def parse_field(field: str, raw: Any) -> float:
    """Parse one numeric field entry; raise ParseError for anything but a finite number."""
    if field not in NUMERIC_FIELDS:
        raise KeyError(f"Unknown numeric field: {field!r}")
    if isinstance(raw, bool):
        raise ParseError(field, raw)
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        try:
            value = float(str(raw).strip())
        except ValueError:
            raise ParseError(field, raw) from None
    if not math.isfinite(value):
        raise ParseError(field, raw)
    return value


def validate(values: Mapping[str, Any]) -> Tuple[Optional[InputSet], Dict[str, str]]:
    """Check every field at once; return (InputSet, {}) or (None, {field: message})."""
    return validate_inputs(InputSet, dict(values), ERROR_MESSAGES)


def require_valid(values: Mapping[str, Any]) -> InputSet:
    inputs, errors = validate(values)
    if inputs is None:
        raise ValidationError(errors)
    return inputs


def compute_fcv(fc: float, betah: float) -> float:
    """
    fcv = min(0.17 (1 + 2/βh) sqrt(f'c), 0.34 sqrt(f'c))
    """
    if fc < 0:
        raise ValueError(f"fc must be >= 0 (got {fc})")
    if betah <= 0:
        raise ValueError(f"betah must be > 0 (got {betah})")
    root_fc = math.sqrt(fc)
    return min(FCV_BASE_COEFF * (1.0 + 2.0 / betah) * root_fc, FCV_CAP_COEFF * root_fc)


def compute_vuo(inputs: InputSet) -> float:
    """
    Without shear reinforcement:
        Vuo = u dom (fcv + 0.3 σcp)
    With shear reinforcement:
        Vuo = min(u dom (0.5 sqrt(f'c) + 0.3 σcp), 0.2 u dom f'c)
    """
    ud = inputs.u * inputs.dom
    if inputs.has_shear_reinforcement:
        return min(
            ud * (REINF_SQRT_FC_COEFF * math.sqrt(inputs.fc) + PRESTRESS_COEFF * inputs.sigmacp),
            REINF_CAP_COEFF * ud * inputs.fc,
        )
    fcv = compute_fcv(inputs.fc, inputs.betah)
    return ud * (fcv + PRESTRESS_COEFF * inputs.sigmacp)


def calculation_warnings(inputs: InputSet) -> List[str]:
    warnings: List[str] = []
    if inputs.betah <= 1.0:
        warnings.append(f"βh = {inputs.betah:g} is not greater than 1; βh is defined as longest over shortest dimension.")
    return warnings


def require_finite(vuo: float) -> float:
    """Finite inputs can still overflow u * dom * ...; such a result is reported, never stored."""
    if not math.isfinite(vuo):
        raise ValidationError({"result": OVERFLOW_MESSAGE})
    return vuo
