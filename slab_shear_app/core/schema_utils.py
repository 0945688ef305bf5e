from __future__ import annotations
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)


def field_errors(exc: ValidationError, messages: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Flatten a pydantic ValidationError into {field: message}.

    `messages` maps pydantic error types (e.g. "greater_than") to the text shown
    to the user; unmapped types keep pydantic's own message. Only the first
    error per field is kept.
    """
    messages = messages or {}
    out: Dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("__root__",)
        key = str(loc[0])
        if key in out:
            continue
        out[key] = messages.get(err.get("type", ""), err.get("msg", "Invalid value"))
    return out


def validate_inputs(
    model: Type[M],
    raw: Dict[str, Any],
    messages: Optional[Mapping[str, str]] = None,
) -> Tuple[Optional[M], Dict[str, str]]:
    """
    Returns (model_instance, {}) on success or (None, field_errors) on failure.
    """
    try:
        return model.model_validate(raw), {}
    except ValidationError as e:
        return None, field_errors(e, messages)
