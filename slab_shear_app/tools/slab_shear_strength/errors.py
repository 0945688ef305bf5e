from __future__ import annotations

from typing import Dict, Mapping

from .constants import PARSE_ERROR_MESSAGE


class ShearInputError(ValueError):
    """Base class for recoverable, per-field input errors."""


class ParseError(ShearInputError):
    """A numeric field received text that is not a finite number."""

    def __init__(self, field: str, raw: object, message: str = PARSE_ERROR_MESSAGE) -> None:
        super().__init__(f"{field}: {message} (got {raw!r})")
        self.field = field
        self.raw = raw
        self.message = message


class ValidationError(ShearInputError):
    """One or more fields failed validation; `errors` maps field -> message."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors: Dict[str, str] = dict(errors)
        summary = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(f"Invalid inputs: {summary}")
