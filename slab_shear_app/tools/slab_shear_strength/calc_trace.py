from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field


class CalcVariable(BaseModel):
    model_config = ConfigDict(extra="forbid")
    symbol: str
    description: str
    value: float
    units: str
    source: str  # input:<id> | step:<step_id> | constant:<name>


class CalcReference(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: str  # code/note/derived
    ref: str


class CalcCheck(BaseModel):
    model_config = ConfigDict(extra="forbid")
    label: str
    demand: float
    capacity: float
    ratio: float
    pass_fail: str


class CalcValue(BaseModel):
    model_config = ConfigDict(extra="forbid")
    value: float
    units: str


class Rounding(BaseModel):
    model_config = ConfigDict(extra="forbid")
    rule: str  # "decimals" or "none"
    decimals: int


class CalcStep(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str
    section: str
    title: str

    output_symbol: str
    output_description: str

    equation_latex: str
    substitution_latex: str

    variables: List[CalcVariable]

    result_unrounded: CalcValue
    rounding: Rounding
    result_rounded: CalcValue

    references: List[CalcReference]

    checks: Optional[List[CalcCheck]] = None
    warnings: Optional[List[str]] = None


class TraceMeta(BaseModel):
    model_config = ConfigDict(extra="forbid")
    tool_id: str
    tool_version: str
    report_version: str
    timestamp: str
    units_system: str
    code_basis: Optional[str] = None
    input_hash: str
    project_name: Optional[str] = None


class TraceInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str
    label: str
    value: Union[bool, float, str]
    units: str
    source: str  # user/default
    notes: Optional[str] = None


class TraceAssumption(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str
    text: str


class TraceSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")
    governing_branch: str = ""
    controlling_step_ids: List[str] = Field(default_factory=list)
    key_outputs: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)


class CalcTrace(BaseModel):
    """Reproducible record of one calculation; every export renders from this object."""
    model_config = ConfigDict(extra="forbid")
    meta: TraceMeta
    inputs: List[TraceInput] = Field(default_factory=list)
    assumptions: List[TraceAssumption] = Field(default_factory=list)
    steps: List[CalcStep] = Field(default_factory=list)
    summary: TraceSummary = Field(default_factory=TraceSummary)

    @classmethod
    def new(
        cls,
        *,
        tool_id: str,
        tool_version: str,
        inputs: Mapping[str, Any],
        input_hash: str,
        units_system: str,
        report_version: str = "1.0",
        code_basis: Optional[str] = None,
        project_name: Optional[str] = None,
        input_labels: Optional[Mapping[str, str]] = None,
        input_units: Optional[Mapping[str, str]] = None,
    ) -> "CalcTrace":
        meta = TraceMeta(
            tool_id=tool_id,
            tool_version=tool_version,
            report_version=report_version,
            timestamp=datetime.now().isoformat(timespec="seconds"),
            units_system=units_system,
            code_basis=code_basis,
            input_hash=input_hash,
            project_name=project_name,
        )
        lbl = input_labels or {}
        unt = input_units or {}
        trace_inputs = [
            TraceInput(
                id=str(k),
                label=str(lbl.get(k, k)),
                value=v,
                units=str(unt.get(k, "-")),
                source="user",
            )
            for k, v in inputs.items()
        ]
        return cls(meta=meta, inputs=trace_inputs)

    def step(self, step_id: str) -> CalcStep:
        for s in self.steps:
            if s.id == step_id:
                return s
        raise KeyError(step_id)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def _format_num(value: float) -> str:
    if value is None or (isinstance(value, float) and (math.isnan(value) or math.isinf(value))):
        return str(value)
    return f"{value:.12g}"


def _latex_value_with_units(value: float, units: str) -> str:
    u = units.strip()
    if u in ("", "-"):
        return _format_num(value)
    return f"{_format_num(value)}\\,\\mathrm{{{u}}}"


def _substitute(equation_latex: str, variables: Sequence[CalcVariable]) -> str:
    """Replace symbols on the right-hand side with value + units, in a single pass."""
    lhs, sep, rhs = equation_latex.partition("=")
    if not sep:
        lhs, rhs = "", equation_latex
    values = {v.symbol: _latex_value_with_units(v.value, v.units) for v in variables}
    # Longer symbols first so e.g. "f_{cv}" wins over "f"
    pattern = re.compile("|".join(re.escape(s) for s in sorted(values, key=len, reverse=True)))
    rhs = pattern.sub(lambda m: values[m.group(0)], rhs)
    return f"{lhs}{sep}{rhs}"


def apply_rounding(value: float, rule: str, n: int) -> float:
    if rule == "none":
        return float(value)
    if rule == "decimals":
        return float(round(value, int(n)))
    raise ValueError(f"Unknown rounding rule: {rule!r}")


def compute_step(
    trace: CalcTrace,
    *,
    id: str,
    section: str,
    title: str,
    output_symbol: str,
    output_description: str,
    equation_latex: str,
    variables: Sequence[Dict[str, Any]],
    compute_fn: Callable[[], float],
    units: str,
    rounding_rule: Dict[str, Any],
    references: Sequence[Dict[str, str]],
    checks_builder: Optional[Callable[[float], List[Dict[str, Any]]]] = None,
    warnings: Optional[List[str]] = None,
) -> float:
    """
    Computation wrapper that:
    - Computes the unrounded result
    - Applies the rounding rule
    - Generates substitution_latex by replacing symbols with numeric values + units
    - Appends a CalcStep to the trace
    - Returns the rounded value
    """
    if not id or not section or not title:
        raise ValueError("compute_step requires non-empty id/section/title")
    if not output_symbol or not output_description:
        raise ValueError("compute_step requires output_symbol/output_description")
    if not equation_latex:
        raise ValueError("compute_step requires equation_latex")
    if not variables:
        raise ValueError("compute_step requires variables (non-empty)")
    if not references:
        raise ValueError("compute_step requires references (non-empty)")

    var_models: List[CalcVariable] = []
    for v in variables:
        missing = [k for k in ("symbol", "description", "value", "units", "source") if k not in v]
        if missing:
            raise ValueError(f"Variable missing required fields {missing}: {v}")
        var_models.append(CalcVariable(**v))

    unrounded = float(compute_fn())

    rule = rounding_rule.get("rule", "none")
    n = int(rounding_rule.get("decimals", 6))
    rounded = apply_rounding(unrounded, rule, n)

    sub = _substitute(equation_latex, var_models)

    step_checks = None
    if checks_builder is not None:
        step_checks = [CalcCheck(**c) for c in checks_builder(rounded)]

    trace.steps.append(
        CalcStep(
            id=id,
            section=section,
            title=title,
            output_symbol=output_symbol,
            output_description=output_description,
            equation_latex=equation_latex,
            substitution_latex=sub,
            variables=var_models,
            result_unrounded=CalcValue(value=unrounded, units=units),
            rounding=Rounding(rule=rule, decimals=n),
            result_rounded=CalcValue(value=rounded, units=units),
            references=[CalcReference(**r) for r in references],
            checks=step_checks,
            warnings=warnings,
        )
    )
    return rounded
