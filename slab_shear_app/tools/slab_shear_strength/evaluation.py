from __future__ import annotations

import math
from typing import Any, Dict, List

from .calc_trace import CalcTrace, compute_step
from .calculator import calculation_warnings, compute_fcv, compute_vuo
from .constants import (
    FCV_BASE_COEFF,
    FCV_CAP_COEFF,
    PRESTRESS_COEFF,
    REINF_CAP_COEFF,
    REINF_SQRT_FC_COEFF,
    RESULT_DECIMALS,
)
from .models import InputSet

_NONE = {"rule": "none", "decimals": 0}
_RESULT = {"rule": "decimals", "decimals": RESULT_DECIMALS}
_REF_VUO = [{"type": "code", "ref": "Punching shear strength Vuo, slab without closed ties / with shear reinforcement"}]


def _var(symbol: str, description: str, value: float, units: str, source: str) -> Dict[str, Any]:
    return {"symbol": symbol, "description": description, "value": float(value), "units": units, "source": source}


def _limit_check(label: str, value: float, limit: float) -> Dict[str, Any]:
    return {
        "label": label,
        "demand": value,
        "capacity": limit,
        "ratio": value / limit,
        "pass_fail": "OK" if value <= limit else "LIMITED",
    }


def _input_vars(inputs: InputSet, *names: str) -> List[Dict[str, Any]]:
    table = {
        "u": _var("u", "Critical shear perimeter", inputs.u, "mm", "input:u"),
        "dom": _var("d_{om}", "Mean effective depth", inputs.dom, "mm", "input:dom"),
        "fc": _var("f'_c", "Concrete compressive strength", inputs.fc, "MPa", "input:fc"),
        "sigmacp": _var("\\sigma_{cp}", "Average effective prestress", inputs.sigmacp, "MPa", "input:sigmacp"),
        "betah": _var("\\beta_h", "Aspect ratio of loaded area", inputs.betah, "-", "input:betah"),
    }
    return [table[n] for n in names]


def _trace_fcv(trace: CalcTrace, inputs: InputSet) -> float:
    fcv_1 = compute_step(
        trace,
        id="fcv_1",
        section="Concrete shear strength",
        title="fcv, aspect-ratio term",
        output_symbol="f_{cv,1}",
        output_description="Concrete shear strength allowing for βh",
        equation_latex=f"f_{{cv,1}} = {FCV_BASE_COEFF}\\,(1 + 2/\\beta_h)\\,\\sqrt{{f'_c}}",
        variables=_input_vars(inputs, "betah", "fc"),
        compute_fn=lambda: FCV_BASE_COEFF * (1.0 + 2.0 / inputs.betah) * math.sqrt(inputs.fc),
        units="MPa",
        rounding_rule=_NONE,
        references=[{"type": "code", "ref": "fcv = 0.17(1 + 2/βh)√f'c"}],
    )
    fcv_2 = compute_step(
        trace,
        id="fcv_2",
        section="Concrete shear strength",
        title="fcv, upper limit",
        output_symbol="f_{cv,2}",
        output_description="Upper limit on concrete shear strength",
        equation_latex=f"f_{{cv,2}} = {FCV_CAP_COEFF}\\,\\sqrt{{f'_c}}",
        variables=_input_vars(inputs, "fc"),
        compute_fn=lambda: FCV_CAP_COEFF * math.sqrt(inputs.fc),
        units="MPa",
        rounding_rule=_NONE,
        references=[{"type": "code", "ref": "fcv ≤ 0.34√f'c"}],
    )
    return compute_step(
        trace,
        id="fcv",
        section="Concrete shear strength",
        title="Concrete shear strength fcv",
        output_symbol="f_{cv}",
        output_description="Concrete shear strength (governing)",
        equation_latex="f_{cv} = \\min(f_{cv,1},\\, f_{cv,2})",
        variables=[
            _var("f_{cv,1}", "Aspect-ratio term", fcv_1, "MPa", "step:fcv_1"),
            _var("f_{cv,2}", "Upper limit", fcv_2, "MPa", "step:fcv_2"),
        ],
        compute_fn=lambda: compute_fcv(inputs.fc, inputs.betah),
        units="MPa",
        rounding_rule=_NONE,
        references=[{"type": "derived", "ref": "Lesser of fcv_1 and fcv_2"}],
        checks_builder=lambda _fcv: [_limit_check("fcv,1 within 0.34√f'c", fcv_1, fcv_2)],
    )


def _trace_unreinforced(trace: CalcTrace, inputs: InputSet, warnings: List[str]) -> float:
    fcv = _trace_fcv(trace, inputs)
    return compute_step(
        trace,
        id="Vuo",
        section="Punching shear strength",
        title="Ultimate shear strength, no shear reinforcement",
        output_symbol="V_{uo}",
        output_description="Ultimate punching-shear strength",
        equation_latex=f"V_{{uo}} = u\\,d_{{om}}\\,(f_{{cv}} + {PRESTRESS_COEFF}\\,\\sigma_{{cp}})",
        variables=_input_vars(inputs, "u", "dom", "sigmacp") + [
            _var("f_{cv}", "Concrete shear strength", fcv, "MPa", "step:fcv"),
        ],
        compute_fn=lambda: compute_vuo(inputs),
        units="N",
        rounding_rule=_RESULT,
        references=_REF_VUO,
        warnings=warnings or None,
    )


def _trace_reinforced(trace: CalcTrace, inputs: InputSet, warnings: List[str]) -> float:
    ud = inputs.u * inputs.dom
    v1 = compute_step(
        trace,
        id="Vuo_1",
        section="Punching shear strength",
        title="Shear reinforcement, strength term",
        output_symbol="V_{uo,1}",
        output_description="Strength with shear reinforcement",
        equation_latex=f"V_{{uo,1}} = u\\,d_{{om}}\\,({REINF_SQRT_FC_COEFF}\\,\\sqrt{{f'_c}} + {PRESTRESS_COEFF}\\,\\sigma_{{cp}})",
        variables=_input_vars(inputs, "u", "dom", "fc", "sigmacp"),
        compute_fn=lambda: ud * (REINF_SQRT_FC_COEFF * math.sqrt(inputs.fc) + PRESTRESS_COEFF * inputs.sigmacp),
        units="N",
        rounding_rule=_NONE,
        references=_REF_VUO,
    )
    v2 = compute_step(
        trace,
        id="Vuo_2",
        section="Punching shear strength",
        title="Shear reinforcement, upper limit",
        output_symbol="V_{uo,2}",
        output_description="Upper limit with shear reinforcement",
        equation_latex=f"V_{{uo,2}} = {REINF_CAP_COEFF}\\,u\\,d_{{om}}\\,f'_c",
        variables=_input_vars(inputs, "u", "dom", "fc"),
        compute_fn=lambda: REINF_CAP_COEFF * ud * inputs.fc,
        units="N",
        rounding_rule=_NONE,
        references=_REF_VUO,
    )
    return compute_step(
        trace,
        id="Vuo",
        section="Punching shear strength",
        title="Ultimate shear strength, with shear reinforcement",
        output_symbol="V_{uo}",
        output_description="Ultimate punching-shear strength",
        equation_latex="V_{uo} = \\min(V_{uo,1},\\, V_{uo,2})",
        variables=[
            _var("V_{uo,1}", "Strength term", v1, "N", "step:Vuo_1"),
            _var("V_{uo,2}", "Upper limit", v2, "N", "step:Vuo_2"),
        ],
        compute_fn=lambda: compute_vuo(inputs),
        units="N",
        rounding_rule=_RESULT,
        references=[{"type": "derived", "ref": "Lesser of Vuo_1 and Vuo_2"}],
        checks_builder=lambda _vuo: [_limit_check("Vuo,1 within 0.2 u dom f'c", v1, v2)],
        warnings=warnings or None,
    )


def evaluate_with_trace(trace: CalcTrace, inputs: InputSet) -> float:
    """
    Run the calculation as traced steps and fill the trace summary.

    Returns the unrounded Vuo (identical to compute_vuo).
    """
    warnings = calculation_warnings(inputs)
    if inputs.has_shear_reinforcement:
        _trace_reinforced(trace, inputs, warnings)
        branch = "with shear reinforcement"
        controlling = ["Vuo_1" if trace.step("Vuo_1").result_unrounded.value <= trace.step("Vuo_2").result_unrounded.value else "Vuo_2"]
    else:
        _trace_unreinforced(trace, inputs, warnings)
        branch = "without shear reinforcement"
        controlling = ["fcv_1" if trace.step("fcv_1").result_unrounded.value <= trace.step("fcv_2").result_unrounded.value else "fcv_2"]

    final = trace.step("Vuo")

    trace.summary.governing_branch = branch
    trace.summary.controlling_step_ids = controlling + ["Vuo"]
    trace.summary.key_outputs = {
        "Vuo": {"value": final.result_rounded.value, "units": "N"},
    }
    trace.summary.warnings = warnings
    return final.result_unrounded.value
