from __future__ import annotations

import traceback
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from slab_shear_app.core.schema_utils import field_errors
from slab_shear_app.core.tool_base import ToolMeta

from .calc_trace import CalcTrace, TraceAssumption
from .calculator import ERROR_MESSAGES, compute_vuo, require_finite, require_valid
from .constants import DEFAULT_UNITS_SYSTEM, TOOL_ID, TOOL_VERSION
from .errors import ShearInputError
from .evaluation import evaluate_with_trace
from .exports import export_all
from .logging_utils import get_run_logger, remove_run_logger_sink
from .models import FIELD_LABELS, FIELD_UNITS, BatchInputs
from .paths import compute_input_hash, create_run_dir

# Plugin contract hint: run() launches a Qt window, so the host must call it on the UI thread.
RUNS_ON_UI_THREAD = True

# run() switches; not calculation inputs
CONTROL_KEYS = ("__batch__", "headless")

ASSUMPTIONS = [
    TraceAssumption(
        id="A1",
        text="Inputs are in a consistent unit set; with u and dom in mm and f'c, σcp in MPa the result is in N.",
    ),
    TraceAssumption(
        id="A2",
        text="βh is the ratio of the longest to the shortest dimension of the effective loaded area (βh >= 1).",
    ),
    TraceAssumption(
        id="A3",
        text="No moment transfer between slab and column is considered; Vuo is the concentric punching capacity.",
    ),
]


class SlabShearStrengthTool:
    """Slab punching-shear strength tool.

    - UI mode (default): run() opens the calculator window and returns immediately.
    - Batch mode: run_batch() validates, computes and writes the calc package.
    """

    meta = ToolMeta(
        id=TOOL_ID,
        name="Slab Shear Strength",
        category="Concrete",
        version=TOOL_VERSION,
        description="Ultimate punching-shear strength Vuo of a slab, with saved results and text export.",
    )

    InputModel = BatchInputs

    RUNS_ON_UI_THREAD = True

    def __init__(self) -> None:
        self._window = None

    def default_inputs(self) -> dict:
        return self.InputModel().model_dump()

    # ------------------------------
    # Batch calculation API (headless)
    # ------------------------------
    def run_batch(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """Run the calculation + calc package exports and return results."""
        raw = {k: v for k, v in (inputs or {}).items() if k not in CONTROL_KEYS}
        try:
            model = self.InputModel.model_validate(raw)
            calc_inputs = require_valid(model.calc_inputs())
            require_finite(compute_vuo(calc_inputs))
        except ShearInputError as e:
            return {"ok": False, "error": str(e), "field_errors": getattr(e, "errors", {})}
        except PydanticValidationError as e:
            return {"ok": False, "error": "Invalid inputs", "field_errors": field_errors(e, ERROR_MESSAGES)}

        inputs_norm = calc_inputs.model_dump()
        input_hash = compute_input_hash(inputs_norm)
        run_dir = create_run_dir(self.meta.id, input_hash)
        log, sink_id = get_run_logger(run_dir, self.meta.id, input_hash)

        try:
            log.info("Starting slab shear batch run")
            log.info(f"Inputs (validated): {inputs_norm}")

            trace = CalcTrace.new(
                tool_id=self.meta.id,
                tool_version=self.meta.version,
                inputs=inputs_norm,
                input_hash=input_hash,
                units_system=DEFAULT_UNITS_SYSTEM,
                code_basis="Punching shear strength of slabs (Vuo)",
                project_name=model.project_name,
                input_labels=FIELD_LABELS,
                input_units=FIELD_UNITS,
            )
            trace.assumptions.extend(ASSUMPTIONS)

            vuo = evaluate_with_trace(trace, calc_inputs)
            for w in trace.summary.warnings:
                log.warning(w)

            results: Dict[str, Any] = {
                "ok": True,
                "run_dir": str(run_dir),
                "input_hash": input_hash,
                "inputs": inputs_norm,
                "Vuo_N": vuo,
                "Vuo_N_rounded": trace.step("Vuo").result_rounded.value,
                "governing_branch": trace.summary.governing_branch,
                "controlling_step_ids": list(trace.summary.controlling_step_ids),
                "warnings": list(trace.summary.warnings),
            }

            out_paths = export_all(trace, run_dir, results)
            results["outputs"] = {k: str(v) for k, v in out_paths.items()}
            results["report_html"] = out_paths["report_html"].read_text(encoding="utf-8")

            log.info(f"Batch run complete: Vuo = {vuo:.2f} N")
            return results

        except Exception as e:
            log.exception("Batch run failed")
            return {
                "ok": False,
                "run_dir": str(run_dir),
                "input_hash": input_hash,
                "error": str(e),
                "traceback": traceback.format_exc(),
            }

        finally:
            remove_run_logger_sink(sink_id)

    # ------------------------------
    # UI entry point
    # ------------------------------
    def run(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """Launch the interactive UI and return immediately.

        Without PySide6 (e.g. CI/headless tests) this falls back to run_batch(...).
        """
        inputs = inputs or {}
        if bool(inputs.get("__batch__") or inputs.get("headless")):
            return self.run_batch(inputs)

        try:
            from .ui_app import launch_ui

            self._window = launch_ui(tool=self, existing_window=self._window)
            return {"ok": True, "status": "launched"}

        except ImportError:
            return self.run_batch(inputs)

        except Exception as e:
            return {"ok": False, "error": str(e), "traceback": traceback.format_exc()}


TOOL = SlabShearStrengthTool()
