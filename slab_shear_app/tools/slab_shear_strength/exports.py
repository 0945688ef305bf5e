from __future__ import annotations

import json
import math
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger
from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from .calc_trace import CalcTrace
from .constants import EXPORT_DELIMITER, RESULT_DECIMALS
from .models import EXPORT_LABELS, NUMERIC_FIELDS
from .report_renderer import render_report_html
from .session import CalculationRecord, SessionStore

DEFAULT_TIMESTAMP_FORMAT = "%x, %X"


def _autosize(ws):
    for col in range(1, ws.max_column + 1):
        max_len = 0
        for row in range(1, min(ws.max_row, 200) + 1):  # cap scanning
            v = ws.cell(row=row, column=col).value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[get_column_letter(col)].width = min(max(10, max_len + 2), 70)


def _write_json(path: Path, obj: Any) -> None:
    path.write_text(json.dumps(obj, indent=2, sort_keys=False), encoding="utf-8")


def format_number(value: float) -> str:
    """Shortest round-trip digits; exponent form only below 1e-6 or from 1e21 up.

    1000.0 -> "1000", 1.5 -> "1.5", 0.00005 -> "0.00005", 1e-7 -> "1e-7", 1e21 -> "1e+21".
    """
    v = float(value)
    if v == 0 or not math.isfinite(v):
        return "0" if v == 0 else repr(v)
    sign = "-" if v < 0 else ""
    _, digit_tuple, exp = Decimal(repr(abs(v))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exp += len(digit_tuple) - len(digits)
    k = len(digits)
    n = k + exp  # position of the decimal point relative to the digits

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * (-n) + digits
    e = n - 1
    mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
    return f"{sign}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


def format_result(value: float) -> str:
    return f"{float(value):.{RESULT_DECIMALS}f}"


def format_timestamp(record: CalculationRecord, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    return record.timestamp.strftime(timestamp_format)


# ------------------------------
# Text export (Download)
# ------------------------------
def render_record_block(record: CalculationRecord, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    i = record.inputs
    lines: List[str] = [
        "",
        f"Calculation ID: {record.id}",
        f"Timestamp: {format_timestamp(record, timestamp_format)}",
        "",
        "Input Parameters:",
    ]
    for name in NUMERIC_FIELDS:
        lines.append(f"{EXPORT_LABELS[name]}: {format_number(getattr(i, name))}")
    lines.append(f"Shear Reinforcement: {'Yes' if i.has_shear_reinforcement else 'No'}")
    lines.extend([
        "",
        "Result:",
        f"Ultimate shear strength (Vuo): {format_result(record.result)} N",
        EXPORT_DELIMITER,
        "",
    ])
    return "\n".join(lines)


def export_text(records: Iterable[CalculationRecord], timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    """Every record in store order; empty input gives an empty string."""
    return "\n".join(render_record_block(r, timestamp_format) for r in records)


def write_text_export(
    store: SessionStore,
    path: Path,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> Optional[Path]:
    """Write the text export; returns None (and writes nothing) for an empty store."""
    if not store:
        logger.debug("Download skipped: no saved results")
        return None
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_text(store, timestamp_format), encoding="utf-8")
    logger.info(f"Exported {len(store)} calculation(s) to {path}")
    return path


def export_session_excel(
    store: SessionStore,
    path: Path,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> Optional[Path]:
    if not store:
        logger.debug("Excel export skipped: no saved results")
        return None
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = "Saved Results"
    ws.append(["id", "timestamp", *NUMERIC_FIELDS, "has_shear_reinforcement", "Vuo_N"])
    for r in store:
        i = r.inputs
        ws.append([
            r.id,
            format_timestamp(r, timestamp_format),
            *[getattr(i, name) for name in NUMERIC_FIELDS],
            "Yes" if i.has_shear_reinforcement else "No",
            round(r.result, RESULT_DECIMALS),
        ])
    _autosize(ws)
    wb.save(path)
    logger.info(f"Exported {len(store)} calculation(s) to {path}")
    return path


# ------------------------------
# Calc package (batch runs)
# ------------------------------
def export_excel(trace: CalcTrace, results: Dict[str, Any], path: Path) -> Path:
    wb = Workbook()

    ws_in = wb.active
    ws_in.title = "Inputs"
    ws_in.append(["id", "label", "value", "units", "source"])
    for i in trace.inputs:
        ws_in.append([i.id, i.label, i.value, i.units, i.source])
    _autosize(ws_in)

    ws_a = wb.create_sheet("Assumptions")
    ws_a.append(["id", "text"])
    for a in trace.assumptions:
        ws_a.append([a.id, a.text])
    _autosize(ws_a)

    ws_c = wb.create_sheet("Calcs")
    ws_c.append(["id", "section", "title", "reference", "equation", "substitution", "result_unrounded", "result_rounded", "units", "checks"])
    for st in trace.steps:
        refs = "; ".join([f"{r.type}:{r.ref}" for r in st.references])
        ws_c.append([
            st.id,
            st.section,
            st.title,
            refs,
            st.equation_latex,
            st.substitution_latex,
            st.result_unrounded.value,
            st.result_rounded.value,
            st.result_rounded.units,
            "; ".join(f"{c.label}: {c.ratio:.3f} {c.pass_fail}" for c in st.checks or []),
        ])
    _autosize(ws_c)

    ws_s = wb.create_sheet("Summary")
    ws_s.append(["key", "value"])
    ws_s.append(["governing_branch", trace.summary.governing_branch])
    ws_s.append(["Vuo_N", results.get("Vuo_N")])
    ws_s.append(["input_hash", trace.meta.input_hash])
    for w in trace.summary.warnings:
        ws_s.append(["warning", w])
    _autosize(ws_s)

    wb.save(path)
    return path


def export_all(trace: CalcTrace, run_dir: Path, results: Dict[str, Any]) -> Dict[str, Path]:
    run_dir.mkdir(parents=True, exist_ok=True)

    report = run_dir / "report.html"
    report.write_text(render_report_html(trace), encoding="utf-8")

    trace_json = run_dir / "calc_trace.json"
    _write_json(trace_json, trace.to_json_dict())

    results_json = run_dir / "results.json"
    _write_json(results_json, results)

    xlsx = export_excel(trace, results, run_dir / "results.xlsx")

    return {
        "report_html": report,
        "calc_trace_json": trace_json,
        "results_json": results_json,
        "results_xlsx": xlsx,
    }
