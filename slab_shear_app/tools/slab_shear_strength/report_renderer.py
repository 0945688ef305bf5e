from __future__ import annotations

import html
from typing import Any

from .calc_trace import CalcTrace

def _h(s: Any) -> str:
    return html.escape("" if s is None else str(s))

def render_report_html(trace: CalcTrace) -> str:
    meta = trace.meta
    ts = meta.timestamp

    css = """
    @page { size: A4; margin: 15mm; }
    body { font-family: Arial, Helvetica, sans-serif; font-size: 10.5pt; color: #111; }
    h1 { font-size: 16pt; margin: 0 0 6px 0; }
    h2 { font-size: 12.5pt; margin: 16px 0 6px 0; border-bottom: 1px solid #ccc; padding-bottom: 2px; }
    h3 { font-size: 11pt; margin: 12px 0 4px 0; }
    .meta { font-size: 9pt; color: #333; }
    .box { border: 1px solid #999; padding: 8px; margin: 6px 0; }
    .eq { font-family: "Courier New", monospace; background: #f7f7f7; padding: 6px; white-space: pre-wrap; }
    .warn { color: #b45309; }
    table { border-collapse: collapse; width: 100%; margin: 6px 0 10px 0; }
    th, td { border: 1px solid #bbb; padding: 4px 6px; vertical-align: top; }
    th { background: #f1f1f1; text-align: left; }
    .footer { position: fixed; bottom: 0; left: 0; right: 0; font-size: 8pt; color: #444; }
    .footer .inner { border-top: 1px solid #ccc; padding-top: 4px; }
    """

    parts = []
    parts.append("<!doctype html><html><head><meta charset='utf-8'>")
    parts.append(f"<title>Slab Shear Strength Calcs - {_h(meta.input_hash)}</title>")
    parts.append(f"<style>{css}</style></head><body>")
    parts.append("<div class='footer'><div class='inner'>"
                 f"Tool: {_h(meta.tool_id)} v{_h(meta.tool_version)} | Input hash: {_h(meta.input_hash)} | Generated: {_h(ts)}"
                 "</div></div>")

    parts.append("<h1>Slab Shear Strength - Calculation Package</h1>")
    parts.append("<div class='meta'>"
                 f"<div><b>Project:</b> {_h(meta.project_name)}</div>"
                 f"<div><b>Tool ID:</b> {_h(meta.tool_id)}</div>"
                 f"<div><b>Tool Version:</b> {_h(meta.tool_version)}</div>"
                 f"<div><b>Report Version:</b> {_h(meta.report_version)}</div>"
                 f"<div><b>Timestamp:</b> {_h(ts)}</div>"
                 f"<div><b>Units System:</b> {_h(meta.units_system)}</div>"
                 f"<div><b>Code Basis:</b> {_h(meta.code_basis)}</div>"
                 f"<div><b>Input Hash:</b> {_h(meta.input_hash)}</div>"
                 "</div>")

    parts.append("<h2>Inputs</h2>")
    parts.append("<table><tr><th>ID</th><th>Label</th><th>Value</th><th>Units</th><th>Source</th></tr>")
    for i in trace.inputs:
        parts.append(
            f"<tr><td>{_h(i.id)}</td><td>{_h(i.label)}</td><td>{_h(i.value)}</td><td>{_h(i.units)}</td><td>{_h(i.source)}</td></tr>"
        )
    parts.append("</table>")

    parts.append("<h2>Assumptions &amp; Limitations</h2>")
    if trace.assumptions:
        parts.append("<ul>")
        for a in trace.assumptions:
            parts.append(f"<li><b>{_h(a.id)}</b>: {_h(a.text)}</li>")
        parts.append("</ul>")
    else:
        parts.append("<div class='box'>None.</div>")

    parts.append("<h2>Calculations</h2>")
    for s in trace.steps:
        parts.append(f"<h3>{_h(s.id)} - {_h(s.title)}</h3>")
        parts.append("<div class='box'>")
        parts.append(f"<div><b>Output:</b> {_h(s.output_symbol)} - {_h(s.output_description)}</div>")
        parts.append("<div class='eq'><b>Equation</b>\n" + _h(s.equation_latex) + "</div>")
        parts.append("<div class='eq'><b>Substitution</b>\n" + _h(s.substitution_latex) + "</div>")

        parts.append("<table><tr><th>Symbol</th><th>Description</th><th>Value</th><th>Units</th><th>Source</th></tr>")
        for v in s.variables:
            parts.append(
                f"<tr><td>{_h(v.symbol)}</td><td>{_h(v.description)}</td><td>{_h(v.value)}</td><td>{_h(v.units)}</td><td>{_h(v.source)}</td></tr>"
            )
        parts.append("</table>")

        parts.append(f"<div><b>Result (unrounded):</b> {_h(s.result_unrounded.value)} {_h(s.result_unrounded.units)}</div>")
        parts.append(f"<div><b>Rounding:</b> {_h(s.rounding.rule)} ({_h(s.rounding.decimals)})</div>")
        parts.append(f"<div><b>Result (used):</b> {_h(s.result_rounded.value)} {_h(s.result_rounded.units)}</div>")

        if s.references:
            parts.append("<div style='margin-top:6px;'><b>References</b>: " +
                         ", ".join([_h(f"{r.type}: {r.ref}") for r in s.references]) + "</div>")
        for c in s.checks or []:
            parts.append(
                f"<div><b>Check:</b> {_h(c.label)}: {_h(f'{c.demand:.6g}')} / {_h(f'{c.capacity:.6g}')} = {_h(f'{c.ratio:.3f}')} ({_h(c.pass_fail)})</div>"
            )
        for w in s.warnings or []:
            parts.append(f"<div class='warn'><b>Warning:</b> {_h(w)}</div>")

        parts.append("</div>")

    parts.append("<h2>Summary</h2>")
    summary = trace.summary
    parts.append("<div class='box'>")
    parts.append(f"<div><b>Branch:</b> {_h(summary.governing_branch)}</div>")
    parts.append(f"<div><b>Controlling steps:</b> {_h(', '.join(summary.controlling_step_ids))}</div>")
    vuo = summary.key_outputs.get("Vuo")
    if vuo:
        parts.append(f"<div><b>Ultimate shear strength V<sub>uo</sub>:</b> {float(vuo['value']):.2f} {_h(vuo['units'])}</div>")
    for w in summary.warnings:
        parts.append(f"<div class='warn'>{_h(w)}</div>")
    parts.append("</div>")

    parts.append("</body></html>")
    return "".join(parts)
