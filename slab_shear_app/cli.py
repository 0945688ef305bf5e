from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from slab_shear_app.core.logging import configure_logging
from slab_shear_app.core.settings import get_app_settings
from slab_shear_app.tools.slab_shear_strength import TOOL
from slab_shear_app.tools.slab_shear_strength import state as st
from slab_shear_app.tools.slab_shear_strength.exports import format_result, write_text_export
from slab_shear_app.tools.slab_shear_strength.models import FIELD_LABELS, NUMERIC_FIELDS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slab-shear",
        description="Ultimate punching-shear strength Vuo of a concrete slab (mm, MPa -> N).",
    )
    for name in NUMERIC_FIELDS:
        parser.add_argument(f"--{name}", default=None, metavar="VALUE", help=FIELD_LABELS[name])
    parser.add_argument("--reinforced", action="store_true", help="Slab has shear reinforcement")
    parser.add_argument("--export", type=Path, default=None, metavar="PATH",
                        help="Write the calculation in the text export format")
    parser.add_argument("--package", action="store_true",
                        help="Also write the calc package (report.html, calc_trace.json, results.xlsx)")
    parser.add_argument("--project-name", default="SlabShear", help="Label for the calc package")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level.upper())
    settings = get_app_settings()

    state = st.CalculatorState()
    for name in NUMERIC_FIELDS:
        raw = getattr(args, name)
        if raw is not None:
            state = st.edit_field(state, name, raw)
    state = st.set_reinforcement(state, args.reinforced)
    state = st.calculate(state, warn_betah=settings.warn_betah_le_one)

    if state.result is None:
        for name, msg in state.errors.items():
            print(f"{FIELD_LABELS.get(name, name)}: {msg}", file=sys.stderr)
        return 2

    print(f"Ultimate shear strength (Vuo): {format_result(state.result)} N")
    for w in state.warnings:
        print(f"Warning: {w}", file=sys.stderr)

    if args.export is not None:
        state, _record = st.save_result(state)
        path = write_text_export(state.store, args.export, settings.timestamp_format)
        print(f"Exported: {path}")

    if args.package:
        res = TOOL.run_batch({
            **state.form_values(),
            "project_name": args.project_name,
        })
        if not res.get("ok"):
            print(f"Calc package failed: {res.get('error')}", file=sys.stderr)
            return 1
        print(f"Calc package: {res['run_dir']}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
