from __future__ import annotations

import importlib
from pathlib import Path


def _check_path(label: str, path: Path) -> bool:
    ok = path.exists()
    status = "OK" if ok else "MISSING"
    print(f"[{status}] {label}: {path}")
    return ok


def _check_import(label: str, module_name: str, attr: str | None = None) -> bool:
    try:
        mod = importlib.import_module(module_name)
        if attr:
            getattr(mod, attr)
        print(f"[OK] import {label}")
        return True
    except Exception as e:
        print(f"[WARN] import {label} failed: {e}")
        return False


def main() -> int:
    root = Path(__file__).resolve().parents[1]
    ok = True

    ok &= _check_path(
        "Slab shear tool package",
        root / "slab_shear_app" / "tools" / "slab_shear_strength" / "tool.py",
    )

    ok &= _check_import("pydantic", "pydantic", "BaseModel")
    ok &= _check_import("loguru", "loguru", "logger")
    ok &= _check_import("openpyxl", "openpyxl", "Workbook")
    # optional: only the desktop window needs it
    _check_import("PySide6.QtWidgets", "PySide6.QtWidgets", "QMainWindow")

    if ok:
        from slab_shear_app.tools.slab_shear_strength import TOOL

        res = TOOL.run_batch(TOOL.default_inputs())
        if res.get("ok"):
            print(f"[OK] batch run: Vuo = {res['Vuo_N_rounded']} N -> {res['run_dir']}")
        else:
            print(f"[FAIL] batch run: {res.get('error')}")
            ok = False

    return 0 if ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
