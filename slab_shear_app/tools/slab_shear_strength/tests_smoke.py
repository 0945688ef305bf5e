from __future__ import annotations

import json
from pathlib import Path

import pytest

from slab_shear_app.cli import main as cli_main

from . import TOOL

REQUIRED_ARTIFACTS = ["report.html", "calc_trace.json", "results.json", "results.xlsx", "run.log"]


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path, monkeypatch):
    # force runs/logs/settings into a temp folder
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path / "localappdata"))
    yield


def _assert_artifacts(run_dir: Path) -> None:
    missing = [f for f in REQUIRED_ARTIFACTS if not (run_dir / f).exists()]
    assert not missing, f"Missing artifacts in {run_dir}: {missing}"


def test_smoke_default_inputs_both_branches():
    for reinforced in (False, True):
        inputs = {**TOOL.default_inputs(), "has_shear_reinforcement": reinforced}
        r = TOOL.run_batch(inputs)
        assert r["ok"] is True, r.get("traceback")
        run_dir = Path(r["run_dir"])
        _assert_artifacts(run_dir)

        trace = json.loads((run_dir / "calc_trace.json").read_text(encoding="utf-8"))
        assert trace["summary"]["key_outputs"]
        assert r["Vuo_N_rounded"] == round(r["Vuo_N"], 2)
        assert "Slab Shear Strength" in r["report_html"]
        assert "Batch run complete" in (run_dir / "run.log").read_text(encoding="utf-8")


def test_smoke_invalid_inputs_report_field_errors():
    r = TOOL.run_batch({**TOOL.default_inputs(), "u": 0, "betah": -1})
    assert r["ok"] is False
    assert set(r["field_errors"]) == {"u", "betah"}


def test_smoke_unparseable_batch_input():
    r = TOOL.run_batch({**TOOL.default_inputs(), "fc": "abc"})
    assert r["ok"] is False
    assert "fc" in r["field_errors"]


def test_smoke_misspelled_input_is_rejected():
    inputs = {"u": 500, "dom": 100, "fc": 25, "sigma_cp": 9.0, "betah": 2.0}
    r = TOOL.run_batch(inputs)
    assert r["ok"] is False
    assert r["field_errors"] == {"sigma_cp": "Unknown input field"}


def test_smoke_overflowing_result_is_rejected():
    r = TOOL.run_batch({**TOOL.default_inputs(), "u": 1e200, "dom": 1e200})
    assert r["ok"] is False
    assert "result" in r["field_errors"]
    assert "run_dir" not in r


def test_smoke_headless_run_falls_through_to_batch():
    r = TOOL.run({"__batch__": True})
    assert r["ok"] is True


def test_cli_reports_result(capsys):
    code = cli_main(["--u", "1000", "--dom", "150", "--fc", "32", "--sigmacp", "1.5", "--betah", "1.5"])
    assert code == 0
    assert "Ultimate shear strength (Vuo): 355999.57 N" in capsys.readouterr().out


def test_cli_rejects_bad_input(capsys):
    code = cli_main(["--u", "abc", "--dom", "150", "--fc", "32", "--sigmacp", "1.5", "--betah", "1.5"])
    assert code == 2
    assert "Please enter a valid number" in capsys.readouterr().err


def test_cli_text_export(tmp_path):
    out = tmp_path / "calcs.txt"
    code = cli_main([
        "--u", "1000", "--dom", "150", "--fc", "32", "--sigmacp", "1.5", "--betah", "1.5",
        "--reinforced", "--export", str(out),
    ])
    assert code == 0
    text = out.read_text(encoding="utf-8")
    assert "Shear Reinforcement: Yes" in text
    assert text.rstrip().endswith("-" * 40)


def test_loader_discovers_tool():
    from slab_shear_app.core.loader import discover_tools

    tools = discover_tools()
    assert [t.meta.id for t in tools] == ["slab_shear_strength"]
