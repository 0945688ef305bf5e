from __future__ import annotations

from openpyxl import load_workbook

from . import session
from .exports import export_session_excel, export_text, format_number, write_text_export
from .models import InputSet
from .session import SessionStore

TS_FORMAT = "%Y-%m-%d %H:%M:%S"


def _inputs(**overrides) -> InputSet:
    base = dict(u=1000.0, dom=150.0, fc=32.0, sigmacp=1.5, betah=1.5, has_shear_reinforcement=False)
    base.update(overrides)
    return InputSet(**base)


def test_provider_ids_are_sequential(provider, clock) -> None:
    assert [provider.new_id(), provider.new_id(), provider.new_id()] == ["calc-1", "calc-2", "calc-3"]
    assert provider.now() == clock


def test_default_provider_gives_unique_ids() -> None:
    a = session.make_record(_inputs(), 1.0)
    b = session.make_record(_inputs(), 1.0)
    assert a.id != b.id


def test_save_prepends_newest_first(provider) -> None:
    store = SessionStore()
    store, first = session.save(store, _inputs(), 1.0, provider)
    store, second = session.save(store, _inputs(u=2000.0), 2.0, provider)
    assert store.ids() == (second.id, first.id)
    assert len(store) == 2
    assert store.get(first.id) == first


def test_same_inputs_saved_twice_get_distinct_ids(provider) -> None:
    store, a = session.save(SessionStore(), _inputs(), 5.0, provider)
    store, b = session.save(store, _inputs(), 5.0, provider)
    assert a.id != b.id
    assert len(store) == 2


def test_remove_unknown_id_is_noop(provider) -> None:
    store, _ = session.save(SessionStore(), _inputs(), 1.0, provider)
    assert session.remove(store, "missing") is store


def test_append_then_remove_restores_store(provider) -> None:
    store, _ = session.save(SessionStore(), _inputs(), 1.0, provider)
    record = session.make_record(_inputs(fc=40.0), 2.0, provider)
    assert session.remove(session.append(store, record), record.id) == store


def test_remove_keeps_order_of_others(provider) -> None:
    store = SessionStore()
    ids = []
    for n in range(4):
        store, r = session.save(store, _inputs(u=1000.0 + n), float(n), provider)
        ids.append(r.id)
    store = session.remove(store, ids[1])
    assert store.ids() == (ids[3], ids[2], ids[0])


def test_format_number_shortest_form() -> None:
    assert format_number(1000.0) == "1000"
    assert format_number(1.5) == "1.5"
    assert format_number(0.1) == "0.1"
    assert format_number(123.456) == "123.456"


def test_format_number_uses_exponent_at_extremes() -> None:
    assert format_number(0.00005) == "0.00005"
    assert format_number(0.000001) == "0.000001"
    assert format_number(1e-7) == "1e-7"
    assert format_number(1.25e-9) == "1.25e-9"
    assert format_number(1e20) == "100000000000000000000"
    assert format_number(1e21) == "1e+21"
    assert format_number(2.5e300) == "2.5e+300"


def test_export_text_format(provider) -> None:
    store, _ = session.save(SessionStore(), _inputs(), 355999.6, provider)
    expected = (
        "\n"
        "Calculation ID: calc-1\n"
        "Timestamp: 2024-03-05 14:30:15\n"
        "\n"
        "Input Parameters:\n"
        "Critical shear perimeter (u): 1000\n"
        "Mean effective depth (dom): 150\n"
        "Concrete strength (fc): 32\n"
        "Effective prestress (σcp): 1.5\n"
        "Ratio βh: 1.5\n"
        "Shear Reinforcement: No\n"
        "\n"
        "Result:\n"
        "Ultimate shear strength (Vuo): 355999.60 N\n"
        + "-" * 40 + "\n"
    )
    assert export_text(store, TS_FORMAT) == expected


def test_export_text_newest_block_first(provider) -> None:
    store, _ = session.save(SessionStore(), _inputs(), 1.0, provider)
    store, _ = session.save(store, _inputs(has_shear_reinforcement=True), 2.0, provider)
    text = export_text(store, TS_FORMAT)
    assert text.index("calc-2") < text.index("calc-1")
    assert text.count("-" * 40) == 2
    assert "Shear Reinforcement: Yes" in text


def test_export_text_empty() -> None:
    assert export_text(SessionStore()) == ""


def test_write_text_export_skips_empty_store(tmp_path) -> None:
    path = tmp_path / "out.txt"
    assert write_text_export(SessionStore(), path) is None
    assert not path.exists()


def test_write_text_export(tmp_path, provider) -> None:
    store, _ = session.save(SessionStore(), _inputs(), 10.0, provider)
    path = write_text_export(store, tmp_path / "exports" / "out.txt", TS_FORMAT)
    assert path is not None
    assert path.read_text(encoding="utf-8") == export_text(store, TS_FORMAT)


def test_export_session_excel(tmp_path, provider) -> None:
    store, _ = session.save(SessionStore(), _inputs(), 355999.604, provider)
    store, _ = session.save(store, _inputs(has_shear_reinforcement=True), 491764.1, provider)
    path = export_session_excel(store, tmp_path / "saved.xlsx", TS_FORMAT)
    assert path is not None and path.exists()

    ws = load_workbook(path)["Saved Results"]
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0][0] == "id"
    assert rows[1][0] == "calc-2"
    assert rows[1][-2] == "Yes"
    assert rows[2][-1] == 355999.6
