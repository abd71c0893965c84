import json

import pytest
from numpy.testing import assert_allclose

from heisdmrg.config import DMRGParameters
from heisdmrg.dmrg import main, run_dmrg


def _energy_lines(out):
    return [line for line in out.splitlines() if line and line[0].isdigit()]


def test_main_prints_one_line_per_step(capsys, exact_energies):
    main(["--states", "8", "--sites", "20", "--sweeps", "2"])
    out = capsys.readouterr().out
    assert "End of the infinite system algorithm" in out
    lines = _energy_lines(out)
    assert len(lines) == 9 + 7 + 13
    left, right, energy = lines[0].split()
    assert (left, right) == ("2", "2")
    assert_allclose(float(energy), exact_energies[4] / 4, atol=1e-12)
    assert lines[-1].split()[:2] == ["4", "16"]


def test_main_reads_input_file(tmp_path, capsys):
    path = tmp_path / "input.json"
    with open(path, "w") as f:
        json.dump({"max_states": 4, "number_of_sites": 10, "half_sweeps": 1}, f)
    store = tmp_path / "blocks.h5"
    main(["--input", str(path), "--store", str(store)])
    lines = _energy_lines(capsys.readouterr().out)
    # 4 warm-up steps, then sites 5 to 7.
    assert len(lines) == 4 + 3
    assert store.exists()


def test_flags_override_input_file(tmp_path, capsys):
    path = tmp_path / "input.json"
    with open(path, "w") as f:
        json.dump({"max_states": 4, "number_of_sites": 10, "half_sweeps": 1}, f)
    main(["--input", str(path), "--sweeps", "0"])
    lines = _energy_lines(capsys.readouterr().out)
    assert len(lines) == 4


def test_main_prompts_for_missing_values(monkeypatch, capsys):
    answers = iter(["2"])
    monkeypatch.setattr("builtins.input", lambda prompt: next(answers))
    main(["--states", "4", "--sites", "8"])
    lines = _energy_lines(capsys.readouterr().out)
    # min environment of 3 sites: 3 warm-up steps, then 4..5 and 3..5.
    assert len(lines) == 3 + 2 + 3


def test_main_rejects_invalid_parameters(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--states", "8", "--sites", "19", "--sweeps", "2"])
    assert exc_info.value.code == 2
    assert "even" in capsys.readouterr().err


def test_main_rejects_missing_input_file(tmp_path):
    with pytest.raises(SystemExit):
        main(["--input", str(tmp_path / "missing.json")])


def test_main_rejects_null_parameter_in_input_file(tmp_path, capsys):
    path = tmp_path / "input.json"
    with open(path, "w") as f:
        json.dump({"max_states": None, "number_of_sites": 10, "half_sweeps": 1}, f)
    with pytest.raises(SystemExit) as exc_info:
        main(["--input", str(path)])
    assert exc_info.value.code == 2
    assert "integers" in capsys.readouterr().err


def test_main_rejects_non_integer_answer(monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda prompt: "eight")
    with pytest.raises(SystemExit) as exc_info:
        main(["--sites", "20", "--sweeps", "2"])
    assert exc_info.value.code == 2
    assert "eight" in capsys.readouterr().err


def test_run_dmrg_without_report_is_silent(capsys):
    infinite, finite = run_dmrg(DMRGParameters(4, 10, 1), report=None)
    assert len(infinite) == 4
    assert len(finite) == 3
    assert capsys.readouterr().out == ""
