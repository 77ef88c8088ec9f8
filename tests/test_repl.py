import importlib.util
import json
import sys
import uuid
from pathlib import Path

import pytest


def _load_repl_module():
    """Dynamically load the top-level minilisp_repl.py as a module with a unique name."""
    repl_path = Path(__file__).resolve().parents[1] / "minilisp_repl.py"
    mod_name = f"minilisp_repl_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(repl_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod


def _feed(monkeypatch, repl, lines):
    it = iter(lines)

    def fake_read_line(prompt: str) -> str:
        try:
            return next(it)
        except StopIteration:
            raise EOFError
    monkeypatch.setattr(repl, "read_line", fake_read_line)


def test_repl_exit_immediately(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["exit"])

    repl.main([])
    out = capsys.readouterr().out
    assert "MiniLisp REPL v0.1" in out
    assert "Type 'exit' or press Ctrl+D to quit." in out


def test_repl_prints_values_and_errors(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, [
        "(add 1 2)",
        "",
        '(add "A" "B")',
        "(and true 1)",
        "null",
        "exit",
    ])

    repl.main([])
    out, err = capsys.readouterr()
    assert "3\n" in out
    assert '"AB"\n' in out
    assert "null\n" in out
    assert "EvaluationError: Failed to invoke function 'and'" in err


def test_repl_exits_on_eof(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["(not false)"])

    repl.main([])
    out = capsys.readouterr().out
    assert "true\n" in out
    assert "Exiting." in out


def test_repl_json_output(monkeypatch, capsys):
    repl = _load_repl_module()
    monkeypatch.setenv("MINILISP_OUTPUT_FORMAT", "json")
    _feed(monkeypatch, repl, ['(add "A" "B")', "exit"])

    repl.main([])
    out = capsys.readouterr().out
    assert out.splitlines()[-1] == json.dumps("AB")


def test_repl_yaml_output_has_no_document_end_marker(monkeypatch, capsys):
    repl = _load_repl_module()
    monkeypatch.setenv("MINILISP_OUTPUT_FORMAT", "yaml")
    _feed(monkeypatch, repl, ['(add "A" "B")', "exit"])

    repl.main([])
    out = capsys.readouterr().out
    assert out.splitlines()[-1] == "AB"
    assert "..." not in out


def test_repl_unsupported_output_format_keeps_session_alive(monkeypatch, capsys):
    repl = _load_repl_module()
    monkeypatch.setenv("MINILISP_OUTPUT_FORMAT", "xml")
    _feed(monkeypatch, repl, ["(add 1 2)", "(add 2 2)", "exit"])

    repl.main([])
    err = capsys.readouterr().err
    assert err.count("Error: Unsupported serialization format: 'xml'") == 2


def test_run_script_file_unsupported_output_format(tmp_path, monkeypatch, capsys):
    repl = _load_repl_module()
    monkeypatch.setenv("MINILISP_OUTPUT_FORMAT", "xml")
    script = tmp_path / "prog.lisp"
    script.write_text("(add 1 2)", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        repl.main([str(script)])
    assert excinfo.value.code == 1
    assert "Unsupported serialization format" in capsys.readouterr().err


def test_run_script_file(tmp_path, capsys):
    repl = _load_repl_module()
    script = tmp_path / "prog.lisp"
    script.write_text("(and\n  (lte 1 2)\n  (gt 5 (add 2 2)))", encoding="utf-8")

    repl.main([str(script)])
    assert capsys.readouterr().out == "true\n"


def test_run_script_file_error_exits_nonzero(tmp_path, capsys):
    repl = _load_repl_module()
    script = tmp_path / "bad.lisp"
    script.write_text("(add 1\n  (nope))", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        repl.main([str(script)])
    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "Error on line 2, col 4" in err
    assert "Unknown function 'nope'" in err


def test_run_missing_script_file(tmp_path, capsys):
    repl = _load_repl_module()
    with pytest.raises(SystemExit) as excinfo:
        repl.main([str(tmp_path / "missing.lisp")])
    assert excinfo.value.code == 1
    assert "file not found" in capsys.readouterr().err
