"""
Tests for running external solvers as subprocesses.
"""
from solcheck.formal.verification import (
    first_response,
    make_query_callback,
    resolve_solver,
)


def test_resolve_known_solver():
    spec = resolve_solver("eldarica")
    assert spec.name == "eldarica"
    assert spec.argv == ("eld", "-hsmt")


def test_resolve_path():
    spec = resolve_solver("/opt/bin/golem")
    assert spec.name == "golem"
    assert spec.argv == ("/opt/bin/golem",)


def test_first_response_skips_comments():
    assert first_response("; banner\n\nsat\nunsat\n") == "sat"
    assert first_response("") == ""


def test_callback_for_missing_solver_returns_none(tmp_path):
    callback = make_query_callback(str(tmp_path / "no-such-solver"))
    assert callback("(check-sat)\n") is None
