"""Tests for the HTTP endpoint."""

import pytest

from app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def test_compile_ok(client):
    resp = client.post("/compile", json={"code": "program { int x; x = 4; print(x * 2); }", "run": True})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["errors"] == []
    assert data["symbols"] == [{"scope": 0, "name": "x", "type": "INT"}]
    assert data["output"] == ["8"]
    assert data["tokens"][0] == {"type": "PROGRAM", "lexeme": "program", "value": None, "line": 1, "column": 1}
    assert data["tac"][-1].split() == ["print", "t3"]


def test_compile_reports_diagnostics(client):
    resp = client.post("/compile", json={"code": "program { int x x; }"})
    data = resp.get_json()
    assert resp.status_code == 200
    assert data["diagnostics"][0]["kind"] == "syntax"
    assert len(data["errors"]) == 1
    assert data["output"] == []


def test_compile_requires_code(client):
    resp = client.post("/compile", json={"source": "program { }"})
    assert resp.status_code == 400


def test_unexpected_failure_is_500(client, monkeypatch):
    import compiler

    def explode(code, run=False):
        raise ValueError("kaboom")

    monkeypatch.setattr(compiler, "compile_source", explode)
    resp = client.post("/compile", json={"code": "program { }"})
    assert resp.status_code == 500
    assert resp.get_json()["errors"] == ["Unexpected error: kaboom"]


def test_compile_rejects_non_object_body(client):
    resp = client.post("/compile", json=[1, 2])
    assert resp.status_code == 400
    assert resp.get_json()["errors"] == ["request body must be a JSON object"]
