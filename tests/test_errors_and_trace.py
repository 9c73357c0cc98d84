from __future__ import annotations

import json

from reprofile.core.errors import (
    CyclicInheritanceError,
    MissingModulesError,
    PartialFailureError,
    ReprofileError,
    Severity,
    UnknownProfileError,
)
from reprofile.core.ops_log import OpsLogger
from reprofile.core.trace import new_trace_id, resolve_trace_id


def test_errors_carry_code_message_and_context():
    e = MissingModulesError(["menu", "block"], profile_id="minimal")
    assert isinstance(e, ReprofileError)
    assert e.code == "missing_modules"
    assert str(e) == "The following required modules are missing from the codebase: menu, block."
    d = e.to_dict()
    assert d["severity"] == Severity.ERROR.value
    assert d["context"] == {"missing": ["menu", "block"], "profile_id": "minimal"}
    json.dumps(d)


def test_specific_error_fields():
    assert UnknownProfileError("x").profile_id == "x"
    assert CyclicInheritanceError(["a", "b", "a"]).chain == ["a", "b", "a"]
    assert "a -> b -> a" in str(CyclicInheritanceError(["a", "b", "a"]))
    pf = PartialFailureError(["block"], enabled=["menu"])
    assert pf.problem_dependencies == ["block"]
    assert pf.context["enabled"] == ["menu"]


def test_trace_ids():
    assert new_trace_id() != new_trace_id()
    assert resolve_trace_id("t1") == "t1"
    assert len(resolve_trace_id(None)) == 32


def test_ops_log_appends_jsonl(tmp_path):
    ops = OpsLogger(path=str(tmp_path / "nested" / "ops.jsonl"))
    ops.log(trace_id="t1", event="profile_enable.validate", outcome="ok", details={"profile_id": "minimal"})
    ops.log(trace_id="t1", event="profile_enable.execute", outcome="enabled")
    lines = (tmp_path / "nested" / "ops.jsonl").read_text(encoding="utf-8").splitlines()
    recs = [json.loads(line) for line in lines]
    assert [r["outcome"] for r in recs] == ["ok", "enabled"]
    assert recs[0]["details"] == {"profile_id": "minimal"}
    assert recs[1]["details"] == {}
    assert set(recs[0]) == {"ts", "trace_id", "event", "outcome", "details"}
