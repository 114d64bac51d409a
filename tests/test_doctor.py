from grouprecon.workflows import doctor


def test_redact_value():
    assert doctor.redact_value("abcdefghijkl") == "abcd...ijkl"
    assert doctor.redact_value("short") == "*****"
    assert doctor.redact_value("") == ""


def test_doctor_report_healthy_defaults(monkeypatch):
    monkeypatch.delenv("GROUPRECON_PHRASES_PATH", raising=False)
    monkeypatch.setenv("OTX_API_KEY", "0123456789abcdef")
    report = doctor.build_doctor_report()
    assert report["ok"] is True
    checks = {c["name"]: c for c in report["checks"]}
    assert checks["OTX_API_KEY"]["value"] == "0123...cdef"
    assert "groups.google.com" in checks["probe"]["detail"]
    text = doctor.format_doctor_report(report)
    assert text.startswith("grouprecon doctor")
    assert "0123456789abcdef" not in text


def test_doctor_flags_bad_phrase_file(monkeypatch, tmp_path):
    path = tmp_path / "phrases.json"
    path.write_text('{"view": ["(unclosed"]}', encoding="utf-8")
    monkeypatch.setenv("GROUPRECON_PHRASES_PATH", str(path))
    report = doctor.build_doctor_report()
    assert report["ok"] is False
    names = [c["name"] for c in report["checks"] if c["status"] == "missing" and c["level"] == "warn"]
    assert "GROUPRECON_PHRASES_PATH" in names
