# tests/test_finn_jobs_output_and_logging.py
import json
import os

from modules.finn_jobs.lib import logging_bridge
from modules.finn_jobs.lib.models import JobRecord, ListingStub
from modules.finn_jobs.lib.sink import JsonlSink, MemorySink
from service import logging_utils as L


def read_jsonl(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


# ----------------------------------------------------------------------
# Records
# ----------------------------------------------------------------------
def test_record_dict_has_fixed_shape():
    rec = JobRecord(url="https://www.finn.no/job/ad/1", title="T", category="IT", sector="Privat")
    d = rec.to_dict()
    assert list(d) == [
        "url",
        "title",
        "company",
        "location",
        "date_posted",
        "category",
        "sector",
        "industry",
        "job_function",
        "employment_type",
        "description_html",
        "description_text",
        "source",
    ]
    assert d["source"] == "finn.no"
    assert d["company"] is None


def test_record_dict_can_omit_category_fields():
    rec = JobRecord(url="https://www.finn.no/job/ad/1", category="IT", sector="Privat")
    d = rec.to_dict(include_category=False)
    assert "category" not in d
    assert "sector" not in d
    assert d["url"] == "https://www.finn.no/job/ad/1"


def test_record_from_stub():
    stub = ListingStub(url="https://www.finn.no/job/ad/3", title="Kokk", company="Mat AS")
    rec = JobRecord.from_stub(stub, category="Restaurant")
    assert (rec.title, rec.company, rec.category) == ("Kokk", "Mat AS", "Restaurant")
    assert rec.description_text is None


# ----------------------------------------------------------------------
# Sinks
# ----------------------------------------------------------------------
def test_jsonl_sink_appends_one_line_per_record(tmp_path):
    path = tmp_path / "nested" / "out.jsonl"
    sink = JsonlSink(str(path))
    sink.push(JobRecord(url="https://www.finn.no/job/ad/1", title="Første"))
    sink.push(JobRecord(url="https://www.finn.no/job/ad/2"))

    rows = read_jsonl(path)
    assert sink.count == 2
    assert [r["url"] for r in rows] == ["https://www.finn.no/job/ad/1", "https://www.finn.no/job/ad/2"]
    assert "Første" in path.read_text(encoding="utf-8")  # not ASCII-escaped


def test_memory_sink_collects_records():
    sink = MemorySink()
    sink.push(JobRecord(url="https://www.finn.no/job/ad/9"))
    assert sink.urls == ["https://www.finn.no/job/ad/9"]


# ----------------------------------------------------------------------
# Structured logs
# ----------------------------------------------------------------------
def test_activity_log_is_written_with_metadata():
    logging_bridge.activity({"component": "test", "op": "ping"})

    rows = read_jsonl(L.get_activity_log_path())
    assert rows[-1]["op"] == "ping"
    assert {"ts", "host", "pid"} <= set(rows[-1]["_meta"])


def test_bridge_redacts_cookies_and_proxy_credentials():
    logging_bridge.activity({
        "op": "start",
        "settings": {"cookie_header": "sid=secret", "proxy_url": "http://user:pw@proxy:8080", "keyword": "dev"},
    })

    row = read_jsonl(L.get_activity_log_path())[-1]
    assert row["settings"]["cookie_header"] == "***REDACTED***"
    assert row["settings"]["proxy_url"] == "http://***@proxy:8080"
    assert row["settings"]["keyword"] == "dev"
    assert "secret" not in json.dumps(row)


def test_error_log_goes_to_error_file():
    logging_bridge.error({"component": "test", "op": "fetch", "url": "https://www.finn.no/x"})

    log_dir = os.environ["LOG_DIR"]
    error_files = [f for f in os.listdir(log_dir) if f.startswith("error-test-")]
    assert len(error_files) == 1
    row = read_jsonl(os.path.join(log_dir, error_files[0]))[-1]
    assert row["op"] == "fetch"


def test_log_disable_kill_switch(monkeypatch):
    monkeypatch.setenv("LOG_DISABLE", "1")
    L.write_activity_log({"op": "silent"})
    assert not os.path.exists(L.get_activity_log_path())


def test_redact_is_deep_and_non_mutating():
    record = {"headers": {"Authorization": "Bearer x"}, "items": [{"token": "t"}], "ok": 1}
    out = L.redact(record)
    assert out["headers"]["Authorization"] == "***REDACTED***"
    assert out["items"][0]["token"] == "***REDACTED***"
    assert record["headers"]["Authorization"] == "Bearer x"


def test_size_rotation(monkeypatch):
    monkeypatch.setenv("ACTIVITY_LOG_MAX_BYTES", "10")
    L.write_activity_log({"op": "first", "pad": "x" * 20})
    L.write_activity_log({"op": "second"})

    path = L.get_activity_log_path()
    rotated = [f for f in os.listdir(os.path.dirname(path)) if f.startswith(os.path.basename(path) + ".")]
    assert len(rotated) == 1
    assert [r["op"] for r in read_jsonl(path)] == ["second"]
