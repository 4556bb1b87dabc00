"""
Tests for the command-line interface.
"""

import json

import pytest

from contactlink.app import main
from contactlink.logger import reset_logger

FORM = {
    "id": "service-request",
    "fields": [
        {"id": "f1", "label": "Client Name", "type": "text"},
        {"id": "f2", "label": "Email", "type": "email"},
        {"id": "f3", "label": "Phone Number", "type": "phone"},
    ],
}


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Isolated working directory with a JSON data dir and no console logging noise."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CONTACTLINK_STORE_BACKEND", "json")
    monkeypatch.setenv("CONTACTLINK_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("CONTACTLINK_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("CONTACTLINK_RETRY_DELAY", "0")
    (tmp_path / "form.json").write_text(json.dumps(FORM), encoding="utf-8")
    yield tmp_path
    reset_logger()


def write_submission(workdir, name, values):
    path = workdir / name
    path.write_text(json.dumps({"data": values}), encoding="utf-8")
    return str(path)


def customer_id_from(output):
    for line in output.splitlines():
        if line.startswith("Customer: "):
            return line[len("Customer: "):]
    raise AssertionError(f"no customer line in {output!r}")


class TestCli:

    def test_classify(self, workdir, capsys):
        submission = write_submission(workdir, "s.json", {"f1": "Jane Doe", "f2": "jane@x.com", "f3": "555-123-4567"})

        main(["classify", "--form", "form.json", "--input", submission])

        contact = json.loads(capsys.readouterr().out)
        assert contact["name"] == "Jane Doe"
        assert contact["email"] == "jane@x.com"
        assert contact["phone"] == "555-123-4567"

    def test_validate_schema(self, workdir, capsys):
        main(["validate-schema", "--form", "form.json"])
        assert "Valid" in capsys.readouterr().out

        (workdir / "bad.json").write_text(json.dumps([{"label": "x"}]), encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["validate-schema", "--form", "bad.json"])
        assert exc_info.value.code == 2

    def test_ingest_list_merge(self, workdir, capsys):
        first = write_submission(workdir, "a.json", {"f1": "Jane Doe", "f2": "jane@x.com"})
        second = write_submission(workdir, "b.json", {"f1": "J. Doe", "f2": "jd@y.com"})

        main(["ingest", "--tenant", "T", "--form", "form.json", "--input", first])
        target = customer_id_from(capsys.readouterr().out)
        main(["ingest", "--tenant", "T", "--form", "form.json", "--input", second])
        source = customer_id_from(capsys.readouterr().out)

        main(["list", "--tenant", "T"])
        assert "Found 2 customers" in capsys.readouterr().out

        main(["merge", "--tenant", "T", "--source", source, "--target", target, "--json"])
        out = capsys.readouterr().out
        assert f"Merged {source} into {target}." in out
        assert "Updated 1 submissions and 0 invoices." in out

        main(["list", "--tenant", "T"])
        assert "Found 1 customers" in capsys.readouterr().out

    def test_ingest_without_identity(self, workdir, capsys):
        submission = write_submission(workdir, "s.json", {"f3": "555-123-4567"})

        main(["ingest", "--tenant", "T", "--form", "form.json", "--input", submission])

        assert "Customer: (no identity)" in capsys.readouterr().out

    def test_merge_unknown_customer_exits(self, workdir):
        with pytest.raises(SystemExit) as exc_info:
            main(["merge", "--tenant", "T", "--source", "a", "--target", "b"])
        assert "CUSTOMER_NOT_FOUND" in str(exc_info.value.code)

    def test_missing_input_file(self, workdir):
        with pytest.raises(SystemExit) as exc_info:
            main(["validate-schema", "--form", "nope.json"])
        assert "Input file not found" in str(exc_info.value.code)

    def test_ingest_strict_rejects_bad_form(self, workdir):
        (workdir / "dup.json").write_text(
            json.dumps([{"id": "f1", "label": "Client Name"}, {"id": "f1", "label": "Email"}]),
            encoding="utf-8",
        )
        submission = write_submission(workdir, "s.json", {"f1": "Jane Doe"})

        with pytest.raises(SystemExit) as exc_info:
            main(["ingest", "--tenant", "T", "--form", "dup.json", "--input", submission, "--strict"])

        assert "VALIDATION_ERROR" in str(exc_info.value.code)
        assert not (workdir / "data" / "submissions.json").exists()
