import io
import json
import sys

import pytest
from conftest import FakeRecognizer

from spendscan.cli.main import main
from spendscan.runtime import ocr_backends

RECEIPT_TEXT = "WALMART\nTotal $10.00\n03/14/2024"


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)


def test_no_command_prints_help_and_fails(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 1
    assert "scan" in capsys.readouterr().out


def test_classify(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["classify", "Starbucks", "Coffee"]) == 0
    assert capsys.readouterr().out == "Food & Dining\n"


def test_categories_lists_fallback(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["categories"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert "Food & Dining" in lines
    assert lines[-1] == "Miscellaneous"


def test_category_rules_from_environment(tmp_path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    rules_path = tmp_path / "rules.toml"
    rules_path.write_text('[[categories]]\nname = "Pets"\nkeywords = ["petco"]\n')
    monkeypatch.setenv("SPENDSCAN_CATEGORY_RULES", str(rules_path))

    assert main(["classify", "PETCO 1234"]) == 0
    assert capsys.readouterr().out == "Pets\n"


def test_missing_category_rules_fail(tmp_path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setenv("SPENDSCAN_CATEGORY_RULES", str(tmp_path / "nope.toml"))

    assert main(["categories"]) == 1
    assert "Category rules not found" in capsys.readouterr().err


def test_parse_text_file(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    text_path = tmp_path / "statement.txt"
    text_path.write_text("Coffee 4.50\nTaxi 12.00\n")

    assert main(["parse", str(text_path)]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["transactionCount"] == 2
    assert [t["category"] for t in payload["transactions"]] == ["Food & Dining", "Transportation"]


def test_parse_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO(RECEIPT_TEXT))

    assert main(["parse", "-"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["transactions"][0]["amount"] == "10.00"


def test_parse_missing_file(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["parse", str(tmp_path / "missing.txt")]) == 1
    assert "Cannot read" in capsys.readouterr().err


def test_scan_missing_document(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["scan", str(tmp_path / "missing.jpg")]) == 1
    assert "Document not found" in capsys.readouterr().err


def test_scan_save_requires_user(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    image = tmp_path / "receipt.jpg"
    image.write_bytes(b"jpeg-bytes")

    assert main(["scan", str(image), "--save"]) == 1
    assert "--save requires --user" in capsys.readouterr().err


def test_scan_extracts_and_saves(tmp_path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    image = tmp_path / "receipt.jpg"
    image.write_bytes(b"jpeg-bytes")
    recognizer = FakeRecognizer(RECEIPT_TEXT)
    monkeypatch.setattr(ocr_backends, "build_recognizer", lambda settings: recognizer)
    monkeypatch.setenv("SPENDSCAN_DATA_DIR", str(tmp_path / "data"))

    assert main(["scan", str(image), "--user", "alice", "--save"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["transactionCount"] == 1
    assert payload["transactions"][0]["amount"] == "10.00"
    assert payload["saved"][0]["userId"] == "alice"
    assert payload["errors"] == []
    assert len(list((tmp_path / "data" / "alice").glob("*.json"))) == 1


def test_scan_reports_ocr_failure(tmp_path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    image = tmp_path / "receipt.jpg"
    image.write_bytes(b"jpeg-bytes")
    recognizer = FakeRecognizer(error=RuntimeError("engine crashed"))
    monkeypatch.setattr(ocr_backends, "build_recognizer", lambda settings: recognizer)

    assert main(["scan", str(image), "--ocr-url", "http://ocr:9999"]) == 1

    err = capsys.readouterr().err
    assert "OCR processing failed: engine crashed" in err
    assert "http://ocr:9999" in err


def test_parse_tolerates_invalid_utf8(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    text_path = tmp_path / "ocr-dump.txt"
    text_path.write_bytes(b"Coffee 4.50\n\xffTaxi 12.00\n")

    assert main(["parse", str(text_path)]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["transactionCount"] == 2
    assert payload["transactions"][0]["description"] == "Coffee"
