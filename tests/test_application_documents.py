from datetime import date
from pathlib import Path

import pytest
from conftest import FakeRecognizer

from spendscan.application.documents import DocumentScanRequest, detect_document_type, run_document_scan
from spendscan.receipt.format_dispatcher import FormatDispatcher
from spendscan.runtime.document_pipeline import DocumentPipeline
from spendscan.runtime.errors import TransactionValidationError
from spendscan.runtime.transaction_store import JsonTransactionStore

RECEIPT_TEXT = "WALMART SUPERCENTER\nTotal $48.60\n03/14/2024"


def _pipeline(recognizer: FakeRecognizer, pdf_text: str = "") -> DocumentPipeline:
    return DocumentPipeline(
        recognizer=recognizer,
        pdf_extractor=lambda data: pdf_text,
        preprocessor=lambda data: data,
        dispatcher=FormatDispatcher(today=lambda: date(2024, 6, 1)),
    )


@pytest.fixture
def receipt_image(tmp_path) -> Path:
    path = tmp_path / "receipt.jpg"
    path.write_bytes(b"jpeg-bytes")
    return path


@pytest.mark.parametrize(
    ("name", "content", "expected"),
    [
        ("statement.pdf", b"", "pdf"),
        ("receipt.JPG", b"", "image"),
        ("scan.png", b"", "image"),
        ("upload.bin", b"%PDF-1.7\n", "pdf"),
        ("notes.txt", b"hello", "txt"),
        ("noext", b"hello", "unknown"),
    ],
)
def test_detect_document_type(tmp_path, name: str, content: bytes, expected: str) -> None:
    path = tmp_path / name
    path.write_bytes(content)

    assert detect_document_type(path) == expected


def test_missing_file(tmp_path) -> None:
    result = run_document_scan(
        DocumentScanRequest(path=tmp_path / "missing.jpg", pipeline=_pipeline(FakeRecognizer(RECEIPT_TEXT)))
    )

    assert result.status == "file_not_found"
    assert "missing.jpg" in (result.error or "")


def test_unsupported_type(tmp_path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("Total $5.00")

    result = run_document_scan(DocumentScanRequest(path=path, pipeline=_pipeline(FakeRecognizer(RECEIPT_TEXT))))

    assert result.status == "unsupported_type"
    assert result.error == "Unsupported document type: 'txt'"


def test_ocr_failure(receipt_image: Path) -> None:
    recognizer = FakeRecognizer(error=RuntimeError("engine crashed"))

    result = run_document_scan(DocumentScanRequest(path=receipt_image, pipeline=_pipeline(recognizer)))

    assert result.status == "ocr_failed"
    assert result.error == "OCR processing failed: engine crashed"


def test_no_transactions(receipt_image: Path) -> None:
    result = run_document_scan(
        DocumentScanRequest(path=receipt_image, pipeline=_pipeline(FakeRecognizer("THANK YOU")))
    )

    assert result.status == "no_transactions"
    assert result.result is not None
    assert result.result.extracted_text == "THANK YOU"


def test_extracted_without_store(receipt_image: Path) -> None:
    result = run_document_scan(
        DocumentScanRequest(path=receipt_image, pipeline=_pipeline(FakeRecognizer(RECEIPT_TEXT)), user_id="alice")
    )

    assert result.status == "extracted"
    assert result.result is not None
    assert result.result.transaction_count == 1
    assert result.stored == []


def test_explicit_type_overrides_detection(tmp_path) -> None:
    path = tmp_path / "export.dat"
    path.write_bytes(b"binary")

    result = run_document_scan(
        DocumentScanRequest(
            path=path,
            pipeline=_pipeline(FakeRecognizer(), pdf_text="Coffee 4.50\nTaxi 12.00"),
            document_type="pdf",
        )
    )

    assert result.status == "extracted"
    assert result.result is not None
    assert result.result.confidence == 90.0
    assert result.result.transaction_count == 2


def test_saved_to_store(tmp_path, receipt_image: Path) -> None:
    store = JsonTransactionStore(tmp_path / "data")

    result = run_document_scan(
        DocumentScanRequest(
            path=receipt_image,
            pipeline=_pipeline(FakeRecognizer(RECEIPT_TEXT)),
            store=store,
            user_id="alice",
        )
    )

    assert result.status == "saved"
    assert len(result.stored) == 1
    assert result.stored[0].path.exists()
    assert result.validation_errors == []
    assert [s.transaction.description for s in store.list("alice")] == ["Walmart Supercenter - purchase"]


class RejectingStore:
    def save(self, transaction, user_id):
        raise TransactionValidationError(["Amount is too large"])


def test_validation_errors_are_collected_per_transaction(tmp_path) -> None:
    path = tmp_path / "list.pdf"
    path.write_bytes(b"%PDF-1.4")

    result = run_document_scan(
        DocumentScanRequest(
            path=path,
            pipeline=_pipeline(FakeRecognizer(), pdf_text="Coffee 4.50\nTaxi 12.00"),
            store=RejectingStore(),
            user_id="alice",
        )
    )

    assert result.status == "saved"
    assert result.stored == []
    assert result.validation_errors == [
        "Transaction 0: Amount is too large",
        "Transaction 1: Amount is too large",
    ]
