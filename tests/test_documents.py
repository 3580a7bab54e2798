from __future__ import annotations

from pathlib import Path

import pytest
from pypdf import PdfWriter

from draft_import.documents import decode_text_bytes, load_document
from draft_import.errors import UnsupportedDocumentError
from draft_import.segmenter import build_chunks


def test_text_exports_decode_utf8_then_fall_back_to_latin1(tmp_path: Path) -> None:
    utf8 = tmp_path / "statement.csv"
    utf8.write_bytes("date,amount\n2024-01-05,₹1,234.50\n".encode())
    latin = tmp_path / "export.TXT"
    latin.write_bytes("Caf\xe9 4.50".encode("latin-1"))

    assert load_document(utf8).text == "date,amount\n2024-01-05,₹1,234.50\n"
    doc = load_document(latin)
    assert doc.text == "Café 4.50"
    assert doc.source == "export.TXT"


def test_decode_text_bytes_never_fails() -> None:
    assert decode_text_bytes(b"\xff\xfe\x00") == "\xff\xfe\x00"


@pytest.mark.parametrize(
    "name,mime",
    [("receipt.jpg", "image/jpeg"), ("scan.PNG", "image/png"), ("shot.heic", "image/heic")],
)
def test_images_are_loaded_as_bytes(tmp_path: Path, name: str, mime: str) -> None:
    path = tmp_path / name
    path.write_bytes(b"\x00\x01image")

    doc = load_document(path)

    assert doc.is_image
    assert doc.image == b"\x00\x01image"
    assert doc.mime_type == mime


def test_pdf_without_text_yields_no_chunks(tmp_path: Path) -> None:
    path = tmp_path / "blank.pdf"
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    with path.open("wb") as f:
        writer.write(f)

    doc = load_document(path)

    assert doc.text == ""
    assert build_chunks([doc]) == []


def test_unsupported_suffix_raises(tmp_path: Path) -> None:
    path = tmp_path / "ledger.xlsx"
    path.write_bytes(b"PK")

    with pytest.raises(UnsupportedDocumentError):
        load_document(path)


def test_missing_file_raises_file_not_found(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_document(tmp_path / "nope.csv")
