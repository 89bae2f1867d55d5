from __future__ import annotations

from io import BytesIO
from zipfile import BadZipFile, ZipFile

PDF_MAGIC = b"%PDF-"
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")


def is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
    except BadZipFile:
        return False
    return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)


def is_word_package(content: bytes) -> bool:
    return is_zip_payload(content) and zip_has_paths(content, ("word/",))


def is_probably_text_payload(content: bytes) -> bool:
    if not content:
        return False
    sample = content[:4096]
    if b"\x00" in sample:
        return False
    try:
        sample.decode("utf-8")
        return True
    except UnicodeDecodeError:
        pass
    printable = 0
    for byte in sample:
        if byte in (9, 10, 13) or 32 <= byte <= 126:
            printable += 1
    return (printable / len(sample)) >= 0.75


def signature_error(*, source_type: str, content: bytes) -> str | None:
    """Return a user-facing message when the bytes do not look like the declared type."""
    if source_type == "pdf":
        # Some generators prepend a few bytes before the header.
        if PDF_MAGIC not in content[:1024]:
            return "File signature does not match .pdf content."
        return None

    if source_type == "docx":
        if not is_word_package(content):
            return "File signature does not match .docx content."
        return None

    if source_type == "doc":
        if not (content.startswith(OLE_MAGIC) or is_word_package(content)):
            return "File signature does not match .doc content."
        return None

    if source_type == "txt":
        if not is_probably_text_payload(content):
            return "File signature does not match .txt text content."
        return None

    return None
