"""Checks applied to an uploaded spreadsheet before it is parsed."""

from dataclasses import dataclass

MAX_FILE_SIZE = 10 * 1024 * 1024
ALLOWED_EXTENSIONS = (".csv",)
ALLOWED_CONTENT_TYPES = frozenset({"text/csv", "application/csv", "text/plain", ""})


@dataclass(frozen=True)
class FileCheck:
    valid: bool
    reason: str | None = None
    error: str | None = None


ACCEPTED = FileCheck(valid=True)


def validate_csv_file(
    filename: str,
    content_type: str | None,
    size: int,
    max_size: int = MAX_FILE_SIZE,
) -> FileCheck:
    """
    Validate upload metadata.

    Args:
        filename: Client-supplied file name
        content_type: Declared MIME type, parameters allowed ("text/csv; charset=utf-8")
        size: Size in bytes
        max_size: Upper bound in bytes

    Returns:
        FileCheck with a machine ``reason`` and a human ``error`` when rejected
    """
    if size > max_size:
        return FileCheck(
            valid=False,
            reason="file_too_large",
            error=(
                f"File too large. Maximum: {max_size / 1024 / 1024:.0f}MB, "
                f"received: {size / 1024 / 1024:.2f}MB"
            ),
        )

    if not (filename or "").lower().endswith(ALLOWED_EXTENSIONS):
        return FileCheck(valid=False, reason="invalid_extension", error="Invalid file type. Use a .csv file")

    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime not in ALLOWED_CONTENT_TYPES:
        return FileCheck(
            valid=False,
            reason="invalid_content_type",
            error=f"Invalid MIME type: {mime}. Use a valid CSV file",
        )

    return ACCEPTED


def decode_csv_content(content: bytes) -> str | None:
    """Decode UTF-8 content (BOM optional); None when undecodable or empty."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return None
    return text if text.strip() else None
