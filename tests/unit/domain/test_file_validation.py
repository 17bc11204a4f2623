"""Test upload metadata checks and content decoding."""

import pytest

from finops.domain.imports import decode_csv_content, validate_csv_file
from finops.domain.imports.file_validation import MAX_FILE_SIZE


class TestValidateCsvFile:
    """Test the size, extension and MIME checks."""

    def test_accepts_plain_csv(self):
        check = validate_csv_file("report.csv", "text/csv", 1024)

        assert check.valid is True
        assert check.reason is None
        assert check.error is None

    @pytest.mark.parametrize(
        "content_type",
        ["text/csv", "application/csv", "text/plain", "", None, "text/csv; charset=utf-8", "TEXT/CSV"],
    )
    def test_accepted_content_types(self, content_type):
        assert validate_csv_file("report.csv", content_type, 10).valid

    def test_extension_is_case_insensitive(self):
        assert validate_csv_file("REPORT.CSV", "text/csv", 10).valid

    def test_rejects_oversized_file_first(self):
        """Size is checked before anything else."""
        check = validate_csv_file("report.xlsx", "application/pdf", MAX_FILE_SIZE + 1)

        assert check.valid is False
        assert check.reason == "file_too_large"
        assert check.error.startswith("File too large. Maximum: 10MB")

    def test_exact_limit_is_accepted(self):
        assert validate_csv_file("report.csv", "text/csv", MAX_FILE_SIZE).valid

    def test_rejects_wrong_extension(self):
        check = validate_csv_file("report.xlsx", "text/csv", 10)

        assert check.valid is False
        assert check.reason == "invalid_extension"

    def test_rejects_missing_filename(self):
        assert validate_csv_file("", "text/csv", 10).reason == "invalid_extension"

    def test_rejects_wrong_content_type(self):
        check = validate_csv_file("report.csv", "application/pdf", 10)

        assert check.valid is False
        assert check.reason == "invalid_content_type"
        assert "application/pdf" in check.error

    def test_custom_max_size(self):
        assert validate_csv_file("a.csv", "text/csv", 101, max_size=100).reason == "file_too_large"


class TestDecodeCsvContent:
    def test_decodes_utf8(self):
        assert decode_csv_content("Campanha;Ação".encode("utf-8")) == "Campanha;Ação"

    def test_strips_bom(self):
        assert decode_csv_content(b"\xef\xbb\xbfa;b") == "a;b"

    def test_invalid_utf8_is_none(self):
        assert decode_csv_content(b"\xff\xfe\x00a") is None

    @pytest.mark.parametrize("content", [b"", b"   \n\n"])
    def test_blank_content_is_none(self, content):
        assert decode_csv_content(content) is None
