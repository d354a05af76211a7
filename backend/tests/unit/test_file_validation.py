"""Unit tests for the document upload policy"""

import pytest

from filingdesk.domain.documents import (
    MAX_FILE_SIZE,
    is_supported_mime_type,
    sanitize_filename,
    validate_extension,
    validate_file_size,
    validate_filename,
    validate_upload,
)
from filingdesk.errors import BadRequestError

DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class TestMimeTypes:

    @pytest.mark.parametrize("mime", ["application/pdf", "image/jpeg", "image/png", DOCX])
    def test_supported(self, mime):
        assert is_supported_mime_type(mime) is True

    @pytest.mark.parametrize("mime", ["application/zip", "text/csv", "image/gif", ""])
    def test_unsupported(self, mime):
        assert is_supported_mime_type(mime) is False


class TestFileSize:

    def test_limit_is_10_mb(self):
        assert MAX_FILE_SIZE == 10 * 1024 * 1024

    def test_at_limit_ok(self):
        assert validate_file_size(MAX_FILE_SIZE) == (True, None)

    def test_over_limit(self):
        ok, error = validate_file_size(MAX_FILE_SIZE + 1)
        assert ok is False
        assert "maximum size" in error

    def test_empty_file(self):
        assert validate_file_size(0) == (False, "File is empty (0 bytes)")


class TestFilename:

    def test_plain_name(self):
        assert validate_filename("salary.pdf") == (True, None)

    @pytest.mark.parametrize("name", ["", "   ", "../etc/passwd", "a/b.pdf", "a\\b.pdf", "bad\x00.pdf"])
    def test_rejected_names(self, name):
        ok, _ = validate_filename(name)
        assert ok is False

    def test_too_long(self):
        ok, error = validate_filename("a" * 252 + ".pdf")
        assert ok is False
        assert "255" in error

    def test_extension_must_match_mime(self):
        assert validate_extension("scan.JPG", "image/jpeg") == (True, None)
        ok, _ = validate_extension("scan.png", "application/pdf")
        assert ok is False

    def test_sanitize(self):
        assert sanitize_filename("salary (final).pdf") == "salary_final_.pdf"
        assert sanitize_filename("my  nid.pdf") == "my_nid.pdf"


class TestValidateUpload:

    def test_valid_upload(self):
        validate_upload("nid.pdf", "application/pdf", 2048)

    def test_wrong_type(self):
        with pytest.raises(BadRequestError, match="Unsupported file type"):
            validate_upload("archive.zip", "application/zip", 2048)

    def test_too_large(self):
        with pytest.raises(BadRequestError, match="maximum size"):
            validate_upload("big.pdf", "application/pdf", MAX_FILE_SIZE + 1)

    def test_extension_mismatch(self):
        with pytest.raises(BadRequestError, match="extension"):
            validate_upload("photo.png", "application/pdf", 10)
