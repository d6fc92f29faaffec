"""
pytest configuration for relay tests.

Adds src directory to Python path for imports.
"""

import sys
from pathlib import Path

import pytest

src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from sniffrelay.logging.context import clear_log_context  # noqa: E402

# Smallest byte sequences the signature database recognizes
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PDF_SIGNATURE = b"%PDF-1.7\n"


@pytest.fixture(autouse=True)
def clean_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def png_body():
    """PNG signature followed by arbitrary bytes."""
    return PNG_SIGNATURE + b"\x00\x00\x00\rIHDR" + bytes(range(256)) * 4


@pytest.fixture
def pdf_body():
    return PDF_SIGNATURE + b"1 0 obj << /Type /Catalog >> endobj\n" * 20
