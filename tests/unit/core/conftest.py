"""Shared fixtures for core unit tests"""

from pathlib import Path

import pytest
from PIL import Image as PILImage

from mdmedia.core.localize import AssetLocalizer
from mdmedia.ledger.store import MemoryLedgerStore


def write_png(path: Path, size: tuple[int, int] = (100, 80), color: str = "red") -> Path:
    """Write a real PNG of the given pixel size."""
    path.parent.mkdir(parents=True, exist_ok=True)
    PILImage.new("RGB", size, color).save(path, format="PNG")
    return path


@pytest.fixture(name="png")
def png_fixture():
    return write_png


@pytest.fixture(name="store")
def store_fixture():
    return MemoryLedgerStore()


@pytest.fixture(name="public_dir")
def public_dir_fixture(tmp_path):
    return tmp_path / "public"


@pytest.fixture(name="localizer")
def localizer_fixture(store, public_dir):
    return AssetLocalizer(store, public_dir=public_dir)


@pytest.fixture(name="post_dir")
def post_dir_fixture(tmp_path):
    """Content directory laid out like a site: <tmp>/src/content/blog."""
    d = tmp_path / "src" / "content" / "blog"
    d.mkdir(parents=True)
    return d
