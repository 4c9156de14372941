"""Shared fixtures for thumbcache tests."""

from pathlib import Path

import pytest
from PIL import Image

from thumbcache.imaging.providers import MockImageBackend, PillowImageBackend
from thumbcache.settings import ThumbnailSettings


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    root = tmp_path / "www"
    root.mkdir()
    return root


@pytest.fixture
def make_image(tmp_path: Path):
    """Factory writing a real image file and returning its path."""

    def _make(
        name: str = "source.jpg",
        size=(1000, 800),
        color=(200, 30, 30),
        mode: str = "RGB",
    ) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color).save(path)
        return path

    return _make


@pytest.fixture
def mock_backend() -> MockImageBackend:
    return MockImageBackend()


@pytest.fixture
def pillow_backend() -> PillowImageBackend:
    return PillowImageBackend()


@pytest.fixture
def thumb_settings(web_root: Path) -> ThumbnailSettings:
    return ThumbnailSettings(
        driver="pillow",
        web_root=str(web_root),
        base_url="",
        base_path=None,
        cache_path="/assets/easyimage/",
        cache_time=3600,
        quality=90,
        retina_support=False,
        new_dir_mode=0o775,
        new_file_mode=0o660,
    )
