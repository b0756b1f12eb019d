"""
Pytest fixtures for thumbnailer tests.
"""

import pytest
from PIL import Image


@pytest.fixture
def image_factory(tmp_path):
    """Fixture providing a function that writes a solid-color image file."""
    def make(name='photo.png', size=(800, 500), color=(200, 30, 30), mode='RGB', format=None):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color=color).save(path, format=format)
        return path
    return make


@pytest.fixture
def rgb_image_path(image_factory):
    """Fixture providing an 800x500 RGB PNG."""
    return image_factory('photo.png', (800, 500))


@pytest.fixture
def sample_image():
    """Fixture providing an in-memory 800x500 RGB image."""
    return Image.new('RGB', (800, 500), color=(10, 20, 30))


@pytest.fixture
def noise_image():
    """Fixture providing a 200x200 image with a lot of detail."""
    return Image.effect_noise((200, 200), 64).convert('RGB')


@pytest.fixture
def truncated_png_path(tmp_path, noise_image):
    """Fixture providing a PNG whose header is valid but whose data is cut off."""
    full = tmp_path / 'full.png'
    noise_image.save(full)
    path = tmp_path / 'truncated.png'
    path.write_bytes(full.read_bytes()[:100])
    return path


@pytest.fixture
def not_an_image_path(tmp_path):
    """Fixture providing a text file with an image extension."""
    path = tmp_path / 'fake.png'
    path.write_text('not an image')
    return path


@pytest.fixture
def output_dir(tmp_path):
    """Fixture providing an existing, empty output directory."""
    path = tmp_path / 'out'
    path.mkdir()
    return path


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')
