import pytest
import sys
from pathlib import Path
from PIL import Image

# Add the project root to sys.path so the flat modules import without installing
ROOT_PATH = Path(__file__).resolve().parent.parent
if ROOT_PATH.as_posix() not in sys.path:
    sys.path.insert(0, ROOT_PATH.as_posix())


@pytest.fixture
def sprite_dir(tmp_path: Path):
    """Directory with three solid-colour sprites of different sizes."""
    directory = tmp_path / "sprites"
    directory.mkdir()
    Image.new("RGBA", (40, 30), color=(255, 0, 0, 255)).save(directory / "big-red.png")
    Image.new("RGBA", (20, 20), color=(0, 255, 0, 255)).save(directory / "green.png")
    Image.new("RGB", (10, 5), color=(0, 0, 255)).save(directory / "small.blue.bmp")
    return directory
