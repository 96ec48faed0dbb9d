import os
import json
import logging
from jinja2 import Environment, StrictUndefined
from PIL import Image
from typing import List, Dict, Optional

from packer import PackResult, Rectangle, build_rectangle


logger = logging.getLogger(__name__)

SPRITE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.gif')

env = Environment(undefined=StrictUndefined, keep_trailing_newline=True)


def find_sprite_files(directory: str) -> List[str]:
    """List image files directly inside directory, sorted by name."""
    sprite_files = []
    # Use os.listdir instead of walk to avoid recursion
    for file in sorted(os.listdir(directory)):
        full_path = os.path.join(directory, file)
        if os.path.isfile(full_path) and file.lower().endswith(SPRITE_EXTENSIONS):
            sprite_files.append(full_path)
    return sprite_files


def load_sprite(path: str, padding: int = 0) -> Rectangle:
    """Decode one image and wrap it in an unplaced rectangle."""
    with Image.open(path) as img:
        img = img.convert('RGBA')
    name = os.path.basename(path)
    rect = build_rectangle(img.width, img.height, padding, name, img)
    logger.debug(f"Image {name}: {img.width}×{img.height}")
    return rect


def load_sprites(directory: str, padding: int = 0) -> List[Rectangle]:
    """Load every sprite in directory. Files that fail to decode are skipped."""
    sprites = []
    for path in find_sprite_files(directory):
        try:
            sprites.append(load_sprite(path, padding))
        except OSError as e:
            logger.warning(f"Error loading {path}: {e}")
    logger.info(f"Loaded {len(sprites)} sprites from {directory}")
    return sprites


def compose_sheet(result: PackResult) -> Image.Image:
    """Paste every placed sprite onto a transparent canvas of the packed size."""
    sheet_img = Image.new('RGBA', (result.canvas_width, result.canvas_height), (0, 0, 0, 0))
    for rect in result.placed:
        sheet_img.paste(rect.source, (rect.x, rect.y))
    return sheet_img


def save_sheet(sheet_img: Image.Image, path: str):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    sheet_img.save(path)


def packing_efficiency(result: PackResult) -> float:
    """Percentage of the canvas covered by placed sprite pixels (padding excluded)."""
    total_pixels = result.canvas_width * result.canvas_height
    sprite_pixels = sum(rect.width * rect.height for rect in result.placed)
    return (sprite_pixels / total_pixels) * 100 if total_pixels > 0 else 0


def atlas_data(result: PackResult, image_name: str) -> Dict:
    """Describe the placed sprites in hash-style sprite sheet JSON."""
    frames = {}
    for rect in result.placed:
        frames[rect.name] = {
            "id": rect.name_id,
            "frame": {"x": rect.x, "y": rect.y, "w": rect.width, "h": rect.height},
            "rotated": False,
            "trimmed": False,
            "spriteSourceSize": {"x": 0, "y": 0, "w": rect.width, "h": rect.height},
            "sourceSize": {"w": rect.width, "h": rect.height}
        }
    padding = result.placed[0].padding if result.placed else 0
    return {
        "frames": frames,
        "meta": {
            "image": image_name,
            "format": "RGBA8888",
            "size": {"w": result.canvas_width, "h": result.canvas_height},
            "scale": "1",
            "padding": padding
        }
    }


def render_template(template_text: str, result: PackResult, image_name: str) -> str:
    """
    Render template_text once over the whole atlas.

    Context: canvas (width, height), image (sheet file name), padding, and
    rects, the placed sprites in placement order (name, name_id, x, y, width,
    height, right, bottom). Undefined names raise jinja2.UndefinedError.
    """
    template = env.from_string(template_text)
    canvas = Rectangle(result.canvas_width, result.canvas_height, name=image_name)
    return template.render(
        canvas=canvas,
        image=image_name,
        padding=result.placed[0].padding if result.placed else 0,
        rects=result.placed,
    )


def write_metadata(path: str, result: PackResult, image_name: str, template_path: Optional[str] = None):
    """Write JSON atlas data, or the rendered template when one is given."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    if template_path is None:
        with open(path, 'w') as f:
            json.dump(atlas_data(result, image_name), f, indent=2)
        return

    with open(template_path) as f:
        template_text = f.read()
    with open(path, 'w') as f:
        f.write(render_template(template_text, result, image_name))
