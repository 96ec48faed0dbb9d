import os
import sys
import logging
import argparse
from dataclasses import dataclass
from typing import List, Optional

from packer import pack, sort_rectangles
from sprites import compose_sheet, load_sprites, packing_efficiency, save_sheet, write_metadata


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNPLACEABLE = 1
EXIT_USAGE = 2


@dataclass(frozen=True)
class AtlasConfig:
    """Settings for one atlas build."""
    input_dir: str = "."
    padding: int = 0
    width: int = 512
    height: int = 512
    output: str = "output.png"
    config: str = "output.json"
    template: Optional[str] = None
    verbose: bool = False

    def __post_init__(self):
        if self.padding < 0:
            raise ValueError(f"padding must be >= 0: {self.padding}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"canvas size must be positive: {self.width}×{self.height}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='tpack', description='Pack a directory of images into one fixed-size sprite atlas')
    parser.add_argument('-d', '--dir', default='.', help='Directory to look for images')
    parser.add_argument('-p', '--padding', type=int, default=0, help='Padding in pixels')
    parser.add_argument('-s', '--size', type=int, default=512, help='Output texture size (square)')
    parser.add_argument('--width', type=int, help='Output texture width, overrides --size')
    parser.add_argument('--height', type=int, help='Output texture height, overrides --size')
    parser.add_argument('-o', '--output', default='output.png', help='Output image')
    parser.add_argument('-c', '--config', default='output.json', help='Output atlas description')
    parser.add_argument('-t', '--template', help='Template rendered once per sprite instead of JSON')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose')
    return parser


def parse_args(argv: Optional[List[str]] = None) -> AtlasConfig:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.template is not None and not os.path.isfile(args.template):
        parser.error(f"template not found: {args.template}")
    try:
        return AtlasConfig(
            input_dir=args.dir,
            padding=args.padding,
            width=args.width if args.width is not None else args.size,
            height=args.height if args.height is not None else args.size,
            output=args.output,
            config=args.config,
            template=args.template,
            verbose=args.verbose,
        )
    except ValueError as e:
        parser.error(str(e))


def main(argv: Optional[List[str]] = None) -> int:
    config = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if config.verbose else logging.INFO, format="%(message)s")

    if not os.path.isdir(config.input_dir):
        logger.error(f"Not a directory: {config.input_dir}")
        return EXIT_USAGE

    print(f"Scanning directory: {config.input_dir}")
    sprites = load_sprites(config.input_dir, config.padding)
    if not sprites:
        logger.error(f"No sprite files found in {config.input_dir}")
        return EXIT_USAGE

    print(f"Packing {len(sprites)} sprites into {config.width}×{config.height}")
    result = pack(sort_rectangles(sprites), config.width, config.height)

    sheet_img = compose_sheet(result)
    save_sheet(sheet_img, config.output)
    write_metadata(config.config, result, os.path.basename(config.output), config.template)
    print(f"Saved {config.output} and {config.config} with {len(result.placed)} sprites")
    print(f"Packing efficiency: {packing_efficiency(result):.2f}%")

    if not result.complete:
        logger.error(f"{result.error}; {len(result.skipped)} later sprites were not attempted")
        return EXIT_UNPLACEABLE

    print("Done!")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
