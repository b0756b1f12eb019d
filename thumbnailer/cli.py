"""
Command Line Interface for batch thumbnailing.
"""

import argparse
import logging
import os
from glob import glob
from typing import List, Optional, Sequence, Tuple

from .collection import ThumbnailCollectionBuilder
from .config import ThumbnailerConfig
from .errors import CollectionError, FileError
from .operations import (
    BlurOp, BrightenOp, CombineOp, ContrastOp, CropOp, FlipOp, HueRotateOp, InvertOp,
    Operation, ResizeOp, RotateOp, TextOp, UnsharpenOp,
)
from .options import BoxPosition, Crop, Orientation, ResampleFilter, Resize, Rotation
from .progress import CollectionProgress
from .target import Target, TargetFormat
from .thumbnail import Thumbnail

GLOB_CHARS = ('*', '?', '[')

ROTATIONS = {
    '90': Rotation.ROTATE_90,
    '180': Rotation.ROTATE_180,
    '270': Rotation.ROTATE_270,
}


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('thumbnailer')


def parse_size(value: str) -> Tuple[int, int]:
    """Parse 'WIDTHxHEIGHT'."""
    try:
        width, height = value.lower().split('x')
        return int(width), int(height)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {value!r}")


def parse_box(value: str) -> Tuple[int, int, int, int]:
    """Parse 'X,Y,WIDTH,HEIGHT'."""
    try:
        x, y, width, height = (int(part) for part in value.split(','))
        return x, y, width, height
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected X,Y,WIDTH,HEIGHT, got {value!r}")


def parse_ratio(value: str) -> Tuple[float, float]:
    """Parse 'W:H'."""
    try:
        width, height = value.split(':')
        return float(width), float(height)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected W:H, got {value!r}")


def parse_coordinate(value: str) -> int:
    """Parse a non-negative pixel coordinate."""
    try:
        coordinate = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a pixel coordinate, got {value!r}")
    if coordinate < 0:
        raise argparse.ArgumentTypeError(f"coordinate must not be negative, got {value!r}")
    return coordinate


def parse_unsharpen(value: str) -> Tuple[float, int]:
    """Parse 'SIGMA,THRESHOLD'."""
    try:
        sigma, threshold = value.split(',')
        return float(sigma), int(threshold)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected SIGMA,THRESHOLD, got {value!r}")


class OperationAction(argparse.Action):
    """Append (operation name, values) to ``namespace.operations`` in command line order."""

    def __call__(self, parser, namespace, values, option_string=None):
        operations = list(getattr(namespace, self.dest, None) or [])
        operations.append((self.const, values))
        setattr(namespace, self.dest, operations)


class PlacedOperationAction(OperationAction):
    """OperationAction for VALUE X Y flags; X and Y are parsed as pixel coordinates."""

    def __call__(self, parser, namespace, values, option_string=None):
        value, x, y = values
        try:
            position = (parse_coordinate(x), parse_coordinate(y))
        except argparse.ArgumentTypeError as e:
            raise argparse.ArgumentError(self, str(e))
        super().__call__(parser, namespace, (value,) + position, option_string)


def build_operations(
    requested: Sequence[Tuple[str, object]],
    resample: Optional[ResampleFilter] = None,
    font_path: Optional[str] = None
) -> List[Operation]:
    """
    Turn parsed (name, values) pairs into operations.

    Raises:
        FileError: if an overlay image cannot be loaded
    """
    operations: List[Operation] = []
    for name, values in requested:
        if name == 'resize':
            operations.append(ResizeOp(Resize.bounding_box(*values), resample))
        elif name == 'resize_exact':
            operations.append(ResizeOp(Resize.exact_box(*values), resample))
        elif name == 'resize_width':
            operations.append(ResizeOp(Resize.width_of(values), resample))
        elif name == 'resize_height':
            operations.append(ResizeOp(Resize.height_of(values), resample))
        elif name == 'crop':
            operations.append(CropOp(Crop.box(*values)))
        elif name == 'crop_ratio':
            operations.append(CropOp(Crop.ratio(*values)))
        elif name == 'blur':
            operations.append(BlurOp(values))
        elif name == 'brighten':
            operations.append(BrightenOp(values))
        elif name == 'huerotate':
            operations.append(HueRotateOp(values))
        elif name == 'contrast':
            operations.append(ContrastOp(values))
        elif name == 'unsharpen':
            operations.append(UnsharpenOp(*values))
        elif name == 'flip':
            operations.append(FlipOp(Orientation(values)))
        elif name == 'rotate':
            operations.append(RotateOp(ROTATIONS[values]))
        elif name == 'invert':
            operations.append(InvertOp())
        elif name == 'text':
            text, x, y = values
            operations.append(TextOp(text, BoxPosition.top_left(x, y), font_path))
        elif name == 'overlay':
            path, x, y = values
            overlay = Thumbnail.load(path).clone_static_copy()
            operations.append(CombineOp(overlay, BoxPosition.top_left(x, y)))
        else:
            raise ValueError(f"Unknown operation: {name}")
    return operations


def is_pattern(value: str) -> bool:
    return any(char in value for char in GLOB_CHARS)


def expand_inputs(inputs: Sequence[str]) -> List[str]:
    """Expand glob patterns to matching files; plain paths are kept as given."""
    paths = []
    for value in inputs:
        if is_pattern(value):
            paths.extend(sorted(m for m in glob(value, recursive=True) if os.path.isfile(m)))
        else:
            paths.append(value)
    return paths


def get_config(args: argparse.Namespace) -> ThumbnailerConfig:
    """Get configuration from environment and CLI overrides."""
    config = ThumbnailerConfig.from_env()

    if getattr(args, 'workers', None) is not None:
        config.workers = args.workers
    if getattr(args, 'quality', None) is not None:
        config.jpeg_quality = args.quality
    if getattr(args, 'font', None):
        config.font_path = args.font

    return config


def cmd_process(args: argparse.Namespace) -> int:
    """Execute process command."""
    logger = setup_logging(args.verbose)

    try:
        config = get_config(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return 1

    formats = [TargetFormat.from_name(name) for name in (args.format or ['jpg'])]
    target = Target(formats[0], args.output, quality=config.jpeg_quality, logger=logger)
    for target_format in formats[1:]:
        target.add_target(target_format, args.output)

    builder = ThumbnailCollectionBuilder(config, logger)
    try:
        for value in args.inputs:
            if is_pattern(value):
                builder.add_glob(value)
            else:
                builder.add_path(value)
        resample = ResampleFilter(args.filter) if args.filter else None
        operations = build_operations(args.operations or [], resample, config.font_path)
    except FileError as e:
        logger.error(f"Failed to load input: {e}")
        return 1

    if len(builder) == 0:
        logger.error("No images to process")
        return 1

    collection = builder.finalize()
    for operation in operations:
        collection.add_operation(operation)

    logger.info(f"Images: {len(collection)}")
    logger.info(f"Operations: {len(operations)}")
    logger.info(f"Output: {args.output} ({', '.join(f.name for f in formats)})")

    progress = None
    if not args.quiet:
        progress = CollectionProgress(show_files=args.show_files, logger=logger)

    exit_code = 0
    try:
        collection.apply_store(target, progress)
    except CollectionError as e:
        for index, error in e.operation_errors:
            logger.error(f"Operation failed for item {index}: {error}")
        for index, error in e.store_errors:
            logger.error(f"Store failed for item {index}: {error}")
        exit_code = 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    if progress:
        print()
        for line in progress.stats.summary_lines():
            print(line)

    return exit_code


def cmd_check(args: argparse.Namespace) -> int:
    """Execute check command."""
    setup_logging(args.verbose)

    failures = 0
    for path in expand_inputs(args.inputs):
        if not Thumbnail.can_load(path):
            print(f"  [NO] {path} -> not a loadable image")
            failures += 1
            continue
        try:
            thumb = Thumbnail.load(path)
            width, height = thumb.image.size
        except FileError as e:
            print(f"  [ERROR] {path} -> {e}")
            failures += 1
            continue
        print(f"  [OK] {path} -> {thumb.data.format} {width}x{height}")

    return 0 if failures == 0 else 1


def add_operation_arguments(parser: argparse.ArgumentParser) -> None:
    """Add ordered operation arguments to a parser."""
    group = parser.add_argument_group('Operations (applied in command line order)')
    group.add_argument('--resize', action=OperationAction, const='resize', dest='operations',
                       type=parse_size, metavar='WxH', help='Fit inside a bounding box')
    group.add_argument('--resize-exact', action=OperationAction, const='resize_exact',
                       dest='operations', type=parse_size, metavar='WxH',
                       help='Resize to exactly WxH, ignoring aspect ratio')
    group.add_argument('--resize-width', action=OperationAction, const='resize_width',
                       dest='operations', type=int, metavar='W', help='Resize to a width')
    group.add_argument('--resize-height', action=OperationAction, const='resize_height',
                       dest='operations', type=int, metavar='H', help='Resize to a height')
    group.add_argument('--crop', action=OperationAction, const='crop', dest='operations',
                       type=parse_box, metavar='X,Y,W,H', help='Crop to a box')
    group.add_argument('--crop-ratio', action=OperationAction, const='crop_ratio',
                       dest='operations', type=parse_ratio, metavar='W:H',
                       help='Crop to the largest centered region with this ratio')
    group.add_argument('--blur', action=OperationAction, const='blur', dest='operations',
                       type=float, metavar='SIGMA', help='Gaussian blur')
    group.add_argument('--brighten', action=OperationAction, const='brighten', dest='operations',
                       type=int, metavar='N', help='Add N to every color channel')
    group.add_argument('--huerotate', action=OperationAction, const='huerotate',
                       dest='operations', type=int, metavar='DEG', help='Rotate hue by DEG degrees')
    group.add_argument('--contrast', action=OperationAction, const='contrast', dest='operations',
                       type=float, metavar='PCT', help='Change contrast by PCT percent')
    group.add_argument('--unsharpen', action=OperationAction, const='unsharpen',
                       dest='operations', type=parse_unsharpen, metavar='SIGMA,THRESHOLD',
                       help='Unsharp mask')
    group.add_argument('--flip', action=OperationAction, const='flip', dest='operations',
                       choices=[o.value for o in Orientation], help='Flip the image')
    group.add_argument('--rotate', action=OperationAction, const='rotate', dest='operations',
                       choices=list(ROTATIONS), help='Rotate clockwise')
    group.add_argument('--invert', action=OperationAction, const='invert', dest='operations',
                       nargs=0, help='Invert colors')
    group.add_argument('--text', action=PlacedOperationAction, const='text',
                       dest='operations', nargs=3, metavar=('TEXT', 'X', 'Y'),
                       help='Draw white text at X,Y')
    group.add_argument('--overlay', action=PlacedOperationAction, const='overlay',
                       dest='operations', nargs=3, metavar=('IMAGE', 'X', 'Y'),
                       help='Blend an image at X,Y')


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='thumbnailer',
        description='Batch image thumbnailing',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  thumbnailer process 'photos/*.jpg' -o thumbs/ --resize 400x300 --crop-ratio 1:1
  thumbnailer process in.png -o out/small.png -f png -f jpg --resize-width 200
  thumbnailer check 'photos/**/*'

Environment:
  THUMBNAILER_WORKERS, THUMBNAILER_JPEG_QUALITY, THUMBNAILER_FONT
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Process command
    process_parser = subparsers.add_parser('process', help='Transform and store images')
    process_parser.add_argument('inputs', nargs='+', metavar='INPUT',
                                help='Image paths or glob patterns')
    process_parser.add_argument('-o', '--output', required=True,
                                help='Output directory (existing or ending in /) or file path')
    process_parser.add_argument('-f', '--format', action='append',
                                choices=sorted({e for f in TargetFormat for e in f.extensions}),
                                help='Output format, repeatable (default: jpg)')
    process_parser.add_argument('--filter', choices=[f.value for f in ResampleFilter],
                                help='Resampling filter for resize operations')
    process_parser.add_argument('-w', '--workers', type=int, help='Override THUMBNAILER_WORKERS')
    process_parser.add_argument('--quality', type=int, help='Override THUMBNAILER_JPEG_QUALITY')
    process_parser.add_argument('--font', help='Override THUMBNAILER_FONT')
    process_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')
    process_parser.add_argument('--show-files', action='store_true',
                                help='Print each file as processed with result')
    process_parser.add_argument('-v', '--verbose', action='store_true', default=argparse.SUPPRESS,
                                help='Enable verbose logging')
    add_operation_arguments(process_parser)

    # Check command
    check_parser = subparsers.add_parser('check', help='Check whether images can be loaded')
    check_parser.add_argument('inputs', nargs='+', metavar='INPUT',
                              help='Image paths or glob patterns')
    check_parser.add_argument('-v', '--verbose', action='store_true', default=argparse.SUPPRESS,
                              help='Enable verbose logging')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'process':
        return cmd_process(parsed_args)
    elif parsed_args.command == 'check':
        return cmd_check(parsed_args)

    return 1
