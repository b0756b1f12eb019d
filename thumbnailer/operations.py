"""
Operations - Deferred image transforms.

Each operation is an immutable value object. ``apply`` takes a decoded
Pillow image and returns the transformed image, or raises OperationError.
The input image is never modified in place.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageEnhance, ImageFilter, ImageOps

from .errors import OperationError, OperationErrorInfo
from .fonts import DEFAULT_FONT_PATH, TEXT_SCALE, load_font
from .options import BoxPosition, Crop, Exif, Orientation, ResampleFilter, Resize, Rotation
from .static_thumbnail import StaticThumbnail

STANDARD_MODES = ('L', 'LA', 'RGB', 'RGBA')
_GRAYSCALE_SOURCE_MODES = ('1', 'I', 'I;16', 'I;16B', 'I;16L', 'I;16N', 'F')

_ROTATE_TRANSPOSE = {
    Rotation.ROTATE_90: Image.Transpose.ROTATE_270,
    Rotation.ROTATE_180: Image.Transpose.ROTATE_180,
    Rotation.ROTATE_270: Image.Transpose.ROTATE_90,
}


def fit_within(width: int, height: int, box_width: int, box_height: int) -> Tuple[int, int]:
    """
    Largest size with the aspect ratio of (width, height) that fits the box.

    The bounding dimension equals the box; the other is floored, minimum 1.
    """
    if box_width * height <= width * box_height:
        return box_width, max(1, height * box_width // width)
    return max(1, width * box_height // height), box_height


def _narrow_grayscale(image: Image.Image) -> Image.Image:
    """
    Convert a bilevel, 16-bit, 32-bit or float grayscale image to L.

    Values are rescaled to 0..255 first; a plain convert would clip them.
    16-bit modes use their full range. 'I' and 'F' use 0..255, 0..65535 or
    0..1 (float only) when the values fit, and otherwise their own extrema.
    """
    if image.mode == '1':
        return image.convert('L')

    if image.mode.startswith('I;16'):
        image = image.convert('I')
        low, high = 0, 65535
    else:
        low, high = image.getextrema()
        if image.mode == 'F' and low >= 0 and high <= 1:
            low, high = 0.0, 1.0
        elif low >= 0 and high <= 255:
            low, high = 0, 255
        elif low >= 0 and high <= 65535:
            low, high = 0, 65535

    scale = 255 / (high - low) if high > low else 0
    offset = 0.5 - low * scale
    return image.point(lambda v: v * scale + offset).convert('L')


def standard_layout(
    image: Image.Image,
    operation: 'Operation',
    info: OperationErrorInfo = OperationErrorInfo.IMAGE_BUFFER_CONVERSION_FAILURE
) -> Image.Image:
    """Return the image in L, LA, RGB or RGBA mode, converting if needed."""
    if image.mode in STANDARD_MODES:
        return image

    bands = image.getbands()
    try:
        if image.mode in _GRAYSCALE_SOURCE_MODES:
            return _narrow_grayscale(image)
        if 'A' in bands or 'a' in bands or 'transparency' in image.info:
            return image.convert('RGBA')
        return image.convert('RGB')
    except (ValueError, OSError) as e:
        raise OperationError(operation, info) from e


def _split_alpha(image: Image.Image) -> Tuple[Image.Image, Optional[Image.Image]]:
    """Split a standard-layout image into its color part and alpha channel."""
    if image.mode in ('LA', 'RGBA'):
        return image.convert(image.mode[:-1]), image.getchannel('A')
    return image, None


def _with_alpha(image: Image.Image, alpha: Optional[Image.Image]) -> Image.Image:
    if alpha is not None:
        image.putalpha(alpha)
    return image


class Operation:
    """Base class for queued operations."""

    def apply(self, image: Image.Image) -> Image.Image:
        raise NotImplementedError

    def fail(self, info: OperationErrorInfo) -> OperationError:
        return OperationError(self, info)


@dataclass(frozen=True)
class ResizeOp(Operation):
    """
    Resize to a height, width, bounding box or exact box.

    Without a filter a fast reducing resize is used, the same strategy
    Image.thumbnail uses. Unlike Image.thumbnail, images are also enlarged.
    """
    size: Resize
    filter: Optional[ResampleFilter] = None

    def apply(self, image: Image.Image) -> Image.Image:
        image = standard_layout(image, self, OperationErrorInfo.RGB_IMAGE_CONVERSION_FAILURE)
        width, height = image.size
        if width == 0 or height == 0:
            raise self.fail(OperationErrorInfo.RGB_IMAGE_CONVERSION_FAILURE)

        aspect_ratio = width / height
        mode = self.size.mode
        if mode == 'height':
            box = (int(aspect_ratio * self.size.height) + 1, self.size.height)
        elif mode == 'width':
            box = (self.size.width, int(self.size.width / aspect_ratio) + 1)
        else:
            box = (self.size.width, self.size.height)

        if box[0] < 1 or box[1] < 1:
            raise self.fail(OperationErrorInfo.COORDINATES_OUT_OF_RANGE)

        new_size = box if mode == 'exact_box' else fit_within(width, height, *box)

        if self.filter is None:
            return image.resize(new_size, Image.Resampling.BICUBIC, reducing_gap=2.0)
        return image.resize(new_size, self.filter.pillow_filter)


@dataclass(frozen=True)
class CropOp(Operation):
    """
    Crop to an exact box, or to the largest centered region with a given ratio.
    """
    crop: Crop

    def apply(self, image: Image.Image) -> Image.Image:
        width, height = image.size
        crop = self.crop

        if crop.mode == 'box':
            if (crop.width <= 0 or crop.height <= 0 or crop.x < 0 or crop.y < 0
                    or crop.x + crop.width > width or crop.y + crop.height > height):
                raise self.fail(OperationErrorInfo.COORDINATES_OUT_OF_RANGE)
            return image.crop((crop.x, crop.y, crop.x + crop.width, crop.y + crop.height))

        if crop.width_ratio <= 0 or crop.height_ratio <= 0 or width == 0 or height == 0:
            raise self.fail(OperationErrorInfo.COORDINATES_OUT_OF_RANGE)

        ratio_old = width / height
        ratio_new = crop.width_ratio / crop.height_ratio

        if ratio_old <= ratio_new:
            height_new = min(height, max(1, int((ratio_old / ratio_new) * height)))
            y_new = (height - height_new) // 2
            return image.crop((0, y_new, width, y_new + height_new))

        width_new = min(width, max(1, int((ratio_new / ratio_old) * width)))
        x_new = (width - width_new) // 2
        return image.crop((x_new, 0, x_new + width_new, height))


@dataclass(frozen=True)
class BlurOp(Operation):
    sigma: float

    def apply(self, image: Image.Image) -> Image.Image:
        image = standard_layout(image, self)
        return image.filter(ImageFilter.GaussianBlur(self.sigma))


@dataclass(frozen=True)
class BrightenOp(Operation):
    """Add ``value`` to every color channel, clamped to 0..255."""
    value: int

    def apply(self, image: Image.Image) -> Image.Image:
        image = standard_layout(image, self)
        shifted = [min(255, max(0, i + self.value)) for i in range(256)]
        table = []
        for band in image.getbands():
            table.extend(range(256) if band == 'A' else shifted)
        return image.point(table)


@dataclass(frozen=True)
class HueRotateOp(Operation):
    """Rotate the hue of every pixel by ``degrees``."""
    degrees: int

    def apply(self, image: Image.Image) -> Image.Image:
        image = standard_layout(image, self)
        color, alpha = _split_alpha(image)
        if color.mode == 'L':
            return image.copy()

        shift = round((self.degrees % 360) * 256 / 360)
        hue, saturation, value = color.convert('HSV').split()
        hue = hue.point(lambda i: (i + shift) % 256)
        rotated = Image.merge('HSV', (hue, saturation, value)).convert('RGB')
        return _with_alpha(rotated, alpha)


@dataclass(frozen=True)
class ContrastOp(Operation):
    """Adjust contrast by ``value`` percent (negative lowers contrast)."""
    value: float

    def apply(self, image: Image.Image) -> Image.Image:
        image = standard_layout(image, self)
        return ImageEnhance.Contrast(image).enhance(1.0 + self.value / 100.0)


@dataclass(frozen=True)
class UnsharpenOp(Operation):
    sigma: float
    threshold: int

    def apply(self, image: Image.Image) -> Image.Image:
        image = standard_layout(image, self)
        return image.filter(ImageFilter.UnsharpMask(radius=self.sigma, threshold=self.threshold))


@dataclass(frozen=True)
class FlipOp(Operation):
    orientation: Orientation

    def apply(self, image: Image.Image) -> Image.Image:
        if self.orientation == Orientation.VERTICAL:
            return image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        return image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)


@dataclass(frozen=True)
class InvertOp(Operation):
    """Invert color channels; alpha is kept."""

    def apply(self, image: Image.Image) -> Image.Image:
        image = standard_layout(image, self)
        color, alpha = _split_alpha(image)
        return _with_alpha(ImageOps.invert(color), alpha)


@dataclass(frozen=True)
class RotateOp(Operation):
    """Rotate clockwise by whole quarter turns."""
    rotation: Rotation

    @property
    def quarter_turns(self) -> int:
        return self.rotation.value

    def apply(self, image: Image.Image) -> Image.Image:
        return image.transpose(_ROTATE_TRANSPOSE[self.rotation])


@dataclass(frozen=True)
class ExifOp(Operation):
    """
    Metadata policy hook.

    No policy is implemented; applying always fails so a queued policy is
    never silently ignored.
    """
    policy: Exif

    def apply(self, image: Image.Image) -> Image.Image:
        raise self.fail(OperationErrorInfo.NOT_IMPLEMENTED)


@dataclass(frozen=True)
class TextOp(Operation):
    """
    Draw white text anchored at ``position``.

    The box used for anchoring is the rendered advance width by the line
    height (ascent + descent) at the fixed text scale.
    """
    text: str
    position: BoxPosition
    font_path: Optional[str] = None

    def text_size(self, font) -> Tuple[int, int]:
        ascent, descent = font.getmetrics()
        return int(font.getlength(self.text)), ascent + descent

    def apply(self, image: Image.Image) -> Image.Image:
        try:
            font = load_font(self.font_path or DEFAULT_FONT_PATH, TEXT_SCALE)
        except OSError as e:
            raise self.fail(OperationErrorInfo.FONT_LOAD_ERROR) from e

        try:
            origin = self.position.origin(*self.text_size(font))
        except ValueError as e:
            raise self.fail(OperationErrorInfo.COORDINATES_OUT_OF_RANGE) from e

        canvas = standard_layout(image, self).copy()
        ImageDraw.Draw(canvas).text(origin, self.text, fill='white', font=font)
        return canvas


@dataclass(frozen=True)
class CombineOp(Operation):
    """
    Blend a StaticThumbnail onto the image with straight alpha.

    Color channels become ``a * overlay + (1 - a) * image``; the image's own
    alpha channel is kept. Overlay pixels outside the canvas are dropped.
    """
    overlay: StaticThumbnail
    position: BoxPosition

    def apply(self, image: Image.Image) -> Image.Image:
        try:
            origin = self.position.origin(self.overlay.width, self.overlay.height)
        except ValueError as e:
            raise self.fail(OperationErrorInfo.COORDINATES_OUT_OF_RANGE) from e

        canvas = standard_layout(image, self)
        color, alpha = _split_alpha(canvas)
        color = color.copy()

        overlay = self.overlay.as_rgba()
        mask = overlay.getchannel('A')
        color.paste(overlay.convert(color.mode), origin, mask)
        return _with_alpha(color, alpha)
