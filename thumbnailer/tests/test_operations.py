"""Tests for queued image operations."""

import pytest
from PIL import Image

from thumbnailer.errors import OperationError, OperationErrorInfo
from thumbnailer.operations import (
    BlurOp, BrightenOp, CombineOp, ContrastOp, CropOp, ExifOp, FlipOp, HueRotateOp,
    InvertOp, ResizeOp, RotateOp, TextOp, UnsharpenOp, fit_within, standard_layout,
)
from thumbnailer.options import (
    BoxPosition, Crop, Exif, Orientation, ResampleFilter, Resize, Rotation,
)
from thumbnailer.static_thumbnail import StaticThumbnail


def split_image(size=(40, 20), left=(0, 0, 0), right=(255, 255, 255)):
    """Image with a vertical edge in the middle."""
    image = Image.new('RGB', size, left)
    image.paste(right, (size[0] // 2, 0, size[0], size[1]))
    return image


def marked_image(size=(80, 50)):
    """Black image with a red top-left pixel."""
    image = Image.new('RGB', size, (0, 0, 0))
    image.putpixel((0, 0), (255, 0, 0))
    return image


class TestFitWithin:
    """Tests for the bounding box fit helper."""

    def test_landscape(self):
        """Test a wide image is bounded by width."""
        assert fit_within(800, 500, 400, 300) == (400, 250)

    def test_portrait(self):
        """Test a tall image is bounded by height."""
        assert fit_within(500, 800, 400, 300) == (187, 300)

    def test_minimum_one_pixel(self):
        """Test a very thin result keeps one pixel."""
        assert fit_within(1000, 1, 10, 10) == (10, 1)


class TestStandardLayout:
    """Tests for color layout normalization."""

    def test_rgb_unchanged(self, sample_image):
        """Test standard modes are passed through."""
        assert standard_layout(sample_image, None) is sample_image

    def test_palette_to_rgb(self):
        """Test palette images become RGB."""
        assert standard_layout(Image.new('P', (4, 4)), None).mode == 'RGB'

    def test_cmyk_to_rgb(self):
        """Test CMYK images become RGB."""
        assert standard_layout(Image.new('CMYK', (4, 4)), None).mode == 'RGB'

    def gradient(self, mode, values):
        """256x4 grayscale image whose column x holds values[x]."""
        image = Image.new('F' if mode == 'F' else 'I', (256, 4))
        image.putdata(list(values) * 4)
        return image if mode in ('I', 'F') else image.convert(mode)

    @pytest.mark.parametrize('mode', ['I;16', 'I'])
    def test_sixteen_bit_rescaled(self, mode):
        """Test 16-bit values are scaled down instead of clipped."""
        image = self.gradient(mode, (x * 257 for x in range(256)))

        result = standard_layout(image, None)

        assert result.mode == 'L'
        assert abs(result.getpixel((10, 0)) - 10) <= 1
        assert abs(result.getpixel((128, 0)) - 128) <= 1
        assert result.getpixel((255, 0)) == 255

    def test_eight_bit_range_kept(self):
        """Test 32-bit values that already fit in 0..255 keep their value."""
        result = standard_layout(self.gradient('I', range(256)), None)

        assert abs(result.getpixel((10, 0)) - 10) <= 1
        assert abs(result.getpixel((200, 0)) - 200) <= 1

    def test_unit_float_rescaled(self):
        """Test float images in 0..1 are scaled to 0..255."""
        result = standard_layout(self.gradient('F', (x / 255 for x in range(256))), None)

        assert result.mode == 'L'
        assert abs(result.getpixel((100, 0)) - 100) <= 1
        assert result.getpixel((255, 0)) >= 254

    def test_out_of_range_uses_extrema(self):
        """Test negative values are stretched over their own range."""
        result = standard_layout(self.gradient('I', (x - 1000 for x in range(256))), None)

        assert result.getpixel((0, 0)) <= 1
        assert abs(result.getpixel((100, 0)) - 100) <= 1
        assert result.getpixel((255, 0)) >= 254

    def test_bilevel_to_l(self):
        """Test bilevel images become black and white L."""
        image = Image.new('1', (4, 4), 1)

        assert standard_layout(image, None).getpixel((0, 0)) == 255

    def test_conversion_failure(self, mocker):
        """Test a failed conversion is reported with the requested info."""
        image = Image.new('CMYK', (4, 4))
        mocker.patch.object(image, 'convert', side_effect=ValueError('boom'))
        operation = BlurOp(1)

        with pytest.raises(OperationError) as exc_info:
            standard_layout(image, operation)

        assert exc_info.value.info == OperationErrorInfo.IMAGE_BUFFER_CONVERSION_FAILURE
        assert exc_info.value.operation is operation


class TestResizeOp:
    """Tests for ResizeOp."""

    def test_bounding_box(self, sample_image):
        """Test fitting inside a bounding box keeps the aspect ratio."""
        result = ResizeOp(Resize.bounding_box(400, 300)).apply(sample_image)

        assert result.size == (400, 250)

    def test_exact_box(self, sample_image):
        """Test exact box ignores the aspect ratio."""
        result = ResizeOp(Resize.exact_box(100, 100)).apply(sample_image)

        assert result.size == (100, 100)

    def test_height(self, sample_image):
        """Test resizing to a height."""
        result = ResizeOp(Resize.height_of(100)).apply(sample_image)

        assert result.size == (160, 100)

    def test_width(self, sample_image):
        """Test resizing to a width."""
        result = ResizeOp(Resize.width_of(400)).apply(sample_image)

        assert result.size == (400, 250)

    def test_enlarges(self, sample_image):
        """Test images smaller than the box are enlarged."""
        result = ResizeOp(Resize.bounding_box(1600, 1600)).apply(sample_image)

        assert result.size == (1600, 1000)

    @pytest.mark.parametrize('size', [(800, 500), (500, 800), (333, 777), (1000, 1000), (401, 299)])
    def test_bounding_box_fits_and_keeps_ratio(self, size):
        """Test the result fits, touches the box, and keeps the ratio up to rounding."""
        width, height = size
        image = Image.new('RGB', size)

        result_w, result_h = ResizeOp(Resize.bounding_box(400, 300)).apply(image).size

        assert result_w <= 400 and result_h <= 300
        assert result_w == 400 or result_h == 300
        assert abs(result_w * height - result_h * width) < max(width, height)

    def test_with_filter(self, sample_image):
        """Test an explicit resampling filter."""
        for resample in ResampleFilter:
            result = ResizeOp(Resize.bounding_box(400, 300), resample).apply(sample_image)
            assert result.size == (400, 250)

    def test_zero_box_raises(self, sample_image):
        """Test an empty box is out of range."""
        with pytest.raises(OperationError) as exc_info:
            ResizeOp(Resize.bounding_box(0, 100)).apply(sample_image)

        assert exc_info.value.info == OperationErrorInfo.COORDINATES_OUT_OF_RANGE

    def test_palette_source(self):
        """Test palette images are converted before resizing."""
        result = ResizeOp(Resize.exact_box(10, 10)).apply(Image.new('P', (100, 50)))

        assert result.mode == 'RGB'
        assert result.size == (10, 10)

    def test_conversion_failure(self, mocker):
        """Test resize reports color conversion failures as RGB failures."""
        image = Image.new('CMYK', (4, 4))
        mocker.patch.object(image, 'convert', side_effect=OSError('boom'))

        with pytest.raises(OperationError) as exc_info:
            ResizeOp(Resize.exact_box(2, 2)).apply(image)

        assert exc_info.value.info == OperationErrorInfo.RGB_IMAGE_CONVERSION_FAILURE

    def test_input_unchanged(self, sample_image):
        """Test the input image is not modified."""
        ResizeOp(Resize.exact_box(10, 10)).apply(sample_image)

        assert sample_image.size == (800, 500)


class TestCropOp:
    """Tests for CropOp."""

    def test_box(self):
        """Test cropping to a box."""
        image = Image.new('RGB', (800, 500), (0, 0, 0))
        image.putpixel((10, 20), (255, 0, 0))

        result = CropOp(Crop.box(10, 20, 100, 50)).apply(image)

        assert result.size == (100, 50)
        assert result.getpixel((0, 0)) == (255, 0, 0)

    def test_box_full_image(self, sample_image):
        """Test a box covering the whole image."""
        assert CropOp(Crop.box(0, 0, 800, 500)).apply(sample_image).size == (800, 500)

    @pytest.mark.parametrize('crop', [
        Crop.box(750, 0, 100, 10),
        Crop.box(0, 490, 10, 20),
        Crop.box(-1, 0, 10, 10),
        Crop.box(0, 0, 0, 10),
    ])
    def test_box_out_of_range(self, sample_image, crop):
        """Test boxes outside the image are rejected."""
        with pytest.raises(OperationError) as exc_info:
            CropOp(crop).apply(sample_image)

        assert exc_info.value.info == OperationErrorInfo.COORDINATES_OUT_OF_RANGE

    def test_ratio_wide_source(self, sample_image):
        """Test a square ratio on a wide image trims the width."""
        assert CropOp(Crop.ratio(1, 1)).apply(sample_image).size == (500, 500)

    def test_ratio_tall_source(self):
        """Test a square ratio on a tall image trims the height."""
        image = Image.new('RGB', (500, 800))

        assert CropOp(Crop.ratio(1, 1)).apply(image).size == (500, 500)

    def test_ratio_wider_target(self, sample_image):
        """Test a ratio wider than the source keeps the full width."""
        width, height = CropOp(Crop.ratio(16, 9)).apply(sample_image).size

        assert width == 800
        assert height in (449, 450)

    def test_ratio_is_centered(self):
        """Test the retained region is centered."""
        image = Image.new('L', (800, 500), 0)
        image.paste(255, (150, 0, 151, 500))
        image.paste(255, (649, 0, 650, 500))

        result = CropOp(Crop.ratio(1, 1)).apply(image)

        assert result.getpixel((0, 10)) == 255
        assert result.getpixel((1, 10)) == 0
        assert result.getpixel((499, 10)) == 255

    def test_ratio_odd_margin(self):
        """Test margins differ by at most one pixel."""
        image = Image.new('I', (203, 50))
        image.putdata(list(range(203)) * 50)

        result = CropOp(Crop.ratio(1, 1)).apply(image)
        left = result.getpixel((0, 0))
        right = 202 - result.getpixel((result.width - 1, 0))

        assert result.height == 50
        assert abs(left - right) <= 1

    def test_ratio_invalid(self, sample_image):
        """Test a zero ratio is rejected."""
        with pytest.raises(OperationError):
            CropOp(Crop.ratio(0, 1)).apply(sample_image)


class TestBlurOp:
    """Tests for BlurOp."""

    def test_softens_edge(self):
        """Test pixels next to an edge take intermediate values."""
        result = BlurOp(3).apply(split_image())

        assert result.size == (40, 20)
        assert 0 < result.getpixel((19, 10))[0] < 255


class TestBrightenOp:
    """Tests for BrightenOp."""

    def test_brighten(self):
        """Test a positive value raises every channel."""
        image = Image.new('RGB', (4, 4), (100, 100, 100))

        assert BrightenOp(50).apply(image).getpixel((0, 0)) == (150, 150, 150)

    def test_clamps_high(self):
        """Test channels are clamped at 255."""
        image = Image.new('RGB', (4, 4), (250, 10, 0))

        assert BrightenOp(10).apply(image).getpixel((0, 0)) == (255, 20, 10)

    def test_clamps_low(self):
        """Test channels are clamped at 0."""
        image = Image.new('RGB', (4, 4), (10, 100, 30))

        assert BrightenOp(-20).apply(image).getpixel((0, 0)) == (0, 80, 10)

    def test_alpha_untouched(self):
        """Test alpha is not brightened."""
        image = Image.new('RGBA', (4, 4), (10, 20, 30, 128))

        assert BrightenOp(10).apply(image).getpixel((0, 0)) == (20, 30, 40, 128)


class TestHueRotateOp:
    """Tests for HueRotateOp."""

    def test_red_to_green(self):
        """Test a 120 degree rotation turns red into green."""
        image = Image.new('RGB', (4, 4), (255, 0, 0))

        red, green, blue = HueRotateOp(120).apply(image).getpixel((0, 0))

        assert green > 200
        assert red < 30 and blue < 30

    def test_full_turn(self):
        """Test a full turn keeps the color."""
        image = Image.new('RGB', (4, 4), (255, 0, 0))

        pixel = HueRotateOp(360).apply(image).getpixel((0, 0))

        assert all(abs(a - b) <= 2 for a, b in zip(pixel, (255, 0, 0)))

    def test_alpha_kept(self):
        """Test alpha survives the HSV round trip."""
        image = Image.new('RGBA', (4, 4), (255, 0, 0, 77))

        result = HueRotateOp(120).apply(image)

        assert result.mode == 'RGBA'
        assert result.getpixel((0, 0))[3] == 77

    def test_grayscale_unchanged(self):
        """Test grayscale images have no hue to rotate."""
        image = Image.new('L', (4, 4), 90)

        result = HueRotateOp(45).apply(image)

        assert result is not image
        assert result.getpixel((0, 0)) == 90


class TestContrastOp:
    """Tests for ContrastOp."""

    def test_increase(self):
        """Test positive values spread values away from the mean."""
        image = split_image(left=(100, 100, 100), right=(150, 150, 150))

        result = ContrastOp(100).apply(image)

        assert result.getpixel((0, 0))[0] < 100
        assert result.getpixel((39, 0))[0] > 150

    def test_flatten(self):
        """Test -100 collapses the image to its mean."""
        image = split_image(left=(100, 100, 100), right=(150, 150, 150))

        result = ContrastOp(-100).apply(image)

        assert result.getpixel((0, 0)) == result.getpixel((39, 0))


class TestUnsharpenOp:
    """Tests for UnsharpenOp."""

    def test_overshoots_edge(self):
        """Test the dark side of an edge gets darker."""
        image = split_image(left=(100, 100, 100), right=(150, 150, 150))

        result = UnsharpenOp(2, 0).apply(image)

        assert result.size == image.size
        assert result.getpixel((19, 10))[0] < 100


class TestFlipOp:
    """Tests for FlipOp."""

    def test_vertical(self):
        """Test vertical flip moves the top row to the bottom."""
        result = FlipOp(Orientation.VERTICAL).apply(marked_image())

        assert result.getpixel((0, 49)) == (255, 0, 0)

    def test_horizontal(self):
        """Test horizontal flip mirrors columns."""
        result = FlipOp(Orientation.HORIZONTAL).apply(marked_image())

        assert result.getpixel((79, 0)) == (255, 0, 0)


class TestInvertOp:
    """Tests for InvertOp."""

    def test_invert(self):
        """Test color channels are inverted."""
        image = Image.new('RGB', (4, 4), (10, 20, 30))

        assert InvertOp().apply(image).getpixel((0, 0)) == (245, 235, 225)

    def test_alpha_kept(self):
        """Test alpha is not inverted."""
        image = Image.new('RGBA', (4, 4), (10, 20, 30, 40))

        assert InvertOp().apply(image).getpixel((0, 0)) == (245, 235, 225, 40)


class TestRotateOp:
    """Tests for RotateOp."""

    def test_quarter_turns(self):
        """Test quarter turn count."""
        assert RotateOp(Rotation.ROTATE_270).quarter_turns == 3

    def test_rotate_90_clockwise(self):
        """Test the top-left corner moves to the top-right."""
        result = RotateOp(Rotation.ROTATE_90).apply(marked_image())

        assert result.size == (50, 80)
        assert result.getpixel((49, 0)) == (255, 0, 0)

    def test_rotate_180(self):
        """Test the top-left corner moves to the bottom-right."""
        result = RotateOp(Rotation.ROTATE_180).apply(marked_image())

        assert result.size == (80, 50)
        assert result.getpixel((79, 49)) == (255, 0, 0)

    def test_rotate_270(self):
        """Test the top-left corner moves to the bottom-left."""
        result = RotateOp(Rotation.ROTATE_270).apply(marked_image())

        assert result.size == (50, 80)
        assert result.getpixel((0, 79)) == (255, 0, 0)


class TestExifOp:
    """Tests for ExifOp."""

    @pytest.mark.parametrize('policy', [
        Exif.keep(), Exif.clear(), Exif.whitelist([1]), Exif.blacklist([2]),
    ])
    def test_not_implemented(self, sample_image, policy):
        """Test every policy fails as not implemented."""
        with pytest.raises(OperationError) as exc_info:
            ExifOp(policy).apply(sample_image)

        assert exc_info.value.info == OperationErrorInfo.NOT_IMPLEMENTED


class TestTextOp:
    """Tests for TextOp."""

    def test_draws_white_text(self):
        """Test text pixels are drawn."""
        image = Image.new('RGB', (100, 40), (0, 0, 0))

        result = TextOp('Hello', BoxPosition.top_left(5, 5)).apply(image)

        assert max(result.convert('L').getdata()) > 128

    def test_input_unchanged(self):
        """Test the source image is not drawn on."""
        image = Image.new('RGB', (100, 40), (0, 0, 0))

        TextOp('Hello', BoxPosition.top_left(5, 5)).apply(image)

        assert image.getextrema() == ((0, 0), (0, 0), (0, 0))

    def test_bottom_right_anchor(self):
        """Test anchoring text at the bottom-right corner."""
        image = Image.new('RGB', (200, 100), (0, 0, 0))

        result = TextOp('Hello', BoxPosition.bottom_right(200, 100)).apply(image)

        assert result.getpixel((0, 0)) == (0, 0, 0)
        assert max(result.convert('L').getdata()) > 128

    @pytest.mark.parametrize('position', [
        BoxPosition.top_right(2, 5),
        BoxPosition.bottom_left(5, 2),
    ])
    def test_outside_canvas(self, position):
        """Test text starting outside the canvas is rejected."""
        image = Image.new('RGB', (100, 40))

        with pytest.raises(OperationError) as exc_info:
            TextOp('Hello', position).apply(image)

        assert exc_info.value.info == OperationErrorInfo.COORDINATES_OUT_OF_RANGE

    def test_missing_font(self, tmp_path):
        """Test an unreadable font file is a font load error."""
        operation = TextOp('Hello', BoxPosition.top_left(0, 0), str(tmp_path / 'missing.ttf'))

        with pytest.raises(OperationError) as exc_info:
            operation.apply(Image.new('RGB', (100, 40)))

        assert exc_info.value.info == OperationErrorInfo.FONT_LOAD_ERROR


class TestCombineOp:
    """Tests for CombineOp."""

    def overlay(self, color=(255, 255, 255), mode='RGB', size=(10, 10)):
        return StaticThumbnail('overlay.png', Image.new(mode, size, color))

    def test_opaque_overlay(self):
        """Test an opaque overlay replaces the covered pixels."""
        image = Image.new('RGB', (100, 100), (0, 0, 0))

        result = CombineOp(self.overlay(), BoxPosition.top_left(5, 5)).apply(image)

        assert result.getpixel((5, 5)) == (255, 255, 255)
        assert result.getpixel((14, 14)) == (255, 255, 255)
        assert result.getpixel((4, 4)) == (0, 0, 0)
        assert result.getpixel((15, 15)) == (0, 0, 0)

    def test_transparent_overlay(self):
        """Test a fully transparent overlay changes nothing."""
        image = Image.new('RGB', (20, 20), (0, 0, 0))
        overlay = self.overlay((255, 255, 255, 0), 'RGBA')

        result = CombineOp(overlay, BoxPosition.top_left(0, 0)).apply(image)

        assert result.getpixel((0, 0)) == (0, 0, 0)

    def test_half_alpha_blends(self):
        """Test partial alpha blends the colors."""
        image = Image.new('RGB', (20, 20), (0, 0, 0))
        overlay = self.overlay((200, 200, 200, 128), 'RGBA')

        result = CombineOp(overlay, BoxPosition.top_left(0, 0)).apply(image)

        assert all(99 <= channel <= 101 for channel in result.getpixel((0, 0)))

    def test_destination_alpha_kept(self):
        """Test the canvas keeps its own alpha channel."""
        image = Image.new('RGBA', (20, 20), (0, 0, 0, 50))

        result = CombineOp(self.overlay(), BoxPosition.top_left(5, 5)).apply(image)

        assert result.getpixel((5, 5)) == (255, 255, 255, 50)

    def test_grayscale_destination(self):
        """Test blending onto a grayscale image."""
        image = Image.new('L', (20, 20), 0)

        result = CombineOp(self.overlay(), BoxPosition.top_left(0, 0)).apply(image)

        assert result.mode == 'L'
        assert result.getpixel((0, 0)) == 255

    def test_bottom_right_anchor(self):
        """Test anchoring the overlay by its bottom-right corner."""
        image = Image.new('RGB', (30, 30), (0, 0, 0))

        result = CombineOp(self.overlay(), BoxPosition.bottom_right(20, 20)).apply(image)

        assert result.getpixel((10, 10)) == (255, 255, 255)
        assert result.getpixel((19, 19)) == (255, 255, 255)
        assert result.getpixel((20, 20)) == (0, 0, 0)

    def test_overflow_is_clipped(self):
        """Test overlay pixels past the canvas edge are dropped."""
        image = Image.new('RGB', (20, 20), (0, 0, 0))

        result = CombineOp(self.overlay(), BoxPosition.top_left(15, 15)).apply(image)

        assert result.size == (20, 20)
        assert result.getpixel((19, 19)) == (255, 255, 255)

    def test_outside_canvas(self):
        """Test an overlay starting left of the canvas is rejected."""
        image = Image.new('RGB', (20, 20))

        with pytest.raises(OperationError) as exc_info:
            CombineOp(self.overlay(), BoxPosition.top_right(5, 5)).apply(image)

        assert exc_info.value.info == OperationErrorInfo.COORDINATES_OUT_OF_RANGE

    def test_input_unchanged(self):
        """Test the canvas passed in is not modified."""
        image = Image.new('RGB', (20, 20), (0, 0, 0))

        CombineOp(self.overlay(), BoxPosition.top_left(0, 0)).apply(image)

        assert image.getpixel((0, 0)) == (0, 0, 0)
