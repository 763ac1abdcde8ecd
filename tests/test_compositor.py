import numpy as np
import pytest

from u2netp_cutout.buffers import Tensor
from u2netp_cutout.compositor import alpha_from_probability, composite, decode_mask
from u2netp_cutout.config import TensorLayout
from u2netp_cutout.errors import ShapeMismatch
from tests.shared import constant_mask, mask_from_grid, random_image, solid_image


@pytest.mark.parametrize("size", [(1, 1), (2, 2), (320, 320), (641, 479)])
def test_only_alpha_changes(size) -> None:
    image = random_image(*size, seed=7)
    rng = np.random.default_rng(11)
    mask = Tensor(rng.random(320 * 320, dtype=np.float32), (1, 1, 320, 320))

    out = composite(mask, image)

    assert out.size == image.size
    assert out.alpha.size == size[0] * size[1]
    np.testing.assert_array_equal(out.rgb, image.rgb)


def test_original_is_not_mutated() -> None:
    image = solid_image(4, 4, (1, 2, 3, 200))
    before = image.pixels.copy()
    out = composite(constant_mask(0.0), image)
    np.testing.assert_array_equal(image.pixels, before)
    assert out.pixels is not image.pixels
    assert np.all(out.alpha == 0)


def test_out_of_range_values_are_clamped() -> None:
    grid = np.full((320, 320), 1.5, dtype=np.float32)
    grid[:, 160:] = -0.3
    out = composite(mask_from_grid(grid), solid_image(320, 320))
    assert np.all(out.alpha[:, :160] == 255)
    assert np.all(out.alpha[:, 160:] == 0)


def test_alpha_rounding() -> None:
    values = np.array([0.0, 0.5, 1.0, 0.2, 1.5, -0.3, np.nan], dtype=np.float32)
    assert alpha_from_probability(values).tolist() == [0, 128, 255, 51, 255, 0, 0]


@pytest.mark.parametrize("count", [10, 320 * 320 - 1, 320 * 320 + 1, 0])
def test_wrong_element_count_is_rejected(count: int) -> None:
    tensor = Tensor(np.zeros(count, dtype=np.float32), (count,))
    with pytest.raises(ShapeMismatch):
        composite(tensor, solid_image(2, 2))


def test_nhwc_output_is_accepted() -> None:
    tensor = Tensor(np.ones(320 * 320, dtype=np.float32), (1, 320, 320, 1))
    out = composite(tensor, solid_image(3, 5))
    assert np.all(out.alpha == 255)


def test_mask_is_upsampled_with_nearest_neighbour() -> None:
    grid = np.zeros((320, 320), dtype=np.float32)
    grid[:, 0] = 1.0
    alpha = decode_mask(mask_from_grid(grid), 640, 2)
    assert alpha.shape == (2, 640)
    # destination columns 0 and 1 both map to source column 0
    assert np.all(alpha[:, :2] == 255)
    assert np.all(alpha[:, 2:] == 0)


def test_mask_downsampled_for_small_images() -> None:
    grid = np.arange(320 * 320, dtype=np.float32).reshape(320, 320) / (320 * 320)
    alpha = decode_mask(mask_from_grid(grid), 2, 2)
    # source indices floor(x * 320 / 2) -> 0, 160
    expected = alpha_from_probability(grid[np.ix_([0, 160], [0, 160])])
    np.testing.assert_array_equal(alpha, expected)


def test_custom_layout_mask_size() -> None:
    layout = TensorLayout(width=4, height=4)
    out = composite(constant_mask(1.0, layout), solid_image(8, 8), layout)
    assert np.all(out.alpha == 255)
    with pytest.raises(ShapeMismatch):
        composite(constant_mask(1.0), solid_image(8, 8), layout)


@pytest.mark.parametrize("shape", [(0, 3, 4), (3, 0, 4)])
def test_zero_sized_original_is_rejected(shape) -> None:
    from u2netp_cutout.buffers import RGBAImage
    from u2netp_cutout.errors import InvalidDimensions

    with pytest.raises(InvalidDimensions):
        composite(constant_mask(1.0), RGBAImage(np.zeros(shape, dtype=np.uint8)))


def test_allocation_failure_is_reported(monkeypatch) -> None:
    from u2netp_cutout import compositor
    from u2netp_cutout.errors import AllocationFailure

    def out_of_memory(*args, **kwargs):
        raise MemoryError()

    monkeypatch.setattr(compositor, "resize", out_of_memory)
    with pytest.raises(AllocationFailure):
        composite(constant_mask(1.0), solid_image(4, 4))
