import pytest
import numpy as np
import xarray as xr
from PIL import Image

from ripen.image import IntensityGrid, load_intensity_grid

pytestmark = pytest.mark.unit


class TestIntensityGrid:

    def test_dimensions(self, make_grid):
        grid = make_grid([[0, 1, 2], [3, 4, 5]])

        assert grid.width() == 3
        assert grid.height() == 2
        assert isinstance(grid.data, xr.DataArray)
        assert grid.data.dims == ("y", "x")

    def test_intensity_is_column_then_row(self, make_grid):
        grid = make_grid([[0, 1, 2], [3, 4, 5]])

        assert grid.intensity(0, 0) == 0
        assert grid.intensity(2, 0) == 2
        assert grid.intensity(0, 1) == 3
        assert grid.intensity(2, 1) == 5

    @pytest.mark.parametrize("x, y", [(-1, 0), (3, 0), (0, 2), (0, -1)])
    def test_intensity_out_of_range(self, make_grid, x, y):
        grid = make_grid([[0, 1, 2], [3, 4, 5]])
        with pytest.raises(IndexError):
            grid.intensity(x, y)

    def test_column_is_top_first(self, make_grid):
        grid = make_grid([[10, 11], [20, 21], [30, 31]])
        np.testing.assert_array_equal(grid.column(1), [11, 21, 31])

    def test_column_out_of_range(self, make_grid):
        with pytest.raises(IndexError):
            make_grid([[1]]).column(1)

    def test_grid_is_read_only(self, make_grid):
        grid = make_grid([[1, 2]])
        with pytest.raises(ValueError):
            grid.column(0)[0] = 9

    def test_from_array_copies_input(self):
        source = np.array([[1, 2]], dtype=np.uint8)
        grid = IntensityGrid.from_array(source)
        source[0, 0] = 99

        assert grid.intensity(0, 0) == 1

    def test_from_array_rejects_1d(self):
        with pytest.raises(ValueError, match="2-D"):
            IntensityGrid.from_array([1, 2, 3])

    def test_from_array_rejects_out_of_range(self):
        with pytest.raises(ValueError, match=r"\[0, 255\]"):
            IntensityGrid.from_array([[0, 256]])


class TestLoadIntensityGrid:

    def test_load_grayscale_png(self, write_png):
        path = write_png([[0, 128, 255], [64, 32, 16]])
        grid = load_intensity_grid(path)

        assert grid.width() == 3
        assert grid.height() == 2
        assert grid.intensity(1, 0) == 128
        assert grid.intensity(2, 1) == 16
        assert grid.data.name == "image"

    def test_load_rgb_converts_to_luma(self, temp_dir):
        path = temp_dir / "rgb.png"
        rgb = np.zeros((1, 2, 3), dtype=np.uint8)
        rgb[0, 1] = (255, 255, 255)
        Image.fromarray(rgb).save(path)

        grid = load_intensity_grid(path)

        assert grid.intensity(0, 0) == 0
        assert grid.intensity(1, 0) == 255

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_intensity_grid(temp_dir / "missing.png")

    def test_undecodable_file(self, temp_dir):
        path = temp_dir / "garbage.png"
        path.write_bytes(b"not an image")
        with pytest.raises(ValueError, match="Cannot decode"):
            load_intensity_grid(path)
