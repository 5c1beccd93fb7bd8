"""Tests for colour conversions in color.py"""

import pytest

from color import (
    Rgb,
    clamp_rgb,
    color_temperature_to_rgb,
    hsv_to_rgb,
    kelvin_to_mired,
    mired_to_kelvin,
    rgb_to_color_temperature,
    rgb_to_hsv,
)


class TestClampRgb:
    """Test channel clamping."""

    def test_in_range_values_are_rounded(self):
        assert clamp_rgb(12.4, 12.6, 200) == Rgb(12, 13, 200)

    def test_out_of_range_values_are_clamped(self):
        assert clamp_rgb(-20, 300, 255.9) == Rgb(0, 255, 255)

    @pytest.mark.parametrize("rgb", [
        (0, 0, 0),
        (-1, -500, 1000),
        (127.5, 254.6, 0.4),
        (256, 255, -0.6),
    ])
    def test_idempotent(self, rgb):
        once = clamp_rgb(*rgb)
        assert clamp_rgb(*once) == once


class TestRgbToHsv:
    """Test HSV decomposition."""

    def test_primary_colours(self):
        assert rgb_to_hsv(255, 0, 0) == pytest.approx((0, 100, 100))
        assert rgb_to_hsv(0, 255, 0).hue == pytest.approx(120)
        assert rgb_to_hsv(0, 0, 255).hue == pytest.approx(240)

    def test_grey_has_no_saturation(self):
        hsv = rgb_to_hsv(128, 128, 128)
        assert hsv.saturation == 0
        assert hsv.value == pytest.approx(128 / 255 * 100)

    def test_inputs_are_clamped(self):
        assert rgb_to_hsv(400, -10, -10) == rgb_to_hsv(255, 0, 0)

    def test_hsv_to_rgb_inverts_primary(self):
        assert hsv_to_rgb(240, 100) == Rgb(0, 0, 255)
        assert hsv_to_rgb(360, 100) == Rgb(255, 0, 0)
        assert hsv_to_rgb(0, 0) == Rgb(255, 255, 255)


class TestColorTemperature:
    """Test the black-body approximation and its estimate inverse."""

    def test_warm_white_is_red_heavy(self):
        rgb = color_temperature_to_rgb(2700)
        assert rgb.r == 255
        assert rgb.r > rgb.g > rgb.b

    def test_low_temperature_has_no_blue(self):
        assert color_temperature_to_rgb(1500).b == 0

    def test_daylight_is_near_white(self):
        rgb = color_temperature_to_rgb(6600)
        assert min(rgb) > 240

    def test_cold_temperature_is_blue_heavy(self):
        rgb = color_temperature_to_rgb(20000)
        assert rgb.b == 255
        assert rgb.r < rgb.b

    @pytest.mark.parametrize("kelvin", [1000, 2200, 4000, 6500, 10000, 40000])
    def test_channels_stay_in_range(self, kelvin):
        assert all(0 <= channel <= 255 for channel in color_temperature_to_rgb(kelvin))

    @pytest.mark.parametrize("kelvin", [2500, 3000, 4000, 5000, 6500])
    def test_estimate_is_close_to_source(self, kelvin):
        estimate = rgb_to_color_temperature(*color_temperature_to_rgb(kelvin))
        # integer channels make the inverse lossy
        assert abs(estimate - kelvin) <= kelvin * 0.05

    def test_estimate_stays_in_domain(self):
        assert 1000 <= rgb_to_color_temperature(255, 0, 0) <= 2100
        assert rgb_to_color_temperature(0, 0, 255) == 40000
        assert 1000 <= rgb_to_color_temperature(10, 200, 255) <= 40000


class TestMired:
    """Test Kelvin/Mired conversion."""

    def test_kelvin_to_mired(self):
        assert kelvin_to_mired(2000) == 500
        assert kelvin_to_mired(6500) == 154
        assert kelvin_to_mired(2700) == 370

    @pytest.mark.parametrize("kelvin", [2000, 2500, 4000, 5000])
    def test_round_trip_is_exact_for_integral_mireds(self, kelvin):
        assert mired_to_kelvin(kelvin_to_mired(kelvin)) == kelvin

    @pytest.mark.parametrize("kelvin", [2200, 2700, 3333, 4100, 6500])
    def test_round_trip_within_one_mired_step(self, kelvin):
        back = mired_to_kelvin(kelvin_to_mired(kelvin))
        assert abs(back - kelvin) <= kelvin * kelvin / 2_000_000 + 1

    @pytest.mark.parametrize("bad", [0, -1])
    def test_non_positive_input_rejected(self, bad):
        with pytest.raises(ValueError):
            kelvin_to_mired(bad)
        with pytest.raises(ValueError):
            mired_to_kelvin(bad)
