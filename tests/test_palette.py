# tests/test_palette.py

from dataclasses import FrozenInstanceError

import pytest

from stylin247.models import PaletteMode
from stylin247.palette import (
    BLACK,
    DARK_GREY,
    MUTED_HAND_ALPHA,
    MUTED_SECOND_HAND_ALPHA,
    Compositing,
    Style,
    ambient_palette,
    hsv,
    muted_palette,
    vivid_palette,
)

RADIUS = 200.0


class TestInteractivePalettes:
    def test_widths_scale_with_radius(self):
        palette = muted_palette(RADIUS)
        assert palette.hour_hand.stroke_width == pytest.approx(0.04 * RADIUS)
        assert palette.minute_hand.stroke_width == pytest.approx(0.03 * RADIUS)
        assert palette.second_hand.stroke_width == pytest.approx(0.01 * RADIUS)
        assert palette.number.text_size == pytest.approx(0.175 * RADIUS)

    def test_muted_colours(self):
        palette = muted_palette(RADIUS)
        assert palette.mode is PaletteMode.MUTED
        assert palette.day_sector.color == hsv(200, 0.25, 0.6)
        assert palette.night_sector.color == hsv(230, 0.25, 0.25)
        assert palette.background.color == hsv(0, 0, 0.3)

    def test_vivid_colours(self):
        palette = vivid_palette(RADIUS)
        assert palette.mode is PaletteMode.VIVID
        assert palette.day_sector.color == hsv(185, 1, 1)
        assert palette.cartoon_sun.color == hsv(45, 0.5, 1)

    def test_hands_cast_shadows(self):
        palette = muted_palette(RADIUS)
        assert palette.hour_hand.shadow is not None
        assert palette.hour_hand.shadow.radius == pytest.approx(0.01 * RADIUS)
        assert palette.hour_hand.shadow.color == BLACK

    def test_sun_and_moon_draw_only_inside_sector(self):
        palette = muted_palette(RADIUS)
        for paint in (palette.cartoon_sun, palette.realistic_sun, palette.moon_lit,
                      palette.moon_dark, palette.moon_line):
            assert paint.compositing is Compositing.SRC_ATOP

    def test_realistic_sun_has_corona(self):
        palette = muted_palette(RADIUS)
        assert palette.realistic_sun.shadow.radius == pytest.approx(0.1 * RADIUS)


class TestAmbientPalette:
    def test_outline_sectors(self):
        palette = ambient_palette(RADIUS)
        assert palette.mode is PaletteMode.AMBIENT
        assert palette.background.color == BLACK
        assert palette.day_sector.style is Style.STROKE
        assert palette.day_sector.color == DARK_GREY
        assert palette.day_sector.stroke_width == pytest.approx(0.015 * RADIUS)

    def test_low_bit_disables_anti_alias_and_corona(self):
        palette = ambient_palette(RADIUS, low_bit_ambient=True)
        assert palette.low_bit_ambient
        assert palette.realistic_sun.shadow is None
        assert not palette.hour_hand.anti_alias
        assert not palette.number.anti_alias

    def test_anti_aliased_by_default(self):
        palette = ambient_palette(RADIUS)
        assert palette.hour_hand.anti_alias
        assert palette.realistic_sun.shadow is not None

    def test_burn_in_outlines_suns_and_clears_lit_moon(self):
        palette = ambient_palette(RADIUS, burn_in_protection=True)
        assert palette.cartoon_sun.style is Style.STROKE
        assert palette.realistic_sun.style is Style.STROKE
        assert palette.moon_lit.alpha == 0

    def test_without_burn_in_suns_are_filled(self):
        palette = ambient_palette(RADIUS)
        assert palette.cartoon_sun.style is Style.FILL
        assert palette.moon_lit.alpha == 255


class TestDim:
    def test_dim_lowers_hand_alpha(self):
        dimmed = muted_palette(RADIUS).dim()
        assert dimmed.dimmed
        assert dimmed.hour_hand.alpha == MUTED_HAND_ALPHA
        assert dimmed.minute_hand.alpha == MUTED_HAND_ALPHA
        assert dimmed.second_hand.alpha == MUTED_SECOND_HAND_ALPHA

    def test_dim_leaves_original_untouched(self):
        palette = muted_palette(RADIUS)
        palette.dim()
        assert palette.hour_hand.alpha == 255
        assert not palette.dimmed

    def test_dim_is_idempotent(self):
        dimmed = ambient_palette(RADIUS).dim()
        assert dimmed.dim() is dimmed


def test_palettes_are_immutable_and_hashable():
    palette = muted_palette(RADIUS)
    with pytest.raises(FrozenInstanceError):
        palette.face_radius = 1.0
    assert hash(palette) == hash(muted_palette(RADIUS))
    assert palette == muted_palette(RADIUS)
    assert palette != vivid_palette(RADIUS)
