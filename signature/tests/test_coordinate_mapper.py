from __future__ import annotations

import pytest

from signature.exceptions.errors import ErrorKind, InvalidPosition, OutOfBounds
from signature.logic.coordinate_mapper import CoordinateMapper
from signature.models.geometry import Point, Rect
from signature.models.page import Page

ROTATIONS = (0, 90, 180, 270)


def letter(rotation: int = 0, scale: float = 1.0) -> Page:
    return Page(document_id="doc", number=1, width=612.0, height=792.0, rotation=rotation, scale=scale)


@pytest.mark.parametrize("rotation", ROTATIONS)
@pytest.mark.parametrize("scale", (0.5, 1.0, 1.75))
def test_rendered_center_maps_to_native_center(rotation: int, scale: float) -> None:
    page = letter(rotation, scale)
    mapper = CoordinateMapper()
    center = Point(page.rendered_width / 2, page.rendered_height / 2)

    native = mapper.to_page_native(center, page)

    assert native.approx_equals(Point(306.0, 396.0))


@pytest.mark.parametrize("rotation", ROTATIONS)
def test_round_trip_within_epsilon(rotation: int) -> None:
    page = letter(rotation, scale=1.3)
    mapper = CoordinateMapper()
    for native in (Point(0, 0), Point(612, 792), Point(10.5, 700.25), Point(600, 3)):
        back = mapper.to_page_native(mapper.to_viewport(native, page), page)
        assert back.approx_equals(native, 1e-6)


def test_quarter_turn_moves_native_top_left_to_rendered_top_right() -> None:
    page = letter(rotation=90)
    rendered = CoordinateMapper().to_viewport(Point(0, 0), page)
    # sideways page: rendered size is 792 x 612
    assert rendered.approx_equals(Point(792.0, 0.0))


def test_half_turn_flips_both_axes() -> None:
    page = letter(rotation=180, scale=2.0)
    native = CoordinateMapper().to_page_native(Point(0, 0), page)
    assert native.approx_equals(Point(612.0, 792.0))


def test_point_outside_rendered_page_is_rejected() -> None:
    page = letter(scale=1.0)
    with pytest.raises(OutOfBounds) as err:
        CoordinateMapper().to_page_native(Point(700.0, 10.0), page)
    assert err.value.kind is ErrorKind.OUT_OF_BOUNDS


def test_clamp_keeps_dragged_point_on_page() -> None:
    page = letter(scale=1.0)
    native = CoordinateMapper().to_page_native(Point(-40.0, 900.0), page, clamp=True)
    assert native == Point(0.0, 792.0)


def test_scale_for_render_swaps_axes_for_sideways_pages() -> None:
    assert CoordinateMapper.scale_for_render(letter(), 306.0) == pytest.approx(0.5)
    assert CoordinateMapper.scale_for_render(letter(90), 396.0) == pytest.approx(0.5)
    # container fit: height is the limiting side
    assert CoordinateMapper.scale_for_render(letter(), 1224.0, 792.0) == pytest.approx(1.0)


def test_explicit_viewport_scale_overrides_page_scale() -> None:
    page = letter(scale=1.0)
    native = CoordinateMapper().to_page_native(Point(153.0, 198.0), page, viewport_scale=0.5)
    assert native.approx_equals(Point(306.0, 396.0))


def test_rect_corners_are_normalised_after_rotation() -> None:
    page = letter(rotation=270)
    mapper = CoordinateMapper()
    native = Rect(100.0, 200.0, 150.0, 60.0)

    rendered = mapper.rect_to_viewport(native, page)
    assert rendered.width == pytest.approx(60.0)
    assert rendered.height == pytest.approx(150.0)
    assert mapper.rect_to_page_native(rendered, page).approx_equals(native)


def test_unsupported_rotation_is_invalid() -> None:
    page = Page(document_id="doc", number=1, width=612, height=792, rotation=45)
    with pytest.raises(InvalidPosition):
        CoordinateMapper().to_viewport(Point(1, 1), page)


def test_viewport_translation_uses_page_origin() -> None:
    origin = Point(20.0, 35.0)
    p = CoordinateMapper.viewport_to_rendered(Point(120.0, 135.0), origin)
    assert p == Point(100.0, 100.0)
    assert CoordinateMapper.rendered_to_viewport(p, origin) == Point(120.0, 135.0)
