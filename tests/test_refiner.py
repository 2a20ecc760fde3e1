import pytest

from spritesheet2frames.core import ExtractionSettings, FrameSlice, Rect
from spritesheet2frames.core.refiner import refine_frames
from spritesheet2frames.utils import image_tools


def _frame(sheet, rect, index=0, pivot=(0.5, 0.5)):
    image = image_tools.to_image(image_tools.crop(sheet.pixels, rect))
    return FrameSlice(image=image, index=index, rect=rect, pivot_x=pivot[0], pivot_y=pivot[1])


def test_trims_to_content_and_pads(make_sheet):
    sheet = make_sheet(20, 20, [(5, 6, 4, 3)])
    (refined,) = refine_frames(sheet, [_frame(sheet, sheet.bounds)], ExtractionSettings(padding=2))
    assert refined.rect == Rect(3, 4, 8, 7)
    assert refined.image.size == (8, 7)
    assert refined.pivot_x == pytest.approx(7 / 8)
    assert refined.pivot_y == pytest.approx(6 / 7)


def test_padding_stops_at_the_sheet_edge(make_sheet):
    sheet = make_sheet(10, 10, [(0, 0, 4, 4)])
    (refined,) = refine_frames(sheet, [_frame(sheet, sheet.bounds)], ExtractionSettings(padding=2))
    assert refined.rect == Rect(0, 0, 6, 6)
    assert refined.rect.within(sheet.width, sheet.height)


def test_padding_is_transparent(make_sheet):
    sheet = make_sheet(20, 20, [(5, 5, 4, 4)])
    (refined,) = refine_frames(sheet, [_frame(sheet, sheet.bounds)], ExtractionSettings(padding=3))
    assert refined.image.getpixel((0, 0))[3] == 0
    assert refined.image.getpixel((3, 3))[3] == 255


def test_empty_frames_are_dropped_and_indices_renumbered(make_sheet):
    sheet = make_sheet(40, 10, [(25, 2, 5, 5)])
    frames = [_frame(sheet, Rect(0, 0, 20, 10), 0), _frame(sheet, Rect(20, 0, 20, 10), 1)]
    refined = refine_frames(sheet, frames, ExtractionSettings())
    assert [frame.index for frame in refined] == [0]
    assert refined[0].rect == Rect(23, 0, 9, 9)


def test_pivot_stays_in_unit_range(make_sheet):
    sheet = make_sheet(20, 20, [(10, 10, 4, 4)])
    (refined,) = refine_frames(sheet, [_frame(sheet, sheet.bounds, pivot=(0.0, 1.0))], ExtractionSettings(padding=0))
    assert (refined.pivot_x, refined.pivot_y) == (0.0, 1.0)
