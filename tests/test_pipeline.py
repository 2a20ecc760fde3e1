import pytest

from spritesheet2frames.core import ExtractionSettings, ProcessingDecision, Rect
from spritesheet2frames.core.classifier import CoreVsFxClassifier
from spritesheet2frames.core.pipeline import SheetProcessor, process_sheets

from conftest import FIVE_SQUARES, build_sheet


def _process(sheet, **overrides):
    return SheetProcessor(ExtractionSettings(**overrides), CoreVsFxClassifier()).process(sheet)


def _assert_frames_are_sane(sheet, result):
    for position, frame in enumerate(result.frames):
        assert frame.index == position
        assert not frame.rect.is_empty
        assert frame.rect.within(sheet.width, sheet.height)
        assert frame.image.size == (frame.rect.width, frame.rect.height)
        assert 0.0 <= frame.pivot_x <= 1.0
        assert 0.0 <= frame.pivot_y <= 1.0


def test_fully_opaque_sheet_is_one_whole_frame(make_sheet):
    sheet = make_sheet(64, 64, [(0, 0, 64, 64)], name="solid.png")
    result = _process(sheet)
    assert result.decision is ProcessingDecision.WHOLE
    assert [frame.rect for frame in result.frames] == [Rect(0, 0, 64, 64)]
    assert result.frames[0].pivot_x == pytest.approx(31.5 / 64)
    assert result.frames[0].pivot_y == pytest.approx(31.5 / 64)
    assert [clip.name for clip in result.clips] == ["Whole"]
    _assert_frames_are_sane(sheet, result)


def test_two_squares_split_into_two_trimmed_frames(two_square_sheet):
    result = _process(two_square_sheet)
    assert result.decision is ProcessingDecision.TWO
    assert [frame.rect for frame in result.frames] == [Rect(2, 2, 60, 60), Rect(66, 2, 60, 60)]
    for frame in result.frames:
        assert frame.pivot_x == pytest.approx(29.5 / 60)
        assert frame.pivot_y == pytest.approx(29.5 / 60)
    _assert_frames_are_sane(two_square_sheet, result)


def test_row_of_small_frames_is_many(five_square_sheet):
    result = _process(five_square_sheet, eps=10)
    assert result.decision is ProcessingDecision.MANY
    assert [frame.rect.x for frame in result.frames] == [0, 24, 48, 72, 96]
    assert all(frame.rect.width == 20 for frame in result.frames)
    (clip,) = result.clips
    assert clip.name == "Idle"
    assert clip.loop is True
    assert [frame.index for frame in clip.frames] == [0, 1, 2, 3, 4]
    _assert_frames_are_sane(five_square_sheet, result)


def test_caller_override_forces_two(make_sheet):
    sheet = make_sheet(116, 20, FIVE_SQUARES, name="row_forced.png")
    result = _process(sheet, eps=10, decision_overrides=[("*_forced.png", ProcessingDecision.TWO)])
    assert result.decision is ProcessingDecision.TWO
    assert [frame.rect for frame in result.frames] == [Rect(0, 0, 20, 20), Rect(24, 0, 92, 20)]
    _assert_frames_are_sane(sheet, result)


def test_builtin_override_forces_two(make_sheet):
    sheet = make_sheet(116, 20, FIVE_SQUARES, name="purpleEmpressAttack3.png")
    result = _process(sheet, eps=10, decision_overrides=[("*", ProcessingDecision.MANY)])
    assert result.decision is ProcessingDecision.TWO
    assert len(result.frames) == 2
    assert result.clips[0].name == "Attack3"


def test_builtin_override_forces_whole(make_sheet):
    sheet = make_sheet(116, 20, FIVE_SQUARES, name="theWelchAttack3.png")
    result = _process(sheet, eps=10, decision_overrides=[("*", ProcessingDecision.MANY)])
    assert result.decision is ProcessingDecision.WHOLE
    assert [frame.rect for frame in result.frames] == [Rect(2, 2, 112, 16)]
    assert result.clips[0].name == "Attack3"


def test_lone_sprite_with_margin_is_split_to_one_padded_frame(make_sheet):
    sheet = make_sheet(64, 64, [(10, 10, 40, 40)], name="hero.png")
    result = _process(sheet)
    assert result.decision is ProcessingDecision.TWO
    assert [frame.rect for frame in result.frames] == [Rect(8, 8, 44, 44)]
    assert [clip.name for clip in result.clips] == ["Idle"]
    _assert_frames_are_sane(sheet, result)


def test_transparent_sheet_produces_nothing(make_sheet):
    result = _process(make_sheet(32, 32, name="empty.png"))
    assert result.decision is ProcessingDecision.WHOLE
    assert result.frames == []
    assert result.clips == []
    assert result.stats["count"] == 0


def test_stats_report_settings_and_counts(two_square_sheet):
    result = _process(two_square_sheet, eps=10)
    assert set(result.stats) == {
        "count",
        "decision",
        "coverage",
        "clusters",
        "components",
        "alpha_threshold",
        "padding",
        "eps",
        "min_samples",
        "whole_coverage",
        "two_gap_iou_max",
    }
    assert result.stats["count"] == 2
    assert result.stats["decision"] == "TWO"
    assert result.stats["components"] == 2
    assert result.stats["clusters"] == 2
    assert result.stats["eps"] == 10
    assert 0.0 <= result.stats["coverage"] <= 1.0


def test_processing_is_repeatable_with_fresh_classifiers(five_square_sheet):
    first = _process(five_square_sheet, eps=10)
    second = _process(five_square_sheet, eps=10)
    assert first.decision is second.decision
    assert [f.rect for f in first.frames] == [f.rect for f in second.frames]
    assert [(f.pivot_x, f.pivot_y) for f in first.frames] == [(f.pivot_x, f.pivot_y) for f in second.frames]


def test_classifier_learns_while_processing(two_square_sheet):
    classifier = CoreVsFxClassifier()
    before = classifier.weights
    SheetProcessor(ExtractionSettings(), classifier).process(two_square_sheet)
    assert classifier.weights != before


def test_process_sheets_keeps_input_order():
    sheets = []
    for i in range(4):
        sheets.append(build_sheet(16, 16, name=f"blank{i}.png"))
        sheets.append(build_sheet(128, 64, [(4, 4, 56, 56), (68, 4, 56, 56)], name=f"pair{i}.png"))
    results = process_sheets(sheets, ExtractionSettings(), max_workers=4)
    assert [result.source.name for result in results] == [sheet.name for sheet in sheets]
    assert [len(result.frames) for result in results] == [0, 2] * 4


def test_process_sheets_runs_sequentially_with_one_worker(two_square_sheet):
    classifier = CoreVsFxClassifier()
    (result,) = process_sheets([two_square_sheet], ExtractionSettings(), classifier, max_workers=1)
    assert result.decision is ProcessingDecision.TWO
    assert classifier.weights != CoreVsFxClassifier().weights
