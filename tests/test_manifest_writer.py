import json

from PIL import Image

from spritesheet2frames.core import ExtractionSettings
from spritesheet2frames.core.classifier import CoreVsFxClassifier
from spritesheet2frames.core.manifest_writer import write_manifest
from spritesheet2frames.core.pipeline import SheetProcessor


def _result(sheet, settings):
    return SheetProcessor(settings, CoreVsFxClassifier()).process(sheet)


def test_writes_frames_and_metadata(tmp_path, two_square_sheet):
    settings = ExtractionSettings()
    written = write_manifest(_result(two_square_sheet, settings), tmp_path, settings)

    clip_dir = tmp_path / "Pair" / "Idle"
    assert written == [clip_dir / "metadata.json"]
    assert Image.open(clip_dir / "frame_000.png").size == (60, 60)
    assert (clip_dir / "frame_001.png").exists()

    manifest = json.loads((clip_dir / "metadata.json").read_text())
    assert manifest["character"] == "Pair"
    assert manifest["animation"] == "Idle"
    assert manifest["decision"] == "TWO"
    assert manifest["order"] == [0, 1]
    assert manifest["loop"] is True
    assert manifest["frameDuration"] == settings.frame_duration
    assert manifest["frames"][0] == {
        "file": "frame_000.png",
        "w": 60,
        "h": 60,
        "pivot": [0.4917, 0.4917],
        "sourceRect": [2, 2, 60, 60],
    }
    assert manifest["frames"][1]["sourceRect"] == [66, 2, 60, 60]
    assert manifest["stats"]["count"] == 2


def test_character_override_sets_the_folder(tmp_path, two_square_sheet):
    settings = ExtractionSettings(character_overrides=[("pair*", "Twins")], clip_overrides=[("*", "Dance")])
    (path,) = write_manifest(_result(two_square_sheet, settings), tmp_path, settings)
    assert path == tmp_path / "Twins" / "Dance" / "metadata.json"
    assert json.loads(path.read_text())["loop"] is False


def test_empty_result_writes_nothing(tmp_path, make_sheet):
    settings = ExtractionSettings()
    assert write_manifest(_result(make_sheet(16, 16, name="empty.png"), settings), tmp_path, settings) == []
    assert list(tmp_path.iterdir()) == []
