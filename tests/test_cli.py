import json

import pytest

from sheet2frames import cli
from spritesheet2frames.core import ProcessingDecision
from spritesheet2frames.core.classifier import DEFAULT_WEIGHTS
from spritesheet2frames.utils import image_tools


@pytest.fixture
def pair_png(tmp_path, two_square_sheet):
    path = tmp_path / "sheets" / "pair.png"
    path.parent.mkdir()
    image_tools.to_image(two_square_sheet.pixels).save(path)
    return path


def test_build_parser_creates_arguments():
    parser = cli.build_parser()
    args = parser.parse_args(["sheets", "--output", "out", "--eps", "12", "--decision", "a*=two", "--dry-run"])
    assert args.input.name == "sheets"
    assert args.output.name == "out"
    assert args.eps == 12.0
    assert args.decision == ["a*=two"]
    assert args.workers is None
    assert args.dry_run is True


def test_force_flags_are_mutually_exclusive():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["x.png", "--force-whole", "--force-two"])


def test_force_flags_append_a_catch_all_rule():
    args = cli.build_parser().parse_args(["x.png", "--decision", "a*=many", "--force-two", "--name", "Hero"])
    settings = cli.settings_from_args(args)
    assert settings.decision_overrides == [("a*", ProcessingDecision.MANY), ("*", ProcessingDecision.TWO)]
    assert settings.character_overrides == [("*", "Hero")]


def test_main_dry_run_returns_zero(pair_png, tmp_path, capsys):
    assert cli.main([str(pair_png), "--output", str(tmp_path / "out"), "--dry-run"]) == 0
    assert "pair.png" in capsys.readouterr().out
    assert not (tmp_path / "out").exists()


def test_main_writes_frames_and_model(pair_png, tmp_path, capsys):
    output = tmp_path / "out"
    model = tmp_path / "model.json"
    assert cli.main([str(pair_png.parent), "--output", str(output), "--model", str(model)]) == 0
    assert "pair.png: TWO, 2 frame(s)" in capsys.readouterr().out

    manifest = json.loads((output / "Pair" / "Idle" / "metadata.json").read_text())
    assert len(manifest["frames"]) == 2
    assert json.loads(model.read_text())["weights"] != list(DEFAULT_WEIGHTS)


def test_main_defaults_output_next_to_input(pair_png):
    assert cli.main([str(pair_png), "--force-whole"]) == 0
    assert (pair_png.parent / "frames" / "Pair" / "Whole" / "metadata.json").exists()


def test_main_rejects_missing_input(tmp_path):
    assert cli.main([str(tmp_path / "missing.png")]) == 2


def test_main_rejects_empty_directory(tmp_path):
    assert cli.main([str(tmp_path)]) == 2


def test_main_rejects_bad_settings(pair_png):
    assert cli.main([str(pair_png), "--decision", "*=sideways"]) == 2
    assert cli.main([str(pair_png), "--alpha-threshold", "300"]) == 2
    assert cli.main([str(pair_png), "--workers", "0"]) == 2
    assert cli.main([str(pair_png), "--workers", "four"]) == 2


def test_main_rejects_unreadable_model(pair_png, tmp_path):
    model = tmp_path / "model.json"
    model.write_text("[1, 2")
    assert cli.main([str(pair_png), "--output", str(tmp_path / "out"), "--model", str(model)]) == 2


def test_main_accepts_a_worker_count(pair_png, tmp_path, capsys):
    assert cli.main([str(pair_png.parent), "--output", str(tmp_path / "out"), "--workers", "2"]) == 0
    assert "pair.png: TWO, 2 frame(s)" in capsys.readouterr().out
