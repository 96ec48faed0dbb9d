"""
Tests for the tpack command line.
"""

import json
from pathlib import Path

import pytest
from PIL import Image

from tpack import EXIT_OK, EXIT_UNPLACEABLE, EXIT_USAGE, AtlasConfig, main, parse_args


class TestAtlasConfig:
    """Tests for run configuration."""

    def test_init_when_defaults_then_square_512(self):
        config = AtlasConfig()

        assert (config.width, config.height) == (512, 512)
        assert config.padding == 0
        assert config.template is None

    def test_init_when_negative_padding_then_raises_error(self):
        with pytest.raises(ValueError, match="padding must be >= 0"):
            AtlasConfig(padding=-2)

    def test_init_when_zero_size_then_raises_error(self):
        with pytest.raises(ValueError, match="canvas size must be positive"):
            AtlasConfig(width=0)

    def test_parse_args_when_width_given_then_overrides_size(self):
        config = parse_args(["-s", "256", "--width", "1024", "-p", "2", "-v"])

        assert (config.width, config.height) == (1024, 256)
        assert config.padding == 2
        assert config.verbose is True

    def test_parse_args_when_invalid_padding_then_exits_with_usage(self):
        with pytest.raises(SystemExit) as excinfo:
            parse_args(["-p", "-1"])
        assert excinfo.value.code == 2


class TestMain:
    """End-to-end runs over a sprite directory."""

    def test_main_when_sprites_fit_then_writes_sheet_and_json(self, sprite_dir: Path, tmp_path: Path):
        out = tmp_path / "atlas.png"
        cfg = tmp_path / "atlas.json"

        code = main(["-d", str(sprite_dir), "-s", "64", "-p", "1", "-o", str(out), "-c", str(cfg)])

        assert code == EXIT_OK
        with Image.open(out) as img:
            assert img.size == (64, 64)
        data = json.loads(cfg.read_text())
        assert data["meta"]["image"] == "atlas.png"
        assert data["frames"]["big-red.png"]["frame"] == {"x": 0, "y": 0, "w": 40, "h": 30}

    def test_main_when_template_then_renders_template(self, sprite_dir: Path, tmp_path: Path):
        template = tmp_path / "atlas.tpl"
        template.write_text("sprites {{ canvas.width }}\n{% for r in rects %}{{ r.name_id }} {{ r.x }} {{ r.y }}\n{% endfor %}end\n")
        cfg = tmp_path / "atlas.cfg"

        code = main([
            "-d", str(sprite_dir), "-s", "64",
            "-o", str(tmp_path / "atlas.png"), "-c", str(cfg), "-t", str(template),
        ])

        assert code == EXIT_OK
        assert cfg.read_text().splitlines() == ["sprites 64", "big_red 0 0", "green 40 0", "small_blue 0 30", "end"]

    def test_main_when_canvas_too_small_then_reports_and_writes_partial(self, sprite_dir: Path, tmp_path: Path, caplog):
        cfg = tmp_path / "atlas.json"

        code = main(["-d", str(sprite_dir), "-s", "35", "-o", str(tmp_path / "atlas.png"), "-c", str(cfg)])

        assert code == EXIT_UNPLACEABLE
        assert "big-red.png" in caplog.text
        assert json.loads(cfg.read_text())["frames"] == {}

    def test_main_when_no_sprites_then_usage_exit(self, tmp_path: Path):
        empty = tmp_path / "empty"
        empty.mkdir()

        assert main(["-d", str(empty)]) == EXIT_USAGE

    def test_main_when_directory_missing_then_usage_exit(self, tmp_path: Path):
        assert main(["-d", str(tmp_path / "missing")]) == EXIT_USAGE

    def test_main_when_template_missing_then_usage_error_before_writing(self, sprite_dir: Path, tmp_path: Path, capsys):
        out = tmp_path / "atlas.png"

        with pytest.raises(SystemExit) as excinfo:
            main(["-d", str(sprite_dir), "-o", str(out), "-t", str(tmp_path / "nope.tpl")])

        assert excinfo.value.code == 2
        assert "template not found" in capsys.readouterr().err
        assert not out.exists()

    def test_main_when_no_sprites_then_error_logged_not_printed(self, tmp_path: Path, caplog, capsys):
        empty = tmp_path / "empty"
        empty.mkdir()

        main(["-d", str(empty)])

        assert "No sprite files found" in caplog.text
        assert "No sprite files found" not in capsys.readouterr().out
