"""Tests for the command line interface.

Note: main() calls ti.init(), which would reset the session's fields, so
these tests drive run() directly with Taichi already initialized.
"""

import pytest


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self):
        from rtone.cli import parse_args

        args = parse_args(["diffuse"])
        assert args.stage == "diffuse"
        assert args.output is None
        assert args.samples is None
        assert args.width is None
        assert args.seed == 0
        assert args.arch == "gpu"
        assert args.batch_size == 10
        assert not args.quiet

    def test_options(self):
        from rtone.cli import parse_args

        args = parse_args(
            ["cover", "--samples", "4", "--width", "80", "--seed", "3", "--arch", "cpu", "--quiet"]
        )
        assert (args.samples, args.width, args.seed, args.arch) == (4, 80, 3, "cpu")
        assert args.quiet

    def test_stage_required_without_list(self):
        from rtone.cli import parse_args

        with pytest.raises(SystemExit):
            parse_args([])
        assert parse_args(["--list"]).list

    def test_invalid_arch(self):
        from rtone.cli import parse_args

        with pytest.raises(SystemExit):
            parse_args(["diffuse", "--arch", "tpu"])


class TestRun:
    """Tests for run()."""

    def test_list(self, capsys):
        from rtone.cli import parse_args, run

        assert run(parse_args(["--list"])) == 0
        out = capsys.readouterr().out
        assert "first-ppm" in out
        assert "cover" in out

    def test_unknown_stage(self, capsys):
        from rtone.cli import parse_args, run

        assert run(parse_args(["bvh", "--quiet"])) == 1
        assert "Unknown stage 'bvh'" in capsys.readouterr().err

    def test_invalid_samples(self, capsys, tmp_path):
        from rtone.cli import parse_args, run

        output = tmp_path / "out.ppm"
        assert run(parse_args(["gradient", "--samples", "0", "--output", str(output)])) == 1
        assert "Error:" in capsys.readouterr().err
        assert not output.exists()

    def test_render_ppm(self, capsys, tmp_path):
        from rtone.cli import parse_args, run

        output = tmp_path / "diffuse.ppm"
        code = run(
            parse_args(
                ["diffuse", "--samples", "2", "--width", "16", "--output", str(output)]
            )
        )

        assert code == 0
        lines = output.read_text(encoding="ascii").splitlines()
        assert lines[:3] == ["P3", "16 9", "255"]
        assert len(lines) == 3 + 16 * 9
        assert "Saved to" in capsys.readouterr().err

    def test_first_ppm_to_png(self, tmp_path):
        from PIL import Image

        from rtone.cli import parse_args, run

        output = tmp_path / "image.png"
        assert run(parse_args(["first-ppm", "--quiet", "--output", str(output)])) == 0

        with Image.open(output) as loaded:
            assert loaded.size == (256, 256)
