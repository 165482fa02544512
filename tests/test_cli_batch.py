"""Tests for babyvision.cli.batch, the still-image batch renderer."""

import json

import numpy as np
import pytest
from PIL import Image

from babyvision.cli.batch import (
    build_parser,
    discover_files,
    load_frame,
    load_presets,
    main,
)
from babyvision.domain.presets import AGE_PRESETS
from babyvision.kernel.system.config import APP_CONFIG


def _write_png(path, width=24, height=16, color=(200, 120, 40)):
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[:, :] = color
    arr[:, : width // 2] = 255
    Image.fromarray(arr).save(path, format="PNG")
    return path


class TestBuildParser:
    def test_minimal_args(self):
        args = build_parser().parse_args(["input.png"])
        assert args.inputs == ["input.png"]
        assert args.age == 1
        assert args.all_ages is False
        assert args.output == APP_CONFIG.default_export_dir
        assert args.output_format == "png"
        assert args.hfov is None
        assert args.color_model == "infant"
        assert args.kernel == "gaussian"
        assert args.no_vignette is False
        assert args.mirror is False
        assert args.seed is None
        assert args.max_size is None
        assert args.preset_file is None
        assert args.list_ages is False
        assert args.verbose is False

    def test_all_flags(self):
        args = build_parser().parse_args(
            [
                "--age", "3",
                "--all-ages",
                "--output", "/tmp/out",
                "--format", "jpeg",
                "--hfov", "75",
                "--color-model", "lms",
                "--kernel", "csf",
                "--no-vignette",
                "--mirror",
                "--seed", "7",
                "--max-size", "512",
                "--preset-file", "ages.json",
                "--verbose",
                "a.png", "b.jpg",
            ]
        )
        assert args.age == 3
        assert args.all_ages is True
        assert args.output == "/tmp/out"
        assert args.output_format == "jpeg"
        assert args.hfov == 75.0
        assert args.color_model == "lms"
        assert args.kernel == "csf"
        assert args.no_vignette is True
        assert args.mirror is True
        assert args.seed == 7
        assert args.max_size == 512
        assert args.preset_file == "ages.json"
        assert args.verbose is True
        assert args.inputs == ["a.png", "b.jpg"]

    def test_list_ages_no_inputs_required(self):
        args = build_parser().parse_args(["--list-ages"])
        assert args.list_ages is True
        assert args.inputs == []

    @pytest.mark.parametrize(
        "argv",
        [["--format", "tiff", "a.png"], ["--kernel", "box", "a.png"], ["--color-model", "xyz", "a.png"]],
    )
    def test_invalid_choices_raise(self, argv):
        with pytest.raises(SystemExit):
            build_parser().parse_args(argv)

    @pytest.mark.parametrize("hfov", ["0", "-60", "180", "nan", "wide"])
    def test_out_of_range_fov_rejected(self, hfov, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--hfov", hfov, "a.png"])
        assert "Field of view" in capsys.readouterr().err


class TestDiscoverFiles:
    def test_single_supported_file(self, tmp_path):
        f = tmp_path / "face.png"
        f.write_bytes(b"fake")
        assert discover_files([str(f)]) == [str(f)]

    def test_unsupported_file_skipped(self, tmp_path, capsys):
        f = tmp_path / "notes.txt"
        f.write_text("hello")
        assert discover_files([str(f)]) == []
        assert "Skipping unsupported" in capsys.readouterr().err

    def test_directory_walk(self, tmp_path):
        (tmp_path / "b.jpg").write_bytes(b"fake")
        (tmp_path / "a.PNG").write_bytes(b"fake")
        (tmp_path / "c.txt").write_text("skip")
        sub = tmp_path / "sub"
        sub.mkdir()
        (sub / "d.webp").write_bytes(b"fake")
        result = discover_files([str(tmp_path)])
        names = [r.rsplit("/", 1)[-1] for r in result]
        assert names == ["a.PNG", "b.jpg", "d.webp"]

    def test_missing_path_warns(self, capsys):
        assert discover_files(["/nonexistent/face.png"]) == []
        assert "Path not found" in capsys.readouterr().err


class TestLoadPresets:
    def test_builtin_only(self):
        assert load_presets(None) == AGE_PRESETS

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_presets(str(tmp_path / "missing.json"))

    def test_override_and_extend(self, tmp_path):
        f = tmp_path / "ages.json"
        f.write_text(
            json.dumps(
                {
                    "1": {"photoreceptor_noise": 0.0},
                    "4": dict(AGE_PRESETS[3].to_dict(), label="4 months", spatial_cutoff_cpd=5.0),
                }
            )
        )
        presets = load_presets(str(f))
        assert sorted(presets) == [1, 2, 3, 4]
        assert presets[1].photoreceptor_noise == 0.0
        assert presets[1].spatial_cutoff_cpd == AGE_PRESETS[1].spatial_cutoff_cpd
        assert presets[4].label == "4 months"
        assert presets[4].spatial_cutoff_cpd == 5.0
        # Built-ins are not mutated
        assert AGE_PRESETS[1].photoreceptor_noise == 0.08

    def test_bare_name_found_in_presets_dir(self, tmp_path, monkeypatch):
        presets_dir = tmp_path / "presets"
        presets_dir.mkdir()
        (tmp_path / "cwd").mkdir()
        monkeypatch.setattr(APP_CONFIG, "presets_dir", str(presets_dir))
        monkeypatch.chdir(tmp_path / "cwd")
        (presets_dir / "quiet.json").write_text(json.dumps({"2": {"photoreceptor_noise": 0.0}}))
        presets = load_presets("quiet.json")
        assert presets[2].photoreceptor_noise == 0.0

    @pytest.mark.parametrize(
        "payload",
        [[1, 2, 3], {"1": ["not", "an", "object"]}, {"1": {"spatial_cutoff_cpd": "x"}}],
    )
    def test_malformed_content_raises_value_error(self, tmp_path, payload):
        f = tmp_path / "ages.json"
        f.write_text(json.dumps(payload))
        with pytest.raises(ValueError):
            load_presets(str(f))


class TestLoadFrame:
    def test_rgb_png_becomes_opaque_rgba(self, tmp_path):
        buf = load_frame(str(_write_png(tmp_path / "in.png")))
        assert buf.shape == (16, 24, 4)
        assert np.all(buf.alpha == 255)
        assert buf.pixel(20, 5)[:3] == (200, 120, 40)

    def test_max_size_downscales_long_edge(self, tmp_path):
        buf = load_frame(str(_write_png(tmp_path / "in.png", 40, 20)), max_size=10)
        assert (buf.width, buf.height) == (10, 5)


class TestMain:
    def test_no_inputs_returns_error(self):
        assert main([]) == 1

    def test_list_ages(self, capsys):
        assert main(["--list-ages"]) == 0
        out = capsys.readouterr().out
        assert "[1] 1 month:" in out
        assert "[3] 3 months:" in out

    def test_unknown_age(self, tmp_path, capsys):
        png = _write_png(tmp_path / "in.png")
        assert main(["--age", "7", str(png)]) == 1
        assert "No preset for age stage 7" in capsys.readouterr().err

    def test_bad_preset_file(self, tmp_path):
        f = tmp_path / "ages.json"
        f.write_text("{not json")
        assert main(["--preset-file", str(f), "--list-ages"]) == 1

    @pytest.mark.parametrize("payload", [[1, 2], {"1": {"spatial_cutoff_cpd": "x"}}])
    def test_malformed_preset_file(self, tmp_path, payload, capsys):
        f = tmp_path / "ages.json"
        f.write_text(json.dumps(payload))
        png = _write_png(tmp_path / "in.png")
        assert main(["--preset-file", str(f), str(png), "--output", str(tmp_path / "out")]) == 1
        assert "Error loading presets" in capsys.readouterr().err

    def test_invalid_default_fov_returns_error(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(APP_CONFIG, "default_hfov_deg", 0.0)
        png = _write_png(tmp_path / "in.png")
        out_dir = tmp_path / "out"
        assert main([str(png), "--output", str(out_dir)]) == 1
        assert "Field of view" in capsys.readouterr().err
        assert not out_dir.exists()

    def test_default_output_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(APP_CONFIG, "default_export_dir", str(tmp_path / "export"))
        png = _write_png(tmp_path / "face.png")
        assert main([str(png), "--seed", "1"]) == 0
        assert (tmp_path / "export" / "face_age1.png").exists()

    def test_single_age_png(self, tmp_path):
        png = _write_png(tmp_path / "face.png")
        out_dir = tmp_path / "out"
        assert main([str(png), "--output", str(out_dir), "--seed", "1"]) == 0

        result = out_dir / "face_age1.png"
        assert result.exists()
        with Image.open(result) as img:
            assert img.size == (24, 16)
            assert img.mode == "RGBA"

    def test_all_ages_jpeg(self, tmp_path):
        png = _write_png(tmp_path / "face.png")
        out_dir = tmp_path / "out"
        code = main(
            [str(png), "--all-ages", "--format", "jpeg", "--output", str(out_dir), "--kernel", "csf"]
        )
        assert code == 0
        assert sorted(p.name for p in out_dir.iterdir()) == [
            "face_age1.jpg",
            "face_age2.jpg",
            "face_age3.jpg",
        ]

    def test_extra_age_from_preset_file(self, tmp_path):
        png = _write_png(tmp_path / "face.png")
        f = tmp_path / "ages.json"
        f.write_text(json.dumps({"4": dict(AGE_PRESETS[3].to_dict(), label="4 months")}))
        out_dir = tmp_path / "out"
        assert main([str(png), "--age", "4", "--preset-file", str(f), "--output", str(out_dir)]) == 0
        assert (out_dir / "face_age4.png").exists()

    def test_seeded_runs_are_reproducible(self, tmp_path):
        png = _write_png(tmp_path / "face.png")
        outputs = []
        for name in ("a", "b"):
            out_dir = tmp_path / name
            assert main([str(png), "--seed", "5", "--color-model", "lms", "--output", str(out_dir)]) == 0
            with Image.open(out_dir / "face_age1.png") as img:
                outputs.append(np.array(img))
        assert np.array_equal(outputs[0], outputs[1])

    def test_unreadable_image_counts_as_failure(self, tmp_path, capsys):
        bad = tmp_path / "broken.png"
        bad.write_bytes(b"not an image")
        good = _write_png(tmp_path / "good.png")
        out_dir = tmp_path / "out"
        assert main([str(bad), str(good), "--output", str(out_dir)]) == 1
        assert (out_dir / "good_age1.png").exists()
        assert "FAILED" in capsys.readouterr().err
