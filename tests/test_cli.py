"""Tests for the canvasgraph command line."""
import json

import pytest

from canvasgraph.cli import main

CONFIG_YAML = """
model:
  model_name: stable-diffusion-xl-base-1.0
init_image:
  image_name: canvas.png
mask_image:
  image_name: mask.png
positive_prompt: a harbor at dusk
should_randomize_seed: false
seed: 11
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "outpaint.yaml"
    path.write_text(CONFIG_YAML)
    return path


class TestCLI:
    def test_build_json(self, config_path, capsys):
        assert main(["build", str(config_path)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["id"] == "inpaint_graph"
        assert data["nodes"]["range_of_size"]["start"] == 11
        assert data["nodes"]["positive_conditioning"]["prompt"] == "a harbor at dusk"

    def test_build_with_overrides(self, config_path, capsys):
        argv = ["build", str(config_path), "--set", "iterations=3", "--set", "should_use_watermarker=true"]
        assert main(argv) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["nodes"]["range_of_size"]["size"] == 3
        assert "watermarker" in data["nodes"]

    def test_build_mermaid(self, config_path, capsys):
        assert main(["build", str(config_path), "--format", "mermaid"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("graph LR")
        assert "canvas_output" in out

    def test_validate(self, config_path, capsys):
        assert main(["validate", str(config_path)]) == 0
        assert "Graph 'inpaint_graph' is valid: 15 nodes, 24 edges" in capsys.readouterr().out

    def test_list(self, capsys):
        assert main(["list"]) == 0
        out = capsys.readouterr().out
        assert "sdxl_canvas_outpaint" in out
        assert "denoise_latents" in out

    def test_configuration_error(self, config_path, capsys):
        assert main(["build", str(config_path), "--set", "infill_method=lama"]) == 1
        assert capsys.readouterr().out == ""

    def test_missing_config_file(self, tmp_path):
        assert main(["validate", str(tmp_path / "missing.yaml")]) == 1

    def test_unknown_graph(self, config_path):
        assert main(["build", str(config_path), "--graph", "txt2img"]) == 2

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main([])
