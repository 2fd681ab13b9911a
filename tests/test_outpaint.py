"""Tests for the SDXL canvas outpaint assembler: base topology, seed and infill."""
import pytest

from canvasgraph import build_base_graph, build_canvas_outpaint_graph
from canvasgraph.assemblers import get_graph_builder, list_graph_builders
from canvasgraph.assemblers.constants import (
    CANVAS_OUTPUT,
    COLOR_CORRECT,
    INPAINT,
    INPAINT_GRAPH,
    INPAINT_IMAGE,
    INPAINT_IMAGE_RESIZE_DOWN,
    INPAINT_IMAGE_RESIZE_UP,
    INPAINT_INFILL,
    ITERATE,
    LATENTS_TO_IMAGE,
    MASK_BLUR,
    MASK_COMBINE,
    MASK_FROM_ALPHA,
    MASK_RESIZE_DOWN,
    MASK_RESIZE_UP,
    NEGATIVE_CONDITIONING,
    NOISE,
    POSITIVE_CONDITIONING,
    RANDOM_INT,
    RANGE_OF_SIZE,
    SDXL_MODEL_LOADER,
)
from canvasgraph.assemblers.infill import list_infill_methods, make_infill_node
from canvasgraph.core.graph import Edge, EdgeEndpoint, Graph
from canvasgraph.errors import ConfigurationError

BASE_NODES = {
    SDXL_MODEL_LOADER: "sdxl_model_loader",
    POSITIVE_CONDITIONING: "sdxl_compel_prompt",
    NEGATIVE_CONDITIONING: "sdxl_compel_prompt",
    INPAINT_INFILL: "infill_patchmatch",
    INPAINT_IMAGE: "i2l",
    MASK_FROM_ALPHA: "tomask",
    MASK_COMBINE: "mask_combine",
    MASK_BLUR: "img_blur",
    NOISE: "noise",
    INPAINT: "denoise_latents",
    LATENTS_TO_IMAGE: "l2i",
    COLOR_CORRECT: "color_correct",
    CANVAS_OUTPUT: "img_paste",
    RANGE_OF_SIZE: "range_of_size",
    ITERATE: "iterate",
}


class TestBaseTopology:
    def test_default_graph(self, base_config):
        graph = build_canvas_outpaint_graph(base_config)
        assert isinstance(graph, Graph)
        assert graph.id == INPAINT_GRAPH
        for node_id, node_type in BASE_NODES.items():
            assert graph[node_id].type == node_type
        # Base nodes, the random seed, nothing else
        assert len(graph.nodes) == len(BASE_NODES) + 1
        assert len(graph.edges) == 25

    def test_only_output_is_not_intermediate(self, base_config):
        graph = build_canvas_outpaint_graph(base_config)
        outputs = [n.id for n in graph.nodes.values() if not n.is_intermediate]
        assert outputs == [CANVAS_OUTPUT]

    def test_model_and_conditioning_wiring(self, base_config):
        graph = build_canvas_outpaint_graph(base_config)
        assert graph.get_writer(INPAINT, "unet") == EdgeEndpoint(SDXL_MODEL_LOADER, "unet")
        for conditioning in (POSITIVE_CONDITIONING, NEGATIVE_CONDITIONING):
            assert graph.get_writer(conditioning, "clip") == EdgeEndpoint(SDXL_MODEL_LOADER, "clip")
            assert graph.get_writer(conditioning, "clip2") == EdgeEndpoint(SDXL_MODEL_LOADER, "clip2")
        assert graph.get_writer(INPAINT, "positive_conditioning").node_id == POSITIVE_CONDITIONING
        assert graph.get_writer(INPAINT, "negative_conditioning").node_id == NEGATIVE_CONDITIONING

    def test_image_and_mask_path(self, base_config):
        graph = build_canvas_outpaint_graph(base_config)
        expected = [
            Edge.of(INPAINT_INFILL, "image", INPAINT_IMAGE, "image"),
            Edge.of(MASK_FROM_ALPHA, "mask", MASK_COMBINE, "mask1"),
            Edge.of(MASK_COMBINE, "image", MASK_BLUR, "image"),
            Edge.of(MASK_BLUR, "image", INPAINT, "mask"),
            Edge.of(NOISE, "noise", INPAINT, "noise"),
            Edge.of(INPAINT_IMAGE, "latents", INPAINT, "latents"),
            Edge.of(INPAINT, "latents", LATENTS_TO_IMAGE, "latents"),
            Edge.of(LATENTS_TO_IMAGE, "image", COLOR_CORRECT, "image"),
            Edge.of(INPAINT_INFILL, "image", COLOR_CORRECT, "reference"),
            Edge.of(MASK_BLUR, "image", COLOR_CORRECT, "mask"),
            Edge.of(INPAINT_INFILL, "image", CANVAS_OUTPUT, "base_image"),
            Edge.of(COLOR_CORRECT, "image", CANVAS_OUTPUT, "image"),
            Edge.of(MASK_BLUR, "image", CANVAS_OUTPUT, "mask"),
            Edge.of(RANGE_OF_SIZE, "collection", ITERATE, "collection"),
            Edge.of(ITERATE, "item", NOISE, "seed"),
        ]
        for edge in expected:
            assert edge in graph.edges, edge

    def test_node_values_follow_config(self, make_config):
        config = make_config(
            positive_style_prompt="watercolor",
            should_concat_style_prompt=False,
            steps=30,
            cfg_scale=5.0,
            scheduler="dpmpp_2m",
            mask_blur=8,
            mask_blur_method="gaussian",
            vae_precision="fp16",
            bounding_box={"width": 768, "height": 512},
        )
        graph = build_canvas_outpaint_graph(config)

        assert graph[POSITIVE_CONDITIONING].prompt == "a lighthouse on a cliff"
        assert graph[POSITIVE_CONDITIONING].style == "watercolor"
        assert graph[NEGATIVE_CONDITIONING].prompt == "blurry"
        assert graph[INPAINT].steps == 30
        assert graph[INPAINT].cfg_scale == 5.0
        assert graph[INPAINT].scheduler == "dpmpp_2m"
        assert graph[MASK_BLUR].radius == 8
        assert graph[MASK_BLUR].blur_type == "gaussian"
        assert graph[MASK_FROM_ALPHA].image == config.init_image
        assert graph[MASK_COMBINE].mask2 == config.mask_image
        assert graph[INPAINT_IMAGE].fp32 is False
        assert graph[LATENTS_TO_IMAGE].fp32 is False
        assert (graph[NOISE].width, graph[NOISE].height) == (768, 512)

    def test_noise_device(self, make_config):
        assert build_canvas_outpaint_graph(make_config())[NOISE].use_cpu is True

        config = make_config(should_use_noise_settings=False, should_use_cpu_noise=False)
        assert build_canvas_outpaint_graph(config)[NOISE].use_cpu is False

        config = make_config(should_use_noise_settings=True, should_use_cpu_noise=False)
        assert build_canvas_outpaint_graph(config)[NOISE].use_cpu is False

    def test_serialized_payload(self, base_config):
        data = build_canvas_outpaint_graph(base_config).to_dict()
        assert set(data) == {"id", "nodes", "edges"}
        assert data["nodes"][CANVAS_OUTPUT]["is_intermediate"] is False
        assert data["nodes"][SDXL_MODEL_LOADER]["model"]["model_name"] == "stable-diffusion-xl-base-1.0"

    def test_finished_graph_cannot_be_edited(self, base_config):
        graph = build_canvas_outpaint_graph(base_config)
        graph[INPAINT].steps = 3
        assert graph[INPAINT].steps == base_config.steps
        assert graph.to_dict()["nodes"][INPAINT]["steps"] == base_config.steps

    def test_deterministic(self, base_config):
        assert build_canvas_outpaint_graph(base_config) == build_canvas_outpaint_graph(base_config)

    def test_registered_by_name(self, base_config):
        assert "sdxl_canvas_outpaint" in list_graph_builders()
        assert get_graph_builder("sdxl_canvas_outpaint") is build_canvas_outpaint_graph
        with pytest.raises(KeyError, match="Available"):
            get_graph_builder("txt2img")


class TestDenoisingWindow:
    def test_strength_sets_start(self, make_config):
        graph = build_canvas_outpaint_graph(make_config(strength=0.7))
        assert graph[INPAINT].denoising_start == pytest.approx(0.3)
        assert graph[INPAINT].denoising_end == 1.0

    def test_full_strength(self, make_config):
        graph = build_canvas_outpaint_graph(make_config(strength=1.0))
        assert graph[INPAINT].denoising_start == 0.0


class TestSeed:
    def test_fixed_seed(self, make_config):
        graph = build_canvas_outpaint_graph(make_config(iterations=4, seed=42, should_randomize_seed=False))
        node = graph[RANGE_OF_SIZE]
        assert (node.size, node.step, node.start) == (4, 1, 42)
        assert RANDOM_INT not in graph
        assert graph.get_writer(RANGE_OF_SIZE, "start") is None

    def test_random_seed(self, make_config):
        graph = build_canvas_outpaint_graph(make_config(iterations=3, seed=42, should_randomize_seed=True))
        assert graph[RANDOM_INT].type == "rand_int"
        assert graph.get_writer(RANGE_OF_SIZE, "start") == EdgeEndpoint(RANDOM_INT, "a")
        assert graph[RANGE_OF_SIZE].start is None
        assert graph[RANGE_OF_SIZE].size == 3

    def test_seed_reaches_noise_through_iterator(self, base_config):
        graph = build_canvas_outpaint_graph(base_config)
        assert graph.has_path(RANGE_OF_SIZE, NOISE)
        assert graph.get_writer(NOISE, "seed") == EdgeEndpoint(ITERATE, "item")
        assert graph[NOISE].seed is None


class TestInfill:
    def test_methods(self):
        assert list_infill_methods() == ["patchmatch", "tile"]

    def test_tile(self, make_config):
        graph = build_canvas_outpaint_graph(make_config(infill_method="tile", tile_size=64))
        node = graph[INPAINT_INFILL]
        assert node.type == "infill_tile"
        assert node.tile_size == 64
        assert node.image.image_name == "canvas_init.png"

    def test_patchmatch(self, base_config):
        node = make_infill_node(base_config)
        assert node.type == "infill_patchmatch"
        assert node.id == INPAINT_INFILL

    def test_every_variant_feeds_the_same_ports(self, make_config):
        for method in list_infill_methods():
            graph = build_canvas_outpaint_graph(make_config(infill_method=method))
            infills = [n for n in graph.nodes.values() if n.type.startswith("infill_")]
            assert [n.type for n in infills] == [f"infill_{method}"]
            assert {e.destination for e in graph.get_edges_from(INPAINT_INFILL)} == {
                EdgeEndpoint(INPAINT_IMAGE, "image"),
                EdgeEndpoint(COLOR_CORRECT, "reference"),
                EdgeEndpoint(CANVAS_OUTPUT, "base_image"),
            }

    def test_unknown_method(self, make_config):
        with pytest.raises(ConfigurationError, match="Unknown infill method 'lama'"):
            build_base_graph(make_config(infill_method="lama"))


class TestScaledBoundingBox:
    @pytest.fixture
    def graph(self, make_config):
        config = make_config(
            bounding_box={"width": 512, "height": 512},
            scaled_bounding_box={"width": 1024, "height": 1024},
            bounding_box_scale_method="auto",
        )
        return build_canvas_outpaint_graph(config)

    def test_resize_nodes(self, graph):
        for node_id in (INPAINT_IMAGE_RESIZE_UP, MASK_RESIZE_UP):
            assert (graph[node_id].width, graph[node_id].height) == (1024, 1024)
        for node_id in (INPAINT_IMAGE_RESIZE_DOWN, MASK_RESIZE_DOWN):
            assert (graph[node_id].width, graph[node_id].height) == (512, 512)
        assert (graph[NOISE].width, graph[NOISE].height) == (1024, 1024)

    def test_wiring(self, graph):
        assert graph.get_writer(INPAINT_IMAGE, "image") == EdgeEndpoint(INPAINT_IMAGE_RESIZE_UP, "image")
        assert graph.get_writer(MASK_BLUR, "image") == EdgeEndpoint(MASK_RESIZE_UP, "image")
        assert graph.get_writer(COLOR_CORRECT, "image") == EdgeEndpoint(INPAINT_IMAGE_RESIZE_DOWN, "image")
        assert graph.get_writer(COLOR_CORRECT, "mask") == EdgeEndpoint(MASK_RESIZE_DOWN, "image")
        assert graph.get_writer(CANVAS_OUTPUT, "mask") == EdgeEndpoint(MASK_RESIZE_DOWN, "image")
        # The denoiser still gets the mask at the scaled size
        assert graph.get_writer(INPAINT, "mask") == EdgeEndpoint(MASK_BLUR, "image")

    def test_unscaled_keeps_direct_mask_wiring(self, make_config):
        config = make_config(
            scaled_bounding_box={"width": 2048, "height": 2048},
            bounding_box_scale_method="none",
        )
        graph = build_canvas_outpaint_graph(config)
        assert graph.nodes_of_type("img_resize") == []
        assert graph.get_writer(COLOR_CORRECT, "mask") == EdgeEndpoint(MASK_BLUR, "image")
        assert graph.get_writer(CANVAS_OUTPUT, "mask") == EdgeEndpoint(MASK_BLUR, "image")
        assert (graph[NOISE].width, graph[NOISE].height) == (1024, 1024)


class TestConfigurationErrors:
    def test_missing_model(self, make_config):
        with pytest.raises(ConfigurationError, match="No model found"):
            build_canvas_outpaint_graph(make_config(model=None))

    def test_missing_init_image(self, make_config):
        with pytest.raises(ConfigurationError, match="initial canvas image"):
            build_canvas_outpaint_graph(make_config(init_image=None))

    def test_refiner_without_model(self, make_config):
        with pytest.raises(ConfigurationError, match="no refiner model"):
            build_base_graph(make_config(should_use_sdxl_refiner=True))

    def test_errors_are_value_errors(self, make_config):
        with pytest.raises(ValueError):
            build_canvas_outpaint_graph(make_config(model=None))
