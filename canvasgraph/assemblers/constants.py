# canvasgraph/assemblers/constants.py
"""Stable node and graph ids.

The execution engine and the UI refer to nodes by these ids; changing one
breaks graphs assembled by older versions.
"""

# Graphs
INPAINT_GRAPH = "inpaint_graph"

# Base topology
SDXL_MODEL_LOADER = "sdxl_model_loader"
POSITIVE_CONDITIONING = "positive_conditioning"
NEGATIVE_CONDITIONING = "negative_conditioning"
INPAINT_INFILL = "inpaint_infill"
INPAINT_IMAGE = "inpaint_image"
MASK_FROM_ALPHA = "tomask"
MASK_COMBINE = "mask_combine"
MASK_BLUR = "mask_blur"
NOISE = "noise"
INPAINT = "inpaint"
LATENTS_TO_IMAGE = "latents_to_image"
COLOR_CORRECT = "color_correct"
CANVAS_OUTPUT = "canvas_output"
RANGE_OF_SIZE = "range_of_size"
ITERATE = "iterate"
RANDOM_INT = "rand_int"

# Bounding box scaling
INPAINT_IMAGE_RESIZE_UP = "inpaint_image_resize_up"
INPAINT_IMAGE_RESIZE_DOWN = "inpaint_image_resize_down"
MASK_RESIZE_UP = "mask_resize_up"
MASK_RESIZE_DOWN = "mask_resize_down"

# Augmentations
SDXL_REFINER_MODEL_LOADER = "sdxl_refiner_model_loader"
SDXL_REFINER_POSITIVE_CONDITIONING = "sdxl_refiner_positive_conditioning"
SDXL_REFINER_NEGATIVE_CONDITIONING = "sdxl_refiner_negative_conditioning"
SDXL_REFINER_DENOISE_LATENTS = "sdxl_refiner_denoise_latents"
VAE_LOADER = "vae_loader"
LORA_LOADER = "lora_loader"
CONTROL_NET_COLLECT = "control_net_collect"
NSFW_CHECKER = "nsfw_checker"
WATERMARKER = "watermarker"

# Nodes every finished outpaint graph must contain
OUTPAINT_ANCHORS = (
    SDXL_MODEL_LOADER,
    POSITIVE_CONDITIONING,
    NEGATIVE_CONDITIONING,
    CANVAS_OUTPUT,
)
