"""
Transform Presets
=================

Standard augmentation configs shared between training and evaluation.
Ensures both sides crop to the same size and subtract the same means.
"""

from imprep.transforms import AugmentationConfig, Phase

# Per-channel ImageNet means in OpenCV's BGR order, 0-255 range
IMAGENET_MEAN_BGR = (104.0, 117.0, 123.0)

# Training config (random crop + mirror)
TRAIN_CONFIG = AugmentationConfig(
    crop_size=227,
    mirror=True,
    mean_value=IMAGENET_MEAN_BGR,
    phase=Phase.TRAIN,
)

# Evaluation config (deterministic center crop, no augmentation)
EVAL_CONFIG = AugmentationConfig(
    crop_size=227,
    mirror=False,
    mean_value=IMAGENET_MEAN_BGR,
    phase=Phase.EVAL,
)

# Scale / aspect ratio augmentation, resampled to 224x224
RANDOM_AREA_CONFIG = AugmentationConfig(
    crop_size=224,
    mirror=True,
    mean_value=IMAGENET_MEAN_BGR,
    random_crop=True,
    crop_area=(0.08, 1.0),
    aspect_ratio=(3.0 / 4.0, 4.0 / 3.0),
    phase=Phase.TRAIN,
)

# Inference uses the evaluation config
INFERENCE_CONFIG = EVAL_CONFIG
