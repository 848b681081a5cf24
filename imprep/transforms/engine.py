"""
Data Transformer
================

Turn raw samples into fixed-shape, normalized (N, C, H, W) blobs.

Every input representation (serialized byte / float buffers, decoded images,
pre-existing numeric tensors) runs through the same steps:

1. validate the sample against the crop size and mean profile
2. pick the crop and mirror flag (GeometrySolver, AttentionSampler)
3. resample the crop if its size differs from the output (random area)
4. subtract the mean and scale (Normalizer)
5. write planar output, mirrored columns reversed

A DataTransformer owns its random generator and is not safe for
unsynchronized use from several threads; give each worker its own engine.
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from . import codec
from .attention import AttentionSampler, as_weight_map
from .buffers import BlobShape, allocate, as_array, as_blob, check_writable, element_count
from .config import AugmentationConfig, Phase
from .errors import ShapeMismatchError, UnsupportedInputError
from .geometry import CropSpec, GeometrySolver
from .normalizer import MeanProfile, Normalizer
from .random_policy import RandomPolicy
from .resampler import bilinear_resize
from .samples import DecodedImage, PrecomputedTensor, RawSample, as_image, as_sample

logger = logging.getLogger(__name__)


class DataTransformer:
    """
    Crop, mirror, resample and normalize samples for training.

    Parameters
    ----------
    config : AugmentationConfig
        Augmentation settings (shared, read-only)
    mean_profile : MeanProfile, optional
        Normalization baseline; built from ``config.mean_file`` /
        ``config.mean_value`` when omitted
    """

    def __init__(self, config: AugmentationConfig, mean_profile: Optional[MeanProfile] = None):
        self.config = config
        self.mean_profile = mean_profile if mean_profile is not None else MeanProfile.from_config(config)
        self.rng = RandomPolicy(config)
        self.geometry = GeometrySolver(config, self.rng)
        self.attention = AttentionSampler(self.rng)
        self.normalizer = Normalizer(self.mean_profile, config.scale)
        logger.info(
            f"DataTransformer: phase={config.phase.value} crop_size={config.crop_size} "
            f"mirror={config.mirror} random_crop={config.random_crop} "
            f"scale={config.scale} mean={self.mean_profile!r}"
        )

    def init_rand(self) -> None:
        self.rng.init_rand()

    # -----------------------------
    # Validation helpers
    # -----------------------------
    def _check_sample(self, channels: int, height: int, width: int) -> None:
        if channels <= 0:
            raise ShapeMismatchError(f"Sample must have channels > 0, got {channels}")
        self.geometry.check_source(height, width)
        self.mean_profile.check(channels, height, width)

    def _check_dest(self, shape: BlobShape, channels: int, height: int, width: int) -> None:
        num, dst_c, dst_h, dst_w = shape
        if num < 1:
            raise ShapeMismatchError("Destination must hold at least one item")
        if dst_c != channels:
            raise ShapeMismatchError(f"Destination has {dst_c} channels, sample has {channels}")
        expected = self.geometry.target_size(height, width)
        if (dst_h, dst_w) != expected:
            raise ShapeMismatchError(
                f"Destination is {dst_h}x{dst_w}, expected {expected[0]}x{expected[1]} "
                f"(crop_size={self.config.crop_size}, source {height}x{width})"
            )

    def _decode(self, sample: RawSample) -> DecodedImage:
        return codec.decode(sample.data, self.config.force_color, self.config.force_gray)

    def _warn_force_flags(self) -> None:
        if self.config.force_color or self.config.force_gray:
            logger.error("force_color and force_gray only for encoded datum")

    # -----------------------------
    # Shared pipeline
    # -----------------------------
    def _apply(self, planar: np.ndarray, crop: CropSpec, out: np.ndarray) -> None:
        """Crop, resample, normalize and (mirrored) write one (C, H, W) item into ``out``."""
        channels = planar.shape[0]
        target_h, target_w = out.shape[-2:]
        rows, cols = crop.slices()

        region = planar[:, rows, cols].astype(out.dtype)
        mean = self.mean_profile.region(channels, crop)
        if crop.needs_resample(target_h, target_w):
            region = bilinear_resize(region, target_h, target_w)
            if mean is not None and mean.shape[-2:] != (1, 1):
                mean = bilinear_resize(mean, target_h, target_w)

        values = self.normalizer.normalize(region, mean)
        if crop.mirror:
            values = values[..., ::-1]
        out[...] = values

    def _sample_center(self, weights, height: int, width: int) -> Optional[Tuple[int, int]]:
        if weights is None:
            return None
        if self.config.phase is not Phase.TRAIN or not self.config.crop_size:
            return None
        weights = as_weight_map(weights)
        if weights.shape != (height, width):
            raise ShapeMismatchError(
                f"Attention map {weights.shape} does not match image {(height, width)}"
            )
        return self.attention.sample_center(weights)

    # -----------------------------
    # Serialized samples
    # -----------------------------
    def transform_into(self, sample: RawSample, flat_buffer) -> None:
        """
        Transform a serialized (non-encoded) sample into a flat buffer.

        The first C * H * W elements of ``flat_buffer`` receive the planar
        output, H and W being the crop size (or the source size without
        cropping).
        """
        if sample.encoded:
            raise UnsupportedInputError("Encoded samples need a shaped destination, use transform()")
        self._check_sample(sample.channels, sample.height, sample.width)
        target_h, target_w = self.geometry.target_size(sample.height, sample.width)
        count = sample.channels * target_h * target_w

        arr = check_writable(as_array(flat_buffer))
        if not arr.flags.c_contiguous:
            raise ShapeMismatchError("Destination buffer must be contiguous")
        if arr.size < count:
            raise ShapeMismatchError(f"Destination holds {arr.size} elements, need {count}")
        self._transform_raw(sample, arr.reshape(-1)[:count].reshape(sample.channels, target_h, target_w))

    def transform(self, sample: RawSample, dest) -> None:
        """Transform one serialized sample into item 0 of a (N, C, H, W) destination."""
        if sample.encoded:
            return self.transform_image(self._decode(sample), dest)
        self._warn_force_flags()
        self._check_sample(sample.channels, sample.height, sample.width)
        blob = as_blob(dest)
        self._check_dest(blob.shape, sample.channels, sample.height, sample.width)
        self._transform_raw(sample, blob[0])

    def _transform_raw(self, sample: RawSample, out: np.ndarray) -> None:
        # sample and out are already validated
        crop = self.geometry.solve(sample.height, sample.width)
        self._apply(sample.planar(), crop, out)

    def transform_batch(self, samples: Sequence[RawSample], dest) -> None:
        """
        Transform serialized samples into consecutive destination items.

        The batch may be smaller than the destination; trailing items are
        left untouched.
        """
        num_samples = len(samples)
        blob = as_blob(dest)
        if num_samples == 0:
            raise ShapeMismatchError("There is no datum to add")
        if num_samples > blob.shape[0]:
            raise ShapeMismatchError(
                f"Batch of {num_samples} does not fit a destination of {blob.shape[0]} items"
            )
        for item_id, sample in enumerate(samples):
            self.transform(sample, blob[item_id:item_id + 1])

    # -----------------------------
    # Decoded images
    # -----------------------------
    def transform_image(self, image, dest, attention=None) -> None:
        """
        Transform one decoded uint8 image into item 0 of ``dest``.

        Parameters
        ----------
        image : DecodedImage, PIL.Image.Image or np.ndarray
            Interleaved (H, W, C) or (H, W) unsigned-byte pixels
        dest : np.ndarray or torch.Tensor
            (N, C, H, W) destination
        attention : array-like, optional
            (H, W) non-negative importance weights; in TRAIN the crop is
            centered on a weighted-random pixel
        """
        image = as_image(image)
        self._check_sample(image.channels, image.height, image.width)
        blob = as_blob(dest)
        self._check_dest(blob.shape, image.channels, image.height, image.width)

        center = self._sample_center(attention, image.height, image.width)
        crop = self.geometry.solve(image.height, image.width, center)
        self._apply(image.planar(), crop, blob[0])

    def transform_images(self, images: Sequence, dest, attentions: Optional[Sequence] = None) -> None:
        """Transform decoded images; the batch must exactly fill the destination."""
        num_images = len(images)
        blob = as_blob(dest)
        if num_images == 0:
            raise ShapeMismatchError("There is no image to add")
        if num_images != blob.shape[0]:
            raise ShapeMismatchError(
                f"Batch of {num_images} images must equal destination size {blob.shape[0]}"
            )
        if attentions is not None and len(attentions) != num_images:
            raise ShapeMismatchError(f"Got {len(attentions)} attention maps for {num_images} images")
        for item_id, image in enumerate(images):
            weights = attentions[item_id] if attentions is not None else None
            self.transform_image(image, blob[item_id:item_id + 1], attention=weights)

    # -----------------------------
    # Numeric tensors
    # -----------------------------
    def transform_tensor(self, source, dest=None):
        """
        Transform a pre-existing (N, C, H, W) tensor.

        One crop and one mirror decision are shared by the whole batch and
        random-area resampling is not applied. The source is not modified.

        Returns
        -------
        np.ndarray or torch.Tensor
            ``dest``, allocated with the inferred shape when None or empty
        """
        tensor = source if isinstance(source, PrecomputedTensor) else PrecomputedTensor(source)
        num, channels, height, width = tensor.values.shape
        if dest is None or element_count(dest) == 0:
            target_h, target_w = self.geometry.target_size(height, width)
            like = dest if dest is not None else source
            dest = allocate((num, channels, target_h, target_w), like=like)

        blob = as_blob(dest)
        if num > blob.shape[0]:
            raise ShapeMismatchError(f"Source holds {num} items, destination only {blob.shape[0]}")
        self._check_sample(channels, height, width)
        self._check_dest(blob.shape, channels, height, width)

        crop = self.geometry.solve(height, width, allow_resample=False)
        self._apply_batch(tensor.planar(), crop, blob[:num])
        return dest

    def _apply_batch(self, values: np.ndarray, crop: CropSpec, out: np.ndarray) -> None:
        rows, cols = crop.slices()
        region = values[:, :, rows, cols].astype(out.dtype)
        mean = self.mean_profile.region(values.shape[1], crop)
        result = self.normalizer.normalize(region, mean)
        if crop.mirror:
            result = result[..., ::-1]
        out[...] = result

    # -----------------------------
    # Shapes
    # -----------------------------
    def infer_shape(self, sample) -> BlobShape:
        """
        Destination shape for a sample or a homogeneous batch.

        Returns
        -------
        tuple
            (1, C, H, W) for one sample, (N, C, H, W) for a list of N samples
            (shape taken from the first one); H and W are the crop size when
            cropping is configured
        """
        if isinstance(sample, (list, tuple)):
            if not sample:
                raise ShapeMismatchError("There is no sample in the batch")
            _, channels, height, width = self.infer_shape(sample[0])
            return (len(sample), channels, height, width)

        num = 1
        if isinstance(sample, RawSample) and sample.encoded:
            sample = self._decode(sample)
        sample = as_sample(sample)
        if isinstance(sample, PrecomputedTensor):
            num = sample.num
        if sample.channels <= 0:
            raise ShapeMismatchError(f"Sample must have channels > 0, got {sample.channels}")
        self.geometry.check_source(sample.height, sample.width)
        height, width = self.geometry.target_size(sample.height, sample.width)
        return (num, sample.channels, height, width)

    def __call__(self, sample, attention=None):
        """Transform a single sample into a newly allocated destination."""
        sample = as_sample(sample)
        if isinstance(sample, PrecomputedTensor):
            return self.transform_tensor(sample)
        if isinstance(sample, RawSample) and sample.encoded:
            sample = self._decode(sample)
        dest = np.zeros(self.infer_shape(sample), dtype=np.float32)
        if isinstance(sample, RawSample):
            if attention is not None:
                raise UnsupportedInputError("Attention cropping needs an image sample")
            self.transform(sample, dest)
        else:
            self.transform_image(sample, dest, attention=attention)
        return dest
