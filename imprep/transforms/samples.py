"""
Samples
=======

Input representations accepted by the transform engine.

Every variant exposes ``channels``, ``height``, ``width`` and ``planar()``,
the sample's values as a channel-major (C, H, W) array, so cropping,
resampling and normalization run on one shared code path.
"""

from dataclasses import dataclass, field
from typing import Sequence, Union

import numpy as np
import torch
from PIL import Image

from .errors import ShapeMismatchError, UnsupportedInputError


@dataclass
class RawSample:
    """
    Serialized sample: a flat pixel buffer plus its dimensions.

    Parameters
    ----------
    channels, height, width : int
        Dimensions of the stored image
    data : bytes
        Unsigned-byte pixels in (C, H, W) order, or the encoded container
        bytes when ``encoded`` is set
    float_data : sequence of float
        Floating-point pixels in (C, H, W) order, used when ``data`` is empty
    encoded : bool
        ``data`` holds a PNG/JPEG/... image that must be decoded first
    """
    channels: int
    height: int
    width: int
    data: bytes = b""
    float_data: Sequence[float] = field(default_factory=tuple)
    encoded: bool = False

    @property
    def has_uint8(self) -> bool:
        return len(self.data) > 0

    def planar(self) -> np.ndarray:
        if self.encoded:
            raise UnsupportedInputError("Encoded samples must be decoded before use")
        if self.channels <= 0:
            raise ShapeMismatchError(f"Sample must have channels > 0, got {self.channels}")
        shape = (self.channels, self.height, self.width)
        if self.has_uint8:
            values = np.frombuffer(bytes(self.data), dtype=np.uint8)
        else:
            values = np.asarray(self.float_data, dtype=np.float32)
        if values.size != int(np.prod(shape)):
            raise ShapeMismatchError(
                f"Sample holds {values.size} values, expected {shape} = {int(np.prod(shape))}"
            )
        return values.reshape(shape)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "RawSample":
        """Serialize a (C, H, W) array: uint8 to ``data``, anything else to ``float_data``."""
        pixels = np.asarray(pixels)
        if pixels.ndim != 3:
            raise ShapeMismatchError(f"Expected a (C, H, W) array, got shape {pixels.shape}")
        c, h, w = pixels.shape
        if pixels.dtype == np.uint8:
            return cls(c, h, w, data=pixels.tobytes())
        return cls(c, h, w, float_data=pixels.astype(np.float32).ravel())

    @classmethod
    def from_encoded(cls, encoded: bytes) -> "RawSample":
        """Wrap container-encoded bytes; dimensions are known only after decoding."""
        return cls(0, 0, 0, data=bytes(encoded), encoded=True)


class DecodedImage:
    """Interleaved (H, W, C) or (H, W) unsigned-byte image."""

    def __init__(self, pixels: np.ndarray):
        pixels = np.asarray(pixels)
        if pixels.dtype != np.uint8:
            raise UnsupportedInputError(f"Image data type must be unsigned byte, got {pixels.dtype}")
        if pixels.ndim == 2:
            pixels = pixels[:, :, None]
        if pixels.ndim != 3:
            raise ShapeMismatchError(f"Expected an (H, W, C) image, got shape {pixels.shape}")
        self.pixels = pixels

    @classmethod
    def from_pil(cls, img: Image.Image) -> "DecodedImage":
        if img.mode not in ("L", "RGB", "RGBA"):
            img = img.convert("RGB")
        return cls(np.array(img))

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]

    def planar(self) -> np.ndarray:
        return self.pixels.transpose(2, 0, 1)


class PrecomputedTensor:
    """Already numeric (N, C, H, W) values, e.g. a previous transform's output."""

    def __init__(self, values):
        if isinstance(values, torch.Tensor):
            values = values.detach().cpu().numpy()
        values = np.asarray(values)
        if values.ndim == 3:
            values = values[None]
        if values.ndim != 4:
            raise ShapeMismatchError(f"Expected an (N, C, H, W) tensor, got shape {values.shape}")
        if values.dtype.kind not in "fiu":
            raise UnsupportedInputError(f"Tensor must be numeric, got {values.dtype}")
        self.values = values

    @property
    def num(self) -> int:
        return self.values.shape[0]

    @property
    def channels(self) -> int:
        return self.values.shape[1]

    @property
    def height(self) -> int:
        return self.values.shape[2]

    @property
    def width(self) -> int:
        return self.values.shape[3]

    def planar(self) -> np.ndarray:
        """All items, shape (N, C, H, W)."""
        return self.values


Sample = Union[RawSample, DecodedImage, PrecomputedTensor]


def as_image(obj) -> DecodedImage:
    """Accept a DecodedImage, PIL image or (H, W[, C]) uint8 array."""
    if isinstance(obj, DecodedImage):
        return obj
    if isinstance(obj, Image.Image):
        return DecodedImage.from_pil(obj)
    if isinstance(obj, np.ndarray):
        return DecodedImage(obj)
    raise UnsupportedInputError(f"Cannot use {type(obj).__name__} as an image")


def as_sample(obj) -> Sample:
    """Wrap loosely typed inputs in the matching sample variant."""
    if isinstance(obj, (RawSample, DecodedImage, PrecomputedTensor)):
        return obj
    if isinstance(obj, Image.Image):
        return DecodedImage.from_pil(obj)
    if isinstance(obj, torch.Tensor):
        return PrecomputedTensor(obj)
    if isinstance(obj, np.ndarray):
        if obj.dtype == np.uint8 and obj.ndim in (2, 3):
            return DecodedImage(obj)
        return PrecomputedTensor(obj)
    raise UnsupportedInputError(f"Unsupported sample type: {type(obj).__name__}")
