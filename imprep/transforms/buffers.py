"""
Buffers
=======

Thin adapter over destination / source buffers. numpy arrays and CPU torch
tensors are both addressed as (num, channels, height, width) blobs.
"""

from typing import Tuple

import numpy as np
import torch

from .errors import ShapeMismatchError, UnsupportedInputError

BlobShape = Tuple[int, int, int, int]


def is_tensor(buf) -> bool:
    return isinstance(buf, torch.Tensor)


def as_array(buf) -> np.ndarray:
    """Numpy view sharing memory with ``buf`` (writes go through)."""
    if is_tensor(buf):
        if buf.device.type != "cpu":
            raise UnsupportedInputError(f"Buffers must live on the CPU, got device {buf.device}")
        return buf.detach().numpy()
    if isinstance(buf, np.ndarray):
        return buf
    raise UnsupportedInputError(f"Unsupported buffer type: {type(buf).__name__}")


def check_writable(arr: np.ndarray) -> np.ndarray:
    """Destinations receive normalized values and must be floating point."""
    if arr.dtype.kind != "f":
        raise UnsupportedInputError(f"Destination must be floating point, got {arr.dtype}")
    return arr


def blob_shape(buf) -> BlobShape:
    """(num, channels, height, width) of a 3-D or 4-D buffer."""
    shape = tuple(buf.shape)
    if len(shape) == 3:
        return (1,) + shape
    if len(shape) == 4:
        return shape
    raise ShapeMismatchError(f"Expected a (N, C, H, W) or (C, H, W) buffer, got shape {shape}")


def as_blob(buf) -> np.ndarray:
    """Writable floating-point 4-D numpy view of ``buf``."""
    arr = check_writable(as_array(buf))
    return arr.reshape(blob_shape(arr))


def element_count(buf) -> int:
    return int(np.prod(buf.shape)) if buf is not None else 0


def allocate(shape: BlobShape, like=None) -> object:
    """
    New zeroed float buffer of ``shape``, a torch tensor when ``like`` is one.

    ``like``'s dtype is kept only when it is floating point; integer sources
    get float32 so mean subtraction is not truncated.
    """
    if is_tensor(like):
        dtype = like.dtype if like.is_floating_point() else torch.float32
        return torch.zeros(shape, dtype=dtype)
    dtype = like.dtype if isinstance(like, np.ndarray) and like.dtype.kind == "f" else np.float32
    return np.zeros(shape, dtype=dtype)
