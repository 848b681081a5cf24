"""
Bilinear Resampler
==================

Resize a planar (C, H, W) region to a fixed output size with bilinear
interpolation. Corner pixels map onto corner pixels (align-corners grid).
"""

import numpy as np


def _source_coords(src: int, dst: int):
    """Floor indices, clamped +1 neighbours and fractional weights along one axis."""
    # A single output row/column samples source index 0.
    ratio = (src - 1) / (dst - 1) if dst > 1 else 0.0
    real = np.arange(dst, dtype=np.float64) * ratio
    lo = np.minimum(np.floor(real).astype(np.intp), src - 1)
    hi = np.minimum(lo + 1, src - 1)
    lam = real - lo
    return lo, hi, lam


def bilinear_resize(region: np.ndarray, dst_h: int, dst_w: int) -> np.ndarray:
    """
    Bilinear resize of a planar region.

    Parameters
    ----------
    region : np.ndarray
        Source values, shape (C, H, W) or (H, W)
    dst_h, dst_w : int
        Output height and width (>= 1)

    Returns
    -------
    np.ndarray
        Resized values with shape (C, dst_h, dst_w) or (dst_h, dst_w);
        float64 input stays float64, anything else becomes float32
    """
    if dst_h < 1 or dst_w < 1:
        raise ValueError(f"Output size must be positive, got {dst_h}x{dst_w}")
    dtype = np.float64 if region.dtype == np.float64 else np.float32
    squeeze = region.ndim == 2
    src = region[None] if squeeze else region
    src = src.astype(dtype, copy=False)
    src_h, src_w = src.shape[-2:]

    if (src_h, src_w) == (dst_h, dst_w):
        out = src.copy()
        return out[0] if squeeze else out

    h0, h1, lam_h = _source_coords(src_h, dst_h)
    w0, w1, lam_w = _source_coords(src_w, dst_w)
    lam_h = lam_h.astype(dtype)[:, None]
    lam_w = lam_w.astype(dtype)[None, :]

    # Same spatial weights for every channel
    top = src[:, h0][:, :, w0] * (1 - lam_w) + src[:, h0][:, :, w1] * lam_w
    bottom = src[:, h1][:, :, w0] * (1 - lam_w) + src[:, h1][:, :, w1] * lam_w
    out = top * (1 - lam_h) + bottom * lam_h
    out = out.astype(dtype, copy=False)
    return out[0] if squeeze else out
