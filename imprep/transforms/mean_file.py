"""
Mean File
=========

Load, save and compute per-pixel mean maps used for normalization.
"""

import logging
import pathlib
from typing import Optional, Tuple, Union

import numpy as np
import pandas as pd
from PIL import Image
from tqdm import tqdm

from .errors import ShapeMismatchError

logger = logging.getLogger(__name__)

PathLike = Union[str, pathlib.Path]


def load_mean_file(path: PathLike) -> np.ndarray:
    """
    Load a mean map stored as .npy or .npz.

    Parameters
    ----------
    path : str or Path
        Mean file. For .npz archives the ``mean`` entry is used if present,
        otherwise the first array

    Returns
    -------
    np.ndarray
        Mean map of shape (C, H, W), float32
    """
    path = pathlib.Path(path)
    logger.info(f"Loading mean file from: {path}")
    if not path.exists():
        raise FileNotFoundError(f"Mean file not found: {path}")

    if path.suffix == ".npz":
        with np.load(path) as archive:
            key = "mean" if "mean" in archive.files else archive.files[0]
            mean = archive[key]
    else:
        mean = np.load(path)

    mean = np.asarray(mean, dtype=np.float32)
    if mean.ndim == 4 and mean.shape[0] == 1:
        mean = mean[0]
    if mean.ndim != 3:
        raise ShapeMismatchError(f"Mean map in {path} must have shape (C, H, W), got {mean.shape}")
    return mean


def save_mean_file(mean_map: np.ndarray, path: PathLike) -> pathlib.Path:
    """Save a (C, H, W) mean map as .npy."""
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.save(path, np.asarray(mean_map, dtype=np.float32))
    return path


def _load_planar(image_path: str, mode: Optional[str]) -> np.ndarray:
    img = Image.open(image_path)
    if mode is not None and img.mode != mode:
        img = img.convert(mode)
    pixels = np.array(img, dtype=np.float64)
    if pixels.ndim == 2:
        return pixels[None]
    return pixels.transpose(2, 0, 1)


def compute_mean_map(
    catalog: pd.DataFrame,
    image_column: str = "image_path",
    mode: Optional[str] = "RGB",
    expected_shape: Optional[Tuple[int, int, int]] = None,
) -> np.ndarray:
    """
    Average the pixels of every image in a catalog.

    Parameters
    ----------
    catalog : pd.DataFrame
        Catalog with one image path per row
    image_column : str
        Column holding the image paths
    mode : str, optional
        PIL mode images are converted to ('RGB', 'L'), None keeps the file's mode
    expected_shape : tuple, optional
        (C, H, W) every image must have; defaults to the first image's shape

    Returns
    -------
    np.ndarray
        Mean map of shape (C, H, W), float32
    """
    if image_column not in catalog.columns:
        raise KeyError(f"Catalog has no column {image_column!r}")

    total = None
    count = 0
    skipped_count = 0

    for image_path in tqdm(catalog[image_column], desc="Computing mean map"):
        try:
            pixels = _load_planar(image_path, mode)
        except (OSError, ValueError) as e:
            skipped_count += 1
            logger.warning(f"Failed to load image {image_path}: {e}")
            continue

        if expected_shape is None:
            expected_shape = pixels.shape
        if pixels.shape != tuple(expected_shape):
            raise ShapeMismatchError(
                f"Image {image_path} has shape {pixels.shape}, expected {tuple(expected_shape)}"
            )
        total = pixels if total is None else total + pixels
        count += 1

    if skipped_count > 0:
        logger.warning(f"Skipped {skipped_count} images due to errors")
    if count == 0:
        raise ValueError("No images could be loaded from the catalog")

    logger.info(f"Computed mean map {total.shape} over {count} images")
    return (total / count).astype(np.float32)
