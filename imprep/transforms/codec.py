"""
Image Codec
===========

Decode container-encoded samples (PNG, JPEG, ...) with OpenCV.
"""

import numpy as np

from .errors import ConfigurationError, UnsupportedInputError
from .samples import DecodedImage


def decode(encoded: bytes, force_color: bool = False, force_gray: bool = False) -> DecodedImage:
    """
    Decode an encoded image.

    Parameters
    ----------
    encoded : bytes
        Container-encoded image bytes
    force_color : bool
        Always decode to 3 channels
    force_gray : bool
        Always decode to a single channel

    Returns
    -------
    DecodedImage
        Unsigned-byte pixels in OpenCV's interleaved BGR order. Native
        decode keeps gray images single-channel, reduces deeper images to
        8 bits and drops any alpha channel.
    """
    if force_color and force_gray:
        raise ConfigurationError("Cannot set both force_color and force_gray")
    try:
        import cv2
    except ImportError as e:
        raise UnsupportedInputError("Encoded samples require OpenCV (opencv-python)") from e

    if force_color:
        flag = cv2.IMREAD_COLOR
    elif force_gray:
        flag = cv2.IMREAD_GRAYSCALE
    else:
        flag = cv2.IMREAD_ANYCOLOR

    buf = np.frombuffer(encoded, dtype=np.uint8)
    img = cv2.imdecode(buf, flag) if buf.size else None
    if img is None:
        raise UnsupportedInputError("Could not decode encoded sample")
    return DecodedImage(img)
