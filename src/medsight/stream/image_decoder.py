"""
Image Decoder
=============

Dedicated module for decoding base64 or raw image bytes into RGB arrays.

Design Rules:
    - This is the ONLY place in the codebase that decodes images
    - Output is RGB (OpenCV decodes BGR; channels are swapped here)
    - Validates shape and dtype
    - Fails fast on corrupt frames
"""

import base64
import binascii
import logging

import cv2
import numpy as np

from medsight.stream.frame import Frame


logger = logging.getLogger(__name__)


class ImageDecodeError(Exception):
    """Raised when image decoding fails."""
    pass


def _strip_data_url(image_b64: str) -> str:
    # Browsers send "data:image/jpeg;base64,<payload>" from FileReader/canvas
    if image_b64.startswith("data:") and "," in image_b64:
        return image_b64.split(",", 1)[1]
    return image_b64


def decode_image_bytes(data: bytes, label: str = "image") -> np.ndarray:
    """
    Decode encoded image bytes (JPEG, PNG, ...) to an RGB array.

    Args:
        data: Encoded image bytes
        label: Name used in error messages

    Returns:
        RGB image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        ImageDecodeError: If decoding fails or image is invalid
    """
    if not data:
        raise ImageDecodeError(f"Empty payload for {label}")

    nparr = np.frombuffer(data, np.uint8)
    bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if bgr is None:
        raise ImageDecodeError(f"Failed to decode {label}: cv2.imdecode returned None")

    if len(bgr.shape) != 3 or bgr.shape[2] != 3:
        raise ImageDecodeError(f"Invalid image shape for {label}: {bgr.shape}")

    if bgr.dtype != np.uint8:
        raise ImageDecodeError(f"Invalid dtype for {label}: {bgr.dtype}")

    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def decode_base64_image(image_b64: str, label: str = "image") -> np.ndarray:
    """
    Decode a base64 (optionally data-URL) image string to an RGB array.

    Raises:
        ImageDecodeError: If base64 or image decoding fails
    """
    try:
        image_bytes = base64.b64decode(_strip_data_url(image_b64), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Base64 decode failed for {label}: {e}")
    return decode_image_bytes(image_bytes, label=label)


def decode_frame_rgb(frame: Frame) -> np.ndarray:
    """
    Decode a stream frame to an RGB array.

    Args:
        frame: Frame with base64-encoded image

    Returns:
        RGB image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        ImageDecodeError: If decoding fails or image is invalid
    """
    return decode_base64_image(frame.image_b64, label=f"frame {frame.frame_id}")


def encode_image_base64(rgb: np.ndarray, ext: str = ".png") -> str:
    """
    Encode an RGB array as a base64 image string.

    Used by tools and tests to build frame payloads.
    """
    bgr = cv2.cvtColor(np.ascontiguousarray(rgb, dtype=np.uint8), cv2.COLOR_RGB2BGR)
    ok, buf = cv2.imencode(ext, bgr)
    if not ok:
        raise ImageDecodeError(f"Failed to encode image as {ext}")
    return base64.b64encode(buf.tobytes()).decode("ascii")
