# onion_quality/utils/image_io.py
import io
import os

import numpy as np
from PIL import Image, UnidentifiedImageError

from onion_quality.core.config import Config
from onion_quality.core.errors import ImageDecodeError


def load_image(source) -> Image.Image:
    """
    Accepts:
    - PIL.Image
    - bytes / bytearray
    - path (str / os.PathLike)
    - file-like object with .read() (Flask FileStorage, BytesIO, ...)

    Returns RGB PIL image. Raises ImageDecodeError when not decodable.
    """
    if isinstance(source, Image.Image):
        return source.convert("RGB")

    try:
        if isinstance(source, (bytes, bytearray)):
            img = Image.open(io.BytesIO(bytes(source)))
        elif isinstance(source, (str, os.PathLike)):
            img = Image.open(source)
        elif hasattr(source, "read"):
            img = Image.open(io.BytesIO(source.read()))
        else:
            raise ImageDecodeError(f"Unsupported image input type: {type(source).__name__}")

        # force decode now so a truncated file fails here, not in the model
        img.load()
        return img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Failed to load image: {e}") from e


def resize_for_classifier(img: Image.Image, size: int = Config.IMG_SIZE) -> Image.Image:
    """Square resize to the classifier input (224x224). Aspect ratio is not kept."""
    if img.size == (size, size):
        return img
    return img.resize((size, size))


def load_image_for_classification(source) -> Image.Image:
    return resize_for_classifier(load_image(source))


def to_model_batch(img: Image.Image) -> np.ndarray:
    """
    PIL RGB (224x224) -> batch numpy (1, H, W, 3) float32 normalised to [-1, 1],
    the same scaling Teachable Machine uses when training.
    """
    arr = np.asarray(img.convert("RGB"), dtype=np.float32)
    arr = (arr / 127.5) - 1.0
    return np.expand_dims(arr, axis=0)
