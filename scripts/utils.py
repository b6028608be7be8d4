"""Utility functions: metrics and IO helpers."""
import numpy as np
from skimage import color
from skimage.metrics import peak_signal_noise_ratio, structural_similarity
from skimage.io import imread, imsave


def _normalize_to_float(img):
    """Normalize image to [0,1] float for metric computation."""
    if np.issubdtype(img.dtype, np.unsignedinteger):
        # uint8, uint16 (16-bit PNG), ... span their full dtype range
        return img.astype(np.float32) / float(np.iinfo(img.dtype).max)
    img = img.astype(np.float32)
    if img.max() > 1.0:
        return img / 255.0
    return img


def to_uint8(img: np.ndarray) -> np.ndarray:
    """Convert an unsigned-integer, float [0,1] or [0,255] image to uint8."""
    if img.dtype == np.uint8:
        return img
    arr = _normalize_to_float(img)
    return np.rint(np.clip(arr, 0.0, 1.0) * 255).astype(np.uint8)


def mse(a: np.ndarray, b: np.ndarray) -> float:
    a = _normalize_to_float(a)
    b = _normalize_to_float(b)
    return float(np.mean((a - b) ** 2))


def psnr(a: np.ndarray, b: np.ndarray) -> float:
    a = _normalize_to_float(a)
    b = _normalize_to_float(b)
    return float(peak_signal_noise_ratio(a, b, data_range=1.0))


def ssim(a: np.ndarray, b: np.ndarray) -> float:
    a = _normalize_to_float(a)
    b = _normalize_to_float(b)
    return float(structural_similarity(a, b, data_range=1.0))


def compute_metrics(clean: np.ndarray, denoised: np.ndarray) -> dict:
    return {"mse": mse(clean, denoised), "psnr": psnr(clean, denoised), "ssim": ssim(clean, denoised)}


def load_image(path) -> np.ndarray:
    """Read an image file as single-channel uint8."""
    img = imread(str(path))
    if img.ndim == 3 and img.shape[2] <= 2:
        # gray or gray + alpha
        img = img[:, :, 0]
    elif img.ndim == 3:
        if img.shape[2] == 4:
            img = img[:, :, :3]
        # rgb2gray returns float [0,1]
        img = color.rgb2gray(img)
    return to_uint8(img)


def save_image(img: np.ndarray, path):
    """Save image to file. Handles both uint8 and float inputs."""
    imsave(str(path), to_uint8(img), check_contrast=False)
