"""Gaussian spatial denoiser.

Small-kernel Gaussian blur used as the reference for AWGN (Additive White
Gaussian Noise). Defaults give a 3x3 kernel with sigma 0.75 and mirrored
borders (reflect-101), the usual OpenCV-style baseline.
Returns uint8 image in [0,255] range.
"""
from scipy.ndimage import gaussian_filter
import numpy as np


def denoise(image: np.ndarray, sigma: float = 0.75, radius: int = 1) -> np.ndarray:
    """Apply Gaussian blur denoising.

    Parameters
    ----------
    image: np.ndarray
        Grayscale image (uint8 [0,255], float [0,1], or arbitrary range)
    sigma: float
        Standard deviation for Gaussian kernel
    radius: int
        Kernel half-width; the kernel is (2*radius+1) x (2*radius+1)

    Returns
    -------
    np.ndarray
        Denoised image (uint8 [0,255] or float for arbitrary range)
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be > 0, got {sigma}")
    if radius < 1:
        raise ValueError(f"radius must be >= 1, got {radius}")

    # Handle different input ranges
    if image.dtype == np.uint8:
        img = image.astype(np.float32) / 255.0
        should_rescale = True
    elif image.max() > 1.0 or image.min() < 0.0:
        # Arbitrary range (e.g., log domain)
        img = image.astype(np.float32)
        should_rescale = False
    else:
        img = image.astype(np.float32)
        should_rescale = True

    # scipy sizes the kernel as int(truncate * sigma + 0.5)
    out = gaussian_filter(img, sigma=sigma, truncate=radius / sigma, mode="mirror")

    if should_rescale:
        out = np.clip(out, 0.0, 1.0)
        return np.rint(out * 255).astype(np.uint8)
    else:
        # Return in original arbitrary range
        return out
