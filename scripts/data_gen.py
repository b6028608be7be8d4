"""Synthetic dataset generator for grayscale images with AWGN and impulse noise.

This module provides a small demo generator that returns a list of dicts with keys:
- name: str
- clean: numpy array (float64, 0-1)
- noisy: numpy array (float64, 0-1)
- noise_type: 'awgn' or 'sp'

The generator does not save files by default; `main.py` will handle saving.
"""
from skimage import data, color, img_as_float
from skimage.transform import resize
import numpy as np


def add_awgn(image, sigma=0.05, seed=0):
    rng = np.random.RandomState(seed)
    noise = rng.normal(0, sigma, image.shape)
    out = image + noise
    out = np.clip(out, 0.0, 1.0)
    return out


def add_salt_pepper(image, amount=0.05, seed=0):
    """Set a fraction `amount` of pixels to 1.0 (salt) or 0.0 (pepper).

    Coordinates are drawn with replacement, so the realised density can be
    slightly below `amount`.
    """
    if not 0.0 <= amount <= 1.0:
        raise ValueError(f"amount must be in [0, 1], got {amount}")
    rng = np.random.RandomState(seed)
    out = image.copy()
    num_pixels = int(amount * image.size)
    coords = tuple(rng.randint(0, s, num_pixels) for s in image.shape)
    # Half salt (1) half pepper (0)
    half = num_pixels // 2
    out[coords[0][:half], coords[1][:half]] = 1.0
    out[coords[0][half:], coords[1][half:]] = 0.0
    return out


# Synthetic levels stay clear of 0 and 1, which read as impulse noise
LOW, MID, HIGH = 0.2, 0.5, 0.8


def make_bars(size=256, num_bars=8):
    x = np.full((size, size), LOW, dtype=float)
    bar_w = max(size // (2 * num_bars), 1)
    for i in range(num_bars):
        start = i * 2 * bar_w
        x[:, start:start + bar_w] = HIGH
    return x


def make_circles(size=256, num_circles=6):
    Y, X = np.ogrid[:size, :size]
    center = (size // 2, size // 2)
    R = np.sqrt((Y - center[0]) ** 2 + (X - center[1]) ** 2)
    img_c = np.full((size, size), LOW, dtype=float)
    max_r = size // 2
    for i in range(num_circles):
        r0 = (i / num_circles) * max_r
        r1 = ((i + 0.5) / num_circles) * max_r
        img_c[(R >= r0) & (R < r1)] = HIGH if i % 2 == 0 else MID
    return img_c


def generate_demo_dataset(data_dir: str = "data", size: int = 256):
    """Return a small dataset list of dicts with clean and noisy images.

    Parameters
    ----------
    data_dir: str
        Directory where images could be saved (not used here, kept for API parity).
    size: int
        Side length every demo image is resized to.

    Returns
    -------
    list of dict
    """
    img = img_as_float(color.rgb2gray(data.astronaut()))
    img = resize(img, (size, size), anti_aliasing=True)

    # AWGN is the Gaussian blur baseline, salt-and-pepper is what PFA targets
    dataset = [
        {"name": "astronaut_awgn", "clean": img,
            "noisy": add_awgn(img, sigma=0.08, seed=1), "noise_type": "awgn"},
        {"name": "astronaut_sp", "clean": img,
            "noisy": add_salt_pepper(img, amount=0.05, seed=2), "noise_type": "sp"},
    ]

    # Edges on flat fields show how much a filter blurs
    bars = make_bars(size, num_bars=8)
    circles = make_circles(size, num_circles=8)

    dataset += [
        {"name": "bars_awgn", "clean": bars, "noisy": add_awgn(
            bars, sigma=0.12, seed=10), "noise_type": "awgn"},
        {"name": "bars_sp", "clean": bars, "noisy": add_salt_pepper(
            bars, amount=0.10, seed=11), "noise_type": "sp"},
        {"name": "circles_awgn", "clean": circles, "noisy": add_awgn(
            circles, sigma=0.12, seed=14), "noise_type": "awgn"},
        {"name": "circles_sp", "clean": circles, "noisy": add_salt_pepper(
            circles, amount=0.10, seed=15), "noise_type": "sp"}
    ]

    return dataset
