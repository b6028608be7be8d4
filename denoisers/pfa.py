"""PFA impulse-noise denoiser.

Removes salt-and-pepper noise from grayscale images while keeping edges.
Only samples classified as noise (near-black or near-white) are replaced;
every other sample passes through untouched. A noisy sample is replaced by:

1. a spatially weighted mean of its non-noise 3x3 neighbours
   (optionally also weighted by intensity similarity),
2. else the mean of the flattest non-noise opposite-neighbour pair
   (N/S, W/E, NW/SE, NE/SW),
3. else the plain mean of non-noise neighbours already written in this pass,
4. else mid-gray (128).

The filter runs a fixed number of passes. Each pass reads a frozen snapshot
of the previous pass, so results do not depend on the scan order except for
rule 3, which is evaluated in raster order (top-to-bottom, left-to-right).

Returns uint8 image in [0,255] range.
"""
import numpy as np


DEFAULT_TOLERANCE = 2
DEFAULT_ITERATIONS = 2

# Spatial decay for w = exp(-alpha * (dx^2 + dy^2))
SPATIAL_ALPHA = 0.75
# Intensity decay for w = exp(-beta * (center - neighbour)^2)
INTENSITY_BETA = 0.01
# Value used when a noisy sample has no usable neighbour at all
FALLBACK_VALUE = 128.0

# Opposite-neighbour pairs as (dy, dx) offsets, in tie-break order
DIRECTIONS = (
    ((-1, 0), (1, 0)),    # N / S
    ((0, -1), (0, 1)),    # W / E
    ((-1, -1), (1, 1)),   # NW / SE
    ((1, -1), (-1, 1)),   # SW / NE
)

NEIGHBOURHOOD = tuple((dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1))


class InvalidInput(ValueError):
    """Image is empty, not 2D single-channel, or out of the 8-bit range."""


class InvalidParameter(ValueError):
    """Tolerance, iteration count or weight constant is out of range."""


def to_byte(values):
    """Narrow float samples to their 8-bit value.

    Truncates toward zero, then clamps to [0, 255]. Works on scalars and arrays.
    """
    return np.clip(np.trunc(values), 0, 255).astype(np.uint8)


def is_noise(values, tolerance: int = DEFAULT_TOLERANCE):
    """Return True where a sample is impulse noise.

    A sample is noise when its byte value is <= tolerance or >= 255 - tolerance.
    """
    b = to_byte(values).astype(np.int32)
    out = (b <= tolerance) | (b >= 255 - tolerance)
    if np.ndim(out) == 0:
        return bool(out)
    return out


def spatial_weight(dx: int, dy: int, alpha: float = SPATIAL_ALPHA) -> float:
    """Gaussian-like falloff exp(-alpha * (dx^2 + dy^2)) for a neighbour offset."""
    return float(np.exp(np.float32(-alpha * (dx * dx + dy * dy))))


def replicate_pad(image: np.ndarray, width: int = 1) -> np.ndarray:
    """Pad an image by copying its edge samples outward."""
    return np.pad(image, width, mode="edge")


def _offset(arr, dy, dx, fill):
    """Return out with out[y, x] = arr[y + dy, x + dx], `fill` outside the grid."""
    h, w = arr.shape
    out = np.full(arr.shape, fill, dtype=arr.dtype)
    out[max(0, -dy):h - max(0, dy), max(0, -dx):w - max(0, dx)] = \
        arr[max(0, dy):h - max(0, -dy), max(0, dx):w - max(0, -dx)]
    return out


def directional_estimate(previous: np.ndarray, tolerance: int = DEFAULT_TOLERANCE,
                         directions=DIRECTIONS, fallback: float = FALLBACK_VALUE):
    """Edge-aligned interpolation from the flattest opposite-neighbour pair.

    Parameters
    ----------
    previous: np.ndarray
        float32 snapshot buffer
    tolerance: int
        Noise tolerance
    directions: sequence
        Ordered ((dy1, dx1), (dy2, dx2)) pairs; on equal differences the
        earlier pair wins
    fallback: float
        Estimate reported where no pair qualifies

    Returns
    -------
    tuple: (estimate, found)
        estimate: float32 array, mean of the selected pair per cell
        found: bool array, False where no pair had both samples in bounds and clean
    """
    clean = ~is_noise(previous, tolerance)
    estimate = np.full(previous.shape, fallback, dtype=np.float32)
    min_diff = np.full(previous.shape, np.inf, dtype=np.float32)
    found = np.zeros(previous.shape, dtype=bool)

    for (dy1, dx1), (dy2, dx2) in directions:
        v1 = _offset(previous, dy1, dx1, 0.0)
        v2 = _offset(previous, dy2, dx2, 0.0)
        ok = _offset(clean, dy1, dx1, False) & _offset(clean, dy2, dx2, False)
        diff = np.abs(v1 - v2)
        better = ok & (diff < min_diff)
        min_diff = np.where(better, diff, min_diff)
        estimate = np.where(better, (v1 + v2) / np.float32(2.0), estimate)
        found |= ok

    return estimate, found


def weighted_average(previous: np.ndarray, tolerance: int = DEFAULT_TOLERANCE,
                     alpha: float = SPATIAL_ALPHA, center_estimate=None,
                     beta: float = INTENSITY_BETA):
    """Weighted mean of the non-noise samples in each 3x3 neighbourhood.

    When `center_estimate` is given, every weight is also multiplied by
    exp(-beta * (center_estimate - neighbour)^2).

    Returns
    -------
    tuple: (mean, total_weight)
        mean is only meaningful where total_weight > 0
    """
    clean = ~is_noise(previous, tolerance)
    weighted_sum = np.zeros(previous.shape, dtype=np.float32)
    total_weight = np.zeros(previous.shape, dtype=np.float32)

    for dy, dx in NEIGHBOURHOOD:
        neighbour = _offset(previous, dy, dx, 0.0)
        ok = _offset(clean, dy, dx, False)
        w = np.full(previous.shape, spatial_weight(dx, dy, alpha), dtype=np.float32)
        if center_estimate is not None:
            w = w * np.exp(np.float32(-beta) * (center_estimate - neighbour) ** 2)
        w = np.where(ok, w, np.float32(0.0))
        weighted_sum += w * neighbour
        total_weight += w

    mean = np.divide(weighted_sum, total_weight,
                     out=np.zeros_like(weighted_sum), where=total_weight > 0)
    return mean, total_weight


def fallback_average(current: np.ndarray, snapshot: np.ndarray, y: int, x: int,
                     tolerance: int = DEFAULT_TOLERANCE,
                     fallback: float = FALLBACK_VALUE) -> float:
    """Unweighted mean of non-noise neighbours as seen mid-pass at (y, x).

    Cells before (y, x) in raster order are read from `current` (already
    rewritten this pass), the rest from `snapshot`.
    """
    h, w = current.shape
    total = np.float32(0.0)
    count = 0
    for dy, dx in NEIGHBOURHOOD:
        ny, nx = y + dy, x + dx
        if 0 <= ny < h and 0 <= nx < w:
            source = current if (ny, nx) < (y, x) else snapshot
            neighbour = source[ny, nx]
            if not is_noise(neighbour, tolerance):
                total += neighbour
                count += 1
    return float(total / np.float32(count)) if count > 0 else fallback


def denoise_pass(previous: np.ndarray, tolerance: int = DEFAULT_TOLERANCE,
                 use_intensity_weight: bool = False, alpha: float = SPATIAL_ALPHA,
                 beta: float = INTENSITY_BETA,
                 fallback: float = FALLBACK_VALUE) -> np.ndarray:
    """Run one refinement pass over a padded float32 buffer."""
    noisy = is_noise(previous, tolerance)
    current = previous.copy()
    if not noisy.any():
        return current

    estimate, found = directional_estimate(previous, tolerance, fallback=fallback)
    center = estimate if use_intensity_weight else None
    mean, total_weight = weighted_average(previous, tolerance, alpha=alpha,
                                          center_estimate=center, beta=beta)

    use_mean = noisy & (total_weight > 0)
    use_estimate = noisy & ~use_mean & found
    current[use_mean] = mean[use_mean]
    current[use_estimate] = estimate[use_estimate]

    # argwhere yields row-major order, which the fallback depends on
    for y, x in np.argwhere(noisy & ~use_mean & ~found):
        current[y, x] = fallback_average(current, previous, y, x, tolerance, fallback)

    return current


def _validate_image(image) -> np.ndarray:
    arr = np.asarray(image)
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    if arr.ndim != 2:
        raise InvalidInput(f"Expected a single-channel 2D image, got shape {arr.shape}")
    if arr.size == 0:
        raise InvalidInput(f"Image has zero width or height: {arr.shape}")
    if arr.dtype == np.uint8:
        return arr.astype(np.float32)
    if arr.dtype == np.bool_ or not np.issubdtype(arr.dtype, np.number):
        raise InvalidInput(f"Unsupported image dtype: {arr.dtype}")

    img = arr.astype(np.float32)
    if not np.all(np.isfinite(img)):
        raise InvalidInput("Image contains NaN or infinite samples")
    if np.issubdtype(arr.dtype, np.floating) and img.min() >= 0.0 and img.max() <= 1.0:
        # float [0,1] convention
        img = img * np.float32(255.0)
    if img.min() < 0.0 or img.max() > 255.0:
        raise InvalidInput(f"Samples must lie in [0,255], got [{img.min()}, {img.max()}]")
    return img


def _check_count(name, value):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidParameter(f"{name} must be >= 0, got {value}")


def denoise(image: np.ndarray, tolerance: int = DEFAULT_TOLERANCE,
            iterations: int = DEFAULT_ITERATIONS, use_intensity_weight: bool = False,
            alpha: float = SPATIAL_ALPHA, beta: float = INTENSITY_BETA,
            fallback: float = FALLBACK_VALUE) -> np.ndarray:
    """Apply PFA denoising to remove salt-and-pepper noise.

    Parameters
    ----------
    image: np.ndarray
        Grayscale image (uint8 [0,255], float [0,1], or numeric [0,255])
    tolerance: int
        Samples within `tolerance` of 0 or 255 are treated as noise
    iterations: int
        Number of refinement passes (0 returns the input unchanged)
    use_intensity_weight: bool
        Also weight neighbours by similarity to the directional estimate
    alpha: float
        Spatial weight decay
    beta: float
        Intensity weight decay (only used with use_intensity_weight)
    fallback: float
        Value for samples with no usable neighbour

    Returns
    -------
    np.ndarray
        Denoised image, uint8 [0,255], same height and width as the input

    Raises
    ------
    InvalidInput
        Empty, zero-sized, multi-channel or out-of-range image
    InvalidParameter
        Negative or non-integer tolerance/iterations, negative alpha/beta
    """
    img = _validate_image(image)
    _check_count("tolerance", tolerance)
    _check_count("iterations", iterations)
    if alpha < 0 or beta < 0:
        raise InvalidParameter(f"alpha and beta must be >= 0, got {alpha}, {beta}")

    rows, cols = img.shape
    result = replicate_pad(img)

    for _ in range(iterations):
        result = denoise_pass(result, tolerance, use_intensity_weight=use_intensity_weight,
                              alpha=alpha, beta=beta, fallback=fallback)

    out = result[1:rows + 1, 1:cols + 1]
    # round half to even, then saturate
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)
