import numpy as np
from scripts.utils import psnr
from denoisers.gaussian import denoise as gaussian_denoise
from denoisers.pfa import denoise as pfa_denoise
from scripts.data_gen import add_awgn, add_salt_pepper, make_bars


def synthetic_gradient(size=128):
    # simple horizontal gradient, kept away from 0 and 1 so it reads as clean
    x = np.linspace(0.1, 0.9, size)
    img = np.tile(x, (size, 1))
    return img


def test_gaussian_improves_psnr():
    img = synthetic_gradient(128)
    noisy = add_awgn(img, sigma=0.1, seed=42)
    den = gaussian_denoise(noisy, sigma=0.75)
    noisy_psnr = psnr(img, noisy)
    den_psnr = psnr(img, den)
    # Expect Gaussian denoising to improve PSNR for AWGN
    assert den_psnr > noisy_psnr


def test_pfa_improves_psnr_on_salt_pepper():
    img = synthetic_gradient(128)
    noisy = add_salt_pepper(img, amount=0.1, seed=7)
    den = pfa_denoise(noisy)
    assert psnr(img, den) > psnr(img, noisy) + 10.0


def test_pfa_beats_gaussian_on_edges():
    img = make_bars(128, num_bars=8)
    noisy = add_salt_pepper(img, amount=0.05, seed=3)
    pfa_psnr = psnr(img, pfa_denoise(noisy))
    gaussian_psnr = psnr(img, gaussian_denoise(noisy, sigma=0.75))
    assert pfa_psnr > gaussian_psnr


def test_pfa_leaves_clean_pixels_alone():
    img = make_bars(64, num_bars=4)
    noisy = add_salt_pepper(img, amount=0.05, seed=5)
    den = pfa_denoise(noisy)
    clean_mask = (noisy > 0.0) & (noisy < 1.0)
    expected = np.rint(noisy * 255).astype(np.uint8)
    np.testing.assert_array_equal(den[clean_mask], expected[clean_mask])


def test_salt_pepper_only_sets_extremes():
    img = synthetic_gradient(64)
    noisy = add_salt_pepper(img, amount=0.2, seed=1)
    changed = noisy != img
    assert changed.any()
    assert np.all(np.isin(noisy[changed], [0.0, 1.0]))
