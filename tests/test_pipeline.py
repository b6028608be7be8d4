import json

import imageio
import numpy as np
import pandas as pd
import pytest

from denoisers.pfa import InvalidParameter
from main import load_config, load_dataset, run_denoiser, run_pipeline
from scripts.data_gen import add_salt_pepper, generate_demo_dataset, make_circles
from scripts.utils import load_image, mse, to_uint8


def small_item(noise_type="sp"):
    clean = make_circles(32, num_circles=4)
    return {"name": "circles", "clean": clean,
            "noisy": add_salt_pepper(clean, amount=0.1, seed=0), "noise_type": noise_type}


def test_load_config_missing_file(tmp_path):
    assert load_config(str(tmp_path / "missing.yaml")) == {}


def test_load_config_reads_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("denoisers: [pfa]\npfa:\n  iterations: 3\n", encoding="utf-8")
    cfg = load_config(str(path))
    assert cfg["denoisers"] == ["pfa"]
    assert cfg["pfa"]["iterations"] == 3


def test_run_denoiser_uses_config_section():
    item = small_item()
    denoised, params = run_denoiser("pfa", item["noisy"], {"pfa": {"iterations": 1, "tolerance": 5}})
    assert denoised.shape == item["noisy"].shape
    assert params["iterations"] == 1
    assert params["tolerance"] == 5
    assert params["use_intensity_weight"] is False


@pytest.mark.parametrize("section", [{"tolerance": 2.7}, {"iterations": 1.5}, {"iterations": "2"}])
def test_run_denoiser_rejects_non_integer_counts(section):
    item = small_item()
    with pytest.raises(InvalidParameter):
        run_denoiser("pfa", item["noisy"], {"pfa": section})


def test_run_denoiser_unknown_name():
    assert run_denoiser("wavelet", np.zeros((4, 4)), {}) == (None, None)


def test_pipeline_writes_csv_and_report(tmp_path):
    df = run_pipeline(str(tmp_path / "out"), config_path=str(tmp_path / "none.yaml"),
                      dataset=[small_item()], report_name="smoke")

    assert set(df["algorithm"]) == {"gaussian", "pfa"}
    csv_path = tmp_path / "out" / "sp" / "results_summary.csv"
    assert csv_path.exists()
    saved = pd.read_csv(csv_path)
    assert {"psnr", "ssim", "mse", "noisy_psnr", "time_s"} <= set(saved.columns)

    pfa_row = saved[saved["algorithm"] == "pfa"].iloc[0]
    assert pfa_row["psnr"] > pfa_row["noisy_psnr"]

    for suffix in ("noisy", "clean", "gaussian", "pfa"):
        assert (tmp_path / "out" / "sp" / f"circles_{suffix}.png").exists()

    meta = json.loads((tmp_path / "out" / "reports" / "smoke" / "report_meta.json").read_text())
    assert len(meta["frames"]) == 2
    assert meta["frames"][0]["comparison_path"] is not None


def test_pipeline_skips_unknown_denoiser(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("denoisers: [median, pfa]\n", encoding="utf-8")
    df = run_pipeline(str(tmp_path / "out"), config_path=str(cfg), dataset=[small_item()])
    assert list(df["algorithm"]) == ["pfa"]


def test_pipeline_without_clean_reference(tmp_path):
    item = small_item()
    item["clean"] = None
    df = run_pipeline(str(tmp_path / "out"), config_path=str(tmp_path / "none.yaml"), dataset=[item])
    assert len(df) == 2
    assert "psnr" not in df.columns


def test_load_dataset_from_files(tmp_path):
    clean = np.full((8, 10, 3), 120, dtype=np.uint8)
    noisy = clean.copy()
    noisy[2, 3] = 255
    imageio.imwrite(tmp_path / "src.png", clean)
    imageio.imwrite(tmp_path / "pns.png", noisy)

    dataset = load_dataset([str(tmp_path / "pns.png")], str(tmp_path / "src.png"))
    assert len(dataset) == 1
    item = dataset[0]
    assert item["name"] == "pns"
    assert item["noisy"].shape == (8, 10)
    assert item["noisy"].dtype == np.uint8
    assert item["noisy"][2, 3] == 255
    assert item["clean"][0, 0] == 120


def test_load_dataset_shape_mismatch(tmp_path):
    imageio.imwrite(tmp_path / "a.png", np.zeros((4, 4), dtype=np.uint8))
    imageio.imwrite(tmp_path / "b.png", np.zeros((5, 4), dtype=np.uint8))
    with pytest.raises(ValueError):
        load_dataset([str(tmp_path / "a.png")], str(tmp_path / "b.png"))


def test_load_image_keeps_grayscale(tmp_path):
    img = np.arange(64, dtype=np.uint8).reshape(8, 8)
    imageio.imwrite(tmp_path / "g.png", img)
    np.testing.assert_array_equal(load_image(tmp_path / "g.png"), img)


def test_to_uint8_scales_16_bit_by_full_range():
    img = np.array([[0, 25700], [65535, 12850]], dtype=np.uint16)
    np.testing.assert_array_equal(to_uint8(img), [[0, 100], [255, 50]])


def test_mse_of_16_bit_image_matches_8_bit():
    img8 = np.array([[10, 200], [90, 40]], dtype=np.uint8)
    img16 = img8.astype(np.uint16) * 257
    assert mse(img16, img8) == pytest.approx(0.0, abs=1e-10)


def test_flat_package_directories():
    # denoisers/ and scripts/ are plain directories without __init__.py
    import denoisers
    import scripts
    assert getattr(denoisers, "__file__", None) is None
    assert getattr(scripts, "__file__", None) is None


def test_demo_dataset_pairs_noise_types():
    dataset = generate_demo_dataset(size=32)
    assert {item["noise_type"] for item in dataset} == {"awgn", "sp"}
    for item in dataset:
        assert item["clean"].shape == (32, 32)
        assert item["noisy"].shape == (32, 32)
