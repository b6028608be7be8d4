"""Main pipeline for running impulse-noise denoising experiments (grayscale only).

Usage:
    python main.py --output-dir results --demo
    python main.py --noisy pns.png --clean src.png --report sp_run

The demo mode generates a small dataset and runs configured denoisers to produce outputs, CSV metrics and timing.
With --noisy, the given files are denoised instead; --clean adds a reference for PSNR/SSIM.
"""
import argparse
from pathlib import Path
import time
import pandas as pd
import yaml

from scripts.data_gen import generate_demo_dataset
from scripts.reporting import save_report
from scripts.utils import compute_metrics, load_image, save_image

# Import denoisers
from denoisers.gaussian import denoise as gaussian_denoise
from denoisers.pfa import denoise as pfa_denoise


DEFAULT_DENOISERS = ["gaussian", "pfa"]


def load_config(path: str = "config.yaml") -> dict:
    p = Path(path)
    if not p.exists():
        return {}
    with open(p, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_dataset(noisy_paths, clean_path=None, noise_type: str = "sp"):
    """Build dataset items from image files.

    Every noisy file shares the optional clean reference.
    """
    clean = load_image(clean_path) if clean_path else None
    dataset = []
    for path in noisy_paths:
        noisy = load_image(path)
        if clean is not None and clean.shape != noisy.shape:
            raise ValueError(
                f"Clean reference {clean_path} has shape {clean.shape}, {path} has {noisy.shape}")
        dataset.append({"name": Path(path).stem, "clean": clean,
                        "noisy": noisy, "noise_type": noise_type})
    return dataset


def run_denoiser(alg: str, image, cfg: dict):
    """Run one named denoiser with its config section.

    Returns (denoised, params), or (None, None) for an unknown name.
    """
    if alg == "gaussian":
        gaussian_cfg = cfg.get("gaussian", {})
        sigma = float(gaussian_cfg.get("sigma", 0.75))
        radius = int(gaussian_cfg.get("radius", 1))
        denoised = gaussian_denoise(image, sigma=sigma, radius=radius)
        params = {"sigma": sigma, "radius": radius}

    elif alg == "pfa":
        pfa_cfg = cfg.get("pfa", {})
        # passed through as-is; pfa rejects non-integer counts
        tolerance = pfa_cfg.get("tolerance", 2)
        iterations = pfa_cfg.get("iterations", 2)
        use_intensity_weight = bool(pfa_cfg.get("use_intensity_weight", False))
        alpha = float(pfa_cfg.get("alpha", 0.75))
        beta = float(pfa_cfg.get("beta", 0.01))
        denoised = pfa_denoise(image, tolerance=tolerance, iterations=iterations,
                               use_intensity_weight=use_intensity_weight, alpha=alpha, beta=beta)
        params = {"tolerance": tolerance, "iterations": iterations,
                  "use_intensity_weight": use_intensity_weight, "alpha": alpha, "beta": beta}

    else:
        return None, None

    return denoised, params


def run_pipeline(output_dir: str, demo: bool = False, config_path: str = "config.yaml",
                 noisy_paths=None, clean_path=None, report_name=None, dataset=None):
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    cfg = load_config(config_path)
    denoisers_cfg = cfg.get("denoisers", DEFAULT_DENOISERS)
    demo_size = int(cfg.get("demo", {}).get("size", 256))

    records = []
    frames = []

    if dataset is None:
        if demo:
            print("Generating demo dataset...")
            dataset = generate_demo_dataset("data", size=demo_size)
        elif noisy_paths:
            dataset = load_dataset(noisy_paths, clean_path, cfg.get("noise_type", "sp"))
        else:
            dataset = load_dataset(sorted(Path("data").glob("*.png")))

    for item in dataset:
        name = item["name"]
        clean = item.get("clean")    # numpy array
        noisy = item.get("noisy")

        # save noisy and clean into per-noise subfolder
        noise_type = item.get("noise_type", "unknown")
        noise_dir = output_dir / noise_type
        noise_dir.mkdir(parents=True, exist_ok=True)
        save_image(noisy, noise_dir / f"{name}_noisy.png")
        if clean is not None:
            save_image(clean, noise_dir / f"{name}_clean.png")

        noisy_metrics = compute_metrics(clean, noisy) if clean is not None else {}

        for alg in denoisers_cfg:
            alg = alg.lower()
            print(f"Processing {name} with {alg} denoiser...")
            t0 = time.perf_counter()
            denoised, params = run_denoiser(alg, noisy, cfg)
            if denoised is None:
                print(f"Unknown denoiser '{alg}', skipping")
                continue
            elapsed = time.perf_counter() - t0

            # Save denoised image into per-noise folder
            save_image(denoised, noise_dir / f"{name}_{alg}.png")

            # Compute metrics (if clean available)
            metrics = compute_metrics(
                clean, denoised) if clean is not None else {}
            record = {**metrics, "image": name,
                      "algorithm": alg, "time_s": elapsed, "noise_type": noise_type}
            if "psnr" in noisy_metrics:
                record["noisy_psnr"] = noisy_metrics["psnr"]
            # attach simple params as strings
            for k, v in params.items():
                record[f"param_{k}"] = v
            records.append(record)

            if "psnr" in metrics:
                print(f"  {alg} PSNR : {metrics['psnr']:.2f} dB ({elapsed:.3f}s)")

            frames.append({"name": name, "alg": alg, "clean": clean, "noisy": noisy,
                           "denoised": denoised, "metrics": metrics, "params": params})

    if not records:
        print("No records to save.")
        return pd.DataFrame()

    # Save CSV per-noise type
    df = pd.DataFrame.from_records(records)
    for nt, df_nt in df.groupby("noise_type"):
        csv_path = output_dir / nt / "results_summary.csv"
        df_nt.dropna(axis=1, how="all").to_csv(csv_path, index=False)
        print(f"Saved results to {csv_path}")

    if report_name is not None:
        report_dir = save_report(frames, report_name, out_root=str(output_dir / "reports"))
        print(f"Saved report to {report_dir}")

    return df


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--output-dir", default="results",
                        help="Directory to save outputs")
    parser.add_argument("--demo", action="store_true",
                        help="Run demo dataset generation")
    parser.add_argument("--config", default="config.yaml",
                        help="Path to config YAML file")
    parser.add_argument("--noisy", action="append", default=None,
                        help="Noisy image to denoise (repeatable)")
    parser.add_argument("--clean", default=None,
                        help="Clean reference image for metrics")
    parser.add_argument("--report", default=None,
                        help="Save a comparison report under this name")
    args = parser.parse_args()

    run_pipeline(args.output_dir, demo=args.demo, config_path=args.config,
                 noisy_paths=args.noisy, clean_path=args.clean, report_name=args.report)
