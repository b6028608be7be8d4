"""Comparison reports for denoising runs.

Writes each denoised frame, a labelled Clean | Noisy | Denoised panel and a
`report_meta.json` with metrics and parameters.
"""
import os
import json
from datetime import datetime
import imageio
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from scripts.utils import compute_metrics, to_uint8


def _ensure_dir(path):
    os.makedirs(path, exist_ok=True)
    return path


def _folder_name(report_name):
    stamp = f"report_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    if report_name is None:
        return stamp
    # Sanitize the report name
    folder_name = "".join(c if c.isalnum() or c in (
        ' ', '_', '-') else '_' for c in report_name).strip()
    return folder_name or stamp


def comparison_panel(clean: np.ndarray, noisy: np.ndarray, denoised: np.ndarray) -> Image.Image:
    """Place clean, noisy and denoised images side by side with labels."""
    clean_uint8 = to_uint8(clean)
    noisy_uint8 = to_uint8(noisy)
    denoised_uint8 = to_uint8(denoised)
    panel = Image.fromarray(np.hstack([clean_uint8, noisy_uint8, denoised_uint8]))
    draw = ImageDraw.Draw(panel)

    try:
        font = ImageFont.truetype("arial.ttf", 20)
    except OSError:
        font = ImageFont.load_default()

    w = clean_uint8.shape[1]
    draw.text((10, 10), "Clean", fill=255, font=font)
    draw.text((w + 10, 10), "Noisy", fill=255, font=font)
    draw.text((2 * w + 10, 10), "Denoised", fill=255, font=font)
    return panel


def save_report(frames, report_name=None, out_root="results/reports"):
    """Save captured frames to a named report folder.

    frames: list of dicts with keys: denoised (ndarray), clean, noisy, metrics (dict), params (dict), alg, name
    report_name: custom name for the report folder (if None, uses timestamp)
    Returns the output directory path.
    """
    out_dir = os.path.join(out_root, _folder_name(report_name))
    _ensure_dir(out_dir)
    rows = []

    for i, f in enumerate(frames, start=1):
        denoised_img = f.get("denoised")
        clean_img = f.get("clean")
        noisy_img = f.get("noisy")
        stem = f"{f.get('name', 'img')}_{f.get('alg', 'alg')}"

        img_path = os.path.join(out_dir, f"frame_{i}_{stem}.png")
        imageio.imwrite(img_path, to_uint8(denoised_img))

        comparison_path = None
        noisy_metrics = None
        if clean_img is not None and noisy_img is not None:
            comparison_path = os.path.join(out_dir, f"comparison_{i}_{stem}.png")
            comparison_panel(clean_img, noisy_img, denoised_img).save(comparison_path)
            # Baseline: how far the noisy input is from clean
            noisy_metrics = compute_metrics(clean_img, noisy_img)

        rows.append({
            "index": i,
            "name": f.get('name'),
            "algorithm": f.get('alg'),
            "image_path": img_path,
            "comparison_path": comparison_path,
            "metrics": f.get('metrics', {}),
            "noisy_metrics": noisy_metrics,
            "params": f.get('params', {})
        })

    meta_path = os.path.join(out_dir, "report_meta.json")
    with open(meta_path, 'w', encoding='utf8') as fh:
        json.dump(
            {"frames": rows, "generated": datetime.now().isoformat()}, fh, indent=2)
    return out_dir
