"""Shared path helpers for scripts."""

from __future__ import annotations

from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent
OUTPUT_DIR = PROJECT_ROOT / "output"
IMAGES_DIR = OUTPUT_DIR / "images"

SHAPES_CSV = OUTPUT_DIR / "01_overlap_shapes.csv"
STACKUPS_CSV = OUTPUT_DIR / "02_layer_stackups.csv"
BAG_SCORES_CSV = OUTPUT_DIR / "03_bag_scores.csv"


def ensure_output_dir() -> Path:
    """Ensure the output directory exists and return it."""
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    return OUTPUT_DIR


def ensure_images_dir() -> Path:
    """Ensure the rendered-layout directory exists and return it."""
    IMAGES_DIR.mkdir(parents=True, exist_ok=True)
    return IMAGES_DIR


def ensure_parent_dir(path: Path) -> Path:
    """Create the directory a script output will be written into."""
    path.parent.mkdir(parents=True, exist_ok=True)
    return path
