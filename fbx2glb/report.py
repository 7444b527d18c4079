"""
Comparison Report

Renders a ComparisonResult for the terminal and persists the snapshots and
the comparison as JSON records next to the output GLB.

Trend markers (reduction / increase / no change) are presentation only; the
numbers shown come straight from the ComparisonResult.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from .compare import (
    ComparisonResult,
    ANIMATIONS_NONE,
    ANIMATIONS_PRESERVED,
    COMPRESSION_SKIPPED,
    KTX2_APPLIED,
    UV_ADDED,
    UV_REMOVED,
)
from .config import AFTER_RECORD_NAME, BEFORE_RECORD_NAME, COMPARISON_RECORD_NAME
from .errors import ArtifactIOError
from .inspector import InspectionSnapshot

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

REDUCTION = "📉"
INCREASE = "📈"
NO_CHANGE = "➖"


def save_record(data: Dict[str, Any], path: PathLike) -> Path:
    """
    Write a JSON record (2-space indent, UTF-8).

    Raises:
        ArtifactIOError: the file could not be written
    """
    path = Path(path)
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        raise ArtifactIOError(str(path), str(e)) from e
    logger.info("Saved %s", path)
    return path


def load_snapshot(path: PathLike) -> InspectionSnapshot:
    with open(path, 'r', encoding='utf-8') as f:
        return InspectionSnapshot.from_dict(json.load(f))


def _trend(diff: float) -> str:
    if diff < 0:
        return REDUCTION
    if diff > 0:
        return INCREASE
    return NO_CHANGE


def render_comparison(result: ComparisonResult) -> str:
    """One line per metric, followed by the highlights"""
    lines: List[str] = ["📊 FBX -> GLB optimization results:", ""]

    vertices = result.vertices
    if abs(float(vertices.percent.rstrip('%'))) < 0.1:
        vertex_text = f"{NO_CHANGE} 0% change"
    elif vertices.diff > 0:
        vertex_text = f"{INCREASE} {vertices.percent} increase"
    else:
        vertex_text = f"{REDUCTION} {vertices.percent} reduction"
    lines.append(f"Vertices:      {vertex_text} ({vertices.before} -> {vertices.after})")

    uv = result.uv
    if uv.status == UV_REMOVED:
        uv_text = f"{REDUCTION} {uv.change} removed"
    elif uv.status == UV_ADDED:
        uv_text = f"{INCREASE} {uv.change} added"
    else:
        uv_text = f"{NO_CHANGE} {uv.change}"
    lines.append(f"UV attributes: {uv_text} ({uv.before} -> {uv.after} of {uv.total_meshes} meshes)")

    geometry = result.geometry
    lines.append(
        f"Geometry size: {_trend(geometry.diff)} {geometry.percent} "
        f"({geometry.before_mb:.2f} MB -> {geometry.after_mb:.2f} MB)"
    )

    materials = result.materials
    if materials.diff == 0:
        lines.append(f"Materials:     {materials.before} -> {materials.after} (no change)")
    else:
        lines.append(f"Materials:     {materials.before} -> {materials.after} ({materials.status})")

    animations = result.animations
    if animations.status == ANIMATIONS_NONE:
        lines.append("Animations:    no animation data")
    elif animations.status == ANIMATIONS_PRESERVED:
        lines.append(f"Animations:    ✅ fully preserved ({animations.after})")
    else:
        lines.append(f"Animations:    ⚠️ partially preserved ({animations.after}/{animations.before})")

    textures = result.textures
    if not textures.has_textures:
        lines.append("Textures:      no textures, KTX2 not applicable")
    elif textures.ktx2_status == KTX2_APPLIED:
        lines.append(f"KTX2 textures: ✅ applied ({textures.before} -> {textures.after})")
    else:
        lines.append(f"KTX2 textures: not enabled ({textures.before} textures)")

    if result.compression == COMPRESSION_SKIPPED:
        lines.append("Compression:   skipped")
    else:
        lines.append(f"Compression:   {result.compression.replace('+', ' + ')}")

    if result.highlights:
        lines.extend(["", "👉 Highlights:"])
        lines.extend(f"   • {highlight}" for highlight in result.highlights)

    return "\n".join(lines)


class ReportFormatter:
    """Persists run records under fixed names and prints the comparison"""

    def __init__(self, output_dir: PathLike):
        self.output_dir = Path(output_dir)

    @property
    def before_path(self) -> Path:
        return self.output_dir / BEFORE_RECORD_NAME

    @property
    def after_path(self) -> Path:
        return self.output_dir / AFTER_RECORD_NAME

    @property
    def comparison_path(self) -> Path:
        return self.output_dir / COMPARISON_RECORD_NAME

    def save_before(self, snapshot: InspectionSnapshot) -> Path:
        return save_record(snapshot.to_dict(), self.before_path)

    def save_after(self, snapshot: InspectionSnapshot) -> Path:
        return save_record(snapshot.to_dict(), self.after_path)

    def save_comparison(self, result: ComparisonResult) -> Path:
        return save_record(result.to_dict(), self.comparison_path)

    def render(self, result: ComparisonResult) -> str:
        return render_comparison(result)

    def print_report(self, result: ComparisonResult):
        print()
        print(self.render(result))
        print()
