"""
Snapshot Comparison

Derives before/after deltas from two InspectionSnapshots and explains them.

Each metric has its own analyzer; compare_snapshots() composes them and then
runs the highlight rules in a fixed order. Percentages are always relative to
the "before" value and are exactly 0.0% when there is nothing to compare
against.

Usage:
    from fbx2glb.compare import compare_snapshots

    result = compare_snapshots(before, after, PipelineConfig(draco=True))
    for line in result.highlights:
        print(line)
"""

import json
from typing import Any, Callable, Dict, Optional, Tuple
from dataclasses import dataclass, asdict, replace

from .config import PipelineConfig
from .inspector import InspectionSnapshot

MB = 1024 * 1024

# Qualitative tags
UV_REMOVED = 'removed'
UV_ADDED = 'added'
UNCHANGED = 'unchanged'
MATERIALS_DEDUP = 'dedup'
MATERIALS_INCREASE = 'increase'
ANIMATIONS_NONE = 'none'
ANIMATIONS_PRESERVED = 'preserved'
ANIMATIONS_PARTIAL = 'partial'
KTX2_APPLIED = 'applied'
KTX2_DISABLED = 'disabled'
KTX2_NOT_APPLICABLE = 'not_applicable'
COMPRESSION_SKIPPED = 'skipped'


def format_percent(diff: float, before: float) -> str:
    """diff relative to before, one decimal. 0.0% when before is not positive."""
    if before <= 0:
        return "0.0%"
    return f"{diff / before * 100:.1f}%"


@dataclass(frozen=True)
class MetricDelta:
    name: str
    before: int
    after: int
    diff: int
    percent: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UVMetric(MetricDelta):
    status: str
    change: str
    total_meshes: int


@dataclass(frozen=True)
class GeometryMetric(MetricDelta):
    before_mb: float
    after_mb: float
    diff_mb: float


@dataclass(frozen=True)
class MaterialMetric(MetricDelta):
    status: str


@dataclass(frozen=True)
class AnimationMetric(MetricDelta):
    preserved: bool
    status: str


@dataclass(frozen=True)
class TextureMetric(MetricDelta):
    has_textures: bool
    ktx2_status: str


@dataclass(frozen=True)
class ComparisonResult:
    vertices: MetricDelta
    uv: UVMetric
    geometry: GeometryMetric
    materials: MaterialMetric
    animations: AnimationMetric
    textures: TextureMetric
    compression: str = COMPRESSION_SKIPPED
    highlights: Tuple[str, ...] = ()

    @property
    def metrics(self) -> Tuple[MetricDelta, ...]:
        return (self.vertices, self.uv, self.geometry, self.materials, self.animations, self.textures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vertices": self.vertices.to_dict(),
            "uv": self.uv.to_dict(),
            "geometry": self.geometry.to_dict(),
            "materials": self.materials.to_dict(),
            "animations": self.animations.to_dict(),
            "textures": self.textures.to_dict(),
            "compression": self.compression,
            "highlights": list(self.highlights),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


# ============================================================================
# Snapshot helpers
# ============================================================================

def vertex_count(snapshot: InspectionSnapshot) -> int:
    """Scene upload count when present and non-zero, else the per-mesh sum"""
    return snapshot.upload_vertex_count or snapshot.total_vertices


def uv_mesh_count(snapshot: InspectionSnapshot) -> int:
    return sum(1 for mesh in snapshot.meshes if mesh.has_uv)


def geometry_size(snapshot: InspectionSnapshot) -> int:
    return sum(mesh.byte_size for mesh in snapshot.meshes)


def texture_count(snapshot: InspectionSnapshot) -> int:
    """Texture registry size, or material texture references when there is no registry"""
    if snapshot.textures is not None:
        return snapshot.textures
    return sum(material.texture_refs for material in snapshot.materials)


def _delta(name: str, before: int, after: int) -> Dict[str, Any]:
    diff = after - before
    return {"name": name, "before": before, "after": after, "diff": diff,
            "percent": format_percent(diff, before)}


# ============================================================================
# Analyzers
# ============================================================================

def analyze_vertices(before: InspectionSnapshot, after: InspectionSnapshot) -> MetricDelta:
    return MetricDelta(**_delta("vertices", vertex_count(before), vertex_count(after)))


def analyze_uv(before: InspectionSnapshot, after: InspectionSnapshot) -> UVMetric:
    before_count = uv_mesh_count(before)
    after_count = uv_mesh_count(after)

    if after_count < before_count:
        status = UV_REMOVED
        change = format_percent(before_count - after_count, before_count)
    elif after_count > before_count:
        status = UV_ADDED
        change = format_percent(after_count - before_count, before_count)
    else:
        status = UNCHANGED
        change = "0.0%"

    return UVMetric(
        **_delta("uv_meshes", before_count, after_count),
        status=status,
        change=change,
        total_meshes=len(before.meshes),
    )


def analyze_geometry(before: InspectionSnapshot, after: InspectionSnapshot) -> GeometryMetric:
    delta = _delta("geometry_bytes", geometry_size(before), geometry_size(after))
    return GeometryMetric(
        **delta,
        before_mb=round(delta["before"] / MB, 2),
        after_mb=round(delta["after"] / MB, 2),
        diff_mb=round(delta["diff"] / MB, 2),
    )


def analyze_materials(before: InspectionSnapshot, after: InspectionSnapshot) -> MaterialMetric:
    delta = _delta("materials", len(before.materials), len(after.materials))
    if delta["diff"] < 0:
        status = MATERIALS_DEDUP
    elif delta["diff"] > 0:
        status = MATERIALS_INCREASE
    else:
        status = UNCHANGED
    return MaterialMetric(**delta, status=status)


def analyze_animations(before: InspectionSnapshot, after: InspectionSnapshot) -> AnimationMetric:
    delta = _delta("animations", before.animations, after.animations)
    preserved = delta["before"] == delta["after"] and delta["before"] > 0

    if delta["before"] == 0:
        status = ANIMATIONS_NONE
    elif preserved:
        status = ANIMATIONS_PRESERVED
    else:
        status = ANIMATIONS_PARTIAL

    return AnimationMetric(**delta, preserved=preserved, status=status)


def analyze_textures(before: InspectionSnapshot, after: InspectionSnapshot,
                     config: PipelineConfig) -> TextureMetric:
    delta = _delta("textures", texture_count(before), texture_count(after))
    has_textures = delta["before"] > 0 or delta["after"] > 0

    if not has_textures:
        ktx2_status = KTX2_NOT_APPLICABLE
    elif config.ktx2:
        ktx2_status = KTX2_APPLIED
    else:
        ktx2_status = KTX2_DISABLED

    return TextureMetric(**delta, has_textures=has_textures, ktx2_status=ktx2_status)


def compression_tag(config: PipelineConfig) -> str:
    """'skipped', or the requested stages in run order ('draco', 'ktx2', 'draco+ktx2')"""
    if not config.compression_enabled:
        return COMPRESSION_SKIPPED
    return "+".join(name for name, enabled in (('draco', config.draco), ('ktx2', config.ktx2)) if enabled)


# ============================================================================
# Highlight rules
# ============================================================================

HighlightRule = Callable[[ComparisonResult, PipelineConfig], Optional[str]]


def _uv_removed(result: ComparisonResult, config: PipelineConfig) -> Optional[str]:
    if result.uv.status == UV_REMOVED:
        return "Volume reduction mainly comes from prune removing unused UV data"
    return None


def _materials_deduplicated(result: ComparisonResult, config: PipelineConfig) -> Optional[str]:
    if result.materials.diff < 0:
        return f"Materials deduplicated from {result.materials.before} to {result.materials.after}"
    return None


def _draco_applied(result: ComparisonResult, config: PipelineConfig) -> Optional[str]:
    if config.draco:
        return "Draco geometry compression applied"
    return None


def _ktx2_applied(result: ComparisonResult, config: PipelineConfig) -> Optional[str]:
    if config.ktx2 and result.textures.has_textures:
        return "KTX2 texture compression applied"
    return None


# Evaluation order is the order highlights appear in
HIGHLIGHT_RULES: Tuple[Tuple[str, HighlightRule], ...] = (
    ('uv', _uv_removed),
    ('materials', _materials_deduplicated),
    ('geometry', _draco_applied),
    ('textures', _ktx2_applied),
)


def generate_highlights(result: ComparisonResult, config: PipelineConfig) -> Tuple[str, ...]:
    highlights = []
    for _, rule in HIGHLIGHT_RULES:
        message = rule(result, config)
        if message and message not in highlights:
            highlights.append(message)
    return tuple(highlights)


def compare_snapshots(before: InspectionSnapshot, after: InspectionSnapshot,
                      config: Optional[PipelineConfig] = None) -> ComparisonResult:
    """
    Compare two snapshots of the same asset.

    Args:
        before: Snapshot taken before cleanup/compression
        after: Snapshot taken after the output was written
        config: Options the run used (default: no compression)

    Returns:
        ComparisonResult with metrics and ordered highlights
    """
    config = config or PipelineConfig()

    result = ComparisonResult(
        vertices=analyze_vertices(before, after),
        uv=analyze_uv(before, after),
        geometry=analyze_geometry(before, after),
        materials=analyze_materials(before, after),
        animations=analyze_animations(before, after),
        textures=analyze_textures(before, after, config),
        compression=compression_tag(config),
    )
    return replace(result, highlights=generate_highlights(result, config))


# ============================================================================
# CLI
# ============================================================================

if __name__ == "__main__":
    import argparse

    from .report import load_snapshot, render_comparison

    parser = argparse.ArgumentParser(description="Compare two persisted inspection records")
    parser.add_argument("before", help="inspect_before.json")
    parser.add_argument("after", help="inspect_after.json")
    parser.add_argument("--draco", action="store_true", help="Draco compression was applied")
    parser.add_argument("--ktx2", action="store_true", help="KTX2 compression was applied")
    parser.add_argument("--json", action="store_true", help="Output as JSON")

    args = parser.parse_args()

    result = compare_snapshots(
        load_snapshot(args.before),
        load_snapshot(args.after),
        PipelineConfig(draco=args.draco, ktx2=args.ktx2),
    )

    if args.json:
        print(result.to_json())
    else:
        print(render_comparison(result))
