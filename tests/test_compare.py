"""Tests for snapshot comparison and highlight rules."""

import pytest

from fbx2glb.compare import (
    compare_snapshots,
    format_percent,
    texture_count,
    vertex_count,
    HIGHLIGHT_RULES,
)
from fbx2glb.config import PipelineConfig
from fbx2glb.inspector import InspectionSnapshot, MaterialRecord, MeshRecord, SceneRecord


def snapshot(meshes=(), materials=0, texture_refs=0, textures=0, animations=0, upload=None):
    """meshes: sequence of (vertex_count, has_uv[, byte_size])"""
    mesh_records = []
    for i, entry in enumerate(meshes):
        vertices, has_uv = entry[0], entry[1]
        byte_size = entry[2] if len(entry) > 2 else vertices * 24
        names = {"POSITION", "NORMAL"} | ({"TEXCOORD_0"} if has_uv else set())
        mesh_records.append(MeshRecord(f"mesh_{i}", vertices, byte_size, frozenset(names), 1))
    scenes = (SceneRecord("root", upload, upload),) if upload is not None else ()
    return InspectionSnapshot(
        meshes=tuple(mesh_records),
        materials=tuple(MaterialRecord(f"mat_{i}", 1 if i < texture_refs else 0) for i in range(materials)),
        textures=textures,
        animations=animations,
        scenes=scenes,
    )


@pytest.mark.parametrize("before,after", [
    (1000, 877),
    (3, 0),
    (4, 2),
    (100, 150),
    (7, 7),
    (3, 1),
    (9999, 10000),
])
def test_percent_matches_rounded_ratio(before, after):
    diff = after - before
    percent = format_percent(diff, before)

    assert percent.endswith("%")
    value = float(percent[:-1])
    assert value == round(diff / before * 100, 1)
    if diff < 0:
        assert percent.startswith("-")
    else:
        assert not percent.startswith("-")


@pytest.mark.parametrize("after", [0, 1, 5000])
def test_zero_before_gives_zero_percent(after):
    assert format_percent(after, 0) == "0.0%"

    result = compare_snapshots(snapshot(), snapshot(meshes=[(after, True)], materials=2))
    assert result.vertices.percent == "0.0%"
    assert result.materials.percent == "0.0%"
    assert result.geometry.percent == "0.0%"


def test_self_comparison_is_identity():
    shot = snapshot(meshes=[(1000, True), (50, False)], materials=3, texture_refs=1,
                    textures=1, animations=2, upload=1050)
    result = compare_snapshots(shot, shot)

    for metric in result.metrics:
        assert metric.diff == 0
        assert metric.percent == "0.0%"
    assert result.uv.status == "unchanged"
    assert result.materials.status == "unchanged"
    for highlight in result.highlights:
        for word in ("removed", "increase", "dedup"):
            assert word not in highlight


def test_vertex_fallback_per_snapshot():
    with_scene = snapshot(meshes=[(1000, False)], upload=600)
    without_scene = snapshot(meshes=[(1000, False)])
    zero_scene = snapshot(meshes=[(1000, False)], upload=0)

    assert vertex_count(with_scene) == 600
    assert vertex_count(without_scene) == 1000
    assert vertex_count(zero_scene) == 1000

    result = compare_snapshots(with_scene, without_scene)
    assert result.vertices.before == 600
    assert result.vertices.after == 1000
    assert result.vertices.diff == 400


def test_scenario_material_dedup():
    before = snapshot(meshes=[(1000, False)], materials=4)
    after = snapshot(meshes=[(1000, False)], materials=2)
    result = compare_snapshots(before, after)

    assert result.vertices.diff == 0
    assert result.vertices.percent == "0.0%"
    assert result.materials.diff == -2
    assert result.materials.status == "dedup"
    assert result.materials.percent == "-50.0%"
    dedup = [h for h in result.highlights if "dedup" in h]
    assert len(dedup) == 1
    assert "4" in dedup[0] and "2" in dedup[0]


def test_scenario_uv_removed():
    before = snapshot(meshes=[(100, True), (100, True), (100, True)])
    after = snapshot(meshes=[(100, False), (100, False), (100, False)])
    result = compare_snapshots(before, after)

    assert result.uv.before == 3
    assert result.uv.after == 0
    assert result.uv.total_meshes == 3
    assert result.uv.status == "removed"
    assert result.uv.change == "100.0%"
    assert result.uv.percent == "-100.0%"
    assert result.highlights[0] == "Volume reduction mainly comes from prune removing unused UV data"


def test_uv_partial_removal_and_addition():
    removed = compare_snapshots(snapshot(meshes=[(1, True)] * 4), snapshot(meshes=[(1, True), (1, False)] * 2))
    assert removed.uv.status == "removed"
    assert removed.uv.change == "50.0%"

    added = compare_snapshots(snapshot(meshes=[(1, True), (1, False)]), snapshot(meshes=[(1, True), (1, True)]))
    assert added.uv.status == "added"
    assert added.uv.change == "100.0%"
    assert not any("UV" in h for h in added.highlights)

    from_nothing = compare_snapshots(snapshot(meshes=[(1, False)]), snapshot(meshes=[(1, True)]))
    assert from_nothing.uv.status == "added"
    assert from_nothing.uv.change == "0.0%"


@pytest.mark.parametrize("ktx2", [True, False])
def test_scenario_draco_without_textures(ktx2):
    shot = snapshot(meshes=[(100, False)], materials=1, textures=0)
    result = compare_snapshots(shot, shot, PipelineConfig(draco=True, ktx2=ktx2))

    assert "Draco geometry compression applied" in result.highlights
    assert "KTX2 texture compression applied" not in result.highlights
    assert result.textures.has_textures is False
    assert result.textures.ktx2_status == "not_applicable"


def test_ktx2_status_with_textures():
    shot = snapshot(meshes=[(100, True)], materials=1, texture_refs=1, textures=1)

    applied = compare_snapshots(shot, shot, PipelineConfig(ktx2=True))
    assert applied.textures.ktx2_status == "applied"
    assert applied.highlights == ("KTX2 texture compression applied",)

    disabled = compare_snapshots(shot, shot, PipelineConfig())
    assert disabled.textures.ktx2_status == "disabled"
    assert disabled.highlights == ()


def test_texture_count_falls_back_to_material_refs():
    no_registry = snapshot(materials=3, texture_refs=2, textures=None)
    empty_registry = snapshot(materials=3, texture_refs=2, textures=0)

    assert texture_count(no_registry) == 2
    assert texture_count(empty_registry) == 0
    assert texture_count(snapshot(textures=None)) == 0


def test_highlight_rule_order():
    before = snapshot(meshes=[(100, True)], materials=3, texture_refs=1, textures=2)
    after = snapshot(meshes=[(100, False)], materials=1, texture_refs=1, textures=2)
    result = compare_snapshots(before, after, PipelineConfig(draco=True, ktx2=True))

    assert [tag for tag, _ in HIGHLIGHT_RULES] == ["uv", "materials", "geometry", "textures"]
    assert result.highlights == (
        "Volume reduction mainly comes from prune removing unused UV data",
        "Materials deduplicated from 3 to 1",
        "Draco geometry compression applied",
        "KTX2 texture compression applied",
    )


def test_material_increase_has_no_dedup_highlight():
    result = compare_snapshots(snapshot(materials=1), snapshot(materials=3))

    assert result.materials.status == "increase"
    assert result.materials.diff == 2
    assert result.highlights == ()


def test_animation_states():
    none = compare_snapshots(snapshot(animations=0), snapshot(animations=0)).animations
    assert none.preserved is False
    assert none.status == "none"

    kept = compare_snapshots(snapshot(animations=2), snapshot(animations=2)).animations
    assert kept.preserved is True
    assert kept.status == "preserved"

    lost = compare_snapshots(snapshot(animations=2), snapshot(animations=1)).animations
    assert lost.preserved is False
    assert lost.status == "partial"


def test_geometry_megabytes():
    before = snapshot(meshes=[(0, False, 3 * 1024 * 1024)])
    after = snapshot(meshes=[(0, False, 1024 * 1024 + 512 * 1024)])
    geometry = compare_snapshots(before, after).geometry

    assert geometry.before == 3 * 1024 * 1024
    assert geometry.before_mb == 3.0
    assert geometry.after_mb == 1.5
    assert geometry.diff_mb == -1.5
    assert geometry.percent == "-50.0%"


def test_result_dict_is_plain_json():
    result = compare_snapshots(snapshot(meshes=[(10, True)]), snapshot(meshes=[(8, False)]),
                               PipelineConfig(draco=True))
    data = result.to_dict()

    assert set(data) == {"vertices", "uv", "geometry", "materials", "animations", "textures", "compression", "highlights"}
    assert data["compression"] == "draco"
    assert data["uv"]["status"] == "removed"
    assert data["vertices"] == {"name": "vertices", "before": 10, "after": 8, "diff": -2, "percent": "-20.0%"}
    assert isinstance(data["highlights"], list)


@pytest.mark.parametrize("draco, ktx2, expected", [
    (False, False, "skipped"),
    (True, False, "draco"),
    (False, True, "ktx2"),
    (True, True, "draco+ktx2"),
])
def test_compression_tag_follows_config(draco, ktx2, expected):
    same = snapshot(meshes=[(10, True)])
    result = compare_snapshots(same, same, PipelineConfig(draco=draco, ktx2=ktx2))

    assert result.compression == expected
    assert result.to_dict()["compression"] == expected
