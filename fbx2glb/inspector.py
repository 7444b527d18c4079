"""
GLB Inspector

Captures a structural snapshot of a document: per-mesh vertex counts,
attribute sets and geometry sizes, material texture usage, texture and
animation counts, and per-scene vertex totals.

Snapshots are immutable values. Capturing one never touches the document,
and capturing twice from an unmodified document gives equal snapshots.

Usage:
    from fbx2glb.inspector import inspect_document

    snapshot = inspect_document(document)
    print(snapshot.total_vertices)
"""

import json
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple
from dataclasses import dataclass

from pygltflib import GLTF2


COMPONENT_SIZES = {
    5120: 1,  # BYTE
    5121: 1,  # UNSIGNED_BYTE
    5122: 2,  # SHORT
    5123: 2,  # UNSIGNED_SHORT
    5125: 4,  # UNSIGNED_INT
    5126: 4,  # FLOAT
}

TYPE_COMPONENT_COUNT = {
    'SCALAR': 1,
    'VEC2': 2,
    'VEC3': 3,
    'VEC4': 4,
    'MAT2': 4,
    'MAT3': 9,
    'MAT4': 16,
}

UV_ATTRIBUTE_PREFIX = 'TEXCOORD'


@dataclass(frozen=True)
class MeshRecord:
    name: str
    vertex_count: int
    byte_size: int
    attribute_names: FrozenSet[str]
    primitive_count: int = 0

    @property
    def has_uv(self) -> bool:
        return any(name.startswith(UV_ATTRIBUTE_PREFIX) for name in self.attribute_names)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "vertex_count": self.vertex_count,
            "byte_size": self.byte_size,
            "attribute_names": sorted(self.attribute_names),
            "primitive_count": self.primitive_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MeshRecord':
        return cls(
            name=data.get("name", ""),
            vertex_count=int(data.get("vertex_count", 0)),
            byte_size=int(data.get("byte_size", 0)),
            attribute_names=frozenset(data.get("attribute_names", [])),
            primitive_count=int(data.get("primitive_count", 0)),
        )


@dataclass(frozen=True)
class MaterialRecord:
    name: str
    texture_refs: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "texture_refs": self.texture_refs}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MaterialRecord':
        return cls(name=data.get("name", ""), texture_refs=int(data.get("texture_refs", 0)))


@dataclass(frozen=True)
class SceneRecord:
    """Vertex totals for one scene. Upload counts shared geometry once, render counts every instance."""
    name: str
    upload_vertex_count: int
    render_vertex_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "upload_vertex_count": self.upload_vertex_count,
            "render_vertex_count": self.render_vertex_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SceneRecord':
        return cls(
            name=data.get("name", ""),
            upload_vertex_count=int(data.get("upload_vertex_count", 0)),
            render_vertex_count=int(data.get("render_vertex_count", 0)),
        )


@dataclass(frozen=True)
class InspectionSnapshot:
    """Point-in-time structural summary of a document"""
    meshes: Tuple[MeshRecord, ...] = ()
    materials: Tuple[MaterialRecord, ...] = ()
    textures: Optional[int] = None  # None: no texture registry available
    animations: int = 0
    scenes: Tuple[SceneRecord, ...] = ()

    @property
    def total_vertices(self) -> int:
        return sum(mesh.vertex_count for mesh in self.meshes)

    @property
    def upload_vertex_count(self) -> int:
        """Precomputed total from the first scene, 0 when there is none"""
        return self.scenes[0].upload_vertex_count if self.scenes else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meshes": [mesh.to_dict() for mesh in self.meshes],
            "materials": [material.to_dict() for material in self.materials],
            "textures": self.textures,
            "animations": self.animations,
            "scenes": [scene.to_dict() for scene in self.scenes],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InspectionSnapshot':
        textures = data.get("textures")
        return cls(
            meshes=tuple(MeshRecord.from_dict(m) for m in data.get("meshes") or []),
            materials=tuple(MaterialRecord.from_dict(m) for m in data.get("materials") or []),
            textures=int(textures) if textures is not None else None,
            animations=int(data.get("animations") or 0),
            scenes=tuple(SceneRecord.from_dict(s) for s in data.get("scenes") or []),
        )


# ============================================================================
# Collection
# ============================================================================

def _attribute_items(attributes) -> Iterable[Tuple[str, Any]]:
    if attributes is None:
        return []
    if isinstance(attributes, dict):
        return attributes.items()
    return vars(attributes).items()


def _primitive_attributes(primitive) -> Dict[str, int]:
    """Semantic -> accessor index for the attributes a primitive actually uses"""
    return {
        name: index
        for name, index in _attribute_items(primitive.attributes)
        if isinstance(index, int) and not isinstance(index, bool)
    }


def accessor_byte_length(document: GLTF2, index: int) -> int:
    accessors = document.accessors or []
    if index < 0 or index >= len(accessors):
        return 0
    accessor = accessors[index]
    components = TYPE_COMPONENT_COUNT.get(accessor.type, 0)
    size = COMPONENT_SIZES.get(accessor.componentType, 0)
    return (accessor.count or 0) * components * size


def accessor_count(document: GLTF2, index: Optional[int]) -> int:
    accessors = document.accessors or []
    if index is None or index < 0 or index >= len(accessors):
        return 0
    return accessors[index].count or 0


def _inspect_mesh(document: GLTF2, index: int, mesh) -> MeshRecord:
    vertex_count = 0
    names: Set[str] = set()
    used_accessors: Set[int] = set()
    primitives = mesh.primitives or []

    for primitive in primitives:
        attributes = _primitive_attributes(primitive)
        names.update(attributes)
        used_accessors.update(attributes.values())
        if primitive.indices is not None:
            used_accessors.add(primitive.indices)
        vertex_count += accessor_count(document, attributes.get('POSITION'))

    byte_size = sum(accessor_byte_length(document, i) for i in sorted(used_accessors))

    return MeshRecord(
        name=mesh.name or f"mesh_{index}",
        vertex_count=vertex_count,
        byte_size=byte_size,
        attribute_names=frozenset(names),
        primitive_count=len(primitives),
    )


def _material_texture_refs(material) -> int:
    slots = [material.normalTexture, material.occlusionTexture, material.emissiveTexture]
    pbr = material.pbrMetallicRoughness
    if pbr is not None:
        slots.extend([pbr.baseColorTexture, pbr.metallicRoughnessTexture])
    return sum(1 for slot in slots if slot is not None)


def _mesh_positions(document: GLTF2, mesh_index: int) -> List[int]:
    meshes = document.meshes or []
    if mesh_index < 0 or mesh_index >= len(meshes):
        return []
    positions = []
    for primitive in meshes[mesh_index].primitives or []:
        position = _primitive_attributes(primitive).get('POSITION')
        if position is not None:
            positions.append(position)
    return positions


def _inspect_scene(document: GLTF2, index: int, scene) -> SceneRecord:
    nodes = document.nodes or []
    uploaded: Set[int] = set()
    render_count = 0

    stack = list(reversed(scene.nodes or []))
    visited: Set[int] = set()
    while stack:
        node_index = stack.pop()
        if node_index in visited or node_index < 0 or node_index >= len(nodes):
            continue
        visited.add(node_index)
        node = nodes[node_index]

        if node.mesh is not None:
            for position in _mesh_positions(document, node.mesh):
                render_count += accessor_count(document, position)
                uploaded.add(position)

        stack.extend(reversed(node.children or []))

    return SceneRecord(
        name=scene.name or f"scene_{index}",
        upload_vertex_count=sum(accessor_count(document, i) for i in sorted(uploaded)),
        render_vertex_count=render_count,
    )


def inspect_document(document: GLTF2) -> InspectionSnapshot:
    """
    Take a snapshot of a document.

    Args:
        document: pygltflib document (read only)

    Returns:
        InspectionSnapshot
    """
    meshes = tuple(
        _inspect_mesh(document, i, mesh) for i, mesh in enumerate(document.meshes or [])
    )
    materials = tuple(
        MaterialRecord(name=material.name or f"material_{i}", texture_refs=_material_texture_refs(material))
        for i, material in enumerate(document.materials or [])
    )
    scenes = tuple(
        _inspect_scene(document, i, scene) for i, scene in enumerate(document.scenes or [])
    )

    return InspectionSnapshot(
        meshes=meshes,
        materials=materials,
        textures=len(document.textures) if document.textures is not None else None,
        animations=len(document.animations or []),
        scenes=scenes,
    )


# ============================================================================
# CLI
# ============================================================================

if __name__ == "__main__":
    import argparse

    from .scene_io import SceneIO, COMPRESSION_EXTENSIONS

    parser = argparse.ArgumentParser(description="Print a structural snapshot of a GLB file")
    parser.add_argument("filepath", help="Path to GLB file")

    args = parser.parse_args()

    document = SceneIO().register_extensions(COMPRESSION_EXTENSIONS).read(args.filepath)
    print(inspect_document(document).to_json())
