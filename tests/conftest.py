"""Pytest configuration. Document factories shared by the test modules."""
import struct
from pathlib import Path

import pytest
from pygltflib import (
    GLTF2,
    Accessor,
    Animation,
    Attributes,
    Buffer,
    BufferView,
    Image,
    Material,
    Mesh,
    Node,
    PbrMetallicRoughness,
    Primitive,
    Scene,
    Texture,
    TextureInfo,
)

FLOAT = 5126
ARRAY_BUFFER = 34962


def build_document(meshes=(), materials=0, texture_refs=0, textures=0, animations=0, instances=1):
    """
    In-memory document without binary data.

    meshes: sequence of (vertex_count, has_uv)
    materials: number of materials, the first `texture_refs` get a base color texture
    instances: how many scene nodes reference each mesh
    """
    accessors = []
    gltf_meshes = []
    for vertex_count, has_uv in meshes:
        position = len(accessors)
        accessors.append(Accessor(componentType=FLOAT, count=vertex_count, type="VEC3"))
        normal = len(accessors)
        accessors.append(Accessor(componentType=FLOAT, count=vertex_count, type="VEC3"))
        attributes = Attributes(POSITION=position, NORMAL=normal)
        if has_uv:
            attributes.TEXCOORD_0 = len(accessors)
            accessors.append(Accessor(componentType=FLOAT, count=vertex_count, type="VEC2"))
        gltf_meshes.append(Mesh(name=f"mesh_{len(gltf_meshes)}", primitives=[Primitive(attributes=attributes)]))

    gltf_materials = []
    for i in range(materials):
        pbr = PbrMetallicRoughness()
        if i < texture_refs:
            pbr.baseColorTexture = TextureInfo(index=0)
        gltf_materials.append(Material(name=f"material_{i}", pbrMetallicRoughness=pbr))

    nodes = [Node(mesh=i) for i in range(len(gltf_meshes)) for _ in range(instances)]

    return GLTF2(
        scene=0,
        scenes=[Scene(name="root", nodes=list(range(len(nodes))))],
        nodes=nodes,
        meshes=gltf_meshes,
        accessors=accessors,
        materials=gltf_materials,
        textures=[Texture(source=0) for _ in range(textures)],
        images=[Image(uri="diffuse.png")] if textures else [],
        animations=[Animation(name=f"clip_{i}", channels=[], samplers=[]) for i in range(animations)],
    )


def build_triangle(with_uv=True) -> GLTF2:
    """Single textured-or-not triangle with real binary data"""
    positions = struct.pack('<9f', 0, 0, 0, 1, 0, 0, 0, 1, 0)
    uvs = struct.pack('<6f', 0, 0, 1, 0, 0, 1)
    blob = positions + (uvs if with_uv else b"")

    attributes = Attributes(POSITION=0)
    accessors = [Accessor(bufferView=0, componentType=FLOAT, count=3, type="VEC3",
                          min=[0.0, 0.0, 0.0], max=[1.0, 1.0, 0.0])]
    buffer_views = [BufferView(buffer=0, byteOffset=0, byteLength=len(positions), target=ARRAY_BUFFER)]
    if with_uv:
        attributes.TEXCOORD_0 = 1
        accessors.append(Accessor(bufferView=1, componentType=FLOAT, count=3, type="VEC2"))
        buffer_views.append(BufferView(buffer=0, byteOffset=len(positions), byteLength=len(uvs),
                                       target=ARRAY_BUFFER))

    document = GLTF2(
        scene=0,
        scenes=[Scene(nodes=[0])],
        nodes=[Node(mesh=0)],
        meshes=[Mesh(name="triangle", primitives=[Primitive(attributes=attributes)])],
        accessors=accessors,
        bufferViews=buffer_views,
        buffers=[Buffer(byteLength=len(blob))],
        materials=[Material(name="a"), Material(name="b")],
    )
    document.set_binary_blob(blob)
    return document


def write_triangle(path, with_uv=True) -> Path:
    build_triangle(with_uv).save_binary(str(path))
    return Path(path)


@pytest.fixture
def make_document():
    return build_document


@pytest.fixture
def make_triangle():
    return build_triangle


@pytest.fixture
def triangle_glb(tmp_path):
    return write_triangle(tmp_path / "triangle.glb")


@pytest.fixture
def write_glb():
    return write_triangle
