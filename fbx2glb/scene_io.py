"""
Scene IO

Reads and writes GLB files as in-memory pygltflib documents.

Extensions are opaque to pygltflib: compressed payloads (Draco buffers,
KTX2 images) survive a read/write cycle untouched. SceneIO therefore only
tracks which extensions the pipeline knows how to carry and refuses
documents that *require* anything else.
"""

import logging
from pathlib import Path
from typing import Iterable, Set, Union

from pygltflib import GLTF2

from .errors import DocumentLoadError, WriteError

logger = logging.getLogger(__name__)

GLB_MAGIC = b'glTF'

KHR_DRACO_MESH_COMPRESSION = 'KHR_draco_mesh_compression'
KHR_TEXTURE_BASISU = 'KHR_texture_basisu'

# Codecs needed by the optional compression stages
COMPRESSION_EXTENSIONS = (KHR_DRACO_MESH_COMPRESSION, KHR_TEXTURE_BASISU)

PathLike = Union[str, Path]


class SceneIO:
    """GLB reader/writer with an explicit set of supported extensions"""

    def __init__(self):
        self.extensions: Set[str] = set()

    def register_extensions(self, extensions: Iterable[str]) -> 'SceneIO':
        self.extensions.update(extensions)
        logger.debug("Registered extensions: %s", ", ".join(sorted(self.extensions)))
        return self

    def unsupported_extensions(self, document: GLTF2) -> Set[str]:
        required = set(document.extensionsRequired or [])
        return required - self.extensions

    def read(self, path: PathLike) -> GLTF2:
        """
        Load a GLB file.

        Raises:
            DocumentLoadError: missing/unparseable file or unregistered required extension
        """
        path = Path(path)
        if not path.exists():
            raise DocumentLoadError(f"GLB file not found: {path}")

        with open(path, 'rb') as f:
            if f.read(4) != GLB_MAGIC:
                raise DocumentLoadError(f"{path.name} is not a GLB file (invalid magic bytes)")

        try:
            document = GLTF2().load_binary(str(path))
        except Exception as e:
            raise DocumentLoadError(f"Failed to parse {path.name}: {e}") from e

        if document is None:
            raise DocumentLoadError(f"Failed to parse {path.name}")

        missing = self.unsupported_extensions(document)
        if missing:
            raise DocumentLoadError(
                f"{path.name} requires unregistered extensions: {', '.join(sorted(missing))}"
            )

        logger.info("Loaded %s (%d meshes, %d materials)", path.name,
                    len(document.meshes or []), len(document.materials or []))
        return document

    def write(self, path: PathLike, document: GLTF2) -> Path:
        """
        Serialize a document to GLB.

        Raises:
            WriteError: serialization or file system failure
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            document.save_binary(str(path))
        except Exception as e:
            raise WriteError(f"Failed to write {path}: {e}") from e

        if not path.exists():
            raise WriteError(f"Nothing was written to {path}")

        logger.info("Wrote %s", path)
        return path
