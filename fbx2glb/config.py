"""
Pipeline Configuration

Run options (PipelineConfig), derived file locations (PipelinePaths) and the
external tool settings read from the environment.
"""

import os
import time
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from .errors import ConfigurationError


# Artifact names, all written next to the output GLB
TEMP_GLB_NAME = 'temp_raw.glb'
BEFORE_RECORD_NAME = 'inspect_before.json'
AFTER_RECORD_NAME = 'inspect_after.json'
COMPARISON_RECORD_NAME = 'comparison.json'

DEFAULT_MAX_TEXTURE_SIZE = 2048
DEFAULT_TOOL_TIMEOUT = 600


@dataclass(frozen=True)
class PipelineConfig:
    """Options for one conversion run"""
    draco: bool = False
    ktx2: bool = False
    max_texture_dimension: int = DEFAULT_MAX_TEXTURE_SIZE

    def __post_init__(self):
        if isinstance(self.max_texture_dimension, bool) or not isinstance(self.max_texture_dimension, int):
            raise ValueError(f"max_texture_dimension must be an integer, got {self.max_texture_dimension!r}")
        if self.max_texture_dimension <= 0:
            raise ValueError(f"max_texture_dimension must be positive, got {self.max_texture_dimension}")

    @property
    def compression_enabled(self) -> bool:
        return self.draco or self.ktx2


@dataclass(frozen=True)
class ToolSettings:
    """Locations of the external executables"""
    fbx2gltf: str = 'FBX2glTF'
    gltf_transform: str = 'gltf-transform'
    timeout: int = DEFAULT_TOOL_TIMEOUT

    @classmethod
    def from_env(cls) -> 'ToolSettings':
        """
        Read tool locations and the timeout from the environment.

        Raises:
            ConfigurationError: FBX2GLB_TOOL_TIMEOUT is not a positive integer
        """
        return cls(
            fbx2gltf=os.environ.get('FBX2GLTF_PATH') or cls.fbx2gltf,
            gltf_transform=os.environ.get('GLTF_TRANSFORM_PATH') or cls.gltf_transform,
            timeout=_timeout_from_env(),
        )


def _timeout_from_env() -> int:
    value = os.environ.get('FBX2GLB_TOOL_TIMEOUT', '').strip()
    if not value:
        return DEFAULT_TOOL_TIMEOUT
    try:
        timeout = int(value)
    except ValueError:
        raise ConfigurationError(f"FBX2GLB_TOOL_TIMEOUT must be a number of seconds, got {value!r}") from None
    if timeout <= 0:
        raise ConfigurationError(f"FBX2GLB_TOOL_TIMEOUT must be positive, got {timeout}")
    return timeout


@dataclass(frozen=True)
class PipelinePaths:
    """Input, output and transient GLB locations (JSON records live in output_dir)"""
    input_path: Path
    output_path: Path
    temp_path: Path

    @property
    def output_dir(self) -> Path:
        return self.output_path.parent


def default_output_path(input_path: str) -> Path:
    """<input dir>/<stem>_<epoch ms>.glb"""
    source = Path(input_path)
    return source.parent / f"{source.stem}_{int(time.time() * 1000)}.glb"


def resolve_paths(input_path: str, output_path: Optional[str] = None) -> PipelinePaths:
    """
    Work out the output GLB and the artifact locations for a run.

    Args:
        input_path: FBX file to convert
        output_path: Output GLB (default: timestamped name beside the input)

    Returns:
        PipelinePaths
    """
    output = Path(output_path) if output_path else default_output_path(input_path)
    output_dir = output.parent

    return PipelinePaths(
        input_path=Path(input_path),
        output_path=output,
        temp_path=output_dir / TEMP_GLB_NAME,
    )
