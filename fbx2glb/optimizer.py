"""
GLB Optimizer

Cleanup and compression stages applied to the in-memory document.

The heavy lifting (welding, pruning, deduplication, Draco encoding, KTX2
encoding) is done by the gltf-transform CLI. Each stage serializes the
document to a scratch GLB, runs one or more gltf-transform commands on it and
reads the result back. This module only decides which commands run, in what
order and with which parameters.

Stages:
- Cleanup (always):    weld -> prune -> dedup
- Compression (opt-in): draco -> KTX2 (resize + UASTC)
"""

import logging
import tempfile
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from pygltflib import GLTF2

from .config import PipelineConfig, ToolSettings
from .errors import PipelineError, ToolUnavailableError, TransformError
from .fbx_converter import find_executable
from .scene_io import SceneIO, COMPRESSION_EXTENSIONS

logger = logging.getLogger(__name__)

INSTALL_HINT = "npm install --global @gltf-transform/cli"

# (command, arguments) pairs passed to gltf-transform
Command = Tuple[str, List[str]]


@dataclass(frozen=True)
class OptimizationSettings:
    """Fixed parameters of the optimization stages"""

    # Cleanup
    weld_tolerance: float = 0.0001

    # Geometry compression
    draco_method: str = 'edgebreaker'
    quantization_volume: str = 'mesh'
    quantization_bits: Dict[str, int] = field(default_factory=lambda: {
        'POSITION': 14,
        'NORMAL': 10,
        'TEX_COORD': 12,
        'COLOR': 8,
        'GENERIC': 12,
    })

    # Texture compression
    texture_format: str = 'uastc'
    texture_quality: int = 128  # BasisU scale, 1-255
    max_texture_size: int = 2048

    @classmethod
    def from_config(cls, config: PipelineConfig) -> 'OptimizationSettings':
        return cls(max_texture_size=config.max_texture_dimension)


class GLTFTransformRunner:
    """Applies gltf-transform CLI commands to in-memory documents"""

    def __init__(self, io: SceneIO, executable: Optional[str] = None, timeout: Optional[int] = None):
        settings = ToolSettings.from_env()
        self.io = io
        self.executable = executable or settings.gltf_transform
        self.timeout = timeout or settings.timeout

    def is_available(self) -> bool:
        return find_executable(self.executable) is not None

    def ensure_available(self):
        if not self.is_available():
            raise ToolUnavailableError(self.executable, INSTALL_HINT)

    def run(self, document: GLTF2, commands: List[Command], stage: str) -> GLTF2:
        """
        Run commands in sequence, each reading the previous command's output.

        Raises:
            ToolUnavailableError: gltf-transform could not be started
            TransformError: a command failed or its output was unreadable
        """
        with tempfile.TemporaryDirectory(prefix='fbx2glb_') as workdir:
            current = Path(workdir) / 'stage_0.glb'
            try:
                self.io.write(current, document)
            except PipelineError as e:
                raise TransformError(f"Could not serialize document: {e.message}", stage) from e

            for i, (command, arguments) in enumerate(commands, start=1):
                target = Path(workdir) / f'stage_{i}.glb'
                cmd = [self.executable, command, str(current), str(target)] + arguments
                logger.debug("Running %s", " ".join(cmd))

                try:
                    result = subprocess.run(
                        cmd,
                        capture_output=True,
                        text=True,
                        check=True,
                        timeout=self.timeout,
                    )
                except FileNotFoundError:
                    raise ToolUnavailableError(self.executable, INSTALL_HINT) from None
                except subprocess.TimeoutExpired as e:
                    raise TransformError(f"gltf-transform {command} timed out after {e.timeout}s", stage) from e
                except subprocess.CalledProcessError as e:
                    detail = (e.stderr or e.stdout or "").strip()
                    raise TransformError(f"gltf-transform {command} failed (exit {e.returncode}): {detail}", stage) from e

                if result.stdout:
                    logger.debug("gltf-transform %s: %s", command, result.stdout.strip())
                current = target

            try:
                return self.io.read(current)
            except PipelineError as e:
                raise TransformError(f"Could not read stage output: {e.message}", stage) from e


class Stage:
    """
    One step of the optimization sequence.

    Subclasses describe their gltf-transform commands; apply() runs them and
    returns the transformed document. The input document is not modified.
    """

    name = "stage"

    def __init__(self, runner: GLTFTransformRunner):
        self.runner = runner

    def commands(self) -> List[Command]:
        raise NotImplementedError

    def describe(self) -> str:
        return self.name

    def apply(self, document: GLTF2) -> GLTF2:
        logger.info("Applying %s", self.describe())
        return self.runner.run(document, self.commands(), self.name)


class WeldStage(Stage):
    """Merge vertices closer than the tolerance"""

    name = "weld"

    def __init__(self, runner: GLTFTransformRunner, tolerance: float = 0.0001):
        super().__init__(runner)
        self.tolerance = tolerance

    def commands(self) -> List[Command]:
        return [('weld', ['--tolerance', str(self.tolerance)])]

    def describe(self) -> str:
        return f"weld (tolerance={self.tolerance})"


class PruneStage(Stage):
    """Drop unreferenced nodes, accessors, materials, textures and unused attributes"""

    name = "prune"

    def commands(self) -> List[Command]:
        return [('prune', [])]


class DedupStage(Stage):
    """Merge identical accessors, meshes, materials and textures"""

    name = "dedup"

    def commands(self) -> List[Command]:
        return [('dedup', [])]


class DracoStage(Stage):
    name = "draco"

    def __init__(self, runner: GLTFTransformRunner, method: str = 'edgebreaker',
                 quantization_volume: str = 'mesh', quantization_bits: Optional[Dict[str, int]] = None):
        super().__init__(runner)
        self.method = method
        self.quantization_volume = quantization_volume
        self.quantization_bits = dict(quantization_bits or OptimizationSettings().quantization_bits)

    def commands(self) -> List[Command]:
        bits = self.quantization_bits
        return [('draco', [
            '--method', self.method,
            '--quantization-volume', self.quantization_volume,
            '--quantize-position', str(bits['POSITION']),
            '--quantize-normal', str(bits['NORMAL']),
            '--quantize-texcoord', str(bits['TEX_COORD']),
            '--quantize-color', str(bits['COLOR']),
            '--quantize-generic', str(bits['GENERIC']),
        ])]

    def describe(self) -> str:
        return f"draco ({self.method}, POSITION:{self.quantization_bits['POSITION']}, NORMAL:{self.quantization_bits['NORMAL']})"


class TextureCompressStage(Stage):
    """Resize textures to the bound, then encode them as KTX2/BasisU"""

    name = "ktx2"

    def __init__(self, runner: GLTFTransformRunner, texture_format: str = 'uastc',
                 quality: int = 128, max_size: int = 2048):
        super().__init__(runner)
        self.texture_format = texture_format.lower()
        self.quality = quality
        self.max_size = max_size

    def encoder_arguments(self) -> List[str]:
        if self.texture_format == 'etc1s':
            return ['--quality', str(self.quality)]
        # UASTC takes a 0-4 effort level instead of a 1-255 quality
        return ['--level', str(round(self.quality / 255 * 4))]

    def commands(self) -> List[Command]:
        size = str(self.max_size)
        return [
            ('resize', ['--width', size, '--height', size]),
            (self.texture_format, self.encoder_arguments()),
        ]

    def describe(self) -> str:
        return f"ktx2 ({self.texture_format.upper()}, quality={self.quality}, max {self.max_size}px)"


# ============================================================================
# Stage builders
# ============================================================================

def build_cleanup_stages(runner: GLTFTransformRunner,
                         settings: Optional[OptimizationSettings] = None) -> List[Stage]:
    """weld -> prune -> dedup, always in this order"""
    settings = settings or OptimizationSettings()
    return [
        WeldStage(runner, tolerance=settings.weld_tolerance),
        PruneStage(runner),
        DedupStage(runner),
    ]


def build_compression_stages(config: PipelineConfig, runner: GLTFTransformRunner,
                             settings: Optional[OptimizationSettings] = None) -> List[Stage]:
    """draco then ktx2, each only when requested. Empty list means skipped."""
    settings = settings or OptimizationSettings.from_config(config)
    stages: List[Stage] = []

    if config.draco:
        stages.append(DracoStage(
            runner,
            method=settings.draco_method,
            quantization_volume=settings.quantization_volume,
            quantization_bits=settings.quantization_bits,
        ))

    if config.ktx2:
        stages.append(TextureCompressStage(
            runner,
            texture_format=settings.texture_format,
            quality=settings.texture_quality,
            max_size=settings.max_texture_size,
        ))

    return stages


def apply_stages(document: GLTF2, stages: List[Stage]) -> GLTF2:
    """Run stages in order. Any failure surfaces as TransformError."""
    for stage in stages:
        try:
            document = stage.apply(document)
        except PipelineError:
            raise
        except Exception as e:
            raise TransformError(f"{stage.name} failed: {e}", stage.name) from e
    return document


# ============================================================================
# CLI
# ============================================================================

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Optimize a GLB file (weld/prune/dedup + optional compression)")
    parser.add_argument("input", help="Input GLB file")
    parser.add_argument("-o", "--output", help="Output file (default: overwrite)")
    parser.add_argument("--draco", action="store_true", help="Apply Draco geometry compression")
    parser.add_argument("--ktx2", action="store_true", help="Apply KTX2 texture compression")
    parser.add_argument("--max-tex", type=int, default=2048, help="Max texture size")

    args = parser.parse_args()

    io = SceneIO().register_extensions(COMPRESSION_EXTENSIONS)
    runner = GLTFTransformRunner(io)
    config = PipelineConfig(draco=args.draco, ktx2=args.ktx2, max_texture_dimension=args.max_tex)

    document = io.read(args.input)
    document = apply_stages(document, build_cleanup_stages(runner) + build_compression_stages(config, runner))
    io.write(args.output or args.input, document)
    print(f"Optimized: {args.input} -> {args.output or args.input}")
