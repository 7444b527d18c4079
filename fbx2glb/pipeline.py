"""
FBX to GLB Pipeline

Single entry point for converting an FBX file into an optimized GLB and
reporting what the optimization changed.

Stages (strictly sequential):
    1. Convert      FBX2glTF -> transient GLB
    2. Load         register compression codecs, parse the transient GLB
    3. Snapshot     inspect_before.json
    4. Cleanup      weld -> prune -> dedup (always)
    5. Compression  draco -> ktx2 (only when requested, otherwise skipped)
    6. Write        output GLB
    7. Snapshot     inspect_after.json
    8. Cleanup      delete the transient GLB (best effort, never raises)
    9. Report       comparison.json + console report

Any failure in 1-7 aborts the run; the transient GLB is removed on every
path out of the pipeline.

Usage:
    from fbx2glb.pipeline import convert_fbx_to_glb

    run = convert_fbx_to_glb("character.fbx", draco=True)
    print(run.summary())
"""

import os
import json
import sys
import time
import logging
import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from dataclasses import dataclass, field

from pygltflib import GLTF2

from . import __version__
from . import console
from .compare import ComparisonResult, compare_snapshots
from .config import PipelineConfig, PipelinePaths, resolve_paths, DEFAULT_MAX_TEXTURE_SIZE
from .errors import InputNotFoundError, PipelineError, WriteError
from .fbx_converter import FBXConverter
from .inspector import InspectionSnapshot, inspect_document
from .optimizer import (
    GLTFTransformRunner,
    Stage,
    apply_stages,
    build_cleanup_stages,
    build_compression_stages,
)
from .report import ReportFormatter
from .scene_io import SceneIO, COMPRESSION_EXTENSIONS

logger = logging.getLogger(__name__)


@dataclass
class PipelineRun:
    """Everything one invocation produced"""
    input_path: str = ""
    output_path: str = ""
    config: PipelineConfig = field(default_factory=PipelineConfig)
    success: bool = False

    before: Optional[InspectionSnapshot] = None
    after: Optional[InspectionSnapshot] = None
    comparison: Optional[ComparisonResult] = None

    # Stage names in execution order, "compression: skipped" when nothing was compressed
    stages: List[str] = field(default_factory=list)
    artifacts: List[str] = field(default_factory=list)
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "input_path": self.input_path,
            "output_path": self.output_path,
            "config": {
                "draco": self.config.draco,
                "ktx2": self.config.ktx2,
                "max_texture_dimension": self.config.max_texture_dimension,
            },
            "stages": self.stages,
            "artifacts": self.artifacts,
            "duration": round(self.duration, 3),
            "comparison": self.comparison.to_dict() if self.comparison else None,
        }

    def summary(self) -> str:
        lines = [
            "Conversion Run",
            "==============",
            f"Input:  {self.input_path}",
            f"Output: {self.output_path}",
            f"Status: {'SUCCESS' if self.success else 'FAILED'}",
            f"Stages: {' -> '.join(self.stages)}",
        ]
        if self.comparison and self.comparison.highlights:
            lines.append("\nHighlights:")
            for highlight in self.comparison.highlights:
                lines.append(f"  • {highlight}")
        return "\n".join(lines)


class PipelineOrchestrator:
    """
    Runs the conversion stages in order and owns the cleanup contract.

    Collaborators default to the real tools and can be replaced (tests pass
    fakes): converter needs ensure_available()/convert(), runner needs
    ensure_available(), stages need apply(document).
    """

    def __init__(
        self,
        paths: PipelinePaths,
        config: Optional[PipelineConfig] = None,
        converter: Optional[FBXConverter] = None,
        io: Optional[SceneIO] = None,
        runner: Optional[GLTFTransformRunner] = None,
        cleanup_stages: Optional[Sequence[Stage]] = None,
        compression_stages: Optional[Sequence[Stage]] = None,
        formatter: Optional[ReportFormatter] = None,
        show_progress: bool = True,
    ):
        self.paths = paths
        self.config = config or PipelineConfig()
        self.converter = converter or FBXConverter()
        self.io = io or SceneIO()
        self.runner = runner or GLTFTransformRunner(self.io)
        self.formatter = formatter or ReportFormatter(paths.output_dir)
        self.show_progress = show_progress
        self.run_record = self._new_record()

        self.cleanup_stages = list(cleanup_stages) if cleanup_stages is not None \
            else build_cleanup_stages(self.runner)
        self.compression_stages = list(compression_stages) if compression_stages is not None \
            else build_compression_stages(self.config, self.runner)

    def _new_record(self) -> PipelineRun:
        return PipelineRun(
            input_path=str(self.paths.input_path),
            output_path=str(self.paths.output_path),
            config=self.config,
        )

    # ------------------------------------------------------------------
    # Progress output
    # ------------------------------------------------------------------

    def _step(self, step: int, message: str):
        logger.info("[%d/%d] %s", step, console.TOTAL_STEPS, message)
        if self.show_progress:
            console.log_step(step, message)

    def _done(self, message: str, detail: str = ""):
        if self.show_progress:
            console.log_success(message, detail)

    def _file(self, path, label: str):
        if self.show_progress:
            console.log_file_info(path, label)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def preflight(self):
        if not os.path.exists(self.paths.input_path):
            raise InputNotFoundError(str(self.paths.input_path))

        # The transient GLB and the JSON records are written beside the output
        output = self.paths.output_path.resolve()
        reserved = (self.paths.temp_path, self.formatter.before_path,
                    self.formatter.after_path, self.formatter.comparison_path)
        if any(output == path.resolve() for path in reserved):
            raise WriteError(
                f"Output {self.paths.output_path} collides with a pipeline artifact, choose another name"
            )

        self.converter.ensure_available()
        self.runner.ensure_available()

        try:
            self.paths.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Cannot create output directory {self.paths.output_dir}: {e}") from e

    def convert(self) -> Path:
        self._step(1, "Convert FBX -> raw GLB")
        self.converter.convert(str(self.paths.input_path), str(self.paths.temp_path))
        self._done("FBX conversion complete")
        self._file(self.paths.temp_path, "Transient GLB")
        return self.paths.temp_path

    def load(self) -> GLTF2:
        self._step(2, "Register compression codecs")
        self.io.register_extensions(COMPRESSION_EXTENSIONS)
        self._done("Codecs registered", "Draco, KTX2/BasisU")

        self._step(3, "Read and parse GLB")
        document = self.io.read(self.paths.temp_path)
        self._done("GLB parsed")
        return document

    def snapshot(self, document: GLTF2, label: str) -> InspectionSnapshot:
        snapshot = inspect_document(document)
        if label == "before":
            path = self.formatter.save_before(snapshot)
        else:
            path = self.formatter.save_after(snapshot)
        self.run_record.artifacts.append(str(path))
        self._file(path, f"Snapshot ({label})")
        return snapshot

    def optimize(self, document: GLTF2) -> GLTF2:
        self._step(4, "Scene cleanup")
        for stage in self.cleanup_stages:
            document = apply_stages(document, [stage])
            self.run_record.stages.append(stage.name)
        self._done("Scene cleanup complete", " / ".join(stage.name for stage in self.cleanup_stages))
        return document

    def compress(self, document: GLTF2) -> GLTF2:
        if not self.compression_stages:
            self._step(5, "Compression skipped")
            self.run_record.stages.append("compression: skipped")
            if self.show_progress:
                console.log_info("Compression", "no compression enabled")
            return document

        self._step(5, "Apply compression")
        for stage in self.compression_stages:
            document = apply_stages(document, [stage])
            self.run_record.stages.append(stage.name)
            self._done(f"{stage.name} complete", stage.describe())
        return document

    def write(self, document: GLTF2) -> Path:
        self._step(6, "Write output GLB")
        self.io.write(self.paths.output_path, document)
        self._done("Output written", self.paths.output_path.name)
        self._file(self.paths.output_path, "Output GLB")
        return self.paths.output_path

    def cleanup_transient(self) -> bool:
        """Delete the transient GLB. Failures are logged, never raised."""
        path = self.paths.temp_path
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Could not remove transient file %s: %s", path, e)
            return False
        logger.info("Removed transient file %s", path)
        return True

    def report(self, before: InspectionSnapshot, after: InspectionSnapshot) -> ComparisonResult:
        comparison = compare_snapshots(before, after, self.config)
        path = self.formatter.save_comparison(comparison)
        self.run_record.artifacts.append(str(path))
        self._file(path, "Comparison report")
        if self.show_progress:
            self.formatter.print_report(comparison)
        return comparison

    # ------------------------------------------------------------------

    def run(self) -> PipelineRun:
        """
        Execute the whole pipeline.

        Returns:
            PipelineRun with snapshots, comparison and artifact paths

        Raises:
            PipelineError: any fatal stage failure (transient GLB already removed)
        """
        start = time.time()
        self.run_record = self._new_record()

        try:
            self.preflight()
            self.convert()
            document = self.load()
            before = self.snapshot(document, "before")
            document = self.optimize(document)
            document = self.compress(document)
            self.write(document)
            after = self.snapshot(document, "after")
        except PipelineError as e:
            logger.error("Pipeline failed at %s: %s", e.stage, e.message)
            raise
        finally:
            self.cleanup_transient()

        self.run_record.before = before
        self.run_record.after = after
        self.run_record.comparison = self.report(before, after)
        self.run_record.success = True
        self.run_record.duration = time.time() - start
        logger.info("\n%s", self.run_record.summary())
        return self.run_record


def convert_fbx_to_glb(
    input_path: str,
    output_path: Optional[str] = None,
    draco: bool = False,
    ktx2: bool = False,
    max_texture_dimension: int = DEFAULT_MAX_TEXTURE_SIZE,
    show_progress: bool = False,
) -> PipelineRun:
    """
    Convert an FBX file to an optimized GLB.

    Args:
        input_path: Path to .fbx file
        output_path: Output GLB (default: <name>_<timestamp>.glb beside the input)
        draco: Apply Draco geometry compression
        ktx2: Apply KTX2 texture compression
        max_texture_dimension: Resize bound for KTX2 textures
        show_progress: Print step output

    Returns:
        PipelineRun

    Example:
        >>> run = convert_fbx_to_glb("model.fbx", draco=True)
        >>> print(run.comparison.highlights)
    """
    config = PipelineConfig(draco=draco, ktx2=ktx2, max_texture_dimension=max_texture_dimension)
    paths = resolve_paths(input_path, output_path)
    return PipelineOrchestrator(paths, config, show_progress=show_progress).run()


# ============================================================================
# CLI
# ============================================================================

def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {number}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="fbx2glb",
        description="FBX -> GLB automatic optimization tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fbx2glb -i character.fbx
  fbx2glb -i character.fbx -o web/character.glb --draco
  fbx2glb -i scene.fbx --ktx2 --max-tex 1024
        """
    )

    parser.add_argument("-i", "--input", required=True, help="Input FBX file")
    parser.add_argument("-o", "--output", help="Output GLB file (default: beside the FBX)")
    parser.add_argument("--draco", action="store_true", help="Enable Draco geometry compression")
    parser.add_argument("--ktx2", action="store_true", help="Enable KTX2 texture compression")
    parser.add_argument("--max-tex", "--maxTex", dest="max_tex", type=positive_int,
                        default=DEFAULT_MAX_TEXTURE_SIZE, help="Max texture size (default: 2048)")
    parser.add_argument("--json", action="store_true", help="Print the run record (stages, artifacts, comparison) as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console.configure_logging(args.verbose)

    config = PipelineConfig(draco=args.draco, ktx2=args.ktx2, max_texture_dimension=args.max_tex)
    paths = resolve_paths(args.input, args.output)
    show_progress = not args.json
    start = time.time()

    if show_progress:
        console.show_banner()
        console.show_config(str(paths.input_path), str(paths.output_path), config)

    try:
        orchestrator = PipelineOrchestrator(paths, config, show_progress=show_progress)
        run = orchestrator.run()
    except PipelineError as e:
        console.show_error(e)
        return 1

    if args.json:
        print(json.dumps(run.to_dict(), indent=2, ensure_ascii=False))
    else:
        console.show_summary(run.input_path, run.output_path, start)
    return 0


if __name__ == "__main__":
    sys.exit(main())
