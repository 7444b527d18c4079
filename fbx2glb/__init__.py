"""
fbx2glb

Converts FBX assets to optimized, web-ready GLB files and reports what the
optimization changed.

Pipeline:
1. FBX2glTF converts the FBX to a raw GLB
2. Scene cleanup: weld, prune, dedup (gltf-transform)
3. Optional compression: Draco geometry, KTX2 textures
4. Before/after snapshots are compared and explained

Quick Start:
    from fbx2glb import convert_fbx_to_glb

    run = convert_fbx_to_glb("character.fbx", draco=True)
    print(run.summary())

    # Compare any two documents
    from fbx2glb import inspect_document, compare_snapshots
    result = compare_snapshots(inspect_document(doc_a), inspect_document(doc_b))
"""

__version__ = "1.2.0"

from .errors import (
    PipelineError,
    ToolUnavailableError,
    InputNotFoundError,
    ConversionError,
    DocumentLoadError,
    TransformError,
    WriteError,
    ArtifactIOError,
    ConfigurationError,
)
from .config import PipelineConfig, PipelinePaths, resolve_paths
from .inspector import InspectionSnapshot, MeshRecord, MaterialRecord, SceneRecord, inspect_document
from .compare import ComparisonResult, MetricDelta, compare_snapshots
from .report import ReportFormatter, render_comparison
from .pipeline import PipelineOrchestrator, PipelineRun, convert_fbx_to_glb, main

__all__ = [
    # Main entry point
    'convert_fbx_to_glb',
    'PipelineOrchestrator',
    'PipelineRun',
    'PipelineConfig',
    'PipelinePaths',
    'resolve_paths',
    'main',
    # Inspection / comparison
    'inspect_document',
    'InspectionSnapshot',
    'MeshRecord',
    'MaterialRecord',
    'SceneRecord',
    'compare_snapshots',
    'ComparisonResult',
    'MetricDelta',
    'ReportFormatter',
    'render_comparison',
    # Errors
    'PipelineError',
    'ToolUnavailableError',
    'InputNotFoundError',
    'ConversionError',
    'DocumentLoadError',
    'TransformError',
    'WriteError',
    'ConfigurationError',
    'ArtifactIOError',
]
