"""
Pipeline Errors

Every failure the pipeline can hit is one of these. All of them are fatal:
the orchestrator cleans up the transient GLB, the CLI prints the message and
exits non-zero. Nothing here is retried.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for fatal pipeline failures"""

    stage = "pipeline"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class ToolUnavailableError(PipelineError):
    """An external executable (FBX2glTF, gltf-transform) is not on PATH"""

    stage = "preflight"

    def __init__(self, tool: str, hint: str = ""):
        message = f"Required tool not found: {tool}"
        if hint:
            message = f"{message} ({hint})"
        super().__init__(message)
        self.tool = tool
        self.hint = hint


class InputNotFoundError(PipelineError):
    stage = "preflight"

    def __init__(self, path: str):
        super().__init__(f"Input file not found: {path}")
        self.path = path


class ConversionError(PipelineError):
    """FBX2glTF ran but did not produce a usable GLB"""

    stage = "convert"


class DocumentLoadError(ConversionError):
    """The intermediate GLB could not be parsed into a document"""

    stage = "load"


class TransformError(PipelineError):
    """A cleanup or compression stage failed"""

    stage = "transform"


class WriteError(PipelineError):
    stage = "write"


class ArtifactIOError(PipelineError):
    """Writing a JSON side artifact (snapshot, comparison) failed"""

    stage = "report"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to write {path}: {reason}")
        self.path = path


class ConfigurationError(PipelineError):
    """An environment setting has an unusable value"""

    stage = "config"
