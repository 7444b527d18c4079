"""
FBX to GLB Converter

Runs the FBX2glTF binary to turn an FBX file into a raw, unoptimized GLB.
FBX is a complex binary format - FBX2glTF handles the parsing, the rest of
the pipeline handles optimization.

FBX Format Notes:
- Binary or ASCII format (FBX2glTF handles both)
- Full scene support: geometry, materials, skinning, animation
- Embedded textures are packed into the GLB binary chunk with -b
"""

import os
import shutil
import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from .config import ToolSettings
from .errors import ConversionError, InputNotFoundError, ToolUnavailableError

logger = logging.getLogger(__name__)

INSTALL_HINT = "install FBX2glTF (https://github.com/facebookincubator/FBX2glTF) and add it to PATH"


def find_executable(name: str) -> Optional[str]:
    """Resolve an executable by name or explicit path"""
    if os.path.sep in name or (os.path.altsep and os.path.altsep in name):
        return name if os.path.isfile(name) and os.access(name, os.X_OK) else None
    return shutil.which(name)


class FBXConverter:
    """
    Converts FBX files to GLB using FBX2glTF.

    Pipeline position: first stage. The GLB written here is transient; the
    orchestrator loads it, optimizes the document and deletes it afterwards.
    """

    def __init__(self, executable: Optional[str] = None, timeout: Optional[int] = None):
        settings = ToolSettings.from_env()
        self.executable = executable or settings.fbx2gltf
        self.timeout = timeout or settings.timeout

    def is_available(self) -> bool:
        return find_executable(self.executable) is not None

    def ensure_available(self):
        if not self.is_available():
            raise ToolUnavailableError(self.executable, INSTALL_HINT)

    def build_command(self, input_path: str, output_path: str) -> List[str]:
        # -b: binary GLB output
        return [self.executable, '-b', '-i', str(input_path), '-o', str(output_path)]

    def convert(self, input_path: str, output_path: str) -> str:
        """
        Convert FBX to GLB.

        Args:
            input_path: Path to .fbx file
            output_path: Where FBX2glTF should write the GLB

        Returns:
            Path to the written GLB

        Raises:
            InputNotFoundError: input does not exist
            ToolUnavailableError: FBX2glTF could not be started
            ConversionError: FBX2glTF failed or wrote nothing
        """
        if not os.path.exists(input_path):
            raise InputNotFoundError(str(input_path))

        command = self.build_command(input_path, output_path)
        logger.info("Running %s", " ".join(command))

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise ToolUnavailableError(self.executable, INSTALL_HINT) from None
        except subprocess.TimeoutExpired as e:
            raise ConversionError(f"FBX2glTF timed out after {e.timeout}s") from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip()
            raise ConversionError(f"FBX2glTF conversion failed (exit {e.returncode}): {detail}") from e

        if result.stdout:
            logger.debug("FBX2glTF output: %s", result.stdout.strip())

        if not os.path.exists(output_path):
            raise ConversionError(f"FBX2glTF reported success but no file was written: {output_path}")

        return str(output_path)


# ============================================================================
# Convenience Functions
# ============================================================================

def fbx_to_glb(input_path: str, output_path: Optional[str] = None) -> str:
    """
    Convert FBX to a raw GLB without any optimization.

    Args:
        input_path: Path to .fbx file
        output_path: Output path (default: same name with .glb)

    Returns:
        Path to the GLB
    """
    if output_path is None:
        output_path = str(Path(input_path).with_suffix('.glb'))
    return FBXConverter().convert(input_path, output_path)


# ============================================================================
# CLI
# ============================================================================

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Convert FBX to a raw GLB with FBX2glTF")
    parser.add_argument("input", help="Input FBX file")
    parser.add_argument("-o", "--output", help="Output file path")

    args = parser.parse_args()

    print(f"Converted: {args.input} -> {fbx_to_glb(args.input, args.output)}")
