"""
Console Output

Terminal presentation for the CLI: banner, option box, step lines, file
sizes and the final summary. Progress goes to stdout with print(); diagnostic
detail goes through the standard logging module.
"""

import os
import sys
import time
import logging
from typing import List

from . import __version__

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

TOTAL_STEPS = 6


def configure_logging(verbose: bool = False):
    """Set up root logging for CLI use"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )


def format_file_size(num_bytes: int) -> str:
    """Human readable size: 0 B, 512 B, 1.5 KB, 12.3 MB"""
    if num_bytes == 0:
        return '0 B'
    units = ['B', 'KB', 'MB', 'GB']
    size = float(abs(num_bytes))
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    sign = '-' if num_bytes < 0 else ''
    if index == 0:
        return f"{sign}{int(size)} B"
    return f"{sign}{size:.1f} {units[index]}"


def _box(lines: List[str], title: str = "") -> str:
    width = max([len(line) for line in lines] + [len(title)]) + 2
    rule = "=" * width
    out = [rule]
    if title:
        out.extend([f" {title}", rule])
    out.extend(f" {line}" for line in lines)
    out.append(rule)
    return "\n".join(out)


def show_banner():
    print(_box([
        "FBX -> GLB automatic optimization tool",
        "",
        f"Version: v{__version__}",
    ], title="fbx2glb"))


def show_config(input_path: str, output_path: str, config) -> None:
    input_size = os.path.getsize(input_path) if os.path.exists(input_path) else 0
    print(_box([
        f"📁 Input:  {input_path}",
        f"💾 Size:   {format_file_size(input_size)}",
        f"📦 Output: {output_path}",
        "⚙️  Options:",
        f"   • Draco compression: {'✓ enabled' if config.draco else '✗ disabled'}",
        f"   • KTX2 compression:  {'✓ enabled' if config.ktx2 else '✗ disabled'}",
        f"   • Max texture size:  {config.max_texture_dimension}px",
    ]))


def log_step(step: int, message: str):
    print(f"\n[{step}/{TOTAL_STEPS}] {message}")


def log_success(message: str, detail: str = ""):
    print(f"  ✅ {message}" + (f" ({detail})" if detail else ""))


def log_info(message: str, detail: str = ""):
    print(f"  ℹ️  {message}" + (f" ({detail})" if detail else ""))


def log_file_info(path, label: str = "File"):
    if os.path.exists(path):
        print(f"    {label}: {path}")
        print(f"    Size: {format_file_size(os.path.getsize(path))}")


def show_summary(input_path: str, output_path: str, start_time: float):
    duration = time.time() - start_time
    input_size = os.path.getsize(input_path)
    output_size = os.path.getsize(output_path)
    ratio = (1 - output_size / input_size) * 100 if input_size else 0.0

    print(_box([
        "✨ Conversion complete!",
        "",
        f"   Input size:  {format_file_size(input_size)}",
        f"   Output size: {format_file_size(output_size)}",
        f"   Reduction:   {ratio:.1f}%",
        f"   Elapsed:     {duration:.2f}s",
        "",
        f"📁 {output_path}",
    ]))


def show_error(err: Exception):
    print(_box([
        "❌ Conversion failed",
        "",
        str(err),
        "",
        "Check that:",
        "  • the input file exists and is a valid FBX",
        "  • FBX2glTF and gltf-transform are installed and on PATH",
        "  • the output directory is writable",
    ]), file=sys.stderr)
