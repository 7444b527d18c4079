"""Tests for the FBX2glTF wrapper. subprocess.run is replaced, no binary is needed."""

import subprocess

import pytest

from fbx2glb import fbx_converter
from fbx2glb.errors import ConversionError, InputNotFoundError, ToolUnavailableError
from fbx2glb.fbx_converter import FBXConverter


@pytest.fixture
def fbx_file(tmp_path):
    path = tmp_path / "model.fbx"
    path.write_bytes(b"Kaydara FBX Binary")
    return path


@pytest.fixture
def converter():
    return FBXConverter(executable="FBX2glTF", timeout=5)


def test_command_line(converter):
    assert converter.build_command("in.fbx", "out/temp_raw.glb") == [
        "FBX2glTF", "-b", "-i", "in.fbx", "-o", "out/temp_raw.glb",
    ]


def test_convert(converter, fbx_file, tmp_path, monkeypatch):
    output = tmp_path / "temp_raw.glb"

    def fake_run(cmd, **kwargs):
        assert kwargs["timeout"] == 5
        output.write_bytes(b"glTF")
        return subprocess.CompletedProcess(cmd, 0, stdout="ok", stderr="")

    monkeypatch.setattr(fbx_converter.subprocess, "run", fake_run)

    assert converter.convert(str(fbx_file), str(output)) == str(output)


def test_missing_input(converter, tmp_path):
    with pytest.raises(InputNotFoundError):
        converter.convert(str(tmp_path / "missing.fbx"), str(tmp_path / "out.glb"))


def test_tool_exit_code(converter, fbx_file, tmp_path, monkeypatch):
    def failing_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(2, cmd, output="", stderr="Unsupported FBX version")

    monkeypatch.setattr(fbx_converter.subprocess, "run", failing_run)

    with pytest.raises(ConversionError) as excinfo:
        converter.convert(str(fbx_file), str(tmp_path / "out.glb"))
    assert "exit 2" in str(excinfo.value)
    assert "Unsupported FBX version" in str(excinfo.value)


def test_timeout(converter, fbx_file, tmp_path, monkeypatch):
    def slow_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(fbx_converter.subprocess, "run", slow_run)

    with pytest.raises(ConversionError, match="timed out"):
        converter.convert(str(fbx_file), str(tmp_path / "out.glb"))


def test_no_output_written(converter, fbx_file, tmp_path, monkeypatch):
    monkeypatch.setattr(
        fbx_converter.subprocess, "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0, stdout="", stderr=""),
    )

    with pytest.raises(ConversionError):
        converter.convert(str(fbx_file), str(tmp_path / "out.glb"))


def test_executable_not_installed(converter, fbx_file, tmp_path, monkeypatch):
    def missing(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(fbx_converter.subprocess, "run", missing)

    with pytest.raises(ToolUnavailableError) as excinfo:
        converter.convert(str(fbx_file), str(tmp_path / "out.glb"))
    assert excinfo.value.tool == "FBX2glTF"


def test_ensure_available(converter, monkeypatch):
    monkeypatch.setattr(fbx_converter.shutil, "which", lambda name: None)
    assert not converter.is_available()
    with pytest.raises(ToolUnavailableError):
        converter.ensure_available()

    monkeypatch.setattr(fbx_converter.shutil, "which", lambda name: "/usr/local/bin/" + name)
    assert converter.is_available()
