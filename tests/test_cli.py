import json
import struct

import pytest

from gltf_export.__main__ import main
from gltf_export.gltf_types import GLB_MAGIC

SCENE = {
    "meshes": {
        "Tri": {
            "positions": [[0, 0, 0], [1, 0, 0], [0, 1, 0]],
            "normals": [[0, 0, 1], [0, 0, 1], [0, 0, 1]],
            "indices": [0, 1, 2],
        }
    },
    "scenes": [{"name": "Scene", "nodes": [{"name": "Root", "translation": [1, 0, 0], "mesh": "Tri"}]}],
}


@pytest.fixture
def scene_file(tmp_path):
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(SCENE))
    return path


def test_default_output_is_gltf(scene_file, capsys):
    assert main([str(scene_file)]) == 0

    gltf = json.loads(scene_file.with_suffix(".gltf").read_text())
    assert gltf["nodes"][0]["translation"] == [-1.0, 0.0, 0.0]
    assert gltf["buffers"][0] == {"byteLength": 78, "uri": "scene.bin"}
    assert scene_file.with_suffix(".bin").stat().st_size == 78
    assert "Exported to" in capsys.readouterr().out


def test_glb_output(scene_file, tmp_path):
    output = tmp_path / "out.glb"
    assert main([str(scene_file), str(output), "--workers", "0", "--compact"]) == 0
    magic, = struct.unpack_from('<I', output.read_bytes())
    assert magic == GLB_MAGIC


def test_bad_scene_returns_error(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"scenes": [{"nodes": [{"name": "A", "mesh": "Nope"}]}]}))
    assert main([str(path)]) == 1
    assert not (tmp_path / "bad.gltf").exists()


def test_incomplete_mesh_returns_error(tmp_path):
    path = tmp_path / "partial.json"
    path.write_text(json.dumps({
        "meshes": {"Tri": {"positions": [[0, 0, 0], [1, 0, 0], [0, 1, 0]]}},
        "scenes": [{"nodes": [{"name": "A", "mesh": "Tri"}]}],
    }))
    assert main([str(path)]) == 1


def test_missing_input_returns_error(tmp_path):
    assert main([str(tmp_path / "missing.json")]) == 1
