"""
Loader for JSON scene descriptions used by the command line converter.

Layout:

    {
      "scenes": [{"name": "Scene", "nodes": [NODE, ...]}],
      "meshes": {"Cube": MESH, ...}
    }

NODE is {"name", "translation", "rotation", "scale", "mesh", "children"};
"mesh" names an entry of "meshes" and nodes naming the same mesh share it.
MESH is {"positions", "indices", "normals", "tangents", "colors", "uvs",
"sub_meshes": [{"index_count", "topology"}], "index_format"}; only
positions and indices are required.
"""
import json
from typing import Any, Dict, List, Tuple

from .gltf_types import IndexFormat, MeshTopology
from .scene_export import SceneObject
from .source_mesh import SourceMesh, SubMeshDescriptor

REQUIRED_MESH_KEYS = ('positions', 'indices')


def mesh_from_dict(name: str, data: Dict[str, Any]) -> SourceMesh:
    missing = [key for key in REQUIRED_MESH_KEYS if key not in data]
    if missing:
        raise ValueError(f"Mesh '{name}' is missing {', '.join(missing)}")

    sub_meshes = None
    if 'sub_meshes' in data:
        sub_meshes = []
        for index, entry in enumerate(data['sub_meshes']):
            if 'index_count' not in entry:
                raise ValueError(f"Mesh '{name}' sub-mesh {index} is missing index_count")
            sub_meshes.append(SubMeshDescriptor(
                index_count=int(entry['index_count']),
                topology=MeshTopology(entry.get('topology', 'triangles')),
            ))
    index_format = IndexFormat(data['index_format']) if 'index_format' in data else None

    return SourceMesh.from_arrays(
        name,
        positions=data['positions'],
        indices=data['indices'],
        normals=data.get('normals'),
        tangents=data.get('tangents'),
        colors=data.get('colors'),
        uvs=data.get('uvs'),
        sub_meshes=sub_meshes,
        index_format=index_format,
    )


def object_from_dict(data: Dict[str, Any], meshes: Dict[str, SourceMesh]) -> SceneObject:
    mesh = None
    mesh_name = data.get('mesh')
    if mesh_name is not None:
        if mesh_name not in meshes:
            raise ValueError(f"Node '{data.get('name', '')}' references unknown mesh '{mesh_name}'")
        mesh = meshes[mesh_name]

    return SceneObject(
        name=data.get('name', ''),
        translation=tuple(data.get('translation', (0.0, 0.0, 0.0))),
        rotation=tuple(data.get('rotation', (0.0, 0.0, 0.0, 1.0))),
        scale=tuple(data.get('scale', (1.0, 1.0, 1.0))),
        children=[object_from_dict(child, meshes) for child in data.get('children', [])],
        mesh=mesh,
    )


def load_scenes(data: Dict[str, Any]) -> List[Tuple[str, List[SceneObject]]]:
    meshes = {name: mesh_from_dict(name, mesh) for name, mesh in data.get('meshes', {}).items()}
    return [
        (scene.get('name', f"Scene{index}"),
         [object_from_dict(node, meshes) for node in scene.get('nodes', [])])
        for index, scene in enumerate(data.get('scenes', []))
    ]


def load_scene_file(path: str) -> List[Tuple[str, List[SceneObject]]]:
    with open(path, 'r') as f:
        return load_scenes(json.load(f))
