"""Scene graph traversal feeding a GltfWriter."""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .kernels import convert_rotation, convert_translation
from .schema import Document
from .settings import ExportSettings
from .source_mesh import SourceMesh
from .writer import GltfWriter


@dataclass(eq=False)
class SceneObject:
    """A scene graph object with a local transform in the source (left-handed) space"""
    name: str
    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    children: List['SceneObject'] = field(default_factory=list)
    mesh: Optional[SourceMesh] = None
    materials: List[object] = field(default_factory=list)


class SceneExporter:
    """Walks SceneObject hierarchies depth first and records them as glTF nodes"""

    def __init__(self, settings: Optional[ExportSettings] = None):
        self.writer = GltfWriter(settings)

    def add_scene(self, name: str, objects: Sequence[SceneObject]) -> int:
        root_nodes = [self._add_object(obj) for obj in objects]
        return self.writer.add_scene(name, root_nodes)

    def _add_object(self, obj: SceneObject) -> int:
        children = [self._add_object(child) for child in obj.children]

        node_id = self.writer.add_node(
            obj.name,
            convert_translation(obj.translation),
            convert_rotation(obj.rotation),
            obj.scale,
            children,
        )
        if obj.mesh is not None:
            self.writer.add_mesh_to_node(node_id, obj.mesh, obj.materials)
        return node_id

    @property
    def warnings(self) -> List[str]:
        return self.writer.warnings

    def bake(self, buffer_uri: Optional[str] = None) -> Document:
        return self.writer.bake(buffer_uri)

    def save_to_file(self, path: str) -> Document:
        return self.writer.save_to_file(path)
