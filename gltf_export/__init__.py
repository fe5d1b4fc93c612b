"""Scene graph to glTF 2.0 exporter: mesh baking and binary buffer packing."""
from .buffer import BufferPacker
from .errors import ExportError, MeshLayoutError, UnsupportedFormatError
from .gltf_types import (
    DrawMode, IndexFormat, MeshTopology, VertexAttribute, VertexAttributeFormat,
)
from .scene_export import SceneExporter, SceneObject
from .schema import Document, to_dict, to_json
from .settings import ExportSettings
from .source_mesh import SourceMesh, SubMeshDescriptor, VertexAttributeDescriptor
from .writer import GltfWriter, to_glb

__version__ = "0.1.0"
