"""Renderer-native mesh description consumed by the baking engine."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .gltf_types import IndexFormat, MeshTopology, VertexAttribute, VertexAttributeFormat


@dataclass
class VertexAttributeDescriptor:
    """One attribute inside an interleaved vertex stream"""
    attribute: VertexAttribute
    format: VertexAttributeFormat = VertexAttributeFormat.FLOAT32
    dimension: int = 3
    stream: int = 0


@dataclass
class SubMeshDescriptor:
    """A contiguous run of indices drawn with one topology"""
    index_count: int
    topology: MeshTopology = MeshTopology.TRIANGLES


@dataclass(eq=False)
class SourceMesh:
    """
    Mesh data as a renderer holds it: up to four raw interleaved vertex
    streams, a 16- or 32-bit index buffer and a list of sub-meshes whose
    index ranges follow each other in declaration order.

    Instances compare by identity, so the same object shared by several
    scene nodes is exported once.
    """
    name: str
    vertex_count: int
    attributes: List[VertexAttributeDescriptor]
    streams: Dict[int, bytes] = field(default_factory=dict)
    index_data: bytes = b''
    index_format: IndexFormat = IndexFormat.UINT16
    sub_meshes: List[SubMeshDescriptor] = field(default_factory=list)

    @property
    def index_count(self) -> int:
        return len(self.index_data) // self.index_format.size

    def get_vertex_data(self, stream: int) -> bytes:
        return self.streams.get(stream, b'')

    def get_index_array(self) -> np.ndarray:
        return np.frombuffer(self.index_data, dtype=self.index_format.dtype)

    @classmethod
    def from_arrays(
        cls,
        name: str,
        positions,
        indices,
        normals=None,
        tangents=None,
        colors=None,
        uvs: Optional[Sequence] = None,
        sub_meshes: Optional[List[SubMeshDescriptor]] = None,
        index_format: Optional[IndexFormat] = None,
    ) -> 'SourceMesh':
        """Build a single-stream mesh with float32 attributes interleaved in stream 0."""
        positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        vertex_count = len(positions)

        columns = [positions]
        attributes = [VertexAttributeDescriptor(VertexAttribute.POSITION, dimension=3)]

        def add(attribute: VertexAttribute, values, dimension: int):
            data = np.asarray(values, dtype=np.float32).reshape(-1, dimension)
            if len(data) != vertex_count:
                raise ValueError(
                    f"{attribute.semantic} has {len(data)} elements, expected {vertex_count}")
            columns.append(data)
            attributes.append(VertexAttributeDescriptor(attribute, dimension=dimension))

        if normals is not None:
            add(VertexAttribute.NORMAL, normals, 3)
        if tangents is not None:
            add(VertexAttribute.TANGENT, tangents, 4)
        if colors is not None:
            add(VertexAttribute.COLOR, colors, 4)
        texcoords = [
            VertexAttribute.TEXCOORD0, VertexAttribute.TEXCOORD1,
            VertexAttribute.TEXCOORD2, VertexAttribute.TEXCOORD3,
            VertexAttribute.TEXCOORD4, VertexAttribute.TEXCOORD5,
            VertexAttribute.TEXCOORD6, VertexAttribute.TEXCOORD7,
        ]
        for channel, uv in enumerate(uvs or []):
            add(texcoords[channel], uv, 2)

        interleaved = np.ascontiguousarray(np.hstack(columns), dtype='<f4')

        indices = np.asarray(indices, dtype=np.int64).reshape(-1)
        if index_format is None:
            index_format = IndexFormat.UINT16 if vertex_count <= 0xFFFF else IndexFormat.UINT32
        if len(indices):
            low, high = int(indices.min()), int(indices.max())
            if low < 0 or high >= vertex_count:
                raise ValueError(
                    f"Mesh '{name}' indices span {low}..{high}, vertex count is {vertex_count}")
            if high > np.iinfo(index_format.dtype).max:
                raise ValueError(
                    f"Mesh '{name}' index {high} does not fit {index_format.value}")
        index_data = indices.astype(index_format.dtype).tobytes()

        if sub_meshes is None:
            sub_meshes = [SubMeshDescriptor(len(indices))]

        return cls(
            name=name,
            vertex_count=vertex_count,
            attributes=attributes,
            streams={0: interleaved.tobytes()},
            index_data=index_data,
            index_format=index_format,
            sub_meshes=list(sub_meshes),
        )
