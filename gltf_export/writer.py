"""
glTF document builder and mesh baking engine.

Callers add scenes, nodes and mesh references while walking their scene
graph. Nothing is converted until bake(): it turns every distinct mesh into
accessors, bufferViews and bytes in one shared binary buffer (in the order
the meshes were first referenced), snapshots everything into an immutable
Document and empties the writer.
"""
import logging
import os
import struct
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import nullcontext
from typing import Dict, List, Optional, Sequence

import numpy as np

from .buffer import BufferPacker
from .errors import ExportError, MeshLayoutError
from .gltf_types import (
    GLB_CHUNK_BIN, GLB_CHUNK_JSON, GLB_HEADER_SIZE, GLB_MAGIC,
    GLB_VERSION, MeshTopology, VertexAttribute,
)
from .kernels import (
    convert_positions, convert_tangents, flip_indices, position_bounds, strided_float_view,
)
from .layout import AccessorAllocator, StreamLayout, compute_stream_layout
from .schema import Asset, Buffer, Document, Mesh, Node, Scene, to_json
from .settings import ExportSettings
from .source_mesh import SourceMesh

logger = logging.getLogger(__name__)


class GltfWriter:
    """Collects a scene graph and bakes it into a glTF document plus binary buffer"""

    def __init__(self, settings: Optional[ExportSettings] = None):
        self.settings = settings or ExportSettings()
        self.warnings: List[str] = []
        self._reset()

    def _reset(self):
        self._scenes: List[Scene] = []
        self._nodes: List[Node] = []
        self._node_materials: Dict[int, list] = {}
        self._meshes: List[Mesh] = []
        self._source_meshes: List[SourceMesh] = []
        self._mesh_ids: Dict[int, int] = {}
        self._packer = BufferPacker()
        self._allocator = AccessorAllocator()

    def _check_node(self, node_id: int) -> int:
        if not 0 <= node_id < len(self._nodes):
            raise IndexError(f"Node {node_id} does not exist ({len(self._nodes)} nodes added)")
        return node_id

    def add_scene(self, name: str, nodes: Sequence[int]) -> int:
        """Add a scene with the given root nodes; the first scene becomes the default one"""
        nodes = [self._check_node(node_id) for node_id in nodes]
        self._scenes.append(Scene(name=name, nodes=nodes))
        return len(self._scenes) - 1

    def add_node(
        self,
        name: str,
        translation: Sequence[float] = (0.0, 0.0, 0.0),
        rotation: Sequence[float] = (0.0, 0.0, 0.0, 1.0),
        scale: Sequence[float] = (1.0, 1.0, 1.0),
        children: Optional[Sequence[int]] = None,
    ) -> int:
        """Add a node with a local TRS transform; children must have been added already"""
        children = [self._check_node(child) for child in children] if children else None
        self._nodes.append(Node(
            name=name,
            children=children,
            translation=[float(v) for v in translation],
            rotation=[float(v) for v in rotation],
            scale=[float(v) for v in scale],
        ))
        return len(self._nodes) - 1

    def add_mesh_to_node(self, node_id: int, mesh: SourceMesh, materials: Optional[Sequence] = None):
        node = self._nodes[self._check_node(node_id)]
        node.mesh = self._add_mesh(mesh)
        if materials:
            self._node_materials[node_id] = list(materials)

    def get_materials(self, node_id: int) -> list:
        """Material references passed along with a node's mesh (kept, not exported)"""
        return self._node_materials.get(self._check_node(node_id), [])

    def _add_mesh(self, source: SourceMesh) -> int:
        mesh_id = self._mesh_ids.get(id(source))
        if mesh_id is not None:
            return mesh_id

        self._meshes.append(Mesh(name=source.name))
        self._source_meshes.append(source)
        mesh_id = len(self._meshes) - 1
        self._mesh_ids[id(source)] = mesh_id
        return mesh_id

    def bake(self, buffer_uri: Optional[str] = None) -> Document:
        """
        Bake all meshes and return the finished document.

        The writer is emptied afterwards, whether baking succeeded or not, so
        a second call without adding anything returns an empty document.

        buffer_uri names the external .bin file a .gltf document points at.
        Leave it out only for GLB output, where the buffer is the BIN chunk.
        """
        self.warnings = []
        try:
            if self._meshes:
                self._bake_meshes()

            blob = self._packer.take()
            buffers = (Buffer(byteLength=len(blob), uri=buffer_uri),) if blob else ()
            return Document(
                asset=Asset(version="2.0", generator=self.settings.generator),
                scene=0 if self._scenes else None,
                scenes=tuple(self._scenes),
                nodes=tuple(self._nodes),
                meshes=tuple(self._meshes),
                accessors=tuple(self._allocator.accessors),
                bufferViews=tuple(self._allocator.buffer_views),
                buffers=buffers,
                binary_blob=blob,
            )
        finally:
            self._reset()

    def _executor(self):
        if self.settings.max_workers == 0:
            return nullcontext(None)
        return ThreadPoolExecutor(max_workers=self.settings.max_workers,
                                  thread_name_prefix="gltf-bake")

    def _bake_meshes(self):
        byte_offset = self._packer.length
        with self._executor() as executor:
            for mesh_id, source in enumerate(self._source_meshes):
                byte_offset = self._bake_mesh(mesh_id, source, byte_offset, executor)

    def _bake_mesh(
        self,
        mesh_id: int,
        source: SourceMesh,
        byte_offset: int,
        executor: Optional[Executor] = None,
    ) -> int:
        """Write one mesh's indices and vertex streams; returns the buffer offset after them"""
        mesh = self._meshes[mesh_id]
        allocator = self._allocator
        vertex_count = source.vertex_count
        if not source.sub_meshes or not source.index_data:
            raise MeshLayoutError(f"Mesh '{source.name}' has no indexed sub-meshes")
        if any(sub_mesh.index_count <= 0 for sub_mesh in source.sub_meshes):
            raise MeshLayoutError(f"Mesh '{source.name}' has an empty sub-mesh")

        layout = compute_stream_layout(source.attributes)
        stream_views = allocator.plan_stream_views(layout)
        attributes = allocator.add_vertex_accessors(layout, vertex_count, stream_views)

        index_bytes = self._convert_indices(source, executor)
        self._packer.append(index_bytes)
        index_view = allocator.add_index_view(byte_offset, len(index_bytes))
        byte_offset += len(index_bytes)

        mesh.primitives, warnings = allocator.add_primitives(
            attributes, index_view, source.sub_meshes, source.index_format, source.name)
        self.warnings.extend(warnings)

        for stream in layout.used_streams:
            data = self._convert_stream(source, layout, stream, executor)
            self._packer.append(data)
            allocator.add_vertex_view(byte_offset, len(data), layout.strides[stream])
            byte_offset += len(data)

        logger.debug("Baked mesh %d '%s': %d vertices, %d indices, %d of %d streams used, "
                     "buffer at %d bytes", mesh_id, source.name, vertex_count, source.index_count,
                     len(layout.used_streams), layout.stream_count, byte_offset)
        return byte_offset

    def _convert_indices(self, source: SourceMesh, executor: Optional[Executor]) -> bytes:
        """Flip the winding of triangle sub-meshes; other index runs are copied as they are"""
        if len(source.index_data) % source.index_format.size:
            raise MeshLayoutError(
                f"Index data of '{source.name}' is {len(source.index_data)} bytes, "
                f"not a multiple of {source.index_format.size}")

        indices = source.get_index_array()
        parts = []
        start = 0
        for sub_mesh in source.sub_meshes:
            segment = indices[start:start + sub_mesh.index_count]
            if sub_mesh.topology is MeshTopology.TRIANGLES:
                segment = flip_indices(segment, self.settings.batch_size, executor)
            parts.append(segment)
            start += sub_mesh.index_count
        parts.append(indices[start:])
        return np.concatenate(parts).astype(source.index_format.dtype).tobytes()

    def _convert_stream(
        self,
        source: SourceMesh,
        layout: StreamLayout,
        stream: int,
        executor: Optional[Executor],
    ) -> bytearray:
        stride = layout.strides[stream]
        vertex_count = source.vertex_count
        byte_length = stride * vertex_count
        raw = source.get_vertex_data(stream)
        if len(raw) < byte_length:
            raise MeshLayoutError(
                f"Stream {stream} of '{source.name}' holds {len(raw)} bytes, "
                f"{vertex_count} vertices with stride {stride} need {byte_length}")

        src = memoryview(raw)[:byte_length]
        dst = bytearray(src)
        batch_size = self.settings.batch_size
        for slot in layout.slots:
            if slot.descriptor.stream != stream:
                continue
            attribute = slot.descriptor.attribute
            if attribute in (VertexAttribute.POSITION, VertexAttribute.NORMAL):
                convert_positions(src, dst, slot.offset, stride, vertex_count, batch_size, executor)
            elif attribute is VertexAttribute.TANGENT:
                convert_tangents(src, dst, slot.offset, stride, vertex_count, batch_size, executor)

            if attribute is VertexAttribute.POSITION and vertex_count:
                accessor = self._allocator.accessors[slot.accessor]
                view = strided_float_view(dst, slot.offset, stride, vertex_count, 3)
                accessor.min, accessor.max = position_bounds(view)
        return dst

    def get_json(self, document: Document) -> str:
        """JSON text of a .gltf document; every buffer must carry a uri"""
        if any(buffer.uri is None for buffer in document.buffers):
            raise ExportError("Buffer has no uri; bake with a buffer_uri or export as .glb")
        return to_json(document, self.settings.json_indent)

    def save_to_file(self, path: str) -> Document:
        """
        Bake and write the export.

        A .glb path gets a single binary container. Anything else gets the
        JSON document plus a sibling .bin file for the buffer.
        """
        root, ext = os.path.splitext(path)
        if ext.lower() == '.glb':
            document = self.bake()
            with open(path, 'wb') as f:
                f.write(to_glb(document))
            logger.info("Wrote %s (%d buffer bytes)", path, len(document.binary_blob))
            return document

        buffer_path = root + '.bin'
        document = self.bake(os.path.basename(buffer_path))
        with open(path, 'w') as f:
            f.write(self.get_json(document))
        if document.binary_blob:
            with open(buffer_path, 'wb') as f:
                f.write(document.binary_blob)
            logger.info("Wrote %s and %s (%d buffer bytes)", path, buffer_path,
                        len(document.binary_blob))
        else:
            logger.info("Wrote %s (no binary buffer)", path)
        return document


def pad_to_4(data: bytes, fill: bytes = b'\x00') -> bytes:
    padding = (4 - len(data) % 4) % 4
    return data + fill * padding


def to_glb(document: Document) -> bytes:
    """
    Pack a document into a binary glTF container:
    header (magic, version, length), JSON chunk padded with spaces and,
    when there is a buffer, a BIN chunk padded with zeros.
    """
    json_bytes = pad_to_4(to_json(document, indent=None).encode('utf-8'), b' ')
    chunks = [struct.pack('<II', len(json_bytes), GLB_CHUNK_JSON), json_bytes]
    if document.binary_blob:
        bin_bytes = pad_to_4(document.binary_blob)
        chunks += [struct.pack('<II', len(bin_bytes), GLB_CHUNK_BIN), bin_bytes]

    body = b''.join(chunks)
    header = struct.pack('<III', GLB_MAGIC, GLB_VERSION, GLB_HEADER_SIZE + len(body))
    return header + body
