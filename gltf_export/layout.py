"""
Accessor and bufferView layout for baked meshes.

Per mesh the index bufferView comes first, followed by one strided
bufferView per vertex stream that carries attributes. Attributes are packed
into their stream in declaration order without padding.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import MeshLayoutError, UnsupportedFormatError
from .gltf_types import (
    ACCESSOR_TYPES, ARRAY_BUFFER, BYTE, ELEMENT_ARRAY_BUFFER, FLOAT, MAX_STREAM_COUNT,
    SCALAR, SHORT, TOPOLOGY_DRAW_MODES, UNSIGNED_BYTE, UNSIGNED_INT, UNSIGNED_SHORT,
    DrawMode, IndexFormat, MeshTopology, VertexAttribute, VertexAttributeFormat,
)
from .schema import Accessor, BufferView, Primitive
from .source_mesh import SubMeshDescriptor, VertexAttributeDescriptor

logger = logging.getLogger(__name__)

ATTRIBUTE_SIZES = {
    VertexAttributeFormat.FLOAT32: 4,
    VertexAttributeFormat.FLOAT16: 2,
    VertexAttributeFormat.UNORM8: 1,
    VertexAttributeFormat.SNORM8: 1,
    VertexAttributeFormat.UNORM16: 2,
    VertexAttributeFormat.SNORM16: 2,
    VertexAttributeFormat.UINT8: 1,
    VertexAttributeFormat.SINT8: 1,
    VertexAttributeFormat.UINT16: 2,
    VertexAttributeFormat.SINT16: 2,
    VertexAttributeFormat.UINT32: 4,
    VertexAttributeFormat.SINT32: 4,
}

# Float16 and SInt32 have no glTF component type
COMPONENT_TYPES = {
    VertexAttributeFormat.FLOAT32: FLOAT,
    VertexAttributeFormat.UNORM8: UNSIGNED_BYTE,
    VertexAttributeFormat.UINT8: UNSIGNED_BYTE,
    VertexAttributeFormat.SNORM8: BYTE,
    VertexAttributeFormat.SINT8: BYTE,
    VertexAttributeFormat.UNORM16: UNSIGNED_SHORT,
    VertexAttributeFormat.UINT16: UNSIGNED_SHORT,
    VertexAttributeFormat.SNORM16: SHORT,
    VertexAttributeFormat.SINT16: SHORT,
    VertexAttributeFormat.UINT32: UNSIGNED_INT,
}

# attributes the kernels rewrite, with the only encoding they accept
CONVERTED_ATTRIBUTES = {
    VertexAttribute.POSITION: 3,
    VertexAttribute.NORMAL: 3,
    VertexAttribute.TANGENT: 4,
}


def get_attribute_size(fmt: VertexAttributeFormat) -> int:
    try:
        return ATTRIBUTE_SIZES[fmt]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported vertex attribute format: {fmt!r}") from None


def get_component_type(fmt: VertexAttributeFormat) -> int:
    try:
        return COMPONENT_TYPES[fmt]
    except KeyError:
        raise UnsupportedFormatError(f"No glTF component type for vertex format {fmt!r}") from None


def get_accessor_type(dimension: int) -> str:
    try:
        return ACCESSOR_TYPES[dimension]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported attribute dimension: {dimension}") from None


def get_draw_mode(topology: MeshTopology) -> Optional[DrawMode]:
    return TOPOLOGY_DRAW_MODES.get(topology)


def validate_attribute(descriptor: VertexAttributeDescriptor):
    """POSITION, NORMAL and TANGENT must be plain float32 vectors"""
    dimension = CONVERTED_ATTRIBUTES.get(descriptor.attribute)
    if dimension is None:
        return
    if descriptor.format is not VertexAttributeFormat.FLOAT32 or descriptor.dimension != dimension:
        raise UnsupportedFormatError(
            f"{descriptor.attribute.semantic} must be float32 x {dimension}, "
            f"got {descriptor.format.value} x {descriptor.dimension}")


@dataclass
class AttributeSlot:
    """Where one attribute lives inside its vertex stream"""
    descriptor: VertexAttributeDescriptor
    offset: int
    accessor: Optional[int] = None


@dataclass
class StreamLayout:
    strides: List[int]
    slots: List[AttributeSlot]

    @property
    def stream_count(self) -> int:
        count = 1
        for stream, stride in enumerate(self.strides):
            if stride > 0:
                count = stream + 1
        return count

    @property
    def used_streams(self) -> List[int]:
        return [stream for stream, stride in enumerate(self.strides) if stride > 0]


def compute_stream_layout(attributes: Sequence[VertexAttributeDescriptor]) -> StreamLayout:
    """Assign every attribute a byte offset in its stream and sum up the stream strides"""
    strides = [0] * MAX_STREAM_COUNT
    slots = []
    seen = set()
    for descriptor in attributes:
        if not 0 <= descriptor.stream < MAX_STREAM_COUNT:
            raise MeshLayoutError(
                f"{descriptor.attribute.semantic} uses stream {descriptor.stream}, "
                f"only 0..{MAX_STREAM_COUNT - 1} exist")
        if descriptor.attribute in seen:
            raise MeshLayoutError(f"Duplicate vertex attribute {descriptor.attribute.semantic}")
        seen.add(descriptor.attribute)
        validate_attribute(descriptor)

        slots.append(AttributeSlot(descriptor, strides[descriptor.stream]))
        strides[descriptor.stream] += descriptor.dimension * get_attribute_size(descriptor.format)
    return StreamLayout(strides, slots)


class AccessorAllocator:
    """Owns the accessor and bufferView lists that baked meshes append to"""

    def __init__(self):
        self.accessors: List[Accessor] = []
        self.buffer_views: List[BufferView] = []

    def add_index_view(self, byte_offset: int, byte_length: int) -> int:
        self.buffer_views.append(BufferView(
            buffer=0,
            byteOffset=byte_offset,
            byteLength=byte_length,
            target=ELEMENT_ARRAY_BUFFER,
        ))
        return len(self.buffer_views) - 1

    def add_vertex_view(self, byte_offset: int, byte_length: int, byte_stride: int) -> int:
        self.buffer_views.append(BufferView(
            buffer=0,
            byteOffset=byte_offset,
            byteLength=byte_length,
            byteStride=byte_stride,
            target=ARRAY_BUFFER,
        ))
        return len(self.buffer_views) - 1

    def plan_stream_views(self, layout: StreamLayout) -> Dict[int, int]:
        """View index each used stream gets once the index view and then the stream views are added"""
        base = len(self.buffer_views) + 1
        return {stream: base + i for i, stream in enumerate(layout.used_streams)}

    def add_vertex_accessors(
        self,
        layout: StreamLayout,
        vertex_count: int,
        stream_views: Dict[int, int],
    ) -> Dict[str, int]:
        """One accessor per attribute; returns the primitive attribute map"""
        attributes = {}
        for slot in layout.slots:
            descriptor = slot.descriptor
            accessor = Accessor(
                bufferView=stream_views[descriptor.stream],
                byteOffset=slot.offset,
                componentType=get_component_type(descriptor.format),
                normalized=descriptor.format.normalized,
                count=vertex_count,
                type=get_accessor_type(descriptor.dimension),
            )
            slot.accessor = len(self.accessors)
            self.accessors.append(accessor)
            attributes[descriptor.attribute.semantic] = slot.accessor
        return attributes

    def add_primitives(
        self,
        attributes: Dict[str, int],
        index_view: int,
        sub_meshes: Sequence[SubMeshDescriptor],
        index_format: IndexFormat,
        mesh_name: str = '',
    ) -> Tuple[List[Primitive], List[str]]:
        """
        One index accessor and one primitive per sub-mesh, walking the index
        view front to back. Returns the primitives and any warnings about
        topologies that had to fall back to points.
        """
        view = self.buffer_views[index_view]
        index_size = index_format.size
        total = sum(sub_mesh.index_count for sub_mesh in sub_meshes) * index_size
        if total > view.byteLength:
            raise MeshLayoutError(
                f"Sub-meshes of '{mesh_name}' need {total} index bytes, "
                f"index buffer holds {view.byteLength}")

        primitives = []
        warnings = []
        index_offset = 0
        for sub_mesh_index, sub_mesh in enumerate(sub_meshes):
            mode = get_draw_mode(sub_mesh.topology)
            if mode is None:
                message = (f"Unsupported topology {sub_mesh.topology.value} in "
                           f"'{mesh_name}' sub-mesh {sub_mesh_index}, exporting as points")
                logger.warning(message)
                warnings.append(message)
                mode = DrawMode.POINTS

            accessor_id = len(self.accessors)
            self.accessors.append(Accessor(
                bufferView=index_view,
                byteOffset=index_offset,
                componentType=index_format.component_type,
                count=sub_mesh.index_count,
                type=SCALAR,
            ))
            index_offset += sub_mesh.index_count * index_size

            primitives.append(Primitive(
                attributes=attributes,
                indices=accessor_id,
                mode=mode,
            ))
        return primitives, warnings
