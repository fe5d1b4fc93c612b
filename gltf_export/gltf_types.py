"""Shared constants and enums for the glTF exporter (source mesh vocabulary and glTF codes)."""
from enum import Enum, IntEnum

# glTF accessor component types
BYTE = 5120
UNSIGNED_BYTE = 5121
SHORT = 5122
UNSIGNED_SHORT = 5123
UNSIGNED_INT = 5125
FLOAT = 5126

COMPONENT_SIZES = {
    BYTE: 1,
    UNSIGNED_BYTE: 1,
    SHORT: 2,
    UNSIGNED_SHORT: 2,
    UNSIGNED_INT: 4,
    FLOAT: 4,
}

# glTF accessor element types, indexed by component count
SCALAR = "SCALAR"
VEC2 = "VEC2"
VEC3 = "VEC3"
VEC4 = "VEC4"

ACCESSOR_TYPES = {1: SCALAR, 2: VEC2, 3: VEC3, 4: VEC4}
TYPE_COMPONENT_COUNTS = {SCALAR: 1, VEC2: 2, VEC3: 3, VEC4: 4}

# bufferView targets
ARRAY_BUFFER = 34962
ELEMENT_ARRAY_BUFFER = 34963

# GLB container
GLB_MAGIC = 0x46546C67        # "glTF"
GLB_VERSION = 2
GLB_CHUNK_JSON = 0x4E4F534A   # "JSON"
GLB_CHUNK_BIN = 0x004E4942    # "BIN\0"
GLB_HEADER_SIZE = 12

MAX_STREAM_COUNT = 4


class DrawMode(IntEnum):
    """glTF primitive.mode values"""
    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6


class MeshTopology(Enum):
    TRIANGLES = "triangles"
    QUADS = "quads"
    LINES = "lines"
    LINE_STRIP = "line_strip"
    POINTS = "points"


class IndexFormat(Enum):
    UINT16 = "uint16"
    UINT32 = "uint32"

    @property
    def size(self) -> int:
        return 2 if self is IndexFormat.UINT16 else 4

    @property
    def dtype(self) -> str:
        return '<u2' if self is IndexFormat.UINT16 else '<u4'

    @property
    def component_type(self) -> int:
        return UNSIGNED_SHORT if self is IndexFormat.UINT16 else UNSIGNED_INT


class VertexAttribute(Enum):
    """Renderer-side vertex attribute kinds, valued by their glTF semantic"""
    POSITION = "POSITION"
    NORMAL = "NORMAL"
    TANGENT = "TANGENT"
    COLOR = "COLOR_0"
    TEXCOORD0 = "TEXCOORD_0"
    TEXCOORD1 = "TEXCOORD_1"
    TEXCOORD2 = "TEXCOORD_2"
    TEXCOORD3 = "TEXCOORD_3"
    TEXCOORD4 = "TEXCOORD_4"
    TEXCOORD5 = "TEXCOORD_5"
    TEXCOORD6 = "TEXCOORD_6"
    TEXCOORD7 = "TEXCOORD_7"
    BLEND_WEIGHT = "WEIGHTS_0"
    BLEND_INDICES = "JOINTS_0"

    @property
    def semantic(self) -> str:
        return self.value


class VertexAttributeFormat(Enum):
    FLOAT32 = "float32"
    FLOAT16 = "float16"
    UNORM8 = "unorm8"
    SNORM8 = "snorm8"
    UNORM16 = "unorm16"
    SNORM16 = "snorm16"
    UINT8 = "uint8"
    SINT8 = "sint8"
    UINT16 = "uint16"
    SINT16 = "sint16"
    UINT32 = "uint32"
    SINT32 = "sint32"

    @property
    def normalized(self) -> bool:
        return self in (VertexAttributeFormat.UNORM8, VertexAttributeFormat.SNORM8,
                        VertexAttributeFormat.UNORM16, VertexAttributeFormat.SNORM16)


TOPOLOGY_DRAW_MODES = {
    MeshTopology.TRIANGLES: DrawMode.TRIANGLES,
    MeshTopology.LINES: DrawMode.LINES,
    MeshTopology.LINE_STRIP: DrawMode.LINE_STRIP,
    MeshTopology.POINTS: DrawMode.POINTS,
}
