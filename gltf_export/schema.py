"""
glTF 2.0 document model.

Field names follow the glTF JSON property names. Serialization drops every
field that is None, an empty collection, or equal to the default the glTF
schema defines for it (declared through the GLTF_DEFAULT field metadata),
so readers fall back to the same value.
"""
import json
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .gltf_types import DrawMode

GLTF_DEFAULT = "gltf_default"
JSON_FIELD = "json"


def _default(value) -> Dict[str, Any]:
    return {GLTF_DEFAULT: value}


@dataclass
class Asset:
    version: str = "2.0"
    generator: Optional[str] = None


@dataclass
class Scene:
    name: Optional[str] = None
    nodes: List[int] = field(default_factory=list)


@dataclass
class Node:
    name: Optional[str] = None
    children: Optional[List[int]] = None
    mesh: Optional[int] = None
    translation: Optional[List[float]] = field(default=None, metadata=_default([0.0, 0.0, 0.0]))
    rotation: Optional[List[float]] = field(default=None, metadata=_default([0.0, 0.0, 0.0, 1.0]))
    scale: Optional[List[float]] = field(default=None, metadata=_default([1.0, 1.0, 1.0]))


@dataclass
class Primitive:
    attributes: Dict[str, int] = field(default_factory=dict)
    indices: Optional[int] = None
    mode: int = field(default=DrawMode.TRIANGLES, metadata=_default(DrawMode.TRIANGLES))
    material: Optional[int] = None


@dataclass
class Mesh:
    name: Optional[str] = None
    primitives: List[Primitive] = field(default_factory=list)


@dataclass
class Accessor:
    bufferView: Optional[int] = None
    byteOffset: int = field(default=0, metadata=_default(0))
    componentType: int = 0
    normalized: bool = field(default=False, metadata=_default(False))
    count: int = 0
    type: str = "SCALAR"
    min: Optional[List[float]] = None
    max: Optional[List[float]] = None


@dataclass
class BufferView:
    buffer: int = 0
    byteOffset: int = field(default=0, metadata=_default(0))
    byteLength: int = 0
    byteStride: Optional[int] = None
    target: Optional[int] = None


@dataclass
class Buffer:
    byteLength: int = 0
    uri: Optional[str] = None


@dataclass(frozen=True)
class Document:
    """A finished export: the glTF JSON tree plus the packed binary buffer it describes"""
    asset: Asset = field(default_factory=Asset)
    scene: Optional[int] = None
    scenes: Tuple[Scene, ...] = ()
    nodes: Tuple[Node, ...] = ()
    meshes: Tuple[Mesh, ...] = ()
    accessors: Tuple[Accessor, ...] = ()
    bufferViews: Tuple[BufferView, ...] = ()
    buffers: Tuple[Buffer, ...] = ()
    binary_blob: bytes = field(default=b'', repr=False, metadata={JSON_FIELD: False})


def _is_default(value, default) -> bool:
    if isinstance(value, (list, tuple)) and isinstance(default, (list, tuple)):
        return list(value) == list(default)
    return value == default


def _encode(value):
    if is_dataclass(value):
        return to_dict(value)
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, Enum):
        return value.value
    return value


def to_dict(obj) -> Dict[str, Any]:
    """Convert a schema object to plain JSON data, leaving out default and empty fields"""
    result = {}
    for f in fields(obj):
        if not f.metadata.get(JSON_FIELD, True):
            continue
        value = getattr(obj, f.name)
        if value is None:
            continue
        if isinstance(value, (list, tuple, dict)) and not value:
            continue
        if GLTF_DEFAULT in f.metadata and _is_default(value, f.metadata[GLTF_DEFAULT]):
            continue
        result[f.name] = _encode(value)
    return result


def to_json(document: Document, indent: Optional[int] = 2) -> str:
    return json.dumps(to_dict(document), indent=indent)
