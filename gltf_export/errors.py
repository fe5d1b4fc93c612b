"""Exceptions raised while baking a glTF export."""


class ExportError(Exception):
    """Base class for fatal export failures"""


class UnsupportedFormatError(ExportError):
    """A vertex attribute uses an encoding the exporter cannot write"""


class MeshLayoutError(ExportError):
    """Source mesh data does not match its own attribute/stream/index description"""
