"""Single growing binary buffer shared by every baked mesh."""
import io


class BufferPacker:
    """
    Appends chunks back to back into one in-memory blob.

    No padding is inserted between writes; alignment is the caller's concern
    and is expressed through bufferView/accessor offsets and strides.
    """

    def __init__(self):
        self._stream = io.BytesIO()

    @property
    def length(self) -> int:
        return self._stream.tell()

    def append(self, data) -> int:
        """Write data at the end of the blob and return the offset it starts at"""
        offset = self._stream.tell()
        self._stream.write(data)
        return offset

    def getvalue(self) -> bytes:
        return self._stream.getvalue()

    def take(self) -> bytes:
        """Return the packed bytes and start over with an empty blob"""
        data = self._stream.getvalue()
        self._stream = io.BytesIO()
        return data
