# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

"""Sequential field writer producing one complete frame."""

from id3codec.conversion import *
from id3codec.header import FrameHeader

class FrameBuilder:
    """Appends fields to a frame body; get_buffer() prefixes the header.

    Append methods return the builder so calls can be chained.  A builder
    is meant to produce a single frame.
    """
    default_version = 4

    def __init__(self, identifier, version=None):
        self.identifier = identifier
        self.version = version if version is not None else self.default_version
        self._chunks = []

    def append_number(self, value, width):
        "Append value as a width-byte big-endian integer, truncating larger values."
        value = int(value) & ((1 << (8 * width)) - 1)
        self._chunks.append(Int8.encode(value, width=width))
        return self

    def append_value(self, value, width=None, encoding=None):
        """Append bytes as they are, or a string in the given encoding.

        With a width, the value is padded with null bytes or truncated.
        """
        data = self._encode(value, encoding)
        if width is not None:
            data = data[:width].ljust(width, b"\x00")
        self._chunks.append(data)
        return self

    def append_null_terminated(self, value, encoding=None):
        data = self._encode(value, encoding)
        if encoding is None:
            encoding = Encoding.LATIN1
        self._chunks.append(data + Encoding.terminator(encoding))
        return self

    def get_buffer(self):
        body = b"".join(self._chunks)
        header = FrameHeader(self.identifier, len(body), frozenset())
        return header.encode(self.version) + body

    @staticmethod
    def _encode(value, encoding):
        if value is None:
            return b""
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        if encoding is None:
            encoding = Encoding.LATIN1
        return str(value).encode(Encoding.codec(encoding), "replace")
