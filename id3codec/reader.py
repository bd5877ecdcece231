# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

"""Sequential field reader over the body of a single frame."""

from id3codec.conversion import *

class FrameReader:
    """Consumes typed fields from an immutable byte buffer.

    Every consume method returns None when the requested field is not
    available; the read offset is left unchanged in that case.  Nothing
    here raises on malformed input, so frame decoders can stop at the
    first missing field.

    kind is one of "number" (big-endian unsigned integer), "string" or
    "buffer" (raw bytes).
    """

    def __init__(self, data, consume_encoding=False, encoding=Encoding.LATIN1):
        self.data = bytes(data)
        self.offset = 0
        self.encoding = encoding
        if consume_encoding:
            encoding = self.consume_static("number", 1)
            self.encoding = encoding if Encoding.is_valid(encoding) else None

    def remaining(self):
        return len(self.data) - self.offset

    def has_data(self):
        return self.offset < len(self.data)

    def consume_static(self, kind="buffer", width=None, encoding=None):
        "Consume width bytes, or everything that is left if width is None."
        if width is None:
            width = self.remaining()
        if width < 0 or self.remaining() < width:
            return None
        if kind == "number" and width == 0:
            return None
        value = self._convert(self.data[self.offset:self.offset + width],
                              kind, encoding)
        if value is not None:
            self.offset += width
        return value

    def consume_null_terminated(self, kind="string", encoding=None):
        "Consume a value up to and including its encoding's terminator."
        if encoding is None:
            encoding = self.encoding
        if not Encoding.is_valid(encoding):
            return None
        term = Encoding.terminator(encoding)
        start = self.offset
        if len(term) == 1:
            index = self.data.find(term, start)
        else:
            # Double-byte terminators are aligned to the start of the string
            index = -1
            for i in range(start, len(self.data) - 1, 2):
                if self.data[i:i+2] == term:
                    index = i
                    break
        if index < 0:
            return None
        value = self._convert(self.data[start:index], kind, encoding)
        if value is not None:
            self.offset = index + len(term)
        return value

    def _convert(self, data, kind, encoding):
        if kind == "number":
            return Int8.decode(data)
        if kind == "string":
            if encoding is None:
                encoding = self.encoding
            if not Encoding.is_valid(encoding):
                return None
            try:
                return data.decode(Encoding.codec(encoding)).rstrip("\x00")
            except UnicodeDecodeError:
                return None
        return bytes(data)
