# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

"""Frame codecs and the per-frame decoding/encoding pipeline.

parse_frame() turns the bytes of one frame (header and body) into a
Frame; make_frame() turns an identifier and a value into the bytes of
one or more frames.  Neither raises on bad input: a frame that cannot be
decoded, or a value that cannot be encoded, is reported with a warning
and comes back as None.
"""

import abc
import collections
import collections.abc
import zlib
from abc import abstractmethod
from warnings import warn

from id3codec.errors import *
from id3codec.conversion import *
from id3codec.header import *
from id3codec.reader import FrameReader
from id3codec.builder import FrameBuilder

# Frame ids with a dedicated codec, filled in by @frameclass.
known_frames = { }

# ID3v2.2 frame ids of frames that have a v2.3/v2.4 counterpart.
aliases = { }

Frame = collections.namedtuple("Frame", "identifier value flags")

# Deepest level of CHAP/CTOC frames whose embedded frames are decoded.
max_nesting = 16

class FrameCodec(metaclass=abc.ABCMeta):
    frameid = None
    _allow_duplicates = False

    @classmethod
    @abstractmethod
    def _encode(cls, identifier, value, version, index=0):
        "Return the bytes of a single frame holding value."

    @classmethod
    @abstractmethod
    def _decode(cls, data, version, itunes_workaround=False, depth=0):
        """Return the value stored in a frame body, or None.

        depth is the number of enclosing CHAP/CTOC frames."""

class TextFrame(FrameCodec):
    "Any text information frame without a dedicated codec"

    @classmethod
    def _encode(cls, identifier, value, version, index=0):
        if not isinstance(value, str):
            raise TypeError("Invalid text: {0}".format(repr(value)))
        if value == "":
            raise ValueError("Empty text frame")
        return (FrameBuilder(identifier, version)
                .append_number(Encoding.UTF16, 1)
                .append_value(value, encoding=Encoding.UTF16)
                .get_buffer())

    @classmethod
    def _decode(cls, data, version, itunes_workaround=False, depth=0):
        return FrameReader(data, consume_encoding=True).consume_static("string")

class URLFrame(FrameCodec):
    "Any URL link frame without a dedicated codec"

    @classmethod
    def _encode(cls, identifier, value, version, index=0):
        if not isinstance(value, str) or not value:
            raise ValueError("Invalid URL: {0}".format(repr(value)))
        return FrameBuilder(identifier, version).append_value(value).get_buffer()

    @classmethod
    def _decode(cls, data, version, itunes_workaround=False, depth=0):
        url = FrameReader(data).consume_static("string")
        # iTunes prepends an extra null byte to WFED frames
        return url.lstrip("\x00") if url is not None else None

class FrameValue(FrameCodec):
    """Base class of frame values with a dedicated binary layout.

    Subclasses list their fields in _framespec, implement _read() to
    decode a body and _to_data() to build the frame.
    """
    _framespec = tuple()

    def __init__(self, **kwargs):
        for spec in self._framespec:
            setattr(self, spec.name, kwargs.pop(spec.name, spec.default))
        if kwargs:
            raise TypeError("Unknown {0} field(s): {1}".format(
                    type(self).__name__, ", ".join(sorted(kwargs))))

    def __setattr__(self, name, value):
        # Automatic validation on assignment
        for spec in self._framespec:
            if name == spec.name:
                value = spec.validate(self, value)
                break
        super().__setattr__(name, value)

    def __eq__(self, other):
        return (isinstance(other, type(self))
                and self.frameid == other.frameid
                and all(getattr(self, spec.name, None) ==
                        getattr(other, spec.name, None)
                        for spec in self._framespec))

    def __repr__(self):
        args = []
        for spec in self._framespec:
            data = getattr(self, spec.name)
            if isinstance(data, bytes):
                args.append("{0}=<{1} bytes of binary data {2!r}{3}>".format(
                        spec.name, len(data),
                        data[:20], "..." if len(data) > 20 else ""))
            else:
                args.append("{0}={1!r}".format(spec.name, data))
        return "{0}({1})".format(type(self).__name__, ", ".join(args))

    def __str__(self):
        return "{0}({1})".format(self.frameid, ", ".join(
                spec.to_str(getattr(self, spec.name, None))
                for spec in self._framespec))

    def _asdict(self):
        "Return the fields as a dict; absent optional fields are left out."
        return collections.OrderedDict(
            (spec.name, getattr(self, spec.name))
            for spec in self._framespec
            if not (spec.optional and getattr(self, spec.name) is None))

    def _check_required(self):
        for spec in self._framespec:
            if spec.required and getattr(self, spec.name) is None:
                raise ValueError("{0} frame requires {1}".format(self.frameid, spec.name))

    @classmethod
    def _from_value(cls, value):
        if isinstance(value, cls):
            return value
        if isinstance(value, collections.abc.Mapping):
            return cls(**value)
        raise TypeError("Invalid {0} frame value: {1!r}".format(cls.frameid, value))

    @classmethod
    def _encode(cls, identifier, value, version, index=0):
        frame = cls._from_value(value)
        frame._check_required()
        return frame._to_data(version, index)

    @classmethod
    def _decode(cls, data, version, itunes_workaround=False, depth=0):
        return cls._read(data, version)

    @classmethod
    @abstractmethod
    def _read(cls, data, version): pass

    @abstractmethod
    def _to_data(self, version, index=0): pass

def frameclass(cls):
    """Register cls as the codec of an ID3 frame.

    Sets cls.frameid from the class name if the class does not define
    one, and registers the class in the known_frames dictionary.

    To be used as a decorator on the class definition:

    @frameclass
    class PRIV(FrameValue):
        ...
    """
    assert issubclass(cls, FrameCodec)
    if "frameid" not in cls.__dict__:
        cls.frameid = cls.__name__
    assert is_frame_id(cls.frameid)
    assert cls.frameid not in known_frames
    known_frames[cls.frameid] = cls
    return cls

def frame_codec(identifier):
    """Return the codec for identifier.

    Ids without a dedicated codec fall back to the generic text or URL
    codec based on their first letter; None if neither applies.
    """
    identifier = aliases.get(identifier, identifier)
    if identifier in known_frames:
        return known_frames[identifier]
    if identifier.startswith("T"):
        return TextFrame
    if identifier.startswith("W"):
        return URLFrame
    return None

def is_multiple(identifier):
    "Return true if a tag may hold several frames with this identifier."
    codec = frame_codec(identifier)
    return codec is not None and codec._allow_duplicates

def decompress(data, data_length):
    """Inflate a compressed frame body.

    The standard says compressed frames are stored in zlib format, but
    some encoders leave out the zlib header or store a raw deflate
    stream behind a bogus one.  Try each in turn and return the first
    result that is exactly data_length bytes long, or None.
    """
    if len(data) < 5:
        return None
    for (wbits, start) in ((zlib.MAX_WBITS, 0),
                           (-zlib.MAX_WBITS, 0),
                           (-zlib.MAX_WBITS, 2)):
        decompressor = zlib.decompressobj(wbits)
        try:
            result = decompressor.decompress(data[start:], data_length + 1)
        except zlib.error:
            continue
        if decompressor.eof and len(result) == data_length:
            return result
    return None

def parse_frame(data, version, itunes_workaround=False, depth=0):
    """Decode the frame at the start of data.

    Returns a Frame, or None if the frame is truncated, encrypted,
    cannot be decompressed, or its body does not decode.  depth is the
    number of CHAP/CTOC frames the frame is embedded in.
    """
    size = header_size(version)
    if len(data) < size + 1:
        return None
    header = FrameHeader.parse(data[:size], version, itunes_workaround)
    if header is None:
        return None
    if "encryption" in header.flags:
        warn("Can't read encrypted {0} frame".format(header.identifier),
             EncryptedFrameWarning)
        return None

    body = bytes(data[size:size + header.size])
    data_length = 0
    if "grouping_identity" in header.flags and version == 4:
        body = body[1:]
    if "data_length_indicator" in header.flags:
        if version == 4:
            data_length = decode_size(body[0:4])
        else:
            data_length = Int8.decode(body[0:4]) if len(body) >= 4 else None
        if data_length is None:
            warn("Invalid data length in {0} frame".format(header.identifier),
                 ErrorFrameWarning)
            return None
        body = body[4:]
    if "grouping_identity" in header.flags and version == 3:
        body = body[1:]
    if "unsynchronisation" in header.flags:
        body = Unsync.decode(body)
    if "compression" in header.flags:
        body = decompress(body, data_length)
        if body is None:
            warn("Can't decompress {0} frame".format(header.identifier),
                 CompressedFrameWarning)
            return None

    codec = frame_codec(header.identifier)
    if codec is None:
        warn("Unknown frame id {0}".format(header.identifier), UnknownFrameWarning)
        return None
    value = codec._decode(body, version, itunes_workaround, depth)
    if value is None:
        warn("Invalid {0} frame".format(header.identifier), ErrorFrameWarning)
        return None
    return Frame(header.identifier, value, header.flags)

def make_frame(identifier, value, version=None):
    """Encode value as frame data.

    A list of values is encoded as consecutive frames if the identifier
    allows duplicates.  Values that cannot be encoded are skipped with a
    warning; returns None if nothing was encoded.
    """
    codec = frame_codec(identifier) if is_frame_id(identifier) else None
    if codec is None or len(identifier) != 4:
        warn("Can't encode frame id {0!r}".format(identifier), UnknownFrameWarning)
        return None
    if codec._allow_duplicates and isinstance(value, (list, tuple)):
        values = list(value)
    else:
        values = [value]
    if issubclass(codec, URLFrame):
        # The same link twice is the same frame twice
        values = [v for (i, v) in enumerate(values) if v not in values[:i]]

    data = bytearray()
    for index, v in enumerate(values):
        try:
            data.extend(codec._encode(identifier, v, version, index))
        except (TypeError, ValueError) as e:
            warn("Skipping invalid {0} value ({1})".format(identifier, e), ValueWarning)
    return bytes(data) if data else None

def read_frames(data, version, itunes_workaround=False, depth=0):
    """Decode every frame in a sequence of frames.

    Stops at padding or at a header that does not fit in the data.
    Frames that can't be decoded are left out.  Frames embedded deeper
    than max_nesting levels are not decoded at all.
    """
    frames = []
    if depth > max_nesting:
        warn("Embedded frames nested too deeply", ErrorFrameWarning)
        return frames
    size = header_size(version)
    offset = 0
    while len(data) - offset >= size + 1:
        header = FrameHeader.parse(data[offset:offset + size], version,
                                   itunes_workaround)
        if header is None or not is_frame_id(header.identifier):
            break
        end = offset + size + header.size
        frame = parse_frame(data[offset:end], version, itunes_workaround, depth)
        if frame is not None:
            frames.append(frame)
        offset = end
    return frames

def frames_to_dict(frames):
    """Collect frame values by identifier.

    ID3v2.2 ids are replaced by their v2.3 names.  Identifiers that allow
    duplicates map to a list of values; others to the last value seen.
    """
    d = collections.OrderedDict()
    for frame in frames:
        identifier = aliases.get(frame.identifier, frame.identifier)
        if is_multiple(identifier):
            d.setdefault(identifier, []).append(frame.value)
        else:
            if identifier in d:
                warn("Frame {0} duplicated, only the last instance is kept".format(identifier),
                     FrameWarning)
            d[identifier] = frame.value
    return d

def encode_frames(framedict, version=None):
    "Encode a mapping of frame ids to values as a sequence of frames."
    data = bytearray()
    for identifier, value in framedict.items():
        framedata = make_frame(identifier, value, version)
        if framedata is not None:
            data.extend(framedata)
    return bytes(data)
