# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

"""ID3v2 tags: locating, reading and writing whole containers.

Tags behave as mutable mappings from frame ids to frame values.  Ids
that allow several frames (COMM, APIC, TXXX, ...) map to a list of
values.
"""

import abc
import collections.abc
import io

from abc import abstractmethod
from warnings import warn

from id3codec.errors import *
from id3codec.conversion import *
from id3codec.header import is_frame_id

import id3codec.frames as Frames
import id3codec.fileutil as fileutil

_TAG_UNSYNCHRONISED = 0x80
_TAG_EXTENDED_HEADER = 0x40
_TAG_EXPERIMENTAL = 0x20

_TAG22_COMPRESSED = 0x40
_TAG22_UNKNOWN_MASK = 0x3F
_TAG23_UNKNOWN_MASK = 0x1F

_TAG24_FOOTER = 0x10
_TAG24_UNKNOWN_MASK = 0x0F

def read_tag(filename):
    with fileutil.opened(filename, "rb") as file:
        return detect_tag(file)[0].read(file)

def decode_tag(data):
    "Decode the first ID3v2 tag found in data."
    offset = find_tag(data)
    if offset < 0:
        raise NoTagError("ID3v2 tag not found")
    return read_tag(io.BytesIO(data[offset:]))

def create_tag(framedict, version=4):
    "Return a complete tag holding the frames in framedict."
    tag = _tag_versions[version]()
    tag.update(framedict)
    return tag.encode()

def write_tag(filename, framedict, version=4):
    "Replace the tag of filename with a new one holding framedict."
    tag = _tag_versions[version]()
    tag.update(framedict)
    tag.write(filename)

def update_tag(filename, framedict):
    "Set the frames in framedict, keeping the other frames of the file's tag."
    try:
        tag = read_tag(filename)
    except NoTagError:
        tag = Tag24()
    if tag.version == 2:
        tag = Tag24.from_tag(tag)
    tag.update(framedict)
    tag.write(filename)

def delete_tag(filename):
    with fileutil.opened(filename, "rb+") as file:
        try:
            (cls, offset, length) = detect_tag(file)
            fileutil.replace_chunk(file, offset, length, bytes())
        except NoTagError:
            pass

def remove_tag(data):
    """Return data with its first ID3v2 tag cut out.

    Raises TagError if the tag's size field is not a valid syncsafe
    integer, rather than guessing where the tag ends.
    """
    offset = data.find(b"ID3")
    while offset >= 0 and not _is_tag_header(data[offset:offset + 10], check_size=False):
        offset = data.find(b"ID3", offset + 1)
    if offset < 0:
        return data
    size = decode_size(data[offset + 6:offset + 10])
    if size is None:
        raise TagError("Invalid ID3v2 tag size")
    return data[:offset] + data[offset + _tag_length(data[offset:offset + 10]):]

def find_tag(data):
    "Return the offset of the first ID3v2 tag header in data, or -1."
    offset = data.find(b"ID3")
    while offset >= 0 and not _is_tag_header(data[offset:offset + 10]):
        offset = data.find(b"ID3", offset + 1)
    return offset

def _is_tag_header(header, check_size=True):
    return (len(header) == 10
            and header[0:3] == b"ID3"
            and header[3] in _tag_versions
            and header[4] != 0xFF
            and (not check_size or is_valid_size(header[6:10])))

def _tag_length(header):
    length = Syncsafe.decode(header[6:10]) + 10
    if header[3] == 4 and header[5] & _TAG24_FOOTER:
        length += 10
    return length

def detect_tag(filename):
    """Return type and position of ID3v2 tag in filename.
    Returns (tag_class, offset, length), where tag_class
    is either Tag22, Tag23, or Tag24, and (offset, length)
    is the position of the tag in the file.
    """
    with fileutil.opened(filename, "rb") as file:
        offset = file.tell()
        header = file.read(10)
        file.seek(offset)
        if len(header) < 10 or header[0:3] != b"ID3":
            raise NoTagError("ID3v2 tag not found")
        if header[3] not in _tag_versions or header[4] != 0:
            raise TagError("Unknown ID3 version: 2.{0}.{1}"
                           .format(*header[3:5]))
        if not is_valid_size(header[6:10]):
            raise TagError("Invalid ID3v2 tag size")
        return (_tag_versions[header[3]], offset, _tag_length(header))


class Tag(collections.abc.MutableMapping, metaclass=abc.ABCMeta):
    version = None

    padding_default = 0
    padding_max = 1024

    def __init__(self):
        self.flags = set()
        self._frames = dict()

    @classmethod
    def from_tag(cls, tag):
        "Copy the frames of tag into a new tag of this class."
        new = cls()
        new.update(tag)
        return new

    # MutableMapping methods
    def __iter__(self):
        return iter(self._frames)

    def __len__(self):
        return len(self._frames)

    def __getitem__(self, key):
        return self._frames[key]

    def __setitem__(self, key, value):
        if not is_frame_id(key):
            raise KeyError("Invalid frame id " + repr(key))
        key = Frames.aliases.get(key, key)
        if Frames.is_multiple(key) and not isinstance(value, list):
            value = [value]
        self._frames[key] = value

    def __delitem__(self, key):
        del self._frames[key]

    def frames(self):
        "Return the tag's contents as a list of Frames."
        frames = []
        for (frameid, value) in self._frames.items():
            values = value if Frames.is_multiple(frameid) else [value]
            frames.extend(Frames.Frame(frameid, v, frozenset()) for v in values)
        return frames

    def __repr__(self):
        return "<{0}: ID3v2.{1} tag{2} with {3} frames>".format(
            type(self).__name__,
            self.version,
            ("({0})".format(", ".join(sorted(self.flags)))
             if len(self.flags) > 0 else ""),
            len(self.frames()))

    # Reading tags
    @classmethod
    def read(cls, filename):
        """Read a tag from a file."""
        with fileutil.opened(filename, "rb") as file:
            tag = cls()
            data = tag._read_header(file)
            frames = Frames.read_frames(data, tag.version, tag._itunes_workaround())
            tag._frames = dict(Frames.frames_to_dict(frames))
            return tag

    @classmethod
    def decode(cls, data):
        return cls.read(io.BytesIO(data))

    @abstractmethod
    def _read_header(self, file):
        "Read the tag header; return the frame data that follows it."

    def _itunes_workaround(self):
        return False

    def _read_tag_data(self, file, header):
        size = decode_size(header[6:10])
        if size is None:
            raise TagError("Invalid ID3v2 tag size")
        try:
            return fileutil.xread(file, size)
        except EOFError:
            raise TagError("ID3v2 tag is truncated")

    # Writing tags
    def write(self, filename):
        with fileutil.opened(filename, "rb+") as file:
            try:
                (offset, length) = detect_tag(file)[1:3]
            except NoTagError:
                (offset, length) = (file.tell(), 0)
            tag_data = self.encode(size_hint=length)
            fileutil.replace_chunk(file, offset, length, tag_data)

    def encode(self, size_hint=None):
        "Encode the tag; pad it to size_hint bytes if that is not too wasteful."
        framedata = Frames.encode_frames(self._frames, self.version)
        size = self._get_size_with_padding(
            size_hint - 10 if size_hint is not None else None,
            len(framedata))

        data = bytearray()
        data.extend(b"ID3")
        data.append(self.version)
        data.append(0x00)
        data.append(0x00)
        data.extend(Syncsafe.encode(size, width=4))
        data.extend(framedata)
        if size > len(framedata):
            data.extend(b"\x00" * (size - len(framedata)))
        return bytes(data)

    def _get_size_with_padding(self, size_desired, size_actual):
        size = size_actual
        if (size_desired is not None and size < size_desired
            and (self.padding_max is None or
                 size_desired - size_actual <= self.padding_max)):
            size = size_desired
        elif self.padding_default:
            size += self.padding_default
        return size


class Tag22(Tag):
    version = 2

    def _read_header(self, file):
        header = fileutil.xread(file, 10)
        if header[0:5] != b"ID3\x02\00":
            raise TagError("ID3v2.2 header not found")
        if header[5] & _TAG_UNSYNCHRONISED:
            self.flags.add("unsynchronisation")
        if header[5] & _TAG22_COMPRESSED: # Compression bit is ill-defined in standard
            raise TagError("ID3v2.2 tag compression is not supported")
        if header[5] & _TAG22_UNKNOWN_MASK:
            warn("Unknown ID3v2.2 flags", TagWarning)
        data = self._read_tag_data(file, header)
        if "unsynchronisation" in self.flags:
            data = Unsync.decode(data)
        return data

    def encode(self, size_hint=None):
        raise TagError("ID3v2.2 tags can only be read; convert to Tag23 or Tag24")


class Tag23(Tag):
    version = 3

    def _read_header(self, file):
        header = fileutil.xread(file, 10)
        if header[0:5] != b"ID3\x03\x00":
            raise TagError("ID3v2.3 header not found")
        if header[5] & _TAG_UNSYNCHRONISED:
            self.flags.add("unsynchronisation")
        if header[5] & _TAG_EXTENDED_HEADER:
            self.flags.add("extended_header")
        if header[5] & _TAG_EXPERIMENTAL:
            self.flags.add("experimental")
        if header[5] & _TAG23_UNKNOWN_MASK:
            warn("Unknown ID3v2.3 flags", TagWarning)
        data = self._read_tag_data(file, header)
        if "unsynchronisation" in self.flags:
            data = Unsync.decode(data)
        if "extended_header" in self.flags:
            data = self.__skip_extended_header(data)
        return data

    def __skip_extended_header(self, data):
        # The size excludes the size field itself; it is 6 or 10.
        size = Int8.decode(data[0:4])
        if size != 6 and size != 10:
            warn("Unexpected size of ID3v2.3 extended header: {0}".format(size), TagWarning)
        return data[4 + size:]


class Tag24(Tag):
    ITUNES_WORKAROUND = False

    version = 4

    def _read_header(self, file):
        header = fileutil.xread(file, 10)
        if header[0:5] != b"ID3\x04\x00":
            raise TagError("ID3v2 header not found")
        if header[5] & _TAG_UNSYNCHRONISED:
            self.flags.add("unsynchronisation")
        if header[5] & _TAG_EXTENDED_HEADER:
            self.flags.add("extended_header")
        if header[5] & _TAG_EXPERIMENTAL:
            self.flags.add("experimental")
        if header[5] & _TAG24_FOOTER:
            self.flags.add("footer")
        if header[5] & _TAG24_UNKNOWN_MASK:
            warn("Unknown ID3v2.4 flags", TagWarning)
        data = self._read_tag_data(file, header)
        if "extended_header" in self.flags:
            data = self.__skip_extended_header(data)
        return data

    def __skip_extended_header(self, data):
        # The size includes the size field itself.
        size = decode_size(data[0:4])
        if size is None or size < 6:
            warn("Unexpected size of ID3v2.4 extended header: {0}".format(size), TagWarning)
            size = 6 if size is None else max(size, 6)
        return data[size:]

    def _itunes_workaround(self):
        # Work around iTunes frame size encoding bug.
        # Older versions of iTunes stored frame sizes as
        # straight 8bit integers, not syncsafe.
        # (This is known to be fixed in iTunes 8.2.)
        return self.ITUNES_WORKAROUND


_tag_versions = {
    2: Tag22,
    3: Tag23,
    4: Tag24,
    }
