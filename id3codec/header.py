# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

"""Frame headers of the three ID3v2 versions."""

import collections
import re

from id3codec.conversion import *

_FRAME23_FORMAT_COMPRESSED = 0x0080
_FRAME23_FORMAT_ENCRYPTED = 0x0040
_FRAME23_FORMAT_GROUP = 0x0020

_FRAME23_STATUS_DISCARD_ON_TAG_ALTER = 0x8000
_FRAME23_STATUS_DISCARD_ON_FILE_ALTER = 0x4000
_FRAME23_STATUS_READ_ONLY = 0x2000

_FRAME24_FORMAT_GROUP = 0x0040
_FRAME24_FORMAT_COMPRESSED = 0x0008
_FRAME24_FORMAT_ENCRYPTED = 0x0004
_FRAME24_FORMAT_UNSYNCHRONISED = 0x0002
_FRAME24_FORMAT_DATA_LENGTH_INDICATOR = 0x0001

_FRAME24_STATUS_DISCARD_ON_TAG_ALTER = 0x4000
_FRAME24_STATUS_DISCARD_ON_FILE_ALTER = 0x2000
_FRAME24_STATUS_READ_ONLY = 0x1000

# Bit -> flag name, per version.  ID3v2.2 frames have no flags.
_flag_tables = {
    2: (),
    3: ((_FRAME23_STATUS_DISCARD_ON_TAG_ALTER, "tag_alter_preservation"),
        (_FRAME23_STATUS_DISCARD_ON_FILE_ALTER, "file_alter_preservation"),
        (_FRAME23_STATUS_READ_ONLY, "read_only"),
        (_FRAME23_FORMAT_COMPRESSED, "compression"),
        (_FRAME23_FORMAT_ENCRYPTED, "encryption"),
        (_FRAME23_FORMAT_GROUP, "grouping_identity")),
    4: ((_FRAME24_STATUS_DISCARD_ON_TAG_ALTER, "tag_alter_preservation"),
        (_FRAME24_STATUS_DISCARD_ON_FILE_ALTER, "file_alter_preservation"),
        (_FRAME24_STATUS_READ_ONLY, "read_only"),
        (_FRAME24_FORMAT_GROUP, "grouping_identity"),
        (_FRAME24_FORMAT_COMPRESSED, "compression"),
        (_FRAME24_FORMAT_ENCRYPTED, "encryption"),
        (_FRAME24_FORMAT_UNSYNCHRONISED, "unsynchronisation"),
        (_FRAME24_FORMAT_DATA_LENGTH_INDICATOR, "data_length_indicator")),
    }

_frame_id_pattern = re.compile("[A-Z][A-Z0-9]{2}[A-Z0-9 ]?")

def is_frame_id(identifier):
    # Allow a single space at end of four-character ids
    # Some programs (e.g. iTunes 8.2) generate such frames when converting
    # from 2.2 to 2.3/2.4 tags.
    return isinstance(identifier, str) and bool(_frame_id_pattern.fullmatch(identifier))

def header_size(version):
    if version == 2:
        return 6
    if version in (3, 4):
        return 10
    raise ValueError("Unknown ID3 version: 2.{0}".format(version))

def decode_flags(bflags, version):
    "Return the set of flag names encoded in the 16-bit flags word."
    flags = set(name for (bit, name) in _flag_tables[version] if bflags & bit)
    if version == 3 and "compression" in flags:
        # ID3v2.3 compressed frames carry the decompressed size up front.
        flags.add("data_length_indicator")
    return frozenset(flags)

def encode_flags(flags, version):
    bflags = 0
    for (bit, name) in _flag_tables[version]:
        if name in flags:
            bflags |= bit
    return bflags

class FrameHeader(collections.namedtuple("FrameHeader", "identifier size flags")):
    """Identifier, declared body size and flags of a frame.

    The declared size excludes the header itself.
    """
    __slots__ = ()

    @classmethod
    def parse(cls, data, version, itunes_workaround=False):
        """Parse a frame header from the start of data.

        Returns None if data is too short or the v2.4 size field is not a
        valid syncsafe integer.
        """
        if len(data) < header_size(version):
            return None
        if version == 2:
            return cls(data[0:3].decode("latin-1"),
                       Int8.decode(data[3:6]),
                       frozenset())
        if version == 4 and not itunes_workaround:
            size = decode_size(data[4:8])
            if size is None:
                return None
        else:
            # Older versions of iTunes stored v2.4 frame sizes as
            # straight 8bit integers, not syncsafe.
            size = Int8.decode(data[4:8])
        return cls(data[0:4].decode("latin-1"),
                   size,
                   decode_flags(Int8.decode(data[8:10]), version))

    def encode(self, version):
        data = bytearray()
        if version == 2:
            data.extend(self.identifier.encode("latin-1")[:3].ljust(3, b" "))
            data.extend(Int8.encode(self.size, width=3))
        else:
            data.extend(self.identifier.encode("latin-1")[:4].ljust(4, b" "))
            if version == 4:
                data.extend(Syncsafe.encode(self.size, width=4))
            else:
                data.extend(Int8.encode(self.size, width=4))
            data.extend(Int8.encode(encode_flags(self.flags, version), width=2))
        assert len(data) == header_size(version)
        return bytes(data)
