# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

"""Frames with a dedicated binary layout.
"""

import collections

import id3codec.frames as Frames
from id3codec.frames import FrameValue, URLFrame, frameclass
from id3codec.conversion import Encoding
from id3codec.reader import FrameReader
from id3codec.builder import FrameBuilder
from id3codec.specs import *


# Attached picture (APIC & PIC) types
picture_types = (
    "Other", "32x32 icon", "Other icon", "Front Cover", "Back Cover",
    "Leaflet", "Media", "Lead artist", "Artist", "Conductor",
    "Band/Orchestra", "Composer", "Lyricist/text writer",
    "Recording Location", "Recording", "Performance", "Screen capture",
    "A bright coloured fish", "Illustration", "Band/artist",
    "Publisher/Studio")

PICTURE_TYPE_FRONT_COVER = 3

# Synchronised lyrics/event timing timestamp formats
TIMESTAMP_MPEG_FRAMES = 1
TIMESTAMP_MILLISECONDS = 2

_image_signatures = (
    (b"\xFF\xD8\xFF", "image/jpeg"),
    (b"\x89PNG\r\n\x1A\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
    (b"BM", "image/bmp"),
    )

def picture_mime_type(data):
    "Guess the MIME type of an image from its magic bytes; None if unknown."
    for (signature, mime) in _image_signatures:
        if data.startswith(signature):
            return mime
    if data[0:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


# 4.1. Unique file identifier
@frameclass
class UFID(FrameValue):
    "Unique file identifier"
    _framespec = (StringSpec("owner_identifier", required=True),
                  BinaryDataSpec("identifier", default=b""))
    _allow_duplicates = True

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data)
        owner = reader.consume_null_terminated("string")
        if owner is None:
            return None
        return cls(owner_identifier=owner,
                   identifier=reader.consume_static("buffer"))

    def _to_data(self, version, index=0):
        return (FrameBuilder(self.frameid, version)
                .append_null_terminated(self.owner_identifier)
                .append_value(self.identifier)
                .get_buffer())


# 4.2.6. User defined text information frame
@frameclass
class TXXX(FrameValue):
    "User defined text information frame"
    _framespec = (StringSpec("description", default=""),
                  StringSpec("value", required=True))
    _allow_duplicates = True

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data, consume_encoding=True)
        description = reader.consume_null_terminated("string")
        value = reader.consume_static("string")
        if description is None or value is None:
            return None
        return cls(description=description, value=value)

    def _to_data(self, version, index=0):
        return (FrameBuilder(self.frameid, version)
                .append_number(Encoding.UTF16, 1)
                .append_null_terminated(self.description, Encoding.UTF16)
                .append_value(self.value, encoding=Encoding.UTF16)
                .get_buffer())


# 4.3. URL link frames
@frameclass
class WCOM(URLFrame):
    "Commercial information"
    _allow_duplicates = True

@frameclass
class WOAR(URLFrame):
    "Official artist/performer webpage"
    _allow_duplicates = True

@frameclass
class WXXX(FrameValue):
    "User defined URL link frame"
    _framespec = (StringSpec("description", default=""),
                  StringSpec("url", required=True))
    _allow_duplicates = True

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data, consume_encoding=True)
        description = reader.consume_null_terminated("string")
        url = reader.consume_static("string", encoding=Encoding.LATIN1)
        if description is None or url is None:
            return None
        return cls(description=description, url=url)

    def _to_data(self, version, index=0):
        return (FrameBuilder(self.frameid, version)
                .append_number(Encoding.UTF16, 1)
                .append_null_terminated(self.description, Encoding.UTF16)
                .append_value(self.url)
                .get_buffer())


# 4.5. Event timing codes
@frameclass
class ETCO(FrameValue):
    "Event timing codes"
    _framespec = (ByteSpec("timestamp_format", default=TIMESTAMP_MILLISECONDS),
                  RecordSpec("key_events", KeyEvent,
                             ByteSpec("type"), IntegerSpec("timestamp", 4),
                             default=[]))

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data)
        timestamp_format = reader.consume_static("number", 1)
        if timestamp_format is None:
            return None
        events = []
        while reader.remaining() >= 5:
            events.append(KeyEvent(reader.consume_static("number", 1),
                                   reader.consume_static("number", 4)))
        return cls(timestamp_format=timestamp_format, key_events=events)

    def _to_data(self, version, index=0):
        builder = (FrameBuilder(self.frameid, version)
                   .append_number(self.timestamp_format, 1))
        for event in self.key_events:
            builder.append_number(event.type, 1).append_number(event.timestamp, 4)
        return builder.get_buffer()


# 4.8. Unsynchronised lyrics/text transcription, 4.10. Comments
@frameclass
class COMM(FrameValue):
    "Comments"
    _framespec = (LanguageSpec("language", default="XXX"),
                  StringSpec("short_text", default=""),
                  StringSpec("text", required=True))
    _allow_duplicates = True

    @classmethod
    def _from_value(cls, value):
        if isinstance(value, str):
            return cls(text=value)
        return super()._from_value(value)

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data, consume_encoding=True)
        language = reader.consume_static("string", 3, Encoding.LATIN1)
        short_text = reader.consume_null_terminated("string")
        text = reader.consume_static("string")
        if language is None or short_text is None or text is None:
            return None
        return cls(language=language.ljust(3, "X"), short_text=short_text, text=text)

    def _to_data(self, version, index=0):
        if not self.text:
            raise ValueError("{0} frame requires text".format(self.frameid))
        return (FrameBuilder(self.frameid, version)
                .append_number(Encoding.UTF16, 1)
                .append_value(self.language, 3)
                .append_null_terminated(self.short_text, Encoding.UTF16)
                .append_value(self.text, encoding=Encoding.UTF16)
                .get_buffer())

@frameclass
class USLT(COMM):
    "Unsynchronised lyric/text transcription"


# 4.9. Synchronised lyrics/text
@frameclass
class SYLT(FrameValue):
    "Synchronised lyric/text"
    _framespec = (LanguageSpec("language", default="XXX"),
                  ByteSpec("timestamp_format", default=TIMESTAMP_MILLISECONDS),
                  ByteSpec("content_type", default=1),
                  StringSpec("short_text", default=""),
                  RecordSpec("synchronised_text", SyncedText,
                             StringSpec("text"), IntegerSpec("timestamp", 4),
                             required=True))
    _allow_duplicates = True

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data, consume_encoding=True)
        language = reader.consume_static("string", 3, Encoding.LATIN1)
        timestamp_format = reader.consume_static("number", 1)
        content_type = reader.consume_static("number", 1)
        short_text = reader.consume_null_terminated("string")
        if None in (language, timestamp_format, content_type, short_text):
            return None
        synchronised_text = []
        # Every record consumes at least 5 bytes, or ends the loop
        while reader.has_data():
            text = reader.consume_null_terminated("string")
            timestamp = reader.consume_static("number", 4)
            if text is None or timestamp is None:
                break
            synchronised_text.append(SyncedText(text, timestamp))
        return cls(language=language.ljust(3, "X"),
                   timestamp_format=timestamp_format,
                   content_type=content_type,
                   short_text=short_text,
                   synchronised_text=synchronised_text)

    def _to_data(self, version, index=0):
        builder = (FrameBuilder(self.frameid, version)
                   .append_number(Encoding.UTF16, 1)
                   .append_value(self.language, 3)
                   .append_number(self.timestamp_format, 1)
                   .append_number(self.content_type, 1)
                   .append_null_terminated(self.short_text, Encoding.UTF16))
        for part in self.synchronised_text:
            builder.append_null_terminated(part.text, Encoding.UTF16)
            builder.append_number(part.timestamp, 4)
        return builder.get_buffer()


# 4.14. Attached picture
@frameclass
class APIC(FrameValue):
    "Attached picture"
    _framespec = (StringSpec("mime"),
                  PictureTypeSpec("type", picture_types,
                                  default=PICTURE_TYPE_FRONT_COVER),
                  StringSpec("description", default=""),
                  BinaryDataSpec("image_buffer", required=True))
    _allow_duplicates = True

    @classmethod
    def _from_value(cls, value):
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(image_buffer=value)
        return super()._from_value(value)

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data, consume_encoding=True)
        if version == 2:
            # ID3v2.2 PIC frames have a 3-letter image format ("JPG", "PNG")
            mime = reader.consume_static("string", 3, Encoding.LATIN1)
        else:
            mime = reader.consume_null_terminated("string", Encoding.LATIN1)
        type = reader.consume_static("number", 1)
        description = reader.consume_null_terminated("string")
        if mime is None or type is None or description is None:
            return None
        return cls(mime=mime, type=type, description=description,
                   image_buffer=reader.consume_static("buffer"))

    def _to_data(self, version, index=0):
        mime = self.mime or picture_mime_type(self.image_buffer) or ""
        # iTunes ignores artwork whose empty description is UTF-16
        # encoded; write empty descriptions as ISO-8859-1.
        encoding = Encoding.UTF16 if self.description else Encoding.LATIN1
        return (FrameBuilder(self.frameid, version)
                .append_number(encoding, 1)
                .append_null_terminated(mime)
                .append_number(self.type.id, 1)
                .append_null_terminated(self.description, encoding)
                .append_value(self.image_buffer)
                .get_buffer())


# 4.17. Popularimeter
@frameclass
class POPM(FrameValue):
    "Popularimeter"
    _framespec = (StringSpec("email", required=True),
                  ByteSpec("rating", default=0, lenient=True),
                  IntegerSpec("counter", default=0, lenient=True))
    _allow_duplicates = True

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data)
        email = reader.consume_null_terminated("string")
        rating = reader.consume_static("number", 1)
        if email is None or rating is None:
            return None
        # The counter may be omitted, and may be longer than 32 bits
        counter = reader.consume_static("number")
        return cls(email=email, rating=rating,
                   counter=counter if counter is not None else 0)

    def _to_data(self, version, index=0):
        if not self.email:
            raise ValueError("POPM frame requires an email")
        counter = self.counter or 0
        width = max(4, (counter.bit_length() + 7) // 8)
        return (FrameBuilder(self.frameid, version)
                .append_null_terminated(self.email)
                .append_number(self.rating or 0, 1)
                .append_number(counter, width)
                .get_buffer())


# 4.24. Commercial frame
@frameclass
class COMR(FrameValue):
    "Commercial frame"
    _framespec = (PriceSpec("prices", default={}),
                  DateSpec("valid_until", required=True),
                  StringSpec("contact_url", default=""),
                  ByteSpec("received_as", default=0),
                  StringSpec("name_of_seller", default=""),
                  StringSpec("description", default=""),
                  SellerLogoSpec("seller_logo", optional=True))
    _allow_duplicates = True

    logo_mime_types = ("image/png", "image/jpeg")

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data, consume_encoding=True)
        price_string = reader.consume_null_terminated("string", Encoding.LATIN1)
        valid_until = reader.consume_static("string", 8, Encoding.LATIN1)
        contact_url = reader.consume_null_terminated("string", Encoding.LATIN1)
        received_as = reader.consume_static("number", 1)
        name_of_seller = reader.consume_null_terminated("string")
        description = reader.consume_null_terminated("string")
        if None in (price_string, valid_until, contact_url, received_as,
                    name_of_seller, description):
            return None
        prices = collections.OrderedDict(
            (price[:3], price[3:])
            for price in price_string.split("/") if len(price) > 3)
        if len(valid_until) == 8 and valid_until.isdigit():
            valid_until = Date(int(valid_until[0:4]),
                               int(valid_until[4:6]),
                               int(valid_until[6:8]))
        else:
            valid_until = Date(0, 0, 0)
        seller_logo = None
        mime_type = reader.consume_null_terminated("string", Encoding.LATIN1)
        picture = reader.consume_static("buffer")
        if picture:
            seller_logo = SellerLogo(mime_type, picture)
        return cls(prices=prices, valid_until=valid_until,
                   contact_url=contact_url, received_as=received_as,
                   name_of_seller=name_of_seller, description=description,
                   seller_logo=seller_logo)

    def _to_data(self, version, index=0):
        price_string = "/".join(currency[:3] + amount
                                for (currency, amount) in (self.prices or {}).items())
        valid_until = "".join(str(value).rjust(width, "0")[:width]
                              for (value, width) in zip(self.valid_until, (4, 2, 2)))
        builder = (FrameBuilder(self.frameid, version)
                   .append_number(Encoding.UTF16, 1)
                   .append_null_terminated(price_string)
                   .append_value(valid_until, 8)
                   .append_null_terminated(self.contact_url)
                   .append_number(self.received_as, 1)
                   .append_null_terminated(self.name_of_seller, Encoding.UTF16)
                   .append_null_terminated(self.description, Encoding.UTF16))
        if self.seller_logo is not None:
            picture = self.seller_logo.picture
            mime_type = self.seller_logo.mime_type or picture_mime_type(picture)
            if mime_type not in self.logo_mime_types:
                mime_type = "image/"
            builder.append_null_terminated(mime_type).append_value(picture)
        return builder.get_buffer()


# 4.27. Private frame
@frameclass
class PRIV(FrameValue):
    "Private frame"
    _framespec = (StringSpec("owner_identifier", required=True),
                  BinaryDataSpec("data", default=b""))
    _allow_duplicates = True

    @classmethod
    def _read(cls, data, version):
        reader = FrameReader(data)
        owner = reader.consume_null_terminated("string")
        if owner is None:
            return None
        return cls(owner_identifier=owner, data=reader.consume_static("buffer"))

    def _to_data(self, version, index=0):
        return (FrameBuilder(self.frameid, version)
                .append_null_terminated(self.owner_identifier)
                .append_value(self.data)
                .get_buffer())


# ID3v2 Chapter Frame Addendum
_NO_OFFSET = 0xFFFFFFFF

@frameclass
class CHAP(FrameValue):
    """Chapter

    Byte offsets are optional; 0xFFFFFFFF on the wire means absent.
    Embedded frames (typically TIT2, APIC) are kept in tags.
    """
    _framespec = (StringSpec("element_id", required=True),
                  IntegerSpec("start_time_ms", 4, required=True),
                  IntegerSpec("end_time_ms", 4, required=True),
                  IntegerSpec("start_offset_bytes", 4, optional=True),
                  IntegerSpec("end_offset_bytes", 4, optional=True),
                  TagsSpec("tags", default={}))
    _allow_duplicates = True

    @classmethod
    def _decode(cls, data, version, itunes_workaround=False, depth=0):
        return cls._read(data, version, itunes_workaround, depth)

    @classmethod
    def _read(cls, data, version, itunes_workaround=False, depth=0):
        reader = FrameReader(data)
        element_id = reader.consume_null_terminated("string")
        times = [reader.consume_static("number", 4) for i in range(4)]
        if element_id is None or None in times:
            return None
        offsets = [None if t == _NO_OFFSET else t for t in times[2:]]
        subframes = Frames.read_frames(reader.consume_static("buffer"), version,
                                       itunes_workaround, depth + 1)
        return cls(element_id=element_id,
                   start_time_ms=times[0], end_time_ms=times[1],
                   start_offset_bytes=offsets[0], end_offset_bytes=offsets[1],
                   tags=Frames.frames_to_dict(subframes))

    def _to_data(self, version, index=0):
        def offset(value):
            return _NO_OFFSET if value is None else value
        if not self.element_id:
            raise ValueError("CHAP frame requires an element id")
        return (FrameBuilder(self.frameid, version)
                .append_null_terminated(self.element_id)
                .append_number(self.start_time_ms, 4)
                .append_number(self.end_time_ms, 4)
                .append_number(offset(self.start_offset_bytes), 4)
                .append_number(offset(self.end_offset_bytes), 4)
                .append_value(Frames.encode_frames(self.tags or {}, version))
                .get_buffer())

_CTOC_TOP_LEVEL = 0x02
_CTOC_ORDERED = 0x01

@frameclass
class CTOC(FrameValue):
    """Table of contents

    The first table of contents in an encoded sequence is marked as the
    top-level one.
    """
    _framespec = (StringSpec("element_id", required=True),
                  BooleanSpec("is_ordered", default=False),
                  SequenceSpec("elements", StringSpec("element"), default=[]),
                  TagsSpec("tags", default={}))
    _allow_duplicates = True

    @classmethod
    def _decode(cls, data, version, itunes_workaround=False, depth=0):
        return cls._read(data, version, itunes_workaround, depth)

    @classmethod
    def _read(cls, data, version, itunes_workaround=False, depth=0):
        reader = FrameReader(data)
        element_id = reader.consume_null_terminated("string")
        flags = reader.consume_static("number", 1)
        count = reader.consume_static("number", 1)
        if element_id is None or flags is None or count is None:
            return None
        elements = []
        for i in range(count):
            element = reader.consume_null_terminated("string")
            if element is None:
                return None
            elements.append(element)
        subframes = Frames.read_frames(reader.consume_static("buffer"), version,
                                       itunes_workaround, depth + 1)
        return cls(element_id=element_id,
                   is_ordered=bool(flags & _CTOC_ORDERED),
                   elements=elements,
                   tags=Frames.frames_to_dict(subframes))

    def _to_data(self, version, index=0):
        if not self.element_id:
            raise ValueError("CTOC frame requires an element id")
        if len(self.elements) > 255:
            raise ValueError("Too many CTOC entries")
        flags = 0
        if index == 0:
            flags |= _CTOC_TOP_LEVEL
        if self.is_ordered:
            flags |= _CTOC_ORDERED
        builder = (FrameBuilder(self.frameid, version)
                   .append_null_terminated(self.element_id)
                   .append_number(flags, 1)
                   .append_number(len(self.elements), 1))
        for element in self.elements:
            builder.append_null_terminated(element)
        return builder.append_value(Frames.encode_frames(self.tags or {}, version)).get_buffer()


def _register_aliases():
    "Map ID3v2.2 frame ids to the v2.3/v2.4 frames they were renamed to."
    Frames.aliases.update({
        "UFI": "UFID", "TT1": "TIT1", "TT2": "TIT2", "TT3": "TIT3",
        "TP1": "TPE1", "TP2": "TPE2", "TP3": "TPE3", "TP4": "TPE4",
        "TCM": "TCOM", "TXT": "TEXT", "TLA": "TLAN", "TCO": "TCON",
        "TAL": "TALB", "TPA": "TPOS", "TRK": "TRCK", "TRC": "TSRC",
        "TYE": "TYER", "TDA": "TDAT", "TIM": "TIME", "TRD": "TRDA",
        "TMT": "TMED", "TFT": "TFLT", "TBP": "TBPM", "TCR": "TCOP",
        "TPB": "TPUB", "TEN": "TENC", "TSS": "TSSE", "TOF": "TOFN",
        "TLE": "TLEN", "TSI": "TSIZ", "TDY": "TDLY", "TKE": "TKEY",
        "TOT": "TOAL", "TOA": "TOPE", "TOL": "TOLY", "TOR": "TORY",
        "TXX": "TXXX",
        "WAF": "WOAF", "WAR": "WOAR", "WAS": "WOAS", "WCM": "WCOM",
        "WCP": "WCOP", "WPB": "WPUB", "WXX": "WXXX",
        "ETC": "ETCO", "ULT": "USLT", "SLT": "SYLT", "COM": "COMM",
        "PIC": "APIC", "POP": "POPM",
        # iTunes
        "TCP": "TCMP", "TDS": "TDES", "TID": "TGID", "WFD": "WFED",
        "TCT": "TCAT", "TKW": "TKWD",
        })

_register_aliases()
