# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

import unittest

from id3codec.errors import *
import id3codec.frames as Frames
from id3codec.conversion import Encoding, Int8, encode_size
from id3codec.header import FrameHeader
from id3codec.frames import make_frame, parse_frame
from id3codec.specs import *
from id3codec.id3 import *

PNG_DATA = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_DATA = b"\xff\xd8\xff\xe0" + b"\x00" * 16

def raw_frame(identifier, body, version=4):
    return FrameHeader(identifier, len(body), frozenset()).encode(version) + body

class FrameTypeTestCase(unittest.TestCase):
    def roundtrip(self, identifier, value, version=4):
        data = make_frame(identifier, value, version)
        self.assertIsNotNone(data)
        frame = parse_frame(data, version)
        self.assertIsNotNone(frame)
        self.assertEqual(frame.identifier, identifier)
        return frame.value

    def testTXXX(self):
        value = {"description": "Source", "value": "Vinyl"}
        self.assertEqual(self.roundtrip("TXXX", value), TXXX(**value))
        self.assertEqual(self.roundtrip("TXXX", {"value": ""}), TXXX(description="", value=""))

    def testWXXX(self):
        value = {"description": "Home", "url": "http://example.com"}
        self.assertEqual(self.roundtrip("WXXX", value), WXXX(**value))

    def testUFID(self):
        value = self.roundtrip("UFID", {"owner_identifier": "http://musicbrainz.org",
                                        "identifier": "abc"})
        self.assertEqual(value.identifier, b"abc")

    def testPRIV(self):
        value = {"owner_identifier": "owner", "data": b"\x00\x01\xff"}
        self.assertEqual(self.roundtrip("PRIV", value), PRIV(**value))

    def testCOMM(self):
        value = self.roundtrip("COMM", {"text": "Hello", "language": "eng"})
        self.assertEqual(value.language, "eng")
        self.assertEqual(value.short_text, "")
        self.assertEqual(value.text, "Hello")

    def testCOMMDefaults(self):
        data = make_frame("COMM", "Hello")
        # Encoding byte, then the default language
        self.assertEqual(data[10], Encoding.UTF16)
        self.assertEqual(data[11:14], b"XXX")
        self.assertEqual(parse_frame(data, 4).value, COMM(text="Hello"))

    def testUSLT(self):
        value = {"language": "deu", "short_text": "Refrain", "text": "la la\nla"}
        self.assertEqual(self.roundtrip("USLT", value), USLT(**value))
        self.assertEqual(self.roundtrip("USLT", "lyrics"),
                         USLT(language="XXX", short_text="", text="lyrics"))

    def testMissingText(self):
        for frameid in ("COMM", "USLT"):
            with self.assertWarns(ValueWarning):
                self.assertIsNone(make_frame(frameid, {"language": "eng"}))

    def testInvalidLanguage(self):
        with self.assertWarns(ValueWarning):
            self.assertIsNone(make_frame("COMM", {"language": "english", "text": "x"}))

    def testSYLT(self):
        value = {"language": "eng",
                 "timestamp_format": TIMESTAMP_MILLISECONDS,
                 "content_type": 1,
                 "short_text": "desc",
                 "synchronised_text": [{"text": "one", "timestamp": 1000},
                                       ("two", 2000)]}
        result = self.roundtrip("SYLT", value)
        self.assertEqual(result.synchronised_text,
                         [SyncedText("one", 1000), SyncedText("two", 2000)])
        self.assertEqual(result.short_text, "desc")
        self.assertEqual(result, SYLT(**value))

    def testSYLTTruncatedRecord(self):
        data = make_frame("SYLT", {"synchronised_text": [("one", 1000), ("two", 2000)]})
        body = data[10:-2]
        frame = parse_frame(data[:4] + encode_size(len(body)) + data[8:10] + body, 4)
        self.assertEqual(frame.value.synchronised_text, [SyncedText("one", 1000)])

    def testETCO(self):
        value = {"timestamp_format": TIMESTAMP_MILLISECONDS,
                 "key_events": [{"type": 1, "timestamp": 0},
                                {"type": 2, "timestamp": 1500}]}
        result = self.roundtrip("ETCO", value)
        self.assertEqual(result.key_events, [KeyEvent(1, 0), KeyEvent(2, 1500)])
        self.assertEqual(result, ETCO(**value))

    def testETCOPartialEvent(self):
        body = b"\x02" + b"\x01\x00\x00\x05\xdc" + b"\x02\x00\x00"
        data = b"ETCO" + encode_size(len(body)) + b"\x00\x00" + body
        value = parse_frame(data, 4).value
        self.assertEqual(value.key_events, [KeyEvent(1, 1500)])

    def testAPIC(self):
        value = {"mime": "image/png", "type": {"id": 4}, "description": "Back",
                 "image_buffer": PNG_DATA}
        result = self.roundtrip("APIC", value)
        self.assertEqual(result, APIC(**value))
        self.assertEqual(result.type, PictureType(4, "Back Cover"))
        self.assertEqual(result.image_buffer, PNG_DATA)

    def testAPICFromBytes(self):
        data = make_frame("APIC", JPEG_DATA)
        # Empty descriptions are written as ISO-8859-1
        self.assertEqual(data[10], Encoding.LATIN1)
        value = parse_frame(data, 4).value
        self.assertEqual(value.mime, "image/jpeg")
        self.assertEqual(value.type, PictureType(3, "Front Cover"))
        self.assertEqual(value.description, "")
        self.assertEqual(value.image_buffer, JPEG_DATA)

        data = make_frame("APIC", {"description": "cover", "image_buffer": PNG_DATA})
        self.assertEqual(data[10], Encoding.UTF16)
        self.assertEqual(parse_frame(data, 4).value.mime, "image/png")

    def testAPICUnknownImage(self):
        value = self.roundtrip("APIC", {"image_buffer": b"not an image", "type": None})
        self.assertEqual(value.mime, "")
        self.assertEqual(value.type.id, PICTURE_TYPE_FRONT_COVER)

    def testAPICMissingImage(self):
        with self.assertWarns(ValueWarning):
            self.assertIsNone(make_frame("APIC", {"mime": "image/png"}))

    def testPictureMimeType(self):
        self.assertEqual(picture_mime_type(JPEG_DATA), "image/jpeg")
        self.assertEqual(picture_mime_type(PNG_DATA), "image/png")
        self.assertEqual(picture_mime_type(b"GIF89a\x01\x00"), "image/gif")
        self.assertEqual(picture_mime_type(b"BM\x00\x00"), "image/bmp")
        self.assertEqual(picture_mime_type(b"RIFF\x00\x00\x00\x00WEBPVP8 "), "image/webp")
        self.assertIsNone(picture_mime_type(b""))
        self.assertIsNone(picture_mime_type(b"text"))

    def testPOPM(self):
        value = {"email": "a@b.c", "rating": 200, "counter": 12345}
        self.assertEqual(self.roundtrip("POPM", value), POPM(**value))

    def testPOPMLenient(self):
        value = POPM(email="a@b.c", rating=300, counter=-1)
        self.assertEqual(value.rating, 0)
        self.assertEqual(value.counter, 0)
        value = self.roundtrip("POPM", {"email": "a@b.c", "rating": "x", "counter": None})
        self.assertEqual((value.rating, value.counter), (0, 0))

    def testPOPMLargeCounter(self):
        value = self.roundtrip("POPM", {"email": "a@b.c", "counter": 1 << 40})
        self.assertEqual(value.counter, 1 << 40)

    def testPOPMNoCounter(self):
        body = b"a@b.c\x00\x80"
        data = b"POPM" + encode_size(len(body)) + b"\x00\x00" + body
        self.assertEqual(parse_frame(data, 4).value,
                         POPM(email="a@b.c", rating=128, counter=0))

    def testPOPMMissingEmail(self):
        with self.assertWarns(ValueWarning):
            self.assertIsNone(make_frame("POPM", {"rating": 1}))

    def testCOMR(self):
        value = {"prices": {"USD": "9.99", "EUR": 8},
                 "valid_until": {"year": 2030, "month": 1, "day": 31},
                 "contact_url": "http://shop.example.com",
                 "received_as": 1,
                 "name_of_seller": "Seller",
                 "description": "Album",
                 "seller_logo": {"mime_type": "image/png", "picture": PNG_DATA}}
        data = make_frame("COMR", value)
        self.assertIn(b"USD9.99/EUR8\x0020300131", data)
        result = parse_frame(data, 4).value
        self.assertEqual(result.prices, {"USD": "9.99", "EUR": "8"})
        self.assertEqual(result.valid_until, Date(2030, 1, 31))
        self.assertEqual(result.seller_logo, SellerLogo("image/png", PNG_DATA))
        self.assertEqual(result, COMR(**value))

    def testCOMRLogoMimeType(self):
        value = {"valid_until": (2030, 1, 31),
                 "seller_logo": {"mime_type": "image/gif", "picture": b"GIF89a"}}
        result = self.roundtrip("COMR", value)
        self.assertEqual(result.seller_logo.mime_type, "image/")
        value = {"valid_until": (2030, 1, 31),
                 "seller_logo": {"picture": JPEG_DATA}}
        result = self.roundtrip("COMR", value)
        self.assertEqual(result.seller_logo.mime_type, "image/jpeg")

    def testCOMRNoLogo(self):
        result = self.roundtrip("COMR", {"prices": {"GBP": "1"},
                                         "valid_until": Date(2001, 2, 3)})
        self.assertIsNone(result.seller_logo)
        self.assertNotIn("seller_logo", result._asdict())
        self.assertEqual(result.name_of_seller, "")

    def testCOMRMissingDate(self):
        with self.assertWarns(ValueWarning):
            self.assertIsNone(make_frame("COMR", {"prices": {"USD": "1"}}))

    def testCHAP(self):
        value = {"element_id": "chp1", "start_time_ms": 0, "end_time_ms": 5000,
                 "tags": {"TIT2": "Chapter 1"}}
        result = self.roundtrip("CHAP", value)
        self.assertIsNone(result.start_offset_bytes)
        self.assertIsNone(result.end_offset_bytes)
        self.assertNotIn("start_offset_bytes", result._asdict())
        self.assertNotIn("end_offset_bytes", result._asdict())
        self.assertEqual(result.tags, {"TIT2": "Chapter 1"})
        self.assertEqual(result, CHAP(**value))

    def testCHAPOffsets(self):
        data = make_frame("CHAP", {"element_id": "chp1", "start_time_ms": 0,
                                   "end_time_ms": 5000})
        self.assertEqual(data[15:31], b"\x00\x00\x00\x00\x00\x00\x13\x88"
                                      b"\xff\xff\xff\xff\xff\xff\xff\xff")
        result = self.roundtrip("CHAP", {"element_id": "chp1", "start_time_ms": 0,
                                         "end_time_ms": 5000,
                                         "start_offset_bytes": 100,
                                         "end_offset_bytes": 200})
        self.assertEqual((result.start_offset_bytes, result.end_offset_bytes), (100, 200))
        self.assertEqual(result._asdict()["start_offset_bytes"], 100)

    def testCHAPEmbeddedPicture(self):
        value = {"element_id": "chp1", "start_time_ms": 1, "end_time_ms": 2,
                 "tags": {"TIT2": "x", "APIC": [{"image_buffer": PNG_DATA}]}}
        result = self.roundtrip("CHAP", value)
        self.assertEqual(result.tags["APIC"][0].mime, "image/png")

    def testCHAPMissingTimes(self):
        with self.assertWarns(ValueWarning):
            self.assertIsNone(make_frame("CHAP", {"element_id": "chp1"}))

    def testCTOC(self):
        data = make_frame("CTOC", [{"element_id": "toc", "is_ordered": True,
                                    "elements": ["chp1", "chp2"]},
                                   {"element_id": "sub", "elements": ["chp3"]}])
        self.assertEqual(data[10:10 + len(b"toc\x00")], b"toc\x00")
        # Top-level and ordered
        self.assertEqual(data[10 + len(b"toc\x00")], 0x03)
        first = parse_frame(data, 4)
        self.assertEqual(first.value, CTOC(element_id="toc", is_ordered=True,
                                           elements=["chp1", "chp2"], tags={}))
        second = data[len(make_frame("CTOC", first.value)):]
        self.assertEqual(second[10 + len(b"sub\x00")], 0x00)
        self.assertEqual(parse_frame(second, 4).value.elements, ["chp3"])

    def testCTOCSingleValue(self):
        data = make_frame("CTOC", {"element_id": "toc", "elements": ["chp1"],
                                   "tags": {"TIT2": "Contents"}})
        self.assertEqual(data[14], 0x02)
        value = parse_frame(data, 4).value
        self.assertFalse(value.is_ordered)
        self.assertEqual(value.tags, {"TIT2": "Contents"})

    def testCTOCTooManyElements(self):
        with self.assertWarns(ValueWarning):
            self.assertIsNone(make_frame("CTOC", {"element_id": "toc",
                                                  "elements": ["c"] * 256}))

    def testDeeplyNestedCHAP(self):
        data = raw_frame("TIT2", b"\x03x")
        for i in range(400):
            data = raw_frame("CHAP", b"c\x00" + b"\x00" * 16 + data)
        with self.assertWarns(ErrorFrameWarning):
            frame = parse_frame(data, 4)
        self.assertIsNotNone(frame)
        depth = 0
        value = frame.value
        while "CHAP" in value.tags:
            value = value.tags["CHAP"][0]
            depth += 1
        self.assertEqual(depth, Frames.max_nesting)
        self.assertEqual(value.tags, {})

    def testCHAPiTunesSizes(self):
        # Plain 32-bit sizes in both the CHAP and the embedded frame header
        sub = b"TIT2" + Int8.encode(200, width=4) + b"\x00\x00" + b"\x03" + b"x" * 199
        body = b"c\x00" + b"\x00" * 16 + sub
        data = b"CHAP" + Int8.encode(len(body), width=4) + b"\x00\x00" + body
        frame = parse_frame(data, 4, itunes_workaround=True)
        self.assertEqual(frame.value.tags, {"TIT2": "x" * 199})

    def testVersion23(self):
        for (frameid, value) in (("COMM", COMM(language="eng", text="x")),
                                 ("APIC", APIC(mime="image/png", image_buffer=PNG_DATA)),
                                 ("CHAP", CHAP(element_id="c", start_time_ms=1,
                                               end_time_ms=2, tags={"TIT2": "t"}))):
            self.assertEqual(self.roundtrip(frameid, value, 3), value)

class FrameValueTestCase(unittest.TestCase):
    def testUnknownField(self):
        self.assertRaises(TypeError, TXXX, descr="x")

    def testValidation(self):
        frame = TXXX(value="x")
        self.assertRaises(TypeError, setattr, frame, "value", 12)
        self.assertRaises(ValueError, COMM, language="en")
        self.assertRaises(ValueError, ETCO, key_events=[(1, None)])

    def testEquality(self):
        self.assertEqual(COMM(text="x"), COMM(text="x"))
        self.assertNotEqual(COMM(text="x"), USLT(text="x"))
        self.assertNotEqual(COMM(text="x"), COMM(text="y"))

    def testAsDict(self):
        self.assertEqual(dict(TXXX(description="d", value="v")._asdict()),
                         {"description": "d", "value": "v"})

    def testRepr(self):
        self.assertEqual(repr(TXXX(description="d", value="v")),
                         "TXXX(description='d', value='v')")
        self.assertIn("4 bytes of binary data", repr(PRIV(owner_identifier="o",
                                                          data=b"\x00\x01\x02\x03")))

suite = unittest.TestSuite()
suite.addTest(unittest.TestLoader().loadTestsFromTestCase(FrameTypeTestCase))
suite.addTest(unittest.TestLoader().loadTestsFromTestCase(FrameValueTestCase))

if __name__ == "__main__":
    unittest.main(defaultTest="suite")
