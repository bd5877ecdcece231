# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

"""Field specifications of frame values.

A spec names one field of a frame value, supplies its default, and
validates (and normalizes) anything assigned to it.  None always means
"absent" and is accepted by every spec; required fields are checked
only when the frame is encoded.
"""

import abc
import collections
import collections.abc

from abc import abstractmethod

# The idea for the Spec system comes from Mutagen.

PictureType = collections.namedtuple("PictureType", "id name")
SyncedText = collections.namedtuple("SyncedText", "text timestamp")
KeyEvent = collections.namedtuple("KeyEvent", "type timestamp")
Date = collections.namedtuple("Date", "year month day")
SellerLogo = collections.namedtuple("SellerLogo", "mime_type picture")

class Spec(metaclass=abc.ABCMeta):
    def __init__(self, name, default=None, required=False, optional=False):
        self.name = name
        self.default = default
        self.required = required
        # Optional fields are left out of _asdict() when absent.
        self.optional = optional

    def validate(self, frame, value):
        if value is None:
            return None
        return self._validate(frame, value)

    @abstractmethod
    def _validate(self, frame, value): pass

    def to_str(self, value):
        return "{0}={1}".format(self.name, repr(value))

class IntegerSpec(Spec):
    """An unsigned integer that fits in width bytes (any size if width is None).

    Lenient specs replace unusable values with the default instead of
    rejecting them.
    """
    def __init__(self, name, width=None, lenient=False, **kwargs):
        super().__init__(name, **kwargs)
        self.width = width
        self.lenient = lenient

    def _validate(self, frame, value):
        try:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError("Not an integer: {0}".format(repr(value)))
            value = int(value)
            if value < 0:
                raise ValueError("Value is negative")
            if self.width is not None and value >= 1 << (self.width << 3):
                raise ValueError("Value is too large")
        except (TypeError, ValueError, OverflowError):
            if self.lenient:
                return self.default
            raise
        return value

class ByteSpec(IntegerSpec):
    def __init__(self, name, **kwargs):
        super().__init__(name, 1, **kwargs)

class BooleanSpec(Spec):
    def _validate(self, frame, value):
        return bool(value)

class StringSpec(Spec):
    def _validate(self, frame, value):
        if not isinstance(value, str):
            raise TypeError("Not a string: {0}".format(repr(value)))
        return value

class LanguageSpec(StringSpec):
    "ISO-639-2 language code"
    def _validate(self, frame, value):
        value = super()._validate(frame, value)
        if len(value) != 3:
            raise ValueError("Language code must be 3 characters: {0}".format(repr(value)))
        value.encode("iso-8859-1")
        return value

class BinaryDataSpec(Spec):
    "Raw bytes; strings are stored UTF-8 encoded."
    def _validate(self, frame, value):
        if isinstance(value, str):
            return value.encode("utf-8")
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError("Not a byte sequence")
        return bytes(value)

    def to_str(self, value):
        if value is None:
            return "{0}=None".format(self.name)
        return '{0}={1}{2}'.format(self.name, value[0:16], "..." if len(value) > 16 else "")

class SequenceSpec(Spec):
    """A list of values, all of the same spec."""
    def __init__(self, name, spec, **kwargs):
        super().__init__(name, **kwargs)
        self.spec = spec

    def _validate(self, frame, values):
        if isinstance(values, str):
            values = [values]
        if not isinstance(values, collections.abc.Iterable):
            raise TypeError("{0} requires a sequence".format(self.name))
        return [self.spec._validate(frame, v) for v in values]

class RecordSpec(Spec):
    """A list of fixed-shape records.

    Each record may be given as a sequence or as a mapping with the field
    names of record_type; it is stored as a record_type instance.
    """
    def __init__(self, name, record_type, *specs, **kwargs):
        super().__init__(name, **kwargs)
        self.record_type = record_type
        self.specs = specs
        assert len(specs) == len(record_type._fields)

    def _validate(self, frame, values):
        res = []
        for v in values:
            if isinstance(v, collections.abc.Mapping):
                v = tuple(v.get(field) for field in self.record_type._fields)
            if not isinstance(v, collections.abc.Sequence) or isinstance(v, str):
                raise TypeError("Records must be sequences")
            if len(v) != len(self.specs):
                raise ValueError("Invalid record length")
            fields = []
            for spec, field in zip(self.specs, v):
                if field is None:
                    raise ValueError("Missing {0} in {1}".format(spec.name, self.name))
                fields.append(spec._validate(frame, field))
            res.append(self.record_type(*fields))
        return res

class PriceSpec(Spec):
    "Mapping of 3-letter currency codes to price strings."
    def _validate(self, frame, value):
        if not isinstance(value, collections.abc.Mapping):
            raise TypeError("Prices must be a mapping")
        prices = collections.OrderedDict()
        for currency, amount in value.items():
            if not isinstance(currency, str) or len(currency) < 3:
                raise ValueError("Invalid currency code: {0}".format(repr(currency)))
            prices[currency] = str(amount)
        return prices

class DateSpec(Spec):
    def _validate(self, frame, value):
        if isinstance(value, collections.abc.Mapping):
            value = (value.get("year"), value.get("month"), value.get("day"))
        if not isinstance(value, collections.abc.Sequence) or len(value) != 3:
            raise TypeError("Dates must be (year, month, day) triples")
        return Date(*(int(v) for v in value))

class PictureTypeSpec(Spec):
    "Picture type id, stored together with its name from names."
    def __init__(self, name, names, **kwargs):
        super().__init__(name, **kwargs)
        self.names = names

    def make(self, id):
        return PictureType(id, self.names[id] if id < len(self.names) else None)

    def validate(self, frame, value):
        # A missing picture type means the default, not an absent field
        return self._validate(frame, value)

    def _validate(self, frame, value):
        if isinstance(value, collections.abc.Mapping):
            value = value.get("id")
        elif isinstance(value, PictureType):
            value = value.id
        if value is None:
            value = self.default
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError("Not a picture type: {0}".format(repr(value)))
        if value not in range(256):
            raise ValueError("Invalid picture type {0}".format(value))
        return self.make(value)

class SellerLogoSpec(Spec):
    def _validate(self, frame, value):
        if isinstance(value, collections.abc.Mapping):
            value = (value.get("mime_type"), value.get("picture"))
        if not isinstance(value, collections.abc.Sequence) or len(value) != 2:
            raise TypeError("Seller logos must be (mime_type, picture) pairs")
        mime_type, picture = value
        if mime_type is not None and not isinstance(mime_type, str):
            raise TypeError("Not a MIME type: {0}".format(repr(mime_type)))
        if not isinstance(picture, (bytes, bytearray, memoryview)):
            raise TypeError("Seller logo picture must be bytes")
        return SellerLogo(mime_type, bytes(picture))

class TagsSpec(Spec):
    "Embedded frames, as a mapping of frame ids to values."
    def _validate(self, frame, value):
        if not isinstance(value, collections.abc.Mapping):
            raise TypeError("Embedded tags must be a mapping")
        return dict(value)
