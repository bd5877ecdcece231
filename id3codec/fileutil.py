# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

"""File manipulation utilities."""

import os
import os.path
import shutil
import tempfile

from contextlib import contextmanager

def xread(file, length):
    "Read exactly length bytes from file; raise EOFError if file ends sooner."
    data = file.read(length)
    if len(data) != length:
        raise EOFError
    return data

@contextmanager
def opened(filename, mode):
    "Open filename, or do nothing if filename is already an open file object"
    if isinstance(filename, (str, bytes, os.PathLike)):
        file = open(filename, mode)
        try:
            yield file
        finally:
            if not file.closed:
                file.close()
    else:
        yield filename

def replace_chunk(filename, offset, length, chunk):
    """Replace length bytes of data with chunk, starting at offset.

    Open file objects are rewritten in place.  Named files are written
    to a temporary copy first, which is then renamed over the original,
    so an error cannot leave a half-written file behind.
    """
    with opened(filename, "rb+") as file:
        file.seek(0)
        data = file.read()
        newdata = data[:offset] + bytes(chunk) + data[offset + length:]
        if isinstance(filename, (str, bytes, os.PathLike)):
            file.close()
        else:
            file.seek(0)
            file.write(newdata)
            file.truncate()
            return

    dirname = os.path.dirname(os.path.abspath(filename))
    temp = tempfile.NamedTemporaryFile(dir=dirname,
                                       prefix="id3codec-",
                                       suffix=".tmp",
                                       delete=False)
    try:
        temp.write(newdata)
    finally:
        temp.close()
    try:
        shutil.copymode(filename, temp.name)
        shutil.move(temp.name, filename)
    except OSError:
        os.unlink(temp.name)
        raise
