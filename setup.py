#!/usr/bin/env python

from setuptools import setup

setup(
    name="id3codec",
    version="0.1.0",
    author="Karoly Lorentey",
    author_email="karoly@lorentey.hu",
    packages=["id3codec"],
    python_requires=">=3.6",
    extras_require={"test": ["pytest"]},
    description="ID3v2 frame encoding and decoding in pure Python 3",
    long_description="""
Decodes and encodes the frames of ID3v2.2, ID3v2.3 and ID3v2.4 tags:
frame headers and flags, compressed and unsynchronised frame bodies,
and the binary layouts of pictures, comments, lyrics, chapters and
the other common frame types.

ID3v2 tags in the wild are full of quirks left behind by other
encoders; frames that can't be decoded are skipped with a warning
instead of failing the whole tag.
""",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "Topic :: Multimedia :: Sound/Audio"
        ],
    )
