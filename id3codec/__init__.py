# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

import id3codec.frames
import id3codec.id3
import id3codec.tags

from id3codec.errors import *
from id3codec.conversion import Encoding, encode_size, decode_size, is_valid_size
from id3codec.header import FrameHeader, header_size
from id3codec.frames import Frame, parse_frame, make_frame, read_frames, encode_frames, is_multiple
from id3codec.tags import read_tag, decode_tag, detect_tag, create_tag, write_tag, update_tag
from id3codec.tags import delete_tag, remove_tag, Tag22, Tag23, Tag24
