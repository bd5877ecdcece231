# Copyright (c) 2009, Karoly Lorentey  <karoly@lorentey.hu>

class Error(Exception): pass

class Warning(Error, UserWarning): pass

class FrameWarning(Warning): pass
class EncryptedFrameWarning(FrameWarning): pass
class CompressedFrameWarning(FrameWarning): pass
class ErrorFrameWarning(FrameWarning): pass
class UnknownFrameWarning(FrameWarning): pass

class ValueWarning(Warning): pass
class TagWarning(Warning): pass

class NoTagError(Error): pass
class TagError(Error, ValueError): pass
