# Copyright (C) 2016 The OpenTimestamps developers
#
# This file is part of otsproof.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of otsproof including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

"""Byte-level codec for proof files

Everything in a proof is built from three primitives: fixed-length byte
strings, unsigned LEB128 integers (varuints), and varuint length-prefixed byte
strings (varbytes). Serialization contexts implement those on top of a single
write_bytes() primitive; deserialization contexts on top of read_available().
"""

import binascii
import io

MAX_VARUINT = 2**64 - 1
"""Largest value a varuint may decode to

Proofs are exchanged between implementations that store varuints in 64-bit
integers; anything larger is treated as corrupt rather than silently accepted.
"""

class DeserializationError(Exception):
    """A proof, or part of one, could not be parsed"""

class SerializerTypeError(TypeError):
    """Value of the wrong type handed to a serializer"""

class SerializerValueError(ValueError):
    """Value of the right type that can't be serialized"""

class UnexpectedEofError(DeserializationError):
    """Input ended before a fixed-length field was complete"""

class MalformedVarintError(DeserializationError):
    """A varuint was cut short or doesn't fit in 64 bits"""

class BadMagicError(DeserializationError):
    """Input doesn't start with the expected magic bytes

    Usually means the input isn't a proof at all.
    """
    def __init__(self, expected_magic, actual_magic):
        self.expected_magic = expected_magic
        self.actual_magic = actual_magic
        super().__init__('Bad magic: wanted %s, found %s' % (binascii.hexlify(expected_magic).decode(),
                                                            binascii.hexlify(actual_magic).decode()))

class UnsupportedVersionError(DeserializationError):
    """File format major version we don't understand"""

class TruncatedDigestError(UnexpectedEofError):
    """The file digest is shorter than its algorithm's digest length"""

class UnknownAlgorithmError(DeserializationError):
    """Digest algorithm tag not recognized"""
    def __init__(self, tag):
        self.tag = tag
        super().__init__('Unknown digest algorithm tag 0x%s' % binascii.hexlify(tag).decode())

class UnknownOperationError(DeserializationError):
    """Operation tag not recognized

    Unlike attestations there is no way to carry an unknown operation along
    unchanged: without knowing what it does we can't compute its result.
    """
    def __init__(self, tag):
        self.tag = tag
        super().__init__('Unknown operation tag 0x%s' % binascii.hexlify(tag).decode())

class OperandTooLongError(DeserializationError):
    """Length-prefixed data, or an operation result, exceeds its limit"""

class TreeTooDeepError(DeserializationError, SerializerValueError):
    """Timestamp nested deeper than the depth limit

    Raised while parsing, and also when validating an in-memory timestamp that
    would be refused if it were parsed back.
    """

class DanglingBranchError(DeserializationError, SerializerValueError):
    """A timestamp node has neither attestations nor operations

    Such a node can't be represented in the serialization format, so this is
    raised when validating or serializing one.
    """

class TrailingDataError(DeserializationError):
    """Bytes left over after a complete value was parsed"""


class SerializationContext:
    """Destination that serialized values are written to

    Subclasses only need to provide write_bytes().
    """

    def write_bytes(self, value):
        """Write bytes as-is, with no length prefix"""
        raise NotImplementedError

    def write_varuint(self, value):
        """Write an unsigned integer as LEB128"""
        if not isinstance(value, int):
            raise SerializerTypeError('varuint must be an int; got %r' % value.__class__)
        elif value < 0 or value > MAX_VARUINT:
            raise SerializerValueError('varuint out of range: %d' % value)

        encoded = bytearray()
        while value > 0x7f:
            encoded.append(0x80 | (value & 0x7f))
            value >>= 7
        encoded.append(value)

        self.write_bytes(bytes(encoded))

    def write_varbytes(self, value):
        """Write bytes preceded by their length"""
        self.write_varuint(len(value))
        self.write_bytes(value)

class DeserializationContext:
    """Source that serialized values are read from

    Subclasses only need to provide read_available().
    """

    def read_available(self, length):
        """Read up to length bytes; fewer are returned at the end of the input"""
        raise NotImplementedError

    def read_bytes(self, expected_length):
        """Read exactly expected_length bytes

        Raises UnexpectedEofError if the input ends first.
        """
        r = self.read_available(expected_length)
        if len(r) < expected_length:
            raise UnexpectedEofError('Needed %d bytes, only %d left' % (expected_length, len(r)))
        return r

    def read_varuint(self, max_int=MAX_VARUINT):
        """Read a LEB128 unsigned integer no larger than max_int

        Non-minimal encodings are accepted.
        """
        value = 0
        for shift in range(0, 64, 7):
            if shift == 0:
                byte = self.read_bytes(1)[0]
            else:
                chunk = self.read_available(1)
                if not chunk:
                    raise MalformedVarintError('Input ended inside a varuint')
                byte = chunk[0]

            value |= (byte & 0x7f) << shift
            if value > max_int:
                raise MalformedVarintError('varuint larger than %d' % max_int)

            if not byte & 0x80:
                return value

        raise MalformedVarintError('varuint encoding longer than 64 bits')

    def read_varbytes(self, max_len, min_len=0):
        """Read length-prefixed bytes

        The length must be between min_len and max_len inclusive; lengths over
        max_len are refused before anything else is read.
        """
        length = self.read_varuint()
        if length > max_len:
            raise OperandTooLongError('Length %d exceeds limit of %d' % (length, max_len))
        elif length < min_len:
            raise DeserializationError('Length %d below minimum of %d' % (length, min_len))
        return self.read_bytes(length)

    def assert_magic(self, expected_magic):
        """Consume magic bytes, raising BadMagicError unless they match

        Truncated magic counts as bad magic. Not affected by python -O.
        """
        actual_magic = self.read_available(len(expected_magic))
        if actual_magic != expected_magic:
            raise BadMagicError(expected_magic, actual_magic)

    def assert_eof(self):
        """Raise TrailingDataError unless the input is exhausted

        Not affected by python -O.
        """
        if self.read_available(1):
            raise TrailingDataError('Unexpected data after end of value')

class StreamSerializationContext(SerializationContext):
    def __init__(self, fd):
        """Serialize to a writable binary file object"""
        self.fd = fd

    def write_bytes(self, value):
        self.fd.write(value)

class StreamDeserializationContext(DeserializationContext):
    def __init__(self, fd):
        """Deserialize from a readable binary file object"""
        self.fd = fd

    def read_available(self, length):
        return self.fd.read(length)

class BytesSerializationContext(StreamSerializationContext):
    def __init__(self):
        """Serialize to an in-memory buffer"""
        super().__init__(io.BytesIO())

    def getbytes(self):
        """Everything written so far"""
        return self.fd.getvalue()

class BytesDeserializationContext(StreamDeserializationContext):
    def __init__(self, buf):
        """Deserialize from a bytes object"""
        super().__init__(io.BytesIO(buf))
