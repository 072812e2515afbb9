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

"""Commitment operations

An operation maps a message to a result; a timestamp is a tree of these. Each
operation is a tuple of its arguments, identified on the wire by a one byte
tag.
"""

import binascii
import functools
import hashlib
import operator

from Cryptodome.Hash import RIPEMD160, keccak

import otsproof.core.serialize

RESERVED_TAGS = (b'\x00', b'\xff')
"""Tags that can never be used by an operation

In a serialized timestamp 0x00 introduces an attestation and 0xff introduces
another branch, so a byte that isn't one of those is read as an op tag.
"""

OPS_BY_TAG = {}
"""Every operation class, by tag"""

class MsgValueError(ValueError):
    """An operation can't be applied to this message"""

class MsgLengthError(MsgValueError):
    """The message, or the result of applying the operation, is too long"""

class OpArgValueError(ValueError):
    """Invalid operation argument, such as an empty append suffix"""

def register_op(op_cls):
    """Class decorator adding an operation to OPS_BY_TAG"""
    if op_cls.TAG in RESERVED_TAGS:
        raise ValueError("Op tag 0x%s is reserved" % binascii.hexlify(op_cls.TAG).decode())
    elif op_cls.TAG in OPS_BY_TAG:
        raise ValueError("Op tag 0x%s already taken by %s" % (binascii.hexlify(op_cls.TAG).decode(),
                                                               OPS_BY_TAG[op_cls.TAG].__name__))
    OPS_BY_TAG[op_cls.TAG] = op_cls
    return op_cls

def _compare_by_key(compare):
    """Rich comparison method comparing two ops by _cmp_key()

    Op subclasses tuple, so every comparison has to be overridden; tuple's own
    would ignore the tag.
    """
    def method(self, other):
        if not isinstance(other, Op):
            return NotImplemented
        return compare(self._cmp_key(), other._cmp_key())
    return method

class Op(tuple):
    """Base class of all operations

    Ops are immutable and compare by (tag, arguments), so they can be used as
    dict keys and sorted.
    """
    __slots__ = []

    TAG = None
    TAG_NAME = None

    MAX_MSG_LENGTH = 4096
    """Longest message an op will accept"""

    MAX_RESULT_LENGTH = 4096
    """Longest result an op may produce

    Bounds the memory needed to check any single path through a timestamp;
    4KiB is enough for a whole Bitcoin transaction to be prepended or appended.
    """

    def _cmp_key(self):
        return (self.TAG, tuple(self))

    __eq__ = _compare_by_key(operator.eq)
    __ne__ = _compare_by_key(operator.ne)
    __lt__ = _compare_by_key(operator.lt)
    __le__ = _compare_by_key(operator.le)
    __gt__ = _compare_by_key(operator.gt)
    __ge__ = _compare_by_key(operator.ge)

    def __hash__(self):
        return hash(self._cmp_key())

    def __repr__(self):
        return '%s()' % self.__class__.__name__

    def __str__(self):
        return self.TAG_NAME

    def _apply(self, msg):
        raise NotImplementedError

    def __call__(self, msg):
        """Apply the op to msg, returning the result

        Raises MsgLengthError if msg or the result would be too long, and
        MsgValueError if the op can't otherwise be applied to msg.
        """
        if not isinstance(msg, bytes):
            raise TypeError("msg must be bytes; got %r" % msg.__class__)
        elif len(msg) > self.MAX_MSG_LENGTH:
            raise MsgLengthError("%s: %d byte message exceeds limit of %d" % (self.TAG_NAME, len(msg), self.MAX_MSG_LENGTH))

        result = self._apply(msg)

        # An empty result would let the same message show up twice on a path.
        assert result

        if len(result) > self.MAX_RESULT_LENGTH:
            raise MsgLengthError("%s: %d byte result exceeds limit of %d" % (self.TAG_NAME, len(result), self.MAX_RESULT_LENGTH))
        return result

    def _serialize_args(self, ctx):
        pass

    @classmethod
    def _deserialize_args(cls, ctx):
        return cls()

    def serialize(self, ctx):
        if self.TAG in RESERVED_TAGS:
            raise otsproof.core.serialize.SerializerValueError("Reserved op tag 0x%s can't be written" % binascii.hexlify(self.TAG).decode())
        ctx.write_bytes(self.TAG)
        self._serialize_args(ctx)

    @classmethod
    def deserialize_from_tag(cls, ctx, tag):
        """Read the op whose tag has already been read"""
        try:
            op_cls = OPS_BY_TAG[tag]
        except KeyError:
            raise otsproof.core.serialize.UnknownOperationError(tag)
        return op_cls._deserialize_args(ctx)

    @classmethod
    def deserialize(cls, ctx):
        return cls.deserialize_from_tag(ctx, ctx.read_bytes(1))

class UnaryOp(Op):
    """Op taking no arguments"""
    __slots__ = []

    def __new__(cls):
        return tuple.__new__(cls)

class BinaryOp(Op):
    """Op with a single, non-empty, bytes argument"""
    __slots__ = []

    MAX_ARG_LENGTH = Op.MAX_RESULT_LENGTH

    def __new__(cls, arg):
        if not isinstance(arg, bytes):
            raise TypeError("%s arg must be bytes; got %r" % (cls.__name__, arg.__class__))
        elif not arg:
            raise OpArgValueError("%s arg can't be empty" % cls.__name__)
        elif len(arg) > cls.MAX_ARG_LENGTH:
            raise OpArgValueError("%s arg is %d bytes; limit is %d" % (cls.__name__, len(arg), cls.MAX_ARG_LENGTH))
        return tuple.__new__(cls, (arg,))

    @property
    def arg(self):
        return self[0]

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.arg)

    def __str__(self):
        return '%s %s' % (self.TAG_NAME, binascii.hexlify(self.arg).decode())

    def _serialize_args(self, ctx):
        ctx.write_varbytes(self.arg)

    @classmethod
    def _deserialize_args(cls, ctx):
        return cls(ctx.read_varbytes(cls.MAX_ARG_LENGTH, min_len=1))

@register_op
class OpAppend(BinaryOp):
    """Concatenate the argument after the message"""
    TAG = b'\xf0'
    TAG_NAME = 'append'

    def _apply(self, msg):
        return msg + self.arg

@register_op
class OpPrepend(BinaryOp):
    """Concatenate the argument before the message"""
    TAG = b'\xf1'
    TAG_NAME = 'prepend'

    def _apply(self, msg):
        return self.arg + msg

@register_op
class OpReverse(UnaryOp):
    TAG = b'\xf2'
    TAG_NAME = 'reverse'

    def _apply(self, msg):
        if not msg:
            raise MsgValueError("reverse: message is empty")
        return msg[::-1]

@register_op
class OpHexlify(UnaryOp):
    """Lower-case hex encoding of the message"""
    TAG = b'\xf3'
    TAG_NAME = 'hexlify'

    # The result is twice as long as the message.
    MAX_MSG_LENGTH = Op.MAX_RESULT_LENGTH // 2

    def _apply(self, msg):
        if not msg:
            raise MsgValueError("hexlify: message is empty")
        return binascii.hexlify(msg)


class CryptOp(UnaryOp):
    """Digest of the message

    The result is always DIGEST_LENGTH bytes long, whatever the message length.
    These are also the algorithms a detached timestamp file's digest can be
    made with; see DIGEST_ALGORITHMS.
    """
    __slots__ = []

    DIGEST_LENGTH = None

    HASH_FD_CHUNK_SIZE = 2**20

    @staticmethod
    def _new_hasher():
        raise NotImplementedError

    def _apply(self, msg):
        hasher = self._new_hasher()
        hasher.update(msg)
        return hasher.digest()

    def hash_fd(self, fd):
        """Digest everything that can be read from fd

        Read in chunks, so unlike calling the op there's no length limit.
        """
        hasher = self._new_hasher()
        for chunk in iter(lambda: fd.read(self.HASH_FD_CHUNK_SIZE), b''):
            hasher.update(chunk)
        return hasher.digest()

    @classmethod
    def deserialize_from_tag(cls, ctx, tag):
        return algorithm_by_tag(tag)()

def _crypt_op(name, tag, tag_name, digest_length, new_hasher):
    """Define and register a CryptOp subclass"""
    return register_op(type(name, (CryptOp,), {'__slots__': [],
                                               'TAG': tag,
                                               'TAG_NAME': tag_name,
                                               'DIGEST_LENGTH': digest_length,
                                               '_new_hasher': staticmethod(new_hasher)}))

# Tags follow the OpenPGP (RFC4880) hash algorithm numbers.
OpSHA1 = _crypt_op('OpSHA1', b'\x02', 'sha1', 20, hashlib.sha1)
OpRIPEMD160 = _crypt_op('OpRIPEMD160', b'\x03', 'ripemd160', 20, RIPEMD160.new)
OpSHA256 = _crypt_op('OpSHA256', b'\x08', 'sha256', 32, hashlib.sha256)
OpKECCAK256 = _crypt_op('OpKECCAK256', b'\x67', 'keccak256', 32, functools.partial(keccak.new, digest_bits=256))

DIGEST_ALGORITHMS = {algorithm.TAG: algorithm
                     for algorithm in (OpSHA1, OpRIPEMD160, OpSHA256, OpKECCAK256)}
"""Digest algorithms, by tag"""

def algorithm_by_tag(tag):
    """Look up a digest algorithm by its tag

    Returns the CryptOp subclass; raises UnknownAlgorithmError if the tag isn't
    that of a digest algorithm we know about.
    """
    try:
        return DIGEST_ALGORITHMS[tag]
    except KeyError:
        raise otsproof.core.serialize.UnknownAlgorithmError(tag)
