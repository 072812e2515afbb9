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

"""Timestamp trees and detached timestamp files

A timestamp is a tree: each node is a message, each edge an operation taking
the parent's message to the child's, and attestations hang off any node. On
the wire a node is one or more items, every item but the last preceded by
FORK_MARKER:

    node := (FORK_MARKER item)* item
    item := ATTESTATION_MARKER attestation | op node

The messages themselves are never written; they're recomputed from the root.
"""

import collections.abc

from bitcoin.core import b2lx, b2x

from otsproof.core.op import Op, CryptOp, OpSHA256, OpAppend, OpPrepend, MsgValueError, MsgLengthError
from otsproof.core.notary import TimeAttestation, BlockHeaderAttestation

import otsproof.core.serialize

ATTESTATION_MARKER = b'\x00'
FORK_MARKER = b'\xff'

MAX_DEPTH = 256
"""Maximum number of nodes on any path from the root of a timestamp"""

class OpSet(dict):
    """The operations applied to a message, and the timestamps of their results

    Kept in the order operations were added.
    """
    __slots__ = ['msg']

    def __init__(self, msg):
        super().__init__()
        self.msg = msg

    def add(self, op):
        """Return the timestamp for op, creating an empty one if needed"""
        stamp = self.get(op)
        if stamp is None:
            stamp = Timestamp(op(self.msg))
            dict.__setitem__(self, op, stamp)
        return stamp

    def __setitem__(self, op, stamp):
        if stamp.msg != op(self.msg):
            raise ValueError("%s of %s isn't %s" % (op, b2x(self.msg), b2x(stamp.msg)))
        dict.__setitem__(self, op, stamp)

class AttestationSet(collections.abc.MutableSet):
    """Set of attestations

    Iterates in the order attestations were first added, which is also the
    order they're serialized in.
    """
    __slots__ = ['__attestations']

    def __init__(self, attestations=()):
        self.__attestations = {}
        self.update(attestations)

    def __contains__(self, attestation):
        return attestation in self.__attestations

    def __iter__(self):
        return iter(self.__attestations)

    def __len__(self):
        return len(self.__attestations)

    def __repr__(self):
        return 'AttestationSet(%r)' % list(self.__attestations)

    def add(self, attestation):
        if not isinstance(attestation, TimeAttestation):
            raise TypeError("Expected TimeAttestation; got %r" % attestation.__class__)
        self.__attestations.setdefault(attestation, None)

    def discard(self, attestation):
        self.__attestations.pop(attestation, None)

    def update(self, attestations):
        for attestation in attestations:
            self.add(attestation)

class Timestamp:
    """A node of a timestamp tree

    msg is the message at this node, attestations those made directly on msg,
    and ops maps each operation applied to msg to the timestamp of its result.
    """
    __slots__ = ['__msg', 'attestations', 'ops']

    @property
    def msg(self):
        return self.__msg

    def __init__(self, msg):
        if not isinstance(msg, bytes):
            raise TypeError("msg must be bytes; got %r" % msg.__class__)
        elif len(msg) > Op.MAX_MSG_LENGTH:
            raise ValueError("msg is %d bytes; limit is %d" % (len(msg), Op.MAX_MSG_LENGTH))

        self.__msg = msg
        self.attestations = AttestationSet()
        self.ops = OpSet(msg)

    def __eq__(self, other):
        if not isinstance(other, Timestamp):
            return False
        return (self.msg, self.attestations, self.ops) == (other.msg, other.attestations, other.ops)

    def __repr__(self):
        return 'Timestamp(<%s>)' % b2x(self.msg)

    def merge(self, other):
        """Add the attestations and operations of other to this timestamp

        other must be for the same message; ValueError otherwise.
        """
        if not isinstance(other, Timestamp):
            raise TypeError("Can only merge a Timestamp; got %r" % other.__class__)
        elif other.msg != self.msg:
            raise ValueError("Can't merge timestamps of different messages")

        pending = [(self, other)]
        while pending:
            ours, theirs = pending.pop()
            ours.attestations.update(theirs.attestations)
            for op, their_stamp in theirs.ops.items():
                pending.append((ours.ops.add(op), their_stamp))

    def validate(self):
        """Check the timestamp could be serialized and parsed back

        Raises DanglingBranchError if any node has neither attestations nor
        operations, and TreeTooDeepError if any path is over MAX_DEPTH nodes.
        """
        pending = [(self, 1)]
        while pending:
            stamp, depth = pending.pop()
            if depth > MAX_DEPTH:
                raise otsproof.core.serialize.TreeTooDeepError("Path through timestamp longer than %d nodes" % MAX_DEPTH)
            elif not stamp.attestations and not stamp.ops:
                raise otsproof.core.serialize.DanglingBranchError("Nothing attests to %s" % b2x(stamp.msg))

            pending.extend((op_stamp, depth + 1) for op_stamp in stamp.ops.values())

    def _serialize_node(self, ctx):
        items = [(ATTESTATION_MARKER, attestation) for attestation in self.attestations]
        items.extend(self.ops.items())

        for i, (head, tail) in enumerate(items):
            if i < len(items) - 1:
                ctx.write_bytes(FORK_MARKER)

            if head == ATTESTATION_MARKER:
                ctx.write_bytes(ATTESTATION_MARKER)
                tail.serialize(ctx)
            else:
                head.serialize(ctx)
                tail._serialize_node(ctx)

    def serialize(self, ctx):
        """Serialize, attestations first, in the order they were added"""
        self.validate()
        self._serialize_node(ctx)

    def _deserialize_item(self, ctx, tag, recursion_limit):
        if tag == ATTESTATION_MARKER:
            self.attestations.add(TimeAttestation.deserialize(ctx))
            return

        op = Op.deserialize_from_tag(ctx, tag)
        try:
            result = op(self.msg)
        except MsgLengthError as exp:
            raise otsproof.core.serialize.OperandTooLongError("Can't apply %s: %s" % (op, exp))
        except MsgValueError as exp:
            raise otsproof.core.serialize.DeserializationError("Can't apply %s: %s" % (op, exp))

        child = Timestamp.deserialize(ctx, result, _recursion_limit=recursion_limit - 1)

        # The same op twice on one node is merged into a single branch
        existing = self.ops.get(op)
        if existing is None:
            self.ops[op] = child
        else:
            existing.merge(child)

    @classmethod
    def deserialize(cls, ctx, initial_msg, _recursion_limit=MAX_DEPTH):
        """Parse a timestamp of initial_msg

        The message isn't part of the serialized form, so it has to be
        supplied; the messages of every other node are calculated from it as
        the tree is read.
        """
        if _recursion_limit <= 0:
            raise otsproof.core.serialize.TreeTooDeepError("Timestamp nested more than %d nodes deep" % MAX_DEPTH)

        stamp = cls(initial_msg)

        more_items = True
        while more_items:
            tag = ctx.read_bytes(1)
            more_items = tag == FORK_MARKER
            if more_items:
                tag = ctx.read_bytes(1)
            stamp._deserialize_item(ctx, tag, _recursion_limit)

        return stamp

    def str_tree(self, indent=0, verbosity=0):
        """Human readable rendering of the tree

        With verbosity > 0 the result of every operation is shown too.
        """
        prefix = ' ' * indent
        lines = []
        for attestation in self.attestations:
            lines.append(prefix + 'verify %s' % attestation)
            if isinstance(attestation, BlockHeaderAttestation):
                lines.append(prefix + '# %s block merkle root %s' % (attestation.CHAIN.capitalize(), b2lx(self.msg)))

        forked = len(self.ops) > 1
        for op, op_stamp in self.ops.items():
            line = prefix + (' -> %s' if forked else '%s') % op
            if verbosity > 0:
                line += ' == ' + b2x(op_stamp.msg)
            lines.append(line)
            lines.append(op_stamp.str_tree(indent + 4 if forked else indent, verbosity).rstrip('\n'))

        return ''.join(line + '\n' for line in lines if line)


HEADER_MAGIC = b'\x00OpenTimestamps\x00\x00Proof\x00\xbf\x89\xe2\xe8\x84\xe8\x92\x94'
"""Start of every detached timestamp file

Readable in a hexdump, while still being reported as 'data' by file(1).
"""

class DetachedTimestampFile:
    """Timestamp of a file, stored separately from the file itself

    Serialized as HEADER_MAGIC, the major version, the digest algorithm and
    the file's digest, then the timestamp of that digest.
    """

    HEADER_MAGIC = HEADER_MAGIC

    # No minor version: a file's contents change as its timestamp is upgraded,
    # and a minor version would have to be kept correct through every change.
    MAJOR_VERSION = 1

    def __init__(self, file_hash_op, timestamp):
        if not isinstance(file_hash_op, CryptOp):
            raise TypeError("file_hash_op must be a CryptOp; got %r" % file_hash_op.__class__)
        elif len(timestamp.msg) != file_hash_op.DIGEST_LENGTH:
            raise ValueError("%d byte message can't be a %s digest" % (len(timestamp.msg), file_hash_op))

        self.file_hash_op = file_hash_op
        self.timestamp = timestamp

    @property
    def file_digest(self):
        """Digest of the timestamped file"""
        return self.timestamp.msg

    def __repr__(self):
        return 'DetachedTimestampFile(<%s:%s>)' % (self.file_hash_op, b2x(self.file_digest))

    def __eq__(self, other):
        if not isinstance(other, DetachedTimestampFile):
            return False
        return (self.file_hash_op, self.timestamp) == (other.file_hash_op, other.timestamp)

    @classmethod
    def from_fd(cls, file_hash_op, fd):
        """Start a timestamp for the contents of fd"""
        return cls(file_hash_op, Timestamp(file_hash_op.hash_fd(fd)))

    def serialize(self, ctx):
        ctx.write_bytes(self.HEADER_MAGIC)
        ctx.write_varuint(self.MAJOR_VERSION)
        self.file_hash_op.serialize(ctx)
        ctx.write_bytes(self.file_digest)
        self.timestamp.serialize(ctx)

    @classmethod
    def deserialize(cls, ctx):
        ctx.assert_magic(cls.HEADER_MAGIC)

        version = ctx.read_varuint()
        if version != cls.MAJOR_VERSION:
            raise otsproof.core.serialize.UnsupportedVersionError("Detached timestamp file version %d; only %d is supported" %
                                                                  (version, cls.MAJOR_VERSION))

        file_hash_op = CryptOp.deserialize(ctx)
        try:
            file_digest = ctx.read_bytes(file_hash_op.DIGEST_LENGTH)
        except otsproof.core.serialize.UnexpectedEofError as exp:
            raise otsproof.core.serialize.TruncatedDigestError("Incomplete %s file digest: %s" % (file_hash_op, exp))

        timestamp = Timestamp.deserialize(ctx, file_digest)
        ctx.assert_eof()

        return cls(file_hash_op, timestamp)


def cat_then_crypt(crypt_op, left, right):
    """Timestamp of crypt_op(left + right)

    left and right may be timestamps or messages. Both end up committing to
    the result: left through an append of right, right through a prepend of
    left, with the two branches sharing a single timestamp.
    """
    if not isinstance(left, Timestamp):
        left = Timestamp(left)
    if not isinstance(right, Timestamp):
        right = Timestamp(right)

    joined = left.ops.add(OpAppend(right.msg))

    prepend = OpPrepend(left.msg)
    if prepend in right.ops and right.ops[prepend] is not joined:
        joined.merge(right.ops[prepend])
    right.ops[prepend] = joined

    return joined.ops.add(crypt_op)

def cat_sha256(left, right):
    return cat_then_crypt(OpSHA256(), left, right)

def cat_sha256d(left, right):
    return cat_sha256(left, right).ops.add(OpSHA256())

def make_merkle_tree(timestamps, binop=cat_sha256):
    """Join timestamps into a merkle tree, returning the tip

    Each level pairs up neighbours with binop; an odd one out is carried up to
    the next level unchanged, as in a merkle mountain range. Every timestamp
    passed in gains a path to the tip. This is consensus-critical: changing it
    would change the tips calculated by existing users.
    """
    level = list(timestamps)
    if not level:
        raise ValueError("Need at least one timestamp")

    while len(level) > 1:
        next_level = [binop(level[i], level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            next_level.append(level[-1])
        level = next_level

    return level[0]
