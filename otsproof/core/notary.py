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

"""Attestations: the leaves of a timestamp

An attestation is a claim that the message it's attached to was recorded
somewhere, such as in a Bitcoin block, at a time that can be looked up.
"""

import binascii
import re

import otsproof.core.serialize

ATTESTATIONS_BY_TAG = {}
"""Attestation classes we know how to decode, by tag"""

class VerificationError(Exception):
    """A digest doesn't match the ledger data it was checked against"""

def register_attestation(attestation_cls):
    """Class decorator adding an attestation to ATTESTATIONS_BY_TAG"""
    if len(attestation_cls.TAG) != TimeAttestation.TAG_SIZE:
        raise ValueError("%s tag must be %d bytes" % (attestation_cls.__name__, TimeAttestation.TAG_SIZE))
    ATTESTATIONS_BY_TAG[attestation_cls.TAG] = attestation_cls
    return attestation_cls

class TimeAttestation:
    """Base class of all attestations

    On the wire an attestation is an 8 byte tag followed by its payload as
    varbytes, so a parser can skip over payloads it doesn't understand.
    Attestations are values: equal tag and contents means equal attestations.
    """

    TAG = None
    TAG_SIZE = 8

    MAX_PAYLOAD_SIZE = 8192

    def _cmp_key(self):
        raise NotImplementedError

    def __eq__(self, other):
        if not isinstance(other, TimeAttestation):
            return NotImplemented
        return (self.TAG, self._cmp_key()) == (other.TAG, other._cmp_key())

    def __lt__(self, other):
        if not isinstance(other, TimeAttestation):
            return NotImplemented
        return (self.TAG, self._cmp_key()) < (other.TAG, other._cmp_key())

    def __hash__(self):
        return hash((self.TAG, self._cmp_key()))

    def _serialize_payload(self, ctx):
        raise NotImplementedError

    @classmethod
    def _deserialize_payload(cls, ctx):
        raise NotImplementedError

    def serialize(self, ctx):
        payload_ctx = otsproof.core.serialize.BytesSerializationContext()
        self._serialize_payload(payload_ctx)

        ctx.write_bytes(self.TAG)
        ctx.write_varbytes(payload_ctx.getbytes())

    @classmethod
    def deserialize(cls, ctx):
        tag = ctx.read_bytes(cls.TAG_SIZE)
        payload = ctx.read_varbytes(cls.MAX_PAYLOAD_SIZE)

        attestation_cls = ATTESTATIONS_BY_TAG.get(tag)
        if attestation_cls is None:
            return UnknownAttestation(tag, payload)

        payload_ctx = otsproof.core.serialize.BytesDeserializationContext(payload)
        attestation = attestation_cls._deserialize_payload(payload_ctx)

        # Extra payload bytes would be lost on reserialization.
        payload_ctx.assert_eof()
        return attestation

class UnknownAttestation(TimeAttestation):
    """Attestation with a tag we don't recognize

    Tag and payload are kept as-is so the attestation is written back out
    unchanged.
    """

    def __init__(self, tag, payload):
        if not isinstance(tag, bytes):
            raise TypeError("tag must be bytes; got %r" % tag.__class__)
        elif len(tag) != self.TAG_SIZE:
            raise ValueError("tag must be %d bytes; got %d" % (self.TAG_SIZE, len(tag)))
        elif tag in ATTESTATIONS_BY_TAG:
            raise ValueError("tag %s is that of %s" % (binascii.hexlify(tag).decode(),
                                                      ATTESTATIONS_BY_TAG[tag].__name__))

        if not isinstance(payload, bytes):
            raise TypeError("payload must be bytes; got %r" % payload.__class__)
        elif len(payload) > self.MAX_PAYLOAD_SIZE:
            raise ValueError("payload is %d bytes; limit is %d" % (len(payload), self.MAX_PAYLOAD_SIZE))

        self.TAG = tag
        self.payload = payload

    def __repr__(self):
        return 'UnknownAttestation(%r, %r)' % (self.TAG, self.payload)

    def __str__(self):
        return 'unknown attestation %s (payload %s)' % (binascii.hexlify(self.TAG).decode(),
                                                        binascii.hexlify(self.payload).decode())

    def _cmp_key(self):
        return self.payload

    def _serialize_payload(self, ctx):
        # Already framed by serialize(); no second length prefix.
        ctx.write_bytes(self.payload)


@register_attestation
class PendingAttestation(TimeAttestation):
    """Not attested yet; ask the calendar at uri for the rest of the proof"""

    TAG = bytes.fromhex('83dfe30d2ef90c8e')

    MAX_URI_LENGTH = 1000

    # No query strings, fragments, percent-escapes, userinfo or IPv6 literals;
    # a URI from a proof is going to be fetched.
    URI_RE = re.compile(rb'[A-Za-z0-9\-._/:]*')

    @classmethod
    def check_uri(cls, uri):
        """Raise ValueError unless uri (as bytes) is acceptable"""
        if len(uri) > cls.MAX_URI_LENGTH:
            raise ValueError("URI is %d bytes; limit is %d" % (len(uri), cls.MAX_URI_LENGTH))
        elif not cls.URI_RE.fullmatch(uri):
            raise ValueError("URI %r contains characters that aren't allowed" % uri)

    def __init__(self, uri):
        if not isinstance(uri, str):
            raise TypeError("uri must be a str; got %r" % uri.__class__)
        self.check_uri(uri.encode())
        self.uri = uri

    def __repr__(self):
        return 'PendingAttestation(%r)' % self.uri

    __str__ = __repr__

    def _cmp_key(self):
        return self.uri

    def _serialize_payload(self, ctx):
        ctx.write_varbytes(self.uri.encode())

    @classmethod
    def _deserialize_payload(cls, ctx):
        uri = ctx.read_varbytes(cls.MAX_URI_LENGTH)
        try:
            cls.check_uri(uri)
        except ValueError as exp:
            raise otsproof.core.serialize.DeserializationError("Bad pending attestation URI: %s" % exp)
        return cls(uri.decode())

class BlockHeaderAttestation(TimeAttestation):
    """Committed to by the block at a given height of a blockchain

    Which chain is implied by the tag, and is named by CHAIN. The message is
    the merkle root in the block header; only the height is stored, leaving the
    header itself to be looked up.
    """

    CHAIN = None

    def __init__(self, height):
        if not isinstance(height, int):
            raise TypeError("height must be an int; got %r" % height.__class__)
        elif not 0 <= height <= otsproof.core.serialize.MAX_VARUINT:
            raise ValueError("height out of range: %d" % height)
        self.height = height

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.height)

    def __str__(self):
        return '%s block %d' % (self.CHAIN.capitalize(), self.height)

    def _cmp_key(self):
        return self.height

    def _serialize_payload(self, ctx):
        ctx.write_varuint(self.height)

    @classmethod
    def _deserialize_payload(cls, ctx):
        return cls(ctx.read_varuint())

    def verify_against_blockheader(self, digest, block_header):
        """Check digest against the merkle root of block_header

        block_header is a python-bitcoinlib CBlockHeader, or anything else with
        hashMerkleRoot and nTime attributes; fetching it is up to the caller.

        Returns the block time on success; raises VerificationError on failure.
        """
        if len(digest) != 32:
            raise VerificationError("Digest is %d bytes; a merkle root is 32" % len(digest))
        elif digest != block_header.hashMerkleRoot:
            raise VerificationError("Digest isn't the block's merkle root")

        return block_header.nTime

@register_attestation
class BitcoinBlockHeaderAttestation(BlockHeaderAttestation):
    TAG = bytes.fromhex('0588960d73d71901')
    CHAIN = 'bitcoin'

@register_attestation
class LitecoinBlockHeaderAttestation(BlockHeaderAttestation):
    TAG = bytes.fromhex('06869a0d73d71b45')
    CHAIN = 'litecoin'


# Registers the dubious attestation kinds; must come after the definitions
# above as that module subclasses them.
import otsproof.core.dubious.notary
