# Copyright (C) 2017 The OpenTimestamps developers
#
# This file is part of otsproof.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of otsproof including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

from otsproof.core.notary import BlockHeaderAttestation, VerificationError, register_attestation


@register_attestation
class EthereumBlockHeaderAttestation(BlockHeaderAttestation):
    """Committed to by an Ethereum block's transactions root

    Ethereum has forked over consensus failures several times and moved to
    proof-of-stake, so what a given height refers to is less settled than
    for Bitcoin.
    """

    TAG = bytes.fromhex('30fe8087b5c7ead7')
    CHAIN = 'ethereum'

    def verify_against_blockheader(self, digest, block):
        """Check digest against the transactions root of block

        block is the dict an Ethereum node returns from eth_getBlockByNumber.

        Returns the block time on success; raises VerificationError on failure.
        """
        transactions_root = bytes.fromhex(block['transactionsRoot'][2:])
        if len(digest) != 32:
            raise VerificationError("Digest is %d bytes; a transactions root is 32" % len(digest))
        elif digest != transactions_root:
            raise VerificationError("Digest isn't the block's transactions root")

        # JSON-RPC returns quantities hex-encoded
        timestamp = block['timestamp']
        if isinstance(timestamp, str):
            timestamp = int(timestamp, 16)
        return timestamp
