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

"""Play a timestamp forward to the digests its attestations commit to

Nothing here trusts the messages stored in the tree: every result is
recomputed from the starting message, so what's returned is exactly what a
verifier has to look up in the ledger.
"""

def play_forward(timestamp, msg=None):
    """Iterate over all attestations, along with the digest each commits to

    msg defaults to the message of timestamp itself. Every operation on the
    path from the root to an attestation is applied to it in turn.

    Yields (attestation, digest) in the order the timestamp serializes: the
    attestations of a node, followed by the contents of each of its branches.
    """
    if msg is None:
        msg = timestamp.msg

    # Walked with an explicit stack rather than recursion; pushed in reverse
    # so the first branch is the first popped.
    stack = [(timestamp, msg)]
    while stack:
        stamp, msg = stack.pop()

        for attestation in stamp.attestations:
            yield (attestation, msg)

        for op, op_stamp in reversed(tuple(stamp.ops.items())):
            stack.append((op_stamp, op(msg)))

def evaluate(detached_timestamp):
    """Evaluate a detached timestamp file

    Returns a list of (attestation, digest) pairs, one for every attestation
    reachable from the file digest. The same attestation can appear more than
    once if it's found on more than one path.
    """
    return list(play_forward(detached_timestamp.timestamp, detached_timestamp.file_digest))
