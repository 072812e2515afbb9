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

"""Helpers for building timestamps that aren't part of the proof format"""

import os

from otsproof.core.op import OpAppend, OpSHA256

def nonce_timestamp(private_timestamp, crypt_op=OpSHA256(), length=16):
    """Hide a message behind a random nonce

    Appends length random bytes to the message of private_timestamp and
    digests the result with crypt_op. The returned timestamp, for that
    digest, can be shown to a calendar without revealing anything about the
    original message.
    """
    nonce = os.urandom(length)
    return private_timestamp.ops.add(OpAppend(nonce)).ops.add(crypt_op)
