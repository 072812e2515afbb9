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

import logging
import sys

from bitcoin.core import b2x, b2lx

from otsproof.core.evaluate import evaluate
from otsproof.core.notary import BlockHeaderAttestation
from otsproof.core.serialize import BadMagicError, DeserializationError, StreamDeserializationContext
from otsproof.core.timestamp import DetachedTimestampFile


def load_detached_timestamp(fd):
    """Deserialize a detached timestamp file, exiting on failure"""
    ctx = StreamDeserializationContext(fd)
    try:
        return DetachedTimestampFile.deserialize(ctx)
    except BadMagicError:
        logging.error("Error! %r is not a timestamp file." % fd.name)
        sys.exit(1)
    except DeserializationError as exp:
        logging.error("Invalid timestamp file %r: %s" % (fd.name, exp))
        sys.exit(1)

def info_command(args):
    detached_timestamp = load_detached_timestamp(args.file)

    print("File %s hash: %s" % (detached_timestamp.file_hash_op.TAG_NAME, b2x(detached_timestamp.file_digest)))

    print("Timestamp:")
    print(detached_timestamp.timestamp.str_tree(verbosity=args.verbosity))

def evaluate_command(args):
    detached_timestamp = load_detached_timestamp(args.file)

    expected_digest = getattr(args, 'expected_digest', None)
    if expected_digest is not None and expected_digest != detached_timestamp.file_digest:
        logging.error("Digest provided does not match digest in timestamp, %s (%s)" %
                      (b2x(detached_timestamp.file_digest), detached_timestamp.file_hash_op.TAG_NAME))
        sys.exit(1)

    logging.debug("Evaluating timestamp for %s digest %s" %
                  (detached_timestamp.file_hash_op.TAG_NAME, b2x(detached_timestamp.file_digest)))

    results = evaluate(detached_timestamp)
    for attestation, digest in results:
        print("%s %s" % (b2x(digest), attestation))

        if isinstance(attestation, BlockHeaderAttestation):
            logging.debug("%s block %d merkle root should be %s" % (attestation.CHAIN.capitalize(), attestation.height, b2lx(digest)))

    logging.info("%d attestation(s) found" % len(results))
