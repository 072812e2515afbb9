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

import unittest

from otsproof.core.op import OpAppend, OpSHA256, OpKECCAK256
from otsproof.core.timestamp import Timestamp
from otsproof.timestamp import nonce_timestamp

class Test_nonce_timestamp(unittest.TestCase):
    def test(self):
        stamp = Timestamp(b'foo')
        nonced = nonce_timestamp(stamp)

        (append_op, append_stamp), = stamp.ops.items()
        self.assertIsInstance(append_op, OpAppend)
        self.assertEqual(len(append_op[0]), 16)

        self.assertIs(append_stamp.ops[OpSHA256()], nonced)
        self.assertEqual(nonced.msg, OpSHA256()(b'foo' + append_op[0]))

    def test_params(self):
        stamp = Timestamp(b'foo')
        nonced = nonce_timestamp(stamp, crypt_op=OpKECCAK256(), length=32)

        (append_op, append_stamp), = stamp.ops.items()
        self.assertEqual(len(append_op[0]), 32)
        self.assertIs(append_stamp.ops[OpKECCAK256()], nonced)

    def test_nonces_differ(self):
        self.assertNotEqual(nonce_timestamp(Timestamp(b'foo')).msg,
                            nonce_timestamp(Timestamp(b'foo')).msg)
