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

import contextlib
import io
import logging
import os
import tempfile
import unittest

import otsproof.tests
import otsinfo.ots_info
from otsinfo.args import parse_ots_info_args

DATA_DIR = os.path.join(os.path.dirname(otsproof.tests.__file__), 'data')
SMALL_OTS = os.path.join(DATA_DIR, 'small.ots')
LARGE_OTS = os.path.join(DATA_DIR, 'large.ots')


class TestCmds(unittest.TestCase):

    def run_cmd(self, raw_args):
        args = parse_ots_info_args(raw_args)
        stdout = io.StringIO()
        try:
            with contextlib.redirect_stdout(stdout):
                args.cmd_func(args)
        finally:
            args.file.close()
        return stdout.getvalue()

    def test_args(self):
        """Parsing command-line arguments"""
        args = parse_ots_info_args(['-vv', '-q', 'e', '-d', 'abcd', SMALL_OTS])
        args.file.close()
        self.assertEqual(args.verbosity, 1)
        self.assertEqual(args.expected_digest, b'\xab\xcd')

        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                parse_ots_info_args(['evaluate', '-d', 'not hex', SMALL_OTS])

    def test_info(self):
        """Showing a timestamp"""
        out = self.run_cmd(['info', SMALL_OTS])
        self.assertTrue(out.startswith('File sha256 hash: a70dfe69c5a0d62816781abb6e1777854718624a0d194231adb14c32ee5438a4\n'))
        self.assertIn("verify PendingAttestation('https://alice.btc.calendar.opentimestamps.org')", out)

    def test_evaluate(self):
        """Listing the digests attested to"""
        with self.assertLogs(level='DEBUG') as cm:
            out = self.run_cmd(['-v', 'evaluate', LARGE_OTS])

        lines = out.splitlines()
        self.assertEqual(len(lines), 4)
        self.assertTrue(lines[1].endswith(' Bitcoin block 449399'))
        self.assertTrue(lines[3].endswith(' Bitcoin block 449397'))
        self.assertIn('INFO:root:4 attestation(s) found', cm.output)

    def test_evaluate_expected_digest(self):
        """The digest given must match the timestamp"""
        out = self.run_cmd(['evaluate', '-d', 'a70dfe69c5a0d62816781abb6e1777854718624a0d194231adb14c32ee5438a4', SMALL_OTS])
        self.assertEqual(len(out.splitlines()), 2)

        with self.assertLogs(level='ERROR'):
            with self.assertRaises(SystemExit) as cm:
                self.run_cmd(['evaluate', '-d', '00'*32, SMALL_OTS])
        self.assertEqual(cm.exception.code, 1)

    def test_not_a_timestamp(self):
        """Files that aren't timestamps are rejected"""
        with tempfile.NamedTemporaryFile(suffix='.ots', delete=False) as fd:
            fd.write(b'not a timestamp')
        try:
            with self.assertLogs(level='ERROR') as cm:
                with self.assertRaises(SystemExit) as exit_cm:
                    self.run_cmd(['info', fd.name])
            self.assertEqual(exit_cm.exception.code, 1)
            self.assertIn('is not a timestamp file', cm.output[0])
        finally:
            os.unlink(fd.name)

    def test_corrupt_timestamp(self):
        """Truncated timestamps are reported as invalid"""
        with open(SMALL_OTS, 'rb') as fd:
            serialized = fd.read()

        with tempfile.NamedTemporaryFile(suffix='.ots', delete=False) as fd:
            fd.write(serialized[:-1])
        try:
            with self.assertLogs(level='ERROR') as cm:
                with self.assertRaises(SystemExit):
                    self.run_cmd(['evaluate', fd.name])
            self.assertIn('Invalid timestamp file', cm.output[0])
        finally:
            os.unlink(fd.name)

    def test_main_installs_one_handler(self):
        """Running main() more than once doesn't repeat log output"""
        root_level = logging.root.level
        try:
            for raw_args in (['-q', 'info', SMALL_OTS], ['-vv', 'info', SMALL_OTS]):
                with contextlib.redirect_stdout(io.StringIO()):
                    otsinfo.ots_info.main(raw_args)

            handler = otsinfo.ots_info.log_handler
            self.assertEqual(logging.root.handlers.count(handler), 1)
            self.assertEqual(handler.level, logging.DEBUG)
        finally:
            logging.root.removeHandler(otsinfo.ots_info.log_handler)
            otsinfo.ots_info.log_handler = None
            logging.root.setLevel(root_level)
