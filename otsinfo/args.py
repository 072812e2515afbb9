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

import argparse
import binascii

import otsinfo
import otsinfo.cmds


def make_common_options_arg_parser():
    parser = argparse.ArgumentParser(description="Inspect OpenTimestamps proof files.")
    parser.add_argument('--version', action='version', version='v%s' % otsinfo.__version__)

    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Show more log messages; may be repeated.")
    parser.add_argument("-q", "--quiet", action="count", default=0,
                        help="Show fewer log messages; may be repeated, and cancels out -v.")

    return parser

def handle_common_options(args, parser):
    args.parser = parser
    args.verbosity = args.verbose - args.quiet

    hex_digest = getattr(args, 'hex_digest', None)
    if hex_digest is not None:
        try:
            args.expected_digest = binascii.unhexlify(hex_digest)
        except (binascii.Error, ValueError):
            parser.error('-d expects a hex digest; %r is not one' % hex_digest)

    return args

def parse_ots_info_args(raw_args):
    parser = make_common_options_arg_parser()

    subparsers = parser.add_subparsers(title='Commands',
                                       description='What to do with the proof file:')

    # ----- info -----
    parser_info = subparsers.add_parser('info', aliases=['i'],
                                        help='Print the file digest and the tree of operations')
    parser_info.set_defaults(cmd_func=otsinfo.cmds.info_command)

    # ----- evaluate -----
    parser_evaluate = subparsers.add_parser('evaluate', aliases=['e'],
                                            help='Print every attestation with the digest it commits to')
    parser_evaluate.add_argument('-d', metavar='DIGEST', dest='hex_digest', default=None,
                                 help='Exit with an error unless the proof is for this hex digest')
    parser_evaluate.set_defaults(cmd_func=otsinfo.cmds.evaluate_command)

    for subparser in (parser_info, parser_evaluate):
        subparser.add_argument('file', metavar='FILE', type=argparse.FileType('rb'),
                               help='.ots proof file')

    args = parser.parse_args(raw_args)
    return handle_common_options(args, parser)
