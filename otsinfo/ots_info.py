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

import otsinfo.args

log_handler = None
"""stderr handler on the root logger, once main() has installed it"""

def configure_logging(verbosity):
    """Log to stderr, showing more or less depending on verbosity

    Only the first call adds a handler; later calls just change its level.
    """
    global log_handler
    if log_handler is None:
        log_handler = logging.StreamHandler(sys.stderr)
        log_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.root.addHandler(log_handler)

    logging.root.setLevel(logging.DEBUG)
    if verbosity > 0:
        log_handler.setLevel(logging.DEBUG)
    elif verbosity == 0:
        log_handler.setLevel(logging.INFO)
    elif verbosity == -1:
        log_handler.setLevel(logging.WARNING)
    else:
        log_handler.setLevel(logging.ERROR)

def main(raw_args=None):
    if raw_args is None:
        raw_args = sys.argv[1:]

    args = otsinfo.args.parse_ots_info_args(raw_args)
    configure_logging(args.verbosity)

    if not hasattr(args, 'cmd_func'):
        args.parser.error('No command specified')

    args.cmd_func(args)

if __name__ == '__main__':
    main()
