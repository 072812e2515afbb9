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

"""Attestations whose security is questionable

These are parsed and evaluated like any other, but the ledgers behind them
have weaker or less predictable guarantees than Bitcoin's. Judge proofs that
rely on them case by case.
"""
