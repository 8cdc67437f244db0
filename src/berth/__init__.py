# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""berth - create containers on a Docker-compatible engine."""

__version__ = "0.1.0"
