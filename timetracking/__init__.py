# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Time tracking, ArbZG compliance and billing report engine."""

__version__ = "0.1.0"
