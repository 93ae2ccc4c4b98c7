# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin command-line interface.

Usage:
    iep-admin tenant:create --name "Ataturk Ortaokulu" --subdomain ataturk
    iep-admin tenant:list --status active
    iep-admin db:test-connection
"""

from src.cli.main import build_parser, main

__all__ = ["build_parser", "main"]
