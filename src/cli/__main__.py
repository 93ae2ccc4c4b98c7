# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Entry point for ``python -m src.cli``."""

import sys

from src.cli.main import main

sys.exit(main())
