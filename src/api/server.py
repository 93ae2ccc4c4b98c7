# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Run the management API with uvicorn.

Usage:
    iep-api
    python -m src.api.server
"""

import uvicorn

from src.core.config import get_settings


def main() -> None:
    """Serve the API on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.debug,
        # Logging is configured by create_app
        log_config=None,
    )


if __name__ == "__main__":
    main()
