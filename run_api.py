#!/usr/bin/env python3
"""
Script to run the Book Tracker API server.
"""

import sys
from pathlib import Path

import uvicorn

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from utilities.config import load_config
from utilities.logger import get_logger


def main():
    """Run the API server."""
    config = load_config()

    logger = get_logger(__name__)
    logger.info(
        "Starting Book Tracker API server",
        host=config.host,
        port=config.port,
        debug=config.debug,
        database=config.mongodb_database,
        auth_strategy=config.auth_strategy
    )

    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
