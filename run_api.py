#!/usr/bin/env python3
"""
Script to run the Bookstore API server.
"""

import uvicorn

from api.config import config
from utilities.config import config as app_config


def main():
    """Run the API server."""
    print("Starting Bookstore API Server")
    print(f"Host: {config.host}")
    print(f"Port: {config.port}")
    print(f"Environment: {app_config.environment}")
    print(f"Data directory: {app_config.get_data_dir_path().resolve()}")
    if config.uses_default_secret():
        print("WARNING: JWT_SECRET is not set, using the insecure built-in default")
    print("=" * 50)

    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=app_config.is_development(),
        log_level=app_config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
