#!/usr/bin/env python3
"""
Development server runner with automatic reload.
"""

import os
import sys
import subprocess
from pathlib import Path


def check_env_file():
    """Warn when no .env file overrides the default analysis settings."""
    if not Path(".env").exists():
        print("No .env file found, using default analysis settings.")


def main():
    """Run the development server."""
    check_env_file()

    os.environ.setdefault("ENVIRONMENT", "development")

    try:
        subprocess.run([
            sys.executable, "-m", "uvicorn",
            "swingsense.main:app",
            "--host", "0.0.0.0",
            "--port", "8000",
            "--reload"
        ])
    except KeyboardInterrupt:
        print("\nShutting down development server...")


if __name__ == "__main__":
    main()
