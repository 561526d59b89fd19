#!/usr/bin/env python3
"""
ViralPost Auth - Main Entry Point

Usage:
    python main.py          # Run Streamlit sign-in UI (default)
    python main.py --api    # Run the OAuth callback API
"""

import subprocess
import sys
from pathlib import Path

# Ensure project root is in path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from viralpost.config.logging_config import logger
from viralpost.config.settings import validate_env_for_app


def run_streamlit():
    """Launch the Streamlit web interface"""
    app_path = PROJECT_ROOT / "viralpost" / "ui" / "app.py"
    subprocess.run(["streamlit", "run", str(app_path)], check=True)


def run_api(host: str = "0.0.0.0", port: int = 8000):
    """Serve /auth/callback and /auth/error"""
    import uvicorn

    logger.info("Starting auth callback API on %s:%s", host, port)
    uvicorn.run("viralpost.api.callback:app", host=host, port=port)


def main():
    """Main entry point"""
    validate_env_for_app()
    if len(sys.argv) > 1 and sys.argv[1] == "--api":
        run_api()
    else:
        run_streamlit()


if __name__ == "__main__":
    main()
