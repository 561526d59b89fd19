"""
ViralPost sign-in page, for hosts that start Streamlit from the repository root.

    streamlit run app.py

The OAuth callback API runs as a separate process (``python main.py --api``)
on the same origin, so both share the auth cookies.
"""

import sys
from pathlib import Path

# Project root, so the viralpost namespace package resolves
sys.path.insert(0, str(Path(__file__).resolve().parent))

from viralpost.ui.app import main

if __name__ == "__main__":
    main()
