"""Serverless entry point for the OKR API."""

import sys
from pathlib import Path

# The deployment bundle is the repo root; put src/ and the root (for config/) on the path.
_ROOT = Path(__file__).resolve().parent.parent
for _path in (_ROOT / "src", _ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from personal_okrs.action.api import app  # noqa: E402

handler = app
