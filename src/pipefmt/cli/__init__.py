"""CLI package.

The ``cli`` sub-package contains the Click application.  It drives the
``Formatter`` and renders notices; all formatting logic lives in the
parent package.
"""
from __future__ import annotations
