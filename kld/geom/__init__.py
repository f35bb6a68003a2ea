"""Geometry core.

Pure functions in millimeters (y-down, key-local or page-local frames).
No Qt, no reportlab: every renderer consumes the same primitives so the
three targets stay congruent.
"""

from __future__ import annotations
