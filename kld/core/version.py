"""KLD - version constants.

Keep this module tiny and dependency-free. It is imported by many places
(core models, geometry, renderers, UI) and must not have side effects.
"""

APP_NAME = "KeycapLabelDesigner"
APP_SHORT = "KLD"

# App semantic version (must match pyproject).
APP_VERSION = "0.4.2"

# Defaults (in millimeters)
# NOTE: keep these stable; changing impacts new project defaults.
DEFAULT_KEY_SIZE_MM = 13.5
DEFAULT_KEY_GAP_MM = 2.0
DEFAULT_KEY_PADDING_MM = 2.0
DEFAULT_KEY_CORNER_MM = 2.0
DEFAULT_MARGIN_MM = 6.0
DEFAULT_DPI = 300.0

# Real-world width of a 1.5u key; caps the upper notch of big-enter outlines.
BIG_ENTER_TOP_WIDTH_MM = 20.25

# Layout helpers
CUT_SHEET_GAP_MM = 0.3
PLACEMENT_SCAN_MAX_MM = (800.0, 800.0)
HISTORY_DEPTH = 30

# Export
OUTLINE_STROKE_MM = 0.25
REFERENCE_BAR_MM = (50.0, 4.0)
REFERENCE_BAR_LABEL = "50mm test bar"
