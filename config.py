"""Central configuration for ink digitization.

All tunable parameters are defined here with descriptive names.
Defaults match the values a fresh settings file starts from; the ranges
bound what the settings editor accepts.
"""

# =============================================================================
# ALPHA CLASSIFICATION
# =============================================================================

# Brightness (0-255) separating ink from paper when feathering is off.
# Paper photographed under room light rarely reads above ~200, so 180 keeps
# pencil strokes while dropping most of the page texture.
ALPHA_THRESHOLD = 180
ALPHA_THRESHOLD_RANGE = (0, 255)

# Half-width of the brightness band over which alpha ramps linearly.
# 0 gives a hard binary cutoff.
FEATHERING_RANGE = 0
FEATHERING_RANGE_LIMITS = (0, 50)

# Use perceptual (BT.601) weights instead of the plain RGB mean
USE_LUMINOSITY_FOR_ALPHA = True

# Light ink on dark paper (chalkboard, blueprint) instead of dark on light
INVERT_PROCESSING = False

# BT.601 luma weights
LUMINOSITY_WEIGHTS = (0.299, 0.587, 0.114)

# =============================================================================
# CONTRAST
# =============================================================================

# Contrast stretch applied before brightness estimation (0 = off)
CONTRAST_ADJUSTMENT = 0
CONTRAST_ADJUSTMENT_RANGE = (-100, 100)

# =============================================================================
# INK COLOR
# =============================================================================

# Keep the original ink color. Forces CONVERT_TO_GRAYSCALE off.
PRESERVE_INK_COLOR = False

# Reduce ink to a uniform gray derived from brightness
CONVERT_TO_GRAYSCALE = False

# RGB written under fully transparent pixels. White avoids dark halos when
# viewers blend un-premultiplied edges.
BACKGROUND_RGB = (255, 255, 255)

# =============================================================================
# RESIZING
# =============================================================================

# Maximum output dimensions in pixels (0 = unbounded)
MAX_WIDTH = 0
MAX_HEIGHT = 0

# =============================================================================
# OUTPUT
# =============================================================================

# Folder (relative to the notes root) receiving processed images
OUTPUT_DIRECTORY = "FieldNotes"

# File name pattern. Placeholders: {timestamp}, {date}, {shortId}, {uuid}
FILE_NAME_TEMPLATE = "ink-{date}-{shortId}"

# zlib level for PNG output (0-9)
PNG_COMPRESS_LEVEL = 6

# Settings file used by the command-line host
SETTINGS_FILE_NAME = "inkporter_settings.json"

# =============================================================================
# PARALLELISM
# =============================================================================

# Row-band workers for pixel processing (1 = sequential scan)
PIXEL_WORKERS = 1

# Minimum rows per band; smaller images are processed in one piece
MIN_ROWS_PER_BAND = 64
