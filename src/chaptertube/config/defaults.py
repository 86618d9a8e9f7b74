"""
Default configuration values for chaptertube.

Note: every value here can be overridden through config/loader.py, which reads
CHAPTERTUBE_* environment variables, project config, and user config.
"""

# Thumbnail raster size (16:9)
THUMBNAIL_WIDTH = 320
THUMBNAIL_HEIGHT = 180

# JPEG quality for captured thumbnails (Pillow scale, 1-95)
JPEG_QUALITY = 80

# Synthetic chapter defaults
DEFAULT_CHAPTER_COUNT = 5
DEFAULT_CHAPTER_PREFIX = "Chapter"

# Timeouts (seconds)
CAPTURE_TIMEOUT = 10.0
URL_CAPTURE_TIMEOUT = 15.0
READINESS_TIMEOUT = 10.0
METADATA_TIMEOUT = 10.0
NAVIGATION_SEEK_TIMEOUT = 0.5

# Capture timing (seconds)
SEEK_GRACE_PERIOD = 1.0
READINESS_POLL_INTERVAL = 0.05
FRAME_SETTLE_DELAY = 0.05
NOT_READY_RETRY_DELAY = 0.2
METADATA_SETTLE_DELAY = 0.1

# Pacing between consecutive captures (seconds)
CAPTURE_PACING = 0.3
URL_CAPTURE_PACING = 0.2

# Seek clamping: stay this far from the end, and nudge t=0 to this offset
SEEK_END_MARGIN = 0.1
START_OFFSET = 0.1

# Interval between timeupdate events while playing (seconds)
TIME_UPDATE_INTERVAL = 0.25
