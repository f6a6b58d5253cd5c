"""
MatrixCut Configuration
"""
from pathlib import Path

# Output canvas (portrait short-video format)
VIDEO_WIDTH = 1080
VIDEO_HEIGHT = 1920

# The editor preview is laid out at roughly 600px height; title sizes and
# offsets are authored in that frame and scaled up on export.
PREVIEW_REFERENCE_HEIGHT = 600
TEXT_SCALE_MULTIPLIER = VIDEO_HEIGHT / PREVIEW_REFERENCE_HEIGHT  # 3.2

# Encoder settings
RENDER_VIDEO_CODEC = "libx264"
RENDER_AUDIO_CODEC = "aac"
RENDER_PRESET = "ultrafast"
RENDER_PIXEL_FORMAT = "yuv420p"
RENDER_OUTPUT_NAME = "output.mp4"

# Engine binaries (resolved from PATH unless overridden in runtime config)
FFMPEG_BINARY = "ffmpeg"
FFPROBE_BINARY = "ffprobe"

# Asset probing
PROBE_MAX_CONCURRENT = 4  # at most 4 clips decoded for thumbnails at once
PROBE_SEEK_SECONDS = 0.5
THUMBNAIL_WIDTH = 320

# Timeline defaults
DEFAULT_SEGMENT_DURATION = 2.5
IMPORTED_SEGMENT_DURATION = 3.0
DEFAULT_BGM_VOLUME = 0.5
DEFAULT_VIDEO_VOLUME = 1.0

# Title defaults
DEFAULT_MAIN_TITLE = "为什么你做不出爆款？"
DEFAULT_SUB_TITLE = "掌握这个黄金三秒法则"
DEFAULT_MAIN_TITLE_POS = (0, -220)
DEFAULT_SUB_TITLE_POS = (0, 220)
DEFAULT_MAIN_TITLE_STYLE = {
    'fontSize': 32,
    'color': '#ffffff',
    'shadowColor': '#000000',
    'shadowOpacity': 0.9,
    'shadowBlur': 15,
    'shadowDistance': 5,
    'shadowAngle': -45,
}
DEFAULT_SUB_TITLE_STYLE = {
    'fontSize': 24,
    'color': '#fb923c',
    'shadowColor': '#000000',
    'shadowOpacity': 0.9,
    'shadowBlur': 10,
    'shadowDistance': 5,
    'shadowAngle': -45,
}

# Accepted import formats
VIDEO_EXTENSIONS = (".mp4", ".mov")
AUDIO_EXTENSIONS = (".mp3", ".m4a", ".aac", ".wav", ".ogg", ".flac")

# Scheme file format
SCHEME_VERSION = 1
SCHEME_FILENAME = "matrix_scheme.json"

# Paths
PROJECT_ROOT = Path(__file__).parent.parent
FONT_PATH = PROJECT_ROOT / "assets" / "fonts" / "NotoSansSC-Black.ttf"
FONT_INPUT_NAME = "notosans.ttf"  # name the font is staged under for drawtext
