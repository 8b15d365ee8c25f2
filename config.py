# config.py
"""
Configuration settings for the Room 213 renderer.
"""
import os

# ── Basic Scene Settings ───────────────────────────────────────────────────

WIDTH    = 1080          # 9:16 portrait
HEIGHT   = 1920
FPS      = 30
DURATION = 60.0          # seconds of scene time per pass

# Forward tolerance (s) when deciding whether a tick is due; absorbs
# scheduler jitter so frames are not starved by sub-millisecond drift
FRAME_TOLERANCE = 0.001

# ── Scene choreography (seconds of scene time) ─────────────────────────────

DOOR_APPROACH_SEC = 16.0      # door footprint eases far → near, then freezes
INTERIOR_START    = 18.0      # bed + lamp
DISTORTION_START  = 32.0      # creeping silhouette
CREEP_SEC         = 14.0      # silhouette reaches full progress after this
BLACKOUT_START    = 58.0      # sustained full flicker
FADE_IN_SEC       = 0.5       # opacity ramp for phase-gated set pieces

# ── Geometry ───────────────────────────────────────────────────────────────

HORIZON_FRAC   = 0.35
DOOR_FAR_SIZE  = (220, 440)   # width, height at doorProgress = 0
DOOR_NEAR_SIZE = (160, 340)   # width, height at doorProgress = 1
DOOR_SILL      = 40           # px the door sits below the horizon
PLATE_SIZE     = (96, 40)
DOOR_NUMBER    = "213"

# ── Palette ────────────────────────────────────────────────────────────────

BG_TOP       = (0x05, 0x05, 0x08)
BG_BOTTOM    = (0x0B, 0x0B, 0x0E)
FLOOR_COLOR  = (0x12, 0x12, 0x17)
WALL_COLOR   = (0x0F, 0x0F, 0x14)
DOOR_COLOR   = (0x1F, 0x1F, 0x27)
FRAME_COLOR  = (0x2B, 0x2B, 0x36)
PLATE_COLOR  = (0x27, 0x27, 0x33)
PLATE_EDGE   = (0x3A, 0x3A, 0x48)
NUMBER_COLOR = (0xC5, 0xB3, 0x6A)
BED_COLOR    = (0x1A, 0x1A, 0x22)
HEAD_COLOR   = (0x22, 0x22, 0x2B)
LAMP_COLOR   = (0x25, 0x25, 0x2E)
LAMP_LIGHT   = (240, 235, 210)

# ── Effects ────────────────────────────────────────────────────────────────

VIGNETTE_ALPHA = 0.75

SWAY_AMPLITUDE = (6.0, 4.0)   # px, x / y
SWAY_FREQ      = (0.6, 0.7)   # rad/s, x / y

# Flicker wash = sum of three triggers, drawn at FLICKER_ALPHA * total
STROBE_FREQS          = (13.7, 7.9)
STROBE_THRESHOLD      = 0.8
STROBE_LEVEL          = 0.65
FORCED_FLICKER_WINDOW = (48.0, 50.0)
FORCED_FLICKER_LEVEL  = 0.9
BLACKOUT_LEVEL        = 1.0
FLICKER_ALPHA         = 0.08

SHADOW_PERIOD = 9.0
SHADOW_SWING  = 18            # px
SHADOW_ALPHA  = 0.35

LAMP_PULSE_FREQ  = 12.3
LAMP_CONE_RADII  = (10, 420)
SILHOUETTE_ALPHA = 0.7
SILHOUETTE_PATH  = ((0.2, 0.7), (0.8, 0.45))   # frame fractions, start → end

NOISE_STRENGTH = 0.06         # fraction of full scale, peak-to-peak

# ── Captions ───────────────────────────────────────────────────────────────

CAPTION_BAND       = (0.1, 0.82, 0.8, 140)   # x, y as frame fractions; w fraction; h px
CAPTION_BAND_ALPHA = 0.55
CAPTION_FONT_SIZE  = 32
CAPTION_MAX_WIDTH  = 0.75                    # fraction of WIDTH
CAPTION_BASELINE   = 0.93                    # fraction of HEIGHT
CAPTION_LINE_STEP  = 38
CAPTION_COLOR      = (0xE9, 0xE6, 0xDC)
PLATE_FONT_SIZE    = 34

# First hit wins; ROOM213_FONT overrides the whole list
FONT_CANDIDATES = [
    "DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/Library/Fonts/Arial.ttf",
    "arial.ttf",
]
BOLD_FONT_CANDIDATES = [
    "DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
    "arialbd.ttf",
]
if os.getenv("ROOM213_FONT"):
    FONT_CANDIDATES = BOLD_FONT_CANDIDATES = [os.environ["ROOM213_FONT"]]

# ── Capture ────────────────────────────────────────────────────────────────

CAPTURE_GRACE_SEC    = 0.2     # trailing buffer before finalization
FINALIZE_TIMEOUT_SEC = 10.0    # max wait for the encoder to drain
SINK_QUEUE_FRAMES    = 90      # frames buffered between loop and encoder

CONTAINER_FORMAT = "webm"
# (encoder name, codec tag) in order of preference
CODEC_PREFERENCE = [
    ("libvpx-vp9", "vp9"),
    ("libvpx",     "vp8"),
]
VIDEO_BITRATE    = 6_000_000
ENCODER_OPTIONS  = {"deadline": "realtime", "cpu-used": "8"}

OUTPUT_DIR      = os.getenv("ROOM213_OUTPUT_DIR", "renders")
OUTPUT_FILENAME = "room-213.webm"

# ── Narration (espeak) ─────────────────────────────────────────────────────

ESPEAK_BINARY     = "espeak"
PREFERRED_VOICES  = ["en-gb", "en-us", "English_(America)", "en"]
WORDS_PER_SEC     = 3.0        # at rate 1.0
RATE_RANGE        = (0.6, 1.4)
BASE_WPM          = 180        # espeak -s at rate 1.0
NARRATION_PITCH   = 0.9        # relative to espeak's default of 50
NARRATION_VOLUME  = 1.0

# ── Display / remote ───────────────────────────────────────────────────────

FULLSCREEN    = False
WINDOWED_SIZE = (540, 960)
SHOW_PROGRESS = True

WEB_REMOTE            = True
WEB_PORT              = int(os.getenv("ROOM213_WEB_PORT", "8080"))
DIAG_REFRESH_INTERVAL = 1.0
