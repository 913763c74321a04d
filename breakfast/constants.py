"""Timing and namespace constants.

The grid uses **256 ticks per line**: a position is ``(line, delay)`` with
``line >= 1`` and ``delay`` in ``0..255``, and its absolute tick is
``(line - 1) * 256 + delay``.

Note and instrument values follow the tracker conventions the source
material comes from:
- `NOTE_OFF = 120`, `EMPTY_NOTE = 121`
- `EMPTY_INSTRUMENT = 255` (instrument values ``0..254`` are real)
"""

# Tick grid

TICKS_PER_LINE = 256
MAX_DELAY = 255

# Note columns

NOTE_OFF = 120
EMPTY_NOTE = 121
MAX_NOTE = 121
EMPTY_INSTRUMENT = 255
MAX_INSTRUMENT = 254

# Sliced-sample conventions. Recovery maps note 37 (C#3) to slice 0; placement
# writes slice n on note 36 + n.

SLICE_NOTE_OFFSET = 37
MAX_SLICE_INDEX = 127
SLICE_BASE_NOTE = 36
DEFAULT_NOTE = 48						# C-4

# Break sets and symbols

MAX_BOUNDARIES = 5
BREAK_SET_SYMBOLS = "ABCDEF"
COMPOSITE_SYMBOLS = "UVWXYZ"
REGISTRY_SYMBOLS = (
	"A", "B", "C", "D", "E", "F", "G", "H", "I", "J",
	"K", "L", "M", "N", "O", "P", "Q", "R", "S", "T",
	"0", "1", "2", "3", "4", "5", "6", "7", "8", "9",
)

# Containers

DEFAULT_CONTAINER_LINES = 64
DEFAULT_COLUMN_COUNT = 12
MIN_PHRASE_LINES = 16

# Overwrite ranges longer than this are treated as suspect and replaced by
# the furthest placed event plus a small buffer.

RANGE_LIMIT_LINES = 64
RANGE_BUFFER_LINES = 4
