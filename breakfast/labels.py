"""Slice labels, breakpoint flags, and display formatting.

Labels are keyed by two-digit uppercase hex strings counting slices from 1:
``"01"`` is slice 0, ``"0A"`` is slice 9. A label flagged as a breakpoint
makes every event on that slice start a new break set.
"""

import dataclasses
import typing

import breakfast.constants


NOTE_NAMES = ("C-", "C#", "D-", "D#", "E-", "F-", "F#", "G-", "G#", "A-", "A#", "B-")


@dataclasses.dataclass
class SliceLabel:

	"""A user-chosen name for a slice and whether it marks a breakpoint."""

	label: str = ""
	breakpoint: bool = False


def slice_key (slice_index: int) -> str:

	"""Label key for a 0-based slice index."""

	return f"{slice_index + 1:02X}"


def slice_index (key: str) -> int:

	"""0-based slice index for a label key."""

	try:
		return int(key, 16) - 1
	except ValueError:
		raise ValueError(f"Invalid slice key {key!r}") from None


def breakpoint_channels (labels: typing.Dict[str, SliceLabel]) -> typing.Set[int]:

	"""The channel values (slice indices) flagged as breakpoints."""

	return {slice_index(key) for key, label in labels.items() if label.breakpoint}


def has_breakpoints (labels: typing.Dict[str, SliceLabel]) -> bool:

	return any(label.breakpoint for label in labels.values())


def note_name (note: int) -> str:

	"""Tracker-style note name: ``C-4``, ``C#2``, ``OFF`` or ``---``."""

	if note == breakfast.constants.NOTE_OFF:
		return "OFF"

	if note == breakfast.constants.EMPTY_NOTE:
		return "---"

	return f"{NOTE_NAMES[note % 12]}{note // 12}"


def _pad (text: str, width: int) -> str:

	return text[:width].ljust(width, "_")


def format_break_label (line: int, delay: int, label: str = "", instrument: int = 0) -> str:

	"""
	One row of a symbol listing: ``LL-label-dXX-IXX``.

	The label is padded with underscores (or cut) to five characters.
	"""

	return f"{line:02d}-{_pad(label, 5)}-d{delay:02X}-I{instrument:02X}"
