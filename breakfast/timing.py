"""Tick arithmetic and the timing analysis of source phrases.

:func:`analyze` scans a :class:`~breakfast.grid.Phrase` and computes, per
event, the number of ticks to the next event (or to one tick past the end of
the phrase). Those distances are what lets break sets be cut apart and
stitched back together without losing time.
"""

import dataclasses
import logging
import typing

import breakfast.constants
import breakfast.grid


logger = logging.getLogger(__name__)


def to_ticks (line: int, delay: int) -> int:

	"""Absolute tick of a ``(line, delay)`` position."""

	return (line - 1) * breakfast.constants.TICKS_PER_LINE + delay


def from_ticks (ticks: int) -> typing.Tuple[int, int]:

	"""Inverse of :func:`to_ticks`; the delay is always in ``0..255``."""

	line, delay = divmod(ticks, breakfast.constants.TICKS_PER_LINE)
	return line + 1, delay


def normalize (line: int, delay: int) -> typing.Tuple[int, int]:

	"""Carry an out-of-range delay into the line (in either direction)."""

	return from_ticks(to_ticks(line, delay))


def distance_between (line: int, delay: int, next_line: int, next_delay: int) -> int:

	"""Ticks from one position to a later one."""

	return (next_line - line) * breakfast.constants.TICKS_PER_LINE - delay + next_delay


def distance_to_end (line: int, delay: int, number_of_lines: int) -> int:

	"""Ticks from a position to one tick past the last line."""

	return (number_of_lines + 1 - line) * breakfast.constants.TICKS_PER_LINE - delay


def is_empty_channel (value: typing.Optional[int]) -> bool:

	"""True for channel values that carry no real slice or instrument."""

	return value is None or value == 0 or value == breakfast.constants.EMPTY_INSTRUMENT


def slice_from_note (note: int) -> int:

	"""
	Derive a slice index from a note value (C#3, note 37, is slice 0).

	Out-of-range results fall back to slice 0.
	"""

	slice_index = note - breakfast.constants.SLICE_NOTE_OFFSET

	if 0 <= slice_index <= breakfast.constants.MAX_SLICE_INDEX:
		return slice_index

	return 0


@dataclasses.dataclass (frozen=True)
class AnalyzedEvent:

	"""
	One event of an analyzed phrase.

	Attributes:
		line: 1-based line in the source phrase.
		note: Note value.
		channel: Slice / instrument value used to find boundaries.
		delay: Delay within the line (0..255).
		distance: Ticks to the next event, or to one tick past the phrase end.
		is_last: True for the final event of the phrase.
	"""

	line: int
	note: int
	channel: int
	delay: int
	distance: int = 0
	is_last: bool = False
	volume: typing.Optional[int] = None
	panning: typing.Optional[int] = None
	effect_id: typing.Optional[int] = None
	effect_value: typing.Optional[int] = None

	@property
	def ticks (self) -> int:

		return to_ticks(self.line, self.delay)


@dataclasses.dataclass
class AnalyzedSequence:

	"""
	The analyzed events of a phrase, in line order.

	``recovered`` is True when channel values were derived from note values
	because the phrase carried no instrument data.
	"""

	number_of_lines: int
	events: typing.List[AnalyzedEvent] = dataclasses.field(default_factory=list)
	recovered: bool = False

	def __len__ (self) -> int:

		return len(self.events)

	def __iter__ (self) -> typing.Iterator[AnalyzedEvent]:

		return iter(self.events)

	@property
	def terminal (self) -> typing.Optional[AnalyzedEvent]:

		return self.events[-1] if self.events else None

	def at_line (self, line: int) -> typing.Optional[AnalyzedEvent]:

		for event in self.events:
			if event.line == line:
				return event

		return None

	def total_ticks (self) -> int:

		"""Ticks covered from the first event to one tick past the phrase end."""

		return sum(event.distance for event in self.events)


def analyze (sequence: breakfast.grid.Phrase) -> AnalyzedSequence:

	"""
	Analyze a phrase's primary column.

	Every present event gets its distance to the next present event. The
	final event's distance runs to one tick past the end of the phrase, so the
	distances of all events sum to the ticks between the first event and the
	end.

	If every present event has an empty channel value (``None``, ``0`` or
	``255``), channel values are recovered from the notes instead (see
	:func:`slice_from_note`). The check covers all events before any are
	rewritten.

	An empty phrase yields an empty result.
	"""

	present = sequence.events()
	length = sequence.number_of_lines

	if not present:
		logger.debug(f"Analyzed phrase of {length} lines: no events")
		return AnalyzedSequence(number_of_lines=length)

	recovered = all(is_empty_channel(cell.instrument) for _, cell in present)

	events: typing.List[AnalyzedEvent] = []

	for index, (line, cell) in enumerate(present):

		if index + 1 < len(present):
			next_line, next_cell = present[index + 1]
			distance = distance_between(line, cell.delay, next_line, next_cell.delay)
		else:
			distance = distance_to_end(line, cell.delay, length)

		if recovered:
			channel = slice_from_note(cell.note)
		else:
			channel = cell.instrument if cell.instrument is not None else breakfast.constants.EMPTY_INSTRUMENT

		events.append(AnalyzedEvent(
			line = line,
			note = cell.note,
			channel = channel,
			delay = cell.delay,
			distance = distance,
			is_last = index == len(present) - 1,
			volume = cell.volume,
			panning = cell.panning,
			effect_id = cell.effect_id,
			effect_value = cell.effect_value
		))

	if recovered:
		logger.info(f"No instrument values in phrase; recovered slice indices from {len(events)} notes")

	logger.debug(f"Analyzed phrase of {length} lines: {len(events)} events")

	return AnalyzedSequence(number_of_lines=length, events=events, recovered=recovered)
