"""Partition an analyzed phrase into break sets.

Boundary lines are the lines whose event's channel value is marked as a
breakpoint. The phrase is cut at each boundary (plus implicit cuts at line 1
and one past the last line) and every resulting set is re-timed so its first
event sits at ``(relative_line=1, delay=0)``.
"""

import dataclasses
import logging
import typing

import breakfast.constants
import breakfast.errors
import breakfast.timing


logger = logging.getLogger(__name__)


BoundarySpec = typing.Union[
	typing.Collection[int],
	typing.Callable[[breakfast.timing.AnalyzedEvent], bool]
]


@dataclasses.dataclass (frozen=True)
class RelativeEvent:

	"""
	An event expressed relative to the start of its break set (or timeline).

	``relative_line`` / ``delay`` are the re-timed position. ``original_*``
	fields and the note data are carried through unchanged for stitching and
	placement.
	"""

	relative_line: int
	delay: int
	original_line: int
	original_delay: int
	original_distance: int
	note: int
	channel: int
	source_instrument: int = 0
	volume: typing.Optional[int] = None
	panning: typing.Optional[int] = None
	effect_id: typing.Optional[int] = None
	effect_value: typing.Optional[int] = None

	@property
	def ticks (self) -> int:

		return breakfast.timing.to_ticks(self.relative_line, self.delay)

	@property
	def end_ticks (self) -> int:

		"""Tick at which this event's duration completes."""

		return self.ticks + self.original_distance


@dataclasses.dataclass (frozen=True)
class BreakSet:

	"""
	A contiguous run of events between two boundaries, with its own timeline.
	"""

	start_line: int
	end_line: int
	events: typing.Tuple[breakfast.timing.AnalyzedEvent, ...] = ()
	relative_timing: typing.Tuple[RelativeEvent, ...] = ()

	@property
	def is_empty (self) -> bool:

		return not self.relative_timing

	@property
	def terminal (self) -> typing.Optional[RelativeEvent]:

		return self.relative_timing[-1] if self.relative_timing else None

	def __len__ (self) -> int:

		return len(self.relative_timing)


def boundary_lines (analyzed: breakfast.timing.AnalyzedSequence, boundaries: BoundarySpec) -> typing.List[int]:

	"""
	Return the sorted lines whose events mark a boundary.

	``boundaries`` is either a collection of channel values or a predicate
	over an :class:`~breakfast.timing.AnalyzedEvent`. A boundary on line 1
	coincides with the implicit start and is not counted.
	"""

	if callable(boundaries):
		is_boundary = boundaries
	else:
		channels = set(boundaries)
		is_boundary = lambda event: event.channel in channels

	return sorted({event.line for event in analyzed if event.line > 1 and is_boundary(event)})


def relative_timing (events: typing.Sequence[breakfast.timing.AnalyzedEvent], source_instrument: int = 0) -> typing.Tuple[RelativeEvent, ...]:

	"""
	Re-time a run of events so the first one lands on ``(1, 0)``.

	Every later event keeps its offset from the first: the first event's delay
	is subtracted, borrowing a line when the result goes negative.
	"""

	if not events:
		return ()

	first = events[0]
	delay_adjustment = first.delay
	base_line = first.line

	timing: typing.List[RelativeEvent] = []

	for index, event in enumerate(events):

		if index == 0:
			relative_line, new_delay = 1, 0

		else:
			new_line = event.line
			new_delay = event.delay - delay_adjustment

			if new_delay < 0:
				new_line -= 1
				new_delay += breakfast.constants.TICKS_PER_LINE

			relative_line = new_line + 1 - base_line

		timing.append(RelativeEvent(
			relative_line = relative_line,
			delay = new_delay,
			original_line = event.line,
			original_delay = event.delay,
			original_distance = event.distance,
			note = event.note,
			channel = event.channel,
			source_instrument = source_instrument,
			volume = event.volume,
			panning = event.panning,
			effect_id = event.effect_id,
			effect_value = event.effect_value
		))

	return tuple(timing)


def build (analyzed: breakfast.timing.AnalyzedSequence, boundaries: BoundarySpec, source_instrument: int = 0) -> typing.List[BreakSet]:

	"""
	Cut an analyzed phrase into break sets at its boundary lines.

	Set ``k`` spans ``[edge[k], edge[k+1] - 1]`` where the edges are line 1,
	the sorted boundary lines, and one past the last line. Sets may be empty
	when the phrase has no events inside a span.

	Raises:
		ConfigurationError: More than five boundary lines were found.
	"""

	lines = boundary_lines(analyzed, boundaries)

	if len(lines) > breakfast.constants.MAX_BOUNDARIES:
		raise breakfast.errors.ConfigurationError(
			f"Too many breakpoints: found {len(lines)} boundary lines, at most {breakfast.constants.MAX_BOUNDARIES} are allowed"
		)

	edges = [1] + lines + [analyzed.number_of_lines + 1]

	sets: typing.List[BreakSet] = []

	for start, stop in zip(edges, edges[1:]):

		events = tuple(event for event in analyzed if start <= event.line < stop)

		sets.append(BreakSet(
			start_line = start,
			end_line = stop - 1,
			events = events,
			relative_timing = relative_timing(events, source_instrument)
		))

	logger.info(f"Built {len(sets)} break sets from boundary lines {lines}")

	return sets
