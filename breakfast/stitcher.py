"""Stitch break sets into one continuous relative timeline.

Each break set has its own local timeline starting at ``(1, 0)``. Stitching
appends them end to end: the next set starts where the previous timeline's
terminal event finishes (its position plus its original distance), with any
fractional line carried into the next set's delays.
"""

import dataclasses
import logging
import typing

import breakfast.break_sets
import breakfast.constants
import breakfast.grid


logger = logging.getLogger(__name__)


@dataclasses.dataclass (frozen=True)
class Carry:

	"""
	Where the next set starts, given the previous terminal event.

	``line_gap`` may be negative when a terminal distance is shorter than the
	rest of its line; the next set then starts on or before the terminal line.
	"""

	delay_diff: int
	line_gap: int
	adjusted_delay: int
	next_start_line: int


def carry_from (terminal: breakfast.break_sets.RelativeEvent) -> Carry:

	"""
	Compute the carry from a timeline's terminal event.
	"""

	return carry(terminal.relative_line, terminal.delay, terminal.original_distance)


def carry (line: int, delay: int, distance: int) -> Carry:

	"""
	Compute the carry from an event at ``(line, delay)`` lasting ``distance`` ticks.
	"""

	ticks = breakfast.constants.TICKS_PER_LINE

	delay_diff = ticks - delay
	line_gap = (distance - delay_diff) // ticks
	adjusted_delay = distance - delay_diff - line_gap * ticks
	next_start_line = line + line_gap + 1

	return Carry(
		delay_diff = delay_diff,
		line_gap = line_gap,
		adjusted_delay = adjusted_delay,
		next_start_line = next_start_line
	)


def shift (
	events: typing.Iterable[breakfast.break_sets.RelativeEvent],
	adjusted_delay: int,
	next_start_line: int
) -> typing.List[breakfast.break_sets.RelativeEvent]:

	"""
	Move a run of relative events so line 1 lands on ``next_start_line``.

	Every delay grows by ``adjusted_delay``; a delay past 255 wraps into the
	following line.
	"""

	shifted: typing.List[breakfast.break_sets.RelativeEvent] = []

	for event in events:

		delay = event.delay + adjusted_delay
		line = event.relative_line

		if delay > breakfast.constants.MAX_DELAY:
			delay -= breakfast.constants.TICKS_PER_LINE
			line += 1

		shifted.append(dataclasses.replace(event, relative_line=line + next_start_line - 1, delay=delay))

	return shifted


@dataclasses.dataclass
class Timeline:

	"""
	An ordered run of relative events produced by stitching.
	"""

	events: typing.List[breakfast.break_sets.RelativeEvent] = dataclasses.field(default_factory=list)

	def __len__ (self) -> int:

		return len(self.events)

	def __iter__ (self) -> typing.Iterator[breakfast.break_sets.RelativeEvent]:

		return iter(self.events)

	@property
	def is_empty (self) -> bool:

		return not self.events

	@property
	def terminal (self) -> typing.Optional[breakfast.break_sets.RelativeEvent]:

		return self.events[-1] if self.events else None

	@property
	def end_ticks (self) -> int:

		"""Tick at which the terminal event's duration completes (0 when empty)."""

		terminal = self.terminal
		return terminal.end_ticks if terminal is not None else 0


def append (timeline: Timeline, break_set: breakfast.break_sets.BreakSet) -> Timeline:

	"""
	Return a new timeline with ``break_set`` stitched onto the end.

	The first non-empty set is copied verbatim; later sets are shifted by the
	carry from the current terminal event. Empty sets leave the timeline as-is.
	"""

	if break_set.is_empty:
		return Timeline(list(timeline.events))

	terminal = timeline.terminal

	if terminal is None:
		return Timeline(list(break_set.relative_timing))

	step = carry_from(terminal)

	logger.debug(
		f"Stitching set at line {step.next_start_line} "
		f"(line_gap={step.line_gap}, adjusted_delay={step.adjusted_delay})"
	)

	return Timeline(timeline.events + shift(break_set.relative_timing, step.adjusted_delay, step.next_start_line))


def stitch (break_sets: typing.Iterable[breakfast.break_sets.BreakSet]) -> Timeline:

	"""
	Concatenate break sets, in order, into one timeline.

	Parameters:
		break_sets: The sets in playback order. The same set may appear more
			than once.

	Example:
		```python
		sets = breakfast.break_sets.build(analyzed, {2})
		timeline = stitch([sets[1], sets[0], sets[1]])
		```
	"""

	timeline = Timeline()

	for break_set in break_sets:
		timeline = append(timeline, break_set)

	return timeline


def required_lines (timeline: Timeline) -> int:

	"""
	Length a phrase needs to hold the whole timeline.

	That is the terminal line plus the whole lines of its distance.
	"""

	terminal = timeline.terminal

	if terminal is None:
		return 0

	return terminal.relative_line + terminal.original_distance // breakfast.constants.TICKS_PER_LINE


def render_phrase (
	timeline: Timeline,
	min_lines: int = breakfast.constants.MIN_PHRASE_LINES,
	name: str = "",
	keep_notes: bool = False
) -> breakfast.grid.Phrase:

	"""
	Write a timeline into a new phrase.

	Each entry becomes a C-4 trigger whose instrument column carries the
	entry's channel value (the slice), at the stitched line and delay. An
	empty timeline gives an empty phrase of ``min_lines`` lines.

	With ``keep_notes`` each entry keeps its own note and volume instead, which
	is what a plain note sequence (such as a MIDI drum part) needs.
	"""

	length = required_lines(timeline) if not timeline.is_empty else min_lines
	phrase = breakfast.grid.Phrase(max(length, 1), name=name)

	for event in timeline:

		if not 1 <= event.relative_line <= phrase.number_of_lines:
			continue

		if keep_notes:
			cell = breakfast.grid.NoteCell(note=event.note, delay=event.delay, volume=event.volume)
		else:
			cell = breakfast.grid.NoteCell(note=breakfast.constants.DEFAULT_NOTE, instrument=event.channel, delay=event.delay)

		phrase.set(event.relative_line, cell)

	logger.info(f"Rendered phrase '{name}' with {len(phrase)} events over {phrase.number_of_lines} lines")

	return phrase
