"""The working plan of a single placement call.

A :class:`PlacementPlan` carries absolute target positions from the moment
they are computed, through the overflow policy (which may move, wrap or drop
them, or switch to a successor container), through the overwrite policy (which
clears container data and filters events), until the surviving events are
written.
"""

import dataclasses
import typing

import breakfast.break_sets
import breakfast.constants
import breakfast.grid


@dataclasses.dataclass (frozen=True)
class TerminalTiming:

	"""Absolute position and remaining duration of the last placed event."""

	line: int
	delay: int
	distance: int

	def completion_line (self) -> int:

		"""
		Line at which the event's full duration completes.

		That is the whole lines of the distance past the event line, plus one
		when the leftover ticks push the delay past the end of the line.
		"""

		lines, remainder = divmod(self.distance, breakfast.constants.TICKS_PER_LINE)
		extra = 1 if self.delay + remainder >= breakfast.constants.TICKS_PER_LINE else 0

		return self.line + lines + extra


@dataclasses.dataclass
class PlacedEvent:

	"""A timeline event with its absolute target line and the note to write."""

	line: int
	delay: int
	note: int
	event: breakfast.break_sets.RelativeEvent


@dataclasses.dataclass
class Shortfall:

	"""
	Events that did not make it into the container.

	Attributes:
		truncated: Dropped by the truncate overflow policy.
		skipped: Dropped by an overwrite policy or outside the container.
		unplaced: No free note column was left on the target line.
	"""

	truncated: int = 0
	skipped: int = 0
	unplaced: int = 0

	@property
	def total (self) -> int:

		return self.truncated + self.skipped + self.unplaced

	def __bool__ (self) -> bool:

		return self.total > 0


@dataclasses.dataclass
class PlacementPlan:

	"""
	Mutable state threaded through overflow, overwrite and the final write.

	``original_start_line`` is where the symbol was anchored; after a
	transition to a successor container it may be zero or negative.
	``original_next_line`` is only set by the loop policy and keeps the
	unwrapped continuation line so overwrite ranges can see past the end.
	"""

	container: breakfast.grid.ContainerLike
	track: int
	events: typing.List[PlacedEvent]
	original_start_line: int
	next_line: int
	terminal: typing.Optional[TerminalTiming] = None
	original_next_line: typing.Optional[int] = None
	transition_occurred: bool = False
	wrapped: int = 0
	cleared: int = 0
	shortfall: Shortfall = dataclasses.field(default_factory=Shortfall)

	@property
	def length (self) -> int:

		return self.container.number_of_lines

	def max_line (self) -> int:

		return max((placed.line for placed in self.events), default=0)
