"""Timed-event grids: note cells, source phrases and target containers.

A :class:`Phrase` is the single-column run of lines a break is cut from.
A :class:`Container` is the target grid the placement engine writes into:
tracks of lines, each line holding ``column_count`` note columns. Column 1 is
the primary column; columns 2..N are only used as overflow slots.

Anything that behaves like :class:`ContainerLike` can stand in for the
in-memory :class:`Container` (for example an adapter over a host's pattern).
"""

import dataclasses
import logging
import typing

import breakfast.constants


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class NoteCell:

	"""
	The contents of one note column on one line.

	``instrument`` is ``None`` when the column carries no instrument value.
	"""

	note: int
	instrument: typing.Optional[int] = None
	delay: int = 0
	volume: typing.Optional[int] = None
	panning: typing.Optional[int] = None
	effect_id: typing.Optional[int] = None
	effect_value: typing.Optional[int] = None

	def __post_init__ (self) -> None:

		if not 0 <= self.delay <= breakfast.constants.MAX_DELAY:
			raise ValueError(f"delay must be in 0..{breakfast.constants.MAX_DELAY}, got {self.delay}")

		if not 0 <= self.note <= breakfast.constants.MAX_NOTE:
			raise ValueError(f"note must be in 0..{breakfast.constants.MAX_NOTE}, got {self.note}")


@typing.runtime_checkable
class ContainerLike (typing.Protocol):

	"""
	Protocol for target grids the placement engine can write into.
	"""

	number_of_lines: int
	column_count: int
	cursor_position: typing.Tuple[int, int]
	active_instrument: int

	def get_event (self, track: int, line: int, column: int) -> typing.Optional[NoteCell]:
		...

	def set_event (self, track: int, line: int, column: int, cell: NoteCell) -> None:
		...

	def clear_event (self, track: int, line: int, column: int) -> bool:
		...

	def create_successor_container (self) -> "ContainerLike":
		...


class Phrase:

	"""
	A line-indexed, single-column event sequence.

	Lines are 1-based. Empty lines hold nothing.
	"""

	def __init__ (self, number_of_lines: int, cells: typing.Optional[typing.Dict[int, NoteCell]] = None, name: str = "") -> None:

		"""
		Create a phrase of ``number_of_lines`` lines, optionally pre-filled.
		"""

		if number_of_lines < 1:
			raise ValueError("A phrase needs at least one line")

		self.number_of_lines = number_of_lines
		self.name = name
		self._cells: typing.Dict[int, NoteCell] = {}

		for line, cell in (cells or {}).items():
			self.set(line, cell)

	def _check_line (self, line: int) -> None:

		if not 1 <= line <= self.number_of_lines:
			raise IndexError(f"Line {line} outside phrase of {self.number_of_lines} lines")

	def line (self, line: int) -> typing.Optional[NoteCell]:

		"""Return the cell on ``line`` or ``None`` if the line is empty."""

		self._check_line(line)
		return self._cells.get(line)

	def set (self, line: int, cell: NoteCell) -> None:

		self._check_line(line)
		self._cells[line] = cell

	def clear (self, line: int) -> None:

		self._check_line(line)
		self._cells.pop(line, None)

	def events (self) -> typing.List[typing.Tuple[int, NoteCell]]:

		"""Return ``(line, cell)`` pairs for every non-empty line, in line order."""

		return sorted(self._cells.items())

	def __len__ (self) -> int:

		return len(self._cells)

	@classmethod
	def from_container (cls, container: ContainerLike, track: int = 1, column: int = 1) -> "Phrase":

		"""
		Copy one column of a container track into a new phrase.
		"""

		phrase = cls(container.number_of_lines)

		for line in range(1, container.number_of_lines + 1):
			cell = container.get_event(track, line, column)
			if cell is not None:
				phrase.set(line, dataclasses.replace(cell))

		return phrase


class Container:

	"""
	An in-memory target grid with tracks, lines and note columns.

	Cells are addressed ``(track, line, column)``, all 1-based. The container
	also carries the host-side context the engine reads: the cursor position
	and the currently active instrument.
	"""

	def __init__ (
		self,
		number_of_lines: int = breakfast.constants.DEFAULT_CONTAINER_LINES,
		column_count: int = breakfast.constants.DEFAULT_COLUMN_COUNT,
		track_count: int = 1,
		active_instrument: int = 0,
		name: str = ""
	) -> None:

		"""
		Create an empty container with the cursor on track 1, line 1.
		"""

		if number_of_lines < 1:
			raise ValueError("A container needs at least one line")

		if column_count < 1:
			raise ValueError("A container needs at least one note column")

		if track_count < 1:
			raise ValueError("A container needs at least one track")

		self._number_of_lines = number_of_lines
		self.column_count = column_count
		self.track_count = track_count
		self.active_instrument = active_instrument
		self.name = name

		self.cursor_position: typing.Tuple[int, int] = (1, 1)
		self.successor: typing.Optional["Container"] = None

		self._cells: typing.Dict[typing.Tuple[int, int, int], NoteCell] = {}
		self._cursor_listeners: typing.List[typing.Callable[[int, int], None]] = []

	@property
	def number_of_lines (self) -> int:

		return self._number_of_lines

	@number_of_lines.setter
	def number_of_lines (self, value: int) -> None:

		"""Resize the container; shrinking discards cells past the new end."""

		if value < 1:
			raise ValueError("A container needs at least one line")

		if value < self._number_of_lines:
			for key in [key for key in self._cells if key[1] > value]:
				del self._cells[key]

		self._number_of_lines = value

	def _check (self, track: int, line: int, column: int) -> None:

		if not 1 <= track <= self.track_count:
			raise IndexError(f"Track {track} outside 1..{self.track_count}")

		if not 1 <= line <= self._number_of_lines:
			raise IndexError(f"Line {line} outside 1..{self._number_of_lines}")

		if not 1 <= column <= self.column_count:
			raise IndexError(f"Column {column} outside 1..{self.column_count}")

	def get_event (self, track: int, line: int, column: int = 1) -> typing.Optional[NoteCell]:

		self._check(track, line, column)
		return self._cells.get((track, line, column))

	def set_event (self, track: int, line: int, column: int, cell: NoteCell) -> None:

		self._check(track, line, column)
		self._cells[(track, line, column)] = cell

	def clear_event (self, track: int, line: int, column: int = 1) -> bool:

		"""Clear one cell. Returns True if the cell held an event."""

		self._check(track, line, column)
		return self._cells.pop((track, line, column), None) is not None

	def clear_line (self, track: int, line: int) -> int:

		"""Clear every column on a line and return how many events were removed."""

		return sum(1 for column in range(1, self.column_count + 1) if self.clear_event(track, line, column))

	def occupied_lines (self, track: int = 1, column: typing.Optional[int] = None) -> typing.List[int]:

		"""Return the sorted lines of ``track`` holding data (in ``column``, or any column)."""

		return sorted({
			line for (t, line, c) in self._cells
			if t == track and (column is None or c == column)
		})

	def create_successor_container (self) -> "Container":

		"""
		Return the container that follows this one, creating it on first use.

		A new successor copies this container's shape and context but starts empty.
		"""

		if self.successor is None:
			self.successor = Container(
				number_of_lines = self._number_of_lines,
				column_count = self.column_count,
				track_count = self.track_count,
				active_instrument = self.active_instrument,
				name = f"{self.name} (next)" if self.name else ""
			)
			self.successor.cursor_position = self.cursor_position
			logger.debug(f"Created successor container with {self._number_of_lines} lines")

		return self.successor

	def on_cursor_moved (self, callback: typing.Callable[[int, int], None]) -> None:

		"""Register a callback invoked with ``(track, line)`` whenever the cursor moves."""

		self._cursor_listeners.append(callback)

	def move_cursor (self, track: int, line: int) -> None:

		"""Move the cursor and notify listeners."""

		self._check(track, line, 1)
		self.cursor_position = (track, line)

		for callback in self._cursor_listeners:
			callback(track, line)
