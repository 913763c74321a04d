"""The placement engine: writes stitched timelines into containers.

The engine is a small state machine. It is *idle* until the first placement,
then *chaining*: each placement continues where the previous one finished
instead of at the cursor. Chaining ends when the cursor is moved by someone
other than the engine (see :meth:`PlacementEngine.on_cursor_moved`) or on an
explicit :meth:`PlacementEngine.reset`.

A placement runs in fixed order:

1. resolve the source to one stitched timeline,
2. compute absolute target lines from the chain position,
3. resolve overflow (:mod:`breakfast.overflow`),
4. resolve conflicts with existing data (:mod:`breakfast.overwrite`),
5. write the surviving events and advance the chain.

Container mutation is not transactional. Anything cleared or written before
an event runs out of columns stays in place, and resetting the engine never
undoes earlier writes.
"""

import dataclasses
import enum
import logging
import typing

import breakfast.break_sets
import breakfast.constants
import breakfast.errors
import breakfast.grid
import breakfast.overflow
import breakfast.overwrite
import breakfast.plan
import breakfast.registry
import breakfast.stitcher


logger = logging.getLogger(__name__)


class InstrumentSource (enum.Enum):

	"""Where a placed event's instrument value comes from."""

	EMBEDDED = "embedded"
	CURRENT_SELECTED = "current_selected"


PlacementSource = typing.Union[
	str,
	breakfast.registry.Symbol,
	typing.Sequence[typing.Union[breakfast.break_sets.BreakSet, breakfast.registry.Symbol]]
]


@dataclasses.dataclass
class PlacementState:

	"""
	Chaining state carried between placement calls.

	``current_track`` / ``current_line`` are the cursor the chain started
	from. ``container`` is where the chain currently writes: it starts as the
	container the chain began in (``origin``) and follows a transition to a
	successor container. ``last_cursor`` is the last cursor position reported
	through :meth:`PlacementEngine.on_cursor_moved`.
	"""

	current_track: typing.Optional[int] = None
	current_line: typing.Optional[int] = None
	next_placement_line: typing.Optional[int] = None
	last_terminal: typing.Optional[breakfast.plan.TerminalTiming] = None
	is_chaining: bool = False
	origin: typing.Optional[breakfast.grid.ContainerLike] = None
	container: typing.Optional[breakfast.grid.ContainerLike] = None
	last_cursor: typing.Optional[typing.Tuple[int, int]] = None


@dataclasses.dataclass
class PlacementResult:

	"""
	Outcome of one placement call.

	A failed call (``ok`` is False) carries the error and left the container
	untouched. A successful call may still have a non-empty ``shortfall``
	when some events were dropped or found no free column.
	"""

	ok: bool
	error: typing.Optional[breakfast.errors.BreakfastError] = None
	placed: int = 0
	shortfall: breakfast.plan.Shortfall = dataclasses.field(default_factory=breakfast.plan.Shortfall)
	wrapped: int = 0
	cleared: int = 0
	container: typing.Optional[breakfast.grid.ContainerLike] = None
	next_line: typing.Optional[int] = None
	transition: bool = False

	@property
	def error_kind (self) -> typing.Optional[breakfast.errors.ErrorKind]:

		return self.error.kind if self.error is not None else None

	@classmethod
	def failure (cls, error: breakfast.errors.BreakfastError) -> "PlacementResult":

		return cls(ok=False, error=error)


class PlacementEngine:

	"""
	Places symbols and break-set permutations into containers.

	Example:
		```python
		engine = breakfast.placement.PlacementEngine(registry)

		result = engine.place("A", container)
		result = engine.place("B", container)	# continues after A

		if not result.ok:
			print(result.error_kind, result.error)
		```
	"""

	def __init__ (
		self,
		registry: typing.Optional[breakfast.registry.SymbolRegistry] = None,
		overflow: breakfast.overflow.OverflowPolicy = breakfast.overflow.OverflowPolicy.EXTEND,
		overwrite: breakfast.overwrite.OverwritePolicy = breakfast.overwrite.OverwritePolicy.SUM,
		instrument_source: InstrumentSource = InstrumentSource.EMBEDDED
	) -> None:

		"""
		Create an idle engine.

		Parameters:
			registry: Registry used to resolve symbol keys.
			overflow: Default overflow policy.
			overwrite: Default overwrite policy.
			instrument_source: Default instrument source policy.
		"""

		self.registry = registry
		self.overflow = overflow
		self.overwrite = overwrite
		self.instrument_source = instrument_source
		self.state = PlacementState()

	@property
	def is_chaining (self) -> bool:

		return self.state.is_chaining

	def reset (self) -> None:

		"""Abandon the current chain. Container contents are left as they are."""

		self.state = PlacementState(last_cursor=self.state.last_cursor)
		logger.debug("Placement chain reset")

	def on_cursor_moved (self, track: int, line: int) -> None:

		"""
		React to a cursor movement reported by the host.

		The chain resets only when the new position differs both from where
		the chain started and from the last reported position, so the engine's
		own bookkeeping never breaks a chain.
		"""

		position = (track, line)

		if (
			self.state.is_chaining
			and position != (self.state.current_track, self.state.current_line)
			and position != self.state.last_cursor
		):
			logger.debug(f"Cursor moved to track {track}, line {line}; ending chain")
			self.reset()

		self.state.last_cursor = position

	def place (
		self,
		source: PlacementSource,
		container: typing.Optional[breakfast.grid.ContainerLike],
		overflow: typing.Optional[breakfast.overflow.OverflowPolicy] = None,
		overwrite: typing.Optional[breakfast.overwrite.OverwritePolicy] = None,
		instrument_source: typing.Optional[InstrumentSource] = None
	) -> PlacementResult:

		"""
		Place a symbol, a run of symbols, or a break-set permutation.

		Parameters:
			source: A registry key (each character of a longer string is a key
				of its own, stitched in order), a :class:`Symbol`, or a
				sequence of break sets / symbols in playback order.
			container: The target container. Its cursor anchors a new chain.
			overflow: Overflow policy for this call (engine default if None).
			overwrite: Overwrite policy for this call (engine default if None).
			instrument_source: Instrument source policy for this call.

		Returns:
			A :class:`PlacementResult`. Configuration and resource errors are
			returned, not raised, and leave both the container and the chain
			untouched.
		"""

		overflow = overflow or self.overflow
		overwrite = overwrite or self.overwrite
		instrument_source = instrument_source or self.instrument_source

		try:

			if container is None:
				raise breakfast.errors.ResourceUnavailable("No container available for placement")

			timeline, kinds = self._resolve(source)

		except breakfast.errors.BreakfastError as exc:
			logger.warning(f"Placement failed: {exc}")
			return PlacementResult.failure(exc)

		track, line = container.cursor_position

		if (
			not self.state.is_chaining
			or (track, line) != (self.state.current_track, self.state.current_line)
			or (container is not self.state.origin and container is not self.state.container)
		):
			self.state = PlacementState(
				current_track = track,
				current_line = line,
				next_placement_line = line,
				is_chaining = True,
				origin = container,
				container = container,
				last_cursor = self.state.last_cursor
			)

		target = self.state.container if self.state.container is not None else container

		plan = self._plan(timeline, kinds, target, track)

		breakfast.overflow.apply(overflow, plan)
		breakfast.overwrite.apply(overwrite, plan, overflow)

		if instrument_source is InstrumentSource.CURRENT_SELECTED:
			instrument_for = lambda placed: plan.container.active_instrument
		else:
			instrument_for = lambda placed: placed.event.source_instrument

		placed_count = breakfast.overwrite.write(
			plan,
			overwrite,
			lambda placed: breakfast.grid.NoteCell(
				note = placed.note,
				instrument = instrument_for(placed),
				delay = placed.delay,
				volume = placed.event.volume,
				panning = placed.event.panning,
				effect_id = placed.event.effect_id,
				effect_value = placed.event.effect_value
			)
		)

		self.state.next_placement_line = plan.next_line
		self.state.last_terminal = plan.terminal
		self.state.container = plan.container

		if plan.shortfall:
			logger.warning(
				f"Placed {placed_count} events; {plan.shortfall.truncated} truncated, "
				f"{plan.shortfall.skipped} skipped, {plan.shortfall.unplaced} without a free column"
			)
		else:
			logger.info(f"Placed {placed_count} events, next placement at line {plan.next_line}")

		return PlacementResult(
			ok = True,
			placed = placed_count,
			shortfall = plan.shortfall,
			wrapped = plan.wrapped,
			cleared = plan.cleared,
			container = plan.container,
			next_line = plan.next_line,
			transition = plan.transition_occurred
		)

	def _resolve (self, source: PlacementSource) -> typing.Tuple[breakfast.stitcher.Timeline, typing.List[breakfast.registry.SymbolKind]]:

		"""
		Turn a placement source into one timeline plus the symbol kind of each entry.

		Raises:
			ResourceUnavailable: A key is unknown or there is nothing to place.
		"""

		if isinstance(source, str):
			items: typing.List[typing.Union[breakfast.break_sets.BreakSet, breakfast.registry.Symbol]] = [
				self._lookup(key) for key in "".join(source.split())
			]
			if not items:
				raise breakfast.errors.ResourceUnavailable("No symbol given to place")

		elif isinstance(source, breakfast.registry.Symbol):
			items = [source]

		else:
			items = list(source)

		timeline = breakfast.stitcher.Timeline()
		kinds: typing.List[breakfast.registry.SymbolKind] = []

		for item in items:

			if isinstance(item, breakfast.registry.Symbol):
				break_set, kind = item.break_set, item.kind
			else:
				break_set, kind = item, breakfast.registry.SymbolKind.BREAKPOINT_DERIVED

			if break_set.is_empty:
				continue

			timeline = breakfast.stitcher.append(timeline, break_set)
			kinds.extend([kind] * len(break_set))

		if timeline.is_empty:
			raise breakfast.errors.ResourceUnavailable("Nothing to place: the source has no notes")

		return timeline, kinds

	def _lookup (self, key: str) -> breakfast.registry.Symbol:

		if self.registry is None:
			raise breakfast.errors.ResourceUnavailable("No symbol registry available")

		symbol = self.registry.get(key)

		if symbol is None:
			raise breakfast.errors.ResourceUnavailable(
				f"Symbol {key} not available. Please assign breakpoints to an instrument first."
			)

		if symbol.is_empty:
			raise breakfast.errors.ResourceUnavailable(f"Symbol {key} has no notes to place")

		return symbol

	def _plan (
		self,
		timeline: breakfast.stitcher.Timeline,
		kinds: typing.List[breakfast.registry.SymbolKind],
		container: breakfast.grid.ContainerLike,
		track: int
	) -> breakfast.plan.PlacementPlan:

		"""
		Position the timeline at the chain's next placement line.

		A fresh chain anchors relative line 1 on the placement line. A chained
		placement carries the previous terminal event's leftover ticks into the
		timeline's delays, the same way the stitcher joins break sets.
		"""

		start = self.state.next_placement_line
		terminal = self.state.last_terminal

		if terminal is None:
			positioned = [
				dataclasses.replace(event, relative_line=start + event.relative_line - 1)
				for event in timeline
			]

		else:
			carry = breakfast.stitcher.carry(terminal.line, terminal.delay, terminal.distance)
			positioned = breakfast.stitcher.shift(timeline, carry.adjusted_delay, start)

			logger.debug(f"Chained placement at line {start} with carried delay {carry.adjusted_delay}")

		events: typing.List[breakfast.plan.PlacedEvent] = []
		skipped = 0

		for event, kind in zip(positioned, kinds):

			note = breakfast.registry.note_for(kind, event)

			if not 0 <= note <= breakfast.constants.NOTE_OFF:
				logger.warning(f"Slice {event.channel} has no playable note ({note}), skipping")
				skipped += 1
				continue

			events.append(breakfast.plan.PlacedEvent(
				line = event.relative_line,
				delay = event.delay,
				note = note,
				event = event
			))

		last = positioned[-1]
		new_terminal = breakfast.plan.TerminalTiming(
			line = last.relative_line,
			delay = last.delay,
			distance = last.original_distance
		)

		plan = breakfast.plan.PlacementPlan(
			container = container,
			track = track,
			events = events,
			original_start_line = start,
			next_line = new_terminal.completion_line(),
			terminal = new_terminal
		)

		plan.shortfall.skipped += skipped

		return plan
