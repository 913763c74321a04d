"""Overwrite policies: how new events meet data already in the container.

Policies run after overflow resolution and work on final line positions.
Each one may clear container cells and filter the plan's events; the final
write (see :func:`write`) then places whatever survives.

Clearing and writing are not transactional. Cells cleared by a policy stay
cleared even if some events later find no free column.
"""

import enum
import logging
import typing

import breakfast.constants
import breakfast.grid
import breakfast.overflow
import breakfast.plan


logger = logging.getLogger(__name__)


class OverwritePolicy (enum.Enum):

	"""
	Conflict resolution between new events and existing container data.

	SUM keeps everything, moving new events to free secondary columns.
	REPLACE clears the symbol's whole line range first.
	SUBSTITUTE clears the primary column only where new events land.
	RETAIN keeps existing data and drops conflicting new events.
	EXCLUDE drops both sides where they conflict.
	INTERSECT keeps only the conflicting lines within the symbol's range.
	"""

	SUM = "sum"
	REPLACE = "replace"
	SUBSTITUTE = "substitute"
	RETAIN = "retain"
	EXCLUDE = "exclude"
	INTERSECT = "intersect"


Segment = typing.Tuple[int, int]


def _occupied (container: breakfast.grid.ContainerLike, track: int, line: int, column: int = 1) -> bool:

	cell = container.get_event(track, line, column)
	return cell is not None and cell.note != breakfast.constants.EMPTY_NOTE


def _in_container (plan: breakfast.plan.PlacementPlan, line: int) -> bool:

	return 1 <= line <= plan.length


def _clear_all_columns (plan: breakfast.plan.PlacementPlan, line: int) -> int:

	cleared = 0

	for column in range(1, plan.container.column_count + 1):
		if plan.container.clear_event(plan.track, line, column):
			cleared += 1

	return cleared


def range_end (plan: breakfast.plan.PlacementPlan) -> int:

	"""
	Last line of the symbol's range: one line before the next symbol's start.

	When the loop policy kept the unwrapped continuation line and the range it
	gives is longer than a full default container, the furthest placed event
	(counting wrapped events past the end) plus a small buffer is used instead.
	"""

	start = plan.original_start_line

	if plan.original_next_line is not None:

		end = plan.original_next_line - 1

		if end - start + 1 > breakfast.constants.RANGE_LIMIT_LINES:

			latest = start

			for placed in plan.events:
				line = placed.line + plan.length if placed.line < start else placed.line
				latest = max(latest, line)

			end = latest + breakfast.constants.RANGE_BUFFER_LINES

		return end

	if plan.next_line > start:
		return plan.next_line - 1

	return plan.max_line() + breakfast.constants.RANGE_BUFFER_LINES


def range_segments (
	plan: breakfast.plan.PlacementPlan,
	overflow: breakfast.overflow.OverflowPolicy,
	protect_start: bool = True
) -> typing.List[Segment]:

	"""
	The closed line ranges the symbol covers in the current container.

	A range running past the container end splits into the tail
	``start..length`` and a wrapped head ``1..end - length``, unless the
	overflow policy is TRUNCATE. With ``protect_start`` the wrapped head is
	dropped when it would reach the symbol's own start line.
	"""

	length = plan.length
	start = plan.original_start_line
	end = range_end(plan)

	if overflow is breakfast.overflow.OverflowPolicy.TRUNCATE or end <= length:
		segments = [(max(1, start), min(length, end))]

	else:
		segments = [(max(1, start), length)]
		wrapped_end = min(length, end - length)

		if wrapped_end >= 1 and not (protect_start and wrapped_end >= start):
			segments.append((1, wrapped_end))

	segments = [(low, high) for low, high in segments if low <= high]

	logger.debug(f"Overwrite range for start {start}, end {end}: {segments}")

	return segments


def _in_segments (line: int, segments: typing.List[Segment]) -> bool:

	return any(low <= line <= high for low, high in segments)


def _drop_outside (plan: breakfast.plan.PlacementPlan) -> None:

	kept = [placed for placed in plan.events if _in_container(plan, placed.line)]
	plan.shortfall.skipped += len(plan.events) - len(kept)
	plan.events = kept


def replace (plan: breakfast.plan.PlacementPlan, overflow: breakfast.overflow.OverflowPolicy) -> None:

	"""Clear every column of every line in the symbol's range."""

	for low, high in range_segments(plan, overflow, protect_start=True):
		for line in range(low, high + 1):
			plan.cleared += _clear_all_columns(plan, line)

	if plan.cleared:
		logger.debug(f"Replace cleared {plan.cleared} cells")


def substitute (plan: breakfast.plan.PlacementPlan, overflow: breakfast.overflow.OverflowPolicy) -> None:

	"""Clear the primary column on the lines new events land on."""

	for line in sorted({placed.line for placed in plan.events}):
		if _in_container(plan, line) and plan.container.clear_event(plan.track, line, 1):
			plan.cleared += 1


def retain (plan: breakfast.plan.PlacementPlan, overflow: breakfast.overflow.OverflowPolicy) -> None:

	"""Drop new events whose primary column is already taken."""

	_drop_outside(plan)

	kept = [placed for placed in plan.events if not _occupied(plan.container, plan.track, placed.line)]
	dropped = len(plan.events) - len(kept)

	if dropped:
		plan.shortfall.skipped += dropped
		logger.debug(f"Retain skipped {dropped} new events on occupied lines")

	plan.events = kept


def conflict_lines (plan: breakfast.plan.PlacementPlan, segments: typing.Optional[typing.List[Segment]] = None) -> typing.Set[int]:

	"""Lines where a new event lands on an occupied primary column."""

	return {
		placed.line
		for placed in plan.events
		if _in_container(plan, placed.line)
		and (segments is None or _in_segments(placed.line, segments))
		and _occupied(plan.container, plan.track, placed.line)
	}


def exclude (plan: breakfast.plan.PlacementPlan, overflow: breakfast.overflow.OverflowPolicy) -> None:

	"""
	Empty both sides wherever they conflict.

	Existing primary-column data on conflicting lines is cleared and the new
	events for those lines are dropped.
	"""

	_drop_outside(plan)

	conflicts = conflict_lines(plan)

	for line in sorted(conflicts):
		if plan.container.clear_event(plan.track, line, 1):
			plan.cleared += 1

	kept = [placed for placed in plan.events if placed.line not in conflicts]
	plan.shortfall.skipped += len(plan.events) - len(kept)
	plan.events = kept

	if conflicts:
		logger.debug(f"Exclude cleared {len(conflicts)} lines, placing {len(kept)} new events")


def intersect (plan: breakfast.plan.PlacementPlan, overflow: breakfast.overflow.OverflowPolicy) -> None:

	"""
	Keep only the lines where new and existing data meet, within the symbol's range.

	Lines in range without a conflict are cleared (every column) and new
	events on them are dropped; new events outside the range are dropped too.
	When nothing in range conflicts, every new event in range is kept and
	written like SUM.
	"""

	segments = range_segments(plan, overflow, protect_start=False)
	conflicts = conflict_lines(plan, segments)

	for low, high in segments:
		for line in range(low, high + 1):
			if line not in conflicts:
				plan.cleared += _clear_all_columns(plan, line)

	kept = [
		placed for placed in plan.events
		if _in_container(plan, placed.line)
		and _in_segments(placed.line, segments)
		and (not conflicts or placed.line in conflicts)
	]

	plan.shortfall.skipped += len(plan.events) - len(kept)
	plan.events = kept

	logger.debug(f"Intersect found {len(conflicts)} conflicts, cleared {plan.cleared} cells, kept {len(kept)} new events")


def _noop (plan: breakfast.plan.PlacementPlan, overflow: breakfast.overflow.OverflowPolicy) -> None:
	pass


HANDLERS: typing.Dict[OverwritePolicy, typing.Callable[[breakfast.plan.PlacementPlan, breakfast.overflow.OverflowPolicy], None]] = {
	OverwritePolicy.SUM: _noop,
	OverwritePolicy.REPLACE: replace,
	OverwritePolicy.SUBSTITUTE: substitute,
	OverwritePolicy.RETAIN: retain,
	OverwritePolicy.EXCLUDE: exclude,
	OverwritePolicy.INTERSECT: intersect,
}

# Policies whose writes spill into secondary columns when the primary is taken.
PROBING = frozenset({OverwritePolicy.SUM, OverwritePolicy.INTERSECT})


def apply (policy: OverwritePolicy, plan: breakfast.plan.PlacementPlan, overflow: breakfast.overflow.OverflowPolicy) -> None:

	if plan.events:
		HANDLERS[policy](plan, overflow)


def free_column (container: breakfast.grid.ContainerLike, track: int, line: int) -> typing.Optional[int]:

	"""First empty note column on a line, primary first."""

	for column in range(1, container.column_count + 1):
		if not _occupied(container, track, line, column):
			return column

	return None


def write (
	plan: breakfast.plan.PlacementPlan,
	policy: OverwritePolicy,
	cell_for: typing.Callable[[breakfast.plan.PlacedEvent], breakfast.grid.NoteCell]
) -> int:

	"""
	Write the plan's surviving events and return how many were placed.

	Events outside the container are skipped. Probing policies move an event
	to the first free secondary column when the primary is taken and count it
	as unplaced when every column is full; the others write to the primary
	column.
	"""

	placed_count = 0

	for placed in plan.events:

		if not _in_container(plan, placed.line):
			plan.shortfall.skipped += 1
			logger.debug(f"Skipping event at line {placed.line}, outside 1..{plan.length}")
			continue

		if policy in PROBING:
			column = free_column(plan.container, plan.track, placed.line)
		else:
			column = 1

		if column is None:
			plan.shortfall.unplaced += 1
			logger.warning(f"No free note column on line {placed.line}, event not placed")
			continue

		plan.container.set_event(plan.track, placed.line, column, cell_for(placed))
		placed_count += 1

	return placed_count
