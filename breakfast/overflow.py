"""Overflow policies: what happens when a placement runs past the container end.

Overflow is resolved before any overwrite policy looks at the container, so
every later step works on final line positions.
"""

import enum
import logging
import typing

import breakfast.plan


logger = logging.getLogger(__name__)


class OverflowPolicy (enum.Enum):

	"""
	EXTEND grows the container, NEXT_PATTERN continues in the successor
	container, TRUNCATE drops what does not fit and LOOP wraps to the top.
	"""

	EXTEND = "extend"
	NEXT_PATTERN = "next_pattern"
	TRUNCATE = "truncate"
	LOOP = "loop"


def wrap_line (line: int, length: int) -> int:

	"""Wrap a line past ``length`` back into ``1..length``; other lines are kept."""

	if line <= length:
		return line

	return ((line - length - 1) % length) + 1


def extend (plan: breakfast.plan.PlacementPlan) -> None:

	"""
	Grow the container to hold every event and the terminal event's full duration.

	The container never shrinks.
	"""

	length = plan.length
	required = max(length, plan.max_line())

	if plan.terminal is not None:
		# The completion line itself belongs to the next placement.
		required = max(required, plan.terminal.completion_line() - 1)

	if required > length:
		plan.container.number_of_lines = required
		logger.info(f"Extended container from {length} to {required} lines")


def next_pattern (plan: breakfast.plan.PlacementPlan) -> None:

	"""
	Move the whole placement into the successor container if it overhangs.

	Every line in the plan is shifted back by the old length: events land on
	their overhang line, and the continuation, anchor and terminal lines follow
	so a chained placement continues in the successor.
	"""

	length = plan.length

	if plan.max_line() <= length:
		return

	successor = plan.container.create_successor_container()

	for placed in plan.events:
		placed.line -= length

	plan.next_line -= length
	plan.original_start_line -= length

	if plan.terminal is not None:
		plan.terminal = breakfast.plan.TerminalTiming(
			line = plan.terminal.line - length,
			delay = plan.terminal.delay,
			distance = plan.terminal.distance
		)

	plan.container = successor
	plan.transition_occurred = True

	logger.info(f"Placement overhangs {length}-line container, continuing in successor container")


def truncate (plan: breakfast.plan.PlacementPlan) -> None:

	"""Drop every event past the container end and count the drops."""

	length = plan.length
	kept = [placed for placed in plan.events if placed.line <= length]
	dropped = len(plan.events) - len(kept)

	if dropped:
		plan.events = kept
		plan.shortfall.truncated += dropped
		logger.warning(f"Truncated {dropped} events past line {length}")


def loop (plan: breakfast.plan.PlacementPlan) -> None:

	"""
	Wrap events, the continuation line and the terminal line into the container.

	The unwrapped continuation line is kept as ``original_next_line`` for the
	overwrite range. Lines already inside the container are left alone, so
	looping twice changes nothing.
	"""

	length = plan.length

	if plan.next_line > length:
		plan.original_next_line = plan.next_line

	for placed in plan.events:
		if placed.line > length:
			placed.line = wrap_line(placed.line, length)
			plan.wrapped += 1

	plan.next_line = wrap_line(plan.next_line, length)

	if plan.terminal is not None and plan.terminal.line > length:
		plan.terminal = breakfast.plan.TerminalTiming(
			line = wrap_line(plan.terminal.line, length),
			delay = plan.terminal.delay,
			distance = plan.terminal.distance
		)

	if plan.wrapped:
		logger.debug(f"Wrapped {plan.wrapped} events into {length}-line container")


HANDLERS: typing.Dict[OverflowPolicy, typing.Callable[[breakfast.plan.PlacementPlan], None]] = {
	OverflowPolicy.EXTEND: extend,
	OverflowPolicy.NEXT_PATTERN: next_pattern,
	OverflowPolicy.TRUNCATE: truncate,
	OverflowPolicy.LOOP: loop,
}


def apply (policy: OverflowPolicy, plan: breakfast.plan.PlacementPlan) -> None:

	HANDLERS[policy](plan)
