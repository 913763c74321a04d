import typing

import pytest

import breakfast.break_sets
import breakfast.grid
import breakfast.overflow
import breakfast.overwrite
import breakfast.placement
import breakfast.plan
import breakfast.registry


Overwrite = breakfast.overwrite.OverwritePolicy


def _existing (container: breakfast.grid.Container, *lines: int, column: int = 1, note: int = 60) -> None:

	for line in lines:
		container.set_event(1, line, column, breakfast.grid.NoteCell(note=note, instrument=9))


def _notes (container: breakfast.grid.Container, column: int = 1) -> typing.Dict[int, int]:

	return {line: container.get_event(1, line, column).note for line in container.occupied_lines(1, column)}


@pytest.fixture
def engine (registry: breakfast.registry.SymbolRegistry) -> breakfast.placement.PlacementEngine:

	return breakfast.placement.PlacementEngine(registry)


@pytest.fixture
def short_container () -> breakfast.grid.Container:

	"""An 8-line container: ``AB`` placed at line 1 fills it exactly."""

	return breakfast.grid.Container(number_of_lines=8, column_count=4)


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------

def _range_plan (length: int, start: int, next_line: int, lines: typing.List[int], original_next_line: typing.Optional[int] = None) -> breakfast.plan.PlacementPlan:

	events = [
		breakfast.plan.PlacedEvent(
			line = line,
			delay = 0,
			note = 37,
			event = breakfast.break_sets.RelativeEvent(line, 0, line, 0, 256, 37, 1)
		)
		for line in lines
	]

	return breakfast.plan.PlacementPlan(
		container = breakfast.grid.Container(number_of_lines=length),
		track = 1,
		events = events,
		original_start_line = start,
		next_line = next_line,
		original_next_line = original_next_line
	)


def test_range_end_follows_next_line () -> None:

	plan = _range_plan(16, start=1, next_line=9, lines=[1, 3, 5, 7])

	assert breakfast.overwrite.range_end(plan) == 8


def test_range_end_without_forward_continuation () -> None:

	"""A continuation at or before the start falls back to the last event plus a buffer."""

	plan = _range_plan(16, start=5, next_line=3, lines=[5, 7])

	assert breakfast.overwrite.range_end(plan) == 7 + 4


def test_overlong_loop_range_uses_furthest_event () -> None:

	plan = _range_plan(16, start=13, next_line=5, lines=[13, 15, 1, 3], original_next_line=100)

	assert breakfast.overwrite.range_end(plan) == 16 + 3 + 4


def test_range_segments_wrap () -> None:

	"""The wrapped head is kept only when it cannot reach the symbol's own start."""

	plan = _range_plan(8, start=3, next_line=5, lines=[3, 5, 7, 1], original_next_line=13)

	assert breakfast.overwrite.range_segments(plan, breakfast.overflow.OverflowPolicy.LOOP) == [(3, 8)]
	assert breakfast.overwrite.range_segments(plan, breakfast.overflow.OverflowPolicy.LOOP, protect_start=False) == [(3, 8), (1, 4)]
	assert breakfast.overwrite.range_segments(plan, breakfast.overflow.OverflowPolicy.TRUNCATE, protect_start=False) == [(3, 8)]


# ---------------------------------------------------------------------------
# Sum
# ---------------------------------------------------------------------------

def test_sum_moves_to_free_column (engine: breakfast.placement.PlacementEngine, short_container: breakfast.grid.Container) -> None:

	_existing(short_container, 3)

	result = engine.place("AB", short_container, overwrite=Overwrite.SUM)

	assert result.placed == 4
	assert _notes(short_container) == {1: 37, 3: 60, 5: 38, 7: 39}
	assert _notes(short_container, 2) == {3: 39}


def test_sum_counts_unplaced_when_columns_are_full (engine: breakfast.placement.PlacementEngine) -> None:

	container = breakfast.grid.Container(number_of_lines=8, column_count=1)
	_existing(container, 3)

	result = engine.place("AB", container, overwrite=Overwrite.SUM)

	assert result.ok
	assert result.placed == 3
	assert result.shortfall.unplaced == 1
	assert container.get_event(1, 3, 1).note == 60


# ---------------------------------------------------------------------------
# Replace, substitute, retain
# ---------------------------------------------------------------------------

def test_replace_clears_symbol_range (engine: breakfast.placement.PlacementEngine, container: breakfast.grid.Container) -> None:

	"""Everything on lines 1..8 goes; data after the range stays."""

	_existing(container, 4, column=2)
	_existing(container, 8, 12)

	result = engine.place("AB", container, overwrite=Overwrite.REPLACE)

	assert result.cleared == 2
	assert container.occupied_lines(1) == [1, 3, 5, 7, 12]


def test_replace_with_loop_clears_wrapped_range (engine: breakfast.placement.PlacementEngine, container: breakfast.grid.Container) -> None:

	"""A placement wrapping past the end clears 13..16 and 1..4."""

	_existing(container, 2, 8, 14)
	container.move_cursor(1, 13)

	result = engine.place("AB", container, overflow=breakfast.overflow.OverflowPolicy.LOOP, overwrite=Overwrite.REPLACE)

	assert result.wrapped == 2
	assert result.next_line == 5
	assert result.cleared == 2
	assert _notes(container) == {1: 38, 3: 39, 8: 60, 13: 37, 15: 39}


def test_substitute_clears_primary_column_only (engine: breakfast.placement.PlacementEngine, short_container: breakfast.grid.Container) -> None:

	_existing(short_container, 3, 4)
	_existing(short_container, 3, column=2, note=62)

	result = engine.place("AB", short_container, overwrite=Overwrite.SUBSTITUTE)

	assert result.cleared == 1
	assert _notes(short_container) == {1: 37, 3: 39, 4: 60, 5: 38, 7: 39}
	assert _notes(short_container, 2) == {3: 62}


def test_retain_keeps_existing_data (engine: breakfast.placement.PlacementEngine, short_container: breakfast.grid.Container) -> None:

	_existing(short_container, 3)

	result = engine.place("AB", short_container, overwrite=Overwrite.RETAIN)

	assert result.placed == 3
	assert result.shortfall.skipped == 1
	assert _notes(short_container) == {1: 37, 3: 60, 5: 38, 7: 39}


# ---------------------------------------------------------------------------
# Exclude and intersect
# ---------------------------------------------------------------------------

def test_exclude_empties_conflicts (engine: breakfast.placement.PlacementEngine, short_container: breakfast.grid.Container) -> None:

	_existing(short_container, 3, 4)

	result = engine.place("AB", short_container, overwrite=Overwrite.EXCLUDE)

	assert result.placed == 3
	assert result.cleared == 1
	assert short_container.occupied_lines(1) == [1, 4, 5, 7]


def test_intersect_keeps_conflicts_only (engine: breakfast.placement.PlacementEngine, short_container: breakfast.grid.Container) -> None:

	_existing(short_container, 3, 4)

	result = engine.place("AB", short_container, overwrite=Overwrite.INTERSECT)

	assert result.placed == 1
	assert short_container.occupied_lines(1) == [3]
	assert short_container.get_event(1, 3, 1).note == 60
	assert short_container.get_event(1, 3, 2).note == 39


def _exclude_and_intersect (
	registry: breakfast.registry.SymbolRegistry,
	length: int,
	cursor_line: int,
	existing: typing.Tuple[int, ...],
	overflow: breakfast.overflow.OverflowPolicy = breakfast.overflow.OverflowPolicy.EXTEND
) -> typing.List[typing.Set[int]]:

	"""Occupied lines after placing ``AB`` under Exclude and under Intersect."""

	occupied = []

	for policy in (Overwrite.EXCLUDE, Overwrite.INTERSECT):

		container = breakfast.grid.Container(number_of_lines=length, column_count=4)
		_existing(container, *existing)
		container.move_cursor(1, cursor_line)

		breakfast.placement.PlacementEngine(registry).place("AB", container, overflow=overflow, overwrite=policy)
		occupied.append(set(container.occupied_lines(1)))

	return occupied


def test_exclude_and_intersect_are_complementary (registry: breakfast.registry.SymbolRegistry) -> None:

	"""The two policies split the lines holding new or existing data between them."""

	excluded, intersected = _exclude_and_intersect(registry, 8, 1, (3, 4))

	assert excluded.isdisjoint(intersected)
	assert excluded | intersected == {1, 3, 4, 5, 7}


def test_exclude_and_intersect_are_complementary_across_wrap (registry: breakfast.registry.SymbolRegistry) -> None:

	"""A looped placement at line 13 covers 13..16 and 1..4; the split holds over both."""

	excluded, intersected = _exclude_and_intersect(registry, 16, 13, (3, 14), breakfast.overflow.OverflowPolicy.LOOP)

	assert excluded == {1, 13, 14, 15}
	assert intersected == {3}
	assert excluded | intersected == {1, 3, 13, 14, 15}


def test_intersect_without_conflicts_places_everything (engine: breakfast.placement.PlacementEngine, short_container: breakfast.grid.Container) -> None:

	"""With no conflicts the range is emptied and every new event is kept."""

	_existing(short_container, 2)

	result = engine.place("AB", short_container, overwrite=Overwrite.INTERSECT)

	assert result.placed == 4
	assert short_container.occupied_lines(1) == [1, 3, 5, 7]


def test_free_column () -> None:

	container = breakfast.grid.Container(number_of_lines=4, column_count=2)
	_existing(container, 1)

	assert breakfast.overwrite.free_column(container, 1, 1) == 2
	assert breakfast.overwrite.free_column(container, 1, 2) == 1

	_existing(container, 1, column=2)

	assert breakfast.overwrite.free_column(container, 1, 1) is None
