import typing

import pytest

import breakfast.break_sets
import breakfast.grid
import breakfast.registry
import breakfast.timing


def make_phrase (number_of_lines: int, events: typing.Dict[int, typing.Tuple[int, typing.Optional[int], int]]) -> breakfast.grid.Phrase:

	"""Build a phrase from ``{line: (note, instrument, delay)}``."""

	phrase = breakfast.grid.Phrase(number_of_lines)

	for line, (note, instrument, delay) in events.items():
		phrase.set(line, breakfast.grid.NoteCell(note=note, instrument=instrument, delay=delay))

	return phrase


@pytest.fixture
def eight_line_break () -> breakfast.grid.Phrase:

	"""
	An 8-line break: slice 1 on line 1, slice 3 on lines 3 and 7, slice 2 on line 5.

	Marking slice 2 as a boundary cuts it into two sets of two events each.
	"""

	return make_phrase(8, {
		1: (37, 1, 0),
		3: (39, 3, 0),
		5: (38, 2, 0),
		7: (39, 3, 0),
	})


@pytest.fixture
def eight_line_sets (eight_line_break: breakfast.grid.Phrase) -> typing.List[breakfast.break_sets.BreakSet]:

	"""The two break sets of :func:`eight_line_break` cut at slice 2."""

	return breakfast.break_sets.build(breakfast.timing.analyze(eight_line_break), {2})


@pytest.fixture
def registry (eight_line_sets: typing.List[breakfast.break_sets.BreakSet]) -> breakfast.registry.SymbolRegistry:

	"""A registry with the eight-line break assigned to instrument 0 as ``A`` and ``B``."""

	registry = breakfast.registry.SymbolRegistry()
	registry.assign(0, eight_line_sets)

	return registry


@pytest.fixture
def container () -> breakfast.grid.Container:

	"""An empty 16-line container with four note columns."""

	return breakfast.grid.Container(number_of_lines=16, column_count=4)


@pytest.fixture
def build_phrase () -> typing.Callable[..., breakfast.grid.Phrase]:

	"""Expose :func:`make_phrase` to tests."""

	return make_phrase
