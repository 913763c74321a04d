"""Capture a line range of a container as a placeable symbol."""

import logging
import typing

import breakfast.break_sets
import breakfast.constants
import breakfast.errors
import breakfast.grid
import breakfast.registry
import breakfast.timing


logger = logging.getLogger(__name__)


def _is_event (cell: typing.Optional[breakfast.grid.NoteCell]) -> bool:

	return cell is not None and cell.note != breakfast.constants.EMPTY_NOTE


def _next_event_after (container: breakfast.grid.ContainerLike, track: int, line: int) -> typing.Optional[typing.Tuple[int, breakfast.grid.NoteCell]]:

	for candidate in range(line + 1, container.number_of_lines + 1):
		cell = container.get_event(track, candidate, 1)
		if _is_event(cell):
			return candidate, cell

	return None


def capture_range (
	container: breakfast.grid.ContainerLike,
	track: int,
	start_line: int,
	end_line: int,
	pattern_index: int = 1,
	source_instrument: typing.Optional[int] = None
) -> breakfast.registry.Symbol:

	"""
	Capture the primary-column events of ``start_line..end_line`` as a symbol.

	Captured events keep their notes, delays and instrument values. Their
	relative line counts from the start of the selection, so an empty first
	line of the selection is preserved as a leading rest.

	The distance of the last captured event runs to the next event after the
	selection when the container has one, otherwise to one tick past the end
	of the container. Notes outside ``0..121`` are skipped and instrument
	values above 254 are clamped.

	Parameters:
		container: The container to read from.
		track: 1-based track of the selection.
		start_line: First selected line (1-based, inclusive).
		end_line: Last selected line (inclusive).
		pattern_index: 1-based index of the container in its song, kept as
			source information on the symbol.
		source_instrument: Instrument recorded on the symbol; defaults to the
			first captured event's instrument.

	Raises:
		ConfigurationError: The range is empty or outside the container.
		ResourceUnavailable: The range holds no valid events.
	"""

	length = container.number_of_lines

	if start_line < 1 or end_line > length or start_line > end_line:
		raise breakfast.errors.ConfigurationError(
			f"Invalid selection {start_line}..{end_line} for a container of {length} lines"
		)

	captured: typing.List[typing.Tuple[int, breakfast.grid.NoteCell, int]] = []

	for line in range(start_line, end_line + 1):

		cell = container.get_event(track, line, 1)

		if not _is_event(cell):
			continue

		if not 0 <= cell.note <= breakfast.constants.MAX_NOTE:
			logger.warning(f"Invalid note value {cell.note} at line {line}, skipping")
			continue

		instrument = cell.instrument

		if instrument is None or instrument == breakfast.constants.EMPTY_INSTRUMENT:
			instrument = source_instrument if source_instrument is not None else container.active_instrument

		elif instrument > breakfast.constants.MAX_INSTRUMENT:
			logger.warning(f"Invalid instrument value {instrument} at line {line}, clamping to {breakfast.constants.MAX_INSTRUMENT}")
			instrument = breakfast.constants.MAX_INSTRUMENT

		captured.append((line, cell, instrument))

	if not captured:
		raise breakfast.errors.ResourceUnavailable(
			"No valid notes found in selection. Please select a range that contains valid notes."
		)

	events: typing.List[breakfast.timing.AnalyzedEvent] = []
	timing: typing.List[breakfast.break_sets.RelativeEvent] = []

	for index, (line, cell, instrument) in enumerate(captured):

		if index + 1 < len(captured):
			next_line, next_cell, _ = captured[index + 1]
			distance = breakfast.timing.distance_between(line, cell.delay, next_line, next_cell.delay)

		else:
			following = _next_event_after(container, track, end_line)

			if following is not None:
				distance = breakfast.timing.distance_between(line, cell.delay, following[0], following[1].delay)
			else:
				distance = breakfast.timing.distance_to_end(line, cell.delay, length)

		events.append(breakfast.timing.AnalyzedEvent(
			line = line,
			note = cell.note,
			channel = instrument,
			delay = cell.delay,
			distance = distance,
			is_last = index == len(captured) - 1,
			volume = cell.volume,
			panning = cell.panning,
			effect_id = cell.effect_id,
			effect_value = cell.effect_value
		))

		timing.append(breakfast.break_sets.RelativeEvent(
			relative_line = line - start_line + 1,
			delay = cell.delay,
			original_line = line,
			original_delay = cell.delay,
			original_distance = distance,
			note = cell.note,
			channel = instrument,
			source_instrument = instrument,
			volume = cell.volume,
			panning = cell.panning,
			effect_id = cell.effect_id,
			effect_value = cell.effect_value
		))

	break_set = breakfast.break_sets.BreakSet(
		start_line = start_line,
		end_line = end_line,
		events = tuple(events),
		relative_timing = tuple(timing)
	)

	symbol = breakfast.registry.Symbol(
		kind = breakfast.registry.SymbolKind.RANGE_CAPTURED,
		break_set = break_set,
		source_instrument = source_instrument if source_instrument is not None else timing[0].source_instrument,
		capture = breakfast.registry.CaptureInfo(
			source_pattern_index = pattern_index,
			source_track_index = track,
			capture_start_line = start_line,
			capture_end_line = end_line,
			pattern_length = length
		)
	)

	logger.info(f"Captured {len(timing)} events from lines {start_line}..{end_line} of track {track}")

	return symbol
