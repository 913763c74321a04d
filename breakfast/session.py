"""A working session: registry, labels, placement engine and settings in one place.

The session is what a host (or the command line) talks to. It owns its
registry and engine; nothing is global.

Example:
	```python
	session = breakfast.session.Session()

	session.set_source(0, phrase)
	session.assign_labels(0, {
		"01": SliceLabel("kick"),
		"03": SliceLabel("snare", breakpoint=True),
	})

	container = breakfast.grid.Container(64)
	session.attach(container)

	result = session.place_break_string(0, "BA AB", container)
	```
"""

import logging
import typing

import breakfast.break_sets
import breakfast.break_string
import breakfast.capture
import breakfast.config
import breakfast.constants
import breakfast.errors
import breakfast.grid
import breakfast.labels
import breakfast.overflow
import breakfast.overwrite
import breakfast.placement
import breakfast.registry
import breakfast.stitcher
import breakfast.timing


logger = logging.getLogger(__name__)


class Session:

	"""
	Wires a symbol registry, per-instrument slice labels and a placement engine.
	"""

	def __init__ (
		self,
		settings: typing.Optional[breakfast.config.Settings] = None,
		registry: typing.Optional[breakfast.registry.SymbolRegistry] = None
	) -> None:

		self.settings = settings or breakfast.config.Settings()
		self.registry = registry if registry is not None else breakfast.registry.SymbolRegistry()

		self.engine = breakfast.placement.PlacementEngine(
			self.registry,
			overflow = self.settings.overflow,
			overwrite = self.settings.overwrite,
			instrument_source = self.settings.instrument_source
		)

		self.sources: typing.Dict[int, breakfast.grid.Phrase] = {}
		self.labels: typing.Dict[int, typing.Dict[str, breakfast.labels.SliceLabel]] = {}
		self.composites: typing.Dict[str, str] = {}

	def set_source (self, instrument: int, phrase: breakfast.grid.Phrase) -> None:

		"""Set the phrase breaks for ``instrument`` are cut from."""

		self.sources[instrument] = phrase

	def attach (self, container: breakfast.grid.Container) -> None:

		"""Listen to a container's cursor so manual cursor moves end the placement chain."""

		container.on_cursor_moved(self.engine.on_cursor_moved)

	def assign_labels (
		self,
		instrument: int,
		labels: typing.Dict[str, breakfast.labels.SliceLabel],
		phrase: typing.Optional[breakfast.grid.Phrase] = None
	) -> typing.List[str]:

		"""
		Save slice labels for an instrument and register its break sets as symbols.

		The instrument's previous breakpoint-derived symbols are released first.

		Returns:
			The assigned symbol keys, one per break set in order.

		Raises:
			ResourceUnavailable: No source phrase or no breakpoint labels.
			ConfigurationError: Too many boundaries or not enough free keys.
		"""

		phrase = phrase or self.sources.get(instrument)

		if phrase is None:
			raise breakfast.errors.ResourceUnavailable(f"No source phrase for instrument {instrument}")

		channels = breakfast.labels.breakpoint_channels(labels)

		if not channels:
			raise breakfast.errors.ResourceUnavailable("No breakpoints defined. Mark at least one slice as a breakpoint.")

		analyzed = breakfast.timing.analyze(phrase)
		sets = breakfast.break_sets.build(analyzed, channels, source_instrument=instrument)

		keys = self.registry.assign(instrument, sets, labels)

		self.sources[instrument] = phrase
		self.labels[instrument] = dict(labels)

		return keys

	def break_sets (self, instrument: int) -> typing.List[breakfast.break_sets.BreakSet]:

		"""
		The instrument's break sets, in order, as stored in the registry.

		Raises:
			ResourceUnavailable: The instrument has no assigned break sets.
		"""

		keys = self.registry.keys_for_instrument(instrument)

		if not keys:
			raise breakfast.errors.ResourceUnavailable(
				f"No break sets for instrument {instrument}. Please assign breakpoints first."
			)

		return [self.registry.get(key).break_set for key in keys]

	def define_composite (self, symbol: str, value: str) -> None:

		"""
		Define (or with an empty ``value``, remove) a composite symbol ``U``..``Z``.

		Raises:
			ConfigurationError: The name is not a composite symbol or the value
				uses characters outside ``A``..``F``.
		"""

		symbol = symbol.upper()

		if symbol not in breakfast.constants.COMPOSITE_SYMBOLS:
			raise breakfast.break_string.BreakStringError(
				f"Invalid composite name '{symbol}'. Composite symbols are: {', '.join(breakfast.constants.COMPOSITE_SYMBOLS)}"
			)

		if not value:
			self.composites.pop(symbol, None)
			return

		if not breakfast.break_string.validate_composite(value, breakfast.constants.BREAK_SET_SYMBOLS):
			raise breakfast.break_string.BreakStringError(
				f"Invalid composite symbol '{symbol}': value '{value}' contains invalid base symbols"
			)

		self.composites[symbol] = value

	def _permutation (self, instrument: int, text: str) -> typing.List[breakfast.break_sets.BreakSet]:

		sets = self.break_sets(instrument)
		order = breakfast.break_string.parse(text, len(sets), self.composites)

		return [sets[index] for index in order]

	def capture_selection (
		self,
		container: breakfast.grid.ContainerLike,
		start_line: int,
		end_line: int,
		track: typing.Optional[int] = None,
		pattern_index: int = 1
	) -> str:

		"""
		Capture a line range of a container and store it under the next free key.

		``track`` defaults to the cursor's track.

		Raises:
			ConfigurationError: Invalid range or no free key.
			ResourceUnavailable: The range holds no events.
		"""

		if track is None:
			track = container.cursor_position[0]

		symbol = breakfast.capture.capture_range(container, track, start_line, end_line, pattern_index=pattern_index)
		key = self.registry.add_captured(symbol)

		logger.info(f"Captured selection as symbol {key}")

		return key

	def place_symbol (
		self,
		key: str,
		container: typing.Optional[breakfast.grid.ContainerLike],
		overflow: typing.Optional[breakfast.overflow.OverflowPolicy] = None,
		overwrite: typing.Optional[breakfast.overwrite.OverwritePolicy] = None,
		instrument_source: typing.Optional[breakfast.placement.InstrumentSource] = None
	) -> breakfast.placement.PlacementResult:

		"""Place a registry symbol at the cursor (or after the previous placement)."""

		return self.engine.place(key, container, overflow, overwrite, instrument_source)

	def place_break_string (
		self,
		instrument: int,
		text: str,
		container: typing.Optional[breakfast.grid.ContainerLike],
		overflow: typing.Optional[breakfast.overflow.OverflowPolicy] = None,
		overwrite: typing.Optional[breakfast.overwrite.OverwritePolicy] = None,
		instrument_source: typing.Optional[breakfast.placement.InstrumentSource] = None
	) -> breakfast.placement.PlacementResult:

		"""
		Place an instrument's break sets in the order a break string gives.

		Parse errors and missing break sets come back as a failed result.
		"""

		try:
			permutation = self._permutation(instrument, text)
		except breakfast.errors.BreakfastError as exc:
			logger.warning(f"Cannot place break string {text!r}: {exc}")
			return breakfast.placement.PlacementResult.failure(exc)

		return self.engine.place(permutation, container, overflow, overwrite, instrument_source)

	def commit_break_string (self, instrument: int, text: str, name: str = "") -> breakfast.grid.Phrase:

		"""
		Render a break string into a new phrase.

		Raises:
			ConfigurationError: The break string is invalid.
			ResourceUnavailable: The instrument has no break sets.
		"""

		timeline = breakfast.stitcher.stitch(self._permutation(instrument, text))

		return breakfast.stitcher.render_phrase(timeline, min_lines=self.settings.min_phrase_lines, name=name or text)

	def clear_symbols (self, kind: typing.Optional[breakfast.registry.SymbolKind] = None) -> int:

		"""Clear registry symbols (all, or one kind) and end the placement chain."""

		count = self.registry.clear(kind)

		if kind in (None, breakfast.registry.SymbolKind.BREAKPOINT_DERIVED):
			self.labels.clear()

		self.engine.reset()

		return count

	def save (self, path: typing.Optional[str] = None) -> None:

		self.registry.save(path or self.settings.registry_path)

	def load (self, path: typing.Optional[str] = None) -> None:

		"""Load the registry and rebuild per-instrument labels from its symbols."""

		self.registry.load(path or self.settings.registry_path)
		self.labels.clear()

		for _, symbol in self.registry.items():
			if symbol.kind is breakfast.registry.SymbolKind.BREAKPOINT_DERIVED and symbol.labels:
				self.labels.setdefault(symbol.source_instrument, dict(symbol.labels))

		self.engine.reset()
