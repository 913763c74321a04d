"""The symbol registry: single-character names for placeable break patterns.

A symbol is either derived from a labelled phrase's break sets
(:attr:`SymbolKind.BREAKPOINT_DERIVED`) or captured directly from a range of
a container (:attr:`SymbolKind.RANGE_CAPTURED`). The registry is an owned
store object; the session and the placement engine receive it by reference.

Snapshots use a plain mapping from symbol key to record so they can be
written as YAML (see :meth:`SymbolRegistry.save`) or handed to any other
encoder::

	{
		"A": {
			"kind": "breakpoint_created",
			"instrument_reference": 0,
			"start_line": 1,
			"end_line": 4,
			"timing": [
				{"channel_value": 0, "relative_line": 1, "delay": 0,
				 "original_distance": 512, "source_instrument_reference": 0, ...},
			],
			...
		},
		"G": {
			"kind": "range_captured",
			"source_pattern_index": 1,
			"source_track_index": 2,
			"capture_start_line": 1,
			"capture_end_line": 16,
			...
		},
	}
"""

import dataclasses
import enum
import logging
import os
import typing

import yaml

import breakfast.break_sets
import breakfast.constants
import breakfast.errors
import breakfast.labels
import breakfast.timing


logger = logging.getLogger(__name__)


class SymbolKind (enum.Enum):

	"""How a symbol was created."""

	BREAKPOINT_DERIVED = "breakpoint_created"
	RANGE_CAPTURED = "range_captured"


def note_for (kind: SymbolKind, event: breakfast.break_sets.RelativeEvent) -> int:

	"""
	The note value to write for an event of a symbol of ``kind``.

	Breakpoint-derived symbols trigger the slice (``36 + slice``);
	range-captured symbols replay the captured note.
	"""

	if kind is SymbolKind.BREAKPOINT_DERIVED:
		return breakfast.constants.SLICE_BASE_NOTE + event.channel

	if kind is SymbolKind.RANGE_CAPTURED:
		return event.note if event.note is not None else breakfast.constants.DEFAULT_NOTE

	raise ValueError(f"Unknown symbol kind: {kind}")


@dataclasses.dataclass (frozen=True)
class CaptureInfo:

	"""Where a range-captured symbol came from."""

	source_pattern_index: int
	source_track_index: int
	capture_start_line: int
	capture_end_line: int
	pattern_length: typing.Optional[int] = None


@dataclasses.dataclass
class Symbol:

	"""
	A registry entry: a break set plus how to place it.

	Attributes:
		kind: Breakpoint-derived or range-captured.
		break_set: The events and their relative timing.
		source_instrument: Instrument the events were taken from.
		labels: Slice labels at the time the symbol was assigned
			(breakpoint-derived symbols only).
		capture: Source location (range-captured symbols only).
	"""

	kind: SymbolKind
	break_set: breakfast.break_sets.BreakSet
	source_instrument: int = 0
	labels: typing.Dict[str, breakfast.labels.SliceLabel] = dataclasses.field(default_factory=dict)
	capture: typing.Optional[CaptureInfo] = None

	@property
	def is_empty (self) -> bool:

		return self.break_set.is_empty

	def note_for (self, event: breakfast.break_sets.RelativeEvent) -> int:

		"""The note value to write for one of this symbol's events."""

		return note_for(self.kind, event)

	def describe (self) -> typing.List[str]:

		"""
		List this symbol's events for display.

		Breakpoint-derived symbols show the source line and the slice label;
		range-captured symbols show the captured note and where it came from.
		"""

		rows: typing.List[str] = []

		if self.kind is SymbolKind.BREAKPOINT_DERIVED:

			for event in self.break_set.events:
				label = self.labels.get(breakfast.labels.slice_key(event.channel), breakfast.labels.SliceLabel()).label
				rows.append(breakfast.labels.format_break_label(event.line, event.delay, label, self.source_instrument))

		elif self.kind is SymbolKind.RANGE_CAPTURED:

			if self.capture is not None:
				source = f"P{self.capture.source_pattern_index - 1:02X}:T{self.capture.source_track_index - 1:02X}"
			else:
				source = "P??:T??"

			for event in self.break_set.relative_timing:
				rows.append(
					f"{event.relative_line:02d}-{breakfast.labels.note_name(event.note)}"
					f"-d{event.delay:02X}-I{event.source_instrument:02X}-{source}"
				)

		return rows


class SymbolRegistry:

	"""
	Owned mapping from symbol keys (``A``-``T``, ``0``-``9``) to symbols.
	"""

	def __init__ (self, keys: typing.Sequence[str] = breakfast.constants.REGISTRY_SYMBOLS) -> None:

		"""Create an empty registry over the given key namespace."""

		self.namespace: typing.Tuple[str, ...] = tuple(keys)
		self._symbols: typing.Dict[str, Symbol] = {}

	def __contains__ (self, key: object) -> bool:

		return key in self._symbols

	def __len__ (self) -> int:

		return len(self._symbols)

	def keys (self) -> typing.List[str]:

		"""Used keys, in namespace order."""

		return [key for key in self.namespace if key in self._symbols]

	def items (self) -> typing.List[typing.Tuple[str, Symbol]]:

		return [(key, self._symbols[key]) for key in self.keys()]

	def get (self, key: str) -> typing.Optional[Symbol]:

		return self._symbols.get(key)

	def put (self, key: str, symbol: Symbol) -> None:

		"""Store ``symbol`` under ``key``, replacing any existing entry."""

		if key not in self.namespace:
			raise breakfast.errors.ConfigurationError(
				f"Invalid symbol key {key!r}. Valid keys are: {''.join(self.namespace)}"
			)

		self._symbols[key] = symbol

	def remove (self, key: str) -> typing.Optional[Symbol]:

		return self._symbols.pop(key, None)

	def clear (self, kind: typing.Optional[SymbolKind] = None) -> int:

		"""Remove every symbol (or every symbol of one kind) and return how many went."""

		doomed = [key for key, symbol in self._symbols.items() if kind is None or symbol.kind is kind]

		for key in doomed:
			del self._symbols[key]

		if doomed:
			logger.info(f"Cleared {len(doomed)} symbols from registry")

		return len(doomed)

	def available (self, count: int) -> typing.List[str]:

		"""Up to ``count`` unused keys, in namespace order."""

		return [key for key in self.namespace if key not in self._symbols][:count]

	def keys_for_instrument (self, instrument: int, kind: SymbolKind = SymbolKind.BREAKPOINT_DERIVED) -> typing.List[str]:

		return [key for key, symbol in self.items() if symbol.kind is kind and symbol.source_instrument == instrument]

	def assign (
		self,
		instrument: int,
		break_sets: typing.Sequence[breakfast.break_sets.BreakSet],
		labels: typing.Optional[typing.Dict[str, breakfast.labels.SliceLabel]] = None,
		replace: bool = True
	) -> typing.List[str]:

		"""
		Give each break set of an instrument its own symbol key.

		With ``replace`` (the default) the instrument's previous
		breakpoint-derived symbols are released first.

		Raises:
			ConfigurationError: Not enough free keys; the registry is unchanged.
		"""

		released = self.keys_for_instrument(instrument) if replace else []
		free = [key for key in self.namespace if key not in self._symbols or key in released]

		if len(free) < len(break_sets):
			raise breakfast.errors.ConfigurationError(
				f"Not enough available symbols. Need {len(break_sets)}, only {len(free)} available."
			)

		for key in released:
			del self._symbols[key]

		assigned = free[:len(break_sets)]

		for key, break_set in zip(assigned, break_sets):
			self._symbols[key] = Symbol(
				kind = SymbolKind.BREAKPOINT_DERIVED,
				break_set = break_set,
				source_instrument = instrument,
				labels = dict(labels or {})
			)

		logger.info(f"Assigned symbols {', '.join(assigned)} to instrument {instrument}")

		return assigned

	def add_captured (self, symbol: Symbol) -> str:

		"""
		Store a range-captured symbol under the next free key.

		Raises:
			ConfigurationError: The namespace is exhausted.
		"""

		free = self.available(1)

		if not free:
			raise breakfast.errors.ConfigurationError("No available symbols left. Please clear some symbols first.")

		self._symbols[free[0]] = symbol

		return free[0]

	def save_snapshot (self) -> typing.Dict[str, typing.Dict[str, typing.Any]]:

		"""Encode the registry as plain dictionaries and lists."""

		return {key: _encode_symbol(symbol) for key, symbol in self.items()}

	def load_snapshot (self, snapshot: typing.Dict[str, typing.Dict[str, typing.Any]]) -> None:

		"""
		Replace the registry contents with a decoded snapshot.

		Raises:
			ConfigurationError: A key or record is invalid; the registry is unchanged.
		"""

		decoded: typing.Dict[str, Symbol] = {}

		for key, record in (snapshot or {}).items():

			key = str(key)

			if key not in self.namespace:
				raise breakfast.errors.ConfigurationError(f"Invalid symbol key {key!r} in snapshot")

			try:
				decoded[key] = _decode_symbol(record)
			except (KeyError, TypeError, ValueError) as exc:
				raise breakfast.errors.ConfigurationError(f"Invalid record for symbol {key!r}: {exc}") from exc

		self._symbols = decoded

	def save (self, path: str) -> None:

		"""Write a YAML snapshot to ``path``."""

		with open(path, "w") as f:
			yaml.safe_dump(self.save_snapshot(), f, sort_keys=False)

		logger.info(f"Saved symbol registry with {len(self)} symbols to {path}")

	def load (self, path: str) -> None:

		"""
		Load a YAML snapshot from ``path``; a missing file leaves an empty registry.
		"""

		if not os.path.exists(path):
			logger.info(f"No saved symbol registry at {path}, starting with an empty registry")
			self._symbols = {}
			return

		with open(path, "r") as f:
			self.load_snapshot(yaml.safe_load(f) or {})

		logger.info(f"Loaded symbol registry with {len(self)} symbols from {path}")


_OPTIONAL_FIELDS = ("volume", "panning", "effect_id", "effect_value")


def _encode_symbol (symbol: Symbol) -> typing.Dict[str, typing.Any]:

	record: typing.Dict[str, typing.Any] = {
		"kind": symbol.kind.value,
		"instrument_reference": symbol.source_instrument,
		"start_line": symbol.break_set.start_line,
		"end_line": symbol.break_set.end_line,
		"timing": [],
		"events": [],
	}

	for event in symbol.break_set.relative_timing:

		entry: typing.Dict[str, typing.Any] = {
			"channel_value": event.channel,
			"relative_line": event.relative_line,
			"delay": event.delay,
			"original_distance": event.original_distance,
			"source_instrument_reference": event.source_instrument,
			"note": event.note,
			"original_line": event.original_line,
			"original_delay": event.original_delay,
		}

		for name in _OPTIONAL_FIELDS:
			if getattr(event, name) is not None:
				entry[name] = getattr(event, name)

		record["timing"].append(entry)

	for analyzed in symbol.break_set.events:
		record["events"].append(dataclasses.asdict(analyzed))

	if symbol.labels:
		record["labels"] = {
			key: {"label": label.label, "breakpoint": label.breakpoint}
			for key, label in symbol.labels.items()
		}

	if symbol.capture is not None:
		for name, value in dataclasses.asdict(symbol.capture).items():
			if value is not None:
				record[name] = value

	return record


def _decode_symbol (record: typing.Dict[str, typing.Any]) -> Symbol:

	kind = SymbolKind(record["kind"])
	instrument = int(record.get("instrument_reference", 0))

	timing: typing.List[breakfast.break_sets.RelativeEvent] = []

	for entry in record.get("timing", []):

		optional = {name: entry[name] for name in _OPTIONAL_FIELDS if entry.get(name) is not None}

		timing.append(breakfast.break_sets.RelativeEvent(
			relative_line = int(entry["relative_line"]),
			delay = int(entry["delay"]),
			original_line = int(entry.get("original_line", entry["relative_line"])),
			original_delay = int(entry.get("original_delay", entry["delay"])),
			original_distance = int(entry["original_distance"]),
			note = int(entry.get("note", breakfast.constants.DEFAULT_NOTE)),
			channel = int(entry["channel_value"]),
			source_instrument = int(entry.get("source_instrument_reference", instrument)),
			**optional
		))

	events = tuple(breakfast.timing.AnalyzedEvent(**event) for event in record.get("events", []))

	if not events and timing:
		# Older snapshots carry timing only; rebuild the source events from it.
		events = tuple(
			breakfast.timing.AnalyzedEvent(
				line = event.original_line,
				note = event.note,
				channel = event.channel,
				delay = event.original_delay,
				distance = event.original_distance,
				is_last = index == len(timing) - 1
			)
			for index, event in enumerate(timing)
		)

	break_set = breakfast.break_sets.BreakSet(
		start_line = int(record.get("start_line", 1)),
		end_line = int(record.get("end_line", timing[-1].relative_line if timing else 1)),
		events = events,
		relative_timing = tuple(timing)
	)

	labels = {
		str(key): breakfast.labels.SliceLabel(label=value.get("label", ""), breakpoint=bool(value.get("breakpoint", False)))
		for key, value in (record.get("labels") or {}).items()
	}

	capture = _decode_capture(record)

	return Symbol(
		kind = kind,
		break_set = break_set,
		source_instrument = instrument,
		labels = labels,
		capture = capture
	)


def _decode_capture (record: typing.Dict[str, typing.Any]) -> typing.Optional[CaptureInfo]:

	"""Read capture fields from the record itself, or from a nested ``capture`` mapping."""

	source = record if "source_pattern_index" in record else record.get("capture")

	if not source:
		return None

	pattern_length = source.get("pattern_length")

	return CaptureInfo(
		source_pattern_index = int(source["source_pattern_index"]),
		source_track_index = int(source["source_track_index"]),
		capture_start_line = int(source["capture_start_line"]),
		capture_end_line = int(source["capture_end_line"]),
		pattern_length = int(pattern_length) if pattern_length is not None else None
	)
