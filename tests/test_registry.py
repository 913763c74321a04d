import pathlib
import typing

import pytest
import yaml

import breakfast.break_sets
import breakfast.errors
import breakfast.labels
import breakfast.registry


# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------

def test_assign_uses_keys_in_order (registry: breakfast.registry.SymbolRegistry) -> None:

	assert registry.keys() == ["A", "B"]
	assert registry.get("A").kind is breakfast.registry.SymbolKind.BREAKPOINT_DERIVED
	assert registry.get("A").source_instrument == 0
	assert registry.available(3) == ["C", "D", "E"]


def test_reassign_releases_previous_keys (registry: breakfast.registry.SymbolRegistry, eight_line_sets) -> None:

	"""Assigning an instrument again replaces its previous symbols."""

	registry.assign(1, eight_line_sets)
	keys = registry.assign(0, eight_line_sets[:1])

	assert keys == ["A"]
	assert registry.keys() == ["A", "C", "D"]
	assert registry.keys_for_instrument(0) == ["A"]
	assert registry.keys_for_instrument(1) == ["C", "D"]


def test_exhausted_namespace_leaves_registry_unchanged (eight_line_sets) -> None:

	registry = breakfast.registry.SymbolRegistry(keys="AB")
	registry.assign(0, eight_line_sets)

	with pytest.raises(breakfast.errors.ConfigurationError):
		registry.assign(1, eight_line_sets)

	assert registry.keys_for_instrument(0) == ["A", "B"]


def test_put_rejects_keys_outside_namespace (registry: breakfast.registry.SymbolRegistry) -> None:

	with pytest.raises(breakfast.errors.ConfigurationError):
		registry.put("U", registry.get("A"))


def test_remove_and_clear (registry: breakfast.registry.SymbolRegistry) -> None:

	removed = registry.remove("A")

	assert removed is not None
	assert "A" not in registry
	assert registry.remove("A") is None

	assert registry.clear() == 1
	assert len(registry) == 0


def test_clear_by_kind (registry: breakfast.registry.SymbolRegistry) -> None:

	captured = breakfast.registry.Symbol(
		kind = breakfast.registry.SymbolKind.RANGE_CAPTURED,
		break_set = registry.get("A").break_set
	)

	key = registry.add_captured(captured)

	assert key == "C"
	assert registry.clear(breakfast.registry.SymbolKind.BREAKPOINT_DERIVED) == 2
	assert registry.keys() == ["C"]


def test_add_captured_when_full (eight_line_sets) -> None:

	registry = breakfast.registry.SymbolRegistry(keys="AB")
	registry.assign(0, eight_line_sets)

	symbol = breakfast.registry.Symbol(kind=breakfast.registry.SymbolKind.RANGE_CAPTURED, break_set=eight_line_sets[0])

	with pytest.raises(breakfast.errors.ConfigurationError):
		registry.add_captured(symbol)


# ---------------------------------------------------------------------------
# Notes and display
# ---------------------------------------------------------------------------

def test_note_for_breakpoint_and_captured (registry: breakfast.registry.SymbolRegistry) -> None:

	"""Breakpoint symbols trigger 36 + slice; captured symbols replay their notes."""

	symbol = registry.get("B")
	event = symbol.break_set.relative_timing[0]

	assert symbol.note_for(event) == 36 + 2

	captured = breakfast.registry.Symbol(kind=breakfast.registry.SymbolKind.RANGE_CAPTURED, break_set=symbol.break_set)

	assert captured.note_for(event) == 38


def test_describe_breakpoint_symbol (eight_line_sets) -> None:

	registry = breakfast.registry.SymbolRegistry()
	registry.assign(0, eight_line_sets, {"03": breakfast.labels.SliceLabel("snare", breakpoint=True)})

	assert registry.get("B").describe() == ["05-snare-d00-I00", "07-_____-d00-I00"]


def test_describe_captured_symbol (eight_line_sets) -> None:

	symbol = breakfast.registry.Symbol(
		kind = breakfast.registry.SymbolKind.RANGE_CAPTURED,
		break_set = eight_line_sets[0],
		capture = breakfast.registry.CaptureInfo(
			source_pattern_index = 2,
			source_track_index = 3,
			capture_start_line = 1,
			capture_end_line = 4
		)
	)

	assert symbol.describe()[0] == "01-C#3-d00-I00-P01:T02"


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

def test_snapshot_schema (registry: breakfast.registry.SymbolRegistry) -> None:

	snapshot = registry.save_snapshot()
	record = snapshot["B"]

	assert record["kind"] == "breakpoint_created"
	assert record["instrument_reference"] == 0
	assert record["timing"][0]["channel_value"] == 2
	assert record["timing"][0]["relative_line"] == 1
	assert record["timing"][0]["original_distance"] == 512
	assert "capture" not in record
	assert "source_pattern_index" not in record


def test_snapshot_round_trip (registry: breakfast.registry.SymbolRegistry) -> None:

	registry.add_captured(breakfast.registry.Symbol(
		kind = breakfast.registry.SymbolKind.RANGE_CAPTURED,
		break_set = registry.get("A").break_set,
		source_instrument = 4,
		capture = breakfast.registry.CaptureInfo(1, 1, 1, 4, pattern_length=16)
	))

	restored = breakfast.registry.SymbolRegistry()
	restored.load_snapshot(registry.save_snapshot())

	assert restored.keys() == registry.keys()

	for key in registry.keys():
		assert restored.get(key) == registry.get(key)


def test_snapshot_capture_fields_are_record_fields (registry: breakfast.registry.SymbolRegistry) -> None:

	key = registry.add_captured(breakfast.registry.Symbol(
		kind = breakfast.registry.SymbolKind.RANGE_CAPTURED,
		break_set = registry.get("A").break_set,
		capture = breakfast.registry.CaptureInfo(2, 3, 5, 12)
	))

	record = registry.save_snapshot()[key]

	assert record["kind"] == "range_captured"
	assert record["source_pattern_index"] == 2
	assert record["source_track_index"] == 3
	assert record["capture_start_line"] == 5
	assert record["capture_end_line"] == 12
	assert "pattern_length" not in record
	assert "capture" not in record


def test_snapshot_with_nested_capture_still_loads (registry: breakfast.registry.SymbolRegistry) -> None:

	"""Snapshots that group the capture fields under ``capture`` load the same."""

	key = registry.add_captured(breakfast.registry.Symbol(
		kind = breakfast.registry.SymbolKind.RANGE_CAPTURED,
		break_set = registry.get("A").break_set,
		capture = breakfast.registry.CaptureInfo(1, 2, 1, 4, pattern_length=16)
	))

	record = registry.save_snapshot()[key]
	names = ("source_pattern_index", "source_track_index", "capture_start_line", "capture_end_line", "pattern_length")
	nested = {name: value for name, value in record.items() if name not in names}
	nested["capture"] = {name: record[name] for name in names}

	restored = breakfast.registry.SymbolRegistry()
	restored.load_snapshot({key: nested})

	assert restored.get(key).capture == breakfast.registry.CaptureInfo(1, 2, 1, 4, pattern_length=16)


def test_snapshot_without_events_rebuilds_them (registry: breakfast.registry.SymbolRegistry) -> None:

	"""Records carrying only timing entries still load."""

	snapshot = registry.save_snapshot()

	for record in snapshot.values():
		del record["events"]

	restored = breakfast.registry.SymbolRegistry()
	restored.load_snapshot(snapshot)

	assert restored.get("B").break_set.relative_timing == registry.get("B").break_set.relative_timing
	assert [event.line for event in restored.get("B").break_set.events] == [5, 7]


def test_invalid_snapshot_leaves_registry_unchanged (registry: breakfast.registry.SymbolRegistry) -> None:

	with pytest.raises(breakfast.errors.ConfigurationError):
		registry.load_snapshot({"A": {"kind": "nonsense"}})

	with pytest.raises(breakfast.errors.ConfigurationError):
		registry.load_snapshot({"%": registry.save_snapshot()["A"]})

	assert registry.keys() == ["A", "B"]


def test_save_and_load_yaml (registry: breakfast.registry.SymbolRegistry, tmp_path: pathlib.Path) -> None:

	path = tmp_path / "symbols.yaml"
	registry.save(str(path))

	with open(path) as f:
		assert set(yaml.safe_load(f)) == {"A", "B"}

	restored = breakfast.registry.SymbolRegistry()
	restored.load(str(path))

	assert restored.get("A") == registry.get("A")


def test_load_missing_file_gives_empty_registry (tmp_path: pathlib.Path) -> None:

	registry = breakfast.registry.SymbolRegistry()
	registry.load(str(tmp_path / "missing.yaml"))

	assert len(registry) == 0
