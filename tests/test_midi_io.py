import pathlib
import typing

import mido
import pytest

import breakfast.grid
import breakfast.midi_io


def _write_midi (path: pathlib.Path, notes: typing.List[typing.Tuple[int, int, int]], ticks_per_beat: int = 480) -> None:

	"""Write ``(tick, note, velocity)`` note-ons, each one 60 ticks long."""

	timed = []

	for tick, note, velocity in notes:
		timed.append((tick, mido.Message('note_on', note=note, velocity=velocity)))
		timed.append((tick + 60, mido.Message('note_off', note=note, velocity=0)))

	timed.sort(key=lambda item: item[0])

	mid = mido.MidiFile(ticks_per_beat=ticks_per_beat)
	track = mido.MidiTrack()
	mid.tracks.append(track)

	last = 0

	for tick, message in timed:
		track.append(message.copy(time=tick - last))
		last = tick

	mid.save(str(path))


def test_phrase_from_midi (tmp_path: pathlib.Path) -> None:

	"""At four lines per beat a line is 120 ticks of a 480 PPQN file."""

	path = tmp_path / "break.mid"
	_write_midi(path, [(0, 36, 90), (240, 38, 100), (540, 42, 80)])

	phrase = breakfast.midi_io.phrase_from_midi(str(path))

	assert [(line, cell.note, cell.delay, cell.volume) for line, cell in phrase.events()] == [
		(1, 36, 0, 90),
		(3, 38, 0, 100),
		(5, 42, 128, 80),
	]
	assert all(cell.instrument is None for _, cell in phrase.events())
	assert phrase.number_of_lines >= 5


def test_only_first_note_per_line_is_kept (tmp_path: pathlib.Path) -> None:

	path = tmp_path / "flam.mid"
	_write_midi(path, [(0, 36, 90), (30, 40, 90), (240, 38, 90)])

	phrase = breakfast.midi_io.phrase_from_midi(str(path))

	assert [cell.note for _, cell in phrase.events()] == [36, 38]


def test_notes_without_tracker_equivalent_are_skipped (tmp_path: pathlib.Path) -> None:

	path = tmp_path / "high.mid"
	_write_midi(path, [(0, 125, 90), (240, 38, 90)])

	phrase = breakfast.midi_io.phrase_from_midi(str(path))

	assert [(line, cell.note) for line, cell in phrase.events()] == [(3, 38)]


def test_invalid_lines_per_beat (tmp_path: pathlib.Path) -> None:

	with pytest.raises(ValueError):
		breakfast.midi_io.phrase_from_midi(str(tmp_path / "any.mid"), lines_per_beat=0)


def test_save_midi (tmp_path: pathlib.Path) -> None:

	phrase = breakfast.grid.Phrase(8, name="AB")
	phrase.set(1, breakfast.grid.NoteCell(note=37, volume=0x40))
	phrase.set(3, breakfast.grid.NoteCell(note=39, delay=128))

	path = tmp_path / "out.mid"
	breakfast.midi_io.save_midi(phrase, str(path))

	mid = mido.MidiFile(str(path))

	assert mid.ticks_per_beat == breakfast.midi_io.TICKS_PER_BEAT

	absolute = 0
	note_ons = []
	names = []

	for message in mid.tracks[0]:
		absolute += message.time
		if message.type == 'note_on':
			note_ons.append((absolute, message.note, message.velocity))
		elif message.type == 'track_name':
			names.append(message.name)

	assert note_ons == [(0, 37, 0x40), (300, 39, breakfast.midi_io.DEFAULT_VELOCITY)]
	assert names == ["AB"]
	assert absolute == 8 * 120


def test_saved_phrase_reads_back (tmp_path: pathlib.Path) -> None:

	phrase = breakfast.grid.Phrase(8)
	phrase.set(1, breakfast.grid.NoteCell(note=37, volume=0x40))
	phrase.set(3, breakfast.grid.NoteCell(note=39, delay=128, volume=0x50))

	path = tmp_path / "out.mid"
	breakfast.midi_io.save_midi(phrase, str(path))

	restored = breakfast.midi_io.phrase_from_midi(str(path))

	assert restored.number_of_lines == 8
	assert [(line, cell.note, cell.delay, cell.volume) for line, cell in restored.events()] == [
		(1, 37, 0, 0x40),
		(3, 39, 128, 0x50),
	]


def test_save_container_track (tmp_path: pathlib.Path) -> None:

	container = breakfast.grid.Container(number_of_lines=4, track_count=2)
	container.set_event(2, 2, 1, breakfast.grid.NoteCell(note=40))

	path = tmp_path / "track.mid"
	breakfast.midi_io.save_midi(container, str(path), track=2)

	restored = breakfast.midi_io.phrase_from_midi(str(path))

	assert [(line, cell.note) for line, cell in restored.events()] == [(2, 40)]
