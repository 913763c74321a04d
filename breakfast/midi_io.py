"""Read and write phrases as standard MIDI files.

Lines map to a fixed fraction of a beat (``lines_per_beat``, 4 by default so
a line is a sixteenth note) and delays to 1/256 of a line. Reading quantizes
note-ons to the nearest delay tick; writing renders each event as a short
note of one line.
"""

import logging
import math
import typing

import mido

import breakfast.constants
import breakfast.grid
import breakfast.timing


logger = logging.getLogger(__name__)


# Output resolution. 480 ticks per beat divides evenly for 1, 2, 4, 8 and 16 lines per beat.
TICKS_PER_BEAT = 480
DEFAULT_VELOCITY = 100


def phrase_from_midi (path: str, lines_per_beat: int = 4, channel: typing.Optional[int] = None, name: str = "") -> breakfast.grid.Phrase:

	"""
	Load the note-ons of a MIDI file into a single-column phrase.

	Only the first note-on of each line is kept. Velocity becomes the volume
	column and the instrument column stays empty, so slice indices are later
	recovered from the notes.

	Parameters:
		path: MIDI file to read.
		lines_per_beat: Phrase lines per quarter note.
		channel: Only read notes on this MIDI channel (0-15); all channels if None.
		name: Name for the phrase; defaults to the file path.

	Raises:
		ValueError: ``lines_per_beat`` is not positive.
		OSError: The file cannot be read.
	"""

	if lines_per_beat < 1:
		raise ValueError("lines_per_beat must be positive")

	mid = mido.MidiFile(path)
	ticks_per_line = breakfast.constants.TICKS_PER_LINE * lines_per_beat / mid.ticks_per_beat

	notes: typing.List[typing.Tuple[int, int, int]] = []
	absolute = 0

	for message in mido.merge_tracks(mid.tracks):

		absolute += message.time

		if message.type != 'note_on' or message.velocity == 0:
			continue

		if channel is not None and message.channel != channel:
			continue

		if message.note >= breakfast.constants.NOTE_OFF:
			logger.warning(f"MIDI note {message.note} has no tracker equivalent, skipping")
			continue

		notes.append((round(absolute * ticks_per_line), message.note, message.velocity))

	end_ticks = round(absolute * ticks_per_line)
	last_line = breakfast.timing.from_ticks(max([end_ticks - 1] + [ticks for ticks, _, _ in notes]))[0]
	number_of_lines = max(1, last_line, math.ceil(end_ticks / breakfast.constants.TICKS_PER_LINE))

	phrase = breakfast.grid.Phrase(number_of_lines, name=name or path)
	dropped = 0

	for ticks, note, velocity in notes:

		line, delay = breakfast.timing.from_ticks(ticks)

		if phrase.line(line) is not None:
			dropped += 1
			continue

		phrase.set(line, breakfast.grid.NoteCell(note=note, delay=delay, volume=velocity))

	if dropped:
		logger.warning(f"{dropped} notes shared a line with an earlier note and were dropped")

	logger.info(f"Read {len(phrase)} events over {number_of_lines} lines from {path}")

	return phrase


def save_midi (
	source: typing.Union[breakfast.grid.Phrase, breakfast.grid.ContainerLike],
	path: str,
	lines_per_beat: int = 4,
	bpm: float = 120,
	track: int = 1,
	channel: int = 0
) -> None:

	"""
	Write a phrase (or one track of a container) to a type 1 MIDI file.

	Every note-on lasts one line. Volume values up to 127 become the
	velocity; other events use a default velocity.
	"""

	if lines_per_beat < 1:
		raise ValueError("lines_per_beat must be positive")

	if isinstance(source, breakfast.grid.Phrase):
		phrase = source
		events = phrase.events()
	else:
		phrase = breakfast.grid.Phrase.from_container(source, track)
		events = phrase.events()

	ticks_per_line = TICKS_PER_BEAT / lines_per_beat

	timed: typing.List[typing.Tuple[int, int, mido.Message]] = []

	for line, cell in events:

		if cell.note >= breakfast.constants.NOTE_OFF:
			continue

		start = round((line - 1 + cell.delay / breakfast.constants.TICKS_PER_LINE) * ticks_per_line)
		velocity = cell.volume if cell.volume is not None and cell.volume <= 127 else DEFAULT_VELOCITY

		# Note-offs sort before note-ons at the same tick.
		timed.append((start, 1, mido.Message('note_on', note=cell.note, velocity=velocity, channel=channel)))
		timed.append((start + round(ticks_per_line), 0, mido.Message('note_off', note=cell.note, velocity=0, channel=channel)))

	timed.sort(key=lambda item: (item[0], item[1]))

	mid = mido.MidiFile(type=1)
	mid.ticks_per_beat = TICKS_PER_BEAT

	midi_track = mido.MidiTrack()
	mid.tracks.append(midi_track)

	midi_track.append(mido.MetaMessage('track_name', name=phrase.name or "breakfast", time=0))
	midi_track.append(mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(bpm), time=0))

	last_tick = 0

	for tick, _, message in timed:
		message.time = tick - last_tick
		midi_track.append(message)
		last_tick = tick

	end_tick = round(phrase.number_of_lines * ticks_per_line)
	midi_track.append(mido.MetaMessage('end_of_track', time=max(0, end_tick - last_tick)))

	mid.save(path)

	logger.info(f"Saved {len(timed) // 2} notes to {path}")
