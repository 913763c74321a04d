import logging

import breakfast
import breakfast.midi_io
import breakfast.overflow
import breakfast.overwrite

logging.basicConfig(level=logging.INFO)

KICK = 0
SNARE = 1
HAT = 2

# A one-bar break at four lines per beat, slices in the instrument column.
# The snare on line 9 is pushed late and the last hat is a flam.
phrase = breakfast.Phrase(16, name="amen-ish")

for line, slice_index, delay in [
	(1, KICK, 0x00),
	(3, HAT, 0x00),
	(5, SNARE, 0x00),
	(7, HAT, 0x20),
	(9, KICK, 0x00),
	(10, SNARE, 0x40),
	(11, KICK, 0x00),
	(13, SNARE, 0x00),
	(15, HAT, 0xC0),
]:
	phrase.set(line, breakfast.NoteCell(note=48, instrument=slice_index, delay=delay))

session = breakfast.Session()
session.set_source(0, phrase)

# Every kick after the first starts a new break set: three sets, A to C.
keys = session.assign_labels(0, {
	"01": breakfast.SliceLabel("kick", breakpoint=True),
	"02": breakfast.SliceLabel("snare"),
	"03": breakfast.SliceLabel("hat"),
})

for key in keys:
	for row in session.registry.get(key).describe():
		logging.info(f"{key}: {row}")

container = breakfast.Container(number_of_lines=32, column_count=4)
session.attach(container)

# Chain two variations; the second continues exactly where the first ends.
session.place_break_string(0, "ABAC", container)
result = session.place_break_string(
	0,
	"CCBA",
	container,
	overflow = breakfast.overflow.OverflowPolicy.LOOP,
	overwrite = breakfast.overwrite.OverwritePolicy.REPLACE
)

logging.info(f"Placed {result.placed} events, next placement at line {result.next_line}")

breakfast.midi_io.save_midi(container, "restitched.mid", bpm=165)
