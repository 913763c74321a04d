import argparse
import logging
import sys
import typing

import breakfast.break_sets
import breakfast.break_string
import breakfast.config
import breakfast.errors
import breakfast.midi_io
import breakfast.stitcher
import breakfast.timing


logger = logging.getLogger(__name__)


def parse_composites (values: typing.List[str]) -> typing.Dict[str, str]:

	"""Turn ``["U=AB", "V=BA"]`` into ``{"U": "AB", "V": "BA"}``."""

	composites: typing.Dict[str, str] = {}

	for value in values:

		name, separator, definition = value.partition("=")

		if not separator or not name.strip():
			raise breakfast.errors.ConfigurationError(f"Composite definitions look like U=ABA, got {value!r}")

		composites[name.strip().upper()] = definition.strip()

	return composites


def build_parser () -> argparse.ArgumentParser:

	parser = argparse.ArgumentParser(
		prog = "python -m breakfast",
		description = "Cut a MIDI break at its boundary hits and restitch it in a new order"
	)

	parser.add_argument("source", help="MIDI file holding the break")
	parser.add_argument("break_string", help="Playback order of the break sets, e.g. ABBA")
	parser.add_argument("-o", "--output", default="break.mid", help="MIDI file to write (default: break.mid)")
	parser.add_argument("-n", "--boundary-note", type=int, action="append", default=[], help="MIDI note that starts a new break set (repeatable)")
	parser.add_argument("-s", "--boundary-slice", type=int, action="append", default=[], help="Slice index that starts a new break set (repeatable)")
	parser.add_argument("-u", "--composite", action="append", default=[], help="Composite symbol definition such as U=AB (repeatable)")
	parser.add_argument("--channel", type=int, default=None, help="Only read this MIDI channel (0-15)")
	parser.add_argument("--lines-per-beat", type=int, default=4, help="Lines per quarter note (default: 4)")
	parser.add_argument("--bpm", type=float, default=120, help="Tempo of the written file (default: 120)")
	parser.add_argument("--config", default="breakfast.yaml", help="YAML config file (default: breakfast.yaml)")

	return parser


def run (args: argparse.Namespace) -> int:

	"""Run the command line tool and return the process exit code."""

	settings = breakfast.config.load_config(args.config)

	phrase = breakfast.midi_io.phrase_from_midi(args.source, lines_per_beat=args.lines_per_beat, channel=args.channel)
	analyzed = breakfast.timing.analyze(phrase)

	if not len(analyzed):
		logger.error(f"No notes found in {args.source}")
		return 1

	notes = set(args.boundary_note)
	slices = set(args.boundary_slice)

	sets = breakfast.break_sets.build(analyzed, lambda event: event.note in notes or event.channel in slices)
	order = breakfast.break_string.parse(args.break_string, len(sets), parse_composites(args.composite))

	timeline = breakfast.stitcher.stitch([sets[index] for index in order])
	result = breakfast.stitcher.render_phrase(timeline, min_lines=settings.min_phrase_lines, name=args.break_string, keep_notes=True)

	breakfast.midi_io.save_midi(result, args.output, lines_per_beat=args.lines_per_beat, bpm=args.bpm)

	logger.info(f"Wrote {len(result)} events from {len(sets)} break sets to {args.output}")

	return 0


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Main entry point for the breakfast command line tool.
	"""

	logging.basicConfig(level=logging.INFO)

	args = build_parser().parse_args(argv)

	try:
		code = run(args)
	except breakfast.errors.BreakfastError as exc:
		logger.error(str(exc))
		code = 2
	except OSError as exc:
		logger.error(f"Cannot read or write MIDI file: {exc}")
		code = 1

	sys.exit(code)


if __name__ == "__main__":
	main()
