"""
BreakFast - cut rhythmic breaks apart and stitch them back together, tick-exact.

A source phrase of timed note events is split into break sets at marked
boundary hits. Each set is re-timed to start on its own first event, the
sets are restitched in any order, and the resulting timeline is written
into a target grid of lines and note columns. Timing is kept at 256 ticks
per line, so swing, flams and off-grid hits survive the round trip.

What it does:

- **Timing analysis.** Every event knows how many ticks it lasts until the
  next one. When a phrase carries no instrument data, slice indices are
  recovered from the note values.
- **Break sets.** Up to five boundaries cut a phrase into up to six sets,
  each normalized to start at line 1, delay 0.
- **Break strings.** ``"ABBA"`` plays the first set, the second twice and
  the first again. Composite symbols ``U``-``Z`` stand for longer strings.
- **Stitching.** Sets are joined with the leftover ticks of each terminal
  event carried into the next set's delays. Nothing is rounded away.
- **Placement.** Symbols are written at the cursor and chain one after
  another until the cursor moves. Overflow policies (extend, next
  pattern, truncate, loop) decide what happens past the end, and overwrite
  policies (sum, replace, substitute, retain, exclude, intersect) decide
  what happens to data already there.
- **Range capture.** Any selection of a grid can become a symbol of its own.
- **Files.** The symbol registry saves to YAML; phrases read from and write
  to standard MIDI files.

Minimal example:

    ```python
    import breakfast

    session = breakfast.Session()
    session.set_source(0, phrase)
    session.assign_labels(0, {"03": breakfast.SliceLabel("snare", breakpoint=True)})

    container = breakfast.Container(64)
    result = session.place_break_string(0, "BAAB", container)
    ```

Package-level exports: ``Container``, ``NoteCell``, ``Phrase``,
``PlacementEngine``, ``Session``, ``SliceLabel``, ``SymbolRegistry``.
"""

import breakfast.grid
import breakfast.labels
import breakfast.placement
import breakfast.registry
import breakfast.session


Container = breakfast.grid.Container
NoteCell = breakfast.grid.NoteCell
Phrase = breakfast.grid.Phrase
PlacementEngine = breakfast.placement.PlacementEngine
Session = breakfast.session.Session
SliceLabel = breakfast.labels.SliceLabel
SymbolRegistry = breakfast.registry.SymbolRegistry
