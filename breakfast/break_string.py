"""Break strings: sequences of break set letters to stitch together.

Letters ``A`` to ``F`` name break sets in order, ``A`` being the first. The
composite letters ``U`` to ``Z`` each stand for a user-defined string over
that alphabet and expand in place before parsing. Whitespace is ignored.
"""

import typing

import breakfast.constants
import breakfast.errors


class BreakStringError (breakfast.errors.ConfigurationError):
	pass


def alphabet (set_count: int) -> str:

	"""
	Return the letters valid for ``set_count`` break sets (``"AB"`` for two).
	"""

	if not 1 <= set_count <= len(breakfast.constants.BREAK_SET_SYMBOLS):
		raise BreakStringError(
			f"Break set count must be between 1 and {len(breakfast.constants.BREAK_SET_SYMBOLS)}, got {set_count}"
		)

	return breakfast.constants.BREAK_SET_SYMBOLS[:set_count]


def parse (text: str, set_count: int, composites: typing.Optional[typing.Dict[str, str]] = None) -> typing.List[int]:

	"""
	Parse a break string into a permutation of break-set indices.

	A break string names break sets in playback order, one letter per set:
	``A`` is the first set, ``B`` the second, and so on up to ``set_count``.
	Sets may repeat or be left out. Whitespace is ignored and letters are
	case-insensitive.

	Composite symbols ``U``..``Z`` may be defined as strings over the same
	alphabet; they are expanded before parsing.

	Parameters:
		text: The break string.
		set_count: Number of break sets available.
		composites: Optional composite definitions, e.g. ``{"U": "ABA"}``.

	Returns:
		0-based break-set indices in playback order.

	Example:
		```python
		parse("AB BA", 2)  # [0, 1, 1, 0]
		parse("UC", 3, {"U": "AB"})  # [0, 1, 2]
		```
	"""

	if not text or not text.strip():
		raise BreakStringError("Break string cannot be empty")

	valid = alphabet(set_count)
	cleaned = _clean(text)

	for symbol, value in (composites or {}).items():
		if symbol.upper() not in breakfast.constants.COMPOSITE_SYMBOLS:
			raise BreakStringError(
				f"Invalid composite name '{symbol}'. Composite symbols are: {', '.join(breakfast.constants.COMPOSITE_SYMBOLS)}"
			)
		if not validate_composite(value, valid):
			raise BreakStringError(
				f"Invalid composite symbol '{symbol}': value '{value}' contains invalid base symbols"
			)

	permutation: typing.List[int] = []

	for symbol in resolve(cleaned, composites):

		index = valid.find(symbol)

		if index < 0:
			raise BreakStringError(
				f"Invalid symbol '{symbol}'. Valid symbols are: {', '.join(valid)}"
			)

		permutation.append(index)

	return permutation


def resolve (text: str, composites: typing.Optional[typing.Dict[str, str]] = None) -> str:

	"""
	Expand composite symbols in a break string.

	Characters without a (non-empty) composite definition are kept as-is.
	"""

	cleaned = _clean(text)

	if not composites:
		return cleaned

	normalized = {key.upper(): _clean(value) for key, value in composites.items() if value}

	return "".join(normalized.get(symbol, symbol) for symbol in cleaned)


def validate_composite (value: str, valid: str) -> bool:

	"""True if a composite definition only uses letters from ``valid``."""

	return all(symbol in valid for symbol in _clean(value or ""))


def _clean (text: str) -> str:

	return "".join(text.split()).upper()
