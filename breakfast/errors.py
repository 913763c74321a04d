"""Error taxonomy.

Two kinds are raised by the library and surfaced to callers before any
container mutation:

- :class:`ConfigurationError` - too many boundaries, bad break-string
  characters, an exhausted symbol namespace, unknown policy names.
- :class:`ResourceUnavailable` - no container, no sections, an empty or
  missing registry entry.

Per-event shortfalls (no free column, events truncated or skipped by policy)
are not exceptions; they are counted on
:class:`~breakfast.placement.PlacementResult`.
"""

import enum


class ErrorKind (enum.Enum):

	"""Category a caller can branch on instead of parsing messages."""

	CONFIGURATION = "configuration"
	RESOURCE_UNAVAILABLE = "resource_unavailable"


class BreakfastError (Exception):

	"""Base class for every error the core reports to its caller."""

	kind: ErrorKind = ErrorKind.CONFIGURATION


class ConfigurationError (BreakfastError):

	"""The request is malformed or cannot be satisfied with the current setup."""

	kind = ErrorKind.CONFIGURATION


class ResourceUnavailable (BreakfastError):

	"""Something the request depends on does not exist or is empty."""

	kind = ErrorKind.RESOURCE_UNAVAILABLE
