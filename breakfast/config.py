"""YAML configuration for sessions and the command line.

A configuration file looks like::

	placement:
	  overflow: loop
	  overwrite: replace
	  instrument_source: embedded
	container:
	  column_count: 12
	registry:
	  path: breakfast_symbols.yaml
	phrase:
	  min_lines: 16
"""

import dataclasses
import enum
import logging
import os
import typing

import yaml

import breakfast.constants
import breakfast.errors
import breakfast.overflow
import breakfast.overwrite
import breakfast.placement


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Settings:

	"""Default policies and paths used by a session."""

	overflow: breakfast.overflow.OverflowPolicy = breakfast.overflow.OverflowPolicy.EXTEND
	overwrite: breakfast.overwrite.OverwritePolicy = breakfast.overwrite.OverwritePolicy.SUM
	instrument_source: breakfast.placement.InstrumentSource = breakfast.placement.InstrumentSource.EMBEDDED
	column_count: int = breakfast.constants.DEFAULT_COLUMN_COUNT
	registry_path: str = "breakfast_symbols.yaml"
	min_phrase_lines: int = breakfast.constants.MIN_PHRASE_LINES


E = typing.TypeVar("E", bound=enum.Enum)


def parse_policy (enum_type: typing.Type[E], value: typing.Union[str, E]) -> E:

	"""
	Look up a policy by name, case-insensitively (``"next_pattern"``, ``"Next Pattern"``).

	Raises:
		ConfigurationError: No policy of that name exists.
	"""

	if isinstance(value, enum_type):
		return value

	key = str(value).strip().lower().replace(" ", "_").replace("-", "_")

	for member in enum_type:
		if member.value == key or member.name.lower() == key:
			return member

	valid = ", ".join(member.value for member in enum_type)
	raise breakfast.errors.ConfigurationError(f"Unknown {enum_type.__name__} {value!r}. Valid values are: {valid}")


def settings_from_dict (config: typing.Dict[str, typing.Any]) -> Settings:

	"""Build settings from a parsed configuration mapping; missing keys keep defaults."""

	settings = Settings()

	placement = config.get('placement') or {}

	if 'overflow' in placement:
		settings.overflow = parse_policy(breakfast.overflow.OverflowPolicy, placement['overflow'])

	if 'overwrite' in placement:
		settings.overwrite = parse_policy(breakfast.overwrite.OverwritePolicy, placement['overwrite'])

	if 'instrument_source' in placement:
		settings.instrument_source = parse_policy(breakfast.placement.InstrumentSource, placement['instrument_source'])

	settings.column_count = int((config.get('container') or {}).get('column_count', settings.column_count))
	settings.registry_path = str((config.get('registry') or {}).get('path', settings.registry_path))
	settings.min_phrase_lines = int((config.get('phrase') or {}).get('min_lines', settings.min_phrase_lines))

	if settings.column_count < 1:
		raise breakfast.errors.ConfigurationError(f"column_count must be at least 1, got {settings.column_count}")

	return settings


def load_config (config_path: str = 'breakfast.yaml') -> Settings:

	"""
	Load settings from a YAML file, falling back to defaults if it is missing.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return Settings()

	with open(config_path, 'r') as f:
		config = yaml.safe_load(f) or {}

	if not isinstance(config, dict):
		raise breakfast.errors.ConfigurationError(f"Config file {config_path} must contain a mapping")

	return settings_from_dict(config)
