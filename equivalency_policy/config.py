"""Equivalency settings loaded from JSON.

Settings cover the scalar switches of a policy. Rules carry predicates and
actions, so they are configured in code only.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .types import CyclicReferenceHandling, EnumEquivalencyHandling

logger = logging.getLogger(__name__)


class EquivalencySettings(BaseModel):
    """Default switches for equivalency comparisons."""
    model_config = ConfigDict(extra="forbid")

    recursive: bool = Field(default=False, description="Compare nested objects member by member")
    allow_infinite_recursion: bool = False
    cyclic_reference_handling: CyclicReferenceHandling = CyclicReferenceHandling.THROW_EXCEPTION
    enum_equivalency_handling: EnumEquivalencyHandling = EnumEquivalencyHandling.BY_VALUE
    use_runtime_typing: bool = False
    include_all_properties: bool = Field(default=False, description="Select all public properties")
    strict_ordering: bool = Field(default=False, description="Compare all collections in order")
    allow_missing_members: bool = False

    @model_validator(mode="after")
    def check_typing_mode(self) -> "EquivalencySettings":
        # Runtime typing is only selectable together with property inclusion
        if self.use_runtime_typing and not self.include_all_properties:
            raise ValueError("use_runtime_typing requires include_all_properties")
        return self


def load_settings(path: Union[str, Path]) -> EquivalencySettings:
    """Load and validate equivalency settings from a JSON file.

    Args:
        path: Path to settings JSON file

    Returns:
        Validated EquivalencySettings

    Raises:
        FileNotFoundError: If the settings file doesn't exist
        ValueError: If the file is not valid JSON or fails validation
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Equivalency settings not found: {path}")

    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    settings = parse_settings(data)
    logger.info("Loaded equivalency settings from %s", path)
    return settings


def parse_settings(data: Dict[str, Any]) -> EquivalencySettings:
    """Validate a settings mapping.

    Raises:
        ValueError: If the mapping has unknown keys or invalid values
    """
    if not isinstance(data, dict):
        raise ValueError("Equivalency settings must be a JSON object")
    try:
        return EquivalencySettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid equivalency settings: {e}") from e


def validate_settings(path: Union[str, Path]) -> Tuple[bool, str]:
    """Validate a settings file without applying it.

    Returns:
        (is_valid, message)
    """
    try:
        load_settings(path)
        return True, "Valid"
    except (FileNotFoundError, ValueError) as e:
        return False, str(e)


def apply_settings(options: Any, settings: EquivalencySettings) -> Any:
    """Apply loaded settings to an EquivalencyOptions instance.

    Only the keys present in the settings file are applied, so a file
    overlays the options instead of resetting switches it does not mention.
    Property inclusion regenerates the selection rules, so it is applied
    before anything else that could add selection rules.

    Returns:
        The same options instance
    """
    given = settings.model_fields_set

    if settings.include_all_properties:
        if settings.use_runtime_typing:
            options.using_all_runtime_properties()
        else:
            options.using_all_declared_properties()

    if "recursive" in given:
        if settings.recursive:
            options.include_nested_objects()
        else:
            options.exclude_nested_objects()

    if settings.allow_infinite_recursion:
        options.allow_infinite_recursion()

    if settings.cyclic_reference_handling == CyclicReferenceHandling.IGNORE:
        options.ignore_cyclic_references()

    if "enum_equivalency_handling" in given:
        if settings.enum_equivalency_handling == EnumEquivalencyHandling.BY_NAME:
            options.comparing_enums_by_name()
        else:
            options.comparing_enums_by_value()

    if settings.strict_ordering:
        options.with_strict_ordering_for_all()

    if settings.allow_missing_members:
        options.allow_missing_members()

    return options
