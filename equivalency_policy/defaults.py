"""Process-wide default equivalency policy.

Assertions start from a clone of these defaults, so configuring one
assertion never leaks into the defaults or into another assertion.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from .config import apply_settings, load_settings
from .options import EquivalencyOptions
from .snapshot import EffectivePolicy

logger = logging.getLogger(__name__)

_defaults: EffectivePolicy = EquivalencyOptions().freeze()


def get_defaults() -> EffectivePolicy:
    """Return the current defaults as a read-only policy."""
    return _defaults


def configure_defaults(
    configure: Callable[[EquivalencyOptions], Optional[EquivalencyOptions]]
) -> EffectivePolicy:
    """Change the defaults used by every subsequent new_options() call.

    The callback receives a clone of the current defaults. Its changes are
    frozen and replace the defaults in one step.
    """
    global _defaults
    options = EquivalencyOptions(_defaults)
    result = configure(options)
    _defaults = (result if result is not None else options).freeze()
    logger.debug("Equivalency defaults replaced:\n%s", _defaults.describe())
    return _defaults


def configure_defaults_from_file(path: Union[str, Path]) -> EffectivePolicy:
    """Apply a JSON settings file on top of the current defaults."""
    settings = load_settings(path)
    return configure_defaults(lambda options: apply_settings(options, settings))


def reset_defaults() -> EffectivePolicy:
    """Restore the built-in defaults."""
    global _defaults
    _defaults = EquivalencyOptions().freeze()
    return _defaults


def new_options() -> EquivalencyOptions:
    """Create options for one assertion, starting from the defaults."""
    return EquivalencyOptions(_defaults)
