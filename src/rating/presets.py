#!/usr/bin/env python3
"""
Weight presets for the player rating pipeline.

Presets are plain configuration records: a name, a display label and an
immutable metric -> weight mapping. The death-rate weight is stored as a
positive magnitude; the scorer applies the negative sign.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional
import logging

logger = logging.getLogger(__name__)


# Weight keys accepted by the scorer. 'acs' weights the acs_per_round metric.
WEIGHT_KEYS = (
    'kpr', 'dpr', 'adr', 'kast', 'entry', 'acs', 'headshot', 'consistency',
    'clutch', 'multikill', 'support', 'objective',
)


@dataclass(frozen=True)
class WeightPreset:
    """Named, predefined weight vector."""

    name: str
    label: str
    weights: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'weights', MappingProxyType(dict(self.weights)))

    def as_dict(self) -> Dict[str, float]:
        """Mutable copy of the weight vector."""
        return dict(self.weights)


DEFAULT_WEIGHTS = MappingProxyType({
    'kpr': 0.30,
    'dpr': 0.40,
    'adr': 0.12,
    'kast': 0.15,
    'entry': 0.25,
    'acs': 0.20,
    'headshot': 0.08,
    'consistency': 0.10,
})

BALANCED = WeightPreset('balanced', 'Scout (balanced)', DEFAULT_WEIGHTS)

FIREPOWER = WeightPreset('firepower-focused', 'Firepower', {
    'kpr': 0.40, 'dpr': 0.50, 'adr': 0.20, 'kast': 0.10,
    'entry': 0.20, 'acs': 0.25, 'headshot': 0.15, 'consistency': 0.05,
})

STABILITY = WeightPreset('stability-focused', 'Stability', {
    'kpr': 0.20, 'dpr': 0.35, 'adr': 0.08, 'kast': 0.25,
    'entry': 0.15, 'acs': 0.12, 'headshot': 0.05, 'consistency': 0.20,
})

ENTRY = WeightPreset('entry-focused', 'Entry', {
    'kpr': 0.25, 'dpr': 0.45, 'adr': 0.10, 'kast': 0.12,
    'entry': 0.35, 'acs': 0.18, 'headshot': 0.10, 'consistency': 0.08,
})

COMBAT_SCORE = WeightPreset('combat-score-focused', 'ACS baseline', {
    'kpr': 0.15, 'dpr': 0.30, 'adr': 0.10, 'kast': 0.15,
    'entry': 0.15, 'acs': 0.40, 'headshot': 0.12, 'consistency': 0.08,
})

PRESETS: Mapping[str, WeightPreset] = MappingProxyType({
    p.name: p for p in (BALANCED, FIREPOWER, STABILITY, ENTRY, COMBAT_SCORE)
})


def get_preset(name: str) -> WeightPreset:
    """
    Look up a preset by name.

    Raises:
        ValueError: If no preset has that name
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown weight preset '{name}'. Available: {', '.join(PRESETS)}"
        ) from None


def resolve_weights(preset: str = 'balanced',
                    overrides: Optional[Mapping[str, float]] = None) -> Dict[str, float]:
    """
    Build a weight vector from a preset plus per-metric overrides.

    Args:
        preset: Preset name to start from
        overrides: Metric -> weight values replacing the preset's entries

    Returns:
        Fresh weight dictionary (safe to mutate)
    """
    weights = get_preset(preset).as_dict()

    for key, value in (overrides or {}).items():
        if key not in WEIGHT_KEYS:
            logger.warning(f"Ignoring weight for unknown metric '{key}'")
            continue
        weights[key] = float(value)

    negative = [k for k, v in weights.items() if v < 0]
    if negative:
        logger.warning(f"Negative weights for {negative}; these metrics will count against players")

    return weights


def parse_weight_overrides(pairs) -> Dict[str, float]:
    """
    Parse CLI-style 'metric=value' strings.

    Example:
        >>> parse_weight_overrides(["kpr=0.4", "dpr=0.5"])
        {'kpr': 0.4, 'dpr': 0.5}
    """
    overrides = {}
    for pair in pairs or []:
        key, sep, value = pair.partition('=')
        if not sep:
            raise ValueError(f"Weight override must look like metric=value, got '{pair}'")
        try:
            overrides[key.strip()] = float(value)
        except ValueError:
            raise ValueError(f"Weight for '{key.strip()}' is not a number: '{value}'") from None
    return overrides
