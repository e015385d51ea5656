#!/usr/bin/env python3
"""
Agent to Role Normalizer

Maps in-game agent names to one of the four canonical roles so players can be
compared against others filling the same job. The lookup is a closed, fixed
table; anything outside it resolves to the explicit "Unknown" role.
"""

import re
from types import MappingProxyType
from typing import Optional


DUELIST = "Duelist"
INITIATOR = "Initiator"
CONTROLLER = "Controller"
SENTINEL = "Sentinel"
UNKNOWN_ROLE = "Unknown"

CANONICAL_ROLES = (DUELIST, INITIATOR, CONTROLLER, SENTINEL)

AGENT_TO_ROLE = MappingProxyType({
    "Omen": CONTROLLER,
    "Viper": CONTROLLER,
    "Sova": INITIATOR,
    "Raze": DUELIST,
    "Cypher": SENTINEL,
    "Jett": DUELIST,
    "Killjoy": SENTINEL,
    "Fade": INITIATOR,
    "Breach": INITIATOR,
    "Kayo": INITIATOR,
    "Yoru": DUELIST,
    "Gekko": INITIATOR,
    "Neon": DUELIST,
    "Tejo": DUELIST,
    "Skye": INITIATOR,
    "Astra": CONTROLLER,
    "Brimstone": CONTROLLER,
    "Vyse": SENTINEL,
    "Deadlock": SENTINEL,
    "Harbor": CONTROLLER,
    "Sage": SENTINEL,
    "Chamber": SENTINEL,
    "Iso": DUELIST,
    "Clove": CONTROLLER,
    "Waylay": SENTINEL,
    "Phoenix": DUELIST,
    "Reyna": DUELIST,
})

# Lookup keyed on the folded name so "KAY/O", "kayo" and " Kayo " all match
_FOLDED_LOOKUP = MappingProxyType({
    re.sub(r"[^a-z0-9]", "", agent.lower()): role
    for agent, role in AGENT_TO_ROLE.items()
})


def fold_agent_name(agent: Optional[str]) -> str:
    """
    Fold an agent name for lookup.

    Example:
        >>> fold_agent_name(" KAY/O ")
        'kayo'
    """
    if not agent or not isinstance(agent, str):
        return ""
    return re.sub(r"[^a-z0-9]", "", agent.lower())


def resolve_role(agent: Optional[str]) -> str:
    """
    Resolve an agent name to its canonical role.

    Args:
        agent: Agent name as exported by the stats source

    Returns:
        One of CANONICAL_ROLES, or UNKNOWN_ROLE for unmapped agents
    """
    return _FOLDED_LOOKUP.get(fold_agent_name(agent), UNKNOWN_ROLE)


def is_known_agent(agent: Optional[str]) -> bool:
    return fold_agent_name(agent) in _FOLDED_LOOKUP
