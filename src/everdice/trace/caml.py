"""CAML identifiers.

CAML ids start with a letter and may contain letters, digits and ``_-:.``,
up to 128 characters. Trace, module and event ids are derived
deterministically so the same campaign always maps to the same trace.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict


CAML_ID_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_\-:.]{0,127}$")
_NON_SLUG = re.compile(r"[^a-z0-9]+")

# (max hp, challenge rating) bands used when a stat block has no explicit CR
_HP_CR_BANDS: tuple[tuple[int, str], ...] = (
    (6, "0"),
    (35, "1/4"),
    (49, "1/2"),
    (70, "1"),
    (85, "2"),
    (100, "3"),
    (115, "4"),
    (130, "5"),
)


class Statblock(BaseModel):
    """The parts of a creature stat block needed to estimate its CR."""

    model_config = ConfigDict(extra="allow")

    ac: int | None = None
    hp: int | None = None
    cr: str | None = None


def slugify(name: str, max_length: int) -> str:
    """Lower-case ``name`` and collapse non-alphanumeric runs into ``_``."""
    return _NON_SLUG.sub("_", name.lower())[:max_length]


def validate_caml_id(caml_id: str) -> bool:
    """Check an identifier against the CAML id pattern."""
    return CAML_ID_PATTERN.fullmatch(caml_id) is not None


def generate_caml_id(prefix: str, name: str) -> str:
    """Build a CAML id such as ``NPC_old_tom`` from a prefix and a display name."""
    return f"{prefix}_{slugify(name, 50)}"


def generate_event_id(event_index: int) -> str:
    """Event id for the given position in a trace, e.g. ``EVT_000042``."""
    return f"EVT_{event_index:06d}"


def generate_trace_id(campaign_id: int | str) -> str:
    return f"TRACE_everdice_{campaign_id}"


def generate_module_id(campaign_id: int | str, campaign_name: str) -> str:
    """Module id built from a 30-character slug of the campaign name."""
    return f"ADV_everdice_{slugify(campaign_name, 30)}_{campaign_id}"


def calculate_cr(statblock: Statblock | Mapping[str, Any]) -> str:
    """Challenge rating of a stat block.

    An explicit CR wins. Otherwise the rating is estimated from hit points,
    which default to 10 when absent.
    """
    if isinstance(statblock, Mapping):
        statblock = Statblock.model_validate(statblock)
    if statblock.cr:
        return statblock.cr

    hp = statblock.hp or 10
    for max_hp, cr in _HP_CR_BANDS:
        if hp <= max_hp:
            return cr
    return str(min(30, hp // 15))


__all__ = [
    "CAML_ID_PATTERN",
    "Statblock",
    "slugify",
    "validate_caml_id",
    "generate_caml_id",
    "generate_event_id",
    "generate_trace_id",
    "generate_module_id",
    "calculate_cr",
]
