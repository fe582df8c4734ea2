"""Static rules data and pure rules functions."""

from __future__ import annotations

from everdice.rules.adventure import (
    check_adventure_completion,
    create_empty_progress,
    format_progress_summary,
    get_requirements_for_difficulty,
    get_subquest_requirements,
    record_discovery,
    record_encounter,
    record_puzzle,
    record_subquest_completed,
)
from everdice.rules.skills import (
    calculate_success_probability,
    get_likelihood_description,
    get_skill_modifier,
    parse_dc_from_text,
)
from everdice.rules.xp import (
    calculate_encounter_xp,
    calculate_quest_xp,
    format_xp_progress,
    get_ability_modifier,
    get_level_from_xp,
    get_proficiency_bonus,
    get_xp_for_level,
    get_xp_from_cr,
    get_xp_to_next_level,
)


__all__ = [
    # Adventure
    "check_adventure_completion",
    "create_empty_progress",
    "format_progress_summary",
    "get_requirements_for_difficulty",
    "get_subquest_requirements",
    "record_discovery",
    "record_encounter",
    "record_puzzle",
    "record_subquest_completed",
    # Skills
    "calculate_success_probability",
    "get_likelihood_description",
    "get_skill_modifier",
    "parse_dc_from_text",
    # XP
    "calculate_encounter_xp",
    "calculate_quest_xp",
    "format_xp_progress",
    "get_ability_modifier",
    "get_level_from_xp",
    "get_proficiency_bonus",
    "get_xp_for_level",
    "get_xp_from_cr",
    "get_xp_to_next_level",
]
