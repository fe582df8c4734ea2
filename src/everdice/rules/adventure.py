"""Adventure completion scoring.

Each difficulty tier fixes how many encounters, puzzles, discoveries and
subquests make up a complete adventure. Progress is compared against those
thresholds to decide completion and a percentage for display.

Example:
    >>> progress = create_empty_progress()
    >>> reqs = get_requirements_for_difficulty("Easy - Relaxed Story")
    >>> check_adventure_completion(progress, reqs).percent_complete
    0
"""

from __future__ import annotations

from everdice.core.exceptions import ValidationError
from everdice.core.logging import get_logger
from everdice.models.base import utc_now_iso
from everdice.models.enums import DifficultyTier, EncounterKind
from everdice.models.progress import (
    AdventureProgress,
    AdventureRequirements,
    CompletionResult,
    EncounterCounts,
    SubquestRequirements,
)


logger = get_logger(__name__)


# =============================================================================
# Tier Tables
# =============================================================================

DIFFICULTY_REQUIREMENTS: dict[str, AdventureRequirements] = {
    DifficultyTier.EASY.value: AdventureRequirements(
        encounters=EncounterCounts(combat=2, trap=1, treasure=2, total=5),
        puzzles=1,
        discoveries=3,
        subquests=1,
    ),
    DifficultyTier.NORMAL.value: AdventureRequirements(
        encounters=EncounterCounts(combat=4, trap=2, treasure=3, total=9),
        puzzles=2,
        discoveries=5,
        subquests=2,
    ),
    DifficultyTier.HARD.value: AdventureRequirements(
        encounters=EncounterCounts(combat=6, trap=4, treasure=4, total=14),
        puzzles=4,
        discoveries=7,
        subquests=3,
    ),
    DifficultyTier.DEADLY.value: AdventureRequirements(
        encounters=EncounterCounts(combat=10, trap=6, treasure=5, total=21),
        puzzles=5,
        discoveries=10,
        subquests=4,
    ),
}

SUBQUEST_REQUIREMENTS: dict[str, SubquestRequirements] = {
    DifficultyTier.EASY.value: SubquestRequirements(encounters=1, puzzles=0),
    DifficultyTier.NORMAL.value: SubquestRequirements(encounters=2, puzzles=1),
    DifficultyTier.HARD.value: SubquestRequirements(encounters=3, puzzles=1),
    DifficultyTier.DEADLY.value: SubquestRequirements(encounters=4, puzzles=2),
}


def get_requirements_for_difficulty(difficulty: str) -> AdventureRequirements:
    """Requirements for a tier name, falling back to Normal for unknown names.

    A copy is returned so callers may mutate it freely.
    """
    requirements = DIFFICULTY_REQUIREMENTS.get(
        difficulty, DIFFICULTY_REQUIREMENTS[DifficultyTier.NORMAL.value]
    )
    return requirements.model_copy(deep=True)


def get_subquest_requirements(difficulty: str) -> SubquestRequirements:
    """Per-subquest requirements for a tier name, falling back to Normal."""
    requirements = SUBQUEST_REQUIREMENTS.get(
        difficulty, SUBQUEST_REQUIREMENTS[DifficultyTier.NORMAL.value]
    )
    return requirements.model_copy()


def create_empty_progress() -> AdventureProgress:
    """Fresh progress with every counter at zero."""
    return AdventureProgress()


# =============================================================================
# Scoring
# =============================================================================


def check_adventure_completion(
    progress: AdventureProgress,
    requirements: AdventureRequirements,
) -> CompletionResult:
    """Compare progress counters with a tier's requirements.

    The adventure is complete when combat, trap, treasure, puzzles,
    discoveries and subquests each meet their threshold. The encounter total
    does not gate completion, but it is what the percentage counts.

    Args:
        progress: Current counters.
        requirements: Thresholds for the campaign's tier.

    Returns:
        Completion flag, floor percentage in 0..100 and remaining counts.
    """
    got = progress.encounters
    need = requirements.encounters

    is_complete = (
        got.combat >= need.combat
        and got.trap >= need.trap
        and got.treasure >= need.treasure
        and progress.puzzles >= requirements.puzzles
        and progress.discoveries >= requirements.discoveries
        and progress.subquests_completed >= requirements.subquests
    )

    total_required = (
        need.total + requirements.puzzles + requirements.discoveries + requirements.subquests
    )
    total_progress = (
        min(got.total, need.total)
        + min(progress.puzzles, requirements.puzzles)
        + min(progress.discoveries, requirements.discoveries)
        + min(progress.subquests_completed, requirements.subquests)
    )
    if total_required > 0:
        percent = (total_progress * 100) // total_required
    else:
        percent = 100
    percent = max(0, min(100, percent))

    remaining = AdventureRequirements(
        encounters=EncounterCounts(
            combat=max(0, need.combat - got.combat),
            trap=max(0, need.trap - got.trap),
            treasure=max(0, need.treasure - got.treasure),
            total=max(0, need.total - got.total),
        ),
        puzzles=max(0, requirements.puzzles - progress.puzzles),
        discoveries=max(0, requirements.discoveries - progress.discoveries),
        subquests=max(0, requirements.subquests - progress.subquests_completed),
    )

    return CompletionResult(
        is_complete=is_complete,
        percent_complete=percent,
        remaining=remaining,
    )


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def format_progress_summary(
    progress: AdventureProgress,
    requirements: AdventureRequirements,
) -> str:
    """One-line progress summary for display.

    Only outstanding combats, traps, puzzles and subquests are listed; when
    none remain the adventure is reported as complete.
    """
    result = check_adventure_completion(progress, requirements)
    remaining = result.remaining

    parts: list[str] = []
    if remaining.encounters.combat > 0:
        parts.append(_plural(remaining.encounters.combat, "combat"))
    if remaining.encounters.trap > 0:
        parts.append(_plural(remaining.encounters.trap, "trap"))
    if remaining.puzzles > 0:
        parts.append(_plural(remaining.puzzles, "puzzle"))
    if remaining.subquests > 0:
        parts.append(_plural(remaining.subquests, "subquest"))

    if not parts:
        return f"Adventure complete! ({result.percent_complete}%)"
    return f"{result.percent_complete}% complete - Remaining: {', '.join(parts)}"


# =============================================================================
# Progress Mutators
# =============================================================================


def _refresh_completion(
    progress: AdventureProgress,
    requirements: AdventureRequirements,
) -> AdventureProgress:
    result = check_adventure_completion(progress, requirements)
    if result.is_complete and not progress.is_complete:
        progress.completed_at = utc_now_iso()
        logger.info("Adventure completed", percent_complete=result.percent_complete)
    progress.is_complete = result.is_complete
    return progress


def record_encounter(
    progress: AdventureProgress,
    kind: EncounterKind | str,
    requirements: AdventureRequirements,
) -> AdventureProgress:
    """Count a finished encounter of the given kind.

    Raises:
        ValidationError: If the kind is not combat, trap or treasure.
    """
    try:
        encounter_kind = EncounterKind(kind)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown encounter kind: {kind}",
            field_name="kind",
            invalid_value=kind,
        ) from exc

    counts = progress.encounters
    setattr(counts, encounter_kind.value, getattr(counts, encounter_kind.value) + 1)
    counts.total += 1
    return _refresh_completion(progress, requirements)


def record_puzzle(
    progress: AdventureProgress,
    requirements: AdventureRequirements,
) -> AdventureProgress:
    """Count a solved puzzle."""
    progress.puzzles += 1
    return _refresh_completion(progress, requirements)


def record_discovery(
    progress: AdventureProgress,
    requirements: AdventureRequirements,
) -> AdventureProgress:
    """Count a discovery."""
    progress.discoveries += 1
    return _refresh_completion(progress, requirements)


def record_subquest_completed(
    progress: AdventureProgress,
    requirements: AdventureRequirements,
) -> AdventureProgress:
    """Count a finished subquest."""
    progress.subquests_completed += 1
    return _refresh_completion(progress, requirements)


__all__ = [
    "DIFFICULTY_REQUIREMENTS",
    "SUBQUEST_REQUIREMENTS",
    "get_requirements_for_difficulty",
    "get_subquest_requirements",
    "create_empty_progress",
    "check_adventure_completion",
    "format_progress_summary",
    "record_encounter",
    "record_puzzle",
    "record_discovery",
    "record_subquest_completed",
]
