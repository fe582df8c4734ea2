"""Typed helpers for recording gameplay into a campaign trace.

The recorder owns a trace and, optionally, the campaign's adventure progress.
Successful combat, trap and treasure encounters advance that progress as they
are recorded.

Example:
    >>> recorder = TraceRecorder(create_empty_trace(3, "The Sunken Keep"))
    >>> recorder.record_roll("PC_mira", "perception", "1d20+4", 17, target=15)
"""

from __future__ import annotations

from typing import Any

from everdice.core.exceptions import TraceError
from everdice.core.logging import get_logger
from everdice.models.enums import EncounterKind
from everdice.models.progress import AdventureProgress, AdventureRequirements
from everdice.rules.adventure import get_requirements_for_difficulty, record_encounter
from everdice.trace.events import add_trace_event
from everdice.trace.schema import (
    CAMLTrace,
    DnD5eDamagePayload,
    DnD5eHealPayload,
    DnD5eLevelUpPayload,
    DnD5eRollPayload,
    EncounterPayload,
    EncounterResolution,
    NarrativeAdvancedPayload,
    QuestPayload,
    QuestRewards,
    StatePayload,
    TraceEvent,
    TraceEventKind,
)


logger = get_logger(__name__)

_STATE_KINDS: dict[str, TraceEventKind] = {
    "added": TraceEventKind.STATE_ADDED,
    "updated": TraceEventKind.STATE_UPDATED,
    "removed": TraceEventKind.STATE_REMOVED,
}

_PROGRESS_ENCOUNTER_TYPES = frozenset(kind.value for kind in EncounterKind)


class TraceRecorder:
    """Records typed gameplay events into a CAMLTrace.

    Attributes:
        trace: The trace being written.
        progress: Adventure progress advanced by resolved encounters, if any.
        requirements: Thresholds used to re-evaluate completion.
        session_id: Session attached to recorded events unless overridden.
    """

    def __init__(
        self,
        trace: CAMLTrace,
        *,
        progress: AdventureProgress | None = None,
        requirements: AdventureRequirements | None = None,
        session_id: str | None = None,
    ) -> None:
        self.trace = trace
        self.progress = progress
        self.requirements = requirements or get_requirements_for_difficulty("")
        self.session_id = session_id

    def _add(
        self,
        kind: TraceEventKind | str,
        payload: Any,
        **options: Any,
    ) -> TraceEvent:
        options.setdefault("session_id", self.session_id)
        return add_trace_event(self.trace, kind, payload, **options)

    def record_event(
        self,
        kind: TraceEventKind | str,
        payload: Any,
        **options: Any,
    ) -> TraceEvent:
        """Record an event of any kind from a raw payload.

        A resolved encounter advances progress exactly as
        :meth:`record_encounter_resolved` does.
        """
        event = self._add(kind, payload, **options)
        if event.kind is TraceEventKind.ENCOUNTER_RESOLVED:
            self._advance_progress(event.payload)
        return event

    # =========================================================================
    # Dice & Hit Points
    # =========================================================================

    def record_roll(
        self,
        actor_id: str,
        roll_type: str,
        dice: str,
        result: int,
        *,
        modifier: int | None = None,
        advantage: bool | None = None,
        disadvantage: bool | None = None,
        critical: bool | None = None,
        critical_fail: bool | None = None,
        target: int | None = None,
    ) -> TraceEvent:
        """Record a roll; success is derived when a target number is given."""
        success = result >= target if target is not None else None
        payload = DnD5eRollPayload(
            actor_id=actor_id,
            roll_type=roll_type,
            dice=dice,
            result=result,
            modifier=modifier,
            advantage=advantage,
            disadvantage=disadvantage,
            critical=critical,
            critical_fail=critical_fail,
            target=target,
            success=success,
        )
        return self._add(TraceEventKind.DND5E_ROLL, payload, who=actor_id)

    def record_damage(
        self,
        target_id: str,
        amount: int,
        *,
        damage_type: str | None = None,
        source: str | None = None,
    ) -> TraceEvent:
        payload = DnD5eDamagePayload(
            target_id=target_id, amount=amount, damage_type=damage_type, source=source
        )
        return self._add(TraceEventKind.DND5E_DAMAGE, payload, who=source)

    def record_heal(
        self,
        target_id: str,
        amount: int,
        *,
        source: str | None = None,
    ) -> TraceEvent:
        payload = DnD5eHealPayload(target_id=target_id, amount=amount, source=source)
        return self._add(TraceEventKind.DND5E_HEAL, payload, who=source)

    def record_level_up(
        self,
        actor_id: str,
        new_level: int,
        *,
        character_class: str | None = None,
        hp_gained: int | None = None,
        features_gained: list[str] | None = None,
    ) -> TraceEvent:
        payload = DnD5eLevelUpPayload(
            actor_id=actor_id,
            new_level=new_level,
            character_class=character_class,
            hp_gained=hp_gained,
            features_gained=features_gained,
        )
        return self._add(TraceEventKind.DND5E_LEVEL_UP, payload, who=actor_id)

    # =========================================================================
    # Encounters
    # =========================================================================

    def record_encounter_triggered(
        self,
        encounter_id: str,
        *,
        encounter_type: str | None = None,
        occurs_at: str | None = None,
        participants: list[str] | None = None,
    ) -> TraceEvent:
        payload = EncounterPayload(
            encounter_id=encounter_id,
            encounter_type=encounter_type,
            occurs_at=occurs_at,
            participants=participants,
        )
        return self._add(TraceEventKind.ENCOUNTER_TRIGGERED, payload, where=occurs_at)

    def record_encounter_resolved(
        self,
        encounter_id: str,
        resolution: EncounterResolution,
        *,
        encounter_type: str | None = None,
        occurs_at: str | None = None,
        participants: list[str] | None = None,
    ) -> TraceEvent:
        """Record how an encounter ended.

        A successful combat, trap or treasure encounter also counts towards
        the adventure progress held by this recorder.
        """
        payload = EncounterPayload(
            encounter_id=encounter_id,
            encounter_type=encounter_type,
            occurs_at=occurs_at,
            participants=participants,
            resolution=resolution,
        )
        event = self._add(TraceEventKind.ENCOUNTER_RESOLVED, payload, where=occurs_at)
        self._advance_progress(payload)
        return event

    def _advance_progress(self, payload: EncounterPayload) -> None:
        if (
            self.progress is None
            or payload.resolution != "success"
            or payload.encounter_type not in _PROGRESS_ENCOUNTER_TYPES
        ):
            return
        record_encounter(self.progress, payload.encounter_type, self.requirements)
        logger.info(
            "Adventure progress advanced",
            trace_id=self.trace.id,
            encounter_type=payload.encounter_type,
            total=self.progress.encounters.total,
        )

    # =========================================================================
    # State, Quests & Narrative
    # =========================================================================

    def record_state_change(
        self,
        change: str,
        state_id: str,
        bearer: str,
        state_type: str,
        value: Any = None,
        *,
        units: str | None = None,
    ) -> TraceEvent:
        """Record a state fact being added, updated or removed.

        Raises:
            TraceError: If ``change`` is not added, updated or removed.
        """
        if change not in _STATE_KINDS:
            raise TraceError(f"Unknown state change: {change}", details={"change": change})
        payload = StatePayload(
            state_id=state_id, bearer=bearer, type=state_type, value=value, units=units
        )
        return self._add(_STATE_KINDS[change], payload, who=bearer)

    def record_quest_accepted(
        self,
        quest_id: str,
        quest_name: str,
        *,
        given_by: str | None = None,
    ) -> TraceEvent:
        payload = QuestPayload(quest_id=quest_id, quest_name=quest_name, given_by=given_by)
        return self._add(TraceEventKind.QUEST_ACCEPTED, payload, who=given_by)

    def record_quest_completed(
        self,
        quest_id: str,
        quest_name: str,
        *,
        outcome: str = "success",
        xp: int | None = None,
        gold: int | None = None,
        items: list[str] | None = None,
    ) -> TraceEvent:
        rewards = None
        if xp is not None or gold is not None or items:
            rewards = QuestRewards(xp=xp, gold=gold, items=items)
        payload = QuestPayload(
            quest_id=quest_id, quest_name=quest_name, outcome=outcome, rewards=rewards
        )
        return self._add(TraceEventKind.QUEST_COMPLETED, payload)

    def record_narrative(
        self,
        content: str,
        *,
        choice_made: str | None = None,
        chapter_id: str | None = None,
        location_id: str | None = None,
    ) -> TraceEvent:
        payload = NarrativeAdvancedPayload(
            content=content,
            choice_made=choice_made,
            chapter_id=chapter_id,
            location_id=location_id,
        )
        return self._add(TraceEventKind.NARRATIVE_ADVANCED, payload, where=location_id)


__all__ = ["TraceRecorder"]
