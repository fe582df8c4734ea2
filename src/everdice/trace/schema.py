"""CAMLTrace document schema.

A trace is an append-only list of typed events recorded during play. Every
event kind has exactly one payload model; payloads arriving as plain mappings
(from the API or from storage) are validated against the model for their kind.

Traces serialize with camelCase keys, except the two timestamps on the root
document which keep their ``created_utc``/``updated_utc`` spelling.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, model_validator
from pydantic import ValidationError as PydanticValidationError

from everdice.core.exceptions import TraceError
from everdice.models.base import EverdiceModel, utc_now_iso


CAML_VERSION = "2.0"
CAML_TRACE_VERSION = "2.0"


class TraceEventKind(StrEnum):
    """Every kind of event a trace can hold."""

    # Session lifecycle
    SESSION_STARTED = "session.started"
    SESSION_ENDED = "session.ended"
    # Processes
    PROCESS_STARTED = "process.started"
    PROCESS_COMPLETED = "process.completed"
    PROCESS_ABORTED = "process.aborted"
    # Transitions
    TRANSITION_APPLIED = "transition.applied"
    # World
    ENTITY_CREATED = "entity.created"
    ENTITY_MOVED = "entity.moved"
    ENTITY_RETIRED = "entity.retired"
    # State
    STATE_ADDED = "state.added"
    STATE_UPDATED = "state.updated"
    STATE_REMOVED = "state.removed"
    # Roles
    ROLE_GRANTED = "role.granted"
    ROLE_REVOKED = "role.revoked"
    # D&D 5E
    DND5E_ROLL = "dnd5e.roll"
    DND5E_DAMAGE = "dnd5e.damage"
    DND5E_HEAL = "dnd5e.heal"
    DND5E_REST = "dnd5e.rest"
    DND5E_LEVEL_UP = "dnd5e.levelUp"
    DND5E_DEATH = "dnd5e.death"
    DND5E_STABILIZED = "dnd5e.stabilized"
    DND5E_INITIATIVE = "dnd5e.initiative"
    # Everdice gameplay
    MOVEMENT = "everdice.movement"
    MAP_GENERATED = "everdice.mapGenerated"
    NARRATIVE_ADVANCED = "everdice.narrativeAdvanced"
    QUEST_ACCEPTED = "everdice.questAccepted"
    QUEST_COMPLETED = "everdice.questCompleted"
    CHAPTER_ADVANCED = "everdice.chapterAdvanced"
    TURN_ENFORCED = "everdice.turnEnforced"
    ACTION_VALIDATED = "everdice.actionValidated"
    ENCOUNTER_TRIGGERED = "everdice.encounterTriggered"
    ENCOUNTER_RESOLVED = "everdice.encounterResolved"
    INITIATIVE_ROLLED = "everdice.initiativeRolled"
    # Legacy aliases
    STATE_SET = "state.set"
    ITEM_GAINED = "item.gained"
    LEGACY_ENCOUNTER_TRIGGERED = "encounter.triggered"


# =============================================================================
# CAML building blocks
# =============================================================================


class CAMLTimebox(BaseModel):
    id: str
    start_utc: str
    end_utc: str
    label: str | None = None


class CAMLProcessInput(BaseModel):
    """A declared action feeding into a process."""

    actor: str
    declared_action: str
    target: str | None = None
    method: str | None = None
    dice_expression: str | None = None
    roll_result: int | None = None


class GridPosition(EverdiceModel):
    x: int
    y: int


class MapDimensions(EverdiceModel):
    width: int = Field(ge=1)
    height: int = Field(ge=1)


class QuestRewards(EverdiceModel):
    xp: int | None = None
    gold: int | None = None
    items: list[str] | None = None


# =============================================================================
# Payloads
# =============================================================================


class TracePayload(EverdiceModel):
    """Base class for every event payload."""


class SessionPayload(TracePayload):
    session_id: str
    title: str | None = None
    started_at: str | None = None
    ended_at: str | None = None


class ProcessPayload(TracePayload):
    process_id: str
    process_type: str
    timebox: CAMLTimebox | None = None
    participants: list[str] | None = None
    location: str | None = None
    inputs: list[CAMLProcessInput] | None = None
    outcomes: list[str] | None = None


class TransitionPayload(TracePayload):
    transition_id: str
    caused_by: str
    ops: list[dict[str, Any]] = Field(default_factory=list)


class EntityPayload(TracePayload):
    entity_id: str
    entity_kind: str
    name: str | None = None
    reason: str | None = None
    to_location: str | None = None


class StatePayload(TracePayload):
    state_id: str
    bearer: str
    type: str
    value: Any = None
    units: str | None = None


class RolePayload(TracePayload):
    role_id: str
    role: str
    holder: str
    granted_by: str | None = None


class DnD5eRollPayload(TracePayload):
    """A d20 test or other roll made by an actor."""

    actor_id: str
    roll_type: str
    dice: str
    result: int
    modifier: int | None = None
    advantage: bool | None = None
    disadvantage: bool | None = None
    critical: bool | None = None
    critical_fail: bool | None = None
    target: int | None = None
    success: bool | None = None


class DnD5eDamagePayload(TracePayload):
    target_id: str
    amount: int = Field(ge=0)
    damage_type: str | None = None
    source: str | None = None


class DnD5eHealPayload(TracePayload):
    target_id: str
    amount: int = Field(ge=0)
    source: str | None = None


class DnD5eRestPayload(TracePayload):
    actor_id: str
    rest_type: Literal["short", "long"]
    hp_restored: int | None = None
    hit_dice_used: int | None = None
    resources_recovered: list[str] | None = None


class DnD5eLevelUpPayload(TracePayload):
    actor_id: str
    new_level: int = Field(ge=1, le=20)
    character_class: str | None = Field(default=None, alias="class")
    hp_gained: int | None = None
    features_gained: list[str] | None = None


class DnD5eDeathPayload(TracePayload):
    actor_id: str
    cause: str | None = None
    saves_succeeded: int | None = None
    saves_failed: int | None = None


class DnD5eStabilizedPayload(TracePayload):
    actor_id: str
    method: str | None = None
    stabilized_by: str | None = None


class DnD5eInitiativePayload(TracePayload):
    actor_id: str
    roll: int
    modifier: int | None = None
    total: int


class MovementPayload(TracePayload):
    actor_id: str
    from_position: GridPosition = Field(alias="from")
    to_position: GridPosition = Field(alias="to")
    location_id: str | None = None
    movement_type: Literal["walk", "teleport", "forced"] | None = None


class MapGeneratedPayload(TracePayload):
    map_id: str
    map_type: str
    dimensions: MapDimensions
    seed: str | None = None
    location_id: str | None = None
    room_count: int | None = None


class NarrativeAdvancedPayload(TracePayload):
    content: str
    choice_made: str | None = None
    chapter_id: str | None = None
    location_id: str | None = None


class QuestPayload(TracePayload):
    quest_id: str
    quest_name: str
    given_by: str | None = None
    outcome: Literal["success", "failure", "abandoned"] | None = None
    rewards: QuestRewards | None = None


class ChapterAdvancedPayload(TracePayload):
    from_chapter: int
    to_chapter: int
    chapter_title: str | None = None
    total_chapters: int | None = None


EncounterResolution = Literal["success", "failure", "partial", "abandoned"]


class EncounterPayload(TracePayload):
    encounter_id: str
    encounter_type: str | None = None
    occurs_at: str | None = None
    participants: list[str] | None = None
    resolution: EncounterResolution | None = None


class FreeformPayload(TracePayload):
    """Payload for kinds without a fixed shape; any keys are kept."""

    model_config = ConfigDict(extra="allow")


PAYLOAD_MODELS: dict[TraceEventKind, type[TracePayload]] = {
    TraceEventKind.SESSION_STARTED: SessionPayload,
    TraceEventKind.SESSION_ENDED: SessionPayload,
    TraceEventKind.PROCESS_STARTED: ProcessPayload,
    TraceEventKind.PROCESS_COMPLETED: ProcessPayload,
    TraceEventKind.PROCESS_ABORTED: ProcessPayload,
    TraceEventKind.TRANSITION_APPLIED: TransitionPayload,
    TraceEventKind.ENTITY_CREATED: EntityPayload,
    TraceEventKind.ENTITY_MOVED: EntityPayload,
    TraceEventKind.ENTITY_RETIRED: EntityPayload,
    TraceEventKind.STATE_ADDED: StatePayload,
    TraceEventKind.STATE_UPDATED: StatePayload,
    TraceEventKind.STATE_REMOVED: StatePayload,
    TraceEventKind.STATE_SET: StatePayload,
    TraceEventKind.ROLE_GRANTED: RolePayload,
    TraceEventKind.ROLE_REVOKED: RolePayload,
    TraceEventKind.DND5E_ROLL: DnD5eRollPayload,
    TraceEventKind.DND5E_DAMAGE: DnD5eDamagePayload,
    TraceEventKind.DND5E_HEAL: DnD5eHealPayload,
    TraceEventKind.DND5E_REST: DnD5eRestPayload,
    TraceEventKind.DND5E_LEVEL_UP: DnD5eLevelUpPayload,
    TraceEventKind.DND5E_DEATH: DnD5eDeathPayload,
    TraceEventKind.DND5E_STABILIZED: DnD5eStabilizedPayload,
    TraceEventKind.DND5E_INITIATIVE: DnD5eInitiativePayload,
    TraceEventKind.INITIATIVE_ROLLED: DnD5eInitiativePayload,
    TraceEventKind.MOVEMENT: MovementPayload,
    TraceEventKind.MAP_GENERATED: MapGeneratedPayload,
    TraceEventKind.NARRATIVE_ADVANCED: NarrativeAdvancedPayload,
    TraceEventKind.QUEST_ACCEPTED: QuestPayload,
    TraceEventKind.QUEST_COMPLETED: QuestPayload,
    TraceEventKind.CHAPTER_ADVANCED: ChapterAdvancedPayload,
    TraceEventKind.ENCOUNTER_TRIGGERED: EncounterPayload,
    TraceEventKind.ENCOUNTER_RESOLVED: EncounterPayload,
    TraceEventKind.LEGACY_ENCOUNTER_TRIGGERED: EncounterPayload,
    TraceEventKind.TURN_ENFORCED: FreeformPayload,
    TraceEventKind.ACTION_VALIDATED: FreeformPayload,
    TraceEventKind.ITEM_GAINED: FreeformPayload,
}


def parse_event_kind(kind: TraceEventKind | str) -> TraceEventKind:
    """Resolve a kind string.

    Raises:
        TraceError: If the kind is not a known event kind.
    """
    try:
        return TraceEventKind(kind)
    except ValueError as exc:
        raise TraceError(f"Unknown trace event kind: {kind}", kind=str(kind)) from exc


def coerce_payload(
    kind: TraceEventKind | str,
    payload: TracePayload | Mapping[str, Any],
) -> TracePayload:
    """Validate a payload against the model registered for its event kind.

    Args:
        kind: Event kind.
        payload: A payload model or a mapping of its fields.

    Returns:
        The payload as an instance of the kind's model.

    Raises:
        TraceError: If the kind is unknown, the payload model does not match
            the kind, or the mapping fails validation.
    """
    event_kind = parse_event_kind(kind)
    model = PAYLOAD_MODELS[event_kind]

    if isinstance(payload, TracePayload):
        if not isinstance(payload, model):
            raise TraceError(
                f"{type(payload).__name__} is not a valid payload for {event_kind.value}",
                kind=event_kind.value,
                details={"expected": model.__name__},
            )
        return payload

    if isinstance(payload, Mapping):
        try:
            return model.model_validate(dict(payload))
        except PydanticValidationError as exc:
            raise TraceError(
                f"Invalid payload for {event_kind.value}",
                kind=event_kind.value,
                details={"errors": exc.error_count(), "error": str(exc)},
            ) from exc

    raise TraceError(
        "Trace payload must be a mapping or a payload model",
        kind=event_kind.value,
        details={"payload_type": type(payload).__name__},
    )


# =============================================================================
# Document
# =============================================================================


class TraceEvent(EverdiceModel):
    """One recorded event.

    Attributes:
        eid: Event id, ``EVT_`` plus the zero-padded position in the trace.
        kind: Event kind.
        payload: Kind-specific payload.
        ts: ISO timestamp.
        session_id: Trace session the event belongs to.
        who: Acting entity.
        where: Location of the event.
        note: Free-text annotation.
        meta: Arbitrary extra data.
    """

    eid: str
    kind: TraceEventKind
    payload: SerializeAsAny[TracePayload]
    ts: str = Field(default_factory=utc_now_iso)
    session_id: str | None = None
    who: str | None = None
    where: str | None = None
    note: str | None = None
    meta: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def validate_payload_for_kind(cls, data: Any) -> Any:
        """Type the payload by the event's kind before field validation."""
        if isinstance(data, Mapping) and "payload" in data:
            data = dict(data)
            data["payload"] = coerce_payload(data.get("kind", ""), data["payload"])
        return data


class TraceSession(EverdiceModel):
    id: str
    title: str | None = None
    started_at: str = Field(default_factory=utc_now_iso)
    ended_at: str | None = None
    chapter_number: int | None = None


ActorType = Literal["PC", "NPC", "Party", "System", "DM"]


class TraceActor(EverdiceModel):
    id: str
    type: ActorType
    name: str
    character_id: str | None = None


class TraceCampaign(EverdiceModel):
    id: str
    name: str
    gm: str | None = None
    ruleset: str = "dnd5e"
    setting: str | None = None


class CAMLTrace(EverdiceModel):
    """Root trace document for one campaign."""

    type: Literal["CAMLTrace"] = "CAMLTrace"
    id: str
    module_id: str
    caml_version: str = CAML_VERSION
    trace_version: str = CAML_TRACE_VERSION
    campaign: TraceCampaign
    sessions: list[TraceSession] = Field(default_factory=list)
    actors: list[TraceActor] = Field(default_factory=list)
    events: list[TraceEvent] = Field(default_factory=list)
    created_utc: str = Field(default_factory=utc_now_iso, alias="created_utc")
    updated_utc: str | None = Field(default=None, alias="updated_utc")

    def to_document(self) -> dict[str, Any]:
        """Export as a JSON-ready dict with the document's key spelling."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "CAML_VERSION",
    "CAML_TRACE_VERSION",
    "TraceEventKind",
    "CAMLTimebox",
    "CAMLProcessInput",
    "GridPosition",
    "MapDimensions",
    "QuestRewards",
    "TracePayload",
    "SessionPayload",
    "ProcessPayload",
    "TransitionPayload",
    "EntityPayload",
    "StatePayload",
    "RolePayload",
    "DnD5eRollPayload",
    "DnD5eDamagePayload",
    "DnD5eHealPayload",
    "DnD5eRestPayload",
    "DnD5eLevelUpPayload",
    "DnD5eDeathPayload",
    "DnD5eStabilizedPayload",
    "DnD5eInitiativePayload",
    "MovementPayload",
    "MapGeneratedPayload",
    "NarrativeAdvancedPayload",
    "QuestPayload",
    "ChapterAdvancedPayload",
    "EncounterResolution",
    "EncounterPayload",
    "FreeformPayload",
    "PAYLOAD_MODELS",
    "parse_event_kind",
    "coerce_payload",
    "TraceEvent",
    "TraceSession",
    "ActorType",
    "TraceActor",
    "TraceCampaign",
    "CAMLTrace",
]
