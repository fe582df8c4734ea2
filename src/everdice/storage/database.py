"""SQLite persistence layer for Everdice.

Each entity lives in its own table holding the record as a JSON document,
alongside the store-assigned id, the owning campaign (where the entity has
one) and timestamps. Campaign traces and adventure progress are stored one
document per campaign.

Connections are opened per operation and commit or roll back on exit.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, TypeVar

from pydantic import ValidationError as PydanticValidationError

from everdice.core.exceptions import RecordNotFoundError, StorageError, ValidationError
from everdice.core.logging import get_logger
from everdice.models import (
    NPC,
    AdventureProgress,
    Campaign,
    CampaignParticipant,
    CampaignSession,
    Character,
    DiceRoll,
    Encounter,
    InventoryItem,
    Location,
    Monster,
    Quest,
    Record,
    Reward,
    utc_now_iso,
)
from everdice.rules.xp import get_level_from_xp, get_xp_for_level, validate_level
from everdice.trace.schema import CAMLTrace


logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=Record)

ENTITY_MODELS: dict[str, type[Record]] = {
    "characters": Character,
    "campaigns": Campaign,
    "campaign_participants": CampaignParticipant,
    "campaign_sessions": CampaignSession,
    "dice_rolls": DiceRoll,
    "monsters": Monster,
    "quests": Quest,
    "items": InventoryItem,
    "locations": Location,
    "npcs": NPC,
    "encounters": Encounter,
    "rewards": Reward,
}
"""Entity table name to record model."""

_RECORD_META_FIELDS = {"id", "created_at", "updated_at"}


class Database:
    """SQLite database for Everdice records.

    Example:
        >>> db = Database("data/everdice.db")
        >>> hero = db.create("characters", Character(name="Mira", race="Elf", character_class="Rogue"))
        >>> db.get("characters", hero.id).name
        'Mira'
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path) -> None:
        """Initialize database.

        Args:
            db_path: Path to the database file.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()
        logger.info("Database initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection that commits on success."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(f"Database operation failed: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)

            for table in ENTITY_MODELS:
                cursor.execute(f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        campaign_id INTEGER,
                        data TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
                cursor.execute(f"""
                    CREATE INDEX IF NOT EXISTS idx_{table}_campaign
                    ON {table}(campaign_id)
                """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS campaign_traces (
                    campaign_id INTEGER PRIMARY KEY,
                    trace_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS adventure_progress (
                    campaign_id INTEGER PRIMARY KEY,
                    progress_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    # =========================================================================
    # Generic Record Operations
    # =========================================================================

    @staticmethod
    def _model_for(entity: str) -> type[Record]:
        try:
            return ENTITY_MODELS[entity]
        except KeyError as exc:
            raise StorageError(f"Unknown entity: {entity}", entity=entity) from exc

    @staticmethod
    def _serialize(record: Record) -> str:
        return json.dumps(record.model_dump(mode="json", exclude=_RECORD_META_FIELDS))

    def _from_row(self, entity: str, row: sqlite3.Row) -> Record:
        data = json.loads(row["data"])
        data.update(id=row["id"], created_at=row["created_at"], updated_at=row["updated_at"])
        return self._model_for(entity).model_validate(data)

    def create(self, entity: str, record: RecordT) -> RecordT:
        """Insert a record and return it with its id and timestamps set.

        Args:
            entity: Entity table name.
            record: Record to store; any id it carries is ignored.

        Returns:
            The stored record.
        """
        self._model_for(entity)
        now = utc_now_iso()
        campaign_id = getattr(record, "campaign_id", None)

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                INSERT INTO {entity} (campaign_id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (campaign_id, self._serialize(record), now, now),
            )
            record_id = cursor.lastrowid

        logger.info("Record created", entity=entity, record_id=record_id)
        return record.model_copy(update={"id": record_id, "created_at": now, "updated_at": now})

    def get(self, entity: str, record_id: int) -> Record | None:
        """Get a record by id, or None if it does not exist."""
        self._model_for(entity)
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT id, data, created_at, updated_at FROM {entity} WHERE id = ?",
                (record_id,),
            )
            row = cursor.fetchone()

        if row:
            return self._from_row(entity, row)
        return None

    def require(self, entity: str, record_id: int) -> Record:
        """Get a record by id.

        Raises:
            RecordNotFoundError: If the record does not exist.
        """
        record = self.get(entity, record_id)
        if record is None:
            raise RecordNotFoundError(
                f"{entity} record not found", entity=entity, record_id=record_id
            )
        return record

    def list(self, entity: str, *, campaign_id: int | None = None) -> list[Record]:
        """All records of an entity in insertion order, optionally for one campaign."""
        self._model_for(entity)
        query = f"SELECT id, data, created_at, updated_at FROM {entity}"
        params: tuple[Any, ...] = ()
        if campaign_id is not None:
            query += " WHERE campaign_id = ?"
            params = (campaign_id,)
        query += " ORDER BY id"

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()

        return [self._from_row(entity, row) for row in rows]

    def update(self, entity: str, record_id: int, changes: Mapping[str, Any]) -> Record | None:
        """Apply field changes to a stored record.

        Args:
            entity: Entity table name.
            record_id: Record to change.
            changes: Field values keyed by attribute name or JSON alias.

        Returns:
            The updated record, or None if it does not exist.

        Raises:
            ValidationError: If the changes do not fit the record model.
        """
        current = self.get(entity, record_id)
        if current is None:
            return None

        model = self._model_for(entity)
        by_alias = {info.alias: name for name, info in model.model_fields.items() if info.alias}
        merged = current.model_dump()
        for key, value in changes.items():
            name = by_alias.get(key, key)
            if name not in _RECORD_META_FIELDS:
                merged[name] = value
        try:
            updated = model.model_validate(merged)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid {entity} update: {exc.error_count()} error(s)",
                field_name=", ".join(str(err["loc"][0]) for err in exc.errors() if err["loc"]),
                details={"entity": entity, "record_id": record_id, "error": str(exc)},
            ) from exc
        now = utc_now_iso()

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                UPDATE {entity} SET campaign_id = ?, data = ?, updated_at = ?
                WHERE id = ?
                """,
                (getattr(updated, "campaign_id", None), self._serialize(updated), now, record_id),
            )

        logger.info("Record updated", entity=entity, record_id=record_id)
        return updated.model_copy(update={"updated_at": now})

    def delete(self, entity: str, record_id: int) -> bool:
        """Delete a record.

        Returns:
            True if deleted, False if not found.
        """
        self._model_for(entity)
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"DELETE FROM {entity} WHERE id = ?", (record_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Record deleted", entity=entity, record_id=record_id)
        return deleted

    def count(self, entity: str) -> int:
        self._model_for(entity)
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT COUNT(*) FROM {entity}")
            return cursor.fetchone()[0]

    # =========================================================================
    # Characters
    # =========================================================================

    def get_character(self, character_id: int) -> Character | None:
        return self.get("characters", character_id)  # type: ignore[return-value]

    def award_xp_to_character(self, character_id: int, amount: int) -> Character | None:
        """Add XP to a character and recompute its level from the new total.

        Args:
            character_id: Character to reward.
            amount: XP to add; negative amounts are rejected.

        Returns:
            The updated character, or None if it does not exist.

        Raises:
            ValidationError: If the amount is negative.
        """
        if amount < 0:
            raise ValidationError(
                "XP amount must not be negative", field_name="amount", invalid_value=amount
            )
        character = self.get_character(character_id)
        if character is None:
            return None

        total = character.experience + amount
        level = get_level_from_xp(total)
        updated = self.update("characters", character_id, {"experience": total, "level": level})
        logger.info(
            "XP awarded",
            character_id=character_id,
            amount=amount,
            total=total,
            level=level,
        )
        return updated  # type: ignore[return-value]

    def update_character_level(self, character_id: int, level: int) -> Character | None:
        """Set a character's level directly (milestone levelling).

        Experience is raised to the level's threshold when it falls short, so
        XP and level stay consistent.

        Raises:
            ValidationError: If the level is outside 1..20.
        """
        validate_level(level)
        character = self.get_character(character_id)
        if character is None:
            return None

        experience = max(character.experience, get_xp_for_level(level))
        updated = self.update(
            "characters", character_id, {"level": level, "experience": experience}
        )
        logger.info("Milestone level set", character_id=character_id, level=level)
        return updated  # type: ignore[return-value]

    # =========================================================================
    # Campaigns, Participants & Sessions
    # =========================================================================

    def get_campaign(self, campaign_id: int) -> Campaign | None:
        return self.get("campaigns", campaign_id)  # type: ignore[return-value]

    def complete_campaign(self, campaign_id: int) -> Campaign | None:
        """Mark a campaign completed and stamp the completion time."""
        return self.update(  # type: ignore[return-value]
            "campaigns",
            campaign_id,
            {"is_completed": True, "completed_at": utc_now_iso()},
        )

    def archive_campaign(self, campaign_id: int) -> Campaign | None:
        return self.update("campaigns", campaign_id, {"is_archived": True})  # type: ignore[return-value]

    def restore_campaign(self, campaign_id: int) -> Campaign | None:
        return self.update("campaigns", campaign_id, {"is_archived": False})  # type: ignore[return-value]

    def get_archived_campaigns(self, user_id: int) -> list[Campaign]:
        campaigns: list[Campaign] = self.list("campaigns")  # type: ignore[assignment]
        return [c for c in campaigns if c.is_archived and c.user_id == user_id]

    def get_campaign_participants(self, campaign_id: int) -> list[CampaignParticipant]:
        """Participants of a campaign in turn order."""
        participants: list[CampaignParticipant] = self.list(  # type: ignore[assignment]
            "campaign_participants", campaign_id=campaign_id
        )
        return sorted(participants, key=lambda p: (p.turn_order or 0, p.id or 0))

    def add_campaign_participant(self, participant: CampaignParticipant) -> CampaignParticipant:
        """Add a participant, placing it last in the turn order if none is given."""
        if participant.turn_order is None:
            existing = self.get_campaign_participants(participant.campaign_id)
            last = max((p.turn_order or 0 for p in existing), default=0)
            participant = participant.model_copy(update={"turn_order": last + 1})
        return self.create("campaign_participants", participant)

    def get_campaign_sessions(self, campaign_id: int) -> list[CampaignSession]:
        """Sessions of a campaign ordered by session number."""
        sessions: list[CampaignSession] = self.list(  # type: ignore[assignment]
            "campaign_sessions", campaign_id=campaign_id
        )
        return sorted(sessions, key=lambda s: s.session_number)

    def get_campaign_session(
        self, campaign_id: int, session_number: int
    ) -> CampaignSession | None:
        for session in self.get_campaign_sessions(campaign_id):
            if session.session_number == session_number:
                return session
        return None

    def get_latest_campaign_session(self, campaign_id: int) -> CampaignSession | None:
        sessions = self.get_campaign_sessions(campaign_id)
        return sessions[-1] if sessions else None

    def create_campaign_session(self, session: CampaignSession) -> CampaignSession:
        """Store a session and move the campaign's current session to it.

        Raises:
            RecordNotFoundError: If the campaign does not exist.
        """
        self.require("campaigns", session.campaign_id)
        created = self.create("campaign_sessions", session)
        self.update("campaigns", session.campaign_id, {"current_session": session.session_number})
        logger.info(
            "Campaign session created",
            campaign_id=session.campaign_id,
            session_number=session.session_number,
        )
        return created

    # =========================================================================
    # Turns
    # =========================================================================

    def get_current_turn(self, campaign_id: int) -> CampaignParticipant | None:
        """Participant whose turn it is, or None when no turn is running."""
        campaign = self.get_campaign(campaign_id)
        if campaign is None or campaign.current_turn_participant_id is None:
            return None
        return self.get(  # type: ignore[return-value]
            "campaign_participants", campaign.current_turn_participant_id
        )

    def start_next_turn(self, campaign_id: int) -> CampaignParticipant | None:
        """Hand the turn to the next active participant in turn order.

        The first participant goes first, and the order wraps around after
        the last one.

        Returns:
            The participant whose turn started, or None if the campaign is
            missing, not turn-based or has no active participants.
        """
        campaign = self.get_campaign(campaign_id)
        if campaign is None or not campaign.is_turn_based:
            return None
        active = [p for p in self.get_campaign_participants(campaign_id) if p.is_active]
        if not active:
            return None

        ids = [p.id for p in active]
        current = campaign.current_turn_participant_id
        index = (ids.index(current) + 1) % len(active) if current in ids else 0
        upcoming = active[index]

        now = utc_now_iso()
        self.update(
            "campaigns",
            campaign_id,
            {"current_turn_participant_id": upcoming.id, "turn_started_at": now},
        )
        started = self.update("campaign_participants", upcoming.id, {"last_active_at": now})
        logger.info("Turn started", campaign_id=campaign_id, participant_id=upcoming.id)
        return started  # type: ignore[return-value]

    def end_current_turn(self, campaign_id: int) -> Campaign | None:
        """Clear the running turn without starting another."""
        return self.update(  # type: ignore[return-value]
            "campaigns",
            campaign_id,
            {"current_turn_participant_id": None, "turn_started_at": None},
        )

    # =========================================================================
    # Dice Rolls
    # =========================================================================

    def create_dice_roll(self, roll: DiceRoll) -> DiceRoll:
        return self.create("dice_rolls", roll)

    def _dice_rolls_newest_first(self) -> list[DiceRoll]:
        rolls: list[DiceRoll] = self.list("dice_rolls")  # type: ignore[assignment]
        return sorted(rolls, key=lambda r: (r.created_at or "", r.id or 0), reverse=True)

    def get_dice_roll_history(self, user_id: int, limit: int = 10) -> list[DiceRoll]:
        """A user's most recent rolls, newest first."""
        rolls = [r for r in self._dice_rolls_newest_first() if r.user_id == user_id]
        return rolls[:limit]

    def get_recent_dice_rolls(
        self,
        campaign_id: int,
        since: str,
        limit: int = 5,
    ) -> list[DiceRoll]:
        """Rolls made in a campaign since an ISO timestamp, newest first.

        A roll belongs to the campaign when it names the campaign or was made
        for one of its participants' characters.
        """
        character_ids = {p.character_id for p in self.get_campaign_participants(campaign_id)}
        rolls = [
            r
            for r in self._dice_rolls_newest_first()
            if (r.created_at or "") >= since
            and (r.campaign_id == campaign_id or r.character_id in character_ids)
        ]
        return rolls[:limit]

    # =========================================================================
    # Traces & Progress
    # =========================================================================

    def get_trace(self, campaign_id: int) -> CAMLTrace | None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT trace_json FROM campaign_traces WHERE campaign_id = ?",
                (campaign_id,),
            )
            row = cursor.fetchone()

        if row:
            return CAMLTrace.model_validate_json(row["trace_json"])
        return None

    def save_trace(self, campaign_id: int, trace: CAMLTrace) -> CAMLTrace:
        """Insert or replace the trace document for a campaign."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO campaign_traces (campaign_id, trace_json, updated_at)
                VALUES (?, ?, ?)
                """,
                (campaign_id, json.dumps(trace.to_document()), utc_now_iso()),
            )

        logger.debug("Trace saved", campaign_id=campaign_id, events=len(trace.events))
        return trace

    def get_progress(self, campaign_id: int) -> AdventureProgress | None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT progress_json FROM adventure_progress WHERE campaign_id = ?",
                (campaign_id,),
            )
            row = cursor.fetchone()

        if row:
            return AdventureProgress.model_validate_json(row["progress_json"])
        return None

    def save_progress(self, campaign_id: int, progress: AdventureProgress) -> AdventureProgress:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO adventure_progress (campaign_id, progress_json, updated_at)
                VALUES (?, ?, ?)
                """,
                (campaign_id, progress.model_dump_json(by_alias=True), utc_now_iso()),
            )
        return progress


# =============================================================================
# Singleton Instance
# =============================================================================


_database_instance: Database | None = None


def get_database() -> Database:
    """Get the global database instance at the configured path."""
    global _database_instance  # noqa: PLW0603

    if _database_instance is None:
        from everdice.core.config import get_settings

        _database_instance = Database(get_settings().storage.database_path)

    return _database_instance


def reset_database() -> None:
    """Drop the global instance so the next call reopens from settings."""
    global _database_instance  # noqa: PLW0603
    _database_instance = None


__all__ = [
    "ENTITY_MODELS",
    "Database",
    "get_database",
    "reset_database",
]
