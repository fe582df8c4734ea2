"""Tests for the SQLite storage layer."""

from __future__ import annotations

from typing import Any

import pytest

from everdice.core.exceptions import RecordNotFoundError, StorageError, ValidationError
from everdice.models import (
    NPC,
    Campaign,
    CampaignParticipant,
    CampaignSession,
    Character,
    DiceRoll,
)
from everdice.rules.adventure import create_empty_progress
from everdice.storage.database import Database, get_database, reset_database
from everdice.trace.events import add_trace_event, create_empty_trace


class TestRecords:
    def test_create_assigns_id_and_timestamps(self, sample_character: Character) -> None:
        assert sample_character.id is not None
        assert sample_character.created_at is not None
        assert sample_character.created_at == sample_character.updated_at

    def test_round_trip(self, db: Database, sample_character: Character) -> None:
        loaded = db.get("characters", sample_character.id)

        assert loaded == sample_character
        assert loaded.model_dump(by_alias=True)["class"] == "Rogue"

    def test_get_missing(self, db: Database) -> None:
        assert db.get("characters", 12345) is None

    def test_require_missing(self, db: Database) -> None:
        with pytest.raises(RecordNotFoundError, match="characters record not found"):
            db.require("characters", 12345)

    def test_unknown_entity(self, db: Database) -> None:
        with pytest.raises(StorageError):
            db.list("dragons")

    def test_list_by_campaign(self, db: Database) -> None:
        db.create("dice_rolls", DiceRoll(campaign_id=1, result=3))
        db.create("dice_rolls", DiceRoll(campaign_id=2, result=4))
        db.create("dice_rolls", DiceRoll(campaign_id=1, result=5))

        assert [r.result for r in db.list("dice_rolls", campaign_id=1)] == [3, 5]
        assert db.count("dice_rolls") == 3

    def test_update(self, db: Database, sample_character: Character) -> None:
        updated = db.update(
            "characters", sample_character.id, {"hit_points": 9, "character_class": "Bard"}
        )

        assert updated.hit_points == 9
        assert updated.character_class == "Bard"
        assert db.get_character(sample_character.id).hit_points == 9

    def test_invalid_update_raises_domain_error(
        self, db: Database, sample_character: Character
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            db.update("characters", sample_character.id, {"level": 25})

        assert exc_info.value.details["field_name"] == "level"
        assert exc_info.value.details["record_id"] == sample_character.id
        assert db.get_character(sample_character.id).level == sample_character.level

    def test_update_missing(self, db: Database) -> None:
        assert db.update("characters", 12345, {"level": 2}) is None

    def test_delete(self, db: Database, sample_character: Character) -> None:
        assert db.delete("characters", sample_character.id) is True
        assert db.delete("characters", sample_character.id) is False
        assert db.count("characters") == 0

    def test_persists_across_instances(self, db: Database, sample_character: Character) -> None:
        reopened = Database(db.db_path)

        assert reopened.get_character(sample_character.id).name == "Mira Thornwood"


class TestCharacterProgression:
    def test_award_xp_levels_up(self, db: Database, sample_character: Character) -> None:
        updated = db.award_xp_to_character(sample_character.id, 1800)

        assert updated.experience == 2700
        assert updated.level == 4

    def test_award_xp_without_level_change(
        self, db: Database, sample_character: Character
    ) -> None:
        updated = db.award_xp_to_character(sample_character.id, 100)

        assert updated.experience == 1000
        assert updated.level == 3

    def test_negative_xp_rejected(self, db: Database, sample_character: Character) -> None:
        with pytest.raises(ValidationError):
            db.award_xp_to_character(sample_character.id, -5)

    def test_award_xp_missing_character(self, db: Database) -> None:
        assert db.award_xp_to_character(12345, 50) is None

    def test_milestone_raises_experience(self, db: Database, sample_character: Character) -> None:
        updated = db.update_character_level(sample_character.id, 5)

        assert updated.level == 5
        assert updated.experience == 6500

    def test_milestone_keeps_higher_experience(
        self, db: Database, sample_character: Character
    ) -> None:
        updated = db.update_character_level(sample_character.id, 2)

        assert updated.level == 2
        assert updated.experience == 900

    @pytest.mark.parametrize("level", [0, 21])
    def test_milestone_rejects_invalid_level(
        self, db: Database, sample_character: Character, level: int
    ) -> None:
        with pytest.raises(ValidationError):
            db.update_character_level(sample_character.id, level)


class TestCampaigns:
    def test_complete_campaign(self, db: Database, sample_campaign: Campaign) -> None:
        completed = db.complete_campaign(sample_campaign.id)

        assert completed.is_completed is True
        assert completed.completed_at is not None

    def test_archive_and_restore(self, db: Database, sample_campaign: Campaign) -> None:
        assert db.archive_campaign(sample_campaign.id).is_archived is True
        assert [c.id for c in db.get_archived_campaigns(sample_campaign.user_id)] == [
            sample_campaign.id
        ]
        assert db.get_archived_campaigns(user_id=42) == []

        assert db.restore_campaign(sample_campaign.id).is_archived is False
        assert db.get_archived_campaigns(sample_campaign.user_id) == []
        assert db.archive_campaign(999) is None

    def test_participants_in_turn_order(self, db: Database, sample_campaign: Campaign) -> None:
        first = db.add_campaign_participant(
            CampaignParticipant(campaign_id=sample_campaign.id, character_id=1)
        )
        db.add_campaign_participant(
            CampaignParticipant(campaign_id=sample_campaign.id, character_id=2, turn_order=10)
        )
        last = db.add_campaign_participant(
            CampaignParticipant(campaign_id=sample_campaign.id, character_id=3)
        )
        db.add_campaign_participant(CampaignParticipant(campaign_id=999, character_id=4))

        assert first.turn_order == 1
        assert last.turn_order == 11
        order = [p.character_id for p in db.get_campaign_participants(sample_campaign.id)]
        assert order == [1, 2, 3]

    def test_session_creation_moves_current_session(
        self, db: Database, sample_campaign: Campaign
    ) -> None:
        for number in (2, 1, 3):
            db.create_campaign_session(
                CampaignSession(
                    campaign_id=sample_campaign.id,
                    session_number=number,
                    title=f"Scene {number}",
                    narrative="...",
                )
            )

        assert db.get_campaign(sample_campaign.id).current_session == 3
        assert [s.session_number for s in db.get_campaign_sessions(sample_campaign.id)] == [1, 2, 3]
        assert db.get_latest_campaign_session(sample_campaign.id).session_number == 3
        assert db.get_campaign_session(sample_campaign.id, 2).title == "Scene 2"
        assert db.get_campaign_session(sample_campaign.id, 9) is None

    def test_session_requires_campaign(self, db: Database) -> None:
        with pytest.raises(RecordNotFoundError):
            db.create_campaign_session(
                CampaignSession(campaign_id=404, session_number=1, title="Lost", narrative="...")
            )

    def test_npcs_are_global(self, db: Database) -> None:
        db.create("npcs", NPC(name="Brannoc", race="Dwarf", occupation="Smith", is_companion=True))

        assert [npc.name for npc in db.list("npcs") if npc.is_companion] == ["Brannoc"]


class TestTurns:
    @pytest.fixture
    def turn_campaign(self, db: Database) -> Campaign:
        return db.create("campaigns", Campaign(title="Tower of Bells", is_turn_based=True))

    def _join(self, db: Database, campaign: Campaign, character_id: int, **fields: Any) -> int:
        participant = db.add_campaign_participant(
            CampaignParticipant(campaign_id=campaign.id, character_id=character_id, **fields)
        )
        return participant.id

    def test_turns_wrap_around_active_participants(
        self, db: Database, turn_campaign: Campaign
    ) -> None:
        first = self._join(db, turn_campaign, 1)
        self._join(db, turn_campaign, 2, is_active=False)
        third = self._join(db, turn_campaign, 3)

        order = [db.start_next_turn(turn_campaign.id).id for _ in range(3)]

        assert order == [first, third, first]
        assert db.get_current_turn(turn_campaign.id).id == first
        assert db.get_campaign(turn_campaign.id).turn_started_at is not None
        assert db.get_current_turn(turn_campaign.id).last_active_at is not None

    def test_end_current_turn(self, db: Database, turn_campaign: Campaign) -> None:
        self._join(db, turn_campaign, 1)
        db.start_next_turn(turn_campaign.id)

        ended = db.end_current_turn(turn_campaign.id)

        assert ended.current_turn_participant_id is None
        assert ended.turn_started_at is None
        assert db.get_current_turn(turn_campaign.id) is None

    def test_no_turn_without_turn_based_campaign(
        self, db: Database, sample_campaign: Campaign
    ) -> None:
        self._join(db, sample_campaign, 1)

        assert db.start_next_turn(sample_campaign.id) is None

    def test_no_turn_without_participants(self, db: Database, turn_campaign: Campaign) -> None:
        assert db.start_next_turn(turn_campaign.id) is None
        assert db.start_next_turn(999) is None


class TestDiceRolls:
    def test_history_newest_first(self, db: Database) -> None:
        for result in range(1, 15):
            db.create_dice_roll(DiceRoll(result=result))
        db.create_dice_roll(DiceRoll(user_id=2, result=20))

        history = db.get_dice_roll_history(1)

        assert len(history) == 10
        assert history[0].result == 14
        assert all(roll.user_id == 1 for roll in history)
        assert len(db.get_dice_roll_history(1, limit=3)) == 3

    def test_recent_rolls_for_campaign(
        self, db: Database, sample_campaign: Campaign, sample_character: Character
    ) -> None:
        db.add_campaign_participant(
            CampaignParticipant(campaign_id=sample_campaign.id, character_id=sample_character.id)
        )
        db.create_dice_roll(DiceRoll(character_id=sample_character.id, result=11))
        db.create_dice_roll(DiceRoll(campaign_id=sample_campaign.id, result=12))
        db.create_dice_roll(DiceRoll(campaign_id=999, result=13))

        recent = db.get_recent_dice_rolls(sample_campaign.id, "2000-01-01T00:00:00+00:00")

        assert sorted(r.result for r in recent) == [11, 12]
        assert db.get_recent_dice_rolls(sample_campaign.id, "2999-01-01T00:00:00+00:00") == []


class TestTracesAndProgress:
    def test_trace_round_trip(self, db: Database) -> None:
        trace = create_empty_trace(3, "The Sunken Keep")
        add_trace_event(trace, "dnd5e.levelUp", {"actorId": "PC_mira", "newLevel": 4, "class": "Rogue"})

        db.save_trace(3, trace)
        loaded = db.get_trace(3)

        assert loaded is not None
        assert loaded.id == trace.id
        assert loaded.created_utc == trace.created_utc
        assert loaded.events[0].payload.character_class == "Rogue"
        assert db.get_trace(4) is None

    def test_progress_round_trip(self, db: Database) -> None:
        progress = create_empty_progress()
        progress.encounters.combat = 2
        progress.puzzles = 1

        db.save_progress(7, progress)

        assert db.get_progress(7) == progress
        assert db.get_progress(8) is None


def test_get_database_uses_settings(tmp_path: Any) -> None:
    database = get_database()

    assert database is get_database()
    assert database.db_path == tmp_path / "default.db"

    reset_database()
    assert get_database() is not database
