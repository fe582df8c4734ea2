"""DM toolkit endpoints: monsters, quests, items, locations, NPCs, encounters, rewards.

Each entity gets list, create, get, update (PUT with only the changed fields)
and delete routes, registered per entity from ``TOOLKIT_ENTITIES``. Body
annotations are evaluated when the handlers are defined, so this module does
not use postponed annotations.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Response

from everdice.api.deps import get_db
from everdice.core.exceptions import RecordNotFoundError
from everdice.core.logging import get_logger
from everdice.models.base import Record
from everdice.models.toolkit import NPC, Encounter, InventoryItem, Location, Monster, Quest, Reward
from everdice.storage.database import Database


logger = get_logger(__name__)

router = APIRouter(prefix="/dm-toolkit", tags=["dm-toolkit"])

TOOLKIT_ENTITIES: dict[str, tuple[str, type[Record]]] = {
    "monsters": ("monster", Monster),
    "quests": ("quest", Quest),
    "items": ("item", InventoryItem),
    "locations": ("location", Location),
    "npcs": ("npc", NPC),
    "encounters": ("encounter", Encounter),
    "rewards": ("reward", Reward),
}
"""URL segment to (singular name, record model)."""


def _register(entity: str, singular: str, model: type[Record]) -> None:
    @router.get(f"/{entity}", response_model=list[model], name=f"list_{entity}")
    def list_records(db: Database = Depends(get_db)) -> list[Record]:
        return db.list(entity)

    @router.post(f"/{entity}", response_model=model, status_code=201, name=f"create_{singular}")
    def create_record(record: model, db: Database = Depends(get_db)) -> Record:  # type: ignore[valid-type]
        created = db.create(entity, record)
        logger.info("Toolkit record created", entity=entity, record_id=created.id)
        return created

    @router.get(f"/{entity}/{{record_id}}", response_model=model, name=f"get_{singular}")
    def get_record(record_id: int, db: Database = Depends(get_db)) -> Record:
        return db.require(entity, record_id)

    @router.put(f"/{entity}/{{record_id}}", response_model=model, name=f"update_{singular}")
    def update_record(
        record_id: int,
        changes: dict[str, Any] = Body(...),
        db: Database = Depends(get_db),
    ) -> Record:
        updated = db.update(entity, record_id, changes)
        if updated is None:
            raise RecordNotFoundError(f"{entity} record not found", entity=entity, record_id=record_id)
        logger.info("Toolkit record updated", entity=entity, record_id=record_id)
        return updated

    @router.delete(f"/{entity}/{{record_id}}", status_code=204, name=f"delete_{singular}")
    def delete_record(record_id: int, db: Database = Depends(get_db)) -> Response:
        if not db.delete(entity, record_id):
            raise RecordNotFoundError(f"{entity} record not found", entity=entity, record_id=record_id)
        logger.info("Toolkit record deleted", entity=entity, record_id=record_id)
        return Response(status_code=204)


for _entity, (_singular, _model) in TOOLKIT_ENTITIES.items():
    _register(_entity, _singular, _model)
