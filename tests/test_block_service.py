import pytest

from quotation.models.block import Block, BlockContent
from quotation.schemas.block import BlockCreate, BlockUpdate
from quotation.schemas.content import BlockContentIn
from quotation.services import block_service, lock_service
from quotation.services.audit_service import EntityType
from quotation.utils.errors import LockConflict, NotFound
from tests.conftest import history_rows


def test_create_block_defaults(db, seed_users):
    block = block_service.create_block(db, BlockCreate(position=4), seed_users["sales"])

    assert block.name == "Neuer Block"
    assert block.standard is False
    assert block.position is None
    assert block.contents == []
    assert history_rows(db, "blocks", block.id)[0].action == "INSERT"


def test_standard_block_gets_next_position(db, seed_users, seed_block):
    block = block_service.create_block(db, BlockCreate(name="AGB", standard=True), seed_users["sales"])
    assert block.position == 2


def test_copy_block(db, seed_users, seed_block):
    copy = block_service.copy_block(db, seed_block.id, seed_users["sales"])

    assert copy.name == "Einleitung (Kopie)"
    assert copy.standard is True
    assert copy.position == 2
    assert [c.content for c in copy.contents] == ["Hallo"]
    assert history_rows(db, "blocks", copy.id)[0].change_metadata == {"originalEntityId": seed_block.id}


def test_copy_missing_block(db, seed_users):
    with pytest.raises(NotFound):
        block_service.copy_block(db, 404, seed_users["sales"])


def test_save_block_content_checks_lock(db, seed_users, seed_block, seed_languages):
    lock_service.acquire_lock(db, EntityType.BLOCKS, seed_block.id, seed_users["sales"])
    contents = [BlockContentIn(title="Intro", content="Hi", language_id=seed_languages["en"].id)]

    with pytest.raises(LockConflict):
        block_service.save_block_content(db, seed_block.id, contents, seed_users["other"])
    assert history_rows(db, "block_content") == []

    created = block_service.save_block_content(db, seed_block.id, contents, seed_users["sales"])
    assert [c.title for c in created] == ["Intro"]


def test_unsetting_standard_clears_position(db, seed_users, seed_block):
    block = block_service.save_block(db, seed_block.id, BlockUpdate(standard=False), seed_users["sales"])
    assert block.position is None

    entry = history_rows(db, "blocks", seed_block.id)[0]
    assert entry.changed_fields == {
        "standard": {"old": True, "new": False},
        "position": {"old": 1, "new": None},
    }


def test_delete_block(db, seed_users, seed_block):
    block_service.delete_block(db, seed_block.id, seed_users["sales"])

    db.expire_all()
    assert db.get(Block, seed_block.id).deleted is True
    assert block_service.list_blocks(db) == []
    assert [entry["action"] for entry in block_service.get_block_change_history(db, seed_block.id)] == ["DELETE"]


def test_saving_deleted_block_writes_nothing(db, seed_users, seed_block, seed_languages):
    user = seed_users["sales"]
    block_service.delete_block(db, seed_block.id, user)
    before = len(history_rows(db))

    with pytest.raises(NotFound):
        block_service.save_block(db, seed_block.id, BlockUpdate(name="Neu"), user)
    with pytest.raises(NotFound):
        block_service.save_block_content(
            db, seed_block.id, [BlockContentIn(title="Neu", language_id=seed_languages["de"].id)], user
        )

    db.expire_all()
    assert db.get(Block, seed_block.id).name == "Einleitung"
    live = db.query(BlockContent).filter(BlockContent.block_id == seed_block.id, BlockContent.deleted == False).all()  # noqa: E712
    assert live == []
    assert len(history_rows(db)) == before
