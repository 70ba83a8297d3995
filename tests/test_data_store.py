"""
Tests for codex/data_store.py -- DataStore CRUD, cascade delete and write-through.

Validates:
    - Character creation defaults and ordering
    - Patch semantics and silent no-ops on unknown ids
    - Relation rules (self, duplicates, unknown endpoints, default type)
    - Cascade delete of relations
    - Every mutation persisting before it returns
"""

import random

import pytest

from codex.data_store import DataStore
from codex.models import STATUSES
from codex.persistence import LocalStorage


def _reload(store):
    """Return what a fresh process would see in the storage slot."""
    return LocalStorage(store.storage.storage_dir).load()


@pytest.fixture
def pair(store):
    """Create two named characters and return their ids (seren, dravik)."""
    seren = store.create_character()
    store.update_character(seren["id"], {"name": "Seren"})
    dravik = store.create_character()
    store.update_character(dravik["id"], {"name": "Dravik"})
    return seren["id"], dravik["id"]


# ---------------------------------------------------------------------------
# Characters
# ---------------------------------------------------------------------------

class TestCreateCharacter:
    def test_defaults(self, store):
        c = store.create_character()
        assert c["status"] == "alive"
        assert c["status"] in STATUSES
        assert c["tags"] == []
        assert c["favorite"] is False
        for field in ("alias", "race", "age", "continent", "clan", "appearance",
                      "personality", "lore", "powers", "weaknesses", "notes"):
            assert c[field] == ""
        assert c["createdAt"] == c["updatedAt"]
        assert c["id"]

    def test_newest_first(self, store):
        first = store.create_character()
        second = store.create_character()
        assert [c["id"] for c in store.characters] == [second["id"], first["id"]]

    def test_ids_are_unique(self, store):
        ids = {store.create_character()["id"] for _ in range(50)}
        assert len(ids) == 50

    def test_create_persists(self, store):
        c = store.create_character()
        assert [x["id"] for x in _reload(store)["characters"]] == [c["id"]]


class TestUpdateCharacter:
    def test_patch_merges_only_given_fields(self, store):
        c = store.create_character()
        assert store.update_character(c["id"], {"name": "Kael Varyn", "race": "human"})
        updated = store.get_character(c["id"])
        assert updated["name"] == "Kael Varyn"
        assert updated["race"] == "human"
        assert updated["status"] == "alive"

    def test_update_refreshes_updated_at(self, store, monkeypatch):
        import codex.data_store

        c = store.create_character()
        monkeypatch.setattr(codex.data_store, "now_iso", lambda: "2999-01-01T00:00:00.000Z")
        store.update_character(c["id"], {"notes": "x"})
        assert c["updatedAt"] == "2999-01-01T00:00:00.000Z"
        assert c["updatedAt"] >= c["createdAt"]

    def test_id_cannot_be_patched(self, store):
        c = store.create_character()
        original = c["id"]
        store.update_character(original, {"id": "hijacked", "name": "N"})
        assert store.get_character(original)["name"] == "N"
        assert store.get_character("hijacked") is None

    def test_unknown_id_is_a_silent_no_op(self, store, storage):
        store.create_character()
        before = storage.path.read_text(encoding="utf-8")
        assert store.update_character("missing", {"name": "Ghost"}) is False
        assert storage.path.read_text(encoding="utf-8") == before

    def test_update_persists(self, store):
        c = store.create_character()
        store.update_character(c["id"], {"favorite": True})
        assert _reload(store)["characters"][0]["favorite"] is True

    def test_unknown_fields_are_kept(self, store):
        c = store.create_character()
        store.update_character(c["id"], {"homeworld": "Sythra"})
        assert store.get_character(c["id"])["homeworld"] == "Sythra"


class TestDeleteCharacter:
    def test_delete_removes_character(self, store, pair):
        seren, dravik = pair
        assert store.delete_character(dravik) is True
        assert store.get_character(dravik) is None
        assert store.get_character(seren) is not None

    def test_delete_cascades_to_relations(self, store, pair):
        seren, dravik = pair
        store.add_relation(seren, dravik, "rival")
        store.add_relation(dravik, seren, "enemy")
        store.delete_character(dravik)
        assert store.relations == []
        assert _reload(store)["relations"] == []

    def test_delete_keeps_unrelated_relations(self, store, pair):
        seren, dravik = pair
        third = store.create_character()["id"]
        store.add_relation(seren, third, "ally")
        store.add_relation(seren, dravik, "rival")
        store.delete_character(dravik)
        assert [(r["fromId"], r["toId"]) for r in store.relations] == [(seren, third)]

    def test_delete_unknown_id_returns_false(self, store, pair):
        assert store.delete_character("nobody") is False
        assert len(store.characters) == 2

    def test_no_dangling_relations_after_random_deletes(self, store):
        rng = random.Random(7)
        ids = [store.create_character()["id"] for _ in range(8)]
        for _ in range(30):
            a, b = rng.sample(ids, 2)
            store.add_relation(a, b, rng.choice(["ally", "enemy", "rival"]))
        for victim in rng.sample(ids, 4):
            store.delete_character(victim)
            assert all(r["fromId"] != victim and r["toId"] != victim for r in store.relations)
        alive = {c["id"] for c in store.characters}
        assert all(r["fromId"] in alive and r["toId"] in alive for r in store.relations)


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------

class TestAddRelation:
    def test_add_relation(self, store, pair):
        seren, dravik = pair
        rel = store.add_relation(seren, dravik, "rival", "old debt")
        assert rel["fromId"] == seren
        assert rel["toId"] == dravik
        assert rel["type"] == "rival"
        assert rel["note"] == "old debt"
        assert rel["id"] and rel["createdAt"]

    def test_newest_first(self, store, pair):
        seren, dravik = pair
        first = store.add_relation(seren, dravik, "ally")
        second = store.add_relation(seren, dravik, "mentor")
        assert [r["id"] for r in store.relations] == [second["id"], first["id"]]

    def test_duplicate_triple_is_a_no_op(self, store, pair):
        seren, dravik = pair
        assert store.add_relation(seren, dravik, "rival") is not None
        assert store.add_relation(seren, dravik, "rival") is None
        assert len(store.relations) == 1

    def test_same_pair_different_type_is_allowed(self, store, pair):
        seren, dravik = pair
        store.add_relation(seren, dravik, "rival")
        store.add_relation(seren, dravik, "family")
        assert len(store.relations) == 2

    def test_reverse_direction_is_a_different_relation(self, store, pair):
        seren, dravik = pair
        store.add_relation(seren, dravik, "mentor")
        store.add_relation(dravik, seren, "mentor")
        assert len(store.relations) == 2

    @pytest.mark.parametrize("rel_type", ["ally", "rival", "", None])
    def test_self_relation_is_rejected(self, store, pair, rel_type):
        seren, _ = pair
        assert store.add_relation(seren, seren, rel_type) is None
        assert store.relations == []

    @pytest.mark.parametrize("from_id,to_id", [("", "x"), ("x", ""), (None, "x")])
    def test_missing_ids_are_rejected(self, store, from_id, to_id):
        assert store.add_relation(from_id, to_id, "ally") is None

    def test_unknown_endpoint_is_rejected(self, store, pair):
        seren, _ = pair
        assert store.add_relation(seren, "ghost", "ally") is None
        assert store.add_relation("ghost", seren, "ally") is None
        assert store.relations == []

    def test_falsy_type_defaults_to_ally(self, store, pair):
        seren, dravik = pair
        rel = store.add_relation(seren, dravik, "")
        assert rel["type"] == "ally"

    def test_falsy_type_is_idempotent(self, store, pair):
        seren, dravik = pair
        store.add_relation(seren, dravik, None)
        store.add_relation(seren, dravik, "")
        store.add_relation(seren, dravik, "ally")
        assert len(store.relations) == 1

    def test_rejected_relation_does_not_persist(self, store, pair, storage):
        seren, _ = pair
        before = storage.path.read_text(encoding="utf-8")
        store.add_relation(seren, seren, "ally")
        assert storage.path.read_text(encoding="utf-8") == before


class TestRemoveRelation:
    def test_remove_by_id(self, store, pair):
        seren, dravik = pair
        rel = store.add_relation(seren, dravik, "rival")
        assert store.remove_relation(rel["id"]) is True
        assert store.relations == []
        assert _reload(store)["relations"] == []

    def test_remove_unknown_id(self, store, pair):
        seren, dravik = pair
        store.add_relation(seren, dravik, "rival")
        assert store.remove_relation("nope") is False
        assert len(store.relations) == 1


# ---------------------------------------------------------------------------
# Catalogs and whole dataset
# ---------------------------------------------------------------------------

class TestCatalogsAndReplace:
    def test_set_catalogs(self, store):
        store.set_catalogs(["Varyon"], ["Quinq", "Alfanor"])
        assert store.continents == ["Varyon"]
        assert store.clans == ["Quinq", "Alfanor"]
        reloaded = _reload(store)
        assert reloaded["continents"] == ["Varyon"]
        assert reloaded["clans"] == ["Quinq", "Alfanor"]

    def test_replace_dataset_swaps_whole_document(self, store, sample_backup):
        store.create_character()
        store.replace_dataset(sample_backup)
        assert store.dataset is sample_backup
        assert [c["id"] for c in store.characters] == ["c-seren", "c-dravik"]
        assert _reload(store)["characters"] == sample_backup["characters"]

    def test_missing_catalogs_read_as_empty(self, store):
        store.replace_dataset({"meta": {}, "characters": [], "relations": []})
        assert store.continents == []
        assert store.clans == []

    def test_malformed_records_are_tolerated(self, store):
        store.replace_dataset({"meta": {}, "characters": [42, {"id": "a"}], "relations": ["x"]})
        assert store.get_character("a") == {"id": "a"}
        assert store.update_character("a", {"name": "A"}) is True
        assert store.delete_character("a") is True
        assert store.characters == [42]

    def test_failed_replace_keeps_current_dataset(self, store, storage, sample_backup, monkeypatch):
        character = store.create_character()
        before = store.dataset

        def _boom(dataset):
            raise OSError("disk full")

        monkeypatch.setattr(storage, "save", _boom)
        with pytest.raises(OSError):
            store.replace_dataset(sample_backup)

        assert store.dataset is before
        assert store.get_character(character["id"]) is character
        assert store.get_character("c-seren") is None

    def test_store_loads_existing_slot(self, storage, sample_backup):
        storage.save(sample_backup)
        store = DataStore(storage)
        assert store.get_character("c-seren")["name"] == "Seren"
