import json
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from staketrack.app import create_app
from staketrack.auth import DevAuthVerifier
from staketrack.config import Settings
from staketrack.db import InMemoryDbClient
from staketrack.dependencies import (
    get_db_client,
    get_event_queue,
    get_local_storage,
    get_storage_client,
)
from staketrack.local_storage import InMemoryLocalStorage
from staketrack.queue import InMemoryEventQueue
from staketrack.storage import InMemoryStorageClient
from staketrack.worker import process_next

GUEST = {"X-Guest-Id": "guest-1"}
ALICE = {"Authorization": "Bearer dev:alice"}
ADMIN = {"Authorization": "Bearer dev:root:admin"}


class StakeTrackApiTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.local_storage = InMemoryLocalStorage()
        self.queue = InMemoryEventQueue()
        self.storage = InMemoryStorageClient()

        app = create_app()
        app.dependency_overrides[get_db_client] = lambda: self.db
        app.dependency_overrides[get_local_storage] = lambda: self.local_storage
        app.dependency_overrides[get_event_queue] = lambda: self.queue
        app.dependency_overrides[get_storage_client] = lambda: self.storage

        verifier = patch(
            "staketrack.dependencies.get_auth_verifier",
            return_value=DevAuthVerifier(),
        )
        verifier.start()
        self.addCleanup(verifier.stop)
        self.client = TestClient(app)

    def _create_map(self, headers, **fields):
        response = self.client.post("/api/maps", json=fields, headers=headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _add_stakeholder(self, map_id, headers, **fields):
        response = self.client.post(
            f"/api/maps/{map_id}/stakeholders", json=fields, headers=headers
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_health_config_and_version(self):
        self.assertEqual(self.client.get("/api/health").json()["status"], "ok")

        config = self.client.get("/api/config").json()
        self.assertIn("configIncomplete", config)
        self.assertIn("apiKey", config["firebase"])
        self.assertGreaterEqual(config["limits"]["maxStakeholdersPerMap"], 1)

        version = self.client.get("/api/version").json()
        self.assertIn("version", version)
        self.assertIn("environment", version)

    def test_guest_maps_live_in_local_storage(self):
        created = self._create_map(GUEST, name="Launch", projectName="Apollo")
        self.assertEqual(created["name"], "Launch")
        self.assertEqual(created["projectName"], "Apollo")
        self.assertEqual(created["stakeholders"], [])

        listed = self.client.get("/api/maps", headers=GUEST).json()
        self.assertEqual([m["id"] for m in listed], [created["id"]])
        self.assertNotIn("stakeholders", listed[0])

        stored = self.local_storage.get_item("guest-1", "maps")
        self.assertEqual(len(stored), 1)
        self.assertEqual(self.db.maps, {})

        # Another guest does not see the map.
        other = self.client.get("/api/maps", headers={"X-Guest-Id": "guest-2"})
        self.assertEqual(other.json(), [])

    def test_authenticated_maps_live_in_document_store(self):
        created = self._create_map(ALICE, name="Board")
        self.assertIn(("alice", created["id"]), self.db.maps)
        self.assertEqual(created["createdBy"], "alice")
        self.assertEqual(self.client.get("/api/maps", headers=GUEST).json(), [])

    def test_map_update_archive_and_delete(self):
        created = self._create_map(GUEST, name="Old")
        map_id = created["id"]

        updated = self.client.patch(
            f"/api/maps/{map_id}",
            json={"name": "New", "viewSettings": {"sortBy": "influence"}},
            headers=GUEST,
        ).json()
        self.assertEqual(updated["name"], "New")
        self.assertEqual(updated["viewSettings"]["sortBy"], "influence")
        self.assertEqual(updated["viewSettings"]["layout"], "grid")

        self.client.patch(
            f"/api/maps/{map_id}", json={"isArchived": True}, headers=GUEST
        )
        self.assertEqual(self.client.get("/api/maps", headers=GUEST).json(), [])
        archived = self.client.get(
            "/api/maps", params={"include_archived": True}, headers=GUEST
        ).json()
        self.assertEqual(len(archived), 1)

        response = self.client.delete(f"/api/maps/{map_id}", headers=GUEST)
        self.assertEqual(response.status_code, 204)
        response = self.client.get(f"/api/maps/{map_id}", headers=GUEST)
        self.assertEqual(response.status_code, 404)

    def test_stakeholder_scores_are_clamped_and_classified(self):
        map_id = self._create_map(GUEST)["id"]
        stakeholder = self._add_stakeholder(
            map_id, GUEST, name="CFO", influence=12, impact=8.5, relationship=0
        )
        self.assertEqual(stakeholder["influence"], 10)
        self.assertEqual(stakeholder["impact"], 9)
        self.assertEqual(stakeholder["relationship"], 1)
        self.assertEqual(stakeholder["quadrant"], "manage-closely")
        self.assertEqual(stakeholder["mapId"], map_id)

        matrix = self.client.get(f"/api/maps/{map_id}/matrix", headers=GUEST).json()
        self.assertEqual(
            set(matrix),
            {"manage-closely", "keep-satisfied", "keep-informed", "monitor"},
        )
        self.assertEqual([s["name"] for s in matrix["manage-closely"]], ["CFO"])
        self.assertEqual(matrix["monitor"], [])

    def test_stakeholder_defaults_and_update(self):
        map_id = self._create_map(GUEST)["id"]
        stakeholder = self._add_stakeholder(map_id, GUEST, category="not-a-category")
        self.assertEqual(stakeholder["name"], "New Stakeholder")
        self.assertEqual(stakeholder["category"], "other")
        self.assertEqual(stakeholder["influence"], 5)

        response = self.client.patch(
            f"/api/maps/{map_id}/stakeholders/{stakeholder['id']}",
            json={"influence": 8, "interests": "Budget"},
            headers=GUEST,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["influence"], 8)
        self.assertEqual(response.json()["interests"], "Budget")
        self.assertEqual(response.json()["quadrant"], "keep-satisfied")

    def test_list_stakeholders_sorts_and_filters(self):
        map_id = self._create_map(GUEST)["id"]
        self._add_stakeholder(map_id, GUEST, name="b", influence=3, category="internal")
        self._add_stakeholder(map_id, GUEST, name="a", influence=9, category="external")

        by_name = self.client.get(
            f"/api/maps/{map_id}/stakeholders", headers=GUEST
        ).json()
        self.assertEqual([s["name"] for s in by_name], ["a", "b"])

        by_influence = self.client.get(
            f"/api/maps/{map_id}/stakeholders",
            params={"sort_by": "influence", "sort_direction": "asc"},
            headers=GUEST,
        ).json()
        self.assertEqual([s["name"] for s in by_influence], ["b", "a"])

        internal = self.client.get(
            f"/api/maps/{map_id}/stakeholders",
            params={"filter_category": "internal"},
            headers=GUEST,
        ).json()
        self.assertEqual([s["name"] for s in internal], ["b"])

        categories = self.client.get(
            f"/api/maps/{map_id}/categories", headers=GUEST
        ).json()
        self.assertEqual(sorted(categories), ["external", "internal"])

    def test_stakeholder_limit_returns_conflict(self):
        settings = Settings(max_stakeholders_per_map=1)
        with patch("staketrack.dependencies.get_settings", return_value=settings):
            map_id = self._create_map(GUEST)["id"]
            self._add_stakeholder(map_id, GUEST, name="One")
            response = self.client.post(
                f"/api/maps/{map_id}/stakeholders", json={"name": "Two"}, headers=GUEST
            )
        self.assertEqual(response.status_code, 409)
        self.assertIn("Cannot add more than 1", response.json()["detail"])

    def test_unknown_resources_return_not_found(self):
        self.assertEqual(
            self.client.get("/api/maps/missing", headers=GUEST).status_code, 404
        )
        map_id = self._create_map(GUEST)["id"]
        response = self.client.patch(
            f"/api/maps/{map_id}/stakeholders/missing",
            json={"name": "x"},
            headers=GUEST,
        )
        self.assertEqual(response.status_code, 404)

    def test_interaction_lifecycle(self):
        map_id = self._create_map(ALICE)["id"]
        stakeholder_id = self._add_stakeholder(map_id, ALICE, name="CTO")["id"]
        base = f"/api/maps/{map_id}/stakeholders/{stakeholder_id}/interactions"

        first = self.client.post(
            base,
            json={"notes": "Kickoff", "type": "meeting", "date": "2024-01-01T10:00:00Z"},
            headers=ALICE,
        )
        self.assertEqual(first.status_code, 201, first.text)
        self.assertEqual(first.json()["stakeholderId"], stakeholder_id)
        self.assertEqual(first.json()["createdBy"], "alice")
        self.client.post(
            base,
            json={"notes": "Follow-up", "type": "email", "date": "2024-02-01T10:00:00Z"},
            headers=ALICE,
        )

        listed = self.client.get(base, headers=ALICE).json()
        self.assertEqual([i["notes"] for i in listed], ["Follow-up", "Kickoff"])

        interaction_id = first.json()["id"]
        patched = self.client.patch(
            f"{base}/{interaction_id}", json={"notes": "Kickoff call"}, headers=ALICE
        )
        self.assertEqual(patched.status_code, 200)
        self.assertEqual(patched.json()["notes"], "Kickoff call")
        self.assertEqual(patched.json()["type"], "meeting")

        response = self.client.delete(f"{base}/{interaction_id}", headers=ALICE)
        self.assertEqual(response.status_code, 204)
        response = self.client.delete(f"{base}/{interaction_id}", headers=ALICE)
        self.assertEqual(response.status_code, 404)

    def test_csv_exports(self):
        map_id = self._create_map(GUEST, name="Q3 Plan")["id"]
        stakeholder_id = self._add_stakeholder(
            map_id, GUEST, name="Legal", influence=7, impact=2
        )["id"]
        self.client.post(
            f"/api/maps/{map_id}/stakeholders/{stakeholder_id}/interactions",
            json={"notes": "Reviewed contract", "date": "2024-03-05T14:30:00Z"},
            headers=GUEST,
        )

        response = self.client.get(f"/api/maps/{map_id}/export.csv", headers=GUEST)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        self.assertIn("q3_plan_stakeholders.csv", response.headers["content-disposition"])
        lines = response.text.strip().splitlines()
        self.assertTrue(lines[0].startswith("Name,Influence,Impact,Relationship"))
        self.assertTrue(lines[1].startswith("Legal,7,2,5,other"))

        response = self.client.get(
            f"/api/maps/{map_id}/stakeholders/{stakeholder_id}/interactions.csv",
            headers=GUEST,
        )
        lines = response.text.strip().splitlines()
        self.assertEqual(lines[0], "Date,Time,Interaction")
        self.assertEqual(lines[1], "2024-03-05,14:30:00,Reviewed contract")

    def test_export_then_import_into_account(self):
        map_id = self._create_map(GUEST, name="Guest map")["id"]
        self._add_stakeholder(map_id, GUEST, name="Vendor")
        exported = self.client.get("/api/export", headers=GUEST).json()
        self.assertEqual(exported["version"], "1.0")
        self.assertEqual(len(exported["maps"]), 1)

        response = self.client.post(
            "/api/import", json={"data": exported}, headers=ALICE
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["created"], 1)

        imported = self.client.get(f"/api/maps/{map_id}", headers=ALICE).json()
        self.assertEqual(imported["name"], "Guest map")
        self.assertEqual([s["name"] for s in imported["stakeholders"]], ["Vendor"])

        response = self.client.post(
            "/api/import",
            json={"data": exported, "conflictResolution": "keep"},
            headers=ALICE,
        )
        self.assertEqual(response.json()["kept"], 1)

    def test_export_can_omit_interactions(self):
        map_id = self._create_map(GUEST)["id"]
        self._add_stakeholder(map_id, GUEST, name="Vendor")
        exported = self.client.get(
            "/api/export", params={"include_interactions": False}, headers=GUEST
        ).json()
        self.assertNotIn("interactions", exported["maps"][0]["stakeholders"][0])

    def test_import_rejects_invalid_data(self):
        response = self.client.post(
            "/api/import", json={"data": {"maps": "nope"}}, headers=GUEST
        )
        self.assertEqual(response.status_code, 400)
        response = self.client.post(
            "/api/import",
            json={"data": {"maps": []}, "conflictResolution": "overwrite"},
            headers=GUEST,
        )
        self.assertEqual(response.status_code, 422)

    def test_clear_data_requires_sign_in(self):
        self._create_map(ALICE)
        self._create_map(ALICE)
        self.assertEqual(self.client.delete("/api/data", headers=GUEST).status_code, 401)

        response = self.client.delete("/api/data", headers=ALICE)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["deleted_maps"], 2)
        self.assertEqual(self.client.get("/api/maps", headers=ALICE).json(), [])

    def test_backup_uploads_export(self):
        self._create_map(ALICE, name="Backed up")
        response = self.client.post("/api/backup", headers=ALICE)
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertTrue(payload["path"].startswith("backups/alice/"))
        self.assertIn(payload["path"], payload["url"])
        self.assertEqual(payload["maps"], 1)
        stored = json.loads(self.storage.get_bytes(payload["path"]))
        self.assertEqual(stored["maps"][0]["name"], "Backed up")

        self.assertEqual(self.client.post("/api/backup", headers=GUEST).status_code, 401)

    def test_settings_defaults_and_update(self):
        defaults = self.client.get("/api/settings", headers=ALICE).json()
        self.assertEqual(defaults["theme"], "light")
        self.assertEqual(defaults["pageSize"], 10)

        updated = self.client.patch(
            "/api/settings", json={"theme": "dark"}, headers=ALICE
        ).json()
        self.assertEqual(updated["theme"], "dark")
        self.assertEqual(updated["defaultView"], "grid")
        self.assertEqual(self.db.user_settings["alice"]["theme"], "dark")

    def test_malformed_or_invalid_tokens_are_rejected(self):
        response = self.client.get("/api/maps", headers={"Authorization": "Basic abc"})
        self.assertEqual(response.status_code, 401)
        response = self.client.get(
            "/api/maps", headers={"Authorization": "Bearer not-a-dev-token"}
        )
        self.assertEqual(response.status_code, 401)

    def test_admin_event_counts(self):
        self._create_map(ALICE)
        self.assertEqual(
            self.client.get("/api/admin/events", headers=ALICE).status_code, 403
        )
        self.assertEqual(
            self.client.get("/api/admin/events", headers=GUEST).status_code, 401
        )

        response = self.client.get("/api/admin/events", headers=ADMIN)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["counts"], {"map_created": 1})
        self.assertEqual(response.json()["total"], 1)
        self.assertIsNone(self.queue.dequeue(block=False))

    def test_events_wait_for_worker_when_redis_is_configured(self):
        settings = Settings(redis_url="redis://localhost:6379/0")
        with patch("staketrack.dependencies.get_settings", return_value=settings):
            self._create_map(ALICE)
            counts = self.client.get("/api/admin/events", headers=ADMIN).json()
            self.assertEqual(counts["total"], 0)

            while process_next(db=self.db, queue=self.queue, block=False):
                pass
            counts = self.client.get("/api/admin/events", headers=ADMIN).json()
        self.assertEqual(counts["counts"], {"map_created": 1})

    def test_interaction_limit_returns_conflict(self):
        settings = Settings(max_interactions_per_stakeholder=1)
        with patch("staketrack.dependencies.get_settings", return_value=settings):
            map_id = self._create_map(GUEST)["id"]
            stakeholder_id = self._add_stakeholder(map_id, GUEST, name="One")["id"]
            base = f"/api/maps/{map_id}/stakeholders/{stakeholder_id}/interactions"
            first = self.client.post(base, json={"notes": "a"}, headers=GUEST)
            second = self.client.post(base, json={"notes": "b"}, headers=GUEST)
            imported = self.client.post(
                "/api/import",
                json={
                    "data": {
                        "maps": [
                            {
                                "id": "other",
                                "stakeholders": [
                                    {"id": "s1", "interactions": [{}, {}]}
                                ],
                            }
                        ]
                    }
                },
                headers=GUEST,
            )
        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 409)
        self.assertIn("Cannot add more than 1", second.json()["detail"])
        self.assertEqual(imported.status_code, 409)
        self.assertEqual(
            self.client.get("/api/maps/other", headers=GUEST).status_code, 404
        )

    def test_unknown_interaction_type_is_stored_as_other(self):
        map_id = self._create_map(GUEST)["id"]
        stakeholder_id = self._add_stakeholder(map_id, GUEST, name="CFO")["id"]
        base = f"/api/maps/{map_id}/stakeholders/{stakeholder_id}/interactions"

        response = self.client.post(
            base, json={"notes": "Offsite", "type": "workshop"}, headers=GUEST
        )
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.json()["type"], "other")

        interaction_id = response.json()["id"]
        response = self.client.patch(
            f"{base}/{interaction_id}", json={"type": "call"}, headers=GUEST
        )
        self.assertEqual(response.json()["type"], "call")
        response = self.client.patch(
            f"{base}/{interaction_id}", json={"type": "fax"}, headers=GUEST
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["type"], "other")

    def test_malformed_nested_import_returns_bad_request(self):
        map_id = self._create_map(GUEST, name="Keep me")["id"]
        payloads = (
            {"maps": [{"id": map_id, "stakeholders": ["x"]}]},
            {"maps": [{"id": "new", "stakeholders": [{"interactions": ["x"]}]}]},
            {"maps": [{"id": "new", "stakeholders": [{"documents": "x"}]}]},
        )
        for data in payloads:
            response = self.client.post(
                "/api/import", json={"data": data}, headers=GUEST
            )
            self.assertEqual(response.status_code, 400, response.text)

        response = self.client.post(
            "/api/import",
            json={"data": {"maps": [{"id": "epoch", "createdAt": 1e20}]}},
            headers=GUEST,
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["created"], 1)
        kept = self.client.get(f"/api/maps/{map_id}", headers=GUEST).json()
        self.assertEqual(kept["name"], "Keep me")

    def test_archived_string_flag_on_import(self):
        data = {"maps": [{"id": "m1", "name": "Live", "isArchived": "false"}]}
        self.client.post("/api/import", json={"data": data}, headers=GUEST)
        listed = self.client.get("/api/maps", headers=GUEST).json()
        self.assertEqual([m["id"] for m in listed], ["m1"])
        self.assertFalse(listed[0]["isArchived"])

    def test_document_lifecycle(self):
        map_id = self._create_map(ALICE)["id"]
        stakeholder_id = self._add_stakeholder(map_id, ALICE, name="Legal")["id"]
        base = f"/api/maps/{map_id}/stakeholders/{stakeholder_id}/documents"

        note = self.client.post(
            base, json={"title": "Call notes", "content": "Agreed scope"}, headers=ALICE
        )
        self.assertEqual(note.status_code, 201, note.text)
        self.assertEqual(note.json()["type"], "note")
        self.assertNotIn("uploadUrl", note.json())

        created = self.client.post(
            base,
            json={
                "title": "Contract",
                "type": "file",
                "fileName": "contract.pdf",
                "contentType": "application/pdf",
            },
            headers=ALICE,
        )
        self.assertEqual(created.status_code, 201, created.text)
        document = created.json()
        self.assertIn("op=put", document["uploadUrl"])
        self.assertIn(document["storagePath"], document["uploadUrl"])
        doc_url = f"{base}/{document['id']}"

        response = self.client.put(
            f"{doc_url}/content",
            content=b"%PDF-1.7",
            headers={**ALICE, "Content-Type": "application/pdf"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["size"], 8)

        response = self.client.get(f"{doc_url}/content", headers=ALICE)
        self.assertEqual(response.content, b"%PDF-1.7")
        self.assertTrue(response.headers["content-type"].startswith("application/pdf"))
        self.assertIn("contract.pdf", response.headers["content-disposition"])

        url = self.client.get(f"{doc_url}/url", headers=ALICE).json()["url"]
        self.assertIn("op=get", url)

        patched = self.client.patch(doc_url, json={"title": "Signed contract"}, headers=ALICE)
        self.assertEqual(patched.json()["title"], "Signed contract")
        listed = self.client.get(base, headers=ALICE).json()
        self.assertEqual(len(listed), 2)

        exported = self.client.get(
            "/api/export", params={"include_documents": False}, headers=ALICE
        ).json()
        self.assertNotIn("documents", exported["maps"][0]["stakeholders"][0])

        self.assertEqual(self.client.delete(doc_url, headers=ALICE).status_code, 204)
        self.assertEqual(self.storage.objects, {})
        self.assertEqual(self.client.get(doc_url, headers=ALICE).status_code, 404)

    def test_guests_cannot_store_document_files(self):
        map_id = self._create_map(GUEST)["id"]
        stakeholder_id = self._add_stakeholder(map_id, GUEST, name="Vendor")["id"]
        base = f"/api/maps/{map_id}/stakeholders/{stakeholder_id}/documents"

        response = self.client.post(base, json={"title": "Notes"}, headers=GUEST)
        self.assertEqual(response.status_code, 201)
        response = self.client.post(
            base, json={"title": "Scan", "type": "file"}, headers=GUEST
        )
        self.assertEqual(response.status_code, 401)

    def test_storage_info_reports_guest_usage(self):
        empty = self.client.get("/api/storage", headers=GUEST).json()
        self.assertEqual(empty["keys"], 0)

        self._create_map(GUEST, name="Stored")
        info = self.client.get("/api/storage", headers=GUEST).json()
        self.assertGreaterEqual(info["keys"], 2)
        self.assertGreater(info["bytes"], 0)
        self.assertTrue(info["formatted"].endswith(("bytes", "KB", "MB")))


if __name__ == "__main__":
    unittest.main()
