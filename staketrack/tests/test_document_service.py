import unittest

from staketrack.analytics import Analytics
from staketrack.auth import CurrentUser
from staketrack.db import InMemoryDbClient
from staketrack.document_service import DocumentService
from staketrack.local_storage import InMemoryLocalStorage
from staketrack.repositories import CloudMapRepository, LocalMapRepository
from staketrack.stakeholder_service import StakeholderService
from staketrack.storage import InMemoryStorageClient
from staketrack_shared.errors import AuthError, NotFoundError
from staketrack_shared.types import DocumentType


class DocumentServiceTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.storage = InMemoryStorageClient()
        self.user = CurrentUser(uid="alice")
        self.repo = CloudMapRepository(self.db, "alice")
        analytics = Analytics(None, db=self.db)
        self.maps = StakeholderService(self.repo, self.user, analytics)
        self.service = DocumentService(self.repo, self.user, self.storage, analytics)
        self.map_id = self.maps.create_map({"name": "Launch"}).id
        self.stakeholder_id = self.maps.add_stakeholder(
            self.map_id, {"name": "Legal"}
        ).id

    def _add(self, **data):
        return self.service.add_document(self.map_id, self.stakeholder_id, data)

    def test_notes_are_listed_newest_first(self):
        self._add(title="Old", date="2024-01-01T00:00:00Z")
        note, upload_url = self._add(title="New", content="Agreed terms")
        self.assertIsNone(upload_url)
        self.assertEqual(note.created_by, "alice")
        self.assertEqual(note.stakeholder_id, self.stakeholder_id)

        listed = self.service.list_documents(self.map_id, self.stakeholder_id)
        self.assertEqual([d.title for d in listed], ["New", "Old"])

        updated = self.service.update_document(
            self.map_id, self.stakeholder_id, note.id, {"title": "Terms"}
        )
        self.assertEqual(updated.title, "Terms")
        stored = self.repo.get_map(self.map_id).get_stakeholder(self.stakeholder_id)
        self.assertEqual(stored.get_document(note.id).title, "Terms")

    def test_file_documents_get_presigned_upload(self):
        document, upload_url = self._add(
            title="Contract",
            type="file",
            fileName="contract.pdf",
            contentType="application/pdf",
        )
        expected_path = (
            f"users/alice/maps/{self.map_id}/stakeholders/{self.stakeholder_id}"
            f"/documents/{document.id}"
        )
        self.assertEqual(document.storage_path, expected_path)
        self.assertIn(expected_path, upload_url)
        self.assertIn("op=put", upload_url)
        self.assertIn("type=application/pdf", upload_url)

        url = self.service.get_document_url(self.map_id, self.stakeholder_id, document.id)
        self.assertIn("op=get", url)

    def test_upload_download_and_delete_content(self):
        document, _ = self._add(title="Slides", type="file")
        with self.assertRaises(NotFoundError):
            self.service.download_content(self.map_id, self.stakeholder_id, document.id)

        self.service.upload_content(
            self.map_id, self.stakeholder_id, document.id, b"%PDF-1.7", "application/pdf"
        )
        fetched, data = self.service.download_content(
            self.map_id, self.stakeholder_id, document.id
        )
        self.assertEqual(data, b"%PDF-1.7")
        self.assertEqual(fetched.size, 8)
        self.assertEqual(fetched.content_type, "application/pdf")
        self.assertEqual(fetched.type, DocumentType.FILE)

        self.service.delete_document(self.map_id, self.stakeholder_id, document.id)
        self.assertEqual(self.storage.objects, {})
        with self.assertRaises(NotFoundError):
            self.service.delete_document(self.map_id, self.stakeholder_id, document.id)
        self.assertEqual(self.db.count_events().get("document_removed"), 1)

    def test_linked_files_use_saved_url(self):
        document, upload_url = self._add(
            title="Deck", type="file", fileUrl="https://files.test/deck.pdf"
        )
        self.assertIsNone(upload_url)
        self.assertIsNone(document.storage_path)
        url = self.service.get_document_url(self.map_id, self.stakeholder_id, document.id)
        self.assertEqual(url, "https://files.test/deck.pdf")

        note, _ = self._add(title="Plain note")
        with self.assertRaises(NotFoundError):
            self.service.get_document_url(self.map_id, self.stakeholder_id, note.id)

    def test_unknown_ids_raise_not_found(self):
        with self.assertRaises(NotFoundError):
            self.service.list_documents("missing", self.stakeholder_id)
        with self.assertRaises(NotFoundError):
            self.service.list_documents(self.map_id, "missing")
        with self.assertRaises(NotFoundError):
            self.service.get_document(self.map_id, self.stakeholder_id, "missing")
        with self.assertRaises(NotFoundError):
            self.service.update_document(
                self.map_id, self.stakeholder_id, "missing", {"title": "x"}
            )


class GuestDocumentTests(unittest.TestCase):
    def setUp(self):
        guest = CurrentUser.guest("guest-1")
        repo = LocalMapRepository(InMemoryLocalStorage(), guest.uid)
        self.storage = InMemoryStorageClient()
        self.service = DocumentService(repo, guest, self.storage)
        maps = StakeholderService(repo, guest)
        self.map_id = maps.create_map({}).id
        self.stakeholder_id = maps.add_stakeholder(self.map_id, {"name": "Vendor"}).id

    def test_guests_keep_notes_but_not_files(self):
        note, _ = self.service.add_document(
            self.map_id, self.stakeholder_id, {"title": "Call notes"}
        )
        self.assertEqual(
            [d.id for d in self.service.list_documents(self.map_id, self.stakeholder_id)],
            [note.id],
        )
        with self.assertRaises(AuthError):
            self.service.add_document(
                self.map_id, self.stakeholder_id, {"title": "Scan", "type": "file"}
            )
        with self.assertRaises(AuthError):
            self.service.upload_content(
                self.map_id, self.stakeholder_id, note.id, b"data"
            )
        self.assertEqual(self.storage.objects, {})


if __name__ == "__main__":
    unittest.main()
