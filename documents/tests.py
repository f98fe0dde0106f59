import base64
import json
import os
import shutil
import tempfile

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.auth import issue_token
from core.errors import ValidationError

from .models import Document
from .storage import decode_file_content, discard_document, store_document


class DecodeFileContentTests(TestCase):
    def test_plain_base64_guesses_type_from_name(self):
        data, content_type = decode_file_content(base64.b64encode(b"hello").decode(), "notes.txt")
        self.assertEqual(data, b"hello")
        self.assertEqual(content_type, "text/plain")

    def test_data_url_header_wins(self):
        payload = "data:application/pdf;base64," + base64.b64encode(b"%PDF-1.4").decode()
        data, content_type = decode_file_content(payload, "scan.bin")
        self.assertEqual(data, b"%PDF-1.4")
        self.assertEqual(content_type, "application/pdf")

    def test_unknown_extension_falls_back(self):
        _, content_type = decode_file_content(base64.b64encode(b"x").decode(), "blob")
        self.assertEqual(content_type, "application/octet-stream")

    def test_invalid_base64(self):
        with self.assertRaises(ValidationError):
            decode_file_content("not base64!!", "a.txt")

    def test_empty_content(self):
        with self.assertRaises(ValidationError):
            decode_file_content("   ", "a.txt")

    @override_settings(LIFEHUB_DOCUMENT_MAX_BYTES=4)
    def test_size_limit(self):
        with self.assertRaises(ValidationError):
            decode_file_content(base64.b64encode(b"too big").decode(), "a.txt")


@override_settings(LIFEHUB_DEFAULT_WIDGETS=[])
class DocumentApiTests(TestCase):
    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.media_override = override_settings(MEDIA_ROOT=self.media_root)
        self.media_override.enable()
        User = get_user_model()
        self.user = User.objects.create_user(username="alice", password="pass1234")
        self.other = User.objects.create_user(username="bob", password="pass1234")
        self.auth = {"HTTP_AUTHORIZATION": f"Bearer {issue_token(self.user)}"}

    def tearDown(self):
        self.media_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def _upload(self, payload):
        return self.client.post(
            reverse("document-list"), data=json.dumps(payload), content_type="application/json", **self.auth
        )

    def test_upload_stores_file_and_metadata(self):
        resp = self._upload(
            {
                "name": "lease.txt",
                "fileContent": base64.b64encode(b"rent is due").decode(),
                "type": "contract",
                "tags": ["home", " legal "],
            }
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["name"], "lease.txt")
        self.assertEqual(body["type"], "contract")
        self.assertEqual(body["size"], 11)
        self.assertEqual(body["contentType"], "text/plain")
        self.assertEqual(body["tags"], ["home", "legal"])

        document = Document.objects.get()
        self.assertTrue(document.file.name.endswith("_lease.txt"))
        with document.file.open("rb") as fh:
            self.assertEqual(fh.read(), b"rent is due")

    def test_upload_defaults_type(self):
        resp = self._upload({"name": "a.bin", "fileContent": base64.b64encode(b"\x00\x01").decode()})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["type"], "document")

    def test_upload_requires_name_and_content(self):
        resp = self._upload({"name": "a.txt"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error_description"], "Name and file content are required")
        self.assertFalse(Document.objects.exists())

    def test_upload_rejects_bad_base64(self):
        resp = self._upload({"name": "a.txt", "fileContent": "%%%"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("fileContent", resp.json()["fields"])

    def test_list_is_scoped_to_owner(self):
        store_document(self.other, name="theirs.txt", data=b"x", content_type="text/plain", doc_type="document", tags=[])
        store_document(self.user, name="mine.txt", data=b"y", content_type="text/plain", doc_type="document", tags=[])
        listed = self.client.get(reverse("document-list"), **self.auth).json()
        self.assertEqual([d["name"] for d in listed], ["mine.txt"])

    def test_delete_removes_record_and_file(self):
        document = store_document(
            self.user, name="a.txt", data=b"bye", content_type="text/plain", doc_type="document", tags=[]
        )
        path = document.file.path
        self.assertTrue(os.path.exists(path))
        resp = self.client.delete(reverse("document-detail", args=[document.pk]), **self.auth)
        self.assertEqual(resp.status_code, 204)
        self.assertFalse(Document.objects.exists())
        self.assertFalse(os.path.exists(path))

    def test_delete_other_users_document(self):
        document = store_document(
            self.other, name="a.txt", data=b"x", content_type="text/plain", doc_type="document", tags=[]
        )
        resp = self.client.delete(reverse("document-detail", args=[document.pk]), **self.auth)
        self.assertEqual(resp.status_code, 403)
        self.assertTrue(Document.objects.filter(pk=document.pk).exists())

    def test_stored_tags_returned_verbatim(self):
        document = store_document(
            self.user, name="a.txt", data=b"x", content_type="text/plain", doc_type="document", tags=[]
        )
        Document.objects.filter(pk=document.pk).update(tags={"legacy": True})
        body = self.client.get(reverse("document-detail", args=[document.pk]), **self.auth).json()
        self.assertEqual(body["tags"], {"legacy": True})

    def test_documents_cannot_be_patched(self):
        document = store_document(
            self.user, name="a.txt", data=b"x", content_type="text/plain", doc_type="document", tags=[]
        )
        resp = self.client.patch(
            reverse("document-detail", args=[document.pk]),
            data=json.dumps({"name": "b.txt"}),
            content_type="application/json",
            **self.auth,
        )
        self.assertEqual(resp.status_code, 405)

    def test_discard_tolerates_missing_file(self):
        document = store_document(
            self.user, name="a.txt", data=b"x", content_type="text/plain", doc_type="document", tags=[]
        )
        os.remove(document.file.path)
        discard_document(document)
        self.assertFalse(Document.objects.exists())
