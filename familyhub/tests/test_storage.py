import unittest
from unittest.mock import MagicMock, patch

import requests

from familyhub.errors import Conflict, NotFound, Unauthenticated, UpstreamFailure
from familyhub.storage import InMemoryDiskClient, YandexDiskClient


def _response(status_code=200, payload=None, content=b"", headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload if payload is not None else {}
    response.content = content
    response.headers = headers or {}
    return response


class YandexDiskClientTests(unittest.TestCase):
    def setUp(self):
        self.client = YandexDiskClient(base_url="https://disk.example/v1/disk/", timeout=5)

    def test_every_api_call_uses_oauth_scheme(self):
        with patch.object(self.client._session, "request") as mock_request:
            mock_request.return_value = _response(payload={"href": "https://signed/1"})
            url = self.client.get_download_url("tok", "/family/family.json")

        self.assertEqual(url, "https://signed/1")
        args, kwargs = mock_request.call_args
        self.assertEqual(args, ("GET", "https://disk.example/v1/disk/resources/download"))
        self.assertEqual(kwargs["headers"]["Authorization"], "OAuth tok")
        self.assertEqual(kwargs["params"], {"path": "/family/family.json"})
        self.assertEqual(kwargs["timeout"], 5)

    def test_missing_token_never_reaches_upstream(self):
        with patch.object(self.client._session, "request") as mock_request:
            with self.assertRaises(Unauthenticated):
                self.client.list_dir("", "/")
        mock_request.assert_not_called()

    def test_upload_url_passes_overwrite_flag(self):
        with patch.object(self.client._session, "request") as mock_request:
            mock_request.return_value = _response(payload={"href": "https://signed/put"})
            self.client.get_upload_url("tok", "/a.txt", overwrite=True)
            self.client.get_upload_url("tok", "/b.txt")

        first, second = mock_request.call_args_list
        self.assertEqual(first.kwargs["params"]["overwrite"], "true")
        self.assertEqual(second.kwargs["params"]["overwrite"], "false")

    def test_status_mapping(self):
        cases = [
            (_response(401), Unauthenticated),
            (_response(404), NotFound),
            (_response(409, {"error": "DiskResourceAlreadyExistsError"}), Conflict),
            (_response(400, {"error": "DiskPathPointsToExistentDirectoryError"}), Conflict),
            (_response(503), UpstreamFailure),
        ]
        for response, expected in cases:
            with self.subTest(status=response.status_code):
                with patch.object(self.client._session, "request", return_value=response):
                    with self.assertRaises(expected):
                        self.client.get_upload_url("tok", "/x", overwrite=False)

    def test_network_errors_become_upstream_failures(self):
        with patch.object(
            self.client._session, "request", side_effect=requests.ConnectionError("boom")
        ):
            with self.assertRaises(UpstreamFailure):
                self.client.stat("tok", "/")

    def test_list_dir_formats_embedded_items(self):
        payload = {
            "_embedded": {
                "items": [
                    {
                        "name": "notes.txt",
                        "path": "disk:/family/notes.txt",
                        "type": "file",
                        "size": 12,
                        "modified": "2024-01-01T00:00:00+00:00",
                        "mime_type": "text/plain",
                        "md5": "ignored",
                    }
                ]
            }
        }
        with patch.object(self.client._session, "request", return_value=_response(payload=payload)) as mock_request:
            items = self.client.list_dir("tok", "/family", limit=1000)

        self.assertEqual(mock_request.call_args.kwargs["params"], {"path": "/family", "limit": 1000})
        self.assertEqual(
            items,
            [
                {
                    "name": "notes.txt",
                    "path": "/family/notes.txt",
                    "type": "file",
                    "size": 12,
                    "modified": "2024-01-01T00:00:00+00:00",
                    "mime_type": "text/plain",
                }
            ],
        )

    def test_signed_url_transfers_are_unauthenticated(self):
        with patch.object(self.client._session, "put", return_value=_response(201)) as mock_put:
            self.client.put_bytes("https://signed/put", b"{}", "application/json")
        self.assertNotIn("Authorization", mock_put.call_args.kwargs["headers"])

        with patch.object(self.client._session, "put", return_value=_response(500)):
            with self.assertRaises(UpstreamFailure):
                self.client.put_bytes("https://signed/put", b"{}", "application/json")

        fetched = _response(200, content=b"hello", headers={"Content-Type": "text/plain"})
        with patch.object(self.client._session, "get", return_value=fetched):
            content = self.client.fetch_bytes("https://signed/get")
        self.assertEqual(content.body, b"hello")
        self.assertEqual(content.content_type, "text/plain")

    def test_delete_permanently(self):
        with patch.object(self.client._session, "request", return_value=_response(204)) as mock_request:
            self.client.delete_path("tok", "/family/bob", permanently=True)
        args, kwargs = mock_request.call_args
        self.assertEqual(args[0], "DELETE")
        self.assertEqual(kwargs["params"], {"path": "/family/bob", "permanently": "true"})


class InMemoryDiskClientTests(unittest.TestCase):
    def setUp(self):
        self.disk = InMemoryDiskClient()

    def test_upload_requires_parent_directory(self):
        with self.assertRaises(Conflict):
            self.disk.get_upload_url("tok", "/family/family.json", overwrite=True)
        self.disk.mkdir("tok", "/family")
        url = self.disk.get_upload_url("tok", "/family/family.json", overwrite=True)
        self.disk.put_bytes(url, b"{}", "application/json")
        self.assertEqual(self.disk.files["/family/family.json"], b"{}")

    def test_overwrite_disabled_refuses_existing_file(self):
        url = self.disk.get_upload_url("tok", "/a.txt")
        self.disk.put_bytes(url, b"a", "text/plain")
        with self.assertRaises(Conflict):
            self.disk.get_upload_url("tok", "/a.txt", overwrite=False)

    def test_rejects_unknown_tokens(self):
        disk = InMemoryDiskClient(valid_tokens={"good"})
        disk.list_dir("good", "/")
        with self.assertRaises(Unauthenticated):
            disk.list_dir("bad", "/")


if __name__ == "__main__":
    unittest.main()
