"""Tests for object operations and the upload helpers."""

import json
from unittest.mock import MagicMock

import pytest

from s3client.errors import (
    InvalidBucketName,
    InvalidListOptions,
    InvalidObjectKey,
    InvalidResponse,
    ObjectNotFound,
    S3Error,
)
from s3client.objects import (
    ListObjectsOptions,
    ObjectInfo,
    ObjectManager,
    ObjectUploader,
    validate_object_key,
)
from s3client.signing import hash_payload

LIST_OBJECTS_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>test-bucket</Name>
  <KeyCount>2</KeyCount>
  <Contents>
    <Key>photos/a.jpg</Key><LastModified>2024-01-01T00:00:00.000Z</LastModified>
    <ETag>"aaa"</ETag><Size>1024</Size>
  </Contents>
  <Contents>
    <Key>photos/b.jpg</Key><LastModified>2024-01-02T00:00:00.000Z</LastModified>
    <ETag>"bbb"</ETag><Size>2048</Size>
  </Contents>
</ListBucketResult>"""


class TestValidateObjectKey:
    @pytest.mark.parametrize("key", ["a", "dir/file.txt", "with space.txt", "k" * 1024, "é" * 512])
    def test_valid(self, key: str) -> None:
        validate_object_key(key)

    @pytest.mark.parametrize("key", ["", "k" * 1025, "é" * 513, "a/../b", "./a", "a/."])
    def test_invalid(self, key: str) -> None:
        with pytest.raises(InvalidObjectKey):
            validate_object_key(key)


class TestListObjectsOptions:
    def test_default_query(self) -> None:
        assert ListObjectsOptions().to_query() == [("list-type", "2")]

    def test_full_query(self) -> None:
        options = ListObjectsOptions(prefix="photos/", max_keys=10, start_after="photos/a.jpg")
        assert options.to_query() == [
            ("list-type", "2"),
            ("prefix", "photos/"),
            ("max-keys", "10"),
            ("start-after", "photos/a.jpg"),
        ]

    @pytest.mark.parametrize("max_keys", [0, 1001, -5])
    def test_max_keys_out_of_range(self, max_keys: int) -> None:
        with pytest.raises(InvalidListOptions) as exc_info:
            ListObjectsOptions(max_keys=max_keys).to_query()
        assert isinstance(exc_info.value, S3Error)
        assert isinstance(exc_info.value, ValueError)

    def test_list_objects_rejects_bad_options_before_sending(self, auth, http: MagicMock) -> None:
        with pytest.raises(InvalidListOptions):
            ObjectManager(auth, http).list_objects("test-bucket", ListObjectsOptions(max_keys=0))
        http.request.assert_not_called()


class TestObjectManager:
    def test_put_object(self, auth, http: MagicMock, response) -> None:
        http.request.return_value = response(200, headers={"ETag": '"abc"'})
        result = ObjectManager(auth, http).put_object("test-bucket", "hello.txt", b"Hello, S3!")
        assert result == {"success": True, "bucket": "test-bucket", "key": "hello.txt", "etag": '"abc"'}

        method, url = http.request.call_args.args
        kwargs = http.request.call_args.kwargs
        assert method == "PUT"
        assert url == "http://localhost:9000/test-bucket/hello.txt"
        assert kwargs["data"] == b"Hello, S3!"
        assert kwargs["headers"]["Content-Length"] == "10"
        assert kwargs["headers"]["x-amz-content-sha256"] == hash_payload(b"Hello, S3!")
        assert "content-length;host;" in kwargs["headers"]["Authorization"]

    def test_put_text_is_utf8(self, auth, http: MagicMock) -> None:
        ObjectManager(auth, http).put_object("test-bucket", "t.txt", "héllo")
        assert http.request.call_args.kwargs["data"] == "héllo".encode("utf-8")

    def test_put_rejects_bad_names_before_sending(self, auth, http: MagicMock) -> None:
        manager = ObjectManager(auth, http)
        with pytest.raises(InvalidBucketName):
            manager.put_object("BAD", "k", b"")
        with pytest.raises(InvalidObjectKey):
            manager.put_object("test-bucket", "", b"")
        http.request.assert_not_called()

    def test_get_object(self, auth, http: MagicMock, response) -> None:
        resp = response(200, b"Hello, S3!")
        http.request.return_value = resp
        assert ObjectManager(auth, http).get_object("test-bucket", "hello.txt") == b"Hello, S3!"
        assert http.request.call_args.kwargs["stream"] is True
        resp.close.assert_called_once()

    def test_get_object_too_large(self, auth, http: MagicMock, response) -> None:
        resp = response(200, b"0123456789")
        http.request.return_value = resp
        with pytest.raises(InvalidResponse):
            ObjectManager(auth, http, max_size=4).get_object("test-bucket", "big.bin")
        resp.close.assert_called_once()

    def test_get_missing_object(self, auth, http: MagicMock, response) -> None:
        resp = response(404, b"<Error><Code>NoSuchKey</Code><Message>gone</Message></Error>")
        http.request.return_value = resp
        with pytest.raises(ObjectNotFound):
            ObjectManager(auth, http).get_object("test-bucket", "missing.txt")
        resp.close.assert_called_once()

    def test_delete_object(self, auth, http: MagicMock, response) -> None:
        http.request.return_value = response(204)
        result = ObjectManager(auth, http).delete_object("test-bucket", "dir/a b.txt")
        assert result == {"success": True, "bucket": "test-bucket", "key": "dir/a b.txt"}
        method, url = http.request.call_args.args
        assert method == "DELETE"
        assert url == "http://localhost:9000/test-bucket/dir/a%20b.txt"

    def test_list_objects(self, auth, http: MagicMock, response) -> None:
        http.request.return_value = response(200, LIST_OBJECTS_XML)
        options = ListObjectsOptions(prefix="photos/", max_keys=2)
        objects = ObjectManager(auth, http).list_objects("test-bucket", options)
        assert objects == [
            ObjectInfo("photos/a.jpg", 1024, "2024-01-01T00:00:00.000Z", '"aaa"'),
            ObjectInfo("photos/b.jpg", 2048, "2024-01-02T00:00:00.000Z", '"bbb"'),
        ]
        url = http.request.call_args.args[1]
        assert url == "http://localhost:9000/test-bucket?list-type=2&prefix=photos%2F&max-keys=2"

    def test_list_objects_empty_bucket(self, auth, http: MagicMock, response) -> None:
        http.request.return_value = response(200, b"<ListBucketResult><KeyCount>0</KeyCount></ListBucketResult>")
        assert ObjectManager(auth, http).list_objects("test-bucket") == []

    def test_list_objects_malformed(self, auth, http: MagicMock, response) -> None:
        http.request.return_value = response(200, b"<<<")
        with pytest.raises(InvalidResponse):
            ObjectManager(auth, http).list_objects("test-bucket")


class TestObjectUploader:
    def test_upload_file(self, auth, http: MagicMock, tmp_path) -> None:
        path = tmp_path / "data.bin"
        path.write_bytes(b"\x00\x01\x02")
        result = ObjectUploader(ObjectManager(auth, http)).upload_file("test-bucket", "data.bin", path)
        assert result["key"] == "data.bin"
        assert http.request.call_args.kwargs["data"] == b"\x00\x01\x02"

    def test_upload_string(self, auth, http: MagicMock) -> None:
        ObjectUploader(ObjectManager(auth, http)).upload_string("test-bucket", "note.txt", "hi")
        headers = http.request.call_args.kwargs["headers"]
        assert headers["Content-Type"] == "text/plain; charset=utf-8"

    def test_upload_json(self, auth, http: MagicMock) -> None:
        doc = {"name": "test", "values": [1, 2, 3]}
        ObjectUploader(ObjectManager(auth, http)).upload_json("test-bucket", "doc.json", doc)
        kwargs = http.request.call_args.kwargs
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert json.loads(kwargs["data"]) == doc
