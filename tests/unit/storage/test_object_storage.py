"""Unit tests for the byte stores behind the offline cache."""

from unittest.mock import MagicMock

import pytest
from minio.error import S3Error

from tripbuddy.storage.object_storage import (
    LocalBlobStore,
    MinioBlobStore,
    ObjectStorageError,
    compute_file_hash,
    safe_key_part,
)


def s3_error(code: str) -> S3Error:
    return S3Error(
        code=code,
        message="test error",
        resource="/tripbuddy-offline/key",
        request_id="req-1",
        host_id="host-1",
        response=MagicMock(),
    )


class TestHelpers:
    def test_compute_file_hash(self):
        assert compute_file_hash(b"abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("boarding pass.pdf", "boarding_pass.pdf"),
            ("../../etc/passwd", "etc_passwd"),
            ("résumé (1).pdf", "r_sum_1_.pdf"),
            ("...", "file"),
        ],
    )
    def test_safe_key_part(self, value, expected):
        assert safe_key_part(value) == expected


class TestLocalBlobStore:
    """Tests for LocalBlobStore."""

    def test_write_and_read(self, blob_store):
        key = blob_store.write_bytes("documents/a.pdf", b"hello")

        assert key == "documents/a.pdf"
        assert blob_store.read_bytes(key) == b"hello"
        assert blob_store.exists(key) is True

    def test_write_leaves_no_temp_files(self, blob_store):
        blob_store.write_bytes("documents/a.pdf", b"hello")

        names = [p.name for p in blob_store.root.rglob("*") if p.is_file()]
        assert names == ["a.pdf"]

    def test_delete_is_idempotent(self, blob_store):
        blob_store.write_bytes("maps/r.zip", b"tiles")

        assert blob_store.delete_bytes("maps/r.zip") is True
        assert blob_store.delete_bytes("maps/r.zip") is True
        assert blob_store.exists("maps/r.zip") is False

    def test_read_missing_raises(self, blob_store):
        with pytest.raises(ObjectStorageError):
            blob_store.read_bytes("documents/missing.pdf")

    def test_rejects_keys_outside_root(self, blob_store):
        with pytest.raises(ObjectStorageError):
            blob_store.write_bytes("../outside.txt", b"x")
        assert blob_store.exists("../outside.txt") is False
        assert blob_store.delete_bytes("../outside.txt") is False

    def test_uri_is_file_url(self, blob_store):
        blob_store.write_bytes("documents/a.pdf", b"x")

        assert blob_store.uri("documents/a.pdf").startswith("file://")


class TestMinioBlobStore:
    """Tests for MinioBlobStore with a mocked client."""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.bucket_exists.return_value = False
        return client

    def test_write_creates_bucket_once(self, client):
        store = MinioBlobStore(client, "tripbuddy-offline")

        store.write_bytes("documents/a.pdf", b"hello")
        store.write_bytes("documents/b.pdf", b"world")

        client.make_bucket.assert_called_once_with("tripbuddy-offline")
        assert client.put_object.call_count == 2
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["object_name"] == "documents/b.pdf"
        assert kwargs["length"] == 5

    def test_write_failure_raises(self, client):
        client.put_object.side_effect = s3_error("AccessDenied")
        store = MinioBlobStore(client, "tripbuddy-offline")

        with pytest.raises(ObjectStorageError):
            store.write_bytes("documents/a.pdf", b"hello")

    def test_read_releases_connection(self, client):
        response = MagicMock()
        response.read.return_value = b"hello"
        client.get_object.return_value = response
        store = MinioBlobStore(client, "tripbuddy-offline")

        assert store.read_bytes("documents/a.pdf") == b"hello"
        response.close.assert_called_once()
        response.release_conn.assert_called_once()

    def test_delete_missing_object_counts_as_deleted(self, client):
        client.remove_object.side_effect = s3_error("NoSuchKey")
        store = MinioBlobStore(client, "tripbuddy-offline")

        assert store.delete_bytes("documents/a.pdf") is True

    def test_delete_failure_returns_false(self, client):
        client.remove_object.side_effect = s3_error("AccessDenied")
        store = MinioBlobStore(client, "tripbuddy-offline")

        assert store.delete_bytes("documents/a.pdf") is False

    def test_exists(self, client):
        store = MinioBlobStore(client, "tripbuddy-offline")
        assert store.exists("documents/a.pdf") is True

        client.stat_object.side_effect = s3_error("NoSuchKey")
        assert store.exists("documents/a.pdf") is False
