"""Unit tests for S3 Storage Provider using moto

Tests cover lazy bucket creation, upload/download, idempotent delete,
existence checks, URL building and error translation.
"""

import io

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from foms.storage import S3StorageProvider, StorageError


# Test constants
TEST_BUCKET = "test-foms-photos"
TEST_REGION = "us-east-1"
TEST_ACCESS_KEY = "test-access-key"
TEST_SECRET_KEY = "test-secret-key"


@pytest.fixture
def storage_provider():
    """S3StorageProvider against mocked S3; the bucket does not exist yet"""
    with mock_aws():
        provider = S3StorageProvider(
            endpoint_url=None,  # AWS S3 (moto mocks this)
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name=TEST_BUCKET,
            region=TEST_REGION,
        )
        yield provider


def _bucket_names(provider: S3StorageProvider):
    return [b["Name"] for b in provider.s3_client.list_buckets()["Buckets"]]


class TestUpload:
    """Test uploads and lazy provisioning"""

    @pytest.mark.asyncio
    async def test_upload_creates_bucket_on_first_use(self, storage_provider):
        assert TEST_BUCKET not in _bucket_names(storage_provider)

        name = await storage_provider.upload(io.BytesIO(b"jpeg"), "IMG_1.JPG", "image/jpeg")

        assert TEST_BUCKET in _bucket_names(storage_provider)
        assert name.endswith(".jpg")

    @pytest.mark.asyncio
    async def test_upload_stores_content_type(self, storage_provider):
        name = await storage_provider.upload(io.BytesIO(b"png"), "a.png", "image/png")

        head = storage_provider.s3_client.head_object(Bucket=TEST_BUCKET, Key=name)
        assert head["ContentType"] == "image/png"

    @pytest.mark.asyncio
    async def test_upload_with_existing_bucket(self):
        with mock_aws():
            client = boto3.client(
                "s3",
                region_name=TEST_REGION,
                aws_access_key_id=TEST_ACCESS_KEY,
                aws_secret_access_key=TEST_SECRET_KEY,
            )
            client.create_bucket(Bucket=TEST_BUCKET)

            provider = S3StorageProvider(
                endpoint_url=None,
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name=TEST_BUCKET,
            )
            name = await provider.upload(io.BytesIO(b"data"), "a.jpg", "image/jpeg")

            assert await provider.exists(name) is True


class TestDownload:
    """Test downloads"""

    @pytest.mark.asyncio
    async def test_download_round_trip(self, storage_provider):
        name = await storage_provider.upload(io.BytesIO(b"photo bytes"), "a.jpg", "image/jpeg")

        stream = await storage_provider.download(name)

        assert stream.read() == b"photo bytes"

    @pytest.mark.asyncio
    async def test_download_missing_returns_none(self, storage_provider):
        await storage_provider.upload(io.BytesIO(b"x"), "a.jpg", "image/jpeg")

        assert await storage_provider.download("missing.jpg") is None


class TestDelete:
    """Test idempotent deletion"""

    @pytest.mark.asyncio
    async def test_delete_true_then_false(self, storage_provider):
        name = await storage_provider.upload(io.BytesIO(b"x"), "a.jpg", "image/jpeg")

        assert await storage_provider.delete(name) is True
        assert await storage_provider.delete(name) is False
        assert await storage_provider.exists(name) is False

    @pytest.mark.asyncio
    async def test_delete_before_bucket_exists_returns_false(self, storage_provider):
        assert await storage_provider.delete("never-uploaded.jpg") is False

    @pytest.mark.asyncio
    async def test_delete_access_denied_raises_storage_error(self, storage_provider, monkeypatch):
        """Transport/permission failures are distinct from not-found"""
        def denied(**kwargs):
            raise ClientError(
                {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}},
                "HeadObject",
            )

        monkeypatch.setattr(storage_provider.s3_client, "head_object", denied)

        with pytest.raises(StorageError, match="AccessDenied"):
            await storage_provider.delete("a.jpg")


class TestUrlFor:
    """Test URL building"""

    def test_url_for_aws(self, storage_provider):
        assert storage_provider.url_for("abc.jpg") == (
            f"https://{TEST_BUCKET}.s3.{TEST_REGION}.amazonaws.com/abc.jpg"
        )

    def test_url_for_custom_endpoint(self):
        with mock_aws():
            provider = S3StorageProvider(
                endpoint_url="http://localhost:9000/",
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name=TEST_BUCKET,
            )
            assert provider.url_for("abc.jpg") == f"http://localhost:9000/{TEST_BUCKET}/abc.jpg"

    def test_url_for_base_url_wins(self):
        with mock_aws():
            provider = S3StorageProvider(
                endpoint_url="http://localhost:9000",
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name=TEST_BUCKET,
                base_url="https://cdn.example.com",
            )
            assert provider.url_for("abc.jpg") == f"https://cdn.example.com/{TEST_BUCKET}/abc.jpg"

    def test_url_for_rejects_path_names(self, storage_provider):
        with pytest.raises(ValueError):
            storage_provider.url_for("../abc.jpg")
