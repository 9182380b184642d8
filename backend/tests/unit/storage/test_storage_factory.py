"""Unit tests for storage provider selection and connection string parsing"""

import pytest
from pydantic import ValidationError

from foms.config import StorageProviderKind, StorageSettings
from foms.storage import (
    LocalFileStorageProvider,
    S3StorageProvider,
    build_storage_provider,
    parse_connection_string,
)


class TestParseConnectionString:
    """Test Key=Value;Key=Value parsing"""

    def test_full_connection_string(self):
        config = parse_connection_string(
            "Endpoint=http://minio:9000;AccessKey=minioadmin;SecretKey=secret;"
            "Region=eu-central-1;BaseUrl=https://cdn.example.com"
        )

        assert config.endpoint_url == "http://minio:9000"
        assert config.access_key == "minioadmin"
        assert config.secret_key == "secret"
        assert config.region == "eu-central-1"
        assert config.base_url == "https://cdn.example.com"

    def test_keys_are_case_insensitive_and_defaults_apply(self):
        config = parse_connection_string("accesskey=AK; SECRETKEY=SK;")

        assert config.endpoint_url is None
        assert config.region == "us-east-1"
        assert config.base_url is None

    @pytest.mark.parametrize("value", ["", "   ", "AccessKey=AK", "SecretKey=SK"])
    def test_missing_credentials_rejected(self, value):
        with pytest.raises(ValueError):
            parse_connection_string(value)

    def test_malformed_segment_rejected(self):
        with pytest.raises(ValueError, match="Malformed"):
            parse_connection_string("AccessKey=AK;SecretKey=SK;garbage")

    def test_endpoint_without_scheme_rejected(self):
        with pytest.raises(ValueError, match="http"):
            parse_connection_string("Endpoint=minio:9000;AccessKey=AK;SecretKey=SK")


class TestBuildStorageProvider:
    """Test startup selection of the provider"""

    def test_local_is_default(self, tmp_path):
        settings = StorageSettings(local_root=str(tmp_path))

        provider = build_storage_provider(settings)

        assert isinstance(provider, LocalFileStorageProvider)
        assert provider.base_path == tmp_path / "photos"
        # Nothing is created until the first upload
        assert not provider.base_path.exists()

    def test_remote_builds_s3_provider(self):
        settings = StorageSettings(
            provider="Remote",
            container_name="site-photos",
            remote={"connection_string": "Endpoint=http://localhost:9000;AccessKey=AK;SecretKey=SK"},
        )

        provider = build_storage_provider(settings)

        assert isinstance(provider, S3StorageProvider)
        assert provider.bucket_name == "site-photos"
        assert provider.endpoint_url == "http://localhost:9000"

    @pytest.mark.parametrize("value", ["local", "LOCAL", " Local "])
    def test_provider_name_case_insensitive(self, value):
        assert StorageSettings(provider=value).provider == StorageProviderKind.LOCAL

    def test_remote_without_connection_string_is_rejected(self):
        with pytest.raises(ValidationError, match="ConnectionString"):
            StorageSettings(provider="Remote")

    def test_unknown_provider_is_rejected(self):
        with pytest.raises(ValidationError):
            StorageSettings(provider="Azure")
