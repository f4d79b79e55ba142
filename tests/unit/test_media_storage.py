"""Tests for Cloudinary uploads."""

from unittest.mock import MagicMock

import pytest
import requests

from core.errors import ConfigurationError
from integrations.media_storage import MediaStorageClient, MediaUploadError


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(test_settings, session):
    return MediaStorageClient(settings=test_settings, session=session)


class TestUploadImage:
    def test_returns_secure_url(self, client, session, response_factory):
        session.post.return_value = response_factory(200, {"secure_url": "https://res.cloudinary.com/x.jpg"})

        url = client.upload_image(b"bytes", "coat.png", "image/png")

        assert url == "https://res.cloudinary.com/x.jpg"
        args, kwargs = session.post.call_args
        assert args[0] == "https://api.cloudinary.com/v1_1/demo-cloud/image/upload"
        assert kwargs["data"] == {"upload_preset": "wardrobe_unsigned"}
        assert kwargs["files"]["file"] == ("coat.png", b"bytes", "image/png")

    def test_provider_error_message(self, client, session, response_factory):
        session.post.return_value = response_factory(400, {"error": {"message": "Upload preset not found"}})

        with pytest.raises(MediaUploadError) as exc_info:
            client.upload_image(b"bytes")

        assert str(exc_info.value) == "Upload preset not found"
        assert exc_info.value.status_code == 400

    def test_error_without_body(self, client, session, response_factory):
        session.post.return_value = response_factory(502)

        with pytest.raises(MediaUploadError) as exc_info:
            client.upload_image(b"bytes")
        assert "502" in str(exc_info.value)

    def test_network_error_message(self, client, session):
        session.post.side_effect = requests.ConnectionError("blocked")

        with pytest.raises(MediaUploadError) as exc_info:
            client.upload_image(b"bytes")
        assert "ad-blocker" in str(exc_info.value)

    def test_missing_secure_url(self, client, session, response_factory):
        session.post.return_value = response_factory(200, {"public_id": "abc"})

        with pytest.raises(MediaUploadError):
            client.upload_image(b"bytes")

    def test_not_configured(self, session):
        from config.settings import get_settings_for_testing

        client = MediaStorageClient(
            settings=get_settings_for_testing(cloudinary_cloud_name="", cloudinary_upload_preset=""),
            session=session,
        )

        assert client.is_configured() is False
        with pytest.raises(ConfigurationError):
            client.upload_image(b"bytes")
        session.post.assert_not_called()
