import asyncio

import pytest

from execution.launch_errors import MetadataUploadError, NetworkError, SchemaError
from execution.metadata_publisher import IMAGE_CONTENT_TYPE, IMAGE_FILENAME, MetadataPublisher
from execution.models import LaunchOptions

from conftest import METADATA_URI, PNG_BYTES


def _publish(serve, services, name, ticker, options=None, image_path=None):
    async def scenario():
        async with serve(services) as (session, config, base_url):
            if image_path is not None:
                options_ = LaunchOptions(image_url=base_url + image_path)
            else:
                options_ = options
            publisher = MetadataPublisher(session, metadata_url=config.metadata_url)
            return await publisher.publish(name, ticker, options_)

    return asyncio.run(scenario())


def test_publish_without_image_sends_no_file_field(serve, services):
    record = _publish(serve, services, "Moon", "MOON")

    assert record.metadata_uri == METADATA_URI
    assert record.name == "Moon"
    assert record.symbol == "MOON"
    assert services.upload_files == []
    assert services.upload_fields == {
        "name": "Moon",
        "symbol": "MOON",
        "description": "Moon token created via SolanaAgentKit",
        "showName": "true",
    }
    assert services.image_calls == 0


def test_publish_with_image_attaches_exactly_one_png(serve, services):
    _publish(serve, services, "Moon", "MOON", image_path="image.png")

    assert services.image_calls == 1
    assert len(services.upload_files) == 1
    attached = services.upload_files[0]
    assert attached["name"] == "file"
    assert attached["filename"] == IMAGE_FILENAME == "token_image.png"
    assert attached["content_type"] == IMAGE_CONTENT_TYPE == "image/png"
    assert attached["data"] == PNG_BYTES


def test_social_links_only_sent_when_set(serve, services):
    options = LaunchOptions(description="desc", twitter="https://x.com/moon", website="https://moon.io")
    _publish(serve, services, "Moon", "MOON", options=options)

    assert services.upload_fields["twitter"] == "https://x.com/moon"
    assert services.upload_fields["website"] == "https://moon.io"
    assert services.upload_fields["description"] == "desc"
    assert "telegram" not in services.upload_fields


def test_non_success_status_raises_upload_error(serve, services):
    services.ipfs_status = 500

    with pytest.raises(MetadataUploadError) as exc_info:
        _publish(serve, services, "Moon", "MOON")

    assert exc_info.value.status == 500
    assert exc_info.value.status_text == "Internal Server Error"
    assert services.upload_calls == 1


def test_missing_metadata_uri_raises_schema_error(serve, services):
    services.ipfs_payload = {"metadata": {"name": "Moon", "symbol": "MOON"}}

    with pytest.raises(SchemaError):
        _publish(serve, services, "Moon", "MOON")


def test_image_fetch_failure_is_network_error(serve, services):
    services.image_status = 404

    with pytest.raises(NetworkError):
        _publish(serve, services, "Moon", "MOON", image_path="image.png")

    assert services.upload_calls == 0


def test_unreachable_host_is_network_error(serve, services):
    async def scenario():
        async with serve(services) as (session, _config, _base_url):
            publisher = MetadataPublisher(session, metadata_url="http://127.0.0.1:9/api/ipfs")
            return await publisher.publish("Moon", "MOON")

    with pytest.raises(NetworkError):
        asyncio.run(scenario())
