"""
Unit tests for the dependency container.
"""

from unittest.mock import MagicMock

import pytest

from khozo.config import Config, ExtractionSettings
from khozo.container import DependencyContainer, LazyInstance
from khozo.crawler.http_client import HttpClient
from khozo.extractor.models import MethodName
from khozo.pipeline import ExtractionPipeline


@pytest.mark.unit
class TestLazyInstance:
    @pytest.mark.asyncio
    async def test_created_once_and_cleaned_up(self):
        factory = MagicMock(return_value=object())
        lazy = LazyInstance(factory)

        first = await lazy.get()
        second = await lazy.get()

        assert first is second
        factory.assert_called_once()
        assert lazy.initialized

        await lazy.cleanup()
        assert not lazy.initialized


@pytest.mark.unit
class TestDependencyContainer:
    @pytest.mark.asyncio
    async def test_lifecycle_and_pipeline(self, credentials):
        container = DependencyContainer(config=Config(), credentials=credentials, watch_config=False)

        async with container.lifecycle():
            assert container.is_running
            client = await container.get_http_client()
            assert isinstance(client, HttpClient)
            assert client is await container.get_http_client()

            pipeline = await container.get_pipeline()
            assert isinstance(pipeline, ExtractionPipeline)
            assert [m.name for m in pipeline.controller.methods] == list(MethodName)

            health = container.get_health_status()
            assert health["is_running"]
            assert health["config_loaded"]
            assert health["instances_count"] == 1

        assert not container.is_running
        assert client.session is None

    @pytest.mark.asyncio
    async def test_disabled_methods_are_not_built(self, credentials):
        config = Config(extraction=ExtractionSettings(method_order=["timedtext", "metadata_summary"]))
        container = DependencyContainer(config=config, credentials=credentials, watch_config=False)

        async with container.lifecycle():
            pipeline = await container.get_pipeline()

        assert [m.name for m in pipeline.controller.methods] == [MethodName.TIMEDTEXT, MethodName.METADATA_SUMMARY]

    @pytest.mark.asyncio
    async def test_loads_yaml_config(self, tmp_path, credentials):
        path = tmp_path / "khozo.yaml"
        path.write_text("extraction:\n  default_language: ta\n", encoding="utf-8")
        container = DependencyContainer(path, credentials=credentials, watch_config=False)

        async with container.lifecycle():
            assert container.config.extraction.default_language == "ta"

    @pytest.mark.asyncio
    async def test_reload_replaces_http_client(self, tmp_path, credentials):
        path = tmp_path / "khozo.yaml"
        path.write_text("http:\n  timeout: 10\n", encoding="utf-8")
        container = DependencyContainer(path, credentials=credentials, watch_config=False)

        async with container.lifecycle():
            before = await container.get_http_client()
            path.write_text("http:\n  timeout: 20\n", encoding="utf-8")
            await container.reload_config()
            after = await container.get_http_client()

            assert after is not before
            assert after.config.timeout == 20

    @pytest.mark.asyncio
    async def test_shutdown_handlers_run(self, credentials):
        handler = MagicMock()
        container = DependencyContainer(config=Config(), credentials=credentials, watch_config=False)
        container.add_shutdown_handler(handler)

        async with container.lifecycle():
            pass

        handler.assert_called_once()

    @pytest.mark.asyncio
    async def test_pipeline_requires_loaded_config(self, credentials):
        container = DependencyContainer(credentials=credentials, watch_config=False)

        with pytest.raises(RuntimeError, match="Configuration must be loaded"):
            await container.get_pipeline()
