"""
Dependency injection container for khozo components.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Dict, Generic, List, Optional, TypeVar

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from khozo.config import Config, SettingsCredentialStore
from khozo.protocols import CredentialStore

if TYPE_CHECKING:
    from khozo.crawler.http_client import HttpClient
    from khozo.extractor.methods.caption_library import TranscriptFetch
    from khozo.pipeline import ExtractionPipeline

T = TypeVar("T")


class LazyInstance(Generic[T]):
    """Lazy-loaded instance with lifecycle management."""

    def __init__(self, factory: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._factory = factory
        self._args = args
        self._kwargs = kwargs
        self._instance: Optional[T] = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def get(self) -> T:
        """Get or create the instance."""
        if not self._initialized:
            self._instance = self._factory(*self._args, **self._kwargs)
            if hasattr(self._instance, "initialize") and callable(getattr(self._instance, "initialize", None)):
                await self._instance.initialize()  # type: ignore
            self._initialized = True
        assert self._instance is not None
        return self._instance

    async def cleanup(self) -> None:
        """Clean up the instance."""
        if self._instance and hasattr(self._instance, "close") and callable(getattr(self._instance, "close", None)):
            await self._instance.close()  # type: ignore
        self._instance = None
        self._initialized = False


class ConfigWatcher(FileSystemEventHandler):
    """Watches the configuration file and schedules a reload on the container's loop."""

    def __init__(self, container: DependencyContainer, loop: asyncio.AbstractEventLoop) -> None:
        self.container = container
        self.loop = loop
        self.logger = structlog.get_logger(self.__class__.__name__)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory or self.container.config_path is None:
            return
        if Path(str(event.src_path)).resolve() != self.container.config_path.resolve():
            return
        self.logger.info("Configuration file changed, reloading", path=event.src_path)
        # Watchdog calls us from its own thread.
        asyncio.run_coroutine_threadsafe(self.container.reload_config(), self.loop)


class DependencyContainer:
    """
    Owns the shared HTTP session and builds pipelines from the current config.
    Provides lazy initialization, lifecycle management and configuration hot-reloading.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        *,
        config: Optional[Config] = None,
        credentials: Optional[CredentialStore] = None,
        transcript_fetch: Optional["TranscriptFetch"] = None,
        watch_config: bool = True,
    ) -> None:
        self.config_path = config_path
        self.config: Optional[Config] = config
        self.watch_config = watch_config
        self._credentials_override = credentials
        self._transcript_fetch = transcript_fetch
        self.logger = structlog.get_logger(self.__class__.__name__)

        self._instances: Dict[str, LazyInstance[Any]] = {}
        self._instances_lock = asyncio.Lock()
        self._observer: Optional[Any] = None
        self._shutdown_handlers: List[Callable[[], Any]] = []
        self.is_running = False

    @property
    def credentials(self) -> CredentialStore:
        if self._credentials_override is not None:
            return self._credentials_override
        if self.config is None:
            raise RuntimeError("Configuration must be loaded before reading credentials")
        return SettingsCredentialStore(self.config.credentials)

    async def initialize(self) -> None:
        """Initialize the container and load configuration."""
        if self.config is None:
            await self.load_config()
        else:
            await self._create_instances()

        if self.watch_config:
            await self._setup_config_watching()

        self.is_running = True
        self.logger.info(
            "Dependency container initialized",
            config_path=str(self.config_path) if self.config_path else "default",
        )

    async def load_config(self) -> None:
        """Load or reload configuration."""
        if self.config_path and self.config_path.exists():
            self.config = Config.from_yaml(self.config_path)
        else:
            self.config = Config()

        await self._create_instances()

    async def _create_instances(self) -> None:
        """Create lazy instances with current configuration."""
        if self.config is None:
            raise RuntimeError("Configuration must be loaded before creating instances")

        await self._cleanup_instances()

        from khozo.crawler.http_client import HttpClient

        self._instances = {
            "http_client": LazyInstance(HttpClient, self.config.http),
        }

    async def reload_config(self) -> None:
        """Hot-reload configuration; pipelines built afterwards use the new values."""
        old_config = self.config
        async with self._instances_lock:
            await self.load_config()

        self.logger.info("Configuration reloaded", changes_detected=old_config != self.config)

    async def get_http_client(self) -> HttpClient:
        """Get the HTTP client instance."""
        async with self._instances_lock:
            return await self._instances["http_client"].get()  # type: ignore

    async def get_pipeline(self) -> ExtractionPipeline:
        """Build an extraction pipeline wired to the shared HTTP client."""
        from khozo.extractor.controller import EscalationController
        from khozo.extractor.metadata_source import YouTubeMetadataSource
        from khozo.extractor.methods import build_methods
        from khozo.extractor.validator import ContentValidator
        from khozo.llm import AnthropicClient
        from khozo.locator import HttpPointerReader, ResourceLocator
        from khozo.pipeline import ExtractionPipeline

        if self.config is None:
            raise RuntimeError("Configuration must be loaded before building a pipeline")
        http_client = await self.get_http_client()
        config = self.config
        credentials = self.credentials

        llm = AnthropicClient(http_client, config.llm, credentials)
        methods = build_methods(
            config.extraction,
            fetcher=http_client,
            llm=llm,
            credentials=credentials,
            transcript_fetch=self._transcript_fetch,
        )
        controller = EscalationController(
            methods,
            validator=ContentValidator(config.extraction.validation_min_chars),
        )
        locator = ResourceLocator(
            HttpPointerReader(http_client),
            default_language=config.extraction.default_language,
        )
        return ExtractionPipeline(
            locator,
            controller,
            YouTubeMetadataSource(http_client, credentials),
            words_per_minute=config.extraction.words_per_minute,
        )

    @asynccontextmanager
    async def lifecycle(self) -> AsyncIterator[DependencyContainer]:
        """Context manager for proper lifecycle management."""
        try:
            await self.initialize()
            yield self
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Graceful shutdown of all managed instances."""
        if not self.is_running:
            return

        self.logger.info("Shutting down dependency container")

        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None

        for handler in self._shutdown_handlers:
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler()
                else:
                    handler()
            except Exception as e:
                self.logger.error("Error in shutdown handler", error=str(e))

        await self._cleanup_instances()

        self.is_running = False
        self.logger.info("Dependency container shutdown complete")

    async def _setup_config_watching(self) -> None:
        """Set up file system watching for configuration changes."""
        if not self.config_path or not self.config_path.exists():
            return

        self._observer = Observer()
        handler = ConfigWatcher(self, asyncio.get_running_loop())
        self._observer.schedule(handler, str(self.config_path.parent), recursive=False)
        self._observer.start()

    async def _cleanup_instances(self) -> None:
        """Clean up all managed instances."""
        for name, instance in self._instances.items():
            try:
                await instance.cleanup()
            except Exception as e:
                self.logger.error(f"Error cleaning up {name}", error=str(e))
        self._instances.clear()

    def add_shutdown_handler(self, handler: Callable[[], Any]) -> None:
        """Add a custom shutdown handler."""
        self._shutdown_handlers.append(handler)

    def get_health_status(self) -> Dict[str, Any]:
        """Get health status of all managed components."""
        return {
            "is_running": self.is_running,
            "config_loaded": self.config is not None,
            "instances_count": len(self._instances),
            "config_path": str(self.config_path) if self.config_path else None,
        }
