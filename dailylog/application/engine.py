"""Application engine that wires configuration into the storage components."""

import logging
from datetime import date
from typing import Optional

from dailylog.application.config import Config
from dailylog.domain.errors import ValidationError
from dailylog.generation import InsightProvider, TemplateInsightProvider, StandupReporter
from dailylog.storage import (
    ObjectStore,
    GitHubObjectStore,
    LocalObjectStore,
    InMemoryObjectStore,
    RemoteLogStorage,
)

logger = logging.getLogger(__name__)


class LogEngine:
    """Builds the object store, storage provider and helpers from a Config.

    An object store or insight provider passed in explicitly takes the place
    of the one the configuration would create.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        object_store: Optional[ObjectStore] = None,
        insight_provider: Optional[InsightProvider] = None
    ):
        self.config = config or Config()
        self._setup_logging()

        self.object_store = object_store
        self.insight_provider = insight_provider
        self.storage: Optional[RemoteLogStorage] = None
        self.standup: Optional[StandupReporter] = None

        self._initialized = False

    def _setup_logging(self):
        """Setup logging configuration."""
        logging.basicConfig(
            level=getattr(logging, self.config.log_level.upper(), logging.WARNING),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            filename=self.config.log_file
        )

    def initialize(self) -> None:
        """Initialize all components."""
        if self._initialized:
            return

        if self.object_store is None:
            self.object_store = self._create_object_store()
        if self.insight_provider is None:
            self.insight_provider = self._create_insight_provider()

        storage_config = self.config.storage
        features = self.config.features
        self.storage = RemoteLogStorage(
            self.object_store,
            base_path=storage_config.base_path,
            max_write_attempts=storage_config.max_write_attempts,
            insight_provider=self.insight_provider,
            ai_enabled=features.ai_enabled,
            backup_enabled=features.backup_enabled,
            backup_path=features.backup_path,
            search_window_months=storage_config.search_window_months
        )
        self.standup = StandupReporter(self.storage)

        self._initialized = True
        logger.info(f"Log engine initialized with {self.object_store.describe()}")

    def _create_object_store(self) -> ObjectStore:
        """Create the object store based on configuration."""
        backend = self.config.storage.backend
        if backend == "github":
            github = self.config.github
            if not github.repo:
                raise ValidationError(
                    "github.repo",
                    "not configured (use --github-repo or set DAILYLOG_GITHUB__REPO)"
                )
            if not github.token:
                raise ValidationError(
                    "github.token",
                    "not configured (use --github-token or set DAILYLOG_GITHUB__TOKEN)"
                )
            return GitHubObjectStore(
                repo=github.repo,
                token=github.token,
                branch=github.branch,
                api_url=github.api_url,
                timeout=github.timeout
            )
        elif backend == "local":
            return LocalObjectStore(self.config.storage.local_path)
        elif backend == "memory":
            return InMemoryObjectStore()
        else:
            raise ValidationError("storage.backend", f"unknown backend: {backend}")

    def _create_insight_provider(self) -> InsightProvider:
        """Create the insight provider; only the template one ships built in."""
        provider = self.config.features.ai_provider
        if provider == "template":
            return TemplateInsightProvider()
        raise ValidationError(
            "features.ai_provider",
            f"unknown provider {provider!r}; inject an InsightProvider instead"
        )

    def get_storage(self) -> RemoteLogStorage:
        if not self._initialized:
            self.initialize()
        return self.storage

    def standup_report(self, day: date, report_format: str = "default") -> str:
        if not self._initialized:
            self.initialize()
        return self.standup.generate(day, report_format)
