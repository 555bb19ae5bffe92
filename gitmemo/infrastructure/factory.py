"""
Infrastructure: Memo Store Factory

Dependency injection factory for assembling all components.
Single source of truth for component wiring.

Every incoming request gets its own object graph: a fresh read cache,
a client carrying that request's token and a trace id for its logs.
"""

import os
import uuid
from dataclasses import dataclass
from typing import Optional

import aiohttp

from gitmemo.application.memos import (
    CreateMemoUseCase,
    DeleteMemoUseCase,
    LoadMemosUseCase,
    UpdateMemoUseCase,
    UploadImagesUseCase,
)
from gitmemo.config import StoreSettings
from gitmemo.domain.images.services import ImageNormalizer, NormalizerPolicy
from gitmemo.domain.memos.services import ShardKeyResolver, ShardLayout, ShardPaginator
from gitmemo.infrastructure.adapters import LoggerAdapter
from gitmemo.infrastructure.assets import GitHubAssetStore
from gitmemo.infrastructure.cache import CachedObjectClient, RequestReadCache
from gitmemo.infrastructure.github import GitHubContentsClient
from gitmemo.infrastructure.images import PillowImageCodec
from gitmemo.infrastructure.memos import GitHubMemoRepository, GitHubShardIndex


@dataclass
class MemoStoreContext:
    """One request's worth of wired components."""

    trace_id: str
    client: GitHubContentsClient
    cache: RequestReadCache
    repository: GitHubMemoRepository
    index: GitHubShardIndex
    asset_store: GitHubAssetStore
    normalizer: ImageNormalizer
    create_memo: CreateMemoUseCase
    update_memo: UpdateMemoUseCase
    delete_memo: DeleteMemoUseCase
    load_memos: LoadMemosUseCase
    upload_images: UploadImagesUseCase

    async def close(self):
        self.cache.clear()
        await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class MemoStoreFactory:
    """
    Factory for creating memo store components.

    Implements dependency injection pattern.
    """

    def __init__(self, settings: Optional[StoreSettings] = None):
        self.settings = settings or StoreSettings.load()

    @staticmethod
    def create_normalizer(settings: StoreSettings) -> ImageNormalizer:
        return ImageNormalizer(
            codec=PillowImageCodec(),
            policy=NormalizerPolicy.from_settings(settings.images),
        )

    def create_context(
        self,
        token: Optional[str] = None,
        trace_id: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        resolver: Optional[ShardKeyResolver] = None,
    ) -> MemoStoreContext:
        """
        Create a fully wired per-request context.

        Args:
            token: Access token; falls back to GITHUB_TOKEN
            trace_id: Correlation ID (generated when omitted)
            session: Optional shared aiohttp session, left open on close
            resolver: Clock/timezone override (tests)

        Returns:
            MemoStoreContext; use as an async context manager
        """
        settings = self.settings
        token = token or os.getenv("GITHUB_TOKEN")
        trace_id = trace_id or uuid.uuid4().hex[:12]

        # Infrastructure: Clients
        client = GitHubContentsClient.from_settings(
            settings, token, session=session, trace_id=trace_id
        )
        cache = RequestReadCache()
        cached_client = CachedObjectClient(client, cache)

        # Domain Services
        resolver = resolver or ShardKeyResolver(settings.memos.timezone)
        layout = ShardLayout(
            settings.memos.directory, settings.memos.file_prefix, settings.memos.file_suffix
        )
        paginator = ShardPaginator(settings.memos.default_page_size)
        normalizer = self.create_normalizer(settings)

        # Infrastructure: Stores
        asset_store = GitHubAssetStore.from_settings(settings, cached_client, trace_id=trace_id)
        repository = GitHubMemoRepository.from_settings(
            settings,
            cached_client,
            resolver=resolver,
            asset_cleaner=asset_store,
            trace_id=trace_id,
        )
        index = GitHubShardIndex(cached_client, layout, paginator)

        # Infrastructure: Logger
        logger = LoggerAdapter()

        # Application: Use Cases
        max_length = settings.memos.max_content_length
        return MemoStoreContext(
            trace_id=trace_id,
            client=client,
            cache=cache,
            repository=repository,
            index=index,
            asset_store=asset_store,
            normalizer=normalizer,
            create_memo=CreateMemoUseCase(repository, logger, token, max_length),
            update_memo=UpdateMemoUseCase(repository, logger, token, max_length),
            delete_memo=DeleteMemoUseCase(repository, logger, token),
            load_memos=LoadMemosUseCase(repository, index, logger),
            upload_images=UploadImagesUseCase(
                asset_store,
                normalizer,
                logger,
                token,
                budget_bytes=settings.images.budget_bytes,
                max_dimension=settings.images.max_dimension,
                batch_size=settings.assets.upload_batch_size,
            ),
        )

    @staticmethod
    def create_from_env(**remote_overrides) -> "MemoStoreFactory":
        """
        Create a factory from the packaged config plus GITMEMO_* environment
        variables.
        """
        return MemoStoreFactory(StoreSettings.load(**remote_overrides))
