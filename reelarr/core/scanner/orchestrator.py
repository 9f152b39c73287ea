"""Scan Orchestrator - rebuilds the catalog metainfo from OpenList and TMDB."""

import asyncio
import functools
from typing import List, Optional, Set

import structlog

from reelarr.core.cache import MetaInfoCache
from reelarr.core.errors import ItemEnrichmentFailure, ListingFailure, PersistenceFailure
from reelarr.core.integrations.openlist import FsEntry, OpenListClient
from reelarr.core.integrations.tmdb import TMDBClient
from reelarr.core.models import FolderMeta, MetaInfo, now_ms
from reelarr.core.tasks import ScanResultSummary, TaskRegistry, TaskStatus
from reelarr.db.store import ResultStore
from reelarr.utils.constants import OPENLIST, STORAGE, WEBSOCKET

logger = structlog.get_logger(__name__)


def _error_text(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


class ScanOrchestrator:
    """
    Drives catalog refreshes.

    One refresh lists every folder directly under the catalog root, looks each
    folder up on TMDB one at a time, and replaces the stored metainfo
    wholesale. ``request_delay`` is the pause after every folder and is the
    only thing bounding the request rate towards TMDB.

    Two refreshes of the same root are not serialized; whichever finishes
    last owns the stored metainfo and the cache entry.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        store: ResultStore,
        cache: MetaInfoCache,
        ws_manager=None,
        page_size: int = OPENLIST.DEFAULT_PAGE_SIZE,
        request_delay: float = 0.3,
    ):
        self.registry = registry
        self.store = store
        self.cache = cache
        self.ws_manager = ws_manager
        self.page_size = page_size
        self.request_delay = request_delay
        self._tasks: Set[asyncio.Task] = set()

    @property
    def active_tasks(self) -> Set[asyncio.Task]:
        return set(self._tasks)

    def start(
        self,
        task_id: str,
        root_path: str,
        lister: OpenListClient,
        resolver: TMDBClient,
    ) -> asyncio.Task:
        """Run a refresh in the background and return without waiting for it."""
        task = asyncio.create_task(
            self._run_and_close(task_id, root_path, lister, resolver),
            name=f"refresh-{task_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._on_task_done, task_id))
        logger.info("Refresh started", task_id=task_id, root=root_path)
        return task

    async def _run_and_close(self, task_id, root_path, lister, resolver) -> MetaInfo:
        try:
            return await self.run(task_id, root_path, lister, resolver)
        finally:
            await lister.close()
            await resolver.close()

    def _on_task_done(self, task_id: str, task: asyncio.Task):
        self._tasks.discard(task)

        if task.cancelled():
            error = "Refresh was interrupted"
            logger.warning("Refresh cancelled", task_id=task_id)
        else:
            exc = task.exception()
            if exc is None:
                return
            error = _error_text(exc)
            logger.error("Background refresh failed", task_id=task_id, error=error, exc_info=exc)

        # run() normally records the failure itself
        snapshot = self.registry.get(task_id)
        if snapshot is not None and snapshot.status == TaskStatus.RUNNING:
            self.registry.fail(task_id, error)

    async def run(
        self,
        task_id: str,
        root_path: str,
        lister: OpenListClient,
        resolver: TMDBClient,
    ) -> MetaInfo:
        """Refresh ``root_path`` and record the outcome under ``task_id``."""
        log = logger.bind(task_id=task_id, root=root_path)

        # Readers must not see the old metainfo while this refresh is in flight
        self.cache.invalidate(root_path)
        await self._report_progress(task_id, 0, 0)

        try:
            metainfo = MetaInfo()

            folders = await self._list_folders(lister, root_path)
            total = len(folders)
            log.info("Folders discovered", count=total)
            await self._report_progress(task_id, 0, total)

            new_count = 0
            error_count = 0

            for index, folder in enumerate(folders, start=1):
                await self._report_progress(task_id, index, total, folder.name)

                meta = await self._enrich(resolver, folder.name, log)
                metainfo.folders[folder.name] = meta
                if meta.failed:
                    error_count += 1
                else:
                    new_count += 1

                await asyncio.sleep(self.request_delay)

            metainfo.last_refresh = now_ms()
            await self._persist(root_path, metainfo)

            summary = ScanResultSummary(total=total, new=new_count, existing=0, errors=error_count)
            self.registry.complete(task_id, summary)

        except Exception as e:
            log.error("Refresh failed", error=_error_text(e), exc_info=True)
            self.registry.fail(task_id, _error_text(e))
            await self._broadcast_complete(task_id, TaskStatus.FAILED, error=_error_text(e))
            raise

        log.info("Refresh completed", total=summary.total, new=summary.new, errors=summary.errors)
        await self._broadcast_complete(task_id, TaskStatus.COMPLETED, summary=summary)
        return metainfo

    async def _list_folders(self, lister: OpenListClient, root_path: str) -> List[FsEntry]:
        """Collect every directory under ``root_path`` across all listing pages."""
        folders: List[FsEntry] = []
        page = 1
        seen = 0

        while True:
            listing = await lister.list_directory(root_path, page, self.page_size, refresh=True)
            if not listing.ok:
                raise ListingFailure(
                    f"OpenList listing failed for {root_path} (page {page}, code {listing.code}): "
                    f"{listing.message or 'no message'}",
                    code=listing.code,
                )

            items = listing.items
            seen += len(items)
            folders.extend(item for item in items if item.is_dir)

            # Pages count every entry, files included
            if not items or seen >= listing.total:
                break
            page += 1

        return folders

    async def _enrich(self, resolver: TMDBClient, folder_name: str, log) -> FolderMeta:
        """Look up one folder; any failure degrades just this folder."""
        try:
            response = await resolver.search(folder_name)
            if not response.matched:
                raise ItemEnrichmentFailure(folder_name, f"no TMDB match (code {response.code})")

            match = response.result
            return FolderMeta(
                tmdb_id=match.id,
                title=match.display_title or folder_name,
                poster_path=match.poster_path,
                release_date=match.air_date,
                overview=match.overview or "",
                vote_average=match.vote_average or 0.0,
                media_type=match.media_type,
                failed=False,
            )
        except Exception as e:
            log.warning("Folder enrichment failed", folder=folder_name, error=_error_text(e))
            return FolderMeta.degraded(folder_name)

    async def _persist(self, root_path: str, metainfo: MetaInfo):
        try:
            await self.store.set_global_value(STORAGE.METAINFO_KEY, metainfo.model_dump_json())
        except Exception as e:
            raise PersistenceFailure(f"Failed to save metainfo: {_error_text(e)}") from e

        self.cache.set(root_path, metainfo)

        try:
            await self.store.save_refresh_stats(
                last_refresh_time=now_ms(),
                resource_count=len(metainfo.folders),
            )
        except Exception as e:
            raise PersistenceFailure(f"Failed to save refresh stats: {_error_text(e)}") from e

    async def _report_progress(self, task_id: str, current: int, total: int, item: Optional[str] = None):
        """Update the registry, then push the same snapshot to WebSocket clients."""
        self.registry.update_progress(task_id, current, total, item)

        if self.ws_manager:
            await self.ws_manager.broadcast(WEBSOCKET.SCAN_CHANNEL, {
                "type": "scan_progress",
                "task_id": task_id,
                "current": current,
                "total": total,
                "current_item": item,
            })

    async def _broadcast_complete(
        self,
        task_id: str,
        status: TaskStatus,
        summary: Optional[ScanResultSummary] = None,
        error: Optional[str] = None,
    ):
        if self.ws_manager:
            await self.ws_manager.broadcast(WEBSOCKET.SCAN_CHANNEL, {
                "type": "scan_complete",
                "task_id": task_id,
                "status": status.value,
                "result": summary.model_dump() if summary else None,
                "error": error,
            })
