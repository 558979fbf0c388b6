"""Dispatch sprite jobs to a packing engine and merge the placements."""

from __future__ import annotations

import io
import threading
from concurrent.futures import Future, wait
from typing import List, Optional, Protocol, Sequence, Tuple

from PIL import Image

from .config import PackOptions
from .context import BuildContext
from .errors import PackingError, PackingTimeoutError
from .logger import get_logger
from .models import PackedSprite, PackResult, Rect, SpriteJob

log = get_logger(__name__)

__all__ = [
    "PackingEngine",
    "PillowPackingEngine",
    "PackingAdapter",
]

_DEFAULT_MAX_WORKERS = 8


class PackingEngine(Protocol):
    def pack(
        self, sources: Sequence[Tuple[str, bytes]], options: PackOptions
    ) -> PackResult: ...


class PillowPackingEngine:
    """Stacks images top-down (or left-right) into one RGBA PNG."""

    def pack(
        self, sources: Sequence[Tuple[str, bytes]], options: PackOptions
    ) -> PackResult:
        if not sources:
            raise ValueError("no images to pack")

        images = []
        for path, data in sources:
            with Image.open(io.BytesIO(data)) as im:
                images.append((path, im.convert("RGBA")))

        padding = int(round(options.padding))
        horizontal = options.algorithm == "left-right"
        coordinates = {}
        offset = 0
        for path, im in images:
            if horizontal:
                coordinates[path] = Rect(offset, 0, im.width, im.height)
                offset += im.width + padding
            else:
                coordinates[path] = Rect(0, offset, im.width, im.height)
                offset += im.height + padding

        extent = offset - padding
        cross = max((im.height if horizontal else im.width) for _, im in images)
        width, height = (extent, cross) if horizontal else (cross, extent)

        sheet = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        for path, im in images:
            rect = coordinates[path]
            sheet.paste(im, (rect.x, rect.y))

        buf = io.BytesIO()
        sheet.save(buf, format="PNG")
        return PackResult(coordinates, width, height, buf.getvalue())


class PackingAdapter:
    """Runs one packing call per job concurrently and joins them all.

    Results land in slots fixed at dispatch time, so the returned sheets
    follow job order whatever the completion order was.
    """

    def __init__(
        self, context: BuildContext, engine: Optional[PackingEngine] = None
    ) -> None:
        self.context = context
        self.options = context.options
        self.engine = engine or PillowPackingEngine()

    def pack(self, jobs: Sequence[SpriteJob]) -> List[PackedSprite]:
        if not jobs:
            return []

        slots: List[Optional[PackResult]] = [None] * len(jobs)
        failed = 0
        workers = min(len(jobs), self.options.max_workers or _DEFAULT_MAX_WORKERS)
        # Daemon threads: a stalled engine call must not keep the process alive.
        gate = threading.BoundedSemaphore(workers)
        futures: List[Future] = []
        for job in jobs:
            future: Future = Future()
            futures.append(future)
            threading.Thread(
                target=self._run_job,
                args=(job, future, gate),
                name=f"sprite-pack-{len(futures)}",
                daemon=True,
            ).start()
        _, pending = wait(futures, timeout=self.options.pack_timeout)
        for future in pending:
            future.cancel()

        for index, (job, future) in enumerate(zip(jobs, futures)):
            if future in pending:
                log.warning("Packing %s did not finish in time", job.path)
                self._fail(
                    PackingTimeoutError(
                        f"Generate sprite {job.path} error: timed out after "
                        f"{self.options.pack_timeout}s",
                        path=job.path,
                    )
                )
                failed += 1
                continue
            exc = future.exception()
            if exc is not None:
                self._fail(
                    PackingError(
                        f"Generate sprite {job.path} error: {exc}", path=job.path
                    )
                )
                failed += 1
                continue
            result = future.result()
            missing = [p for p in job.image_paths if p not in result.coordinates]
            if missing:
                self._fail(
                    PackingError(
                        f"Generate sprite {job.path} error: no placement for "
                        f"{', '.join(missing)}",
                        path=job.path,
                    )
                )
                failed += 1
                continue
            slots[index] = result

        if failed and self.options.pack_failure_policy == "all":
            log.error(
                "%d of %d sprite job(s) failed; discarding every sprite sheet",
                failed,
                len(jobs),
            )
            return []

        sprites: List[PackedSprite] = []
        for job, result in zip(jobs, slots):
            if result is None:
                continue
            sprites.append(self._merge(job, result))
        return sprites

    def _run_job(
        self, job: SpriteJob, future: Future, gate: threading.BoundedSemaphore
    ) -> None:
        with gate:
            if not future.set_running_or_notify_cancel():
                return
            try:
                result = self._pack_job(job)
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

    def _pack_job(self, job: SpriteJob) -> PackResult:
        sources = []
        for path in job.image_paths:
            entry = self.context.files.find(path)
            if entry is None:
                raise FileNotFoundError(path)
            sources.append((path, entry.data))
        options = self.options.sprite_opts.model_copy(update={"padding": job.padding})
        return self.engine.pack(sources, options)

    def _merge(self, job: SpriteJob, result: PackResult) -> PackedSprite:
        placements = {}
        for image in job.images:
            rect = Rect(*result.coordinates[image.path])
            image.placement = rect
            placements[image.path] = rect

        sprite = PackedSprite(
            path=job.path,
            dpr=job.dpr,
            width=result.width,
            height=result.height,
            image_bytes=result.image,
            placement_by_path=placements,
            images=list(job.images),
        )
        log.info(
            "generate sprite image: %s with %d images, size: %d * %d - %.2fKB",
            sprite.path,
            len(sprite.images),
            sprite.width,
            sprite.height,
            sprite.size_bytes / 1024,
        )
        return sprite

    def _fail(self, error: PackingError) -> None:
        self.context.report_error(error)
