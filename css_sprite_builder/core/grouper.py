from __future__ import annotations

from typing import Dict, List

from .context import BuildContext
from .models import SpriteJob
from .registry import ImageRegistry


class SpriteGrouper:
    """Buckets packable registry entries into one job per target sheet."""

    def __init__(self, context: BuildContext) -> None:
        self.context = context
        self.options = context.options

    def group(self, registry: ImageRegistry) -> List[SpriteJob]:
        jobs: Dict[str, SpriteJob] = {}
        for image in registry.sprite_candidates():
            target = image.sprite_target
            if target is None:
                continue
            job = jobs.get(target)
            if job is None:
                job = jobs[target] = SpriteJob(
                    path=target,
                    dpr=image.dpr,
                    padding=self.job_padding(image.dpr),
                )
            job.images.append(image)
        return list(jobs.values())

    def job_padding(self, dpr: int) -> float:
        padding = self.options.sprite_opts.padding
        # Padding is given in CSS pixels; convert it to sheet pixels
        if dpr == 1:
            return padding / self.options.scale
        return padding * dpr
