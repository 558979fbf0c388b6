from __future__ import annotations

from pathlib import Path

from ...core.context import BuildContext
from ...core.logger import configure_logging
from ...core.pipeline import AutoSpriteProcessor
from ...core.project_files import load_project_files
from . import load_options


def run(args) -> int:
    configure_logging(args.verbose)
    context = BuildContext(load_project_files(Path(args.src_dir)), load_options(args.config))
    processor = AutoSpriteProcessor()
    processor.before_all(context)
    plan = processor.plan(context)

    if not plan.jobs:
        print("No sprite sheets to build")
    for job in plan.jobs:
        print(f"{job.path} (dpr {job.dpr}, padding {job.padding:g})")
        for path in job.image_paths:
            print(f"  {path}")
    return 0 if context.report.ok else 1
