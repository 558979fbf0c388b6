from __future__ import annotations

from pathlib import Path

from ...core.logger import configure_logging, get_logger
from ...core.pipeline import run_sprite_pass
from ...core.project_files import load_project_files, write_output_files
from . import load_options

log = get_logger(__name__)


def run(args) -> int:
    configure_logging(args.verbose)
    options = load_options(args.config)
    files = load_project_files(Path(args.src_dir))

    report = run_sprite_pass(files, options)

    if args.dry_run:
        log.info("Dry run: nothing written")
    else:
        write_output_files(files, Path(args.out))
    return 1 if args.strict and not report.ok else 0
