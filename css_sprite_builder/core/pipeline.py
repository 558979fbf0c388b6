from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from .config import SpriteOptions
from .context import BuildContext, FileEntry, FileSet, SpriteReport
from .css_parser import StylesheetParser
from .css_rewriter import CssRewriter
from .grouper import SpriteGrouper
from .legacy_fixup import LegacyFixupEngine, LegacyFixupMarker
from .logger import get_logger
from .models import FixSelectorMap, PackedSprite, SpriteJob
from .packing import PackingAdapter, PackingEngine
from .registry import ImageRegistry
from .url_extractor import UrlExtractor

log = get_logger(__name__)

__all__ = [
    "Processor",
    "SpritePassResult",
    "AutoSpriteProcessor",
    "BuildRunner",
    "run_sprite_pass",
]


class Processor(Protocol):
    name: str

    def before_all(self, context: BuildContext) -> None: ...

    def process(self, context: BuildContext) -> None: ...


@dataclass
class SpritePassResult:
    registry: ImageRegistry
    stylesheets: List[FileEntry] = field(default_factory=list)
    jobs: List[SpriteJob] = field(default_factory=list)
    sprites: List[PackedSprite] = field(default_factory=list)
    fix_map: FixSelectorMap = field(default_factory=FixSelectorMap)


class AutoSpriteProcessor:
    """Extract, group, pack, rewrite and fix up in one pass over the files."""

    name = "AutoSprite"

    def __init__(
        self,
        *,
        engine: Optional[PackingEngine] = None,
        parser: Optional[StylesheetParser] = None,
        marker: Optional[LegacyFixupMarker] = None,
    ) -> None:
        self.engine = engine
        self.parser = parser
        self.marker = marker
        self.stylesheets: List[FileEntry] = []
        self.last_result: Optional[SpritePassResult] = None

    def before_all(self, context: BuildContext) -> None:
        self.stylesheets = context.files.select(context.options.files)
        log.debug("%d stylesheet(s) selected for sprites", len(self.stylesheets))

    def plan(self, context: BuildContext) -> SpritePassResult:
        """Run extraction and grouping only."""
        registry = ImageRegistry(context)
        extractor = UrlExtractor(context, registry)
        stylesheets = [entry for entry in self.stylesheets if extractor.extract(entry)]
        jobs = SpriteGrouper(context).group(registry)
        return SpritePassResult(registry, stylesheets, jobs)

    def process(self, context: BuildContext) -> None:
        result = self.last_result = self.plan(context)

        result.sprites = PackingAdapter(context, self.engine).pack(result.jobs)
        for sprite in result.sprites:
            context.files.add(FileEntry(path=sprite.path, data=sprite.image_bytes))
            context.report.sheets.append(sprite.path)

        extractor = UrlExtractor(context, result.registry)
        rewriter = CssRewriter(context, extractor, result.registry, self.parser)
        result.fix_map = rewriter.rewrite(result.sprites, result.stylesheets)

        if result.sprites:
            LegacyFixupEngine(context, self.marker).apply(result.fix_map)


class BuildRunner:
    """Runs processors in order: every ``before_all`` first, then ``process``."""

    def __init__(self, processors: Sequence[Processor]) -> None:
        self.processors = list(processors)

    def run(self, context: BuildContext) -> SpriteReport:
        for processor in self.processors:
            processor.before_all(context)
        for processor in self.processors:
            log.info("Running processor %s", processor.name)
            processor.process(context)
        for line in context.report.summary_lines:
            log.info(line)
        return context.report


def run_sprite_pass(
    files: FileSet,
    options: Optional[SpriteOptions] = None,
    *,
    engine: Optional[PackingEngine] = None,
    parser: Optional[StylesheetParser] = None,
    marker: Optional[LegacyFixupMarker] = None,
) -> SpriteReport:
    context = BuildContext(files, options)
    processor = AutoSpriteProcessor(engine=engine, parser=parser, marker=marker)
    return BuildRunner([processor]).run(context)
