from .config import SpriteOptions
from .context import BuildContext, FileEntry, FileSet, SpriteReport
from .pipeline import AutoSpriteProcessor, BuildRunner, run_sprite_pass

__all__ = [
    "SpriteOptions",
    "BuildContext",
    "FileEntry",
    "FileSet",
    "SpriteReport",
    "AutoSpriteProcessor",
    "BuildRunner",
    "run_sprite_pass",
]
