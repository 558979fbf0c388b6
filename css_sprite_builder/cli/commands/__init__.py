from __future__ import annotations

from pathlib import Path
from typing import Optional

from ...core.config import SpriteConfig, SpriteOptions


def load_options(config: Optional[str]) -> SpriteOptions:
    if not config:
        return SpriteOptions()
    return SpriteConfig(Path(config)).load()
