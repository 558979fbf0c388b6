from __future__ import annotations

import json
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "PackOptions",
    "SpriteOptions",
    "SpriteConfig",
]


class PackOptions(BaseModel):
    """Options forwarded to the packing engine for every sprite sheet."""

    model_config = ConfigDict(populate_by_name=True)

    padding: float = Field(2, ge=0)
    algorithm: Literal["top-down", "left-right"] = "top-down"


class SpriteOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Entry stylesheets, matched against project-relative paths
    files: List[str] = Field(default_factory=lambda: ["*.css"])
    sprite_opts: PackOptions = Field(default_factory=PackOptions, alias="spriteOpts")
    sprite_param_name: str = Field("_sprite", alias="spriteParamName")
    ie6_param_name: str = Field("_ie6", alias="ie6ParamName")
    # Only applied to images without an @Nx suffix
    scale: float = Field(1, gt=0)
    output_dir: str = Field("src/sprite", alias="outputDir")
    group_by_css_file: bool = Field(True, alias="groupByCSSFile")
    fix_ie6_png: bool = Field(False, alias="fixIE6PNG")

    pack_timeout: Optional[float] = Field(None, gt=0, alias="packTimeout")
    pack_failure_policy: Literal["partial", "all"] = Field(
        "partial", alias="packFailurePolicy"
    )
    max_workers: Optional[int] = Field(None, ge=1, alias="maxWorkers")

    fixup_files: List[str] = Field(
        default_factory=lambda: ["*"],
        alias="fixupFiles",
    )
    fixup_excludes: List[str] = Field(
        default_factory=lambda: ["dep/*", "node_modules/*", "vendor/*"],
        alias="fixupExcludes",
    )


class SpriteConfig:
    def __init__(self, path: Path):
        self.path = path
        self.model: Optional[SpriteOptions] = None

    def load(self) -> SpriteOptions:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.model = SpriteOptions.model_validate(data)
        return self.model
