from css_sprite_builder.core.config import SpriteOptions
from css_sprite_builder.core.context import BuildContext, FileEntry, FileSet
from css_sprite_builder.core.css_parser import CssutilsParser
from css_sprite_builder.core.css_rewriter import (
    background_position,
    background_size,
    effective_dpr,
    round_half_up,
)
from css_sprite_builder.core.errors import RuleValidationError, StylesheetParseError
from css_sprite_builder.core.models import ImageReference, PackedSprite, PackResult, Rect
from css_sprite_builder.core.pipeline import AutoSpriteProcessor, BuildRunner


class FakeEngine:
    """Returns fixed placements instead of composing an image."""

    def __init__(self, placements, size):
        self.placements = placements
        self.size = size

    def pack(self, sources, options):
        coords = {path: self.placements[path] for path, _ in sources}
        return PackResult(coords, self.size[0], self.size[1], b"fake-png")


class FailingParser(CssutilsParser):
    def parse(self, text, path=""):
        raise StylesheetParseError(f"error parse style {path}: boom", path=path)


CSS_PATH = "src/css/main.css"


def _run(css, placements, size=(100, 50), parser=None, **opts):
    files = FileSet(
        [
            FileEntry(CSS_PATH, css.encode("utf-8")),
            FileEntry("src/img/a.png", b"a"),
            FileEntry("src/img/b.png", b"b"),
            FileEntry("src/img/b@2x.png", b"b2"),
        ]
    )
    context = BuildContext(files, SpriteOptions(**opts))
    processor = AutoSpriteProcessor(engine=FakeEngine(placements, size), parser=parser)
    BuildRunner([processor]).run(context)
    return context, processor


def _css(context):
    return context.files.find(CSS_PATH).read_text()


def test_offset_rewrite_without_size():
    css = ".icon-a {\n    background: url(../img/a.png?_sprite=s) no-repeat;\n}\n"

    context, _ = _run(css, {"src/img/a.png": Rect(10, 20, 16, 16)})

    out = _css(context)
    assert "background: url(../sprite/s.png) no-repeat;" in out
    assert "background-position: -10px -20px;" in out
    assert "background-size" not in out
    assert out.index("background:") < out.index("background-position")
    assert context.report.stylesheets_rewritten == [CSS_PATH]
    assert context.files.find("src/sprite/s.png").data == b"fake-png"


def test_density_rewrite_adds_background_size():
    css = ".icon-b { background-image: url(../img/b@2x.png?_sprite); }"

    context, _ = _run(css, {"src/img/b@2x.png": Rect(0, 0, 40, 40)}, size=(200, 100))

    out = _css(context)
    assert "background-image: url(main@2x.png);" in out
    assert "background-position: 0 0;" in out
    assert "background-size: 100px 50px;" in out


def test_existing_position_and_size_are_replaced():
    css = (
        ".icon-a {\n"
        "    background-position: 5px 5px;\n"
        "    background: url(../img/a.png?_sprite) no-repeat;\n"
        "    background-size: 10px 10px;\n"
        "    color: red;\n"
        "}\n"
    )

    context, _ = _run(css, {"src/img/a.png": Rect(0, 8, 16, 16)})

    out = _css(context)
    assert out.count("background-position") == 1
    assert "background-position: 0 -8px;" in out
    assert "background-size" not in out
    assert "color: red;" in out


def test_multiple_backgrounds_rejected_untouched(caplog):
    css = ".pair { background: url(../img/a.png?_sprite), url(../img/b.png?_sprite); }\n"

    caplog.set_level("ERROR")
    context, _ = _run(
        css, {"src/img/a.png": Rect(0, 0, 8, 8), "src/img/b.png": Rect(0, 10, 8, 8)}
    )

    assert _css(context) == css
    errors = context.report.errors_of(RuleValidationError)
    assert len(errors) == 1
    assert errors[0].selectors == ".pair"
    assert "multiple background image url" in caplog.text
    assert context.report.stylesheets_rewritten == []


def test_tiled_background_rejected():
    css = (
        ".bar { background: url(../img/a.png?_sprite); background-repeat: repeat-x; }\n"
    )

    context, _ = _run(css, {"src/img/a.png": Rect(0, 0, 8, 8)})

    assert _css(context) == css
    errors = context.report.errors_of(RuleValidationError)
    assert len(errors) == 1
    assert "background repeat value" in str(errors[0])


def test_tiling_in_shorthand_rejected_but_no_repeat_allowed():
    css = (
        ".tiled { background: url(../img/a.png?_sprite) repeat; }\n"
        ".ok { background: url(../img/b.png?_sprite) no-repeat; }\n"
    )

    context, _ = _run(
        css, {"src/img/a.png": Rect(0, 0, 8, 8), "src/img/b.png": Rect(0, 10, 8, 8)}
    )

    out = _css(context)
    assert "url(../img/a.png?_sprite) repeat" in out
    assert "background-position: 0 -10px;" in out
    assert len(context.report.errors_of(RuleValidationError)) == 1


def test_disallowed_property_rejected():
    css = ".list { list-style-image: url(../img/a.png?_sprite); }\n"

    context, _ = _run(css, {"src/img/a.png": Rect(0, 0, 8, 8)})

    assert _css(context) == css
    errors = context.report.errors_of(RuleValidationError)
    assert "list-style-image" in str(errors[0])


def test_nested_rules_and_fix_selector_map():
    css = (
        "@media screen {\n"
        "    .nested, .other { background: url(../img/a.png?_sprite&_ie6=1); }\n"
        "}\n"
        ".plain { background: url(../img/b.png); }\n"
    )

    context, processor = _run(css, {"src/img/a.png": Rect(4, 0, 8, 8)})

    out = _css(context)
    assert "@media screen" in out
    assert "background-position: -4px 0;" in out
    assert "url(../img/b.png)" in out
    assert processor.last_result.fix_map.get("src/img/a.png") == [".nested", ".other"]
    assert "src/img/b.png" not in processor.last_result.fix_map


def test_unpacked_reference_left_alone_without_error():
    css = (
        ".a { background: url(../img/a.png?_sprite); }\n"
        ".b { background: url(../img/b.png), url(../img/b@2x.png); }\n"
    )

    context, _ = _run(css, {"src/img/a.png": Rect(0, 0, 8, 8)})

    out = _css(context)
    assert "url(../img/b.png)" in out
    assert "url(../img/b@2x.png)" in out
    assert context.report.errors == []


def test_parse_error_leaves_stylesheet_unmodified():
    css = ".icon-a { background: url(../img/a.png?_sprite); }"

    context, _ = _run(css, {"src/img/a.png": Rect(0, 0, 8, 8)}, parser=FailingParser())

    assert _css(context) == css
    assert len(context.report.errors_of(StylesheetParseError)) == 1
    # the sheet itself was still produced
    assert context.report.sheets == ["src/css/main.png"]


def test_scale_sets_effective_dpr():
    context, _ = _run(
        ".icon-a { background: url(../img/a.png?_sprite); }",
        {"src/img/a.png": Rect(20, 41, 8, 8)},
        size=(64, 101),
        scale=0.5,
    )

    out = _css(context)
    assert "background-position: -10px -21px;" in out
    assert "background-size: 32px 51px;" in out


def test_value_helpers():
    image = ImageReference(
        path="a.png", referenced_from="m.css", sprite_target="s.png",
        placement=Rect(3, 0, 4, 4),
    )
    sprite = PackedSprite("s.png", 1, 101, 7, b"", {})

    assert round_half_up(2.5) == 3
    assert round_half_up(1.49) == 1
    assert effective_dpr(image, 1) == 1
    assert effective_dpr(image, 0.25) == 4
    assert background_position(image, 2) == "-2px 0"
    assert background_size(sprite, 2) == "51px 4px"
