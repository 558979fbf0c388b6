from css_sprite_builder.core.config import SpriteOptions
from css_sprite_builder.core.context import BuildContext, FileEntry, FileSet
from css_sprite_builder.core.errors import ConflictError, ResolutionError
from css_sprite_builder.core.registry import ImageRegistry
from css_sprite_builder.core.url_extractor import UrlExtractor, parse_flag


def _extractor(file_set, **opts):
    context = BuildContext(file_set, SpriteOptions(**opts))
    registry = ImageRegistry(context)
    return context, registry, UrlExtractor(context, registry)


IMAGES = {
    "src/img/a.png": b"a",
    "src/img/b@2x.png": b"b",
    "src/img/c.png": b"c",
}


def test_describe_resolves_relative_to_stylesheet(make_files):
    _, _, extractor = _extractor(make_files(IMAGES))

    ref = extractor.describe("../img/a.png?_sprite", "src/css/main.css")

    assert ref.path == "src/img/a.png"
    assert ref.pack_requested is True
    assert ref.dpr == 1
    assert ref.sprite_target == "src/css/main.png"
    assert ref.legacy_fix_requested is False


def test_sprite_target_variants(make_files):
    _, _, grouped = _extractor(make_files(IMAGES))
    _, _, shared = _extractor(
        make_files(IMAGES), group_by_css_file=False, output_dir="out/sprites"
    )

    assert grouped.describe("../img/a.png?_sprite=icons", "src/css/main.css").sprite_target == (
        "src/sprite/icons.png"
    )
    assert grouped.describe("../img/b@2x.png?_sprite", "src/css/main.css").sprite_target == (
        "src/css/main@2x.png"
    )
    assert shared.describe("../img/a.png?_sprite", "src/css/main.css").sprite_target == (
        "out/sprites/all.png"
    )
    assert shared.describe("../img/b@2x.png?_sprite", "src/css/main.css").sprite_target == (
        "out/sprites/all@2x.png"
    )


def test_dpr_and_legacy_flag(make_files):
    _, _, extractor = _extractor(make_files(IMAGES), fix_ie6_png=True)

    hi = extractor.describe("../img/b@2x.png?_ie6=0", "src/css/main.css")
    plain = extractor.describe("../img/c.png", "src/css/main.css")

    assert hi.dpr == 2
    assert hi.pack_requested is False
    assert hi.legacy_fix_requested is False
    assert plain.legacy_fix_requested is True


def test_parse_flag_values():
    assert parse_flag("1")
    assert parse_flag("")
    assert parse_flag("true")
    assert not parse_flag("0")
    assert not parse_flag("False")


def test_missing_image_reports_resolution_error(make_files, caplog):
    files = dict(IMAGES)
    files["src/css/main.css"] = ".x { background: url(../img/missing.png?_sprite); }"
    context, registry, extractor = _extractor(make_files(files))

    caplog.set_level("ERROR")
    found = extractor.extract(context.files.find("src/css/main.css"))

    assert found == []
    assert len(registry) == 0
    errors = context.report.errors_of(ResolutionError)
    assert len(errors) == 1
    assert "src/img/missing.png" in caplog.text


def test_non_local_urls_are_ignored_silently(make_files):
    files = dict(IMAGES)
    files["src/css/main.css"] = (
        ".x { background: url(http://cdn.example.com/a.png?_sprite); }\n"
        ".y { background: url(data:image/png;base64,AAAA); }\n"
        ".z { background: url(//cdn.example.com/b.png); }\n"
    )
    context, registry, extractor = _extractor(make_files(files))

    assert extractor.extract(context.files.find("src/css/main.css")) == []
    assert context.report.errors == []


def test_decorative_references_are_not_registered(make_files):
    files = dict(IMAGES)
    files["src/css/main.css"] = (
        ".x { background: url(../img/a.png); }\n"
        ".y { background: url('../img/c.png?_sprite'); }\n"
    )
    context, registry, extractor = _extractor(make_files(files))

    found = extractor.extract(context.files.find("src/css/main.css"))

    assert [img.path for img in found] == ["src/img/c.png"]
    assert registry.get("src/img/a.png") is None


def test_conflict_within_stylesheet_keeps_first_directive(make_files):
    files = dict(IMAGES)
    files["src/css/main.css"] = (
        ".x { background: url(../img/a.png?_sprite=one); }\n"
        ".y { background: url(../img/a.png?_sprite=two); }\n"
        ".z { background: url(../img/a.png?_sprite=one); }\n"
    )
    context, registry, extractor = _extractor(make_files(files))

    found = extractor.extract(context.files.find("src/css/main.css"))

    assert len(found) == 1
    assert registry.get("src/img/a.png").sprite_target == "src/sprite/one.png"
    conflicts = context.report.errors_of(ConflictError)
    assert len(conflicts) == 1
    assert "different sprite information" in str(conflicts[0])


def test_extract_reads_entry_text():
    entry = FileEntry(path="main.css", data=b".a{background:url(a.png?_sprite)}")
    context = BuildContext(FileSet([entry, FileEntry(path="a.png", data=b"")]))
    extractor = UrlExtractor(context, ImageRegistry(context))

    found = extractor.extract(entry)

    assert [(img.path, img.sprite_target) for img in found] == [("a.png", "main.png")]
