import pytest

from utils.ignore import compile_patterns, filter_ignored_files, is_file_ignored, normalize_path

FILES = [
    "src/app.ts",
    "src/app.test.ts",
    "src/utils/helpers.ts",
    "docs/guide.md",
    "README.md",
    "node_modules/lib/index.js",
    "dist/bundle.min.js",
    "package-lock.json",
]


def test_no_patterns_keeps_everything():
    assert filter_ignored_files(FILES, []) == FILES
    assert filter_ignored_files(FILES, None) == FILES


def test_extension_pattern_matches_at_any_depth():
    assert filter_ignored_files(FILES, ["*.md"]) == [f for f in FILES if not f.endswith(".md")]


def test_directory_name_ignores_its_contents():
    assert "node_modules/lib/index.js" not in filter_ignored_files(FILES, ["node_modules"])
    assert "node_modules/lib/index.js" not in filter_ignored_files(FILES, ["node_modules/"])
    assert "src/utils/helpers.ts" not in filter_ignored_files(FILES, ["src/utils"])


def test_double_star_matches_root_and_nested():
    kept = filter_ignored_files(["a.test.ts", "src/b.test.ts", "src/b.ts"], ["**/*.test.ts"])
    assert kept == ["src/b.ts"]


def test_basename_pattern():
    assert is_file_ignored("config/package-lock.json", ["package-lock.json"])
    assert not is_file_ignored("config/package.json", ["package-lock.json"])


def test_pattern_with_slash_is_anchored():
    assert is_file_ignored("config/a.txt", ["config/*.txt"])
    assert not is_file_ignored("other/config/a.txt", ["config/*.txt"])


def test_paths_are_normalized():
    assert normalize_path("./src/a.ts") == "src/a.ts"
    assert normalize_path("src\\a.ts") == "src/a.ts"
    assert is_file_ignored("./docs/guide.md", ["docs"])


def test_invalid_patterns_are_skipped():
    rules = compile_patterns(["", "   ", None, "*.md"])
    assert [rule.pattern for rule in rules] == ["*.md"]
    assert filter_ignored_files(["a.md", "b.ts"], ["", "*.md"]) == ["b.ts"]


def test_order_is_preserved():
    files = ["z.ts", "a.md", "m.ts", "b.ts"]
    assert filter_ignored_files(files, ["*.md"]) == ["z.ts", "m.ts", "b.ts"]


@pytest.mark.parametrize(
    "patterns",
    [
        ["*.md"],
        ["node_modules", "dist"],
        ["**/*.test.ts", "*.json"],
        ["src/utils/*"],
        ["*.min.js", "README.md", "docs/"],
    ],
)
def test_filter_agrees_with_is_file_ignored(patterns):
    kept = filter_ignored_files(FILES, patterns)
    for path in FILES:
        assert (path in kept) == (not is_file_ignored(path, patterns))
