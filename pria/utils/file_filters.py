"""File filtering utilities for determining which files to review."""

import re
from functools import lru_cache
from re import Pattern

# Extensions of files that are never sent to the model
BINARY_EXTENSIONS = {
    # Images
    "png",
    "jpg",
    "jpeg",
    "gif",
    "bmp",
    "ico",
    "webp",
    "tif",
    "tiff",
    "psd",
    # Documents
    "pdf",
    "doc",
    "docx",
    "xls",
    "xlsx",
    "ppt",
    "pptx",
    # Archives
    "zip",
    "tar",
    "gz",
    "tgz",
    "bz2",
    "xz",
    "rar",
    "7z",
    "jar",
    "war",
    "nupkg",
    # Executables and libraries
    "exe",
    "dll",
    "so",
    "dylib",
    "lib",
    "a",
    "o",
    "obj",
    "pdb",
    "bin",
    "class",
    "pyc",
    "wasm",
    # Media
    "mp3",
    "mp4",
    "avi",
    "mov",
    "wav",
    "flac",
    "ogg",
    # Fonts
    "ttf",
    "otf",
    "woff",
    "woff2",
    "eot",
    # Databases
    "db",
    "sqlite",
    "sqlite3",
    "mdf",
    "ldf",
}


def filter_files_for_review(
    files: list[str],
    file_extensions: str | None = None,
    file_extension_excludes: str | None = None,
    files_to_include: str | None = None,
    files_to_exclude: str | None = None,
) -> list[str]:
    """Select the files of a pull request that should be reviewed.

    Binary files are always dropped. Inclusions are applied before
    exclusions, so a file matching both is excluded.

    Args:
        files: Paths of the changed files
        file_extensions: Comma separated extensions to include (e.g. ".py, .ts")
        file_extension_excludes: Comma separated extensions to exclude
        files_to_include: Comma separated glob patterns to include
        files_to_exclude: Comma separated glob patterns to exclude

    Returns:
        Files to review, in their original order
    """
    files_to_review = [f for f in files if not is_binary_file(f)]

    if file_extensions or files_to_include:
        extensions_to_include = parse_input_list(file_extensions)
        include_globs = parse_input_list(files_to_include)
        files_to_review = [
            f
            for f in files_to_review
            if get_file_extension(f) in extensions_to_include
            or matches_globs(f, include_globs)
        ]

    if file_extension_excludes or files_to_exclude:
        extensions_to_exclude = parse_input_list(file_extension_excludes)
        exclude_globs = parse_input_list(files_to_exclude)
        files_to_review = [
            f
            for f in files_to_review
            if get_file_extension(f) not in extensions_to_exclude
            and not matches_globs(f, exclude_globs)
        ]

    return files_to_review


def is_binary_file(file_path: str) -> bool:
    """Check if a file is binary based on its extension."""
    _, dot, extension = file_path.rpartition(".")
    return bool(dot) and extension.lower() in BINARY_EXTENSIONS


def get_file_extension(file_path: str) -> str:
    """Return the extension including the dot, or the whole name if it has none."""
    index = file_path.rfind(".")
    return file_path[index:] if index >= 0 else file_path


def parse_input_list(value: str | None) -> list[str]:
    """Split a comma separated task input, ignoring surrounding whitespace."""
    if not value:
        return []
    return [item for item in re.split(r"\s*,\s*", value.strip()) if item]


def matches_globs(file_path: str, patterns: list[str]) -> bool:
    """Check a path against glob patterns, case-insensitively.

    ``*`` does not cross directories, ``**/`` matches any number of
    directories and a leading ``!`` negates a pattern. When only negated
    patterns are given, any path they do not match is a match.
    """
    positives = [p for p in patterns if not p.startswith("!")]
    negatives = [p[1:] for p in patterns if p.startswith("!")]

    if positives:
        matched = any(_compile_glob(p).match(file_path) for p in positives)
    else:
        matched = bool(negatives)

    return matched and not any(_compile_glob(p).match(file_path) for p in negatives)


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> Pattern[str]:
    """Translate a glob pattern into a compiled regular expression."""
    parts = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1

    return re.compile("".join(parts) + r"\Z", re.IGNORECASE)
