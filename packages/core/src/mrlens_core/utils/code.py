BINARY_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".ogg",
    ".zip",
    ".tar",
    ".gz",
    ".rar",
    ".7z",
    ".exe",
    ".dll",
    ".so",
    ".dylib",
}

# Markers git emits in place of a textual patch.
_BINARY_DIFF_MARKERS = ("Binary files ", "GIT binary patch")


def is_binary_path(file_name: str) -> bool:
    return any(file_name.lower().endswith(ext) for ext in BINARY_EXTENSIONS)


def is_binary_diff(diff: str) -> bool:
    if "\x00" in diff:
        return True
    return any(line.startswith(_BINARY_DIFF_MARKERS) for line in diff.splitlines()[:10])


def is_binary_change(file_name: str, diff: str) -> bool:
    return is_binary_path(file_name) or is_binary_diff(diff)
