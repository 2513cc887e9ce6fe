"""Project directory name codec.

Claude Code stores each project's transcripts in a directory named after the
project's absolute path with separators replaced by dashes:

    /Users/name/Code/my-app  ->  -Users-name-Code-my-app

The mapping is lossy (a dash in a real directory name looks exactly like an
encoded separator), so decoding consults the filesystem.
"""

import glob
import logging
import os

logger = logging.getLogger(__name__)

# Tokens with more parts than this skip the segment-merge search
MAX_MERGE_PARTS = 48

# Decoded paths are stable once a project exists, so entries live for the
# whole process.
_decode_cache: dict[str, str] = {}


def encode_project_path(path: str) -> str:
    """Encode an absolute path as a flat directory-name token."""
    encoded = str(path).replace("/", "-")
    if os.sep != "/":
        encoded = encoded.replace(os.sep, "-")
    return encoded


def decode_project_path(encoded: str) -> str:
    """Decode a directory-name token back to the absolute path it came from.

    Tries, in order, the naive inverse, a segment-merge search and a
    prefix-then-glob lookup, accepting the first result that exists on disk.
    Falls back to the naive inverse, which may not exist.
    """
    cached = _decode_cache.get(encoded)
    if cached is not None:
        return cached

    naive = encoded.replace("-", "/")
    if os.path.exists(naive):
        decoded = naive
    else:
        root, parts = _split_token(encoded)
        decoded = (
            _merge_search(root, parts)
            or _prefix_glob_search(root, parts)
            or naive
        )
        if decoded == naive:
            logger.debug("Could not resolve %s on disk, using %s", encoded, naive)

    _decode_cache[encoded] = decoded
    return decoded


def clear_decode_cache() -> None:
    _decode_cache.clear()


def project_name(decoded_path: str) -> str:
    """Return the last path segment of a decoded project path."""
    parts = [p for p in decoded_path.replace(os.sep, "/").split("/") if p]
    return parts[-1] if parts else decoded_path


def _split_token(encoded: str) -> tuple[str, list[str]]:
    # The leading dash is the root separator
    if encoded.startswith("-"):
        return "/", encoded[1:].split("-")
    return "", encoded.split("-")


def _merge_search(root: str, parts: list[str]) -> str | None:
    """Rebuild a path by merging runs of parts back into dashed segment names.

    Depth-first over merge lengths, longest first. Failed (directory,
    remaining) states are remembered so each is explored once.
    """
    if not parts or len(parts) > MAX_MERGE_PARTS:
        return None

    failed: set[tuple[str, int]] = set()

    def walk(base: str, start: int) -> str | None:
        if start == len(parts):
            return base
        if (base, start) in failed:
            return None
        for end in range(len(parts), start, -1):
            segment = "-".join(parts[start:end])
            if not segment:
                continue
            candidate = os.path.join(base, segment)
            if not os.path.exists(candidate):
                continue
            found = walk(candidate, end)
            if found is not None:
                return found
        failed.add((base, start))
        return None

    return walk(root, 0)


def _prefix_glob_search(root: str, parts: list[str]) -> str | None:
    """Extend an existing prefix part by part, then glob for the remainder.

    The remaining parts are joined with wildcards; only a single matching
    directory is accepted.
    """
    prefix = root
    index = 0
    while index < len(parts):
        part = parts[index]
        if not part:
            break
        candidate = os.path.join(prefix, part)
        if not os.path.exists(candidate):
            break
        prefix = candidate
        index += 1

    if index == len(parts):
        return prefix if prefix and os.path.exists(prefix) else None

    pattern = "*".join(glob.escape(p) for p in parts[index:])
    matches = [
        m for m in glob.glob(os.path.join(glob.escape(prefix), pattern)) if os.path.isdir(m)
    ]
    if len(matches) == 1:
        return matches[0]
    return None
