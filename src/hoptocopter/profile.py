"""Parser for Go coverage profiles (`go test -coverprofile` output).

The first line is "mode: foo", where foo is usually "set", "count" or
"atomic". The rest of the file is in the format

    encoding/base64/base64.go:34.44,37.40 3 1

where the fields are: name.go:line.column,line.column numberOfStatements count
"""
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, TextIO

MODE_PREFIX = "mode: "
LINE_RE = re.compile(
    r"^(.+):([0-9]+)\.([0-9]+),([0-9]+)\.([0-9]+) ([0-9]+) ([0-9]+)$"
)


class ProfileParseError(ValueError):
    """Raised when profile text does not follow the coverage profile format."""

    def __init__(self, message: str, lineno: int | None = None, line: str | None = None):
        self.lineno = lineno
        self.line = line
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)


@dataclass(frozen=True)
class CoverageBlock:
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    num_stmt: int
    count: int

    @property
    def start(self) -> tuple[int, int]:
        return (self.start_line, self.start_col)

    @property
    def end(self) -> tuple[int, int]:
        return (self.end_line, self.end_col)

    @property
    def covered(self) -> bool:
        return self.count > 0


@dataclass(frozen=True)
class Profile:
    """All coverage blocks recorded for one source file."""

    file_name: str
    mode: str
    blocks: tuple[CoverageBlock, ...] = field(default_factory=tuple)

    @property
    def num_statements(self) -> int:
        return sum(b.num_stmt for b in self.blocks)

    @property
    def covered_statements(self) -> int:
        return sum(b.num_stmt for b in self.blocks if b.covered)


# --- PARSING ---


def _parse_mode(line: str) -> str:
    if not line.startswith(MODE_PREFIX) or line == MODE_PREFIX:
        raise ProfileParseError(f"bad mode line: {line!r}", lineno=1, line=line)
    return line[len(MODE_PREFIX):]


def _parse_block(lineno: int, line: str) -> tuple[str, CoverageBlock]:
    m = LINE_RE.match(line)
    if m is None:
        raise ProfileParseError(
            f"{line!r} doesn't match expected format: {LINE_RE.pattern}",
            lineno=lineno,
            line=line,
        )
    block = CoverageBlock(*(int(g) for g in m.groups()[1:]))
    if block.start > block.end:
        raise ProfileParseError(
            f"block starts at {block.start} after it ends at {block.end}",
            lineno=lineno,
            line=line,
        )
    return m.group(1), block


def parse_profile_text(text: str | bytes) -> list[Profile]:
    """Parse a complete coverage profile and return one Profile per source file.

    Profiles come back sorted by file name, each with its blocks sorted by
    start position. Any malformed line aborts the whole parse.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProfileParseError(f"profile is not valid UTF-8: {e}") from e

    lines = [l[:-1] if l.endswith("\r") else l for l in text.split("\n")]
    mode = _parse_mode(lines[0])

    files: dict[str, list[CoverageBlock]] = {}
    for lineno, line in enumerate(lines[1:], start=2):
        if not line:
            continue
        file_name, block = _parse_block(lineno, line)
        files.setdefault(file_name, []).append(block)

    # sorted() is stable, so blocks sharing a start position keep input order
    return [
        Profile(
            file_name=name,
            mode=mode,
            blocks=tuple(sorted(blocks, key=lambda b: b.start)),
        )
        for name, blocks in sorted(files.items())
    ]


def parse_profile_stream(stream: BinaryIO | TextIO) -> list[Profile]:
    return parse_profile_text(stream.read())


def parse_profiles(path: str | Path) -> list[Profile]:
    """Parse the profile file at `path`. I/O errors propagate as OSError."""
    with open(path, "rb") as f:
        return parse_profile_stream(f)
