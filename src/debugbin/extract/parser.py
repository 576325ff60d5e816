"""Find the compiled test binary in build tool output.

Two output styles are understood:

json
    One JSON object per line, as printed by
    ``cargo test --no-run --message-format=json``. Artifact records
    whose ``profile.test`` is true list the produced files in
    ``filenames``.

text
    Human-readable log lines such as::

        Executable unittests src/main.rs (target/debug/deps/app-3f2a)

    The path is the last word of the line, inside parentheses.
"""

from collections.abc import Iterator
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from debugbin.core.errors import ParseError

Format = Literal["auto", "json", "text"]
Selection = Literal["first", "last"]

DEFAULT_MARKER = "Executable"


class Profile(BaseModel):
    """Build profile of an artifact; only the test flag matters."""

    test: bool = False


class ArtifactRecord(BaseModel):
    """One line of structured build output.

    Unknown fields are ignored, so every message the build tool emits
    (compiler messages, build-finished, ...) parses; only artifacts
    carry a profile and filenames.
    """

    reason: str | None = None
    profile: Profile | None = None
    filenames: list[str] = Field(default_factory=list)
    executable: str | None = None

    @property
    def is_test_artifact(self) -> bool:
        return self.profile is not None and self.profile.test


def detect_format(output: str) -> Literal["json", "text"]:
    """Guess the output style from the first non-blank line."""
    for line in output.splitlines():
        stripped = line.strip()
        if stripped:
            return "json" if stripped.startswith("{") else "text"
    return "text"


def parse_records(output: str) -> Iterator[ArtifactRecord]:
    """Parse line-delimited JSON records, skipping blank lines.

    Raises:
        ParseError: If a non-blank line is not a JSON object
    """
    for line_no, line in enumerate(output.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            yield ArtifactRecord.model_validate_json(stripped)
        except ValidationError as e:
            reason = e.errors()[0]["msg"] if e.errors() else str(e)
            raise ParseError(line_no, stripped, reason) from e


def normalize_token(token: str) -> str:
    """Trim a path token and strip one pair of enclosing parentheses
    and then one pair of enclosing quotes.

    >>> normalize_token(' ("/a/b/c") ')
    '/a/b/c'
    """
    token = token.strip()
    if len(token) >= 2 and token[0] == "(" and token[-1] == ")":
        token = token[1:-1].strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        token = token[1:-1]
    return token.strip()


def record_candidates(output: str) -> list[str]:
    """First filename of every test artifact record, in output order."""
    return [
        record.filenames[0].strip()
        for record in parse_records(output)
        if record.is_test_artifact
        and record.filenames
        and record.filenames[0].strip()
    ]


def text_candidates(output: str, marker: str = DEFAULT_MARKER) -> list[str]:
    """Normalized last word of every line containing marker."""
    candidates = []
    for line in output.splitlines():
        if marker not in line:
            continue
        words = line.split()
        if not words:
            continue
        path = normalize_token(words[-1])
        if path:
            candidates.append(path)
    return candidates


def extract_binary_path(
    output: str,
    format: Format = "auto",
    marker: str = DEFAULT_MARKER,
    selection: Selection = "first",
) -> str | None:
    """Return the test binary path announced in build output.

    Args:
        output: Captured build output
        format: 'json', 'text' or 'auto' (see detect_format)
        marker: Substring identifying binary lines in text output
        selection: Which candidate wins when several match; the build
            tool does not promise any order

    Returns:
        The trimmed path, or None if nothing matched

    Raises:
        ParseError: In json mode, if a line is not a JSON object
    """
    if format == "auto":
        format = detect_format(output)

    if format == "json":
        candidates = record_candidates(output)
    else:
        candidates = text_candidates(output, marker)

    if not candidates:
        return None
    return candidates[0] if selection == "first" else candidates[-1]
