"""File metadata detection and line reading.

Detects, from a bounded sample of the file:
- text encoding (BOM, then strict UTF-8, then charset-normalizer, then latin-1)
- whether a byte-order mark is present
- the newline sequence (first terminator found in the header sample)
- whether the file ends with a newline (last bytes only)

Metadata is an immutable snapshot taken before an edit begins. The only
permitted change is the ASCII to UTF-8 upgrade, which produces a new
snapshot before any line is written.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Literal

import charset_normalizer
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import EditValidationError, EncodingUpgradeWarning

logger = logging.getLogger(__name__)

Newline = Literal["\n", "\r\n", "\r"]

BOM_CHAR = "\ufeff"

# Longest BOMs first: the UTF-32-LE BOM starts with the UTF-16-LE one.
_BOMS: list[tuple[bytes, str]] = [
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
]

# Friendly encoding names accepted from callers -> (codec, write BOM)
_ENCODING_ALIASES: dict[str, tuple[str, bool]] = {
    "utf8": ("utf-8", False),
    "utf-8": ("utf-8", False),
    "utf8nobom": ("utf-8", False),
    "utf8-nobom": ("utf-8", False),
    "utf8bom": ("utf-8", True),
    "utf8-bom": ("utf-8", True),
    "utf-8-bom": ("utf-8", True),
    "utf-8-sig": ("utf-8", True),
    "unicode": ("utf-16-le", True),
    "utf16": ("utf-16-le", True),
    "utf-16": ("utf-16-le", True),
    "utf16le": ("utf-16-le", True),
    "utf-16le": ("utf-16-le", True),
    "utf16be": ("utf-16-be", True),
    "utf-16be": ("utf-16-be", True),
    "bigendianunicode": ("utf-16-be", True),
    "utf32": ("utf-32-le", True),
    "utf-32": ("utf-32-le", True),
    "ascii": ("ascii", False),
    "us-ascii": ("ascii", False),
    "latin1": ("latin-1", False),
    "iso-8859-1": ("latin-1", False),
    "sjis": ("shift_jis", False),
    "shift-jis": ("shift_jis", False),
    "shiftjis": ("shift_jis", False),
    "eucjp": ("euc_jp", False),
    "euc-jp": ("euc_jp", False),
    "gbk": ("gbk", False),
    "gb2312": ("gb2312", False),
    "big5": ("big5", False),
    "windows-1252": ("cp1252", False),
    "cp1252": ("cp1252", False),
}

_TAIL_BYTES = 8  # enough for one UTF-32 code unit pair


class FileMetadata(BaseModel):
    """Encoding and line-ending conventions of one file."""

    model_config = ConfigDict(frozen=True)

    encoding: str = Field(default="utf-8", description="Python codec name, without BOM handling")
    has_bom: bool = Field(default=False, description="Write a byte-order mark before line 1")
    newline: Newline = Field(default="\n", description="Line separator sequence")
    has_trailing_newline: bool = Field(
        default=False, description="Whether the last line is followed by a newline"
    )

    @classmethod
    def for_new_file(
        cls,
        *,
        encoding: str | None = None,
        newline: Newline = "\n",
        trailing_newline: bool = True,
    ) -> FileMetadata:
        """Metadata for a file the editor is about to create."""
        codec, has_bom = resolve_encoding(encoding) if encoding else ("utf-8", False)
        return cls(
            encoding=codec,
            has_bom=has_bom,
            newline=newline,
            has_trailing_newline=trailing_newline,
        )


# =============================================================================
# Encoding names
# =============================================================================


def resolve_encoding(name: str) -> tuple[str, bool]:
    """Map a caller-supplied encoding name to ``(codec, has_bom)``.

    Raises:
        EditValidationError: If the name is not a known encoding
    """
    key = name.strip().lower()
    if key in _ENCODING_ALIASES:
        return _ENCODING_ALIASES[key]
    try:
        codec = codecs.lookup(key).name
    except LookupError as e:
        raise EditValidationError(f"Unknown encoding: {name!r}") from e
    return codec, False


def _same_codec(a: str, b: str) -> bool:
    return codecs.lookup(a).name == codecs.lookup(b).name


# =============================================================================
# Detection
# =============================================================================


def _detect_newline(text: str, default: Newline) -> Newline:
    for index, char in enumerate(text):
        if char == "\n":
            return "\n"
        if char == "\r":
            return "\r\n" if text[index + 1 : index + 2] == "\n" else "\r"
    return default


def _ends_with_newline(tail: bytes, encoding: str) -> bool:
    return any(tail.endswith(char.encode(encoding)) for char in ("\n", "\r"))


def _detect_encoding(head: bytes, whole_file: bool) -> str:
    try:
        codecs.getincrementaldecoder("utf-8")("strict").decode(head, final=whole_file)
    except UnicodeDecodeError:
        pass
    else:
        return "ascii" if whole_file and head.isascii() else "utf-8"

    match = charset_normalizer.from_bytes(head).best()
    if match is not None:
        logger.debug(f"charset-normalizer detected {match.encoding}")
        return codecs.lookup(match.encoding).name

    logger.debug("Encoding detection failed, falling back to latin-1")
    return "latin-1"


def detect_metadata(
    path: str | Path,
    encoding: str | None = None,
    *,
    sample_bytes: int = 65536,
    default_newline: Newline = "\n",
) -> FileMetadata:
    """Sample a file and describe its encoding and newline conventions.

    Reads at most ``sample_bytes`` from the start of the file and a few bytes
    from the end; never the whole file.

    Args:
        path: Existing file to inspect
        encoding: Explicit encoding name overriding detection (aliases allowed)
        sample_bytes: Header sample size
        default_newline: Newline used when the sample holds no line break

    Raises:
        EditValidationError: If ``encoding`` is not a known encoding
        OSError: If the file cannot be read
    """
    explicit = resolve_encoding(encoding) if encoding else None
    path = Path(path)

    with open(path, "rb") as f:
        head = f.read(sample_bytes)
        size = f.seek(0, 2)
        f.seek(max(0, size - _TAIL_BYTES))
        tail = f.read()

    if size == 0:
        codec, has_bom = explicit or ("utf-8", False)
        return FileMetadata(
            encoding=codec, has_bom=has_bom, newline=default_newline, has_trailing_newline=False
        )

    bom_codec: str | None = None
    bom_length = 0
    for bom, codec in _BOMS:
        if head.startswith(bom):
            bom_codec, bom_length = codec, len(bom)
            break

    if explicit is not None:
        codec, has_bom = explicit
        has_bom = has_bom or (bom_codec is not None and _same_codec(codec, bom_codec))
    elif bom_codec is not None:
        codec, has_bom = bom_codec, True
    else:
        codec, has_bom = _detect_encoding(head, whole_file=size <= sample_bytes), False

    body = head[bom_length:] if has_bom else head
    sample_text = codecs.getincrementaldecoder(codec)("replace").decode(body, final=False)
    metadata = FileMetadata(
        encoding=codec,
        has_bom=has_bom,
        newline=_detect_newline(sample_text, default_newline),
        has_trailing_newline=_ends_with_newline(tail, codec),
    )
    logger.debug(f"Detected metadata for {path}: {metadata}")
    return metadata


def upgrade_encoding_for_content(
    metadata: FileMetadata, content: Sequence[str]
) -> tuple[FileMetadata, EncodingUpgradeWarning | None]:
    """Switch an ASCII file to UTF-8 when new content needs it.

    Only applies to detected (not caller-specified) ASCII encodings and must
    be decided before the edit pass begins.
    """
    if metadata.encoding != "ascii" or all(line.isascii() for line in content):
        return metadata, None
    upgraded = metadata.model_copy(update={"encoding": "utf-8"})
    return upgraded, EncodingUpgradeWarning(
        "Content contains non-ASCII characters. Upgrading encoding to UTF-8."
    )


# =============================================================================
# Reading
# =============================================================================


def read_lines(path: str | Path, metadata: FileMetadata) -> Iterator[str]:
    """Lazily yield the file's lines without their terminators.

    ``\\n``, ``\\r\\n`` and a lone ``\\r`` are all treated as line ends. A
    leading BOM is dropped when the metadata says the file has one.
    """
    with open(path, encoding=metadata.encoding, newline="") as f:
        first = True
        for line in f:
            if first:
                first = False
                if metadata.has_bom and line.startswith(BOM_CHAR):
                    line = line[1:]
            if line.endswith("\r\n"):
                yield line[:-2]
            elif line.endswith(("\n", "\r")):
                yield line[:-1]
            else:
                yield line
