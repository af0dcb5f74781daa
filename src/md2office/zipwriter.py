"""Minimal store-only ZIP archive writer.

Office documents are plain ZIP containers, and both DOCX and ODT readers
accept uncompressed entries.  This module writes exactly the subset of the
format those readers need: one local file header per entry, a central
directory mirroring them, and a single end-of-central-directory record.

No compression, encryption, split archives or Zip64.  Offsets, sizes and the
entry count must fit the 32-bit (and 16-bit) header fields; anything larger
raises :class:`ZipSizeError`.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Iterable, Mapping, Union

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# CRC-32
# ---------------------------------------------------------------------------

_CRC_POLY = 0xEDB88320


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (c >> 1) ^ _CRC_POLY if c & 1 else c >> 1
        table.append(c)
    return tuple(table)


CRC_TABLE = _make_crc_table()


def crc32(data: bytes) -> int:
    """Return the standard (reflected, 0xEDB88320) CRC-32 of *data*."""
    crc = 0xFFFFFFFF
    for byte in data:
        crc = CRC_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


# ---------------------------------------------------------------------------
# Record layouts
# ---------------------------------------------------------------------------

LOCAL_HEADER_SIG = 0x04034B50
CENTRAL_HEADER_SIG = 0x02014B50
END_OF_CENTRAL_DIR_SIG = 0x06054B50

_LOCAL_HEADER = struct.Struct("<IHHHHHIIIHH")
_CENTRAL_HEADER = struct.Struct("<IHHHHHHIIIHHHHHII")
_END_RECORD = struct.Struct("<IHHHHIIH")

_VERSION = 20          # 2.0: minimum for plain stored files
_FLAG_UTF8 = 0x0800    # general purpose bit 11: names are UTF-8
_METHOD_STORED = 0
_DOS_TIME = 0
_DOS_DATE = (1 << 5) | 1  # 1980-01-01, the earliest DOS date

_MAX_U32 = 0xFFFFFFFF
_MAX_U16 = 0xFFFF


class ZipSizeError(ValueError):
    """Archive does not fit the 32-bit ZIP format (no Zip64 support)."""


@dataclass(frozen=True)
class ZipEntry:
    """One archive member as laid out in the output."""

    name: bytes
    data: bytes
    crc: int
    offset: int

    @property
    def flags(self) -> int:
        try:
            self.name.decode("ascii")
        except UnicodeDecodeError:
            return _FLAG_UTF8
        return 0


Entries = Union[Mapping[str, bytes], Iterable[tuple[str, bytes]]]


def build_zip(entries: Entries) -> bytes:
    """Assemble *entries* into a store-only ZIP archive.

    Args:
        entries: ``(name, data)`` pairs or a mapping of name to data.
            Entries are written in iteration order, so callers control
            which member comes first (ODT requires ``mimetype`` first).

    Returns:
        The complete archive as bytes.

    Raises:
        ZipSizeError: If an offset, size or the entry count overflows the
            non-Zip64 header fields.
    """
    items = entries.items() if isinstance(entries, Mapping) else entries

    parts: list[bytes] = []
    written: list[ZipEntry] = []
    offset = 0

    for name, data in items:
        data = bytes(data)
        entry = ZipEntry(
            name=name.encode("utf-8"),
            data=data,
            crc=crc32(data),
            offset=offset,
        )
        if len(data) > _MAX_U32 or offset > _MAX_U32:
            raise ZipSizeError(f"entry {name!r} exceeds the 4 GiB ZIP limit")
        header = _LOCAL_HEADER.pack(
            LOCAL_HEADER_SIG,
            _VERSION,
            entry.flags,
            _METHOD_STORED,
            _DOS_TIME,
            _DOS_DATE,
            entry.crc,
            len(data),
            len(data),
            len(entry.name),
            0,
        )
        parts.extend((header, entry.name, data))
        offset += len(header) + len(entry.name) + len(data)
        written.append(entry)
        logger.debug("zip: stored %s (%d bytes, crc=%08x)", name, len(data), entry.crc)

    if len(written) > _MAX_U16:
        raise ZipSizeError(f"{len(written)} entries exceed the 65535 entry limit")

    central_offset = offset
    for entry in written:
        record = _CENTRAL_HEADER.pack(
            CENTRAL_HEADER_SIG,
            _VERSION,
            _VERSION,
            entry.flags,
            _METHOD_STORED,
            _DOS_TIME,
            _DOS_DATE,
            entry.crc,
            len(entry.data),
            len(entry.data),
            len(entry.name),
            0,  # extra field length
            0,  # comment length
            0,  # disk number start
            0,  # internal attributes
            0,  # external attributes
            entry.offset,
        )
        parts.extend((record, entry.name))
        offset += len(record) + len(entry.name)

    central_size = offset - central_offset
    if offset > _MAX_U32:
        raise ZipSizeError("central directory lies beyond the 4 GiB ZIP limit")

    parts.append(_END_RECORD.pack(
        END_OF_CENTRAL_DIR_SIG,
        0,
        0,
        len(written),
        len(written),
        central_size,
        central_offset,
        0,
    ))
    return b"".join(parts)
