"""Functions that compute the keywords of a file for a manifest.

Each keyword function takes ``(path, info, stream)``. ``info`` is either the
result of an ``lstat`` call (or any object with the same ``st_*`` attributes)
or a :class:`tarfile.TarInfo` describing a member of a tar archive. ``stream``
is a binary stream of the file's contents, positioned at its start. It is only
read by the functions that hash contents. Each function returns a list of
``keyword=value`` pairs, which is empty when the keyword does not apply.
"""

from __future__ import annotations

import base64
import hashlib
import os
import stat
import sys
import tarfile
from decimal import Decimal
from typing import Any, BinaryIO, Callable

from Crypto.Hash import RIPEMD160, SHA512

from mtree.cksum import cksum
from mtree.keywords import KeyVal, Keyword, keyword_synonym

try:
    import grp
    import pwd
except ImportError:  # pragma: no cover - platforms without user databases
    grp = None
    pwd = None

__all__ = [
    "KEYWORD_FUNCS",
    "mode_keyword",
    "size_keyword",
    "cksum_keyword",
    "hasher_keyword",
    "tar_time_keyword",
    "time_keyword",
    "link_keyword",
    "type_keyword",
    "flags_keyword",
    "uname_keyword",
    "gname_keyword",
    "uid_keyword",
    "gid_keyword",
    "nlink_keyword",
    "xattr_keyword",
]

KeywordFunc = Callable[[str, Any, "BinaryIO | None"], list]

_CHUNK = 64 * 1024
_NANO = 10**9

if sys.platform.startswith("linux"):
    _PLATFORM = "linux"
elif sys.platform.startswith(("darwin", "freebsd", "netbsd", "openbsd")):
    _PLATFORM = "bsd"
else:
    _PLATFORM = "other"

_GLOB_BYTES = frozenset(b"*?[#")


def _vis(text: str) -> str:
    """Encode a name with octal escapes for white space, glob and unprintable bytes."""
    out = []
    for byte in text.encode("utf-8", "surrogateescape"):
        if byte == 0x5C:
            out.append("\\\\")
        elif 0x21 <= byte <= 0x7E and byte not in _GLOB_BYTES:
            out.append(chr(byte))
        else:
            out.append(f"\\{byte:03o}")
    return "".join(out)


def _is_tar(info: Any) -> bool:
    return isinstance(info, tarfile.TarInfo)


def _file_type(info: Any) -> str | None:
    if _is_tar(info):
        if info.isdir():
            return "dir"
        if info.issym():
            return "link"
        if info.isfifo():
            return "fifo"
        if info.ischr():
            return "char"
        if info.isblk():
            return "block"
        return "file"
    mode = info.st_mode
    if stat.S_ISDIR(mode):
        return "dir"
    if stat.S_ISREG(mode):
        return "file"
    if stat.S_ISSOCK(mode):
        return "socket"
    if stat.S_ISLNK(mode):
        return "link"
    if stat.S_ISFIFO(mode):
        return "fifo"
    if stat.S_ISCHR(mode):
        return "char"
    if stat.S_ISBLK(mode):
        return "block"
    return None


def _is_regular(info: Any) -> bool:
    return _file_type(info) == "file"


def _to_ns(seconds: float | int) -> int:
    if isinstance(seconds, int):
        return seconds * _NANO
    return int(Decimal(repr(seconds)) * _NANO)


def _mtime_ns(info: Any) -> int:
    if _is_tar(info):
        return _to_ns(info.mtime)
    ns = getattr(info, "st_mtime_ns", None)
    if ns is None:
        return _to_ns(info.st_mtime)
    return int(ns)


def mode_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Permissions, including setuid, setgid and sticky bits, in octal."""
    mode = info.mode if _is_tar(info) else info.st_mode
    permissions = mode & 0o7777
    text = f"0{permissions:o}" if permissions else "0"
    return [KeyVal(f"mode={text}")]


def size_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Size in bytes; for a symbolic link in a tar archive, the target's length."""
    if _is_tar(info):
        if info.issym():
            return [KeyVal(f"size={len(info.linkname)}")]
        return [KeyVal(f"size={info.size}")]
    return [KeyVal(f"size={info.st_size}")]


def cksum_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """POSIX ``cksum`` CRC of a regular file's contents."""
    if not _is_regular(info):
        return []
    total, _ = cksum(stream)
    return [KeyVal(f"cksum={total}")]


def hasher_keyword(name: str, factory: Callable[[], Any]) -> KeywordFunc:
    """Build a keyword function emitting ``name`` with a hex digest of the contents."""
    keyword = keyword_synonym(name)

    def digest_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
        if not _is_regular(info):
            return []
        hasher = factory()
        while chunk := stream.read(_CHUNK):
            hasher.update(chunk)
        return [KeyVal(f"{keyword}={hasher.hexdigest()}")]

    return digest_keyword


def tar_time_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Modification time at whole-second precision, as tar archives keep it."""
    seconds = _mtime_ns(info) // _NANO
    return [KeyVal(f"tar_time={seconds}.000000000")]


def time_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Modification time with nanoseconds."""
    seconds, nanos = divmod(_mtime_ns(info), _NANO)
    return [KeyVal(f"time={seconds}.{nanos:09d}")]


def link_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Encoded target of a symbolic link (or of a tar link member)."""
    if _is_tar(info):
        if info.linkname:
            return [KeyVal(f"link={_vis(info.linkname)}")]
        return []
    if stat.S_ISLNK(info.st_mode):
        try:
            target = os.readlink(path)
        except OSError:
            return []
        return [KeyVal(f"link={_vis(target)}")]
    return []


def type_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """The kind of file: dir, file, socket, link, fifo, char or block."""
    kind = _file_type(info)
    if kind is None:
        return []
    return [KeyVal(f"type={kind}")]


def flags_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """File flags are not gathered; the keyword is accepted but yields nothing."""
    return []


def _lookup_failed(exc: Exception) -> list[KeyVal]:
    if _PLATFORM == "bsd":
        raise exc
    return []


def uname_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Symbolic name of the file's owner."""
    if _is_tar(info):
        return [KeyVal(f"uname={info.uname}")]
    if _PLATFORM == "other" or pwd is None:
        return []
    try:
        name = pwd.getpwuid(info.st_uid).pw_name
    except KeyError as exc:
        return _lookup_failed(exc)
    return [KeyVal(f"uname={name}")]


def gname_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Symbolic name of the file's group."""
    if _is_tar(info):
        return [KeyVal(f"gname={info.gname}")]
    if _PLATFORM == "other" or grp is None:
        return []
    try:
        name = grp.getgrgid(info.st_gid).gr_name
    except KeyError as exc:
        return _lookup_failed(exc)
    return [KeyVal(f"gname={name}")]


def uid_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Numeric owner id."""
    if _is_tar(info):
        return [KeyVal(f"uid={info.uid}")]
    if _PLATFORM == "other":
        return []
    return [KeyVal(f"uid={info.st_uid}")]


def gid_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Numeric group id."""
    if _is_tar(info):
        return [KeyVal(f"gid={info.gid}")]
    if _PLATFORM == "other":
        return []
    gid = getattr(info, "st_gid", None)
    if gid is None:
        return []
    return [KeyVal(f"gid={gid}")]


def nlink_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Number of hard links; unknown for tar members."""
    if _is_tar(info) or _PLATFORM == "other":
        return []
    nlink = getattr(info, "st_nlink", None)
    if nlink is None:
        return []
    return [KeyVal(f"nlink={nlink}")]


def xattr_keyword(path: str, info: Any, stream: BinaryIO | None) -> list[KeyVal]:
    """Extended attributes as ``xattr.<name>=<base64 value>`` pairs (Linux only)."""
    if _PLATFORM != "linux":
        return []
    if _is_tar(info):
        return [
            KeyVal(
                f"xattr.{_vis(key)}="
                + base64.b64encode(
                    value.encode("utf-8", "surrogateescape")
                ).decode("ascii")
            )
            for key, value in info.pax_headers.items()
        ]
    if _file_type(info) not in ("file", "dir"):
        return []
    try:
        names = os.listxattr(path)
        pairs = [(name, os.getxattr(path, name)) for name in names]
    except (OSError, AttributeError):
        return []
    return [
        KeyVal(f"xattr.{_vis(name)}={base64.b64encode(data).decode('ascii')}")
        for name, data in pairs
    ]


def _ripemd160() -> Any:
    return RIPEMD160.new()


def _sha512_256() -> Any:
    return SHA512.new(truncate="256")


KEYWORD_FUNCS: dict[Keyword, KeywordFunc] = {
    Keyword("size"): size_keyword,
    Keyword("type"): type_keyword,
    Keyword("time"): time_keyword,
    Keyword("link"): link_keyword,
    Keyword("uid"): uid_keyword,
    Keyword("gid"): gid_keyword,
    Keyword("nlink"): nlink_keyword,
    Keyword("uname"): uname_keyword,
    Keyword("gname"): gname_keyword,
    Keyword("mode"): mode_keyword,
    Keyword("cksum"): cksum_keyword,
    Keyword("md5"): hasher_keyword("md5digest", hashlib.md5),
    Keyword("md5digest"): hasher_keyword("md5digest", hashlib.md5),
    Keyword("rmd160"): hasher_keyword("ripemd160digest", _ripemd160),
    Keyword("rmd160digest"): hasher_keyword("ripemd160digest", _ripemd160),
    Keyword("ripemd160digest"): hasher_keyword("ripemd160digest", _ripemd160),
    Keyword("sha1"): hasher_keyword("sha1digest", hashlib.sha1),
    Keyword("sha1digest"): hasher_keyword("sha1digest", hashlib.sha1),
    Keyword("sha256"): hasher_keyword("sha256digest", hashlib.sha256),
    Keyword("sha256digest"): hasher_keyword("sha256digest", hashlib.sha256),
    Keyword("sha384"): hasher_keyword("sha384digest", hashlib.sha384),
    Keyword("sha384digest"): hasher_keyword("sha384digest", hashlib.sha384),
    Keyword("sha512"): hasher_keyword("sha512digest", hashlib.sha512),
    Keyword("sha512digest"): hasher_keyword("sha512digest", hashlib.sha512),
    Keyword("sha512256"): hasher_keyword("sha512digest", _sha512_256),
    Keyword("sha512256digest"): hasher_keyword("sha512digest", _sha512_256),
    Keyword("flags"): flags_keyword,
    Keyword("tar_time"): tar_time_keyword,
    Keyword("xattr"): xattr_keyword,
    Keyword("xattrs"): xattr_keyword,
}