"""
RPM version parsing and ordering.

Versions have the form ``[epoch:]version[-release][.arch]``. Segments are
compared with the rpmvercmp rules: ``~`` sorts before anything, including
the end of the string, and ``^`` sorts after the end of the string but
before any other segment.
"""

from typing import NamedTuple, Tuple

KNOWN_ARCHES = frozenset(
    {
        "noarch",
        "src",
        "nosrc",
        "i386",
        "i486",
        "i586",
        "i686",
        "x86_64",
        "aarch64",
        "ppc64",
        "ppc64le",
        "s390x",
        "armv7hl",
    }
)


def _isalnum(c: str) -> bool:
    return c.isascii() and c.isalnum()


def _isdigit(c: str) -> bool:
    return "0" <= c <= "9"


def _isalpha(c: str) -> bool:
    return c.isascii() and c.isalpha()


def rpmvercmp(a: str, b: str) -> int:
    """Compare two version or release strings; returns -1, 0 or 1."""
    if a == b:
        return 0
    i = j = 0
    la, lb = len(a), len(b)
    while i < la or j < lb:
        while i < la and not _isalnum(a[i]) and a[i] not in "~^":
            i += 1
        while j < lb and not _isalnum(b[j]) and b[j] not in "~^":
            j += 1

        if (i < la and a[i] == "~") or (j < lb and b[j] == "~"):
            if i >= la or a[i] != "~":
                return 1
            if j >= lb or b[j] != "~":
                return -1
            i += 1
            j += 1
            continue

        if (i < la and a[i] == "^") or (j < lb and b[j] == "^"):
            if i >= la:
                return -1
            if j >= lb:
                return 1
            if a[i] != "^":
                return 1
            if b[j] != "^":
                return -1
            i += 1
            j += 1
            continue

        if i >= la or j >= lb:
            break

        is_num = _isdigit(a[i])
        same_kind = _isdigit if is_num else _isalpha
        p, q = i, j
        while p < la and same_kind(a[p]):
            p += 1
        while q < lb and same_kind(b[q]):
            q += 1
        seg_a, seg_b = a[i:p], b[j:q]

        # a numeric segment is newer than an alpha one
        if not seg_b:
            return 1 if is_num else -1

        if is_num:
            seg_a = seg_a.lstrip("0")
            seg_b = seg_b.lstrip("0")
            if len(seg_a) != len(seg_b):
                return 1 if len(seg_a) > len(seg_b) else -1
        if seg_a != seg_b:
            return 1 if seg_a > seg_b else -1
        i, j = p, q

    if i >= la and j >= lb:
        return 0
    return -1 if i >= la else 1


class Version(NamedTuple):
    epoch: int
    version: str
    release: str
    arch: str

    @classmethod
    def parse(cls, value: str) -> "Version":
        """Parse an EVR string, splitting off a trailing architecture when it is a known one."""
        value = value.strip()
        epoch = 0
        head, sep, rest = value.partition(":")
        if sep and head.isdigit():
            epoch = int(head)
            value = rest

        arch = ""
        stem, dot, suffix = value.rpartition(".")
        if dot and suffix in KNOWN_ARCHES:
            arch = suffix
            value = stem

        version, sep, release = value.rpartition("-")
        if not sep:
            version, release = value, ""
        return cls(epoch=epoch, version=version, release=release, arch=arch)

    def key(self) -> Tuple[int, str, str]:
        return self.epoch, self.version, self.release

    def __str__(self) -> str:
        out = f"{self.epoch}:{self.version}" if self.epoch else self.version
        if self.release:
            out = f"{out}-{self.release}"
        if self.arch:
            out = f"{out}.{self.arch}"
        return out


def compare(a: Version, b: Version) -> int:
    """Order two versions by epoch, version and then release. Architecture is ignored."""
    if a.epoch != b.epoch:
        return 1 if a.epoch > b.epoch else -1
    result = rpmvercmp(a.version, b.version)
    if result:
        return result
    if not a.release or not b.release:
        return 0
    return rpmvercmp(a.release, b.release)


def compare_strings(a: str, b: str) -> int:
    return compare(Version.parse(a), Version.parse(b))
