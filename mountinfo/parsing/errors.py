# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Failures raised while parsing a mount table.

Every failure of a single line is a `LineError`. The concrete subclass names
the field that failed; the subclasses form a closed set, so callers can match
on the type instead of on the rendered message:

>>> try:
...     raise InvalidDevId("98")
... except LineError as e:
...     print(e)
Line parsing: Invalid field #3 (dev id): 98
"""

import errno
from typing import ClassVar, Hashable, Optional, Tuple


class LineError(ValueError):
    """Base type for a failure to parse one line of a mount table."""

    field_number: ClassVar[Optional[int]] = None
    field_name: ClassVar[str] = ""

    def describe(self) -> str:
        raise NotImplementedError

    def _key(self) -> Tuple[Hashable, ...]:
        return self.args

    def __str__(self) -> str:
        return f"Line parsing: {self.describe()}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(repr(a) for a in self.args)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LineError):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self), self._key()))


class MissingField(LineError):
    """The line ended before the field was reached."""

    def __init__(self) -> None:
        super().__init__()

    def describe(self) -> str:
        return f"Missing field #{self.field_number} ({self.field_name})"


class InvalidField(LineError):
    """The field is present but its raw token is malformed."""

    _verb: ClassVar[str] = "Invalid field"

    def __init__(self, raw: str) -> None:
        super().__init__(raw)
        self.raw = raw

    def describe(self) -> str:
        return f"{self._verb} #{self.field_number} ({self.field_name}): {self.raw}"


# /proc/<pid>/mountinfo
# 36 35 98:0 /mnt1 /mnt2 rw,noatime master:1 - ext3 /dev/root rw,errors=continue
# (1)(2)(3)   (4)   (5)      (6)      (7)   (8) (9)   (10)         (11)


class MissingMountId(MissingField):
    field_number = 1
    field_name = "mount id"


class MissingParentId(MissingField):
    field_number = 2
    field_name = "parent id"


class MissingDevId(MissingField):
    field_number = 3
    field_name = "dev id"


class InvalidDevId(InvalidField):
    field_number = 3
    field_name = "dev id"


class MissingRoot(MissingField):
    field_number = 4
    field_name = "root"


class MissingMountPoint(MissingField):
    field_number = 5
    field_name = "mount point"


class MissingMountOpts(MissingField):
    field_number = 6
    field_name = "mount opts"


class InvalidTag(InvalidField):
    field_number = 7
    field_name = "tags"


class MissingSeparator(MissingField):
    field_number = 8
    field_name = "separator"


class MissingFileSystem(MissingField):
    field_number = 9
    field_name = "filesystem"


class MissingMountSource(MissingField):
    field_number = 10
    field_name = "mount source"


class MissingSuperOpts(MissingField):
    field_number = 11
    field_name = "super opts"


# /proc/<pid>/mounts
# /dev/sda2 / ext4 rw,relatime 0 0
# (1)       (2)(3) (4)         (5)(6)


class MissingSpec(MissingField):
    field_number = 1
    field_name = "spec"


class MissingFile(MissingField):
    field_number = 2
    field_name = "file"


class InvalidFilePath(InvalidField):
    field_number = 2
    field_name = "file"

    def describe(self) -> str:
        return f"Bad field #2 (file) value (not absolute path): {self.raw}"


class MissingVfstype(MissingField):
    field_number = 3
    field_name = "vfstype"


class MissingMntops(MissingField):
    field_number = 4
    field_name = "mntops"


class MissingFreq(MissingField):
    field_number = 5
    field_name = "freq"


class InvalidFreq(InvalidField):
    _verb = "Bad field"
    field_number = 5
    field_name = "freq"


class MissingPassno(MissingField):
    field_number = 6
    field_name = "passno"


class InvalidPassno(InvalidField):
    _verb = "Bad field"
    field_number = 6
    field_name = "passno"


class InvalidMountOption(LineError):
    """An individual comma-separated mount option could not be parsed."""

    def __init__(self, raw: str) -> None:
        super().__init__(raw)
        self.raw = raw

    def describe(self) -> str:
        return f"Invalid mount option: {self.raw!r}"


class IoError(LineError):
    """Reading the line from the underlying source failed.

    `kind` is the symbolic errno name (e.g. ``EIO``) or, when the failure
    carries no errno, a short classification such as ``InvalidData``.
    """

    def __init__(self, kind: str) -> None:
        super().__init__(kind)
        self.kind = kind

    @classmethod
    def from_exception(cls, exc: BaseException) -> "IoError":
        if isinstance(exc, UnicodeDecodeError):
            return cls("InvalidData")
        if isinstance(exc, OSError) and exc.errno is not None:
            return cls(errno.errorcode.get(exc.errno, str(exc.errno)))
        return cls(type(exc).__name__)

    def describe(self) -> str:
        return f"read line failed, {self.kind}"


class ParseIntError(LineError):
    """A numeric field is not an unsigned decimal integer."""

    def __init__(self, error: ValueError) -> None:
        super().__init__(error)
        self.error = error

    def _key(self) -> Tuple[Hashable, ...]:
        return (type(self.error), str(self.error))

    def describe(self) -> str:
        return f"Invalid integer, {self.error}"


class ParseError(Exception):
    """A mount table could not be parsed; wraps the failure of one line."""

    def __init__(self, error: LineError, lineno: int) -> None:
        super().__init__(error, lineno)
        self.error = error
        self.lineno = lineno

    def __str__(self) -> str:
        return f"Mount parsing: line {self.lineno}: {self.error.describe()}"
