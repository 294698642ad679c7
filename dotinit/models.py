"""Shared data model for the bootstrap: options, results, seams."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol
import stat
import os

from .telemetry import redact


@dataclass(frozen=True)
class BasicAuth:
    """HTTP basic credentials collected after an auth failure."""
    username: str
    password: str = field(repr=False)

    @property
    def method(self) -> str:
        return "http-basic-auth"

    def __str__(self) -> str:
        return f"{self.method} - {self.username}:<redacted>"


@dataclass
class CloneOptions:
    url: str
    depth: int = 0
    branch: str = ""
    recurse_submodules: bool = False
    auth: BasicAuth | None = None

    @property
    def reference_name(self) -> str:
        if not self.branch: return ""
        return f"refs/heads/{self.branch}"


@dataclass(frozen=True)
class LoggableCloneOptions:
    """
    The part of CloneOptions that may be written to logs.

    Credentials are reduced to the name of the auth method;
    there is no field that could hold a username or password.
    """
    url: str
    depth: int
    reference_name: str
    recurse_submodules: bool
    auth_method: str

    @classmethod
    def from_options(cls, options: CloneOptions) -> LoggableCloneOptions:
        return cls(
            url=str(redact(options.url)),
            depth=options.depth,
            reference_name=options.reference_name,
            recurse_submodules=options.recurse_submodules,
            auth_method=options.auth.method if options.auth else "none",
        )

    def as_dict(self) -> dict[str, object]:
        out: dict[str, object] = {}
        if self.url: out["url"] = self.url
        if self.auth_method != "none": out["auth"] = self.auth_method
        if self.reference_name:
            out["reference_name"] = self.reference_name
        if self.depth: out["depth"] = self.depth
        if self.recurse_submodules: out["recurse_submodules"] = True
        return out


class WorkingTreeState(Enum):
    ABSENT          = "absent"
    DIRECTORY       = "directory"
    NOT_A_DIRECTORY = "not-a-directory"

    @classmethod
    def inspect(cls, path: str | Path) -> WorkingTreeState:
        """Stat `path` once. Other OS errors propagate."""
        try: st = os.stat(path)
        except FileNotFoundError: return cls.ABSENT
        if stat.S_ISDIR(st.st_mode):
            return cls.DIRECTORY
        return cls.NOT_A_DIRECTORY


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one init or clone attempt."""
    error: BaseException | None = None
    auth_required: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> OperationResult:
        return cls()


class GitBackend(Protocol):
    """What the bootstrap needs from a git implementation."""
    name: str
    supports_ssh: bool
    # true when the implementation runs its own credential prompts
    handles_credentials: bool

    def init(self, path: Path) -> OperationResult: ...

    def clone(self, path: Path, options: CloneOptions
             ) -> OperationResult: ...


class Prompter(Protocol):
    def read_string(self, prompt: str, default: str = "") -> str: ...

    def read_password(self, prompt: str) -> str: ...
