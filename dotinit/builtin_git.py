"""
Embedded git implementation backed by dulwich.

Used when no git executable is available (or when asked to).
dulwich speaks http(s) here; ssh remotes are refused upstream by
the bootstrap because this backend reports supports_ssh=False.
"""
from __future__ import annotations

from pathlib import Path
import logging as log
import shutil

from dulwich.client import HTTPUnauthorized
from dulwich import porcelain

from .error_model import AuthenticationRequired
from .models import CloneOptions, LoggableCloneOptions, OperationResult
from ._constants import GIT_DIR_NAME
from . import telemetry


logger = log.getLogger("dotinit.builtin_git")


class BuiltinGit:
    name = "builtin"
    supports_ssh = False
    handles_credentials = False

    def __init__(self, is_bare: bool = False) -> None:
        self.is_bare = is_bare

    def init(self, path: Path) -> OperationResult:
        """Initialize an empty repository at `path`."""
        error: BaseException | None = None
        try:
            path.mkdir(parents=True, exist_ok=True)
            porcelain.init(str(path), bare=self.is_bare)
        except Exception as e:
            error = e
        level = log.ERROR if error else log.INFO
        logger.log(level, "PlainInit path=%s is_bare=%s err=%s",
                   path, self.is_bare, error)
        telemetry.emit_event(
            event_type="init",
            step_id="init",
            payload={
                "backend": self.name,
                "path": str(path),
                "ok": error is None,
                "error": str(error or ""),
            },
        )
        return OperationResult(error=error)

    def _clone_kwargs(self, options: CloneOptions) -> dict[str, object]:
        kwargs: dict[str, object] = {"bare": self.is_bare}
        if options.depth: kwargs["depth"] = options.depth
        if options.branch: kwargs["branch"] = options.branch
        if options.recurse_submodules:
            kwargs["recurse_submodules"] = True
        if options.auth is not None:
            kwargs["username"] = options.auth.username
            kwargs["password"] = options.auth.password
        return kwargs

    def clone(self, path: Path, options: CloneOptions
             ) -> OperationResult:
        """
        Make one clone attempt.

        HTTPUnauthorized is the only failure reported as
        auth_required; the caller decides whether to ask for
        credentials and try again.
        """
        result = OperationResult.success()
        had_tree = path.exists()
        had_git  = (path / GIT_DIR_NAME).exists()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            porcelain.clone(options.url, str(path),
                            **self._clone_kwargs(options))
        except HTTPUnauthorized as e:
            error = AuthenticationRequired(options.url, str(e)
                    or "authentication required")
            error.__cause__ = e
            result = OperationResult(error=error, auth_required=True)
        except Exception as e:
            result = OperationResult(error=e)
        if not result.ok: self._discard_attempt(path, had_tree, had_git)

        loggable = LoggableCloneOptions.from_options(options)
        level = log.INFO if result.ok else log.WARNING
        logger.log(level, "PlainClone path=%s is_bare=%s o=%s err=%s",
                   path, self.is_bare, loggable.as_dict(), result.error)
        telemetry.emit_event(
            event_type="clone_attempt",
            step_id="clone",
            payload={
                "backend": self.name,
                "path": str(path),
                "is_bare": self.is_bare,
                "options": loggable.as_dict(),
                "ok": result.ok,
                "auth_required": result.auth_required,
                "error": str(result.error or ""),
            },
        )
        return result

    def _discard_attempt(self, path: Path, had_tree: bool,
                         had_git: bool) -> None:
        """
        Remove what a failed clone left behind.

        dulwich initializes the repository before fetching and only
        cleans up a target directory it created itself. Without
        this, the next attempt would hit an existing `.git`.
        """
        if had_git: return
        target = path if not had_tree else path / GIT_DIR_NAME
        if not target.exists(): return
        try: shutil.rmtree(target)
        except OSError as e:
            logger.warning("could not remove %s after failed clone: %s",
                           target, e)
