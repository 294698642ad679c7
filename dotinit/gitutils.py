"""
Small helpers for driving an external git executable.

The external tool inherits the terminal, so its own credential
prompts (askpass, credential helpers) work as usual and are not
retried here. Failures surface as ExternalToolFailure carrying
the exit status.
"""
# ======================= STANDARDS =======================
from urllib.parse import quote, urlsplit, urlunsplit
from pathlib import Path
import logging as log
import subprocess

# ======================== LOCALS =========================
from .error_model import ExternalToolFailure, MalformedURL
from .models import CloneOptions, OperationResult
from ._constants import DEFAULT_GIT_COMMAND
from .guess import is_http_url
from . import telemetry


logger = log.getLogger("dotinit.gitutils")


def _display(cmd: list[str]) -> str:
    return str(telemetry.redact(" ".join(cmd)))


def run_git(args: list[str], cwd: str | Path | None = None,
            command: str = DEFAULT_GIT_COMMAND) -> int:
    """
    Run `<command> <args...>` with inherited standard streams.

    Blocks until git exits; no timeout is imposed. Returns the
    exit status. A missing executable raises ExternalToolFailure.
    """
    cmd = [command] + list(args)
    logger.debug("RUN: %s (cwd=%s)", _display(cmd), cwd)
    try:
        proc = subprocess.run(cmd, cwd=cwd, check=False)
    except OSError as e:
        logger.exception("Subprocess invocation failed: %s",
                         _display(cmd))
        raise ExternalToolFailure(f"{command}: {e}") from e
    logger.debug("RC=%s", proc.returncode)
    return proc.returncode


def clone_args(url: str, dest: str | Path,
               options: CloneOptions) -> list[str]:
    args = ["clone"]
    if options.recurse_submodules:
        args.append("--recurse-submodules")
    if options.branch:
        args += ["--branch", options.branch]
    if options.depth != 0:
        args += ["--depth", str(options.depth)]
    args += [url, str(dest)]
    return args


def inject_username(url: str, username: str) -> str:
    """
    Put `username` into the authority of an http(s) URL.

    URLs that already carry userinfo, and non-http URLs, are
    returned unchanged.
    """
    if not username or not is_http_url(url): return url
    try:
        parts = urlsplit(url)
        has_user = parts.username is not None
        parts.port  # raises on a non-numeric port
    except ValueError as e:
        raise MalformedURL(url, e) from e
    if not parts.hostname:
        raise MalformedURL(url, "missing host")
    if has_user: return url
    netloc = f"{quote(username, safe='')}@{parts.netloc}"
    return urlunsplit(parts._replace(netloc=netloc))


class ExternalGit:
    name = "external"
    supports_ssh = True
    handles_credentials = True

    def __init__(self, command: str = DEFAULT_GIT_COMMAND) -> None:
        self.command = command

    def _failure(self, args: list[str], rc: int) -> OperationResult:
        msg = f"{self.command} {args[0]}: exit status {rc}"
        return OperationResult(error=ExternalToolFailure(msg, rc))

    def init(self, path: Path) -> OperationResult:
        args = ["init", "--quiet"]
        path.mkdir(parents=True, exist_ok=True)
        rc = run_git(args, cwd=path, command=self.command)
        telemetry.emit_event(
            event_type="init",
            step_id="init",
            payload={"backend": self.name, "path": str(path),
                     "returncode": rc},
        )
        if rc != 0: return self._failure(args, rc)
        return OperationResult.success()

    def clone(self, path: Path, options: CloneOptions
             ) -> OperationResult:
        args = clone_args(options.url, path, options)
        path.parent.mkdir(parents=True, exist_ok=True)
        rc = run_git(args, command=self.command)
        telemetry.emit_event(
            event_type="clone_attempt",
            step_id="clone",
            payload={"backend": self.name, "args": args,
                     "returncode": rc},
        )
        if rc != 0: return self._failure(args, rc)
        return OperationResult.success()
