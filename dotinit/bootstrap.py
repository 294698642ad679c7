"""
Get a working tree onto disk from a repository hint.

Flow:
  - `<working tree>/.git` already a directory -> nothing to do
  - it exists but is not a directory -> DestinationConflict
  - no repository given -> init an empty repository
  - otherwise resolve the URL and clone, asking for
    credentials again each time the backend reports that
    authentication is required

Which git implementation does the work is decided once, by
select_backend(); the orchestrator only sees the GitBackend
interface.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging as log
import shutil

from .error_model import (
    BootstrapError,
    DestinationConflict,
    EmbeddedOperationFailure,
    UnsupportedTransport,
)
from .models import (
    BasicAuth,
    CloneOptions,
    GitBackend,
    OperationResult,
    Prompter,
    WorkingTreeState,
)
from ._constants import DEFAULT_GIT_COMMAND, GIT_DIR_NAME
from .guess import guess_repo_url, is_ssh_url
from .utils import Output, TerminalPrompter
from .builtin_git import BuiltinGit
from .gitutils import ExternalGit, inject_username
from .telemetry import redact
from . import telemetry


logger = log.getLogger("dotinit.bootstrap")


@dataclass
class BootstrapOptions:
    working_tree: Path
    repo: str = ""
    guess_repo_url: bool = True
    ssh: bool = False
    depth: int = 0
    branch: str = ""
    recurse_submodules: bool = False


def use_builtin_git_auto(setting: str | bool,
                         git_command: str = DEFAULT_GIT_COMMAND) -> bool:
    """Resolve the use-builtin-git setting (auto|true|false)."""
    if isinstance(setting, bool): return setting
    token = setting.strip().lower()
    if token in {"1", "true", "yes", "on"}: return True
    if token in {"0", "false", "no", "off"}: return False
    return shutil.which(git_command) is None


def select_backend(use_builtin: bool,
                   git_command: str = DEFAULT_GIT_COMMAND) -> GitBackend:
    if use_builtin: return BuiltinGit()
    return ExternalGit(git_command)


class Bootstrapper:
    def __init__(self, backend: GitBackend,
                 prompter: Prompter | None = None,
                 out: Output | None = None) -> None:
        self.backend  = backend
        self.out      = out or Output()
        self.prompter = prompter or TerminalPrompter(self.out)

    def run(self, opts: BootstrapOptions) -> WorkingTreeState:
        """
        Bootstrap the working tree described by `opts`.

        Returns the state observed before any action was taken.
        Raises a BootstrapError subclass on failure.
        """
        working_tree = Path(opts.working_tree)
        git_dir      = working_tree / GIT_DIR_NAME
        state        = WorkingTreeState.inspect(git_dir)
        logger.info("bootstrap path=%s state=%s backend=%s",
                    working_tree, state.value, self.backend.name)

        if state is WorkingTreeState.DIRECTORY: return state
        if state is WorkingTreeState.NOT_A_DIRECTORY:
            raise DestinationConflict(git_dir)

        if not opts.repo:
            self._check(self.backend.init(working_tree))
            return state

        username, url = "", opts.repo
        if opts.guess_repo_url:
            resolved = guess_repo_url(opts.repo, opts.ssh)
            username, url = resolved.username, resolved.url
            logger.info("guessed repo url=%s username=%s", redact(url),
                        username or "-")

        if not self.backend.supports_ssh \
                and (opts.ssh or is_ssh_url(url)):
            raise UnsupportedTransport(url)

        if self.backend.handles_credentials and opts.guess_repo_url:
            url = inject_username(url, username)

        options = CloneOptions(
            url=url,
            depth=opts.depth,
            branch=opts.branch,
            recurse_submodules=opts.recurse_submodules,
        )
        self.clone(working_tree, options, username)
        return state

    def clone(self, path: Path, options: CloneOptions,
              username: str = "") -> None:
        """
        Clone until success or a failure other than auth.

        There is no attempt limit; the prompts block and an
        interrupt (Ctrl-C, EOF) from them ends the loop.
        """
        attempt = 0
        while True:
            attempt += 1
            result = self.backend.clone(path, options)
            if result.ok:
                logger.info("clone succeeded url=%s attempts=%d",
                            redact(options.url), attempt)
                return
            if not result.auth_required: self._check(result)

            self.out.warn(f"{options.url}: {result.error}")
            telemetry.emit_event(
                event_type="auth_prompt",
                step_id="clone",
                payload={"url": options.url, "attempt": attempt},
            )
            answer = self.prompter.read_string("Username? ", username)
            if not answer: answer = username
            password = self.prompter.read_password("Password? ")
            options.auth = BasicAuth(answer, password)

    def _check(self, result: OperationResult) -> None:
        if result.ok: return
        error = result.error
        if isinstance(error, BootstrapError): raise error
        raise EmbeddedOperationFailure(str(error)) from error


def bootstrap(opts: BootstrapOptions, backend: GitBackend,
              prompter: Prompter | None = None,
              out: Output | None = None) -> WorkingTreeState:
    return Bootstrapper(backend, prompter, out).run(opts)
