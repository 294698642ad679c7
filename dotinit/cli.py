#!/usr/bin/env python3
"""
Primary CLI entry point for `dotinit`.

Sets up the working tree of a dotfiles repository:
  - guesses a clone URL from a short hint (`alice`,
    `alice/dots`, `example.com/bob`, `sr.ht/~carol`)
  - initializes an empty repository when no hint is given
  - clones with the git executable, or with the embedded
    implementation when git is unavailable
  - asks for credentials again when the embedded clone is
    refused for lack of authentication

Uses `main` as the safe entry point to invoke the CLI.
"""


# ======================= STANDARDS =======================
from pathlib import Path
import argparse
import json
import sys
import os

# ======================== LOCALS =========================
from .bootstrap import (
    BootstrapOptions,
    bootstrap,
    select_backend,
    use_builtin_git_auto,
)
from .error_model import build_error_envelope, error_code_for
from .models import WorkingTreeState
from . import _constants as const
from . import __version__
from . import telemetry
from . import config
from . import utils


COMMON_FAILURE_FIXES: dict[str, tuple[str, str]] = {
    "DOTINIT_FS_DESTINATION_CONFLICT": (
        "working tree metadata is not a directory",
        "Move the conflicting file away or pick another --working-tree.",
    ),
    "DOTINIT_NET_UNSUPPORTED_TRANSPORT": (
        "ssh clone requested with builtin git",
        "Install git or rerun with --use-builtin-git false.",
    ),
    "DOTINIT_NET_MALFORMED_URL": (
        "repository URL could not be parsed",
        "Pass a full clone URL or rerun with --no-guess-repo-url.",
    ),
    "DOTINIT_GIT_EXTERNAL_FAIL": (
        "git command failed",
        "Check the git output above, then rerun.",
    ),
    "DOTINIT_GIT_EMBEDDED_FAIL": (
        "builtin git failed",
        "Check the URL and network, or rerun with --use-builtin-git false.",
    ),
}

EFFECTIVE_KEYS = (
    "repo", "branch", "depth", "guess_repo_url", "ssh",
    "recurse_submodules", "use_builtin_git", "git_command",
    "working_tree", "log_dir", "one_shot", "quiet", "plain",
    "debug",
)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dotinit",
        description="Set up a dotfiles working tree from a "
                    "repository hint or URL",
    )
    p.add_argument("--version", action="version",
        version=f"{const.APP} {__version__}")
    p.add_argument("--show-config", action="store_true",
        help="Print the effective configuration and exit")
    p.add_argument("--config", "-c", default=None,
        help="Path to a TOML config file")

    p.add_argument("repo", nargs="?", default="",
        help="Repository hint or URL; omit to init an empty repo")
    p.add_argument("--branch", default="",
        help="Set initial branch to checkout")
    p.add_argument("--depth", "-d", type=int, default=0,
        help="Create a shallow clone")
    p.add_argument("--guess-repo-url", "-g", default=True,
        action=argparse.BooleanOptionalAction,
        help="Guess the repo URL")
    p.add_argument("--ssh", action="store_true",
        help="Use ssh instead of https when guessing repo URL")
    p.add_argument("--recurse-submodules", action="store_true",
        help="Checkout submodules recursively")
    p.add_argument("--use-builtin-git", default="auto",
        choices=["auto", "true", "false"],
        help="Use the embedded git implementation")
    p.add_argument("--git-command", default=const.DEFAULT_GIT_COMMAND,
        help="git executable to run")
    p.add_argument("--working-tree", "-W", default=None,
        help="Directory to create the working tree in")
    p.add_argument("--log-dir", default=None)
    p.add_argument("--one-shot", action="store_true",
        help="Shallow clone of depth 1")
    p.add_argument("--quiet", "-q", action="store_true")
    p.add_argument("--plain", action="store_true")
    p.add_argument("--debug", action="store_true")
    return p


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Add and parse arguments, then apply layered config."""
    parser = _build_parser()
    parsed = parser.parse_args(argv)
    merged = config.apply_layered_config(parsed, argv, parser)
    if merged.one_shot: merged.depth = 1
    if not merged.working_tree:
        merged.working_tree = str(utils.default_working_tree())
    if not merged.log_dir:
        merged.log_dir = str(utils.default_log_dir())
    return merged


def show_effective_config(args: argparse.Namespace,
                          out: utils.Output) -> int:
    """Print the effective merged runtime configuration."""
    effective: dict[str, object] = {
        k: getattr(args, k, None) for k in EFFECTIVE_KEYS
    }
    effective["repo"] = telemetry.redact(effective["repo"])
    sources = getattr(args, "_dotinit_config_sources", None)
    if isinstance(sources, dict):
        effective["_sources"] = {
            k: sources.get(k, "default") for k in EFFECTIVE_KEYS
        }
    files = getattr(args, "_dotinit_config_files", None)
    if isinstance(files, dict):
        effective["_config_files"] = files
    diagnostics = getattr(args, "_dotinit_config_diagnostics", None)
    if isinstance(diagnostics, list):
        effective["_config_diagnostics"] = diagnostics
    out.raw(json.dumps(effective, indent=2, sort_keys=True))
    return 0


def options_from_args(args: argparse.Namespace) -> BootstrapOptions:
    return BootstrapOptions(
        working_tree=Path(args.working_tree).expanduser(),
        repo=args.repo or "",
        guess_repo_url=bool(args.guess_repo_url),
        ssh=bool(args.ssh),
        depth=int(args.depth),
        branch=args.branch or "",
        recurse_submodules=bool(args.recurse_submodules),
    )


def _emit_failure_ux(envelope: dict[str, object],
                     out: utils.Output) -> None:
    """Emit concise failure summary with a one-line fix."""
    code = str(envelope.get("code", "")).strip()
    summary, fix = COMMON_FAILURE_FIXES.get(
        code,
        ("bootstrap failed", "Rerun with --debug for a traceback."),
    )
    out.warn(f"summary: {summary}")
    out.warn(f"fix: {fix}")


def _persist_error_envelope(args: argparse.Namespace,
                            envelope: dict[str, object],
                            out: utils.Output) -> None:
    """Persist the envelope to the log directory for postmortems."""
    path = os.path.join(args.log_dir, "last_error_envelope.json")
    try:
        os.makedirs(args.log_dir, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(envelope, f, indent=2)
        telemetry.emit_event(
            event_type="runtime_error",
            step_id=str(envelope.get("operation", "bootstrap")),
            payload=dict(envelope),
        )
        out.warn(f"error envelope written: {utils.display_path(path)}")
    except OSError as e:
        out.warn(f"failed to persist error envelope: {e}")


def _build_envelope(args: argparse.Namespace,
                    error: BaseException) -> dict[str, object]:
    _, fix = COMMON_FAILURE_FIXES.get(error_code_for(error), ("", ""))
    context: dict[str, object] = {
        "repo": telemetry.redact(args.repo or ""),
        "working_tree": args.working_tree,
        "use_builtin_git": args.use_builtin_git,
        "guess_repo_url": bool(args.guess_repo_url),
        "ssh": bool(args.ssh),
    }
    envelope = build_error_envelope(
        error,
        operation="clone" if args.repo else "init",
        context=context,
        suggested_fix=fix,
    )
    return envelope.with_runtime_schema()


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point for the `dotinit` tool.

    Parses arguments, merges layered configuration, sets up
    logging and telemetry under the log directory, picks the
    git implementation and runs the bootstrap. Failures are
    reported with a summary, a fix hint and a persisted error
    envelope; the exit status is non-zero on any failure.
    """
    args = parse_args(sys.argv[1:] if argv is None else argv)
    const.sync_runtime_flags(args)
    out = utils.Output()
    if args.show_config:
        sys.exit(show_effective_config(args, out))

    telemetry.set_run_id()
    utils.configure_logger(Path(args.log_dir))
    code = 0
    last_error: BaseException | None = None
    try:
        use_builtin = use_builtin_git_auto(args.use_builtin_git,
                      args.git_command)
        backend = select_backend(use_builtin, args.git_command)
        state = bootstrap(options_from_args(args), backend, out=out)
        where = utils.display_path(args.working_tree)
        if state is WorkingTreeState.DIRECTORY:
            out.info(f"working tree already present in {where}")
        elif args.repo:
            out.success(f"cloned into {where}")
        else:
            out.success(f"initialized empty repository in {where}")
    except BaseException as e:
        last_error = e
        code = 1
        exit = (KeyboardInterrupt, EOFError, SystemExit)
        if const.DEBUG: raise e
        if isinstance(e, SystemExit):
            if isinstance(e.code, int): code = e.code
        if not isinstance(e, exit): out.warn(f"ERROR: {e}")
        elif not isinstance(e, exit[2]):
            i = 1 if not isinstance(e, EOFError) else 2
            out.raw("\n" * i + const.TAG, end="")
            out.raw(utils.color("forced exit", const.BAD))
    finally:
        if code != 0 and last_error is not None:
            utils.logger.error("bootstrap failed: %s",
                               telemetry.redact(str(last_error)))
            envelope = _build_envelope(args, last_error)
            _emit_failure_ux(envelope, out)
            _persist_error_envelope(args, envelope, out)
        out.raw()
        # --debug re-raises for the traceback
        if not (const.DEBUG and last_error is not None):
            sys.exit(code)
