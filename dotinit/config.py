"""Layered runtime configuration for dotinit.

Precedence order (low -> high):
1) argparse defaults
2) config file ($XDG_CONFIG_HOME/dotinit/dotinit.toml, [dotinit])
3) global git config (dotinit.* keys)
4) environment variables (DOTINIT_*)
5) explicit CLI options

Every option is known under three spellings derived from its
argparse dest: `working_tree` is `working-tree` in the file and
in git config, and `DOTINIT_WORKING_TREE` in the environment.
"""
from __future__ import annotations

from argparse import Namespace, ArgumentParser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable
import subprocess
import tomllib
import os


SECTION = "dotinit"
FILE_NAME = "dotinit.toml"
TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
FALSE_WORDS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class OptionSpec:
    dest: str
    kind: type  # bool | int | str
    choices: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return self.dest.replace("_", "-")

    @property
    def env_key(self) -> str:
        return f"DOTINIT_{self.dest.upper()}"


SPECS: tuple[OptionSpec, ...] = (
    OptionSpec("git_command", str),
    OptionSpec("use_builtin_git", str, ("auto", "true", "false")),
    OptionSpec("guess_repo_url", bool),
    OptionSpec("ssh", bool),
    OptionSpec("branch", str),
    OptionSpec("depth", int),
    OptionSpec("recurse_submodules", bool),
    OptionSpec("working_tree", str),
    OptionSpec("log_dir", str),
    OptionSpec("quiet", bool),
    OptionSpec("plain", bool),
    OptionSpec("debug", bool),
)
BY_DEST = {spec.dest: spec for spec in SPECS}
BY_KEY = {spec.key: spec for spec in SPECS}

Diagnostic = dict[str, str]


def _diag(level: str, source: str, key: str, raw: object,
          message: str) -> Diagnostic:
    return {"level": level, "source": source, "key": key,
            "raw": str(raw), "message": message}


def default_config_file() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") \
        or os.path.join(os.path.expanduser("~"), ".config")
    return Path(base) / SECTION / FILE_NAME


def _as_bool(raw: object) -> bool | None:
    if isinstance(raw, bool): return raw
    if not isinstance(raw, str): return None
    word = raw.strip().lower()
    if word in TRUE_WORDS: return True
    if word in FALSE_WORDS: return False
    return None


def _as_count(raw: object) -> int | None:
    """Non-negative int from an int or numeric string."""
    if isinstance(raw, bool): return None
    if isinstance(raw, str):
        try: raw = int(raw.strip())
        except ValueError: return None
    if isinstance(raw, int) and raw >= 0: return raw
    return None


def _as_text(raw: object, choices: tuple[str, ...]) -> str | None:
    # `use_builtin_git = true` in TOML arrives as a bool
    if isinstance(raw, bool) and choices:
        raw = "true" if raw else "false"
    if not isinstance(raw, str): return None
    if choices and raw not in choices: return None
    return raw


def coerce(spec: OptionSpec, raw: object, source: str,
           diagnostics: list[Diagnostic]) -> object | None:
    """Convert `raw` for `spec`; record a warning and return None if invalid."""
    if spec.kind is bool:
        value: object | None = _as_bool(raw)
        expected = "true/false"
    elif spec.kind is int:
        value = _as_count(raw)
        expected = "a non-negative integer"
    else:
        value = _as_text(raw, spec.choices)
        expected = "one of: " + ", ".join(spec.choices) \
            if spec.choices else "a string"
    if value is None:
        diagnostics.append(_diag("warning", source, spec.dest, raw,
            f"invalid value for {spec.dest}; expected {expected}"))
    return value


def _load_file_overrides(path: Path | None
                        ) -> tuple[dict[str, object], list[Diagnostic],
                                   str | None]:
    config_file = path if path is not None else default_config_file()
    if not config_file.is_file(): return {}, [], None
    where = str(config_file)
    try:
        data = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"failed to parse {config_file.name}: {exc}"
        return {}, [_diag("error", "file", SECTION, "", msg)], where

    table = data.get(SECTION)
    if table is None: return {}, [], where
    if not isinstance(table, dict):
        msg = f"{SECTION} must be a TOML table, e.g. [{SECTION}]"
        diag = _diag("error", "file", SECTION, type(table).__name__, msg)
        return {}, [diag], where

    values: dict[str, object] = {}
    diagnostics: list[Diagnostic] = []
    for raw_key, raw_val in table.items():
        spec = BY_KEY.get(str(raw_key).strip().lower().replace("_", "-"))
        if spec is None:
            diagnostics.append(_diag("warning", "file", str(raw_key),
                raw_val, f"unknown key in [{SECTION}]"))
            continue
        values[spec.dest] = raw_val
    return values, diagnostics, where


def _read_git_global() -> dict[str, str]:
    cmd = ["git", "config", "--global", "--get-regexp", rf"^{SECTION}\."]
    try:
        cp = subprocess.run(cmd, check=False, capture_output=True,
                            text=True)
    except FileNotFoundError:
        return {}
    if cp.returncode != 0: return {}
    entries: dict[str, str] = {}
    for line in cp.stdout.splitlines():
        key, _, value = line.strip().partition(" ")
        if key: entries[key] = value.strip()
    return entries


def _load_git_overrides() -> dict[str, str]:
    entries = _read_git_global()
    return {spec.dest: entries[f"{SECTION}.{spec.key}"]
            for spec in SPECS if f"{SECTION}.{spec.key}" in entries}


def _load_env_overrides() -> dict[str, str]:
    return {spec.dest: os.environ[spec.env_key]
            for spec in SPECS if spec.env_key in os.environ}


def _explicit_cli_dests(argv: list[str], parser: ArgumentParser
                       ) -> set[str]:
    """Dests named by an option string in `argv`."""
    actions = parser._option_string_actions
    explicit: set[str] = set()
    tokens = iter(argv)
    for token in tokens:
        if token == "--": break
        if not token.startswith("-"): continue
        action = actions.get(token.split("=", 1)[0])
        if action is None: continue
        explicit.add(action.dest)
        # skip the separate value of `--opt value`
        if "=" not in token and action.nargs != 0:
            next(tokens, None)
    return explicit


def apply_layered_config(args: Namespace, argv: list[str],
                         parser: ArgumentParser) -> Namespace:
    """Apply file/git/env overrides unless the dest was set on the CLI."""
    merged = Namespace(**vars(args))
    explicit = _explicit_cli_dests(argv, parser)
    config_path = getattr(merged, "config", None)
    file_vals, diagnostics, file_path = _load_file_overrides(
        Path(config_path).expanduser() if config_path else None)
    layers: list[tuple[str, Callable[[], dict]]] = [
        ("file", lambda: file_vals),
        ("git", _load_git_overrides),
        ("env", _load_env_overrides),
    ]

    sources = {dest: "default" for dest in vars(merged)}
    sources.update({dest: "cli" for dest in explicit})
    for source, load in layers:
        for dest, raw in load().items():
            spec = BY_DEST.get(dest)
            if spec is None or dest in explicit: continue
            value = coerce(spec, raw, source, diagnostics)
            if value is None: continue
            setattr(merged, dest, value)
            sources[dest] = source

    setattr(merged, "_dotinit_config_sources", sources)
    setattr(merged, "_dotinit_config_diagnostics", diagnostics)
    setattr(merged, "_dotinit_config_files", {"file": file_path})
    return merged
