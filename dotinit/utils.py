"""Module to keep communication with externals isolated."""
# ======================= STANDARDS ========================
from dataclasses import dataclass, field
from pathlib import Path
import logging as log
import getpass
import os

# ===================== THIRD-PARTIES ======================
from tuikit.textools import wrap_text, style_text as color
from tuikit.textools import transmit as _transmit, pathit

# ======================== LOCALS ==========================
from . import _constants as const
from ._constants import *
from . import telemetry


logger = log.getLogger("dotinit")
logger.setLevel(log.DEBUG)
def configure_logger(log_dir: Path) -> Path:
    """Configure package logger once per process."""
    telemetry.init_event_stream(Path(log_dir))
    debug_log = Path(log_dir) / "debug.log"
    if logger.handlers: return debug_log
    os.makedirs(log_dir, exist_ok=True)
    file_handler = log.FileHandler(str(debug_log))
    fmt          = log.Formatter("%(asctime)s - %(name)s - "
                 + "%(levelname)s - %(message)s")
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)
    return debug_log


def default_log_dir() -> Path:
    base = os.environ.get("XDG_STATE_HOME") \
        or os.path.join(os.path.expanduser("~"), ".local", "state")
    return Path(base) / APP / "log"


def default_working_tree() -> Path:
    base = os.environ.get("XDG_DATA_HOME") \
        or os.path.join(os.path.expanduser("~"), ".local", "share")
    return Path(base) / APP


def wrap(text: str) -> str:
    return wrap_text(text, I, inline=True, order=f"[{APP}]")


def transmit(*text: str | tuple[str], fg: str = PROMPT,
             quiet: bool = False, prfx: bool = True) -> None:
    if quiet: return

    msg = " ".join(map(str, text))
    if prfx: print(TAG, end="")

    _transmit(msg, speed=SPEED, hold=HOLD, hue=fg)


@dataclass
class Output:
    # follows --quiet once the CLI has synced the runtime flags
    quiet: bool = field(default_factory=lambda: const.QUIET)

    def success(self, msg: str) -> None:
        transmit(wrap(msg), fg=GOOD, quiet=self.quiet)

    def info(self, msg: str, prefix: bool = True) -> None:
        msg = wrap(msg) if const.PLAIN else msg
        transmit(msg, fg=INFO, quiet=self.quiet, prfx=prefix)

    def prompt(self, msg: str, fit: bool = True) -> None:
        if fit: msg = wrap(msg)
        transmit(msg, quiet=self.quiet)

    def warn(self, msg: str, fit: bool = True) -> None:
        if fit: msg = wrap(msg)
        transmit(msg, fg=BAD)

    def raw(self, *args: object, **kwargs: object) -> None:
        if not self.quiet: print(*args, **kwargs)  # type: ignore[call-overload]


class TerminalPrompter:
    """
    Blocking prompts on the controlling terminal.

    Interrupts (Ctrl-C, EOF) are not caught here; they unwind
    the caller so an endless credential loop stays breakable.
    """
    def __init__(self, out: Output | None = None) -> None:
        self.out = out or Output()

    def read_string(self, prompt: str, default: str = "") -> str:
        hint = f" [{default}]" if default else ""
        self.out.prompt(f"{prompt.rstrip()}{hint}")
        value = input(CURSOR).strip()
        return value or default

    def read_password(self, prompt: str) -> str:
        self.out.prompt(prompt.rstrip())
        return getpass.getpass(CURSOR)


def display_path(path: str | Path) -> str:
    return pathit(str(path))
