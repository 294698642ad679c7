"""Constants across dotinit."""


from argparse import Namespace

from tuikit.textools import style_text as color


CURSOR         = color("  >>> ", "magenta")
GOOD           = "green"
BAD            = "red"
PROMPT         = "yellow"
INFO           = "cyan"
SPEED          = 0.0075
HOLD           = 0.01
APP            = "dotinit"
TAG            = color(f"[{APP}] ", "magenta")
I              = 10

DEFAULT_GIT_COMMAND = "git"
GIT_DIR_NAME        = ".git"

# Runtime flags: initialized once per invocation by CLI.
PLAIN = False
DEBUG = False
QUIET = False


def sync_runtime_flags(args: Namespace) -> None:
    """Synchronize runtime flags from parsed CLI args."""
    global PLAIN, DEBUG, QUIET

    PLAIN = bool(getattr(args, "plain", False))
    DEBUG = bool(getattr(args, "debug", False))
    QUIET = bool(getattr(args, "quiet", False))
