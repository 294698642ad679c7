"""
Turn a short repository hint into a clone URL and username.

The rules are plain data scanned in order; the first rule whose
pattern matches the whole argument and offers the requested
transport wins. Several rules overlap (``alice/dots`` also fits
the ``host/owner`` shape), so the order of ``GUESS_RULES`` is
part of the behaviour.
"""
from dataclasses import dataclass
import logging as log
import re


logger = log.getLogger("dotinit.guess")

DEFAULT_REPO_NAME = "dotfiles"
DEFAULT_FORGE     = "github.com"

# user@host:[port/]owner/repo; the path needs a slash, so `backup:2024`
# stays a local directory name
_SCP_LIKE_URL = re.compile(
    r"^(?:[^@/:\s]+@)?[^/:\s]+:(?:[0-9]{1,5}[/:])?[^\\].*/[^\\].*$")


@dataclass(frozen=True)
class GuessRule:
    """One row of the guess table."""
    pattern: re.Pattern[str]
    https_template: str | None
    ssh_template: str | None
    username_template: str


@dataclass(frozen=True)
class ResolvedRepo:
    username: str
    url: str


def _rule(pattern: str, https: str | None, ssh: str | None,
          username: str) -> GuessRule:
    return GuessRule(re.compile(pattern), https, ssh, username)


GUESS_RULES: tuple[GuessRule, ...] = (
    # alice
    _rule(r"([-0-9A-Za-z]+)",
          rf"https://{DEFAULT_FORGE}/\1/{DEFAULT_REPO_NAME}.git",
          rf"git@{DEFAULT_FORGE}:\1/{DEFAULT_REPO_NAME}.git",
          r"\1"),
    # alice/dots, alice/dots.git
    _rule(r"([-0-9A-Za-z]+)/([-0-9A-Za-z]+)(\.git)?",
          rf"https://{DEFAULT_FORGE}/\1/\2.git",
          rf"git@{DEFAULT_FORGE}:\1/\2.git",
          r"\1"),
    # example.com/bob
    _rule(r"([-.0-9A-Za-z]+)/([-0-9A-Za-z]+)",
          rf"https://\1/\2/{DEFAULT_REPO_NAME}.git",
          rf"git@\1:\2/{DEFAULT_REPO_NAME}.git",
          r"\2"),
    # gitea/bob/dots
    _rule(r"([-0-9A-Za-z]+)/([-0-9A-Za-z]+)/([-.0-9A-Za-z]+)",
          r"https://\1/\2/\3.git",
          r"git@\1:\2/\3.git",
          r"\2"),
    # example.com/bob/dots, example.com/bob/dots.git
    _rule(r"([-.0-9A-Za-z]+)/([-0-9A-Za-z]+)/([-0-9A-Za-z]+)(\.git)?",
          r"https://\1/\2/\3.git",
          r"git@\1:\2/\3.git",
          r"\2"),
    # https://example.com/bob/dots(.git)
    _rule(r"(https?://)([-.0-9A-Za-z]+)/([-0-9A-Za-z]+)/([-0-9A-Za-z]+)(\.git)?",
          r"\1\2/\3/\4.git",
          r"git@\2:\3/\4.git",
          r"\3"),
    # sr.ht/~carol
    _rule(r"sr\.ht/~([a-z_][a-z0-9_-]+)",
          rf"https://git.sr.ht/~\1/{DEFAULT_REPO_NAME}",
          rf"git@git.sr.ht:~\1/{DEFAULT_REPO_NAME}",
          r"\1"),
    # sr.ht/~carol/dots
    _rule(r"sr\.ht/~([a-z_][a-z0-9_-]+)/([-0-9A-Za-z]+)",
          r"https://git.sr.ht/~\1/\2",
          r"git@git.sr.ht:~\1/\2",
          r"\1"),
)


def guess_repo_url(arg: str, ssh: bool,
                   rules: tuple[GuessRule, ...] = GUESS_RULES
                  ) -> ResolvedRepo:
    """Guess the user's username and repo URL from `arg`."""
    skipped = False
    for rule in rules:
        match = rule.pattern.fullmatch(arg)
        if match is None: continue
        if ssh and rule.ssh_template is not None:
            return ResolvedRepo("", match.expand(rule.ssh_template))
        if not ssh and rule.https_template is not None:
            return ResolvedRepo(
                match.expand(rule.username_template),
                match.expand(rule.https_template),
            )
        skipped = True

    if skipped:
        transport = "ssh" if ssh else "https"
        logger.warning("no %s form known for %r; using it verbatim",
                       transport, arg)
    return ResolvedRepo("", arg)


def is_http_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def is_ssh_url(url: str) -> bool:
    """True for ssh:// URLs and scp-like ``user@host:path`` forms."""
    if url.startswith(("ssh://", "git+ssh://", "ssh+git://")):
        return True
    if "://" in url: return False
    # a drive letter is a local path, not a host
    if re.match(r"^[A-Za-z]:[\\/]", url): return False
    return _SCP_LIKE_URL.match(url) is not None
