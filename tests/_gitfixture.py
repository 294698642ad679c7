"""Deterministic helpers for local git integration tests."""
from __future__ import annotations

from pathlib import Path
import subprocess
import tempfile


class GitFixture:
    def __init__(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def close(self) -> None:
        self._tmp.cleanup()

    def run(self, args: list[str], cwd: Path | None = None,
            check: bool = True) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            check=check,
            capture_output=True,
            text=True,
        )

    def init_repo(self, name: str) -> Path:
        path = self.root / name
        path.mkdir(parents=True, exist_ok=True)
        self.run(["init", str(path)])
        self.run(["config", "user.name", "Fixture"], cwd=path)
        self.run(["config", "user.email", "fixture@example.com"], cwd=path)
        return path

    def write_file(self, repo: Path, rel: str, text: str) -> None:
        path = repo / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def commit_all(self, repo: Path, message: str) -> None:
        self.run(["add", "-A"], cwd=repo)
        self.run(["commit", "-m", message], cwd=repo)

    def dotfiles_source(self, name: str = "dotfiles") -> Path:
        """A non-bare repository holding one committed dotfile."""
        repo = self.init_repo(name)
        self.write_file(repo, "dot_bashrc", "export EDITOR=vi\n")
        self.commit_all(repo, "add bashrc")
        return repo
