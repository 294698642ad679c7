"""End-to-end bootstrap against local repositories."""
from __future__ import annotations

from unittest.mock import patch
import shutil
import unittest

from dotinit.bootstrap import BootstrapOptions, bootstrap
from dotinit.builtin_git import BuiltinGit
from dotinit.gitutils import ExternalGit
from dotinit.models import WorkingTreeState
from dotinit.utils import Output

from tests._gitfixture import GitFixture


@unittest.skipUnless(shutil.which("git"), "git executable required")
class BootstrapIntegrationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.fx = GitFixture()
        self.addCleanup(self.fx.close)
        self.source = self.fx.dotfiles_source()
        transmit = patch("dotinit.utils.transmit")
        transmit.start()
        self.addCleanup(transmit.stop)

    def _run(self, backend: object, **kwargs: object) -> WorkingTreeState:
        opts = BootstrapOptions(working_tree=self.fx.root / "home" / "source",
                                **kwargs)  # type: ignore[arg-type]
        return bootstrap(opts, backend, out=Output(quiet=True))  # type: ignore[arg-type]

    def test_external_clone_of_local_repository(self) -> None:
        state = self._run(ExternalGit(), repo=str(self.source),
                          guess_repo_url=False)
        tree = self.fx.root / "home" / "source"
        self.assertIs(state, WorkingTreeState.ABSENT)
        self.assertTrue((tree / ".git").is_dir())
        self.assertEqual((tree / "dot_bashrc").read_text(encoding="utf-8"),
                         "export EDITOR=vi\n")

    def test_builtin_clone_of_local_repository(self) -> None:
        self._run(BuiltinGit(), repo=str(self.source), guess_repo_url=False)
        tree = self.fx.root / "home" / "source"
        self.assertTrue((tree / ".git").is_dir())
        self.assertTrue((tree / "dot_bashrc").is_file())

    def test_second_run_is_a_no_op(self) -> None:
        self._run(ExternalGit(), repo=str(self.source), guess_repo_url=False)
        state = self._run(ExternalGit(), repo=str(self.source),
                          guess_repo_url=False)
        self.assertIs(state, WorkingTreeState.DIRECTORY)

    def test_init_without_repository(self) -> None:
        for backend in (ExternalGit(), BuiltinGit()):
            with self.subTest(backend=backend.name):
                tree = self.fx.root / backend.name
                opts = BootstrapOptions(working_tree=tree)
                bootstrap(opts, backend, out=Output(quiet=True))
                self.assertTrue((tree / ".git").is_dir())


if __name__ == "__main__":
    unittest.main()
