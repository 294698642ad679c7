"""Unit tests for output, prompts and default locations."""


from argparse import Namespace
from unittest.mock import patch
from pathlib import Path
import tempfile
import unittest
import os

from dotinit import _constants as const
from dotinit import utils


class PrompterTests(unittest.TestCase):
    def setUp(self) -> None:
        transmit = patch("dotinit.utils.transmit")
        self.transmit = transmit.start()
        self.addCleanup(transmit.stop)

    def test_read_string_returns_answer(self) -> None:
        with patch("builtins.input", return_value="  bob "):
            answer = utils.TerminalPrompter().read_string("Username? ", "alice")
        self.assertEqual(answer, "bob")

    def test_read_string_empty_answer_keeps_default(self) -> None:
        with patch("builtins.input", return_value=""):
            answer = utils.TerminalPrompter().read_string("Username? ", "alice")
        self.assertEqual(answer, "alice")
        shown = self.transmit.call_args.args[0]
        self.assertIn("[alice]", shown)

    def test_read_password_does_not_echo(self) -> None:
        with patch("dotinit.utils.getpass.getpass", return_value="pw") as gp:
            with patch("builtins.input") as plain:
                answer = utils.TerminalPrompter().read_password("Password? ")
        self.assertEqual(answer, "pw")
        gp.assert_called_once()
        plain.assert_not_called()

    def test_interrupts_propagate(self) -> None:
        for exc in (KeyboardInterrupt, EOFError):
            with self.subTest(exc=exc.__name__):
                with patch("builtins.input", side_effect=exc):
                    with self.assertRaises(exc):
                        utils.TerminalPrompter().read_string("Username? ")


class OutputTests(unittest.TestCase):
    def test_default_quiet_follows_runtime_flag(self) -> None:
        self.addCleanup(const.sync_runtime_flags, Namespace())
        const.sync_runtime_flags(Namespace(quiet=True))
        self.assertTrue(utils.Output().quiet)
        self.assertTrue(utils.TerminalPrompter().out.quiet)
        const.sync_runtime_flags(Namespace(quiet=False))
        self.assertFalse(utils.Output().quiet)
        self.assertTrue(utils.Output(quiet=True).quiet)

    def test_quiet_suppresses_info_but_not_warnings(self) -> None:
        with patch("dotinit.utils._transmit") as raw:
            with patch("builtins.print"):
                out = utils.Output(quiet=True)
                out.info("hello")
                out.warn("careful")
        self.assertEqual(raw.call_count, 1)


class LocationTests(unittest.TestCase):
    def test_defaults_follow_xdg(self) -> None:
        env = {"XDG_STATE_HOME": "/s", "XDG_DATA_HOME": "/d"}
        with patch.dict(os.environ, env):
            self.assertEqual(utils.default_log_dir(), Path("/s/dotinit/log"))
            self.assertEqual(utils.default_working_tree(), Path("/d/dotinit"))

    def test_configure_logger_initializes_event_stream(self) -> None:
        from dotinit import telemetry
        with tempfile.TemporaryDirectory() as tmp:
            path = utils.configure_logger(Path(tmp))
            try:
                self.assertEqual(path.name, "debug.log")
                self.assertEqual(telemetry.events_file(),
                                 Path(tmp).resolve() / "events.jsonl")
            finally:
                telemetry.close_event_stream()
                for handler in list(utils.logger.handlers):
                    utils.logger.removeHandler(handler)
                    handler.close()


if __name__ == "__main__":
    unittest.main()
