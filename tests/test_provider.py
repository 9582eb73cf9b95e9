import asyncio
import os
import threading
import unittest
from unittest.mock import patch

import pytest

from config.models import GeminiConfig
from core.contracts.models import AIRequest
from core.llm.providers.echo import EchoProvider
from core.llm.providers.gemini import GeminiCLIProvider
from core.llm.router import get_provider
from utils.errors import ProviderError
from utils.shell import ShellResult

VERSION_OK = ShellResult(stdout="0.1.13\n", stderr="", exit_code=0)


class TestGeminiCLIProvider(unittest.TestCase):

    def setUp(self):
        self.config = GeminiConfig(model="gemini-2.5-pro", api_key="test-key", timeout_sec=120)
        self.request = AIRequest(
            prompt="Review the changes.",
            model="gemini-2.5-flash",
            environment={"REVIEW_FILES": "a.ts,b.ts", "OUTPUT_FILE": "/repo/review.md"},
            cwd="/repo",
        )

    @patch("core.llm.providers.gemini.execute", return_value=VERSION_OK)
    def test_check_availability(self, mock_execute):
        provider = GeminiCLIProvider(self.config)

        self.assertEqual(provider.check_availability(), "0.1.13")
        mock_execute.assert_called_once_with(["gemini", "--version"], timeout=30)

    @patch("core.llm.providers.gemini.execute")
    def test_check_availability_missing_binary(self, mock_execute):
        mock_execute.return_value = ShellResult(stderr="No such file or directory: 'gemini'", exit_code=-1)

        with self.assertRaises(ProviderError) as cm:
            GeminiCLIProvider(self.config).check_availability()
        self.assertIn("npm install -g @google/gemini-cli", str(cm.exception))

    def test_build_command(self):
        config = GeminiConfig(yolo=False, extra_args=["--sandbox"])
        self.assertEqual(
            GeminiCLIProvider(config).build_command("gemini-2.5-flash"),
            ["gemini", "-m", "gemini-2.5-flash", "--sandbox"],
        )

    @patch.dict(os.environ, {"PATH": "/usr/bin"}, clear=True)
    @patch("core.llm.providers.gemini.execute")
    def test_run(self, mock_execute):
        mock_execute.side_effect = [VERSION_OK, ShellResult(stdout="  Review done.\n", exit_code=0)]

        output = asyncio.run(GeminiCLIProvider(self.config).run(self.request))

        self.assertEqual(output, "Review done.")
        self.assertEqual(mock_execute.call_count, 2)
        args, kwargs = mock_execute.call_args
        self.assertEqual(args[0], ["gemini", "-m", "gemini-2.5-flash", "--yolo"])
        self.assertEqual(kwargs["input"], "Review the changes.")
        self.assertEqual(kwargs["cwd"], "/repo")
        self.assertEqual(kwargs["timeout"], 120)
        env = kwargs["env"]
        self.assertEqual(env["REVIEW_FILES"], "a.ts,b.ts")
        self.assertEqual(env["OUTPUT_FILE"], "/repo/review.md")
        self.assertEqual(env["GEMINI_API_KEY"], "test-key")
        self.assertEqual(env["GEMINI_MODEL"], "gemini-2.5-flash")
        self.assertEqual(env["PATH"], "/usr/bin")

        # The request environment only reaches the child process
        self.assertNotIn("REVIEW_FILES", os.environ)
        self.assertNotIn("GEMINI_API_KEY", os.environ)

    @patch("core.llm.providers.gemini.execute")
    def test_run_failure(self, mock_execute):
        mock_execute.side_effect = [VERSION_OK, ShellResult(stderr="quota exceeded\n", exit_code=1)]

        with self.assertRaises(ProviderError) as cm:
            asyncio.run(GeminiCLIProvider(self.config).run(self.request))
        self.assertIn("quota exceeded", str(cm.exception))
        self.assertIn("code 1", str(cm.exception))

    @patch("core.llm.providers.gemini.execute")
    def test_run_checks_availability_once(self, mock_execute):
        mock_execute.side_effect = [VERSION_OK, ShellResult(stdout="one", exit_code=0), ShellResult(stdout="two", exit_code=0)]
        provider = GeminiCLIProvider(self.config)

        asyncio.run(provider.run(self.request))
        asyncio.run(provider.run(self.request))

        self.assertEqual(mock_execute.call_count, 3)

    @patch("core.llm.providers.gemini.execute")
    def test_run_keeps_subprocesses_off_the_event_loop_thread(self, mock_execute):
        threads = []

        def record_thread(*args, **kwargs):
            threads.append(threading.get_ident())
            return VERSION_OK if args[0] == ["gemini", "--version"] else ShellResult(stdout="ok", exit_code=0)

        mock_execute.side_effect = record_thread

        asyncio.run(GeminiCLIProvider(self.config).run(self.request))

        self.assertEqual(len(threads), 2)
        self.assertNotIn(threading.get_ident(), threads)


@pytest.mark.asyncio
async def test_echo_provider_returns_prompt():
    request = AIRequest(prompt="  rendered prompt\n")
    assert await EchoProvider(GeminiConfig()).run(request) == "rendered prompt"


@pytest.mark.asyncio
async def test_gemini_run_without_api_key_keeps_inherited_key():
    provider = GeminiCLIProvider(GeminiConfig(api_key=None))
    provider._available = True
    with patch.dict(os.environ, {"GEMINI_API_KEY": "from-shell"}), \
            patch("core.llm.providers.gemini.execute", return_value=ShellResult(stdout="ok", exit_code=0)) as mock_execute:
        assert await provider.run(AIRequest(prompt="p")) == "ok"
    env = mock_execute.call_args.kwargs["env"]
    assert env["GEMINI_API_KEY"] == "from-shell"
    assert env["GEMINI_MODEL"] == "gemini-2.5-pro"


class TestRouter(unittest.TestCase):

    def test_get_provider_from_config(self):
        self.assertIsInstance(get_provider(GeminiConfig()), GeminiCLIProvider)

    def test_get_provider_by_name(self):
        self.assertIsInstance(get_provider(GeminiConfig(), name="echo"), EchoProvider)

    def test_unknown_provider(self):
        with self.assertRaises(ProviderError):
            get_provider(GeminiConfig(provider="nonexistent"))


if __name__ == "__main__":
    unittest.main()
