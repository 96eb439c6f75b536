"""Unit tests for the command-line entry point."""

from unittest.mock import AsyncMock, patch

import pytest

from ghtranscript.config import Settings
import ghtranscript.main
from ghtranscript.main import build_parser, main, resolve_settings
from ghtranscript.services.github import InvalidResourceURL
from ghtranscript.services.transcript import TranscriptError

URL = "https://github.com/octo/hello/issues/5"


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("ghtranscript.main.setup_logging") as mock_setup:
        yield mock_setup


class TestResolveSettings:
    def test_no_flags_keeps_base(self):
        base = Settings(_env_file=None)
        args = build_parser().parse_args([URL])

        assert resolve_settings(args, base) is base

    def test_flags_override(self):
        base = Settings(_env_file=None)
        args = build_parser().parse_args([URL, "--diff-threshold", "50", "--scratch-dir", "/tmp/x"])

        config = resolve_settings(args, base)

        assert config.diff_threshold == 50
        assert config.scratch_root == "/tmp/x"
        assert base.diff_threshold == 800


class TestMain:
    def test_prints_document(self, capsys):
        with patch("ghtranscript.main.render_document", new=AsyncMock(return_value="# Doc\n")) as mock_render:
            code = main([URL])

        assert code == 0
        assert capsys.readouterr().out == "# Doc\n"
        assert mock_render.await_args.args == (URL,)

    def test_verbose_flag_enables_debug_logging(self, no_logging_setup):
        with patch("ghtranscript.main.render_document", new=AsyncMock(return_value="")):
            main([URL, "--verbose"])

        no_logging_setup.assert_called_once_with(True)

    def test_transcript_error_exits_1(self, capsys):
        render = AsyncMock(side_effect=TranscriptError("Gave up"))
        with patch("ghtranscript.main.render_document", new=render):
            code = main([URL])

        assert code == 1
        assert capsys.readouterr().out == ""

    def test_invalid_url_exits_2(self):
        render = AsyncMock(side_effect=InvalidResourceURL("Not a GitHub issue or pull request URL"))
        with patch("ghtranscript.main.render_document", new=render):
            assert main(["https://example.com"]) == 2


class TestModule:
    def test_has_module_docstring(self):
        assert ghtranscript.main.__doc__
        assert "stdout" in ghtranscript.main.__doc__
