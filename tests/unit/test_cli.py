"""Tests for the command line entry point."""

from click.testing import CliRunner

from gitlab_mcp_bridge import __version__, main
from gitlab_mcp_bridge._version import BUILD_DATE


def test_version():
    result = CliRunner().invoke(main, ["version"])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0] == f"GitLab MCP version: {__version__} ({BUILD_DATE})"
    assert lines[1] == ""
    assert lines[2:] == [
        "Copyright 2025 The gitlab-mcp-bridge authors.",
        "Released under the MIT License.",
    ]
    assert "http" not in result.output


def test_help_lists_transport_options():
    result = CliRunner().invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "--transport" in result.output
    assert "--read-only" in result.output
