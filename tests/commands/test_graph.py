"""Tests for the `graph` command group."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from genealogy.cli import cli


def _add(runner: CliRunner, *pairs: tuple[str, str]) -> None:
    for source, target in pairs:
        result = runner.invoke(cli, ["edge", "add", source, target])
        assert result.exit_code == 0, result.output


@pytest.fixture
def family(cli_runner: CliRunner, _isolated_db: None) -> CliRunner:
    _add(
        cli_runner,
        ("p1:P", "s1:S"),
        ("p1:P", "s2:S"),
        ("s1:S", "j1:J"),
        ("s2:S", "j1:J"),
        ("j1:J", "c1:C"),
    )
    return cli_runner


class TestTraversalCommands:
    def test_children_quiet(self, family: CliRunner) -> None:
        result = family.invoke(cli, ["-q", "graph", "children", "p1"])
        assert result.exit_code == 0
        assert sorted(result.stdout.split()) == ["s1", "s2"]

    def test_parents_json(self, family: CliRunner) -> None:
        result = family.invoke(cli, ["--json", "graph", "parents", "j1"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["op"] == "parents"
        assert sorted(item["id"] for item in data["data"]["items"]) == ["s1", "s2"]

    @pytest.mark.parametrize("strategy", ["cte", "bfs", "memory"])
    def test_descendants_per_strategy(self, family: CliRunner, strategy: str) -> None:
        args = ["--json", "--strategy", strategy, "graph", "descendants", "p1"]
        result = family.invoke(cli, args)
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["count"] == 4
        assert sorted(item["id"] for item in data["items"]) == ["c1", "j1", "s1", "s2"]

    def test_ascendants_human(self, family: CliRunner) -> None:
        result = family.invoke(cli, ["graph", "ascendants", "c1"])
        assert result.exit_code == 0
        assert "OK" in result.stdout
        assert "ascendants" in result.stdout
        for node_id in ("j1", "s1", "s2", "p1"):
            assert node_id in result.stdout

    def test_first_of_type(self, family: CliRunner) -> None:
        result = family.invoke(cli, ["-q", "graph", "first-of-type", "p1", "J"])
        assert result.exit_code == 0
        assert result.stdout.split() == ["j1"]

    def test_unknown_node_is_empty(self, family: CliRunner) -> None:
        result = family.invoke(cli, ["--json", "graph", "descendants", "ghost"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["count"] == 0

    def test_timeout_fails(self, family: CliRunner) -> None:
        result = family.invoke(cli, ["graph", "descendants", "p1", "--timeout", "0.000000001"])
        assert result.exit_code == 1
        assert "Deadline exceeded" in result.output

    def test_config_timeout_used(self, family: CliRunner) -> None:
        with open("genealogy.toml", "w", encoding="utf-8") as fh:
            fh.write("[traversal]\ntimeout_seconds = 0.000000001\n")
        result = family.invoke(cli, ["--json", "graph", "descendants", "p1"])
        assert result.exit_code == 1
        assert '"code": "TIMEOUT"' in result.output


class TestGraphHelp:
    def test_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["graph", "--examples"])
        assert result.exit_code == 0
        assert "genealogy graph first-of-type p1 J" in result.output

    def test_command_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["graph", "descendants", "--examples"])
        assert result.exit_code == 0
        assert "Examples for" in result.output

    def test_help_lists_commands(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["graph", "--help"])
        assert result.exit_code == 0
        for name in ("children", "parents", "descendants", "ascendants", "first-of-type"):
            assert name in result.output
