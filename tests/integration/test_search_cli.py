"""Integration tests for the search and explain commands through the CLI group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from outliner import __version__
from outliner.cli import cli


def _run(sample_config: Path, *args: str) -> Result:
    runner = CliRunner()
    return runner.invoke(cli, ["--config", str(sample_config), "--no-pager", *args])


def _ids(result: Result) -> list[str]:
    return [line for line in result.stdout.splitlines() if line]


# ---------------------------------------------------------------------------
# Group
# ---------------------------------------------------------------------------


class TestGroup:
    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_command(self, sample_config: Path) -> None:
        result = _run(sample_config, "help", "search")
        assert result.exit_code == 0
        assert "--format" in result.output

    def test_help_unknown_command(self, sample_config: Path) -> None:
        result = _run(sample_config, "help", "nope")
        assert result.exit_code == 1

    def test_commands_registered(self) -> None:
        assert {"search", "explain", "init-config"} <= set(cli.commands)

    def test_invalid_config_exits(self, temp_dir: Path) -> None:
        config_path = temp_dir / "broken.toml"
        config_path.write_text("not [ toml")
        result = CliRunner().invoke(cli, ["--config", str(config_path), "search", "x"])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


class TestSearchCommand:
    def test_default_format_from_config(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "@type=task")
        assert result.exit_code == 0
        assert _ids(result) == ["wire", "copy", "seeds"]

    def test_query_arguments_are_joined(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "--", "@type=task", "-@status=done")
        assert result.exit_code == 0
        assert _ids(result) == ["copy", "seeds"]

    def test_limit(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "--limit", "2", "@type=task")
        assert _ids(result) == ["wire", "copy"]

    def test_no_results_exit_zero(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "zebra")
        assert result.exit_code == 0
        assert "No results" in result.output

    def test_no_results_quiet(self, sample_config: Path) -> None:
        result = _run(sample_config, "-q", "search", "zebra")
        assert result.exit_code == 0
        assert result.stdout == ""

    def test_syntax_error(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "d:>")
        assert result.exit_code == 1
        assert "Invalid search query" in result.output

    def test_lenient_falls_back_to_text(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "--lenient", "d:>")
        assert result.exit_code == 0
        assert "No results" in result.output

    def test_missing_outline(self, sample_config: Path, temp_dir: Path) -> None:
        result = _run(
            sample_config, "--outline", str(temp_dir / "missing.json"), "search", "x"
        )
        assert result.exit_code == 2

    def test_outline_override(self, sample_config: Path, temp_dir: Path) -> None:
        other = temp_dir / "other.json"
        other.write_text(json.dumps({"items": [{"id": "solo", "text": "meeting"}]}))
        result = _run(sample_config, "--outline", str(other), "search", "meeting")
        assert _ids(result) == ["solo"]

    def test_unknown_field(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "--fields", "id,colour", "x")
        assert result.exit_code == 1
        assert "Unknown field" in result.output

    def test_json_output(self, sample_config: Path) -> None:
        result = _run(
            sample_config, "search", "-f", "json", "-F", "id,depth,path", "@status=done"
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {"id": "wire", "depth": 2, "path": "Projects > Website redesign"}
        ]

    def test_jsonl_output(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "-f", "jsonl", "-F", "id,tags", "meeting")
        records = [json.loads(line) for line in result.stdout.splitlines()]
        assert records == [
            {"id": "wire_note", "tags": []},
            {"id": "inbox", "tags": ["inbox"]},
        ]

    def test_fields_output(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "-f", "fields", "-F", "id,depth,children", "d:0")
        assert result.stdout.splitlines() == ["root\t0\t2", "inbox\t0\t0"]

    def test_table_output(self, sample_config: Path) -> None:
        result = _run(sample_config, "--no-color", "search", "-f", "table", "meeting")
        assert result.exit_code == 0
        assert "Feedback from meeting" in result.stdout
        assert "Inbox meeting notes" in result.stdout
        assert "Search: meeting (2 results)" in result.stdout

    def test_now_override(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "--now", "2025-11-10", "@due<-7d")
        assert _ids(result) == ["wire"]

    def test_quick_uses_config_limit(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "--quick", "")
        assert _ids(result) == ["root", "web", "wire"]

    def test_quick_tolerates_syntax_errors(self, sample_config: Path) -> None:
        result = _run(sample_config, "search", "--quick", "d:>")
        assert result.exit_code == 0
        assert "showing text matches" in result.output

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("p:@type=project @type=task", ["wire", "copy"]),
            ("a:@status=active", ["wire", "wire_note", "copy"]),
            ("child:@status=done", ["web"]),
            ("desc:@status=done", ["root", "web"]),
            ("sib:@type=area", ["web"]),
            ("ref:web", ["seeds"]),
            ("~wrfrm", ["wire"]),
        ],
    )
    def test_structural_queries(self, sample_config: Path, query: str, expected: list[str]) -> None:
        result = _run(sample_config, "search", query)
        assert result.exit_code == 0
        assert _ids(result) == expected


# ---------------------------------------------------------------------------
# explain
# ---------------------------------------------------------------------------


class TestExplainCommand:
    def test_parse_only(self, sample_config: Path) -> None:
        result = _run(sample_config, "explain", "@type=task -@status=done")
        assert result.exit_code == 0
        assert "Parsed expression:" in result.stdout
        assert "Normalized query:" in result.stdout

    def test_parse_only_needs_no_outline(self, sample_config: Path, temp_dir: Path) -> None:
        result = _run(sample_config, "--outline", str(temp_dir / "missing.json"), "explain", "x")
        assert result.exit_code == 0

    def test_syntax_error(self, sample_config: Path) -> None:
        result = _run(sample_config, "explain", "(x")
        assert result.exit_code == 1

    def test_match(self, sample_config: Path) -> None:
        result = _run(sample_config, "--no-color", "explain", "--node", "wire", "@type=task")
        assert result.exit_code == 0
        assert "MATCH" in result.stdout
        assert "NO MATCH" not in result.stdout
        assert "Draft wireframes" in result.stdout

    def test_no_match(self, sample_config: Path) -> None:
        result = _run(sample_config, "--no-color", "explain", "-n", "wire", "@status=todo")
        assert result.exit_code == 0
        assert "NO MATCH" in result.stdout

    def test_plain_trace(self, sample_config: Path) -> None:
        result = _run(
            sample_config, "explain", "--plain", "-n", "wire", "@type=task -@status=done"
        )
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert "[-] (and attr(type=task) (not attr(status=done))): right condition fails" in lines
        assert "  [+] attr(type=task): attribute 'type' = 'task' satisfies ='task'" in lines
        assert "Node wire" not in result.stdout

    def test_unknown_node(self, sample_config: Path) -> None:
        result = _run(sample_config, "explain", "--node", "nope", "x")
        assert result.exit_code == 2
        assert "Node not found" in result.output
