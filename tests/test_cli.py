"""Tests for the command line entry point (executor replaced by a fake)."""

from __future__ import annotations

import json

import pytest

from unified_board import cli
from unified_board.executor import ToolExecutorError
from unified_board.models import PlatformKind

BASE_ARGS = ["--base-url", "https://api.example.test", "--token", "t"]


@pytest.fixture
def fake(executor, monkeypatch):
    async def _close():
        return None

    executor.close = _close
    monkeypatch.setattr(cli, "HttpToolExecutor", lambda *args, **kwargs: executor)
    return executor


def test_missing_token_fails(monkeypatch):
    monkeypatch.delenv("UNIFIED_BOARD_TOKEN", raising=False)
    assert cli.main(["--base-url", "https://api.example.test", "list"]) == 1


def test_missing_url_fails(monkeypatch):
    monkeypatch.delenv("UNIFIED_BOARD_API_URL", raising=False)
    assert cli.main(["--token", "t", "list"]) == 1


def test_unknown_platform_is_rejected():
    with pytest.raises(SystemExit):
        cli.main(BASE_ARGS + ["move", "monday", "1", "done"])


def test_list_prints_json_board(fake, capsys):
    fake.platforms = [PlatformKind.FLAT_LIST]
    fake.on("asana_task_management", "list", {
        "success": True, "data": {"data": [{"gid": "1", "name": "Write post", "completed": True}]},
    })

    assert cli.main(BASE_ARGS + ["list", "--json"]) == 0

    board = json.loads(capsys.readouterr().out)
    assert list(board) == ["todo", "in_progress", "review", "done"]
    assert [t["id"] for t in board["done"]] == ["1"]


def test_list_reports_platform_errors(fake, tmp_path):
    fake.platforms = [PlatformKind.TICKET_TRACKER]
    fake.on("jira_issue_tracking", "search_issues", {"success": False, "error": "token expired"})
    out = tmp_path / "board.json"

    assert cli.main(BASE_ARGS + ["list", "--output-json", str(out)]) == 1

    board = json.loads(out.read_text())
    assert board["todo"][0]["placeholder"] is True


def test_move_failure_exits_nonzero(fake):
    fake.platforms = [PlatformKind.CARD_BOARD]
    fake.on("trello_project_management", "search_cards", {
        "success": True,
        "data": {"cards": [{"id": "c1", "name": "Card", "listName": "Backlog", "board_id": "b1"}]},
    })
    fake.on("trello_project_management", "get_lists", {
        "success": True,
        "data": {"lists": [{"id": f"l{i}", "name": n} for i, n in enumerate(["Backlog", "Doing", "QA", "Shipped"])]},
    })

    assert cli.main(BASE_ARGS + ["move", "trello", "c1", "done"]) == 1
    assert ("trello_project_management", "update_card") not in fake.ops()


def test_create_resolves_chain_and_creates(fake):
    fake.platforms = [PlatformKind.TICKET_TRACKER]
    fake.on("jira_issue_tracking", "get_projects", {
        "success": True, "data": {"projects": [{"key": "WEB", "name": "Website"}]},
    })
    fake.on("jira_issue_tracking", "create_issue", {"success": True, "data": {"key": "WEB-3"}})
    fake.on("jira_issue_tracking", "search_issues", {"success": True, "data": {"issues": []}})

    code = cli.main(BASE_ARGS + [
        "create", "jira", "--location", "WEB", "--title", "New", "--due", "2024-07-01",
    ])

    assert code == 0
    created = [args for tool, args in fake.calls if args.get("action") == "create_issue"]
    assert created[0]["project_key"] == "WEB"
    assert created[0]["duedate"] == "2024-07-01"


def test_create_with_wrong_depth_fails(fake):
    assert cli.main(BASE_ARGS + ["create", "trello", "--location", "b1", "--title", "x"]) == 1
    assert fake.calls == []


def test_targets_lists_next_level(fake, capsys):
    fake.on("clickup_task_management", "get_teams", {"success": True, "result": {"teams": [{"id": "t1", "name": "Eng"}]}})
    fake.on("clickup_resource_management", "get_spaces", {"success": True, "result": {"spaces": [{"id": "s1", "name": "Product"}]}})

    assert cli.main(BASE_ARGS + ["targets", "clickup", "--select", "t1"]) == 0
    out = capsys.readouterr().out
    assert "space options:" in out
    assert "s1  Product" in out


def test_list_fails_cleanly_when_connections_are_unavailable(fake):
    async def _connections():
        raise ToolExecutorError("GET /connections failed: 503")

    fake.connected_platforms = _connections

    assert cli.main(BASE_ARGS + ["list"]) == 1
