"""Tests for the cascading resource resolver."""

from __future__ import annotations

import asyncio

import pytest

from unified_board.adapters.clickup import FOLDERLESS_ID, ClickUpAdapter
from unified_board.adapters.jira import JiraAdapter
from unified_board.adapters.trello import TrelloAdapter
from unified_board.executor import ToolExecutorError
from unified_board.models import ResourceKind
from unified_board.resolver import ResourceResolver

TASKS = "clickup_task_management"
RESOURCES = "clickup_resource_management"


def _ok(key, *items):
    return {"success": True, "result": {key: [{"id": i, "name": i.upper()} for i in items]}}


@pytest.fixture
def clickup(executor):
    executor.on(TASKS, "get_teams", _ok("teams", "t1", "t2"))
    executor.on(RESOURCES, "get_spaces", lambda args: _ok("spaces", f"{args['team_id']}-s1"))
    executor.on(RESOURCES, "get_folders", _ok("folders", "f1"))
    executor.on(RESOURCES, "get_lists", _ok("lists", "folder-list"))
    executor.on(RESOURCES, "get_folderless_lists", _ok("lists", "loose-list"))
    return ResourceResolver(ClickUpAdapter(executor))


def _select_all(resolver, *ids):
    async def _go():
        await resolver.open()
        for index, node_id in enumerate(ids):
            await resolver.select(index, node_id)
    asyncio.run(_go())


def test_levels_follow_platform_chain(executor):
    assert [lvl.kind for lvl in ResourceResolver(JiraAdapter(executor)).levels] == [ResourceKind.PROJECT]
    assert [lvl.kind for lvl in ResourceResolver(TrelloAdapter(executor)).levels] == [
        ResourceKind.BOARD, ResourceKind.LIST,
    ]
    assert [lvl.kind for lvl in ResourceResolver(ClickUpAdapter(executor)).levels] == [
        ResourceKind.TEAM, ResourceKind.SPACE, ResourceKind.FOLDER, ResourceKind.LIST,
    ]


def test_open_only_fetches_top_level(clickup, executor):
    options = asyncio.run(clickup.open())

    assert [n.id for n in options] == ["t1", "t2"]
    assert executor.ops() == [(TASKS, "get_teams")]
    assert clickup.options(1) == []


def test_full_chain_through_real_folder(clickup, executor):
    _select_all(clickup, "t1", "t1-s1", "f1", "folder-list")

    chain = clickup.chain()
    assert [n.id for n in chain] == ["t1", "t1-s1", "f1", "folder-list"]
    assert (RESOURCES, "get_lists") in executor.ops()
    assert (RESOURCES, "get_folderless_lists") not in executor.ops()


def test_folder_level_has_no_folder_option(clickup):
    _select_all(clickup, "t1", "t1-s1")
    folders = clickup.options(2)
    assert folders[0].id == FOLDERLESS_ID
    assert [f.id for f in folders[1:]] == ["f1"]


def test_no_folder_routes_to_folderless_lists(clickup, executor):
    _select_all(clickup, "t1", "t1-s1", FOLDERLESS_ID)

    assert [n.id for n in clickup.options(3)] == ["loose-list"]
    assert executor.calls[-1] == (
        RESOURCES, {"operation": "get_folderless_lists", "space_id": "t1-s1"},
    )
    assert (RESOURCES, "get_lists") not in executor.ops()


def test_new_top_level_selection_clears_descendants(clickup):
    _select_all(clickup, "t1", "t1-s1", "f1", "folder-list")

    spaces = asyncio.run(clickup.select(0, "t2"))

    assert [n.id for n in spaces] == ["t2-s1"]
    assert clickup.levels[1].selected is None
    for level in clickup.levels[2:]:
        assert level.options == []
        assert level.selected is None
    assert clickup.chain() is None


def test_clearing_a_selection_stops_the_cascade(clickup, executor):
    _select_all(clickup, "t1")
    calls_before = len(executor.calls)

    assert asyncio.run(clickup.select(0, "")) == []

    assert clickup.levels[0].selected is None
    assert clickup.options(1) == []
    assert len(executor.calls) == calls_before


def test_failed_fetch_leaves_level_empty_and_stops(executor):
    executor.on(TASKS, "get_teams", _ok("teams", "t1"))
    executor.on(RESOURCES, "get_spaces", ToolExecutorError("502 Bad Gateway"))
    resolver = ResourceResolver(ClickUpAdapter(executor))

    _select_all(resolver, "t1")

    level = resolver.levels[1]
    assert level.options == []
    assert not level.loading
    assert "502" in level.error
    assert resolver.options(2) == []
    with pytest.raises(ValueError):
        asyncio.run(resolver.select(1, "t1-s1"))


def test_reselecting_parent_retries_after_failure(executor):
    executor.on(TASKS, "get_teams", _ok("teams", "t1"))
    executor.on(RESOURCES, "get_spaces", ToolExecutorError("502 Bad Gateway"))
    resolver = ResourceResolver(ClickUpAdapter(executor))
    _select_all(resolver, "t1")

    executor.on(RESOURCES, "get_spaces", _ok("spaces", "s1"))
    spaces = asyncio.run(resolver.select(0, "t1"))

    assert [n.id for n in spaces] == ["s1"]
    assert resolver.levels[1].error is None


def test_loaded_levels_are_cached(clickup, executor):
    _select_all(clickup, "t1")
    asyncio.run(clickup.select(0, "t2"))
    asyncio.run(clickup.select(0, "t1"))

    assert executor.ops().count((RESOURCES, "get_spaces")) == 2
    assert [n.id for n in clickup.options(1)] == ["t1-s1"]


def test_card_board_two_levels(executor):
    executor.on("trello_project_management", "get_boards", {
        "success": True, "data": {"boards": [{"id": "b1", "name": "Launch"}]},
    })
    executor.on("trello_project_management", "get_lists", {
        "success": True, "data": {"lists": [{"id": "l1", "name": "To Do"}]},
    })
    resolver = ResourceResolver(TrelloAdapter(executor))

    _select_all(resolver, "b1", "l1")

    assert [n.kind for n in resolver.chain()] == [ResourceKind.BOARD, ResourceKind.LIST]


def test_unknown_option_is_rejected(clickup):
    asyncio.run(clickup.open())
    with pytest.raises(ValueError):
        asyncio.run(clickup.select(0, "t9"))


def test_level_index_out_of_range(clickup):
    with pytest.raises(IndexError):
        asyncio.run(clickup.select(4, "x"))
