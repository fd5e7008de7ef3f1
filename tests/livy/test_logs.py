"""Tests for session log paging."""

from __future__ import annotations

from unittest.mock import AsyncMock, call

import pytest
from fakes import RecordingSink, make_session

from livyctl.livy.session_manager import SessionManager
from livyctl.shared.exceptions import NoActiveSessionError
from livyctl.shared.models import LogPage


def _page(from_: int, lines: list[str], total: int) -> LogPage:
    return LogPage.model_validate({"id": 1, "from": from_, "size": len(lines), "total": total, "log": lines})


@pytest.fixture
async def manager(mock_client: AsyncMock, sink: RecordingSink) -> SessionManager:
    manager = SessionManager(mock_client, output=sink, log_page_size=3)
    mock_client.get_session.return_value = make_session(1, "idle")
    await manager.connect_to_existing(1)
    return manager


class TestLogs:
    async def test_get_logs_from_offset(
        self, manager: SessionManager, mock_client: AsyncMock, sink: RecordingSink
    ) -> None:
        mock_client.get_logs.return_value = _page(5, ["x", "y"], 20)

        page = await manager.get_logs(from_=5, size=2)

        mock_client.get_logs.assert_awaited_once_with(1, 5, 2)
        assert page.log == ("x", "y")
        assert sink.lines[-2:] == ["--- Logs (from=5, total=20) ---", "x\ny"]

    async def test_next_advances_cursor(self, manager: SessionManager, mock_client: AsyncMock) -> None:
        mock_client.get_logs.side_effect = [_page(0, ["a", "b", "c"], 5), _page(3, ["d", "e"], 5)]

        await manager.next_logs()
        assert manager.log_offset == 3
        await manager.next_logs()

        assert manager.log_offset == 5
        assert mock_client.get_logs.await_args_list == [call(1, 0, 3), call(1, 3, 3)]

    async def test_cursor_reset_on_connect(self, manager: SessionManager, mock_client: AsyncMock) -> None:
        mock_client.get_logs.return_value = _page(0, ["a", "b"], 2)
        await manager.next_logs()
        assert manager.log_offset == 2

        mock_client.get_session.return_value = make_session(2, "idle")
        await manager.connect_to_existing(2)

        assert manager.log_offset == 0

    async def test_tail_reads_total_first(self, manager: SessionManager, mock_client: AsyncMock) -> None:
        mock_client.get_logs.side_effect = [_page(0, ["first"], 100), _page(90, ["l"] * 10, 100)]

        page = await manager.tail_logs(10)

        assert mock_client.get_logs.await_args_list == [call(1, 0, 1), call(1, 90, 10)]
        assert page.from_ == 90

    async def test_tail_short_log(self, manager: SessionManager, mock_client: AsyncMock) -> None:
        mock_client.get_logs.side_effect = [_page(0, ["a"], 2), _page(0, ["a", "b"], 2)]

        await manager.tail_logs()

        assert mock_client.get_logs.await_args_list[1] == call(1, 0, 3)

    async def test_requires_session(self, mock_client: AsyncMock) -> None:
        with pytest.raises(NoActiveSessionError):
            await SessionManager(mock_client).next_logs()
