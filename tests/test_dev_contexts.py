"""Tests for the dev_contexts vector search and dev_apps scope registry."""

from unittest.mock import MagicMock, patch

import pytest

from devctx.core.errors import BackendQueryError, ConfigurationError
from devctx.db.dev_apps import is_active_scope, list_active_scopes
from devctx.db.dev_contexts import SearchResult, search_dev_contexts, serialize_embedding


def test_serialize_embedding():
    assert serialize_embedding([0.5, -1.0, 0.25]) == "[0.5,-1.0,0.25]"


def test_search_calls_match_rpc():
    rows = [
        {
            "id": 7,
            "app": "rac",
            "scope": "architecture",
            "title": "RAC Stack",
            "path": "apps/rac/README.md",
            "content": "React + Vite",
            "distance": 0.12,
        }
    ]

    with patch("devctx.db.dev_contexts.get_supabase") as mock_supabase:
        mock_supabase.return_value.rpc.return_value.execute.return_value = MagicMock(data=rows)

        results = search_dev_contexts([0.1, 0.2], ["rac", "global"], ["architecture"], 2)

        mock_supabase.return_value.rpc.assert_called_once_with(
            "match_dev_contexts",
            {
                "query_embedding": "[0.1,0.2]",
                "match_apps": ["rac", "global"],
                "match_scopes": ["architecture"],
                "match_count": 2,
            },
        )

    assert results == [
        SearchResult(
            id=7,
            application="rac",
            category="architecture",
            title="RAC Stack",
            path="apps/rac/README.md",
            content="React + Vite",
            distance=0.12,
        )
    ]


def test_search_without_categories_sends_null_filter():
    with patch("devctx.db.dev_contexts.get_supabase") as mock_supabase:
        mock_supabase.return_value.rpc.return_value.execute.return_value = MagicMock(data=None)

        assert search_dev_contexts([0.1], ["global"], []) == []

        params = mock_supabase.return_value.rpc.call_args[0][1]
        assert params["match_scopes"] is None


def test_search_failure_mentions_rpc():
    with patch("devctx.db.dev_contexts.get_supabase") as mock_supabase:
        mock_supabase.return_value.rpc.return_value.execute.side_effect = Exception(
            "function match_dev_contexts does not exist"
        )

        with pytest.raises(BackendQueryError, match="Make sure the RPC function"):
            search_dev_contexts([0.1], ["global"])


def test_search_uses_injected_rpc_name():
    from devctx.core.config import Settings

    custom = Settings(MATCH_RPC_NAME="match_docs")

    with patch("devctx.db.dev_contexts.get_supabase") as mock_supabase:
        mock_supabase.return_value.rpc.return_value.execute.return_value = MagicMock(data=[])

        search_dev_contexts([0.1], ["global"], settings=custom)

        assert mock_supabase.return_value.rpc.call_args[0][0] == "match_docs"


def test_search_missing_configuration(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)

    with pytest.raises(ConfigurationError) as exc_info:
        search_dev_contexts([0.1], ["global"])

    assert exc_info.value.missing == ["SUPABASE_URL"]


def test_is_active_scope():
    with patch("devctx.db.dev_apps.get_supabase") as mock_supabase:
        chain = mock_supabase.return_value.table.return_value.select.return_value
        chain.eq.return_value.eq.return_value.limit.return_value.execute.return_value = MagicMock(
            data=[{"key": "rac", "is_active": True}]
        )

        assert is_active_scope("rac") is True
        mock_supabase.return_value.table.assert_called_with("dev_apps")
        chain.eq.assert_called_with("key", "rac")


def test_is_active_scope_unknown():
    with patch("devctx.db.dev_apps.get_supabase") as mock_supabase:
        chain = mock_supabase.return_value.table.return_value.select.return_value
        chain.eq.return_value.eq.return_value.limit.return_value.execute.return_value = MagicMock(
            data=[]
        )

        assert is_active_scope("mobile") is False


def test_is_active_scope_backend_error():
    with patch("devctx.db.dev_apps.get_supabase") as mock_supabase:
        mock_supabase.return_value.table.side_effect = Exception("connection refused")

        with pytest.raises(BackendQueryError, match="Failed to validate scope 'rac'"):
            is_active_scope("rac")


def test_list_active_scopes():
    with patch("devctx.db.dev_apps.get_supabase") as mock_supabase:
        chain = mock_supabase.return_value.table.return_value.select.return_value
        chain.eq.return_value.execute.return_value = MagicMock(
            data=[{"key": "global"}, {"key": "rac"}, {"key": "partners"}]
        )

        assert list_active_scopes() == ["global", "rac", "partners"]
