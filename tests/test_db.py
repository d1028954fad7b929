# ==============================================================================
# Tests for Schema Bootstrap
# ==============================================================================
"""
Tests for pixeltrack.utils.db with psycopg2.connect patched out.

Each helper opens its own short-lived connection; the tests check that it is
closed afterwards, on success and on failure.
"""

from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from pixeltrack.utils.db import check_schema_exists, render_schema_sql, reset_schema


@pytest.fixture()
def pg_connect():
    conn = MagicMock()
    cursor = conn.cursor.return_value.__enter__.return_value
    with patch("pixeltrack.utils.db.psycopg2.connect", return_value=conn) as connect:
        yield connect, conn, cursor


class TestRenderSchemaSql:
    def test_schema_name_is_substituted(self):
        sql = render_schema_sql("tenant_a")

        assert "tenant_a" in sql
        assert "tracking_identity_key" in sql


class TestConnectionsAreClosed:
    """Schema helpers close the connection they open."""

    def test_check_schema_exists(self, settings, pg_connect):
        _, conn, cursor = pg_connect
        cursor.fetchone.return_value = (True,)

        assert check_schema_exists(settings) is True
        conn.close.assert_called_once()

    def test_reset_schema(self, settings, pg_connect):
        _, conn, cursor = pg_connect

        reset_schema(settings)

        assert cursor.execute.call_count == 2
        conn.commit.assert_called_once()
        conn.close.assert_called_once()

    def test_reset_schema_failure(self, settings, pg_connect):
        _, conn, cursor = pg_connect
        cursor.execute.side_effect = psycopg2.ProgrammingError("permission denied")

        with pytest.raises(RuntimeError, match="Failed to reset schema"):
            reset_schema(settings)
        conn.close.assert_called_once()
