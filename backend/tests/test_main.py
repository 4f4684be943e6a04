"""Tests for the console entry point."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from app import main as entry
from core.exceptions import CacheError


class TestMain:
    """Tests for main()."""

    @pytest.mark.parametrize(
        "error",
        [CacheError("Redis XREAD quotes failed: connection reset"), RuntimeError("Redis not reachable")],
    )
    def test_fatal_errors_exit_with_status_1(self, error):
        """Engine and wiring errors end the process with a logged exit."""
        with patch.object(entry, "get_settings", return_value=MagicMock()), \
             patch.object(entry, "run", AsyncMock(side_effect=error)), \
             patch.object(entry.logger, "error") as log_error:
            with pytest.raises(SystemExit) as exc_info:
                entry.main()

        assert exc_info.value.code == 1
        assert type(error).__name__ in log_error.call_args.args[0]

    def test_clean_finish(self):
        """A run that returns normally does not exit with an error."""
        with patch.object(entry, "get_settings", return_value=MagicMock()), \
             patch.object(entry, "run", AsyncMock(return_value=None)):
            entry.main()
