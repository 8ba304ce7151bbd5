"""Root conftest: load .env.tests and route structlog through stdlib logging."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from shared.logging import _unwrap_enums

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")


def _configure_test_structlog() -> None:
    # stdlib routing keeps caplog working; no renderer, records stay event dicts
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _unwrap_enums,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


_configure_test_structlog()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Keep room/player context from leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def _restore_test_structlog():
    """Undo any setup_logging() call a test made."""
    yield
    _configure_test_structlog()
