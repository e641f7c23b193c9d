"""Unit tests for the request-scoped API dependencies."""

from types import SimpleNamespace

import pytest

from devsocial.api.deps import get_logger, get_operation
from devsocial.core.context import OperationContext, OperationKind


def _request(**state):
    return SimpleNamespace(state=SimpleNamespace(**state))


class TestGetOperation:
    def test_returns_context_bound_by_middleware(self):
        ctx = OperationContext(kind=OperationKind.REQUEST, name="http://test/feed")

        assert get_operation(_request(operation=ctx)) is ctx

    def test_missing_context_is_an_error(self):
        with pytest.raises(RuntimeError, match="request isolation"):
            get_operation(_request())


def test_logger_carries_operation_dimensions():
    ctx = OperationContext(kind=OperationKind.REQUEST, name="http://test/feed")

    log = get_logger(ctx)

    assert log is ctx.logger
    assert log.dimensions["operation_id"] == ctx.operation_id
