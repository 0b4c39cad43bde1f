"""Shared pytest fixtures"""

import pytest

from promise_mock import PromiseMock, ResolutionEngine


@pytest.fixture(autouse=True)
def reset_assertion_types():
    """Keep the default engine's exception registry empty between tests"""
    PromiseMock.set_assertion_exception_types(None)
    yield
    PromiseMock.set_assertion_exception_types(None)


@pytest.fixture
def engine():
    """Isolated engine with its own exception registry"""
    return ResolutionEngine()


@pytest.fixture
def promise():
    return PromiseMock()
