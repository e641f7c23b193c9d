"""API test fixtures.

Provides an async HTTP client wired to the FastAPI app with the DI container
overridden to use fakes. Available to all colocated API tests under api/.

Pattern:
    1. Override get_container -> returns test_container (all fakes)
    2. Put the container's dispatcher and rate limiter on app.state, as the
       lifespan would (ASGITransport does not run the lifespan)
    3. Test hits the endpoint, asserts on HTTP response + fake state
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from devsocial.api.deps import get_container


@pytest_asyncio.fixture
async def client(test_container):
    """Async HTTP client with faked DI container."""
    from devsocial.main import app

    app.dependency_overrides[get_container] = lambda: test_container
    app.state.dispatcher = test_container.dispatcher
    app.state.rate_limiter = test_container.rate_limiter

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.dispatcher = None
    app.state.rate_limiter = None
