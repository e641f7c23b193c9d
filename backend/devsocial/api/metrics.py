"""Per-process Prometheus sidecar.

Every worker process keeps its own registry, and uvicorn forks several
workers that all read the same ``METRICS_PORT``. Each process therefore
binds the first free port in ``[port, port + port_span)`` and the scraper
targets the whole range. Responses carry the serving process id in
``X-Worker-Pid``.

``refresh`` runs before every scrape to update point-in-time gauges such as
resident memory. A failing refresh is logged and the scrape still answers.
"""

import errno
import os
from typing import Callable, Optional

from aiohttp import web

from devsocial.core.logging import logger
from devsocial.core.protocols.metrics import MetricsRenderer


class MetricsServer:
    """aiohttp server answering ``GET /metrics`` for one worker process."""

    def __init__(
        self,
        renderer: MetricsRenderer,
        port: int,
        host: str = "0.0.0.0",
        *,
        port_span: int = 1,
        refresh: Optional[Callable[[], None]] = None,
    ) -> None:
        if port_span < 1:
            raise ValueError("Metrics port span must be a positive integer")
        self._renderer = renderer
        self._first_port = port
        self._port_span = port_span
        self._host = host
        self._refresh = refresh
        self._runner: Optional[web.AppRunner] = None
        self._port: Optional[int] = None

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, or ``None`` while not serving."""
        return self._port

    async def start(self) -> None:
        """Bind the first free port in the range; warn if every one is taken."""
        # Port 0 asks the OS for any free port.
        span = 1 if self._first_port == 0 else self._port_span
        for candidate in range(self._first_port, self._first_port + span):
            runner = await self._bind(candidate)
            if runner is None:
                continue
            self._runner = runner
            self._port = runner.addresses[0][1]
            logger.info(
                f"Metrics server for worker {os.getpid()} started on {self._host}:{self._port}"
            )
            return

        logger.warning(
            f"No free metrics port in {self._first_port}-{self._first_port + span - 1}; "
            f"metrics of worker {os.getpid()} are not served"
        )

    async def stop(self) -> None:
        """Stop serving. Safe to call when not started."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._port = None

    async def _bind(self, port: int) -> Optional[web.AppRunner]:
        app = web.Application()
        app.router.add_get("/metrics", self._handle_metrics)
        runner = web.AppRunner(app)
        await runner.setup()
        try:
            await web.TCPSite(runner, self._host, port).start()
        except OSError as e:
            await runner.cleanup()
            if e.errno != errno.EADDRINUSE:
                raise
            logger.debug(f"Metrics port {port} in use, trying the next one")
            return None
        return runner

    async def _handle_metrics(self, request: web.Request) -> web.Response:
        if self._refresh is not None:
            try:
                self._refresh()
            except Exception as e:
                logger.warning(f"Failed to refresh metrics before scrape: {e}")
        return web.Response(
            body=self._renderer.generate(),
            content_type=self._renderer.content_type,
            charset=getattr(self._renderer, "charset", "utf-8"),
            headers={"X-Worker-Pid": str(os.getpid())},
        )
