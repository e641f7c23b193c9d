"""Metrics renderer adapters (Prometheus + Fake).

The Prometheus renderer serializes one or more CollectorRegistry instances
into a single text exposition document for the sidecar ``/metrics`` route.
"""

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from devsocial.core.protocols.metrics import MetricsRenderer


def split_content_type(raw: str) -> tuple[str, str]:
    """Split a Content-Type header value into (media type, charset).

    aiohttp takes the charset separately, so it is stripped from the media
    type. Missing charset defaults to utf-8.
    """
    media: list[str] = []
    charset = "utf-8"
    for part in (p.strip() for p in raw.split(";")):
        key, _, value = part.partition("=")
        if key.lower() == "charset" and value:
            charset = value.strip()
        elif part:
            media.append(part)
    return "; ".join(media), charset


class PrometheusMetricsRenderer(MetricsRenderer):
    """Render every collector of the given registries, in order."""

    def __init__(self, *registries: CollectorRegistry) -> None:
        if not registries:
            raise ValueError("At least one CollectorRegistry is required")
        self._registries = registries
        self._content_type, self._charset = split_content_type(CONTENT_TYPE_LATEST)

    @property
    def content_type(self) -> str:
        return self._content_type

    @property
    def charset(self) -> str:
        return self._charset

    def generate(self) -> bytes:
        return b"".join(generate_latest(registry) for registry in self._registries)


# ---------------------------------------------------------------------------
# Fake
# ---------------------------------------------------------------------------


class FakeMetricsRenderer(MetricsRenderer):
    """In-memory spy implementing the MetricsRenderer protocol."""

    def __init__(self, body: bytes = b"# fake metrics\n") -> None:
        self.body = body
        self.generate_calls = 0

    @property
    def content_type(self) -> str:
        return "text/plain"

    @property
    def charset(self) -> str:
        return "utf-8"

    def generate(self) -> bytes:
        self.generate_calls += 1
        return self.body
