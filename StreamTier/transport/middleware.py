# 05.10.26

import logging
from typing import Any, Optional, Tuple


# External libraries
import httpx


# Internal utilities
from StreamTier.utils import config_manager


# Logic
from StreamTier.core.engine import QualityEngine
from StreamTier.core.url_classifier import URLClassifier


# Variable
logger = logging.getLogger(__name__)
TIMEOUT = config_manager.get_int('REQUESTS', 'timeout')
VERIFY = config_manager.get_bool('REQUESTS', 'verify', True)
USER_AGENT = config_manager.get('REQUESTS', 'user_agent')


class _QualityHooks:
    """Request/response decisions shared by the sync and async transports."""

    def __init__(self, engine: QualityEngine):
        self.engine = engine

    def plan(self, request: httpx.Request) -> Tuple[str, str]:
        """Return (original, rewritten) URLs. Equal when the request passes through."""
        original = str(request.url)
        rewritten = original

        if self.engine.session.get_config().is_active and (URLClassifier.is_segment_url(original) or URLClassifier.is_dai_playlist_url(original)):
            rewritten = self.engine.rewrite(original)

        return original, rewritten

    @staticmethod
    def rebuild(request: httpx.Request, url: str) -> httpx.Request:
        """Same request addressed at another URL. Host follows the new URL."""
        headers = request.headers.copy()
        headers.pop('host', None)
        return httpx.Request(request.method, url, headers=headers, stream=request.stream, extensions=request.extensions)

    def ingest(self, response: httpx.Response, url: str) -> None:
        if not response.is_success:
            return
        self.engine.ingest_manifest(response.content, url)


class QualityTransport(_QualityHooks, httpx.BaseTransport):
    def __init__(self, engine: QualityEngine, transport: Optional[httpx.BaseTransport] = None):
        """
        Transport that forces the configured quality on outgoing segment requests.

        A rejected rewrite is retried one tier lower, then reverted to the
        original request. Manifest responses are fed back to the engine.

        Args:
            engine: Engine holding the session to read and update
            transport: Transport that actually sends, httpx.HTTPTransport by default
        """
        super().__init__(engine)
        self._transport = transport or httpx.HTTPTransport(verify=VERIFY)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        original, rewritten = self.plan(request)

        if rewritten == original:
            self.engine.analyze(original)
            return self._send(request, original)

        self.engine.analyze(rewritten)
        representations = self.engine.representations

        try:
            response = self._send(request, rewritten)
            if response.is_success:
                return response

            logger.warning(f"Rewrite failed ({response.status_code}) on: {rewritten}")
            response.close()

            fallback = self.engine.fallback_url(original, rewritten, representations)
            if fallback:
                fb_response = self._send(request, fallback)
                if fb_response.is_success:
                    self.engine.analyze(fallback)
                    return fb_response

                logger.warning(f"Fallback failed ({fb_response.status_code}) on: {fallback}")
                fb_response.close()

            logger.warning("All rewrites failed, reverting to original")

        except httpx.TransportError as e:
            logger.warning(f"Network error during rewrite, reverting: {e}")

        self.engine.analyze(original)
        return self._send(request, original)

    def _send(self, request: httpx.Request, url: str) -> httpx.Response:
        if url != str(request.url):
            request = self.rebuild(request, url)

        response = self._transport.handle_request(request)

        if URLClassifier.is_manifest_url(url):
            try:
                response.read()
                self.ingest(response, url)
            except httpx.HTTPError as e:
                logger.error(f"Error reading manifest {url}: {e}")

        return response

    def close(self) -> None:
        self._transport.close()


class AsyncQualityTransport(_QualityHooks, httpx.AsyncBaseTransport):
    def __init__(self, engine: QualityEngine, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Async twin of QualityTransport."""
        super().__init__(engine)
        self._transport = transport or httpx.AsyncHTTPTransport(verify=VERIFY)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        original, rewritten = self.plan(request)

        if rewritten == original:
            self.engine.analyze(original)
            return await self._send(request, original)

        self.engine.analyze(rewritten)
        representations = self.engine.representations

        try:
            response = await self._send(request, rewritten)
            if response.is_success:
                return response

            logger.warning(f"Rewrite failed ({response.status_code}) on: {rewritten}")
            await response.aclose()

            fallback = self.engine.fallback_url(original, rewritten, representations)
            if fallback:
                fb_response = await self._send(request, fallback)
                if fb_response.is_success:
                    self.engine.analyze(fallback)
                    return fb_response

                logger.warning(f"Fallback failed ({fb_response.status_code}) on: {fallback}")
                await fb_response.aclose()

            logger.warning("All rewrites failed, reverting to original")

        except httpx.TransportError as e:
            logger.warning(f"Network error during rewrite, reverting: {e}")

        self.engine.analyze(original)
        return await self._send(request, original)

    async def _send(self, request: httpx.Request, url: str) -> httpx.Response:
        if url != str(request.url):
            request = self.rebuild(request, url)

        response = await self._transport.handle_async_request(request)

        if URLClassifier.is_manifest_url(url):
            try:
                await response.aread()
                self.ingest(response, url)
            except httpx.HTTPError as e:
                logger.error(f"Error reading manifest {url}: {e}")

        return response

    async def aclose(self) -> None:
        await self._transport.aclose()


def _client_options(kwargs: dict) -> dict:
    options = {
        'timeout': TIMEOUT,
        'follow_redirects': True,
        'headers': {'User-Agent': USER_AGENT} if USER_AGENT else None,
    }
    options.update(kwargs)
    return options


def create_client(engine: QualityEngine, transport: Optional[httpx.BaseTransport] = None, **kwargs: Any) -> httpx.Client:
    """
    httpx.Client whose requests go through QualityTransport.

    Args:
        engine: Engine to apply
        transport: Inner transport, mostly for tests (httpx.MockTransport)
        **kwargs: Extra httpx.Client options, override the REQUESTS defaults
    """
    return httpx.Client(transport=QualityTransport(engine, transport), **_client_options(kwargs))


def create_async_client(engine: QualityEngine, transport: Optional[httpx.AsyncBaseTransport] = None, **kwargs: Any) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=AsyncQualityTransport(engine, transport), **_client_options(kwargs))
