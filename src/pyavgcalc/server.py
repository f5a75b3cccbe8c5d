"""aiohttp.web application exposing the window service and social analytics."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import aiohttp
from aiohttp import web
from aiohttp.typedefs import Handler

from pyavgcalc._transport import HttpTransport, Transport
from pyavgcalc.analytics import SocialAnalytics
from pyavgcalc.config import AvgCalcConfig
from pyavgcalc.credentials import CredentialStore
from pyavgcalc.exceptions import AuthError, InvalidRequestError, TransportError, UpstreamError
from pyavgcalc.fetcher import CredentialGatedFetcher
from pyavgcalc.service import WindowService

_logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", AvgCalcConfig)
TRANSPORT_KEY = web.AppKey("transport", Transport)
CREDENTIALS_KEY = web.AppKey("credentials", CredentialStore)
SERVICE_KEY = web.AppKey("window_service", WindowService)
ANALYTICS_KEY = web.AppKey("analytics", SocialAnalytics)

routes = web.RouteTableDef()


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Map domain errors to JSON error responses."""
    try:
        return await handler(request)
    except InvalidRequestError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    except AuthError as exc:
        _logger.error("%s %s: upstream authorization failed: %s", request.method, request.path, exc)
        return web.json_response({"error": "Upstream authorization failed"}, status=502)
    except (UpstreamError, TransportError) as exc:
        _logger.error("%s %s: upstream failure: %s", request.method, request.path, exc)
        return web.json_response({"error": "Upstream service unavailable"}, status=502)


@routes.get("/numbers/{numberid}")
async def get_numbers(request: web.Request) -> web.Response:
    snapshot = await request.app[SERVICE_KEY].handle(request.match_info["numberid"])
    return web.json_response(snapshot.to_json_dict())


@routes.get("/users")
async def get_top_users(request: web.Request) -> web.Response:
    top = await request.app[ANALYTICS_KEY].top_users()
    return web.json_response({"topUsers": [user.to_json_dict() for user in top]})


@routes.get("/posts")
async def get_posts(request: web.Request) -> web.Response:
    kind = request.query.get("type", "latest")
    posts = await request.app[ANALYTICS_KEY].posts(kind)
    return web.json_response({"posts": [post.to_json_dict() for post in posts]})


@routes.get("/health")
async def health(_request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def _upstream_ctx(app: web.Application) -> AsyncIterator[None]:
    """Build the upstream stack and acquire the credential before serving.

    An :class:`AuthError` here aborts startup.
    """
    config = app[CONFIG_KEY]
    http_session: aiohttp.ClientSession | None = None
    transport = app.get(TRANSPORT_KEY)
    if transport is None:
        http_session = aiohttp.ClientSession()
        transport = HttpTransport(config, http_session)

    try:
        store = CredentialStore(config, transport)
        app[CREDENTIALS_KEY] = store
        await store.current()

        fetcher = CredentialGatedFetcher(transport, store)
        app[SERVICE_KEY] = WindowService.from_config(config, fetcher)
        app[ANALYTICS_KEY] = SocialAnalytics.from_config(config, fetcher)
        _logger.info("Serving categories %s (window size %d)", ", ".join(config.categories), config.window_size)
        yield
    finally:
        if http_session is not None:
            await http_session.close()


def create_app(
    config: AvgCalcConfig,
    *,
    transport: Transport | None = None,
) -> web.Application:
    """Create the web application.

    Parameters
    ----------
    config : AvgCalcConfig
        Service configuration.
    transport : Transport or None
        Upstream transport. Defaults to an :class:`HttpTransport` over a
        process-wide ``aiohttp.ClientSession`` created at startup.
    """
    app = web.Application(middlewares=[error_middleware])
    app[CONFIG_KEY] = config
    if transport is not None:
        app[TRANSPORT_KEY] = transport
    app.add_routes(routes)
    app.cleanup_ctx.append(_upstream_ctx)
    return app
