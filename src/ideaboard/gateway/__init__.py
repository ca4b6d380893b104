"""Ideaboard persistence gateways."""

from __future__ import annotations

import logging

from ideaboard.config import Config
from ideaboard.gateway.base import EnvelopeGateway, PersistenceGateway
from ideaboard.gateway.demo import DemoGateway
from ideaboard.gateway.envelope import Action, GatewayRequest, GatewayResponse
from ideaboard.gateway.http import HttpGateway

logger = logging.getLogger(__name__)

__all__ = [
    "Action",
    "DemoGateway",
    "EnvelopeGateway",
    "GatewayRequest",
    "GatewayResponse",
    "HttpGateway",
    "PersistenceGateway",
    "create_gateway",
]


def create_gateway(config: Config) -> PersistenceGateway:
    """HTTP gateway when a backend is configured, otherwise the demo backend."""
    if config.demo_mode:
        logger.info("No backend_url configured; running in demo mode")
        return DemoGateway(
            latency=(config.demo_latency_min, config.demo_latency_max),
            automation_source=config.automation_source,
        )
    return HttpGateway(
        config.backend_url,
        webhook_url=config.webhook_url,
        automation_source=config.automation_source,
        timeout=config.request_timeout,
    )
