"""
Factory functions for fetch_auth_pipeline.
"""
import logging
from typing import Optional

from .auth.token_store import MemoryTokenStore
from .config import ClientConfig, load_config_from_env, resolve_config
from .core.orchestrator import RequestOrchestrator
from .core.transport import HttpxTransport
from .types import TokenStore, Transport

logger = logging.getLogger("fetch_auth_pipeline.factory")


def create_network_manager(
    config: Optional[ClientConfig] = None,
    transport: Optional[Transport] = None,
    token_store: Optional[TokenStore] = None,
) -> RequestOrchestrator:
    """
    Create a RequestOrchestrator with default collaborators.

    Args:
        config: Pipeline configuration. Read from FETCH_AUTH_* environment
            variables when omitted.
        transport: Transport capability. Defaults to an HttpxTransport using
            the configured timeouts.
        token_store: Token store capability. Defaults to an empty
            MemoryTokenStore.

    Example:
        manager = create_network_manager(ClientConfig(base_url="https://api.example.com"))
        order = await manager.get(Endpoint("/orders/7"), Order)
    """
    resolved = resolve_config(config if config is not None else load_config_from_env())

    if transport is None:
        transport = HttpxTransport(timeout=resolved.timeout)
    if token_store is None:
        token_store = MemoryTokenStore()

    logger.debug(
        f"create_network_manager: base_url={resolved.base_url}, "
        f"transport={type(transport).__name__}, token_store={type(token_store).__name__}"
    )
    return RequestOrchestrator(resolved, transport, token_store)
