"""Lifecycle management for shared components.

Collects the components an application run owns (StorageContext, HTTP
client, ...) and releases them in reverse order on shutdown.

Example:
    >>> from image_history.core.lifecycle import LifecycleManager
    >>>
    >>> lm = LifecycleManager()
    >>> lm.register("storage", storage_context)
    >>> lm.register("http_client", close_http_client)
    >>> # ... application runs ...
    >>> await lm.shutdown()
"""

import inspect
import logging
from typing import Any

logger = logging.getLogger(__name__)


class LifecycleManager:
    """Manages shutdown of shared components.

    A component may be an object exposing ``shutdown()`` (sync or async),
    or a bare callable that is invoked on shutdown.
    """

    def __init__(self) -> None:
        self._components: list[tuple[str, Any]] = []

    def register(self, name: str, component: Any) -> None:
        """Register a component."""
        self._components.append((name, component))
        logger.debug("Registered lifecycle component: %s", name)

    @staticmethod
    async def _call(hook: Any) -> None:
        result = hook()
        if inspect.isawaitable(result):
            await result

    async def shutdown(self) -> None:
        """Shutdown all registered components in reverse order.

        One failing component does not prevent the others from shutting down.
        Registrations are dropped afterwards, so a second call is a no-op.
        """
        components, self._components = self._components, []

        for name, component in reversed(components):
            logger.info("Stopping %s", name)
            hook = getattr(component, "shutdown", None)
            if hook is None and callable(component):
                hook = component
            try:
                if hook is not None:
                    await self._call(hook)
            except Exception as e:
                logger.error("Error shutting down %s: %s", name, e)

        logger.info("All lifecycle components stopped (%d total)", len(components))

    @property
    def component_count(self) -> int:
        """Get the number of registered components."""
        return len(self._components)
