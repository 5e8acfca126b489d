"""Litestar plugin for WalkCity wizard sessions.

This module provides the WalkCityPlugin, which makes a
:class:`~walkcity_flows.sessions.SessionRegistry` available through dependency
injection and optionally mounts the wizard session REST API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from walkcity_flows.config import WalkCityConfig
from walkcity_flows.screens.issue_report import IssueReportFlow
from walkcity_flows.sessions import SessionRegistry

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from walkcity_flows.sessions import ScreenFactory

__all__ = ["WalkCityPlugin", "WalkCityPluginConfig"]


def _default_screens() -> dict[str, ScreenFactory]:
    return {IssueReportFlow.screen_name: IssueReportFlow}


@dataclass
class WalkCityPluginConfig:
    """Configuration for the WalkCityPlugin.

    Attributes:
        registry: Optional pre-configured SessionRegistry. If not provided, a new
            one is created from ``settings``.
        settings: Application settings handed to every screen.
        screens: Screen factories to register on app startup, keyed by name.
        dependency_key_sessions: The key used for dependency injection of the
            SessionRegistry. Defaults to "walkcity_sessions".
        enable_api: Whether to enable the REST API endpoints. Defaults to True.
        api_path_prefix: URL path prefix for the REST API. Defaults to "/walkcity".
        api_guards: List of Litestar guards to apply to the REST API.
        api_tags: OpenAPI tags to apply to the REST API.
        include_api_in_schema: Whether to include the API in the OpenAPI schema.
    """

    registry: SessionRegistry | None = None
    settings: WalkCityConfig = field(default_factory=WalkCityConfig)
    screens: dict[str, ScreenFactory] = field(default_factory=_default_screens)
    dependency_key_sessions: str = "walkcity_sessions"
    enable_api: bool = True
    api_path_prefix: str = "/walkcity"
    api_guards: list[Any] = field(default_factory=list)
    api_tags: list[str] = field(default_factory=lambda: ["WalkCity"])
    include_api_in_schema: bool = True


class WalkCityPlugin(InitPluginProtocol):
    """Litestar plugin for WalkCity wizard sessions.

    Example:
        Basic usage::

            from litestar import Litestar
            from walkcity_flows import WalkCityPlugin, WalkCityPluginConfig
            from walkcity_flows.screens import RouteRecordingFlow

            app = Litestar(
                plugins=[
                    WalkCityPlugin(
                        config=WalkCityPluginConfig(
                            screens={"route_recording": RouteRecordingFlow},
                        )
                    )
                ]
            )

        Using in a route handler::

            @get("/reports/active")
            async def active_reports(walkcity_sessions: SessionRegistry) -> int:
                return len(walkcity_sessions)
    """

    __slots__ = ("_config", "_registry")

    def __init__(self, config: WalkCityPluginConfig | None = None) -> None:
        """Initialize the plugin.

        Args:
            config: Optional configuration for the plugin.
        """
        self._config = config or WalkCityPluginConfig()
        self._registry: SessionRegistry | None = None

    @property
    def registry(self) -> SessionRegistry:
        """Get the session registry.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._registry is None:
            msg = "WalkCityPlugin has not been initialized. Access registry after app startup."
            raise RuntimeError(msg)
        return self._registry

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Register the session registry, the screens and the REST API.

        Args:
            app_config: The Litestar application configuration.

        Returns:
            The modified application configuration.
        """
        registry = self._config.registry
        self._registry = registry if registry is not None else SessionRegistry(config=self._config.settings)

        for name, factory in self._config.screens.items():
            self._registry.register_screen(name, factory)

        def provide_sessions() -> SessionRegistry:
            return self._registry  # type: ignore[return-value]

        app_config.dependencies[self._config.dependency_key_sessions] = Provide(
            provide_sessions,
            sync_to_thread=False,
        )

        if self._config.enable_api:
            from litestar import Router

            from walkcity_flows.web.controllers import WizardSessionController
            from walkcity_flows.web.exceptions import exception_handlers

            walkcity_router = Router(
                path=self._config.api_path_prefix,
                route_handlers=[WizardSessionController],
                guards=self._config.api_guards,
                tags=self._config.api_tags,
                include_in_schema=self._config.include_api_in_schema,
            )
            app_config.route_handlers.append(walkcity_router)
            app_config.exception_handlers.update(exception_handlers)  # type: ignore[arg-type]

        return app_config
