"""Application factory wiring configuration, persistence and the token services."""

from __future__ import annotations

import atexit

from flask import Flask

from authcore.core.config import BaseConfig, get_config
from authcore.core.logger import configure_logging, init_app as init_logging
from authcore.services._shared.clock import Clock
from authcore.services.sessions.manager import SubjectResolver


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    clock: Clock | None = None,
    subject_resolver: SubjectResolver | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    The wired :class:`~authcore.services.container.AuthServices` graph is
    stored under ``app.extensions["authcore"]``.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from authcore.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from authcore.core import errors

    errors.init_app(app)

    from authcore.api.deps import EXTENSION_KEY
    from authcore.infra.db.sqlalchemy_refresh_session_store import SQLAlchemyRefreshSessionStore
    from authcore.services.container import build_services

    services = build_services(
        app.config,
        session_store=SQLAlchemyRefreshSessionStore(app=app),
        redis_client=extensions.redis_client,
        clock=clock,
        subject_resolver=subject_resolver,
    )
    app.extensions[EXTENSION_KEY] = services

    from authcore import cli as app_cli

    app_cli.init_app(app)

    if app.config.get("SWEEPER_ENABLED"):
        services.sweeper.start()
        atexit.register(services.sweeper.stop)

    return app
