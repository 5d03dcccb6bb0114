"""Registry of slugged models and the save-path hook that keeps their slugs current"""

import logging
from typing import Any, Callable, Optional

from sqlalchemy import event, inspect as sa_inspect
from sqlalchemy.orm import Session as SASession

from docslug.core.errors import ConfigurationError
from docslug.core.options import SlugConfig, slug_config
from docslug.crud.slugs import rebuild_on_flush
from docslug.crud.unique import StoreResolver


logger = logging.getLogger(__name__)

SLUG_FIELDS = ("slug", "slug_lower")


class SlugRegistry:
    """Holds one SlugConfig per model class and rebuilds slugs when sessions flush.

    The application creates a registry, registers its models once at
    declaration time and installs the registry on the sessions (or session
    classes) that save them.
    """

    def __init__(self, resolver_factory: Callable[..., Any] = StoreResolver):
        self._configs: dict[type, SlugConfig] = {}
        self.resolver_factory = resolver_factory

    def register(self, model: type, config: SlugConfig, reconfigure: bool = False) -> SlugConfig:
        """Attach config to model. A model is registered once unless reconfigure=True."""
        mapper = sa_inspect(model, raiseerr=False)
        if mapper is None:
            raise ConfigurationError(f"{model.__name__} is not a mapped table model")
        missing = [f for f in SLUG_FIELDS if f not in mapper.columns.keys()]
        if missing:
            raise ConfigurationError(
                f"{model.__name__} lacks slug storage field(s) {', '.join(missing)}; inherit SluggedModel"
            )
        if config.history and len(mapper.primary_key) != 1:
            raise ConfigurationError(f"{model.__name__} has a composite primary key; slug history needs a single key")
        if model in self._configs and not reconfigure:
            raise ConfigurationError(f"{model.__name__} already has a slug configuration")
        self._configs[model] = config
        logger.debug("Registered slug config for %s: %s", model.__name__, config.source_fields)
        return config

    def slugged(self, *fields: str, **options: Any) -> Callable[[type], type]:
        """Class decorator: register the decorated model with slug_config(*fields, **options)."""
        config = slug_config(*fields, **options)

        def decorator(model: type) -> type:
            self.register(model, config)
            return model
        return decorator

    def get(self, model: type) -> Optional[SlugConfig]:
        """Config for model or its nearest registered base class, if any."""
        for cls in model.__mro__:
            if cls in self._configs:
                return self._configs[cls]
        return None

    def config_for(self, model: type) -> SlugConfig:
        config = self.get(model)
        if config is None:
            raise ConfigurationError(f"{model.__name__} has no slug configuration")
        return config

    def __contains__(self, model: type) -> bool:
        return self.get(model) is not None

    def _before_flush(self, session, flush_context, instances) -> None:
        rebuild_on_flush(session, self, self.resolver_factory)

    def install(self, target: Any = SASession) -> None:
        """Hook slug rebuilding into the flush of target (a Session, sessionmaker or Session class)."""
        if not event.contains(target, "before_flush", self._before_flush):
            event.listen(target, "before_flush", self._before_flush)

    def uninstall(self, target: Any = SASession) -> None:
        if event.contains(target, "before_flush", self._before_flush):
            event.remove(target, "before_flush", self._before_flush)
