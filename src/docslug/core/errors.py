"""Error taxonomy for slug configuration, resolution, lookup and persistence"""


class SlugError(Exception):
    """Base class for every error raised by docslug."""


class ConfigurationError(SlugError):
    """Malformed slug field/option list, or a model that cannot carry slugs."""


class ResolutionFailure(SlugError):
    """The uniqueness resolver could not produce a value within its constraints."""


class PersistenceError(SlugError):
    """An atomic store operation on the slug fields failed."""


class NotFoundError(SlugError):
    """One or more slug tokens matched no document.

    `found` holds the documents that did match so callers can inspect the
    partial result.
    """

    def __init__(self, model: type, tokens: list[str], missing: list[str], found: list | None = None):
        self.model = model
        self.tokens = list(tokens)
        self.missing = list(missing)
        self.found = list(found or [])
        name = getattr(model, "__name__", str(model))
        super().__init__(
            f"Document(s) not found for class {name} with slug(s) {', '.join(self.missing)}"
        )
