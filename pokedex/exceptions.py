"""Error taxonomy shared by the clients, the handler and the mediator."""


class PokedexError(Exception):
    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(PokedexError):
    """Terminal: the upstream definitively does not know the resource. Never retried."""


class PokemonNotFoundError(NotFoundError):
    def __init__(self, name: str):
        super().__init__(f"Pokemon '{name}' not found.")
        self.name = name


class UpstreamFailureError(PokedexError):
    """An upstream call failed and the failure is surfaced to the caller (5xx-class)."""

    def __init__(self, detail: str):
        super().__init__(f"External API Error: {detail}")


class TransientUpstreamError(UpstreamFailureError):
    """Retry-worthy upstream fault: network errors, timeouts, 5xx responses."""


class PipelineConfigurationError(PokedexError):
    """Wiring fault in the handler registry. Never recovered."""


class HandlerNotFoundError(PipelineConfigurationError):
    def __init__(self, query_type: type):
        super().__init__(f"No handler registered for {query_type.__name__}")
        self.query_type = query_type


class HandlerAmbiguityError(PipelineConfigurationError):
    def __init__(self, query_type: type, count: int):
        super().__init__(
            f"{count} handlers registered for {query_type.__name__}, expected exactly one"
        )
        self.query_type = query_type
