import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, status
from pydantic import ValidationError

from pokedex.config import configure_logging
from pokedex.dependencies import get_mediator, get_settings, shutdown
from pokedex.exceptions import PokemonNotFoundError, UpstreamFailureError
from pokedex.mediator import Mediator
from pokedex.models import GetPokemonTranslationQuery, PokemonTranslation

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    # Builds the pipeline and verifies handler registrations before serving traffic
    app.dependency_overrides.get(get_mediator, get_mediator)()
    logger.info("Pokedex API started")
    yield
    await shutdown()


app = FastAPI(
    title="Pokedex Translation API",
    description="Returns Pokemon descriptions rewritten by a fun-translation provider.",
    lifespan=lifespan,
)


@app.get(
    "/pokemon/{name}",
    response_model=PokemonTranslation,
    summary="Returns the Pokemon description with a fun translation applied",
)
async def get_translated_description(
    name: str,
    mediator: Mediator = Depends(get_mediator),
):
    """Falls back to the untranslated description when the translation provider is unavailable."""
    try:
        query = GetPokemonTranslationQuery(name=name)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"'{name}' is not a valid Pokemon name.",
        )

    try:
        return await mediator.dispatch(query)
    except PokemonNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.detail)
    except UpstreamFailureError as e:
        # Upstream outages (after retries) are reported as 503 Service Unavailable
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.detail)


@app.get("/health", summary="Liveness check")
async def health():
    return {"status": "ok"}
