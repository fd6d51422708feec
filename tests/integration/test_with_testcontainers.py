import pytest
from fastapi.testclient import TestClient

from pokedex.cache import RedisCacheStore
from pokedex.clients import PokeAPIClient, RetryPolicy, TranslationClient
from pokedex.config import Settings
from pokedex.dependencies import build_mediator, get_mediator
from pokedex.main import app

docker = pytest.importorskip("docker")
RedisContainer = pytest.importorskip("testcontainers.redis").RedisContainer


def _docker_available() -> bool:
    try:
        docker.from_env().ping()
    except Exception:
        return False
    return True


pytestmark = pytest.mark.skipif(not _docker_available(), reason="Docker is not available")


@pytest.fixture(scope="module")
def redis_container():
    """Start a real Redis container for integration tests."""
    with RedisContainer("redis:7-alpine") as container:
        yield container


@pytest.fixture(scope="module")
def redis_url(redis_container):
    """Get Redis connection URL from the container."""
    host = redis_container.get_container_host_ip()
    port = redis_container.get_exposed_port(6379)
    return f"redis://{host}:{port}"


@pytest.fixture
def test_client(redis_url):
    """TestClient whose query cache lives in the real Redis from Testcontainers."""
    policy = RetryPolicy(attempts=1, backoff_seconds=0)
    mediator = build_mediator(
        PokeAPIClient(retry_policy=policy),
        TranslationClient(retry_policy=policy),
        RedisCacheStore.from_url(redis_url),
        Settings(cache_backend="redis", redis_url=redis_url, cache_ttl_seconds=60),
    )
    app.dependency_overrides[get_mediator] = lambda: mediator

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def test_integration_caching_with_real_redis(httpx_mock, test_client):
    """The second request is answered from Redis without touching the upstreams."""
    httpx_mock.add_response(
        url="https://pokeapi.co/api/v2/pokemon-species/pikachu",
        json={
            "name": "pikachu",
            "flavor_text_entries": [
                {"flavor_text": "Electric mouse Pokemon.", "language": {"name": "en"}}
            ]
        },
    )
    httpx_mock.add_response(
        url="https://api.funtranslations.com/translate/shakespeare",
        method="POST",
        json={"success": {"total": 1}, "contents": {"translated": "Electric mouse pokemon, forsooth."}},
    )

    response1 = test_client.get("/pokemon/pikachu")
    assert response1.status_code == 200
    assert response1.json() == {"name": "pikachu", "translation": "Electric mouse pokemon, forsooth."}

    response2 = test_client.get("/pokemon/Pikachu")
    assert response2.status_code == 200
    assert response2.json() == response1.json()
    assert len(httpx_mock.get_requests()) == 2
