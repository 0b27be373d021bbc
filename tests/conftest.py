import httpx
import pytest
from fastapi.testclient import TestClient

from toolbox.adapter_countries_rest import CountriesClient
from toolbox.dispatch import Dispatcher
from toolbox.main import create_app
from toolbox.metrics import Metrics
from toolbox.tools import build_registry

GERMANY = {
    "name": {"common": "Germany", "official": "Federal Republic of Germany"},
    "population": 83240525,
    "capital": ["Berlin"],
    "region": "Europe",
    "subregion": "Western Europe",
}


def countries_transport(request: httpx.Request) -> httpx.Response:
    country = request.url.path.rsplit("/", 1)[-1].lower()
    if country == "germany":
        return httpx.Response(200, json=[GERMANY])
    if country == "empty":
        return httpx.Response(200, json=[])
    if country == "broken":
        return httpx.Response(500, text="upstream exploded")
    return httpx.Response(404, json={"status": 404, "message": "Not Found"})


@pytest.fixture
def countries():
    client = CountriesClient(
        base_url="https://countries.test/v3.1",
        client=httpx.Client(transport=httpx.MockTransport(countries_transport)),
        max_retries=1,
        sleep=lambda s: None,
    )
    yield client
    client.close()


@pytest.fixture
def registry(countries):
    return build_registry(countries)


@pytest.fixture
def dispatcher(registry):
    return Dispatcher(
        registry,
        server_name="test-server",
        server_version="9.9.9",
        protocol_version="2024-11-05",
        metrics=Metrics(),
    )


@pytest.fixture
def client(registry):
    with TestClient(create_app(registry)) as c:
        yield c


@pytest.fixture
def call(dispatcher):
    def _call(name, arguments, id_val=1):
        return dispatcher.handle({
            "jsonrpc": "2.0",
            "id": id_val,
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments},
        })
    return _call
