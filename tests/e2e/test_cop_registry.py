"""End-to-end tests: HTTP CoP client against the mock registry service"""

import importlib.util
import httpx
import pytest
from pathlib import Path
from nexus_gateway.domain.cop import confirm_payee
from nexus_gateway.domain.exceptions import CopRegistryError
from nexus_gateway.infrastructure.clients.cop_registry import HttpCopRegistry

pytestmark = pytest.mark.integration

MOCK_REGISTRY = Path(__file__).resolve().parents[2] / "mock" / "cop_registry" / "main.py"


def load_mock_app():
    spec = importlib.util.spec_from_file_location("mock_cop_registry", MOCK_REGISTRY)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.app


@pytest.fixture
def registry() -> HttpCopRegistry:
    transport = httpx.ASGITransport(app=load_mock_app())
    return HttpCopRegistry(base_url="http://cop-registry", timeout=2.0, transport=transport)


@pytest.mark.parametrize(
    "sort_code,account_number,name,result",
    [
        ("20-00-00", "55779911", "Jane Smith", "match"),
        ("20-00-00", "55779911", "Jane Smyth", "close_match"),
        ("40-47-84", "70872490", "Jane Smith", "no_match"),
        ("60-16-13", "31926819", "robert oneill", "match"),
    ],
)
async def test_registry_outcomes(registry, sort_code: str, account_number: str, name: str, result: str):
    check = await registry.lookup(sort_code, account_number, name)
    assert check.result == result


async def test_no_match_returns_holder_name(registry):
    check = await registry.lookup("40-47-84", "70872490", "Jane Smith")
    assert check.matched_name == "Acme Plumbing Ltd"


async def test_unknown_account_raises(registry):
    with pytest.raises(CopRegistryError, match="404"):
        await registry.lookup("11-11-11", "11111111", "Nobody")


async def test_responding_bank_down_becomes_unavailable(registry):
    """A 503 from the registry is an 'unavailable' CoP outcome, not an error"""
    check = await confirm_payee("30-96-26", "00012345", "Anyone", registry)
    assert check.result == "unavailable"


async def test_unreachable_registry_becomes_unavailable():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    registry = HttpCopRegistry(base_url="http://cop-registry", transport=httpx.MockTransport(refuse))
    check = await confirm_payee("20-00-00", "55779911", "Jane Smith", registry)
    assert check.result == "unavailable"


async def test_malformed_registry_response():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"result": "probably"}))
    registry = HttpCopRegistry(base_url="http://cop-registry", transport=transport)

    with pytest.raises(CopRegistryError, match="Invalid CoP registry response"):
        await registry.lookup("20-00-00", "55779911", "Jane Smith")
