"""
Shared test fixtures and configuration for the vcf_client test suite.
"""

import re
from typing import Any, AsyncGenerator, Dict, List
from unittest.mock import AsyncMock

import aioresponses
import pytest

from vcf_client.auth.manager import CredentialManager
from vcf_client.auth.retry import RetryHandler
from vcf_client.config.models import BackendFamily, HttpConfig
from vcf_client.http.dispatcher import RequestDispatcher
from vcf_client.instances import InstanceRegistry

OPS_EAST = "https://ops-east.example.com"
OPS_WEST = "https://ops-west.example.com"
AUTO_V8 = "https://auto8.example.com"
AUTO_V9 = "https://auto9.example.com"

OPS_ACQUIRE = "/suite-api/api/auth/token/acquire"
PASSWORD_LOGIN = "/csp/gateway/am/api/login"
CLOUDAPI_SESSIONS = "/cloudapi/1.0.0/sessions"

OPS_PASSWORD = "ops-Secret-Pa55"
AUTO_PASSWORD = "auto-Secret-Pa55"


def url_pattern(base: str, path: str) -> "re.Pattern[str]":
    """Match a URL with any (or no) query string."""
    return re.compile(rf"^{re.escape(base + path)}(\?.*)?$")


def calls_to(mock: aioresponses.aioresponses, method: str, base: str, path: str) -> List[Any]:
    """All recorded calls for a method and URL path, whatever the query string."""
    target = base + path
    calls = []
    for (recorded_method, url), recorded in mock.requests.items():
        if recorded_method == method and str(url).split("?")[0] == target:
            calls.extend(recorded)
    return calls


class FakeClock:
    """Controllable time source in epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock shared by credential manager and planner."""
    return FakeClock()


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Replacement for asyncio.sleep between authentication attempts."""
    return AsyncMock()


@pytest.fixture
def operations_configs() -> List[Dict[str, Any]]:
    """Two operations instances, east being the default."""
    return [
        {
            "name": "vcfo-east",
            "baseUrl": OPS_EAST,
            "authentication": {"username": "admin", "password": OPS_PASSWORD},
            "relatedInstanceNames": ["vcfa-v8"],
        },
        {
            "name": "vcfo-west",
            "baseUrl": OPS_WEST,
            "authentication": {
                "username": "ops-user",
                "password": OPS_PASSWORD,
                "domain": "corp.local",
            },
        },
    ]


@pytest.fixture
def automation_configs() -> List[Dict[str, Any]]:
    """A pre-9 automation instance (default) and a version 9 all-apps instance."""
    return [
        {
            "name": "vcfa-v8",
            "baseUrl": AUTO_V8,
            "majorVersion": 8,
            "authentication": {
                "username": "configadmin",
                "password": AUTO_PASSWORD,
                "domain": "System Domain",
            },
            "organizationType": "vm-apps",
        },
        {
            "name": "vcfa-v9",
            "baseUrl": AUTO_V9,
            "majorVersion": 9,
            "orgName": "engineering",
            "organizationType": "all-apps",
            "authentication": {"username": "tenant-admin", "password": AUTO_PASSWORD},
        },
    ]


@pytest.fixture
def operations_registry(operations_configs) -> InstanceRegistry:
    return InstanceRegistry(BackendFamily.OPERATIONS, operations_configs)


@pytest.fixture
def automation_registry(automation_configs) -> InstanceRegistry:
    return InstanceRegistry(BackendFamily.AUTOMATION, automation_configs)


@pytest.fixture
async def dispatcher(clock, no_sleep) -> AsyncGenerator[RequestDispatcher, None]:
    """Dispatcher whose credential manager uses the fake clock and no real sleeps."""
    dispatcher = RequestDispatcher(HttpConfig(total_timeout=5.0, connect_timeout=2.0))
    dispatcher.credentials = CredentialManager(
        session_provider=dispatcher.get_session,
        timeout=dispatcher.timeout,
        clock=clock,
        retry_handler=RetryHandler(sleep=no_sleep),
    )
    yield dispatcher
    await dispatcher.close()


@pytest.fixture
def mock_aiohttp():
    """Mock aiohttp responses for testing."""
    with aioresponses.aioresponses() as m:
        yield m


@pytest.fixture
def ops_token(mock_aiohttp):
    """Token-acquire endpoints for both operations instances answer successfully."""
    for base in (OPS_EAST, OPS_WEST):
        mock_aiohttp.post(
            base + OPS_ACQUIRE,
            payload={"token": f"ops-token-{base[8:16]}", "validity": 4_102_444_800_000},
            repeat=True,
        )
    return mock_aiohttp


@pytest.fixture
def auto_tokens(mock_aiohttp):
    """Login endpoints for both automation instances answer successfully."""
    mock_aiohttp.post(
        AUTO_V8 + PASSWORD_LOGIN,
        payload={"cspAuthToken": "csp-token-v8"},
        repeat=True,
    )
    mock_aiohttp.post(
        AUTO_V9 + CLOUDAPI_SESSIONS,
        headers={"x-vmware-vcloud-access-token": "vcloud-token-v9"},
        payload={},
        repeat=True,
    )
    return mock_aiohttp


def stats_payload(resource_id: str = "vm-1") -> Dict[str, Any]:
    """Vendor-shaped stats response with two metrics."""
    return {
        "values": [
            {
                "resourceId": resource_id,
                "stat-list": {
                    "stat": [
                        {
                            "statKey": {"key": "cpu|usage_average"},
                            "timestamps": [1000, 2000, 3000],
                            "data": [10.5, 11.0, 12.25],
                        },
                        {
                            "statKey": {"key": "mem|usage_average"},
                            "timestamps": [1000, 2000],
                            "data": [40, 41],
                        },
                    ]
                },
            }
        ]
    }


def resource_payload(identifier: str, name: str, kind: str = "VirtualMachine") -> Dict[str, Any]:
    """Vendor-shaped single resource."""
    return {
        "identifier": identifier,
        "resourceKey": {
            "name": name,
            "adapterKindKey": "VMWARE",
            "resourceKindKey": kind,
            "resourceIdentifiers": [
                {"identifierType": {"name": "VMEntityName"}, "value": name}
            ],
        },
    }
