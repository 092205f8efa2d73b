"""Shared test fixtures."""

import pytest
from helpers import FOD_URL, SSC_URL, FakeBackend

from fortify_report.integrations.adapters.fod import FoDProvider
from fortify_report.integrations.adapters.ssc import SSCProvider
from fortify_report.integrations.http_client import HttpRequester
from fortify_report.models.enums import ProviderKind


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def ssc_provider(backend) -> SSCProvider:
    requester = HttpRequester("Fortify SSC", provider=ProviderKind.SSC, transport=backend.transport)
    return SSCProvider(SSC_URL, "ci-token-123", requester=requester, page_delay=0)


@pytest.fixture
def fod_provider(backend) -> FoDProvider:
    requester = HttpRequester("Fortify on Demand", provider=ProviderKind.FOD, transport=backend.transport)
    return FoDProvider(FOD_URL, "key-abcdefgh-1234", "secret", requester=requester, page_delay=0)


@pytest.fixture
def fod_token(backend) -> None:
    """Register a working FoD token endpoint."""
    backend.add("POST", "/oauth/token", {"access_token": "fod-token", "expires_in": 21599})
