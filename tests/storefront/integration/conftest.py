import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers
from storefront.api.routes import (
    cart_router,
    checkout_router,
    maintenance_router,
    order_router,
    store_router,
)
from storefront.identity import set_auth_provider
from storefront.identity.memory_adapter import InMemoryAuthProvider
from storefront.identity.port import AuthenticatedUser


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(store_router)
    app.include_router(maintenance_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def auth():
    provider = InMemoryAuthProvider()
    provider.sign_in(
        "token-ama",
        AuthenticatedUser(
            id="user-001",
            phone_number="0241234567",
            institution_id="inst-ug",
            hall_id="hall-akuafo",
        ),
    )
    provider.sign_in("token-kofi", AuthenticatedUser(id="user-002"))
    set_auth_provider(provider)
    return provider


@pytest.fixture()
def buyer_headers(auth):
    return {"Authorization": "Bearer token-ama"}


@pytest.fixture()
def other_buyer_headers(auth):
    return {"Authorization": "Bearer token-kofi"}
