import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api.errors import register_error_handlers
from ordering.api.routes import cart_router, order_router, payment_router


@pytest.fixture()
def client(products):
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(payment_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def as_user():
    def headers(user_id="user-001", role=None):
        h = {"X-User-Id": user_id}
        if role:
            h["X-User-Role"] = role
        return h

    return headers
