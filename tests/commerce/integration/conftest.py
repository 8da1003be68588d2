import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from commerce.api import (
    cart_router,
    customization_router,
    install_error_handlers,
    order_router,
    product_router,
)


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(customization_router)
    app.include_router(product_router)
    install_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def user_headers():
    return {"X-User-Id": "user-001"}


@pytest.fixture()
def admin_headers():
    return {"X-User-Id": "admin-001", "X-User-Role": "admin"}
