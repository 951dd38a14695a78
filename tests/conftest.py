# tests/conftest.py

import pytest
from django.contrib.auth.models import AnonymousUser


@pytest.fixture
def anonymous_request(rf):
    """GET request without query parameters made by an anonymous user."""
    request = rf.get("/")
    request.user = AnonymousUser()
    return request
