import pytest

# Skip all tests in this directory if the HTTP client stack is not installed.
pytest.importorskip("httpx")
pytest.importorskip("starlette")
