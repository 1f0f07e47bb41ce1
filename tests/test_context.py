"""
Tests for the HTTP context
"""

from urllib.parse import parse_qsl

import pytest

from splunk_sdk.context import Context, Namespace, ResourceName, Response
from splunk_sdk.exceptions import (
    AuthenticationFailureError,
    RequestError,
    ResourceNotFoundError,
)
from splunk_sdk.indexes import IndexFilter


class TestNamespace:

    def test_default(self):
        assert str(Namespace()) == "services"
        assert not Namespace().is_specific

    def test_user_and_app(self):
        namespace = Namespace("admin", "search")

        assert str(namespace) == "servicesNS/admin/search"
        assert namespace.is_specific

    def test_wildcards(self):
        assert str(Namespace(app="search")) == "servicesNS/-/search"
        assert not Namespace("-", "search").is_specific

    def test_quoting(self):
        assert str(Namespace("first last", "my app")) == "servicesNS/first%20last/my%20app"


class TestResourceName:

    def test_parts(self):
        name = ResourceName(ResourceName("saved", "searches"), "Security Alerts")

        assert name == ("saved", "searches", "Security Alerts")
        assert name.title == "Security Alerts"
        assert name.collection == ResourceName("saved", "searches")
        assert str(name) == "saved/searches/Security%20Alerts"

    def test_slashes_are_quoted(self):
        assert str(ResourceName("search", "jobs", "a/b")) == "search/jobs/a%2Fb"


class TestResponse:

    def test_headers(self):
        response = Response(200, "OK", [("Set-Cookie", "a=1"), ("set-cookie", "b=2"), ("Content-Type", "text/xml")])

        assert response.header("content-type") == "text/xml"
        assert response.header_values("Set-Cookie") == ["a=1", "b=2"]
        assert response.header("Location") is None

    def test_ensure_status(self, data):
        Response(201).ensure_status(200, 201)

        response = Response(404, "Not Found", [], data("error_not_found.xml").encode())
        with pytest.raises(ResourceNotFoundError) as exc_info:
            response.ensure_status(200)

        assert exc_info.value.status == 404
        assert str(exc_info.value) == "Error: Could not find object id=no-such-search"

    def test_ensure_status_without_messages(self):
        with pytest.raises(AuthenticationFailureError, match="401 Unauthorized"):
            Response(401, "Unauthorized", [], b"Unauthorized").ensure_status(200)

    def test_unmapped_status(self):
        with pytest.raises(RequestError) as exc_info:
            Response(409, "Conflict").ensure_status(200)

        assert type(exc_info.value) is RequestError


class TestContext:
    """Test cases for Context"""

    def test_validation(self):
        with pytest.raises(ValueError, match="Scheme"):
            Context("ftp", "localhost", 8089)
        with pytest.raises(ValueError, match="Port"):
            Context("https", "localhost", 0)
        with pytest.raises(ValueError, match="Host"):
            Context("https", "", 8089)

    def test_from_config(self, mock_config):
        context = Context.from_config(mock_config)

        assert str(context) == "https://test-splunk.com:8089"
        assert context.token == "test-token"
        assert context.verify_ssl is False
        assert context.session is None

    def test_create_service_url(self, context):
        url = context.create_service_url(
            Namespace("admin", "search"), ResourceName("data", "indexes"), IndexFilter(count=0)
        )

        assert url == "https://test-splunk.com:8089/servicesNS/admin/search/data/indexes?count=0"
        assert context.create_service_url(Namespace(), ResourceName("server", "info")) == (
            "https://test-splunk.com:8089/services/server/info"
        )

    @pytest.mark.asyncio
    async def test_get_sends_arguments_in_query(self, context):
        context.respond(200, "<feed/>")

        await context.get(Namespace(), ResourceName("data", "indexes"), {"search": "name=m*"})

        method, url, headers, body = context.requests[0]
        assert method == "GET"
        assert url == "https://test-splunk.com:8089/services/data/indexes?search=name%3Dm%2A"
        assert body == b""

    @pytest.mark.asyncio
    async def test_post_sends_form_body(self, context):
        context.respond(201)

        await context.post(Namespace(), ResourceName("search", "jobs"), {"search": "search index=main"})

        method, url, headers, body = context.requests[0]
        assert method == "POST"
        assert url == "https://test-splunk.com:8089/services/search/jobs"
        assert headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert parse_qsl(body.decode()) == [("search", "search index=main")]

    @pytest.mark.asyncio
    async def test_post_with_body(self, context):
        context.respond(200)

        await context.post(Namespace(), ResourceName("receivers", "simple"), {"index": "main"}, body="hello")

        _, url, headers, body = context.requests[0]
        assert url.endswith("/services/receivers/simple?index=main")
        assert headers["Content-Type"] == "text/plain"
        assert body == b"hello"

    @pytest.mark.asyncio
    async def test_unsupported_method(self, context):
        with pytest.raises(ValueError, match="PUT"):
            await context.send("PUT", Namespace(), ResourceName("data", "indexes"))

    @pytest.mark.asyncio
    async def test_authentication_precedence(self, context):
        for _ in range(4):
            context.respond(200)

        await context.get(Namespace(), ResourceName("server", "info"))
        assert "Authorization" not in context.requests[-1][2]

        context.token = "test-token"
        await context.get(Namespace(), ResourceName("server", "info"))
        assert context.requests[-1][2]["Authorization"] == "Bearer test-token"

        context.session_key = "session"
        await context.get(Namespace(), ResourceName("server", "info"))
        assert context.requests[-1][2]["Authorization"] == "Splunk session"

        context.cookies["splunkd_8089"] = "cookie-value"
        await context.get(Namespace(), ResourceName("server", "info"))
        headers = context.requests[-1][2]
        assert headers["Cookie"] == "splunkd_8089=cookie-value"
        assert "Authorization" not in headers

    @pytest.mark.asyncio
    async def test_cookies_are_stored(self, context):
        context.respond(200, headers=[("Set-Cookie", "splunkd_8089=abc123; Path=/; HttpOnly")])

        await context.get(Namespace(), ResourceName("server", "info"))

        assert context.cookies == {"splunkd_8089": "abc123"}

    @pytest.mark.asyncio
    async def test_close_without_session(self, context):
        await context.close()
        assert context.session is None
