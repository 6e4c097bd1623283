"""
Unit tests for HTTP request building.
"""

import pytest

from httpclient.errors import InvalidHeaderError, MissingHostError, URLParseError
from httpclient.http.methods import HTTPMethod
from httpclient.http.request import (
    Request,
    RequestBuilder,
    RequestConfig,
    build_request,
)


def render(url: str, method: HTTPMethod = HTTPMethod.GET, **kwargs) -> str:
    """Helper to render a request for a URL string."""
    text, _ = build_request(RequestConfig.from_url(url, **kwargs), method)
    return text


def request_line(text: str) -> str:
    return text.split("\r\n", 1)[0]


class TestRequestTarget:
    """Tests for path + query composition."""

    def test_path_only(self):
        """Test a URL without any query."""
        assert request_line(render("http://h/p")) == "GET /p HTTP/1.1"

    def test_empty_path_becomes_root(self):
        """Test that a bare host requests /."""
        assert request_line(render("http://example.com")) == "GET / HTTP/1.1"

    def test_existing_query_kept(self):
        """Test that the URL's own query string is preserved."""
        assert request_line(render("http://h/p?a=1")) == "GET /p?a=1 HTTP/1.1"

    def test_query_mapping_only(self):
        """Test query mapping on a URL without a query."""
        text = render("http://h/p", query={"b": "2"})
        assert request_line(text) == "GET /p?b=2 HTTP/1.1"

    def test_query_merge(self):
        """Test existing query first, mapping second, joined by &."""
        text = render("http://h/p?a=1", query={"b": "2"})
        assert request_line(text) == "GET /p?a=1&b=2 HTTP/1.1"

    def test_multiple_pairs_have_no_trailing_ampersand(self):
        """Test pairs are joined with & and nothing dangles."""
        text = render("http://h/p", query={"x": "1", "y": "2"})
        target = request_line(text).split(" ")[1]

        assert not target.endswith("&")
        assert sorted(target[len("/p?"):].split("&")) == ["x=1", "y=2"]

    def test_query_values_not_encoded(self):
        """Test that values go on the wire verbatim (known limitation)."""
        text = render("http://h/search", query={"q": "a/b"})
        assert request_line(text) == "GET /search?q=a/b HTTP/1.1"

    def test_empty_query_mapping_sets_marker(self):
        """Test that an empty mapping still appends '?'."""
        assert request_line(render("http://h/p", query={})) == "GET /p? HTTP/1.1"

    def test_empty_query_mapping_after_existing_query(self):
        """Test that an empty mapping adds no dangling '&'."""
        text = render("http://h/p?a=1", query={})
        assert request_line(text) == "GET /p?a=1 HTTP/1.1"

    def test_non_string_values_stringified(self):
        """Test the from_url adapter converts values with str()."""
        text = render("http://h/items", query={"page": 2})
        assert request_line(text) == "GET /items?page=2 HTTP/1.1"


class TestRequestHeaders:
    """Tests for header rendering."""

    def test_minimal_request(self):
        """Test the exact wire text with no headers and no body."""
        text = render("http://example.com/index.html")

        assert text == (
            "GET /index.html HTTP/1.1\r\n"
            "Host: example.com\r\n"
            "Connection: keep-closed\r\n"
            "\r\n"
        )

    def test_host_header_second(self):
        """Test that Host follows the request line."""
        text = render("https://api.example.com/v1")
        assert text.split("\r\n")[1] == "Host: api.example.com"

    def test_synthetic_connection_added_once(self):
        """Test the keep-closed quirk appears exactly once."""
        text = render("http://h/", headers={"Accept": "text/html", "X-Id": "7"})

        assert text.count("Connection: keep-closed\r\n") == 1
        assert "Accept: text/html\r\n" in text
        assert "X-Id: 7\r\n" in text

    def test_supplied_connection_wins(self):
        """Test no synthetic line when Connection is supplied."""
        text = render("http://h/", headers={"Connection": "close"})

        assert "Connection: close\r\n" in text
        assert "keep-closed" not in text

    def test_supplied_connection_any_case(self):
        """Test the Connection check ignores case."""
        text = render("http://h/", headers={"connection": "close"})
        assert "keep-closed" not in text

    def test_header_names_kept_as_supplied(self):
        """Test header names are not normalized."""
        text = render("http://h/", headers={"x-lower": "1", "X-UPPER": "2"})

        assert "x-lower: 1\r\n" in text
        assert "X-UPPER: 2\r\n" in text

    def test_header_block_terminated(self):
        """Test the request always ends the header block with CRLF CRLF."""
        assert render("http://h/", headers={"A": "b"}).endswith("\r\n\r\n")

    def test_user_agent_emitted(self):
        """Test user_agent becomes a User-Agent header."""
        text = render("http://h/", user_agent="httpclient/1.0")
        assert "User-Agent: httpclient/1.0\r\n" in text

    def test_user_agent_header_takes_precedence(self):
        """Test an explicit User-Agent header is not duplicated."""
        text = render("http://h/", headers={"User-Agent": "custom"}, user_agent="other")

        assert "User-Agent: custom\r\n" in text
        assert "other" not in text

    @pytest.mark.parametrize("headers", [
        {"X": "a\r\nEvil: 1"},
        {"X": "a\nEvil: 1"},
        {"X\r\nEvil": "1"},
    ])
    def test_line_break_in_header_rejected(self, headers):
        """Test CR/LF in a header cannot inject extra header lines."""
        with pytest.raises(InvalidHeaderError) as exc_info:
            render("http://h/", headers=headers)

        assert isinstance(exc_info.value, ValueError)

    def test_line_break_in_user_agent_rejected(self):
        """Test the user agent is checked like any header value."""
        with pytest.raises(InvalidHeaderError):
            render("http://h/", user_agent="ua\r\nEvil: 1")


class TestRequestBody:
    """Tests for raw_data handling."""

    def test_post_body_appended(self):
        """Test POST sends body with Content-Length and Content-Type."""
        text = render("http://h/notes", HTTPMethod.POST, raw_data="hello world")

        head, _, body = text.partition("\r\n\r\n")
        assert body == "hello world"
        assert "Content-Length: 11" in head
        assert "Content-Type: text/plain; charset=utf-8" in head

    def test_content_length_counts_utf8_bytes(self):
        """Test multi-byte characters are counted in bytes."""
        text = render("http://h/", HTTPMethod.PUT, raw_data="héllo")
        assert "Content-Length: 6\r\n" in text

    def test_supplied_content_type_kept(self):
        """Test a caller Content-Type is not overridden."""
        text = render(
            "http://h/",
            HTTPMethod.POST,
            headers={"Content-Type": "application/json"},
            raw_data="{}",
        )

        assert "Content-Type: application/json\r\n" in text
        assert "text/plain" not in text

    def test_get_ignores_body(self):
        """Test raw_data is not sent with GET."""
        text = render("http://h/", HTTPMethod.GET, raw_data="ignored")

        assert text.endswith("\r\n\r\n")
        assert "ignored" not in text
        assert "Content-Length" not in text

    def test_delete_ignores_body(self):
        """Test raw_data is not sent with DELETE."""
        text = render("http://h/x", HTTPMethod.DELETE, raw_data="ignored")
        assert "ignored" not in text

    def test_empty_body_sends_zero_length(self):
        """Test an empty string body is still a body."""
        text = render("http://h/", HTTPMethod.POST, raw_data="")

        assert "Content-Length: 0\r\n" in text
        assert text.endswith("\r\n\r\n")


class TestRequestBuilder:
    """Tests for RequestBuilder and host handling."""

    @pytest.mark.parametrize("method", list(HTTPMethod))
    def test_method_token(self, method: HTTPMethod):
        """Test every method renders its uppercase token."""
        text, _ = RequestBuilder().build(RequestConfig.from_url("http://h/"), method)
        assert text.startswith(f"{method.value} / HTTP/1.1\r\n")

    def test_returns_host(self):
        """Test the derived host is returned with the text."""
        _, host = build_request(RequestConfig.from_url("https://Example.COM/x"), "GET")
        assert host == "example.com"

    def test_missing_host_raises(self):
        """Test a URL without a host is an explicit error."""
        config = RequestConfig.from_url("file:///etc/hosts")

        with pytest.raises(MissingHostError):
            build_request(config, HTTPMethod.GET)

    def test_malformed_url_rejected_at_construction(self):
        """Test URL errors surface before any request is built."""
        with pytest.raises(URLParseError):
            RequestConfig.from_url("not a url")


class TestRequest:
    """Tests for the mutable Request record."""

    def test_unset_until_setup(self):
        """Test a new request has no text, host or method."""
        request = Request(RequestConfig.from_url("http://h/"))

        assert request.request_text == ""
        assert request.host == ""
        assert request.method_used == ""
        assert request.is_prepared is False

    def test_setup_records_method(self):
        """Test setup_request fills text, host and method tag."""
        request = Request(RequestConfig.from_url("http://h/p"))
        request.setup_request(HTTPMethod.PUT)

        assert request.method_used == "PUT"
        assert request.host == "h"
        assert request.request_text.startswith("PUT /p HTTP/1.1\r\n")
        assert request.is_prepared is True

    def test_setup_regenerates_for_new_method(self):
        """Test switching methods rebuilds the text."""
        request = Request(RequestConfig.from_url("http://h/p"))
        request.setup_request(HTTPMethod.GET)
        request.setup_request(HTTPMethod.DELETE)

        assert request.method_used == "DELETE"
        assert request.request_text.startswith("DELETE /p HTTP/1.1\r\n")

    def test_missing_host_leaves_request_unset(self):
        """Test a failed setup does not leave stale text behind."""
        request = Request(RequestConfig.from_url("file:///tmp/x"))

        with pytest.raises(MissingHostError):
            request.setup_request(HTTPMethod.GET)

        assert request.request_text == ""
        assert request.method_used == ""

    def test_encode(self):
        """Test encode returns UTF-8 bytes of the text."""
        request = Request(RequestConfig.from_url("http://h/"))
        request.setup_request(HTTPMethod.GET)

        assert request.encode() == request.request_text.encode("utf-8")


class TestRequestConfig:
    """Tests for RequestConfig construction and redirects."""

    def test_for_redirect_keeps_query_headers_agent(self):
        """Test redirect config reuses everything but the body."""
        config = RequestConfig.from_url(
            "http://h/old",
            query={"a": "1"},
            headers={"X": "y"},
            user_agent="ua",
            raw_data="body",
        )
        redirected = config.for_redirect("http://h2/new")

        assert redirected.url.host == "h2"
        assert redirected.url.path == "/new"
        assert redirected.query == {"a": "1"}
        assert redirected.headers == {"X": "y"}
        assert redirected.user_agent == "ua"
        assert redirected.raw_data is None

    def test_for_redirect_relative_location(self):
        """Test relative locations resolve against the current URL."""
        config = RequestConfig.from_url("https://h/a/b")
        redirected = config.for_redirect("/c")

        assert redirected.url.scheme == "https"
        assert redirected.url.host == "h"
        assert redirected.url.path == "/c"

    def test_config_is_immutable(self):
        """Test fields cannot be reassigned."""
        config = RequestConfig.from_url("http://h/")

        with pytest.raises(AttributeError):
            config.user_agent = "x"
