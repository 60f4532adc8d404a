"""
Tests for request context capture and enrichment.

Tests cover:
- Client IP header precedence and fallbacks
- Capturing method, path and headers from a Starlette request
- Explicit values winning over derived ones
- Identity lookup through the users table, and its failure modes
"""

from starlette.requests import Request

from cylinder_audit.services.context import (
    ContextEnricher,
    RequestContext,
    SqlUserDirectory,
    UserInfo,
    extract_ip_address,
    extract_user_agent,
)


def make_request(path="/reports/upload", query=b"", method="POST", headers=None, state=None):
    scope = {
        "type": "http",
        "method": method,
        "scheme": "http",
        "server": ("testserver", 80),
        "path": path,
        "query_string": query,
        "headers": [
            (name.lower().encode(), value.encode())
            for name, value in (headers or {}).items()
        ],
    }
    if state is not None:
        scope["state"] = state
    return Request(scope)


class FailingDirectory:
    def lookup(self, user_id):
        raise ConnectionError("identity provider unreachable")


class StaticDirectory:
    def __init__(self, info):
        self.info = info
        self.calls = 0

    def lookup(self, user_id):
        self.calls += 1
        return self.info


# --- IP extraction ---

class TestExtractIpAddress:

    def test_forwarded_for_wins_over_real_ip(self):
        headers = {"x-forwarded-for": "1.1.1.1, 2.2.2.2", "x-real-ip": "3.3.3.3"}
        assert extract_ip_address(headers) == "1.1.1.1"

    def test_falls_back_to_cloudflare_header(self):
        assert extract_ip_address({"cf-connecting-ip": "9.9.9.9"}) == "9.9.9.9"

    def test_no_relevant_headers_gives_none(self):
        assert extract_ip_address({"user-agent": "curl/8.0"}) is None
        assert extract_ip_address({}) is None
        assert extract_ip_address(None) is None

    def test_unknown_value_is_skipped(self):
        headers = {"x-forwarded-for": "unknown", "x-client-ip": "4.4.4.4"}
        assert extract_ip_address(headers) == "4.4.4.4"

    def test_empty_value_is_skipped(self):
        headers = {"x-forwarded-for": "", "x-real-ip": "5.5.5.5"}
        assert extract_ip_address(headers) == "5.5.5.5"

    def test_value_is_trimmed(self):
        assert extract_ip_address({"x-real-ip": "  6.6.6.6  "}) == "6.6.6.6"

    def test_header_names_are_case_insensitive(self):
        assert extract_ip_address({"X-Real-IP": "7.7.7.7"}) == "7.7.7.7"

    def test_rfc7239_forwarded_gives_the_for_address(self):
        headers = {"forwarded": "for=192.0.2.60;proto=https;by=203.0.113.43"}
        assert extract_ip_address(headers) == "192.0.2.60"

    def test_rfc7239_forwarded_strips_port_and_brackets(self):
        assert extract_ip_address({"forwarded": "for=192.0.2.60:8080"}) == "192.0.2.60"
        headers = {"forwarded": 'for="[2001:db8:cafe::17]:4711";proto=https'}
        assert extract_ip_address(headers) == "2001:db8:cafe::17"

    def test_rfc7239_forwarded_without_for_is_skipped(self):
        assert extract_ip_address({"forwarded": "proto=https;by=203.0.113.43"}) is None

    def test_user_agent(self):
        assert extract_user_agent({"User-Agent": "Mozilla/5.0"}) == "Mozilla/5.0"
        assert extract_user_agent({}) is None


# --- Request capture ---

class TestRequestContext:

    def test_none_request_gives_empty_context(self):
        context = RequestContext.from_request(None)
        assert context == RequestContext()
        assert context.ip_address is None
        assert context.request_path is None

    def test_captures_method_and_path_without_query(self):
        request = make_request(path="/reports/42/edit", query=b"tab=cylinders&x=1", method="PATCH")
        context = RequestContext.from_request(request)

        assert context.request_method == "PATCH"
        assert context.request_path == "/reports/42/edit"

    def test_captures_ip_and_user_agent(self):
        request = make_request(headers={
            "x-forwarded-for": "1.1.1.1, 2.2.2.2",
            "user-agent": "pytest-agent",
        })
        context = RequestContext.from_request(request)

        assert context.ip_address == "1.1.1.1"
        assert context.user_agent == "pytest-agent"

    def test_credentials_are_not_copied_into_headers(self):
        request = make_request(headers={
            "authorization": "Bearer secret-token",
            "cookie": "session=abc",
            "accept": "application/json",
        })
        context = RequestContext.from_request(request)

        assert context.request_headers == {"accept": "application/json"}

    def test_picks_up_correlation_id_from_state(self):
        request = make_request(state={"correlation_id": "corr-123"})
        assert RequestContext.from_request(request).correlation_id == "corr-123"

    def test_missing_state_gives_no_correlation_id(self):
        assert RequestContext.from_request(make_request()).correlation_id is None


# --- Enrichment ---

class TestContextEnricher:

    def test_derived_values_fill_gaps(self):
        enricher = ContextEnricher()
        context = RequestContext(ip_address="8.8.8.8", user_agent="ua", request_method="GET")

        enriched = enricher.enrich({"action": "LOGIN"}, context)

        assert enriched["ip_address"] == "8.8.8.8"
        assert enriched["user_agent"] == "ua"
        assert enriched["request_method"] == "GET"
        assert enriched["request_path"] is None

    def test_explicit_values_win(self):
        enricher = ContextEnricher()
        context = RequestContext(ip_address="8.8.8.8", correlation_id="from-request")

        enriched = enricher.enrich(
            {"ip_address": "10.0.0.1", "correlation_id": "explicit"}, context
        )

        assert enriched["ip_address"] == "10.0.0.1"
        assert enriched["correlation_id"] == "explicit"

    def test_no_context_leaves_network_fields_null(self):
        enriched = ContextEnricher().enrich({"action": "SYSTEM_EVENT"})
        assert enriched["ip_address"] is None
        assert enriched["correlation_id"] is None

    def test_identity_resolved_from_users_table(self, session_factory, user_factory):
        user_factory("u-1", email="jane@example.com", first_name="Jane", last_name="Smith", role="Admin")
        enricher = ContextEnricher(user_directory=SqlUserDirectory(session_factory))

        enriched = enricher.enrich({"user_id": "u-1"})

        assert enriched["user_email"] == "jane@example.com"
        assert enriched["user_name"] == "Jane Smith"
        assert enriched["user_role"] == "Admin"

    def test_explicit_identity_wins_over_directory(self):
        directory = StaticDirectory(UserInfo(email="old@example.com", name="Jane", role="Admin"))
        enricher = ContextEnricher(user_directory=directory)

        enriched = enricher.enrich({"user_id": "u-1", "user_email": "new@example.com"})

        assert enriched["user_email"] == "new@example.com"
        assert enriched["user_name"] == "Jane"

    def test_unknown_user_leaves_identity_empty(self, session_factory):
        enricher = ContextEnricher(user_directory=SqlUserDirectory(session_factory))
        enriched = enricher.enrich({"user_id": "missing"})
        assert enriched.get("user_email") is None

    def test_lookup_failure_is_swallowed(self, caplog):
        enricher = ContextEnricher(user_directory=FailingDirectory())

        enriched = enricher.enrich({"user_id": "u-1"})

        assert enriched.get("user_email") is None
        assert "Could not resolve user u-1" in caplog.text

    def test_no_lookup_without_user_id(self):
        directory = StaticDirectory(UserInfo(email="x@example.com"))
        ContextEnricher(user_directory=directory).enrich({"action": "SYSTEM_EVENT"})
        assert directory.calls == 0
