"""Tests for the fact scanners."""
from pathlib import Path

from apigrade.ingest import load_api, parse_endpoint_list, parse_openapi
from apigrade.scanners import (
    DocumentationScanner,
    ErrorHandlingScanner,
    HttpSemanticsScanner,
    NamingScanner,
    ResponseDesignScanner,
    SecurityScanner,
    VersioningScanner,
    collect_facts,
)
from apigrade.scanners.naming import looks_plural

FIXTURES = Path(__file__).parent / "fixtures"


def _facts_by_key(facts, location="api"):
    return {f.key: f for f in facts if f.location == location}


def _legacy():
    return load_api(FIXTURES / "shop_legacy.yaml")


# --- naming ---

def test_naming_verb_and_casing():
    facts = _facts_by_key(NamingScanner().scan(_legacy()), "GET /getUsers")
    assert facts["path.has_verb_segment"].value is True
    assert facts["path.has_verb_segment"].field == "getUsers"
    assert facts["path.non_kebab_segment"].value is True
    assert facts["path.nesting_depth"].value == 0


def test_naming_singular_collection():
    facts = _facts_by_key(NamingScanner().scan(_legacy()), "GET /user/{id}")
    assert facts["path.singular_collection"].value is True
    assert facts["path.singular_collection"].field == "user"
    assert facts["path.has_verb_segment"].value is False


def test_naming_mixed_property_casing():
    facts = _facts_by_key(NamingScanner().scan(_legacy()))
    fact = facts["schemas.mixed_property_casing"]
    assert fact.value is True
    assert "userId" in fact.field
    assert "first_name" in fact.field


def test_naming_trailing_slash_extension_and_depth():
    api = parse_endpoint_list(
        "GET /reports.json\n"
        "GET /teams/\n"
        "GET /users/{a}/posts/{b}/comments/{c}\n"
    )
    facts = NamingScanner().scan(api)
    assert _facts_by_key(facts, "GET /reports.json")["path.file_extension"].field == "reports.json"
    assert _facts_by_key(facts, "GET /teams/")["path.trailing_slash"].value is True
    assert _facts_by_key(facts, "GET /users/{a}/posts/{b}/comments/{c}")["path.nesting_depth"].value == 3


def test_naming_version_segment_is_not_a_resource():
    api = parse_endpoint_list("GET /v2/users/{id}\n")
    facts = _facts_by_key(NamingScanner().scan(api), "GET /v2/users/{id}")
    assert facts["path.non_kebab_segment"].value is False
    assert facts["path.singular_collection"].value is False


def test_naming_skips_property_casing_for_endpoint_lists():
    api = parse_endpoint_list("GET /users\n")
    assert "schemas.mixed_property_casing" not in _facts_by_key(NamingScanner().scan(api))


def test_looks_plural():
    assert looks_plural("users")
    assert looks_plural("order-items")
    assert looks_plural("lineItems")
    assert looks_plural("people")
    assert not looks_plural("user")
    assert not looks_plural("address")
    assert not looks_plural("status-bus")


# --- HTTP semantics ---

def test_http_safe_method_mutation():
    facts = _facts_by_key(HttpSemanticsScanner().scan(_legacy()), "GET /users/{id}/delete")
    assert facts["http.safe_method_mutates"].value is True
    assert facts["http.safe_method_mutates"].field == "delete"


def test_http_status_facts():
    facts = HttpSemanticsScanner().scan(_legacy())
    create = _facts_by_key(facts, "POST /users")
    login = _facts_by_key(facts, "GET /login")

    assert create["http.create_without_201"].value is True
    assert login["http.body_on_safe_method"].value is True
    assert login["http.nonstandard_status"].value is True
    assert login["http.nonstandard_status"].field == "299"
    assert login["http.no_success_status"].value is False


def test_http_endpoint_list_only_shape_facts():
    api = parse_endpoint_list("DELETE /sessions\nDELETE /sessions/{id}\n")
    facts = HttpSemanticsScanner().scan(api)
    assert {f.key for f in facts} == {"http.safe_method_mutates", "http.collection_wide_mutation"}
    assert _facts_by_key(facts, "DELETE /sessions")["http.collection_wide_mutation"].value is True
    assert _facts_by_key(facts, "DELETE /sessions/{id}")["http.collection_wide_mutation"].value is False


# --- response design ---

def test_response_bare_unpaginated_array():
    facts = _facts_by_key(ResponseDesignScanner().scan(_legacy()), "GET /getUsers")
    assert facts["response.collection_unpaginated"].value is True
    assert facts["response.collection_unpaginated"].field == "200 array body"
    assert facts["response.bare_array"].value is True


def test_response_paginated_envelope():
    api = load_api(FIXTURES / "bookstore_clean.yaml")
    facts = _facts_by_key(ResponseDesignScanner().scan(api), "GET /v1/books")
    assert facts["response.collection_unpaginated"].value is False
    assert facts["response.bare_array"].value is False


def test_response_missing_schema_and_location():
    doc = {"openapi": "3.0.0", "paths": {"/items": {"post": {"responses": {
        "201": {"description": "created"},
    }}}}}
    facts = _facts_by_key(ResponseDesignScanner().scan(parse_openapi(doc)), "POST /items")
    assert facts["response.missing_schema"].value is True
    assert facts["response.missing_schema"].field == "201"
    assert facts["response.created_without_location"].value is True


def test_response_no_body_status_is_not_missing_schema():
    api = load_api(FIXTURES / "bookstore_clean.yaml")
    facts = _facts_by_key(ResponseDesignScanner().scan(api), "DELETE /v1/books/{bookId}")
    assert facts["response.missing_schema"].value is False


# --- error handling ---

def test_errors_endpoint_facts():
    facts = ErrorHandlingScanner().scan(_legacy())
    get_user = _facts_by_key(facts, "GET /user/{id}")
    create = _facts_by_key(facts, "POST /users")

    assert get_user["errors.no_client_error"].value is True
    assert get_user["errors.missing_404"].value is True
    assert create["errors.no_client_error"].value is False
    assert create["errors.missing_400"].value is False
    assert create["errors.missing_schema"].value is False


def test_errors_schema_variants():
    facts = _facts_by_key(ErrorHandlingScanner().scan(_legacy()))
    assert facts["errors.schema_variants"].value == 2
    assert facts["errors.schema_variants"].field == "inline{error}, Error"
    assert facts["errors.schema_missing_fields"].value is False


def test_errors_schema_missing_fields():
    doc = {"openapi": "3.0.0", "paths": {"/items": {"get": {"responses": {
        "200": {"description": "ok"},
        "400": {"description": "bad", "content": {"application/json": {"schema": {
            "type": "object", "properties": {"reason": {"type": "string"}},
        }}}},
    }}}}}
    facts = _facts_by_key(ErrorHandlingScanner().scan(parse_openapi(doc)))
    assert facts["errors.schema_variants"].value == 1
    assert facts["errors.schema_missing_fields"].value is True
    assert facts["errors.schema_missing_fields"].field == "inline{reason}"


# --- versioning ---

def test_versioning_strategies():
    assert _facts_by_key(VersioningScanner().scan(_legacy()))["versioning.strategy"].value == "none"

    clean = load_api(FIXTURES / "bookstore_clean.yaml")
    assert _facts_by_key(VersioningScanner().scan(clean))["versioning.strategy"].value == "path"

    swagger = load_api(FIXTURES / "pets_swagger2.json")
    assert _facts_by_key(VersioningScanner().scan(swagger))["versioning.strategy"].value == "server"


def test_versioning_mixed_paths_and_query():
    doc = {"openapi": "3.0.0", "paths": {
        "/v1/users": {"get": {"responses": {"200": {"description": "ok"}}}},
        "/orders": {"get": {
            "parameters": [{"name": "api-version", "in": "query"}],
            "responses": {"200": {"description": "ok"}},
        }},
    }}
    facts = _facts_by_key(VersioningScanner().scan(parse_openapi(doc)))
    assert facts["versioning.strategy"].value == "path"
    assert facts["versioning.mixed_paths"].value is True
    assert facts["versioning.mixed_paths"].field == "GET /orders"
    assert facts["versioning.query_parameter"].value is True


# --- security ---

def test_security_legacy_facts():
    facts = SecurityScanner().scan(_legacy())
    login = _facts_by_key(facts, "GET /login")
    api_facts = _facts_by_key(facts)

    assert login["security.unauthenticated"].value is True
    assert login["security.sensitive_query_param"].field == "query.password"
    assert api_facts["security.plaintext_server"].field == "http://api.shop.example"
    assert api_facts["security.api_key_in_query"].field == "apiKey"


def test_security_public_operation_and_401():
    facts = SecurityScanner().scan(load_api(FIXTURES / "bookstore_clean.yaml"))
    health = _facts_by_key(facts, "GET /v1/health")
    books = _facts_by_key(facts, "GET /v1/books")

    assert health["security.unauthenticated"].value is False
    assert health["security.missing_401"].value is False
    assert books["security.unauthenticated"].value is False
    assert books["security.missing_401"].value is False


def test_security_localhost_is_not_plaintext():
    doc = {"openapi": "3.0.0", "servers": [{"url": "http://localhost:8080"}], "paths": {}}
    facts = _facts_by_key(SecurityScanner().scan(parse_openapi(doc)))
    assert facts["security.plaintext_server"].value is False


# --- documentation ---

def test_documentation_facts():
    facts = DocumentationScanner().scan(_legacy())
    get_users = _facts_by_key(facts, "GET /getUsers")
    get_user = _facts_by_key(facts, "GET /user/{id}")
    api_facts = _facts_by_key(facts)

    assert get_users["docs.missing_summary"].value is True
    assert get_users["docs.missing_operation_id"].value is True
    assert get_user["docs.undocumented_parameters"].field == "id"
    assert api_facts["docs.missing_api_description"].value is True
    assert api_facts["docs.missing_contact"].value is True
    assert api_facts["docs.duplicate_operation_id"].field == "fetchUser"


# --- detailed-only scanners ---

def test_detailed_scanners_emit_nothing_for_endpoint_lists():
    api = load_api(FIXTURES / "routes.txt")
    for scanner in (ResponseDesignScanner(), ErrorHandlingScanner(), SecurityScanner(), DocumentationScanner()):
        assert scanner.scan(api) == []


def test_collect_facts_has_no_duplicate_keys_per_location():
    facts = collect_facts(_legacy())
    seen = set()
    for f in facts:
        assert (f.location, f.key) not in seen
        seen.add((f.location, f.key))


def _single_get(path, schema, parameters=()):
    return parse_openapi({"openapi": "3.0.0", "paths": {path: {"get": {
        "parameters": list(parameters),
        "responses": {"200": {"description": "ok", "content": {"application/json": {"schema": schema}}}},
    }}}})


def test_response_array_field_on_single_resource_is_not_a_list():
    api = _single_get("/users/{id}", {
        "type": "object",
        "properties": {"id": {"type": "string"}, "roles": {"type": "array", "items": {"type": "string"}}},
    })
    facts = _facts_by_key(ResponseDesignScanner().scan(api), "GET /users/{id}")
    assert facts["response.collection_unpaginated"].value is False
    assert facts["response.collection_unpaginated"].field is None


def test_response_unpaginated_envelope_on_collection():
    api = _single_get("/users", {
        "type": "object",
        "properties": {"data": {"type": "array", "items": {"type": "string"}}},
    })
    facts = _facts_by_key(ResponseDesignScanner().scan(api), "GET /users")
    assert facts["response.collection_unpaginated"].value is True
    assert facts["response.collection_unpaginated"].field == "data"


def test_naming_placeholder_with_extension_is_a_parameter():
    api = parse_endpoint_list("GET /files/{name}.json\n")
    facts = _facts_by_key(NamingScanner().scan(api), "GET /files/{name}.json")
    assert facts["path.non_kebab_segment"].value is False
    assert facts["path.file_extension"].value is True
    assert facts["path.file_extension"].field == "{name}.json"
    assert facts["path.nesting_depth"].value == 1
