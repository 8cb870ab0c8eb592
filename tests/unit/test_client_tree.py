# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from enlace import (
    BoundMethod,
    ClientNode,
    ConfigurationError,
    Endpoint,
    ErrorKind,
    MissingParameterError,
    RequestOptions,
    SchemaCycleError,
    StubTransport,
    TransportResponse,
    create_enlace,
)

BASE_URL = "https://api.example.com"
JSON_HEADERS = {"content-type": "application/json"}

SCHEMA = {
    "users": {
        "get": {"method": "GET", "path": "/users/:id"},
        "list": Endpoint("GET", "/users"),
        "posts": {
            "create": {"method": "POST", "path": "/users/{user_id}/posts"},
        },
    },
    "health": {"method": "GET", "path": "/health"},
}


def shape(node):
    if isinstance(node, BoundMethod):
        return "leaf"
    return {key: shape(node[key]) for key in node}


def schema_shape(schema):
    if isinstance(schema, Endpoint) or ("method" in schema and isinstance(schema["method"], str)):
        return "leaf"
    return {key: schema_shape(value) for key, value in schema.items()}


def make_client(transport=None, schema=SCHEMA, **kwargs):
    return create_enlace(schema, base_url=BASE_URL, transport=transport or StubTransport(), **kwargs)


def test_client_shape_mirrors_schema():
    client = make_client()
    assert shape(client) == schema_shape(SCHEMA)
    assert isinstance(client.users, ClientNode)
    assert isinstance(client.users.posts.create, BoundMethod)
    assert client["users"]["get"] is client.users.get
    assert set(client) == {"users", "health"}
    assert "wildcard" not in client
    assert len(client.users) == 3


def test_leaves_bind_their_endpoint_and_key_path():
    client = make_client()
    leaf = client.users.posts.create
    assert leaf.endpoint == Endpoint("POST", "/users/{user_id}/posts")
    assert leaf.definition.key_path == ("users", "posts", "create")
    assert leaf.definition.options.base_url == BASE_URL


def test_unknown_keys_raise_attribute_and_key_errors():
    client = make_client()
    with pytest.raises(AttributeError):
        client.users.nope
    with pytest.raises(KeyError):
        client["nope"]


def test_client_tree_is_read_only():
    client = make_client()
    with pytest.raises(AttributeError):
        client.users = None
    with pytest.raises(AttributeError):
        del client.users
    with pytest.raises(AttributeError):
        client.users.get = None
    with pytest.raises(TypeError):
        client.users._children["extra"] = None


def test_self_referencing_schema_fails_before_client_is_returned():
    schema = {"users": {"get": {"method": "GET", "path": "/users/:id"}}}
    schema["users"]["self"] = schema["users"]
    with pytest.raises(ConfigurationError) as excinfo:
        make_client(schema=schema)
    assert isinstance(excinfo.value, SchemaCycleError)
    assert excinfo.value.path == ("users", "self")


def test_root_cycle_is_detected():
    schema: dict = {"health": {"method": "GET", "path": "/health"}}
    schema["again"] = schema
    with pytest.raises(SchemaCycleError):
        make_client(schema=schema)


def test_shared_acyclic_subtrees_are_allowed():
    shared = {"get": {"method": "GET", "path": "/things/:id"}}
    client = make_client(schema={"a": shared, "b": shared})
    assert shape(client) == {"a": {"get": "leaf"}, "b": {"get": "leaf"}}


@pytest.mark.parametrize(
    "schema",
    [
        {"wildcard": {"method": "GET", "path": "/x"}},
        {"users": {"get": {"method": "GET", "path": "/users/{id"}}},
        {"users": 42},
        {1: {"method": "GET", "path": "/x"}},
        {"": {"method": "GET", "path": "/x"}},
        {"method": "GET", "path": "/x"},
    ],
)
def test_malformed_schemas_fail_fast(schema):
    with pytest.raises(ConfigurationError):
        make_client(schema=schema)


def test_empty_schema_still_has_wildcard():
    client = create_enlace(None, {"base_url": BASE_URL, "transport": StubTransport()})
    assert list(client) == []
    assert client.wildcard is not None


@pytest.mark.asyncio
async def test_scenario_get_user_success():
    transport = StubTransport()
    transport.add(f"{BASE_URL}/users/42", TransportResponse(200, JSON_HEADERS, b'{"id":"42"}'))
    client = make_client(transport)

    response = await client.users.get({"id": "42"})

    assert transport.requests[0].method == "GET"
    assert transport.requests[0].url == f"{BASE_URL}/users/42"
    assert response.ok is True
    assert response.status == 200
    assert response.data == {"id": "42"}


@pytest.mark.asyncio
async def test_scenario_get_user_not_found_is_classified_not_raised():
    transport = StubTransport({f"{BASE_URL}/users/42": TransportResponse(404, JSON_HEADERS, b'{"error":"missing"}')})
    client = make_client(transport)

    response = await client.users.get({"id": "42"})

    assert response.ok is False
    assert response.status == 404
    assert response.error.kind is ErrorKind.HTTP_STATUS
    assert response.error_kind == "http-status"
    assert response.error.body == {"error": "missing"}


def test_missing_parameter_raises_at_call_time_before_io():
    transport = StubTransport()
    client = make_client(transport)
    with pytest.raises(MissingParameterError) as excinfo:
        client.users.get({})
    assert excinfo.value.name == "id"
    assert transport.requests == []


@pytest.mark.asyncio
async def test_leaf_accepts_body_and_call_options():
    transport = StubTransport({f"{BASE_URL}/users/7/posts?draft=true": TransportResponse(201)})
    client = make_client(transport)

    response = await client.users.posts.create(
        {"user_id": 7},
        {"title": "Hello"},
        RequestOptions(query={"draft": True}),
        headers={"X-Trace": "t-1"},
    )

    assert response.ok is True
    sent = transport.requests[0]
    assert sent.method == "POST"
    assert sent.body == b'{"title":"Hello"}'
    assert sent.header_map["x-trace"] == "t-1"


@pytest.mark.asyncio
async def test_scenario_wildcard_matches_equivalent_schema_leaf():
    transport = StubTransport({f"{BASE_URL}/custom/path": TransportResponse(201, JSON_HEADERS, b'{"x":1}')})
    client = make_client(transport, schema={"custom": {"create": {"method": "POST", "path": "/custom/path"}}})

    from_leaf = await client.custom.create(body={"x": 1})
    from_wildcard = await client.wildcard("POST", "/custom/path", {"body": {"x": 1}})

    assert transport.requests[0] == transport.requests[1]
    assert from_leaf == from_wildcard
    assert from_wildcard.data == {"x": 1}


@pytest.mark.asyncio
async def test_wildcard_classifies_like_schema_leaves():
    transport = StubTransport({f"{BASE_URL}/users/42": TransportResponse(404)})
    client = make_client(transport)

    from_leaf = await client.users.get({"id": "42"})
    from_wildcard = await client.wildcard("GET", "/users/:id", params={"id": "42"})

    assert transport.requests[0] == transport.requests[1]
    assert from_leaf.error.kind is from_wildcard.error.kind is ErrorKind.HTTP_STATUS


@pytest.mark.asyncio
async def test_wildcard_attribute_paths():
    transport = StubTransport({f"{BASE_URL}/users/42/posts?page=2": TransportResponse(200, JSON_HEADERS, b"[]")})
    client = make_client(transport)

    response = await client.wildcard.users[42].posts.get(query={"page": 2})

    assert response.ok is True
    assert response.data == []
    assert transport.requests[0].url == f"{BASE_URL}/users/42/posts?page=2"


@pytest.mark.asyncio
async def test_wildcard_item_segments_are_literal():
    transport = StubTransport({f"{BASE_URL}/a%3Ab/%7Bid%7D": TransportResponse(204)})
    client = make_client(transport)

    response = await client.wildcard["a:b"]["{id}"].delete()

    assert response.ok is True
    assert transport.requests[0].method == "DELETE"


def test_wildcard_rejects_malformed_paths():
    client = make_client()
    with pytest.raises(ConfigurationError):
        client.wildcard("GET", "/users/{id")
    with pytest.raises(ConfigurationError):
        client.wildcard("NOT A VERB", "/users")


def test_resolve_without_dispatch():
    client = make_client()
    request = client.users.get.resolve({"id": "1"}, query={"expand": "posts"})
    assert request.url == f"{BASE_URL}/users/1?expand=posts"
    assert request.body is None


@pytest.mark.asyncio
async def test_retry_policy_mapping_is_normalized_at_construction():
    transport = StubTransport()
    client = create_enlace(
        SCHEMA,
        {"base_url": BASE_URL, "transport": transport, "retry_policy": {"max_attempts": 3, "backoff": 0}},
    )

    response = await client.users.get({"id": "1"})

    assert response.error.kind is ErrorKind.NETWORK
    assert response.meta["attempts"] == 3
    assert response.meta["retry_exhausted"] is True
    assert len(transport.requests) == 3


def test_malformed_retry_policy_fails_at_construction():
    with pytest.raises(ConfigurationError):
        make_client(retry_policy={"attempts": 3})
    with pytest.raises(ConfigurationError):
        make_client(retry_policy="always")


@pytest.mark.asyncio
async def test_per_call_retry_settings_win_over_client_policy():
    transport = StubTransport()
    client = make_client(transport, retry_policy={"max_attempts": 3, "backoff": 0})

    disabled = await client.users.get({"id": "1"}, retry_policy=False)
    assert disabled.meta["attempts"] == 1

    counted = await client.users.get({"id": "1"}, retry_policy=1)
    assert counted.meta["attempts"] == 2

    widened = await client.wildcard("GET", "/users/1", retry_policy={"max_attempts": 4})
    assert widened.meta["attempts"] == 4
    assert len(transport.requests) == 7

    with pytest.raises(ConfigurationError):
        client.users.get({"id": "1"}, retry_policy={"tries": 2})


def test_schema_keys_named_like_mapping_methods_stay_reachable():
    client = make_client(schema={"keys": {"list": {"method": "GET", "path": "/keys"}}, "items": {"method": "GET", "path": "/items"}})
    assert isinstance(client.keys, ClientNode)
    assert isinstance(client.items, BoundMethod)
    assert sorted(client) == ["items", "keys"]
