"""Resolver, executor and Admin API client tests against a fake Admin API."""

import httpx
import pytest
from conftest import FakeAdminApi

from restorelog.application.executor import MutationExecutor
from restorelog.application.resolver import IdentifierResolver
from restorelog.domain.entities import (
    LogItem,
    MetafieldData,
    RestoreJob,
    RestoreKind,
)
from restorelog.domain.exceptions import (
    IdentifierNotFound,
    ResolutionError,
    TransportError,
)
from restorelog.infrastructure.shopify.client import AdminApiClient
from restorelog.infrastructure.shopify.lookups import normalize_object_type


@pytest.mark.asyncio
async def test_canonical_reference_short_circuits(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    resolver = IdentifierResolver.for_client(admin_client)

    resolved = await resolver.resolve(
        "Product", "gid://shopify/Product/1", RestoreKind.TAGS
    )

    assert resolved == "gid://shopify/Product/1"
    assert admin_api.calls == []


@pytest.mark.asyncio
async def test_tag_lookup_searches_by_legacy_id(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    admin_api.on(
        "products(", {"products": {"nodes": [{"id": "gid://shopify/Product/7"}]}}
    )
    resolver = IdentifierResolver.for_client(admin_client)

    resolved = await resolver.resolve("Product", "7", RestoreKind.TAGS)

    assert resolved == "gid://shopify/Product/7"
    assert admin_api.calls[0]["variables"] == {"search": "id:7"}


@pytest.mark.asyncio
async def test_tag_lookup_searches_orders_by_name(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    admin_api.on("orders(", {"orders": {"nodes": [{"id": "gid://shopify/Order/3"}]}})
    resolver = IdentifierResolver.for_client(admin_client)

    resolved = await resolver.resolve("Order", "#1001", RestoreKind.TAGS)

    assert resolved == "gid://shopify/Order/3"
    assert admin_api.calls[0]["variables"] == {"search": "name:#1001"}


@pytest.mark.asyncio
async def test_metafield_lookup_confirms_owner_node(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    admin_api.on("node(", lambda variables: {"node": {"id": variables["id"]}})
    resolver = IdentifierResolver.for_client(admin_client)

    resolved = await resolver.resolve("Order", "450789469", RestoreKind.METAFIELD)

    assert resolved == "gid://shopify/Order/450789469"
    assert admin_api.calls_for("node(")


@pytest.mark.asyncio
async def test_missing_owner_raises_identifier_not_found(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    admin_api.on("node(", {"node": None})
    resolver = IdentifierResolver.for_client(admin_client)

    with pytest.raises(IdentifierNotFound):
        await resolver.resolve("Order", "1", RestoreKind.METAFIELD)

    assert admin_api.calls_for("metafieldsSet") == []


@pytest.mark.asyncio
async def test_unknown_object_type_is_not_found(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    resolver = IdentifierResolver.for_client(admin_client)

    with pytest.raises(IdentifierNotFound):
        await resolver.resolve("Spaceship", "1", RestoreKind.TAGS)

    assert admin_api.calls == []


@pytest.mark.asyncio
async def test_failing_lookup_raises_resolution_error(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    admin_api.on("products(", httpx.Response(503, text="unavailable"))
    resolver = IdentifierResolver.for_client(admin_client)

    with pytest.raises(ResolutionError) as exc_info:
        await resolver.resolve("Product", "7", RestoreKind.TAGS)

    assert not isinstance(exc_info.value, IdentifierNotFound)
    assert str(exc_info.value).startswith("ID resolution failed")


@pytest.mark.asyncio
async def test_tag_restore_sends_all_removed_tags(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    admin_api.on("tagsAdd", {"tagsAdd": {"userErrors": []}})
    executor = MutationExecutor.for_client(admin_client)
    item = LogItem(id="1", removed_tags=("sale", "vip"))
    job = RestoreJob(item, "Product", RestoreKind.TAGS)

    outcome = await executor.execute("gid://shopify/Product/1", job)

    assert outcome.success is True
    assert outcome.errors == []
    assert admin_api.calls[0]["variables"] == {
        "id": "gid://shopify/Product/1",
        "tags": ["sale", "vip"],
    }


@pytest.mark.asyncio
async def test_metafield_restore_sets_the_logged_value(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    admin_api.on(
        "metafieldsSet",
        {
            "metafieldsSet": {
                "metafields": [],
                "userErrors": [
                    {
                        "field": ["metafields", "0", "value"],
                        "message": "too long",
                        "code": "INVALID",
                    }
                ],
            }
        },
    )
    executor = MutationExecutor.for_client(admin_client)
    data = MetafieldData(
        namespace="custom", key="note", type="single_line_text_field", value="hi"
    )
    job = RestoreJob(LogItem(id="1", data=data), "Order", RestoreKind.METAFIELD)

    outcome = await executor.execute("gid://shopify/Order/1", job)

    assert outcome.success is False
    assert outcome.errors[0].message == "too long"
    assert outcome.errors[0].code == "INVALID"
    assert admin_api.calls[0]["variables"] == {
        "metafields": [
            {
                "ownerId": "gid://shopify/Order/1",
                "namespace": "custom",
                "key": "note",
                "type": "single_line_text_field",
                "value": "hi",
            }
        ]
    }


@pytest.mark.asyncio
async def test_graphql_errors_become_transport_errors(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    admin_api.on(
        "tagsAdd",
        httpx.Response(200, json={"errors": [{"message": "Throttled"}]}),
    )
    executor = MutationExecutor.for_client(admin_client)
    job = RestoreJob(LogItem(id="1", removed_tags=("a",)), "Product", RestoreKind.TAGS)

    with pytest.raises(TransportError, match="Throttled"):
        await executor.execute("gid://shopify/Product/1", job)


@pytest.mark.asyncio
async def test_invalid_json_is_a_transport_error(admin_api: FakeAdminApi):
    admin_api.on("shop", httpx.Response(200, text="<html>"))
    client = admin_api.client()

    with pytest.raises(TransportError):
        await client.graphql("query { shop { id } }")

    await client.aclose()


@pytest.mark.asyncio
async def test_access_token_header_is_sent():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = {"data": {"shop": {"id": "gid://shopify/Shop/1"}}}
        return httpx.Response(200, json=body)

    client = AdminApiClient(
        "https://shop.example/graphql.json",
        "secret-token",
        transport=httpx.MockTransport(handler),
    )

    data = await client.graphql("query { shop { id } }")

    assert data == {"shop": {"id": "gid://shopify/Shop/1"}}
    assert seen[0].headers["X-Shopify-Access-Token"] == "secret-token"
    await client.aclose()


@pytest.mark.parametrize(
    ("object_type", "expected"),
    [
        ("Product", "product"),
        ("products", "product"),
        ("DraftOrder", "draftorder"),
        ("draft_orders", "draftorder"),
        ("Companies", "company"),
        ("ProductVariant", "productvariant"),
    ],
)
def test_normalize_object_type(object_type: str, expected: str):
    assert normalize_object_type(object_type) == expected


@pytest.mark.asyncio
async def test_empty_reference_is_not_found_without_lookup(
    admin_api: FakeAdminApi, admin_client: AdminApiClient
):
    resolver = IdentifierResolver.for_client(admin_client)

    with pytest.raises(IdentifierNotFound):
        await resolver.resolve("Product", "", RestoreKind.TAGS)

    assert admin_api.calls == []
