"""Admin API write mutations and count queries used by the restore flow."""

from typing import Any, Final

from .client import AdminApiClient

TAGS_ADD_MUTATION: Final = """
mutation tagOp($id: ID!, $tags: [String!]!) {
  tagsAdd(id: $id, tags: $tags) {
    userErrors { field message }
  }
}
"""

METAFIELDS_SET_MUTATION: Final = """
mutation metafieldsSet($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields { id namespace key value type }
    userErrors { field message code }
  }
}
"""


async def tags_add(
    client: AdminApiClient, canonical_id: str, tags: list[str]
) -> list[dict[str, Any]]:
    """Add tags to an object and return the mutation's user errors."""
    data = await client.graphql(TAGS_ADD_MUTATION, {"id": canonical_id, "tags": tags})
    return list((data.get("tagsAdd") or {}).get("userErrors") or [])


async def metafields_set(
    client: AdminApiClient, metafield: dict[str, Any]
) -> list[dict[str, Any]]:
    """Set one metafield and return the mutation's user errors."""
    data = await client.graphql(METAFIELDS_SET_MUTATION, {"metafields": [metafield]})
    return list((data.get("metafieldsSet") or {}).get("userErrors") or [])


async def count_by_tag(client: AdminApiClient, count_field: str, tag: str) -> int:
    """Count the resources of one kind that carry a tag."""
    query = f"""
    query countByTag($search: String!) {{
      {count_field}(query: $search) {{ count }}
    }}
    """
    data = await client.graphql(query, {"search": f"tag:{tag}"})
    count = (data.get(count_field) or {}).get("count")
    return int(count or 0)
