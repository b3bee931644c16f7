"""Read lookups turning legacy references into canonical ids.

Two strategies exist because tag removals and metafield clears were logged
with different kinds of references: tag logs carry the legacy numeric id
(or an order name) of a taggable object, metafield logs carry the owner's
legacy id together with the owner type.
"""

from typing import Final

from ...domain.constants import CANONICAL_ID_PREFIX
from .client import AdminApiClient

# Connection field per taggable object type
_TAGGABLE_CONNECTIONS: Final = {
    "product": "products",
    "order": "orders",
    "customer": "customers",
    "draftorder": "draftOrders",
    "article": "articles",
}

# Object types whose non-numeric references are looked up by name
_NAMED_TYPES: Final = {"order", "draftorder"}

# Canonical resource name per metafield owner type
_METAFIELD_OWNERS: Final = {
    "product": "Product",
    "productvariant": "ProductVariant",
    "collection": "Collection",
    "customer": "Customer",
    "order": "Order",
    "draftorder": "DraftOrder",
    "company": "Company",
    "companylocation": "CompanyLocation",
    "location": "Location",
    "page": "Page",
    "blog": "Blog",
    "article": "Article",
    "market": "Market",
    "shop": "Shop",
}

_NODE_QUERY: Final = """
query resolveNode($id: ID!) {
  node(id: $id) { id }
}
"""

_SHOP_QUERY: Final = """
query shopId {
  shop { id }
}
"""


def normalize_object_type(object_type: str) -> str:
    """Normalize "Draft Orders", "draft_order" and "DraftOrder" alike."""
    normalized = object_type.strip().lower().replace("_", "").replace(" ", "")
    normalized = normalized.replace("-", "")
    if normalized.endswith("ies"):
        return normalized[:-3] + "y"
    if normalized.endswith("s") and normalized[:-1] in (
        set(_TAGGABLE_CONNECTIONS) | set(_METAFIELD_OWNERS)
    ):
        return normalized[:-1]
    return normalized


def _search_term(object_type: str, reference: str) -> str:
    if reference.isdigit():
        return f"id:{reference}"
    if object_type in _NAMED_TYPES:
        return f"name:{reference}"
    return f"id:{reference}"


async def lookup_tag_resource_id(
    client: AdminApiClient, object_type: str, raw_reference: str
) -> str | None:
    """Find the canonical id of a taggable object by its legacy reference."""
    normalized = normalize_object_type(object_type)
    connection = _TAGGABLE_CONNECTIONS.get(normalized)
    if connection is None:
        return None

    query = f"""
    query findTaggable($search: String!) {{
      {connection}(first: 1, query: $search) {{
        nodes {{ id }}
      }}
    }}
    """
    data = await client.graphql(
        query, {"search": _search_term(normalized, str(raw_reference).strip())}
    )
    nodes = (data.get(connection) or {}).get("nodes") or []
    if not nodes:
        return None
    return nodes[0].get("id")


async def lookup_metafield_owner_id(
    client: AdminApiClient, owner_type: str, raw_reference: str
) -> str | None:
    """Find the canonical id of a metafield owner by owner type and legacy id."""
    resource = _METAFIELD_OWNERS.get(normalize_object_type(owner_type))
    if resource is None:
        return None

    if resource == "Shop":
        data = await client.graphql(_SHOP_QUERY)
        return (data.get("shop") or {}).get("id")

    reference = str(raw_reference).strip()
    if not reference:
        return None

    candidate = f"{CANONICAL_ID_PREFIX}{resource}/{reference}"
    data = await client.graphql(_NODE_QUERY, {"id": candidate})
    node = data.get("node")
    if not node:
        return None
    return node.get("id")
