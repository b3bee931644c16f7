"""Domain business rules and constants."""

from typing import Final

# Canonical references carry the platform's resource-URI scheme
CANONICAL_ID_PREFIX: Final = "gid://shopify/"

# Log operations
OPERATION_TAGS_REMOVED: Final = "Tags-removed"
OPERATION_METAFIELD_CLEARED: Final = "Metafield-cleared"

# Confirmation modal texts
RESTORE_MODAL_TITLE: Final = "Confirm Restore"
RESTORE_MODAL_MESSAGE: Final = "Are you sure you want to restore the removed data?"

# Progress popup banners
RESTORE_BANNER_RUNNING: Final = "Restoring..."
RESTORE_BANNER_DONE: Final = "Restore Completed"

# Count field per countable resource; None means the resource is not countable
COUNT_QUERY_FIELDS: Final[dict[str, str | None]] = {
    "products": "productsCount",
    "productVariants": "productVariantsCount",
    "collections": "collectionsCount",
    "customers": "customersCount",
    "orders": "ordersCount",
    "draftOrder": "draftOrdersCount",
    "companies": "companiesCount",
    "companyLocations": "companyLocationsCount",
    "locations": "locationsCount",
    "pages": "pagesCount",
    "blog": "blogsCount",
    "articles": "articlesCount",
    "markets": "marketsCount",
    "shop": None,
}
