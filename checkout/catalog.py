"""
Catalog snapshot resolution.

Before an order is assembled, every catalog item referenced by the basket is
looked up once. An order must never reference a product that does not exist,
so any missing id aborts the checkout.
"""

import logging
from typing import Iterable

from checkout.errors import NotFoundError
from checkout.interfaces import CatalogQuery
from checkout.models import CatalogFact

logger = logging.getLogger("catalog_resolver")


class CatalogSnapshotResolver:
    """Resolves catalog item ids to the facts frozen into order lines."""

    def __init__(self, catalog: CatalogQuery):
        self.catalog = catalog

    async def resolve(self, ids: Iterable[int]) -> dict[int, CatalogFact]:
        """
        Fetch exactly one CatalogFact per distinct id.

        Raises:
            NotFoundError: If any id has no catalog record.
        """
        wanted = list(dict.fromkeys(ids))
        facts = await self.catalog.list_catalog_items(wanted)

        by_id = {fact.id: fact for fact in facts if fact.id in wanted}
        missing = [i for i in wanted if i not in by_id]
        if missing:
            logger.error(f"Catalog lookup missing ids {missing}")
            raise NotFoundError(missing)

        logger.debug(f"Resolved {len(by_id)} catalog items")
        return by_id
