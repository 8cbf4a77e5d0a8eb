"""Catalogue snapshot reader — current price and availability at placement time.

The order ledger reads prices exactly once, while placing an order, and
freezes them onto the line items. Nothing downstream re-reads the catalogue.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from pharmacy.catalogue.medicine import Medicine


class CatalogSnapshotReader(ABC):
    """Read-only view of the catalogue consumed by order placement."""

    @abstractmethod
    def get_prices(self, product_ids: Iterable[str]) -> dict[str, float]:
        """Return ``{product_id: price}`` for every known product.

        Unknown identifiers are absent from the result rather than raising.
        """
        ...

    @abstractmethod
    def is_retired(self, product_id: str) -> bool:
        """True when the product is soft-deleted or unknown."""
        ...

    @abstractmethod
    def get_names(self, product_ids: Iterable[str]) -> dict[str, str]:
        """Return ``{product_id: display name}`` for every known product."""
        ...


class RepositoryCatalogReader(CatalogSnapshotReader):
    """Reads Medicine aggregates from the active domain's repository."""

    def _load(self, product_id) -> Medicine | None:
        try:
            return current_domain.repository_for(Medicine).get(str(product_id))
        except ObjectNotFoundError:
            return None

    def _load_many(self, product_ids) -> dict[str, Medicine]:
        loaded = {}
        for product_id in product_ids:
            medicine = self._load(product_id)
            if medicine is not None:
                loaded[str(product_id)] = medicine
        return loaded

    def get_prices(self, product_ids):
        return {pid: medicine.price for pid, medicine in self._load_many(product_ids).items()}

    def is_retired(self, product_id):
        medicine = self._load(product_id)
        return medicine is None or bool(medicine.is_deleted)

    def get_names(self, product_ids):
        return {pid: medicine.name for pid, medicine in self._load_many(product_ids).items()}
