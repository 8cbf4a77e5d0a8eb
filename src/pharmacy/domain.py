"""Pharmacy bounded context — order lifecycle, reviews, ratings, and reporting.

A single Protean domain hosts every aggregate the marketplace core needs:
medicines (catalogue snapshot source), customers (identity), orders (ledger),
and reviews. Application services in the sub-packages receive their external
collaborators explicitly and work against this domain's repositories.
"""

import structlog
from protean.domain import Domain

pharmacy = Domain(name="pharmacy")

logger = structlog.get_logger(__name__)
