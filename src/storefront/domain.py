"""Storefront bounded context — editing-service catalogue, cart, checkout and payments.

A single domain hosts every aggregate so that checkout (order + items + coupon
usage + cart clear) and payment reconciliation (payment + order) each commit in
one unit of work.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging(log_file_prefix="storefront")

logger = get_logger(__name__)

storefront = Domain(name="storefront")
