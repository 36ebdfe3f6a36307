from designhub.models.base import Base  # noqa: F401

from designhub.models.design import Design  # noqa: F401
from designhub.models.listing import Listing  # noqa: F401
from designhub.models.design_product_link import DesignProductLink  # noqa: F401
from designhub.models.idempotency import IdempotencyKey  # noqa: F401
from designhub.models.audit_log import AuditLog  # noqa: F401
