"""
services - Business-logic layer sitting between API and DB.
"""

from services.owner_service import OwnerService      # noqa: F401
from services import costing                         # noqa: F401
