"""
api - REST API layer.

All route modules register on a single Flask Blueprint
with url_prefix /api.
"""

from flask import Blueprint

api_bp = Blueprint("api", __name__, url_prefix="/api")

# Import route modules so their @api_bp decorators execute
from api import auth                 # noqa: F401, E402
from api import routes_health        # noqa: F401, E402
from api import routes_import        # noqa: F401, E402
from api import routes_data_import   # noqa: F401, E402
from api import routes_expenses      # noqa: F401, E402
from api import routes_recipes       # noqa: F401, E402
from api import routes_export        # noqa: F401, E402
from api import routes_ingredients   # noqa: F401, E402
from api import errors               # noqa: F401, E402
