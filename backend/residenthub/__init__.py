# backend/residenthub/__init__.py
"""
Import ORM models from each app so that Base.metadata.create_all() sees
all tables.

The actual model classes are kept in residenthub/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models              # users
from .apps.societies import models as societies_models            # tenants
from .apps.units import models as units_models                    # flats, shops, villas
from .apps.residents import models as residents_models            # directory + join requests
from .apps.maintenance import models as maintenance_models        # monthly bills
from .apps.issues import models as issues_models                  # tickets
from .apps.announcements import models as announcements_models    # notices

__all__ = [
    "accounts_models",
    "societies_models",
    "units_models",
    "residents_models",
    "maintenance_models",
    "issues_models",
    "announcements_models",
]
