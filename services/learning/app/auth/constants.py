import re

from shared.constants import Role

# Same shape the web and mobile clients validate against
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# Admins are provisioned with scripts/create_admin.py, never through sign-up
SELF_REGISTER_ROLES = frozenset({Role.LEARNER, Role.INSTRUCTOR})
