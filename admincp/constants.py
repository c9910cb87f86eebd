"""Well-known seed entities that must always exist."""

SYSTEM_GROUP_ID = "administrator"
SYSTEM_GROUP_NAME = "System User Group"

ADMIN_USERNAME = "admin"
ADMIN_NAME = "Administrator"
DEFAULT_ADMIN_PASSWORD = "s3cr3t"
