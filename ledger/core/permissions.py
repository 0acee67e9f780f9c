RESOURCES = [
    "users", "roles", "suppliers", "products",
    "rates", "collections", "payments",
]

ACTIONS = ["view", "create", "edit", "delete"]

# Every permission key the API checks
PERMISSIONS = [
    f"{resource}.{action}" for resource in RESOURCES for action in ACTIONS
] + ["reports.view", "audit.view"]


# Roles created by the seeder, mapped to their permission keys
DEFAULT_ROLES = {
    "admin": {
        "display_name": "Administrator",
        "description": "Full system access and management",
        "permissions": list(PERMISSIONS),
    },
    "manager": {
        "display_name": "Manager",
        "description": "Manage collections, payments, and view reports",
        "permissions": [
            "suppliers.view", "suppliers.create", "suppliers.edit",
            "products.view",
            "rates.view", "rates.create", "rates.edit",
            "collections.view", "collections.create", "collections.edit",
            "payments.view", "payments.create", "payments.edit",
            "reports.view",
        ],
    },
    "collector": {
        "display_name": "Collector",
        "description": "Record collections and view basic information",
        "permissions": [
            "suppliers.view",
            "products.view",
            "rates.view",
            "collections.view", "collections.create", "collections.edit",
        ],
    },
    "viewer": {
        "display_name": "Viewer",
        "description": "View-only access to data",
        "permissions": [
            "suppliers.view",
            "products.view",
            "rates.view",
            "collections.view",
            "payments.view",
            "reports.view",
        ],
    },
}
