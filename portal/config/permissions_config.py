"""
Roles and Permissions Configuration
Defines the platform roles, which roles may open each dashboard, and the
permission matrix used by route dependencies and the /auth/me endpoint.
"""

ROLES = ("admin", "organizer", "moderator", "mentor", "participant")

# Roles a user may pick when signing up through the public form
SELF_REGISTER_ROLES = ("participant", "mentor")

MENTOR_STATUSES = ("pending", "approved", "rejected")

# Dashboard name -> roles allowed to open it
DASHBOARD_ACCESS = {
    "admin": ("admin", "moderator"),
    "organizer": ("organizer",),
    "mentor": ("mentor",),
    "participant": ("participant",),
}

LOGIN_PATH = "/login"

STAFF = ("admin", "organizer", "moderator")

# Define modules, their actions, and the roles allowed to perform each action
MODULES = {
    "users": {
        "description": "User profile management",
        "actions": {
            "create": ("admin",),
            "read": ("admin", "moderator"),
            "update": ("admin",),
            "delete": ("admin",),
        },
    },
    "mentors": {
        "description": "Mentor application review",
        "actions": {
            "read": ("admin", "moderator"),
            "review": ("admin", "moderator"),
        },
    },
    "teams": {
        "description": "Team formation",
        "actions": {
            "create": ("participant",),
            "join": ("participant",),
            "read": STAFF,
            "assign_mentor": ("admin", "organizer"),
        },
    },
    "benefits": {
        "description": "Vendor, coupon and assignment management",
        "actions": {
            "create": ("admin",),
            "read": ("admin", "moderator"),
            "update": ("admin",),
            "delete": ("admin",),
            "assign": ("admin",),
            "redeem": ("mentor", "participant"),
        },
    },
    "events": {
        "description": "Event scheduling, gallery and technology stacks",
        "actions": {
            "create": ("admin", "organizer"),
            "update": ("admin", "organizer"),
            "delete": ("admin", "organizer"),
        },
    },
    "content": {
        "description": "News, legal documents and public pages",
        "actions": {
            "create": STAFF,
            "update": STAFF,
            "delete": STAFF,
            "publish": ("admin",),
            "pages": ("admin",),
        },
    },
    "platform": {
        "description": "Platform configuration, SMTP, registration and themes",
        "actions": {
            "read": ("admin",),
            "update": ("admin",),
        },
    },
    "maintenance": {
        "description": "Reconciliation of partially applied writes",
        "actions": {
            "run": ("admin",),
        },
    },
}


def get_permission_matrix():
    """
    Returns the permission list and the permissions granted to each role.
    Format: {
        "permissions": [
            {"name": "teams:create", "resource": "teams", "action": "create",
             "roles": ["participant"], "description": "..."},
            ...
        ],
        "roles": {"admin": ["benefits:assign", ...], ...}
    }
    """
    permissions = []
    roles = {role: [] for role in ROLES}

    for resource, module_config in MODULES.items():
        for action, allowed in module_config["actions"].items():
            name = f"{resource}:{action}"
            permissions.append({
                "name": name,
                "resource": resource,
                "action": action,
                "roles": list(allowed),
                "description": f"{action.capitalize()} - {module_config['description']}",
            })
            for role in allowed:
                roles[role].append(name)

    return {
        "permissions": permissions,
        "roles": {role: sorted(names) for role, names in roles.items()},
    }


def roles_for_permission(permission: str) -> tuple:
    resource, _, action = permission.partition(":")
    module_config = MODULES.get(resource)
    if not module_config:
        raise KeyError(f"Unknown permission: {permission}")
    return module_config["actions"][action]


def dashboard_path_for_role(role: str):
    """Where a freshly logged-in user lands. Unknown roles stay on the login page."""
    if role in ("admin", "moderator"):
        return "/dashboard/admin"
    if role in ("organizer", "mentor", "participant"):
        return f"/dashboard/{role}"
    return None


PERMISSION_MATRIX = get_permission_matrix()
