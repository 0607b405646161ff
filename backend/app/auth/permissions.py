"""Permission toggles for staff accounts.

Each screen of the front desk has a view and (where relevant) a manage
toggle. Admins implicitly hold every permission; reception accounts start
from ``RECEPTION_DEFAULTS`` and an admin switches individual toggles on or off.
"""

PERMISSION_NAMES: tuple[str, ...] = (
    "can_view_dashboard",
    "can_view_timeline",
    "can_view_units",
    "can_manage_units",
    "can_view_bookings",
    "can_manage_bookings",
    "can_delete_bookings",
    "can_view_customers",
    "can_manage_customers",
    "can_delete_customers",
    "can_view_services",
    "can_manage_services",
    "can_view_reports",
    "can_view_staff",
    "can_manage_staff",
    "can_view_logs",
    "can_manage_commissions",
    "can_view_maintenance",
    "can_manage_maintenance",
    "can_export_data",
)

VALID_PERMISSIONS: frozenset[str] = frozenset(PERMISSION_NAMES)

ROLES: tuple[str, ...] = ("admin", "reception")

ADMIN_PERMISSIONS: dict[str, bool] = {name: True for name in PERMISSION_NAMES}

RECEPTION_DEFAULTS: dict[str, bool] = {
    "can_view_dashboard": True,
    "can_view_timeline": True,
    "can_view_units": True,
    "can_manage_units": False,
    "can_view_bookings": True,
    "can_manage_bookings": True,
    "can_delete_bookings": False,
    "can_view_customers": True,
    "can_manage_customers": True,
    "can_delete_customers": False,
    "can_view_services": True,
    "can_manage_services": False,
    "can_view_reports": False,
    "can_view_staff": False,
    "can_manage_staff": False,
    "can_view_logs": False,
    "can_manage_commissions": False,
    "can_view_maintenance": False,
    "can_manage_maintenance": False,
    "can_export_data": False,
}


def resolve_permissions(role: str, overrides: dict[str, bool] | None = None) -> dict[str, bool]:
    """Build the full toggle map for a role, applying any known overrides.

    Unknown keys in ``overrides`` are dropped so stale toggles from older
    clients never end up stored.
    """
    base = ADMIN_PERMISSIONS if role == "admin" else RECEPTION_DEFAULTS
    resolved = dict(base)
    for name, value in (overrides or {}).items():
        if name in VALID_PERMISSIONS:
            resolved[name] = bool(value)
    return resolved
