"""
Role and action definitions.

Authorization is a single predicate, is_allowed(role, action), over two
closed enumerations. Routes declare the action they perform; nothing else in
the codebase compares role strings.
"""

# =============================================================================
# ROLES
# =============================================================================

ROLE_ADMIN = "ADMIN"
ROLE_VIEWER = "VIEWER"

ROLES = (ROLE_ADMIN, ROLE_VIEWER)
DEFAULT_ROLE = ROLE_VIEWER


# =============================================================================
# ACTIONS
# =============================================================================

class Action:
    """Actions a route can require."""
    VIEW_CATALOG = "VIEW_CATALOG"
    MANAGE_PRODUCTS = "MANAGE_PRODUCTS"
    RECEIVE_STOCK = "RECEIVE_STOCK"

    VIEW_CUSTOMERS = "VIEW_CUSTOMERS"
    MANAGE_CUSTOMERS = "MANAGE_CUSTOMERS"

    VIEW_SALES = "VIEW_SALES"
    CREATE_SALE = "CREATE_SALE"
    RECORD_PAYMENT = "RECORD_PAYMENT"

    VIEW_REPORTS = "VIEW_REPORTS"

    MANAGE_USERS = "MANAGE_USERS"
    VIEW_LOGIN_AUDIT = "VIEW_LOGIN_AUDIT"


# Each action is defined as: (code, description, read_only)
ACTION_DEFINITIONS = [
    (Action.VIEW_CATALOG, "List and view products and their stock history", True),
    (Action.MANAGE_PRODUCTS, "Create, edit and deactivate products", False),
    (Action.RECEIVE_STOCK, "Record incoming stock", False),
    (Action.VIEW_CUSTOMERS, "List and view customers", True),
    (Action.MANAGE_CUSTOMERS, "Create, edit and delete customers", False),
    (Action.VIEW_SALES, "List sales and view invoice detail", True),
    (Action.CREATE_SALE, "Create sales (POS checkout)", False),
    (Action.RECORD_PAYMENT, "Record payments against open sales", False),
    (Action.VIEW_REPORTS, "View sales, stock-in and profit reports", True),
    (Action.MANAGE_USERS, "Create, edit and delete back-office accounts", False),
    (Action.VIEW_LOGIN_AUDIT, "View the login audit trail", False),
]

ALL_ACTIONS = frozenset(code for code, _, _ in ACTION_DEFINITIONS)
READ_ONLY_ACTIONS = frozenset(code for code, _, read_only in ACTION_DEFINITIONS if read_only)


# =============================================================================
# DEFAULT ROLE MAPPINGS
# =============================================================================

ROLE_ACTIONS = {
    ROLE_ADMIN: ALL_ACTIONS,
    ROLE_VIEWER: READ_ONLY_ACTIONS,
}
