ROLE_SUPER_ADMIN = "SUPER_ADMIN"
ROLE_ADMIN = "ADMIN"
ROLE_MANAGER = "GERENTE"
ROLE_EMPLOYEE = "FUNCIONARIO"
# Issued while a multi-store user still has to pick a store
ROLE_PRE_AUTH = "PRE_AUTH"

STORE_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE)
