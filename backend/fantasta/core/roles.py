ROLE_USER = "user"
ROLE_ADMIN = "admin"

