"""Authentication and authorization: JWT, Argon2id passwords, RBAC."""
