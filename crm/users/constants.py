"""Constantes pour le module utilisateurs."""

ROLE_ADMIN = "admin"
ROLE_USER = "user"

PASSWORD_MIN_LENGTH = 6
