"""Constantes pour le module clients."""

CONTACT_TYPE_INDIVIDUAL = "individual"
CONTACT_TYPE_COMPANY = "company"
CONTACT_TYPES = (CONTACT_TYPE_INDIVIDUAL, CONTACT_TYPE_COMPANY)

# Fenêtre des "clients récents" des statistiques
RECENT_CLIENTS_DAYS = 30
