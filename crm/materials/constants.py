"""Constantes pour le module matériaux et stock."""

STOCK_MOVEMENT_IN = "in"
STOCK_MOVEMENT_OUT = "out"

# Nombre maximal de mouvements renvoyés par l'historique
MOVEMENT_HISTORY_LIMIT = 100
