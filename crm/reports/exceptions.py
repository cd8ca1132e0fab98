"""Exceptions personnalisées pour le module rapports."""
from datetime import date

from crm.core.exceptions import ValidationException


class InvalidReportPeriodException(ValidationException):
    def __init__(self, start_date: date, end_date: date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(f"Période invalide: la date de fin ({end_date}) précède la date de début ({start_date}).")
