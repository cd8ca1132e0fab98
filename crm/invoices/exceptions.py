"""Exceptions personnalisées pour le module factures."""
from decimal import Decimal

from crm.core.exceptions import ConflictException, NotFoundException, ValidationException


class InvoiceNotFoundException(NotFoundException):
    def __init__(self, invoice_id: int = None):
        super().__init__("Facture", invoice_id)


class InvoiceClientNotFoundException(ValidationException):
    def __init__(self, client_id: int):
        self.client_id = client_id
        super().__init__(f"Client {client_id} introuvable pour cette facture.")


class InvoiceReferenceException(ValidationException):
    """Projet ou devis absent, ou rattaché à un autre client."""
    def __init__(self, entity: str, entity_id: int, client_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} introuvable ou non rattaché(e) au client {client_id}.")


class InvoiceItemsRequiredException(ValidationException):
    def __init__(self):
        super().__init__("Une facture doit contenir au moins une ligne ou référencer un devis accepté.")


class InvoiceDatesException(ValidationException):
    def __init__(self):
        super().__init__("La date d'échéance doit être postérieure ou égale à la date d'émission.")


class PaymentNotAllowedException(ValidationException):
    def __init__(self, invoice_id: int, status: str):
        self.invoice_id = invoice_id
        self.status = status
        super().__init__(f"Impossible d'enregistrer un paiement sur la facture {invoice_id} au statut '{status}'.")


class PaymentExceedsBalanceException(ValidationException):
    def __init__(self, amount: Decimal, balance: Decimal):
        self.amount = amount
        self.balance = balance
        super().__init__(f"Le paiement ({amount}) dépasse le solde restant dû ({balance}).")


class InvoiceTotalBelowPaidException(ConflictException):
    def __init__(self, total: Decimal, paid_amount: Decimal):
        self.total = total
        self.paid_amount = paid_amount
        super().__init__(f"Le nouveau total ({total}) est inférieur au montant déjà payé ({paid_amount}).")


class QuoteAlreadyInvoicedException(ConflictException):
    def __init__(self, quote_id: int):
        self.quote_id = quote_id
        super().__init__(f"Le devis {quote_id} a déjà été facturé.")
