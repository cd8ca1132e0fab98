"""
Calcul des montants des devis et des factures.

Fonctions pures: aucun accès base de données. Les montants sont calculés en
Decimal et arrondis au centime (arrondi commercial). Le total n'est pas
borné: une remise supérieure au sous-total taxé donne un total négatif.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol, Union

from pydantic import BaseModel

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


class PricedLine(Protocol):
    quantity: Number
    unit_price: Number


class DocumentTotals(BaseModel):
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # Passer par str évite les artefacts binaires des floats
    return Decimal(str(value))


def money(value: Number) -> Decimal:
    """Arrondit un montant au centime."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(quantity: Number, unit_price: Number) -> Decimal:
    return money(to_decimal(quantity) * to_decimal(unit_price))


def compute_subtotal(items: Iterable[PricedLine]) -> Decimal:
    subtotal = sum(
        (to_decimal(item.quantity) * to_decimal(item.unit_price) for item in items),
        Decimal("0"),
    )
    return money(subtotal)


def compute_tax(subtotal: Number, tax_rate: Number) -> Decimal:
    return money(to_decimal(subtotal) * to_decimal(tax_rate) / HUNDRED)


def compute_totals(items: Iterable[PricedLine], tax_rate: Number = 0, discount: Number = 0) -> DocumentTotals:
    """subtotal = Σ quantité × prix, taxe = subtotal × taux / 100, total = subtotal + taxe − remise."""
    subtotal = compute_subtotal(items)
    return totals_from_subtotal(subtotal, tax_rate, discount)


def totals_from_subtotal(subtotal: Number, tax_rate: Number = 0, discount: Number = 0) -> DocumentTotals:
    """Recalcule taxe et total quand seuls le taux ou la remise changent."""
    subtotal = money(subtotal)
    tax_amount = compute_tax(subtotal, tax_rate)
    total = money(subtotal + tax_amount - to_decimal(discount))
    return DocumentTotals(subtotal=subtotal, tax_amount=tax_amount, total=total)


def compute_balance(total: Number, paid_amount: Number) -> Decimal:
    return money(to_decimal(total) - to_decimal(paid_amount))
