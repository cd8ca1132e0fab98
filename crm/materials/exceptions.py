"""Exceptions personnalisées pour le module matériaux."""
from decimal import Decimal

from crm.core.exceptions import ConflictException, NotFoundException, ValidationException


class MaterialNotFoundException(NotFoundException):
    def __init__(self, material_id: int = None):
        super().__init__("Matériau", material_id)


class DuplicateMaterialSKUException(ConflictException):
    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"Un matériau avec le SKU '{sku}' existe déjà.")


class MaterialInUseException(ConflictException):
    """Le matériau est référencé par au moins un projet."""
    def __init__(self, material_id: int):
        self.material_id = material_id
        super().__init__(f"Impossible de supprimer le matériau {material_id}: il est utilisé dans des projets.")


class InsufficientStockException(ValidationException):
    def __init__(self, material_id: int, requested: Decimal, available: Decimal):
        self.material_id = material_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Stock insuffisant pour le matériau {material_id}: demandé {requested}, disponible {available}."
        )


class InactiveMaterialException(ValidationException):
    def __init__(self, material_id: int):
        self.material_id = material_id
        super().__init__(f"Le matériau {material_id} est inactif.")
