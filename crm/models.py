"""
Registre des modèles de table.

Importer ce module garantit que toutes les tables et relations sont
déclarées dans `SQLModel.metadata` avant `create_all` ou la configuration
des mappers.
"""
from crm.clients.models import Client  # noqa: F401
from crm.documents.models import DocumentSequence  # noqa: F401
from crm.invoices.models import Invoice, InvoiceItem, InvoicePayment  # noqa: F401
from crm.materials.models import Material, ProjectMaterial, StockMovement  # noqa: F401
from crm.projects.models import Project  # noqa: F401
from crm.quotes.models import Quote, QuoteItem  # noqa: F401
from crm.users.models import User  # noqa: F401
