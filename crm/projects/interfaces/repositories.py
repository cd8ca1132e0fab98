from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from crm.materials.models import ProjectMaterial
from crm.projects.models import Project


class AbstractProjectRepository(ABC):
    """Interface abstraite pour le repository des projets."""

    @abstractmethod
    async def get_by_id(self, project_id: int) -> Optional[Project]:
        pass

    @abstractmethod
    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        priority: Optional[str] = None,
    ) -> Tuple[List[Project], int]:
        pass

    @abstractmethod
    async def create(self, project: Project) -> Project:
        pass

    @abstractmethod
    async def update(self, project: Project, changes: dict) -> Project:
        pass

    @abstractmethod
    async def delete(self, project: Project) -> None:
        pass

    @abstractmethod
    async def next_code(self) -> str:
        """Génère un code projet libre (PRJ-YYYYMMDD-NNNN)."""
        pass

    @abstractmethod
    async def client_exists(self, client_id: int) -> bool:
        pass

    @abstractmethod
    async def list_materials(self, project_id: int) -> List[ProjectMaterial]:
        pass

    @abstractmethod
    async def add_material(self, project_material: ProjectMaterial) -> ProjectMaterial:
        pass

    @abstractmethod
    async def stats(self) -> Dict:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass
