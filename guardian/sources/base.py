"""
base.py - Base interface for workflow sources

A workflow source supplies the entries of a repository's workflows directory
to the scanner. Fetching, authentication and pagination are the source's
responsibility; the rule engine only ever sees the returned files.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union

WORKFLOWS_PATH = ".github/workflows"

WORKFLOW_EXTENSIONS = (".yml", ".yaml")


class RetrievalError(Exception):
    """Raised when the workflow files of a repository cannot be obtained"""

    pass


@dataclass(frozen=True)
class WorkflowFile:
    """An entry of a workflows directory"""

    name: str
    content: Union[str, bytes] = ""
    path: str = ""
    type: str = "file"
    # Set when the source could not obtain readable content for this file
    error: Optional[str] = None

    @property
    def is_workflow(self) -> bool:
        """True for plain files with a workflow extension"""
        return self.type == "file" and self.name.endswith(WORKFLOW_EXTENSIONS)


class WorkflowSource(ABC):
    """Supplies the workflow files of a repository"""

    @abstractmethod
    async def fetch_workflows(self, repository_id: str) -> List[WorkflowFile]:
        """
        Fetch the entries of the workflows directory of a repository

        Args:
            repository_id: Identifier of the repository to read

        Returns:
            Directory entries in a stable order

        Raises:
            RetrievalError: If the workflows cannot be retrieved at all
        """
        raise NotImplementedError
