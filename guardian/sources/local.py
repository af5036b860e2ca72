"""
local.py - Workflow source backed by the local filesystem
"""

from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from .base import WORKFLOWS_PATH, RetrievalError, WorkflowFile, WorkflowSource


class LocalWorkflowSource(WorkflowSource):
    """Reads workflows from repositories checked out on disk"""

    def __init__(self, root: Optional[Union[str, Path]] = None) -> None:
        """
        Args:
            root: Directory containing repositories; when omitted, repository
                ids are paths themselves
        """
        self.root = Path(root) if root is not None else None

    def repository_path(self, repository_id: str) -> Path:
        if self.root is None:
            return Path(repository_id)
        return self.root / repository_id

    async def fetch_workflows(self, repository_id: str) -> List[WorkflowFile]:
        workflow_dir = self.repository_path(repository_id).joinpath(*WORKFLOWS_PATH.split("/"))
        if not workflow_dir.is_dir():
            raise RetrievalError("No workflows directory found or not a directory")

        try:
            entries = sorted(workflow_dir.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise RetrievalError(f"Cannot list {workflow_dir}: {e}") from e

        files: List[WorkflowFile] = []
        for entry in entries:
            relative = f"{WORKFLOWS_PATH}/{entry.name}"
            if not entry.is_file():
                files.append(WorkflowFile(name=entry.name, path=relative, type="dir"))
                continue

            try:
                content = entry.read_bytes()
            except OSError as e:
                raise RetrievalError(f"Cannot read {entry}: {e}") from e

            files.append(WorkflowFile(name=entry.name, content=content, path=relative))

        logger.debug("{} entries found in {}", len(files), workflow_dir)
        return files
