from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from schemaevo.core.actions.models import ContainerSpec


class PathsRequest(BaseModel):
    container: ContainerSpec
    current: Optional[str] = None
    desired: Optional[str] = None


class PathsResponse(BaseModel):
    container: str
    versions: List[str]
    path: Optional[List[str]] = None
    paths: Optional[Dict[str, Dict[str, List[str]]]] = None


class ConvertRequest(BaseModel):
    container: ContainerSpec
    review: Dict[str, Any]
    nested: List[ContainerSpec] = Field(default_factory=list)


class CrdRequest(BaseModel):
    container: ContainerSpec
    storage_version: Optional[str] = None
    webhook_url: Optional[str] = None


class RenderResponse(BaseModel):
    container: str
    format: str
    files: Dict[str, str]
