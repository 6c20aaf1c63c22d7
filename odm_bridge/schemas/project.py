# File: odm_bridge/schemas/project.py

from typing import Optional, Union

from pydantic import BaseModel

# WebODM project ids are integers, but clients frequently send them as strings.
ProjectId = Union[int, str]


class ProjectCreate(BaseModel):
    name: Optional[str] = None


class ProjectDelete(BaseModel):
    project_id: Optional[ProjectId] = None


class ProjectRename(BaseModel):
    project_id: Optional[ProjectId] = None
    new_name: Optional[str] = None
