from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str
    team_id: Optional[str] = None
