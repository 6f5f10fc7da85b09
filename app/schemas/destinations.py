from typing import Any, Optional

from pydantic import BaseModel


class RegionGroupOut(BaseModel):
    region: str
    image_path: Optional[str] = None
    image_url: str = ""
    expanded: bool = True
    active_count: int
    tours: list[dict[str, Any]]


class RegionImageOut(BaseModel):
    region: str
    image_path: str
    image_url: str
