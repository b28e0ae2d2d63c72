from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

Dimension = Literal["group", "unit", "location", "title"]


class FilterSpecModel(BaseModel):
    group: List[str] = Field(default_factory=list)
    unit: List[str] = Field(default_factory=list)
    location: List[str] = Field(default_factory=list)
    title: List[str] = Field(default_factory=list)
    min_staff: float = 0
    max_staff: float = 1000


class SearchSpecModel(BaseModel):
    unit: str = ""
    location: str = ""
    title: str = ""


class SelectionModel(BaseModel):
    dimension: Dimension
    value: str


class TableSortModel(BaseModel):
    column: str = "StaffCount"
    direction: Literal["asc", "desc"] = "desc"


class ViewStateModel(BaseModel):
    filters: FilterSpecModel = Field(default_factory=FilterSpecModel)
    search: SearchSpecModel = Field(default_factory=SearchSpecModel)
    selected: Optional[SelectionModel] = None
    cross_filter_active: bool = True
    sort: TableSortModel = Field(default_factory=TableSortModel)
    page: int = 0


class SelectEntityRequest(BaseModel):
    state: ViewStateModel = Field(default_factory=ViewStateModel)
    dimension: Dimension
    item: Union[str, Dict[str, Any], None] = None


class CountsResponse(BaseModel):
    groups: int
    units: int
    locations: int
    titles: int
    assignments: int


class OptionsResponse(BaseModel):
    group: List[str]
    unit: List[str]
    location: List[str]
    title: List[str]
