"""
Selector Models.

A selector describes which element(s) an edit targets. Index-based selectors
are 1-based: ``index=2`` means "the second" element of the candidate set.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from studio_engines.composition_ir.models import Element, ElementType


class ByIdSelector(BaseModel):
    kind: Literal["by_id"] = "by_id"
    id: str


class ByLabelSelector(BaseModel):
    """Case-insensitive substring match against element labels."""
    kind: Literal["by_label"] = "by_label"
    label: str
    match_all: bool = False  # explicit batch: every match, no disambiguation


class ByIndexSelector(BaseModel):
    kind: Literal["by_index"] = "by_index"
    index: int
    element_type: Optional[ElementType] = None
    where: Dict[str, Any] = Field(default_factory=dict)


class ByTypeSelector(BaseModel):
    kind: Literal["by_type"] = "by_type"
    element_type: ElementType
    index: Optional[int] = None
    where: Dict[str, Any] = Field(default_factory=dict)
    match_all: bool = False


Selector = Annotated[
    Union[ByIdSelector, ByLabelSelector, ByIndexSelector, ByTypeSelector],
    Field(discriminator="kind"),
]


class DisambiguationOption(BaseModel):
    """One candidate offered to the user when a selector is not unique."""
    element_id: str
    label: str
    type: ElementType
    description: str
    layer_index: int


class SelectorResult(BaseModel):
    matches: List[Element] = Field(default_factory=list)
    ambiguous: bool = False
    options: List[DisambiguationOption] = Field(default_factory=list)

    @property
    def element_ids(self) -> List[str]:
        return [el.id for el in self.matches]
