"""
Pydantic schemas for annotated blocks, hints, cards and lookup results.
"""
from typing import List, Optional, Tuple
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .config import PLUGIN_ID


class ContextNode(BaseModel):
    """One RDFa annotation node of a block's semantic context."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    object: Optional[str] = Field(None, description="Object URI of the annotation")
    href: Optional[str] = Field(None, description="href attribute of the annotated element")
    predicate: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("predicate", "property"),
        description="Property URI or CURIE",
    )
    subject: Optional[str] = Field(None, description="Subject URI")

    @property
    def reference(self) -> Optional[str]:
        """The referenced URI: object first, href as fallback."""
        return self.object or self.href


class AnnotatedBlock(BaseModel):
    """Text snippet at a specific location with its RDFa context."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    text: str = Field(..., description="Text of the block")
    start: int = Field(..., ge=0, description="Start offset in the document")
    end: int = Field(..., ge=0, description="End offset in the document")
    semantic_context: List[ContextNode] = Field(
        default_factory=list,
        validation_alias=AliasChoices("semantic_context", "semanticContext", "context"),
        description="Annotation nodes, outermost first",
    )
    region_: Optional[Tuple[int, int]] = Field(
        None,
        validation_alias=AliasChoices("region", "region_"),
        description="Region to clear in the hints registry",
    )

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")
        if len(self.text) > self.end - self.start:
            raise ValueError(
                f"text of length {len(self.text)} does not fit in [{self.start}, {self.end}]"
            )
        return self

    @property
    def region(self) -> Tuple[int, int]:
        return self.region_ if self.region_ is not None else (self.start, self.end)

    @property
    def last_node(self) -> Optional[ContextNode]:
        return self.semantic_context[-1] if self.semantic_context else None


class Hint(BaseModel):
    """A hinted term and its absolute location."""
    term: str
    location: Tuple[int, int]

    @model_validator(mode="after")
    def _check_location(self):
        if self.location[0] > self.location[1]:
            raise ValueError(f"location {list(self.location)} is reversed")
        return self


class CardInfo(BaseModel):
    term: str


class CardOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    no_highlight: bool = Field(True, alias="noHighlight")


class Card(BaseModel):
    """Card submitted to the hints registry."""
    model_config = ConfigDict(frozen=True)

    card: str = PLUGIN_ID
    info: CardInfo
    location: Tuple[int, int]
    options: CardOptions = Field(default_factory=CardOptions)


class LookupResult(BaseModel):
    """Description and thumbnail found for a term. None means absent."""
    description: Optional[str] = None
    image: Optional[str] = None
