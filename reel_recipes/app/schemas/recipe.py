from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Ingredient(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    amount: str


class HtmlRecipe(BaseModel):
    """Recipe whose ingredients and steps are HTML fragments."""

    model_config = ConfigDict(extra="forbid")

    format: Literal["html"] = "html"
    name: str
    ingredients: str
    steps: str
    url: Optional[str] = None


class StructuredRecipe(BaseModel):
    """Recipe with typed ingredient and step lists."""

    model_config = ConfigDict(extra="forbid")

    format: Literal["structured"] = "structured"
    name: str
    ingredients: List[Ingredient]
    steps: List[str]
    url: Optional[str] = None


RecipeDraft = Annotated[Union[HtmlRecipe, StructuredRecipe], Field(discriminator="format")]


class ExtractionResult(BaseModel):
    recipe: RecipeDraft
