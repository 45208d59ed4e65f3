"""Output formatter interface and options."""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field

from ..builder.models import IntermediateSchema


class FormatterOptions(BaseModel):
    """Options shared by all output formatters."""
    include_comments: bool = Field(default=True, description="Include table/column comments")
    include_indexes: bool = Field(default=True, description="Include indexes")
    include_constraints: bool = Field(default=True, description="Include constraints")


class OutputFormatter(ABC):
    """Abstract base class for rendering an ``IntermediateSchema``."""

    #: File extension of the rendered output, without the dot
    extension: str = ""

    def __init__(self, options: Optional[FormatterOptions] = None):
        self.options = options or FormatterOptions()

    @abstractmethod
    def format(self, schema: IntermediateSchema) -> str:
        """Render the schema as a single document.

        Args:
            schema: The schema to render

        Returns:
            The rendered document
        """
        pass
