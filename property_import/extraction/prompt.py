"""Prompt rendering for LLM extraction using Jinja2."""

import logging
from typing import List, Tuple

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from property_import.domain.models import ListingType, PropertyType
from property_import.normalization.fields import DEFAULT_CITY

from .exceptions import ExtractionError

logger = logging.getLogger(__name__)

_LOCATION_EXAMPLES: List[Tuple[str, str]] = [
    ("Gachi", "Gachibowli"),
    ("Kondapur", "Kondapur"),
    ("Financial District", "Financial District"),
]


class PromptRenderer:
    """Renders the extraction prompt from the packaged template.

    The template is plain text, so autoescaping is off; StrictUndefined
    surfaces missing variables as errors.
    """

    def __init__(
        self,
        template_dir: str = "prompts",
        template_name: str = "property_extraction.j2",
        default_city: str = DEFAULT_CITY,
    ):
        self.template_name = template_name
        self.default_city = default_city
        self.env = Environment(
            loader=PackageLoader("property_import.extraction", template_dir),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        logger.debug(f"Initialized PromptRenderer with template {template_dir}/{template_name}")

    def render(self, post_text: str) -> str:
        """Render the prompt for one caption.

        Raises:
            ExtractionError: If the template is missing or fails to render
        """
        try:
            template = self.env.get_template(self.template_name)
            return template.render(
                post_text=post_text,
                default_city=self.default_city,
                location_examples=_LOCATION_EXAMPLES,
                property_types=[member.value for member in PropertyType],
                listing_types=[member.value for member in ListingType],
            )
        except TemplateError as e:
            logger.error(f"Failed to render prompt template {self.template_name}: {e}")
            raise ExtractionError(f"Prompt rendering failed: {e}") from e
