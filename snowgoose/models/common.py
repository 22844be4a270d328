"""Shared types for chat requests and stream events."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire.

    Fields are declared in snake_case and accepted under either name.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    def to_wire(self) -> dict:
        """Dump to the camelCase dict sent to clients."""
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Usage summary (reported by adapters on the terminal meta event)
# =============================================================================


class UsageSummary(CamelModel):
    """Token usage and dollar cost for one upstream response."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_cost: float = 0.0
    did_generate_image: bool = False
    web_search_count: int = 0
