"""Model, vendor and user records read by the chat pipeline."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

from .common import CamelModel


class ModelConfig(BaseModel):
    """Resolved, read-only view of a model and its vendor.

    Built fresh per request from the models and api_vendors tables.
    Token costs are dollars per million tokens.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    api_name: str
    vendor_name: str
    is_vision: bool = False
    is_image_generation: bool = False
    is_thinking: bool = False
    is_web_search: bool = False
    input_token_cost: Optional[float] = None
    output_token_cost: Optional[float] = None
    image_output_cost: Optional[float] = None
    web_search_cost: Optional[float] = None


class APIVendorRecord(BaseModel):
    """Row of the api_vendors table."""

    id: int
    name: str


class ModelRecord(BaseModel):
    """Row of the models table."""

    model_config = ConfigDict(protected_namespaces=())

    id: int
    api_name: str
    name: str
    api_vendor_id: Optional[int] = None
    is_vision: bool = False
    is_image_generation: bool = False
    is_thinking: bool = False
    is_web_search: bool = False
    input_token_cost: Optional[float] = None
    output_token_cost: Optional[float] = None
    image_output_cost: Optional[float] = None
    web_search_cost: Optional[float] = None
    paid_only: bool = False


class UserRecord(BaseModel):
    """Row of the users table."""

    id: int
    auth_id: str
    username: str
    email: Optional[str] = None
    is_admin: bool = False
    credit_balance: float = 0.0


# =============================================================================
# API responses
# =============================================================================


class VendorInfo(CamelModel):
    """API vendor as listed by /api/api-vendors."""

    id: int
    name: str


class ModelInfo(CamelModel):
    """Model as listed by /api/models."""

    id: int
    api_name: str
    name: str
    api_vendor: Optional[VendorInfo] = None
    is_vision: bool
    is_image_generation: bool
    is_thinking: bool
    is_web_search: bool
    paid_only: bool


class ModelListResponse(CamelModel):
    """Response of /api/models."""

    object: Literal["list"] = "list"
    data: List[ModelInfo]


class VendorListResponse(CamelModel):
    """Response of /api/api-vendors."""

    object: Literal["list"] = "list"
    data: List[VendorInfo]


class CreditBalance(CamelModel):
    """Credit balance of the current user."""

    user_id: int
    credit_balance: float
