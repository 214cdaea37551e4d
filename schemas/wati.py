from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional


class TemplateParameter(BaseModel):
    """One {{n}} slot of a WATI template message."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class TemplateMessage(BaseModel):
    template_name: str
    broadcast_name: str
    parameters: List[TemplateParameter]


class DeliveryResult(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[Any] = None

    def to_response(self) -> Dict[str, Any]:
        # {success, data} on success, {success, error} on failure
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}
