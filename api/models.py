"""
API Request and Response Models.

Pydantic models for serializing webhook responses.
"""

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Outcome of a Stripe webhook delivery."""
    message: str

    class Config:
        json_schema_extra = {
            "example": {
                "message": "Sale recorded for customer ID cus_1 and invoice ID in_1"
            }
        }


class HealthResponse(BaseModel):
    status: str
    version: str
    service: str
