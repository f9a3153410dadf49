"""
Referral Sales Webhooks API - Main Application.

FastAPI application receiving Stripe webhooks for partner sale attribution.
"""

import os

from fastapi import FastAPI

from api import __version__
from api.models import HealthResponse
from config.logging_config import configure_logging

configure_logging(os.getenv("LOG_LEVEL", "INFO").upper())

# Create FastAPI application
app = FastAPI(
    title="Referral Sales Webhooks API",
    description="Records affiliate sales and partner commissions from Stripe events",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.get("/health", tags=["Health"], response_model=HealthResponse)
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        service="referral-sales-webhooks-api",
    )


# Import and include routers
from api.routers import stripe_webhook

app.include_router(stripe_webhook.router, prefix="/api", tags=["Webhooks"])
