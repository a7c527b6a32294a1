from fastapi import FastAPI, Request, Response

from elementor_relay.config import get_settings
from elementor_relay.logging_config import setup_logging
from elementor_relay.routers import health, webhook

setup_logging(get_settings().log_level)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

app = FastAPI(title="Elementor WhatsApp Webhook")


@app.middleware("http")
async def permissive_cors(request: Request, call_next):
    # Preflights are answered here, before routing
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


# Include Routers
app.include_router(health.router)
app.include_router(webhook.router)
