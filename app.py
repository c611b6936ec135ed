import os
import time
from typing import Dict, Any
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from dotenv import load_dotenv

# Load environment variables before any client reads them
load_dotenv()

# Import our modules
from graph.enrichment import run_enrichment
from graph.crm_sync import run_sync
from tools.smarty import SmartyPropertyProvider
from tools.google_maps import GoogleMapsProvider
from tools.gohighlevel import GoHighLevelClient

VERSION = "1.0.0"
ENRICHMENT_UNAVAILABLE = "Unable to fetch property data. You can continue filling the form manually."

# Configure logging
logger.add(
    os.getenv("LOG_FILE", "logs/app.log"),
    rotation="1 day",
    retention="7 days",
    level=os.getenv("LOG_LEVEL", "INFO"),
)

# Initialize FastAPI app
app = FastAPI(
    title="C-Store Insurance Intake",
    description="Address enrichment and CRM sync for the insurance application wizard",
    version=VERSION,
)


async def _json_body(req: Request) -> Dict[str, Any]:
    try:
        payload = await req.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


@app.post("/api/prefill")
async def prefill(req: Request):
    """
    Enrich an address with property and business data.

    Expected payload:
    {
        "address": "123 Main St, Springfield, IL 62701"
    }

    Always answers 200 once an address is present, so the wizard can fall
    back to manual entry.
    """
    start_time = time.time()
    payload = await _json_body(req)
    address = str(payload.get("address") or "").strip()

    if not address:
        logger.warning("Prefill request without an address")
        return JSONResponse(status_code=400, content={"error": "Address is required"})

    try:
        result = await run_enrichment(address)
    except Exception as e:
        logger.error(f"Enrichment failed for '{address}': {e}")
        return JSONResponse(
            status_code=200,
            content={
                "success": False,
                "message": ENRICHMENT_UNAVAILABLE,
                "fieldsCount": 0,
                "data": None,
                "address": address,
                "error": str(e),
            },
        )

    logger.info(f"Prefill for '{address}' completed in {time.time() - start_time:.2f}s: {result['fieldsCount']} fields")
    return JSONResponse(status_code=200, content=result)


@app.post("/api/gohighlevel")
async def sync_to_crm(req: Request):
    """
    Save a full or partial application to GoHighLevel.

    Expected payload: the flat application draft, optionally with
    applicationStatus, lastSavedStep and lastSavedDate for save-and-exit.
    """
    try:
        draft = await _json_body(req)
        logger.info(
            f"Received CRM sync for {draft.get('contactEmail') or 'unknown'} "
            f"({draft.get('applicationStatus') or 'Submitted'})"
        )

        result = await run_sync(draft)
        return JSONResponse(status_code=result.status_code if not result.success else 200, content=result.to_response())

    except Exception as e:
        logger.error(f"Error sending to GoHighLevel: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


@app.get("/health")
def health():
    """Health check endpoint."""
    smarty = SmartyPropertyProvider()
    google = GoogleMapsProvider()
    crm = GoHighLevelClient()
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": VERSION,
        "services": {
            "smarty": "configured" if smarty.configured else "missing credentials",
            "google_maps": "configured" if google.configured else "missing credentials",
            "gohighlevel": "configured" if crm.api_key and crm.location_id else "missing credentials",
            "pipeline": "configured" if crm.pipeline_configured else "not configured",
        },
    }


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting C-Store Insurance Intake")

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level="info",
    )
