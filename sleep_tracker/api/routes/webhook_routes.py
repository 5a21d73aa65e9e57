# sleep_tracker/api/routes/webhook_routes.py
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from sleep_tracker.api.dependencies import get_repository
from sleep_tracker.core.services.sleep_service import SleepService

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No sleep data found in payload"


# Dependency
def get_sleep_service(repository=Depends(get_repository)):
    return SleepService(repository)


router = APIRouter(
    prefix="/sleep",
    tags=["Sleep Webhook"],
)


@router.post("/webhook")
async def receive_sleep_webhook(request: Request, service: SleepService = Depends(get_sleep_service)):
    """Receive a Health Auto Export payload and store one scored entry per night"""
    try:
        payload = await request.json()
        samples = service.extract_sleep_samples(payload)
        if not samples:
            return {"message": NO_DATA_MESSAGE, "processed": 0}

        result = await service.ingest_samples(samples)
        results = [entry.model_dump(mode='json') for entry in result.entries]

        if result.failures:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal Server Error",
                    "details": result.failures[0]['error'],
                    "processed": result.processed,
                    "results": results,
                    "failures": result.failures,
                },
            )

        response = {
            "success": True,
            "processed": result.processed,
            "results": results,
            "invalid_samples": len(result.diagnostics),
        }
        if result.processed == 0:
            response["message"] = "No sleep nights could be built from the payload"
            response["nights_found"] = result.nights_found
            response["diagnostics"] = [d.reason for d in result.diagnostics]
        return response
    except Exception as e:
        logger.exception("Error processing sleep webhook")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "details": str(e)},
        )


@router.get("/webhook")
async def sleep_webhook_get():
    """Only POST is accepted"""
    return JSONResponse(
        status_code=405,
        content={"message": "This endpoint only accepts POST requests"},
        headers={"Allow": "POST"},
    )
