from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from designhub.api.v1.router import router as v1_router
from designhub.core.errors import DesignHubError
from designhub.core.telemetry import setup_telemetry
from designhub.schemas.common import ErrorResponse

app = FastAPI(title="Design Hub API", version="0.1.0")


@app.exception_handler(DesignHubError)
async def designhub_error_handler(request: Request, exc: DesignHubError) -> JSONResponse:
    body = ErrorResponse(code=exc.code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


setup_telemetry(app)
app.include_router(v1_router)
