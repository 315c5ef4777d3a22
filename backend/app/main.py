import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from algebra.operations import calculate

logger = logging.getLogger(__name__)

app = FastAPI(title="Algebra Calculator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class CalculateRequest(BaseModel):
    expression: str
    operation: str = "evaluate"
    variable: str = "x"
    steps: bool = Field(False, validation_alias=AliasChoices("steps", "wantSteps"))


class CalculateResponse(BaseModel):
    result: str
    steps: Optional[list[str]] = None


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal error"})


@app.post("/api/calculate", response_model=CalculateResponse, response_model_exclude_none=True)
def calculate_endpoint(req: CalculateRequest):
    return calculate(req.expression, req.operation, req.variable, req.steps)
