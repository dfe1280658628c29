# src/mixsched/api/routers/admission.py
"""
The mutating admission endpoint.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...admission.dispatcher import AdmissionDispatcher
from ...models.admission import AdmissionReview
from ..dependencies import get_dispatcher
from ..schemas import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/mutate", responses={400: {"model": ErrorResponse}})
async def mutate(request: Request, dispatcher: AdmissionDispatcher = Depends(get_dispatcher)):
    """Answers an AdmissionReview with the verdict and, when mutating, a JSON patch."""
    try:
        review = AdmissionReview.model_validate(await request.json())
    except ValueError as e:
        logger.warning("Invalid AdmissionReview: %s", e)
        return JSONResponse(status_code=400, content=ErrorResponse(err="invalid JSON input").model_dump())

    if review.request is None:
        return JSONResponse(status_code=400, content=ErrorResponse(err="AdmissionReview has no request").model_dump())

    result = await dispatcher.review(review)
    return JSONResponse(content=result.to_wire())
