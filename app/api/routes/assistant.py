"""
Assistant API Endpoints.

HTTP surface of the conversational booking assistant: chat turns,
manual seat return, payment confirmation and session inspection.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from app.api.middleware.auth import UserContext, optional_user
from app.core.assistant.engine import (
    AuthenticationRequiredError,
    NoActiveDraftError,
    SeatSelectionError,
    get_assistant_engine,
)
from app.core.booking.store import BookingNotFoundError, SeatConflictError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant", tags=["Assistant"])


class ChatRequest(BaseModel):
    """Chat message request."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Traveler's message",
        examples=["Flights from Chennai to Delhi tomorrow"],
    )
    session_id: Optional[str] = Field(
        default=None,
        alias="sessionId",
        description="Existing session ID for conversation continuity",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )


class SeatsRequest(BaseModel):
    """Seats chosen on the seat-selection surface."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    seats: list[str] = Field(
        ...,
        min_length=1,
        description="One seat per passenger, in passenger order",
        examples=[["E12A", "E12B"]],
    )


class ConfirmRequest(BaseModel):
    """Payment confirmation from the payment surface."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    payment_result: Optional[dict] = Field(
        default=None,
        alias="paymentResult",
        description="Opaque result returned by the payment provider",
    )


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    detail: Optional[str] = None


def _user_id(user: Optional[UserContext]) -> Optional[str]:
    return user.user_id if user else None


@router.post(
    "/chat",
    status_code=status.HTTP_200_OK,
    summary="Send a chat message",
    description="Send one message to the assistant and get its reply.",
    responses={
        200: {"description": "Assistant reply"},
        503: {"description": "The assistant failed to complete the turn"},
    },
)
async def chat(
    request: ChatRequest,
    user: Optional[UserContext] = Depends(optional_user),
) -> dict:
    """
    Process a chat message.

    The sessionId should be preserved across requests to maintain
    conversation context. A failed turn leaves the session unchanged.
    """
    engine = get_assistant_engine()
    result = await engine.process(
        message=request.message,
        session_id=request.session_id,
        user_id=_user_id(user),
    )

    if result.failed:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "assistant failed",
                "reply": result.reply,
                "sessionId": result.session_id,
            },
        )

    return result.to_dict()


@router.post(
    "/seats",
    summary="Submit manually selected seats",
    responses={
        400: {"model": ErrorResponse, "description": "No draft or invalid seats"},
        409: {"model": ErrorResponse, "description": "Seat already booked"},
    },
)
async def submit_seats(request: SeatsRequest) -> dict:
    """Apply seats chosen on the seat-selection surface."""
    engine = get_assistant_engine()
    try:
        result = await engine.submit_seats(request.session_id, request.seats)
    except NoActiveDraftError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SeatSelectionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SeatConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Seat(s) already booked: {', '.join(e.seats)}",
        )

    return result.to_dict()


@router.post(
    "/confirm",
    summary="Confirm payment",
    responses={
        400: {"model": ErrorResponse, "description": "Nothing awaiting payment"},
        401: {"model": ErrorResponse, "description": "Login required"},
        409: {"model": ErrorResponse, "description": "Seat already booked"},
    },
)
async def confirm_payment(
    request: ConfirmRequest,
    user: Optional[UserContext] = Depends(optional_user),
) -> dict:
    """Record a successful payment and return the stored booking."""
    engine = get_assistant_engine()
    try:
        record = await engine.confirm_payment(
            request.session_id,
            payment_result=request.payment_result,
            user_id=_user_id(user),
        )
    except AuthenticationRequiredError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (NoActiveDraftError, BookingNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SeatConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Seat(s) already booked: {', '.join(e.seats)}",
        )

    return {"booking": record.to_dict()}


@router.get(
    "/session/{session_id}",
    response_model=dict,
    summary="Get session data",
    description="Retrieve the current state of a conversation session.",
    responses={
        200: {"description": "Session data"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def get_session(session_id: str) -> dict:
    """Get session information."""
    engine = get_assistant_engine()
    session = await engine.get_session(session_id)

    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )

    return {
        "sessionId": session.session_id,
        "context": session.context.to_dict(),
        "resultsCount": len(session.last_search_results),
        "selectedFlight": session.selected_flight.to_dict() if session.selected_flight else None,
        "bookingDraft": session.booking_draft.to_dict() if session.booking_draft else None,
        "messageCount": len(session.history),
        "createdAt": session.created_at.isoformat(),
        "updatedAt": session.updated_at.isoformat(),
    }


@router.delete(
    "/session/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Reset a session",
    description="Discard a conversation session.",
)
async def reset_session(session_id: str) -> None:
    """Delete session."""
    engine = get_assistant_engine()
    deleted = await engine.reset_session(session_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )
