"""Voice assistant command API route."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from projectflow.api.dependencies import CommandDispatcherDep, rate_limit

router = APIRouter(prefix="/api/voice/commands", tags=["commands"])


class CommandRequest(BaseModel):
    """A named command, or a tool call string such as createTask(taskName="x")."""

    command: str = Field(min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)


class CommandResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


@router.post("", response_model=CommandResponse)
async def run_command(
    request: CommandRequest,
    dispatcher: CommandDispatcherDep,
    _: Annotated[None, Depends(rate_limit("/api/voice/commands"))],
) -> CommandResponse:
    """Run one assistant command. Failures come back with success=false."""
    result = await dispatcher.handle(request.command, request.parameters)
    return CommandResponse(**result.to_dict())
