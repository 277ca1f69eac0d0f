from typing import List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from atelier.application.factory import AtelierFactory
from atelier.core.domain.errors import ErrorKind
from atelier.core.domain.models import ImageReference, Operation, OperationKind
from atelier.core.domain.operation import OperationStateMachine

router = APIRouter()

_STATUS_FOR_KIND = {
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.MISSING_CREDENTIAL: 500,
}


class GenerateImageRequest(BaseModel):
    """Request to generate (and describe) an image."""
    prompt: str = ""


class GenerateImageResponse(BaseModel):
    image: str
    description: Optional[str] = None


class DescribeRequest(BaseModel):
    """Image to describe: a remote URL or base64-encoded bytes."""
    image_url: Optional[str] = None
    image_base64: Optional[str] = None
    mime_type: str = "image/jpeg"


class DescribeResponse(BaseModel):
    description: str


class ChatMessageModel(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    """Full conversation so far, ending with the new user message."""
    messages: List[ChatMessageModel]


class ChatResponse(BaseModel):
    reply: str
    demo: bool = False


def _factory(request: Request) -> AtelierFactory:
    return request.app.state.factory


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _failure(operation: Operation) -> JSONResponse:
    return _error(_STATUS_FOR_KIND.get(operation.error.kind, 502), operation.error.message)


@router.post("/generate-image", response_model=GenerateImageResponse)
async def generate_image(body: GenerateImageRequest, request: Request):
    """Generate an image and wait for its description."""
    if not body.prompt.strip():
        return _error(400, "Prompt is required")

    pipeline = _factory(request).create_pipeline()
    operation = await pipeline.generate(body.prompt)
    if operation.failed:
        return _failure(operation)

    await pipeline.drain()
    artifact = operation.result
    return GenerateImageResponse(image=artifact.image_ref, description=artifact.description)


@router.post("/describe", response_model=DescribeResponse)
async def describe_image(body: DescribeRequest, request: Request):
    """Describe an uploaded or remote image."""
    if body.image_base64:
        image = ImageReference(value=body.image_base64, inline=True, mime_type=body.mime_type)
    elif body.image_url:
        image = ImageReference.from_url(body.image_url)
    else:
        return _error(400, "Please upload an image first.")

    operation = await _factory(request).create_pipeline().describe_uploaded(image)
    if operation.failed:
        return _failure(operation)
    return DescribeResponse(description=operation.result)


@router.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, request: Request):
    """Reply to a conversation; the client owns the transcript."""
    if not body.messages:
        return _error(400, "Messages are required")

    client = _factory(request).client
    messages = [m.model_dump() for m in body.messages]
    machine = OperationStateMachine(OperationKind.CHAT)
    operation = await machine.start(lambda report: client.chat(messages, on_attempt=report))
    if operation.failed:
        return _failure(operation)
    return ChatResponse(reply=operation.result, demo=client.chat_demo_mode)
