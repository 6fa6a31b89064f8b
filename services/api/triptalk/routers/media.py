"""
Upload and third-party proxy endpoints:
  POST /upload    - store a file (multipart field "file"), returns its URL
  GET  /weather   - current weather for ?city= (default London)
  POST /chat      - travel-tips chat reply for {message}
"""
import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from opentelemetry import trace

from triptalk.clients.chat_client import chat_client
from triptalk.clients.minio_client import read_upload, store_file
from triptalk.clients.weather_client import weather_client
from triptalk.gateway import RequestContext, require_context, unwrap
from triptalk.schemas import ChatRequest, ChatResponse, UploadResponse, WeatherResponse

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    ctx: RequestContext = Depends(require_context),
):
    with tracer.start_as_current_span("upload_file"):
        data = await read_upload(file)
        file_url = unwrap(await store_file(data, file.filename, file.content_type))
        logger.info("%s uploaded %s", ctx.username, file_url)
        return UploadResponse(
            message="File uploaded successfully.",
            file_url=file_url,
            original_name=file.filename or "",
        )


@router.get("/weather", response_model=WeatherResponse)
async def get_weather(city: str = Query("London")):
    with tracer.start_as_current_span("get_weather"):
        return unwrap(await weather_client.current(city.strip() or "London"))


@router.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, ctx: RequestContext = Depends(require_context)):
    with tracer.start_as_current_span("chat"):
        reply = unwrap(await chat_client.reply(body.message))
        return ChatResponse(reply=reply)
