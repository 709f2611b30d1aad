"""
FastAPI wrapper for SEO Content Studio - Vercel Serverless Function.

This module exposes keyword density scoring, article generation, research,
local search, chat, images and saved templates as a REST API.
"""

import base64
import tempfile
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from seo_content_studio import __version__
from seo_content_studio.config import IMAGE_SIZES, ConfigStoreError
from seo_content_studio.docx_writer import write_article_docx
from seo_content_studio.keyword_metrics import DEFAULT_CAUTION_THRESHOLD, analyze, density_status
from seo_content_studio.models import ArticleConfig, ChatMessage, SearchIntent
from seo_content_studio.request_state import ErrorKind, RequestState, RequestStatus
from seo_content_studio.studio import ContentStudio
from seo_content_studio.templates import TemplateError

app = FastAPI(
    title="SEO Content Studio API",
    description="SEO article generation with keyword density scoring, research and image tools",
    version=__version__,
)

# Enable CORS for all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# HTTP status per failure kind
ERROR_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.CONTRACT_VIOLATION: 502,
    ErrorKind.NO_RESULT: 502,
}


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class AnalyzeRequest(BaseModel):
    """Keyword density request."""
    text: str = Field("", description="Text or markdown to score")
    keyword: str = Field(..., description="Keyword or phrase to look for")
    caution_threshold: float = Field(DEFAULT_CAUTION_THRESHOLD, ge=0)


class AnalyzeResponse(BaseModel):
    """Keyword density response. metrics is null when the keyword is blank."""
    metrics: Optional[dict] = None
    status: Optional[str] = None


class ArticleRequest(BaseModel):
    """Request model for article generation."""
    main_keyword: str = Field(..., description="Main keyword")
    article_title: Optional[str] = None
    target_url: str = ""
    brand_name: str = ""
    search_intent: SearchIntent = SearchIntent.INFORMATIONAL
    tone_of_voice: Optional[str] = None
    include_images: bool = True
    word_count: Optional[int] = Field(None, ge=1)
    readability_level: Optional[str] = None
    template_id: Optional[str] = Field(None, description="Saved template applied before generating")
    include_docx: bool = Field(False, description="Return a Word document as base64")


class ArticleResponse(BaseModel):
    """Generated article with its keyword density figures."""
    article: dict
    keyword: str
    metrics: Optional[dict] = None
    density_status: Optional[str] = None
    markdown: str
    document_base64: Optional[str] = None


class TopicRequest(BaseModel):
    topic: str


class IdeasResponse(BaseModel):
    ideas: str


class QueryRequest(BaseModel):
    query: str


class LocalSearchRequest(BaseModel):
    query: str
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class GroundedResponse(BaseModel):
    text: str
    sources: list[dict] = Field(default_factory=list)


class ChatTurn(BaseModel):
    role: str = Field(..., description="'user' or 'model'")
    text: str


class ChatRequest(BaseModel):
    """Chat request. An empty history starts from the greeting."""
    message: str
    history: list[ChatTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    reply: str
    history: list[ChatTurn]


class ImageRequest(BaseModel):
    prompt: str
    size: Optional[str] = Field(None, description=f"One of {', '.join(IMAGE_SIZES)}")


class ImageEditRequest(BaseModel):
    image: str = Field(..., description="Source image as a data URL or base64")
    prompt: str


class ImageResponse(BaseModel):
    mime_type: str
    data_url: str


class TemplateSettings(BaseModel):
    """Reusable article settings. Keyword and title are chosen per article."""
    model_config = ConfigDict(extra="forbid")

    target_url: str = ""
    brand_name: str = ""
    search_intent: SearchIntent = SearchIntent.INFORMATIONAL
    tone_of_voice: Optional[str] = None
    include_images: bool = True
    word_count: Optional[int] = Field(None, ge=1)
    readability_level: Optional[str] = None


class TemplateRequest(BaseModel):
    """Save reusable article settings under a name."""
    name: str
    config: TemplateSettings = Field(default_factory=TemplateSettings)


class TemplateResponse(BaseModel):
    id: str
    name: str
    config: dict


def get_studio() -> ContentStudio:
    """Build a studio per request; settings are read from the store each time."""
    return ContentStudio()


def _raise_for_state(state: RequestState) -> None:
    """Raise HTTPException unless the request succeeded."""
    if state.status == RequestStatus.SUCCESS:
        return
    kind = state.error_kind or ErrorKind.UPSTREAM
    raise HTTPException(
        status_code=ERROR_STATUS[kind],
        detail={"error_kind": kind.value, "message": state.error_message},
    )


def _article_config(request: ArticleRequest) -> ArticleConfig:
    options = request.model_dump(
        exclude={"template_id", "include_docx"},
        exclude_none=True,
    )
    try:
        return ArticleConfig(**options)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _template_config(settings: TemplateSettings) -> ArticleConfig:
    try:
        return ArticleConfig(main_keyword="", **settings.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@app.post("/api/analyze", response_model=AnalyzeResponse)
async def analyze_keyword(request: AnalyzeRequest):
    """Score keyword density of a text. Needs no API keys."""
    metrics = analyze(request.text, request.keyword)
    if metrics is None:
        return AnalyzeResponse()
    return AnalyzeResponse(
        metrics=metrics.to_dict(),
        status=density_status(metrics.density_percent, request.caution_threshold).value,
    )


@app.post("/api/articles", response_model=ArticleResponse)
def generate_article(request: ArticleRequest, studio: ContentStudio = Depends(get_studio)):
    """
    Generate a structured SEO article.

    The response carries the article, its markdown rendering and the
    keyword density of the body against the main keyword.
    """
    state = studio.generate_article(_article_config(request), template_id=request.template_id)
    _raise_for_state(state)
    report = state.result

    document_base64 = None
    if request.include_docx:
        with tempfile.TemporaryDirectory() as tmp_dir:
            output_path = write_article_docx(
                report.article,
                Path(tmp_dir) / "article.docx",
                keyword=report.keyword,
                metrics=report.metrics,
                status=report.density_status,
            )
            document_base64 = base64.b64encode(output_path.read_bytes()).decode("utf-8")

    return ArticleResponse(
        **report.to_dict(),
        markdown=report.article.to_markdown(),
        document_base64=document_base64,
    )


@app.post("/api/ideas", response_model=IdeasResponse)
def quick_ideas(request: TopicRequest, studio: ContentStudio = Depends(get_studio)):
    """Brainstorm content ideas and keywords for a topic."""
    state = studio.quick_ideas(request.topic)
    _raise_for_state(state)
    return IdeasResponse(ideas=state.result)


@app.post("/api/research", response_model=GroundedResponse)
def research(request: QueryRequest, studio: ContentStudio = Depends(get_studio)):
    """Research a query with live web search."""
    state = studio.research(request.query)
    _raise_for_state(state)
    return GroundedResponse(**state.result.to_dict())


@app.post("/api/local", response_model=GroundedResponse)
def local_search(request: LocalSearchRequest, studio: ContentStudio = Depends(get_studio)):
    """Local search grounded on Google Maps."""
    state = studio.local_search(request.query, request.latitude, request.longitude)
    _raise_for_state(state)
    return GroundedResponse(**state.result.to_dict())


@app.post("/api/chat", response_model=ChatResponse)
def chat(request: ChatRequest, studio: ContentStudio = Depends(get_studio)):
    """Send a message to the SEO assistant with the prior conversation."""
    if request.history:
        try:
            studio.chat_session.messages = [
                ChatMessage(role=turn.role, text=turn.text) for turn in request.history
            ]
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    state = studio.chat(request.message)
    _raise_for_state(state)
    return ChatResponse(
        reply=state.result,
        history=[ChatTurn(role=m.role, text=m.text) for m in studio.chat_session.messages],
    )


@app.post("/api/images", response_model=ImageResponse)
def generate_image(request: ImageRequest, studio: ContentStudio = Depends(get_studio)):
    """Generate a 16:9 image."""
    state = studio.generate_image(request.prompt, request.size)
    _raise_for_state(state)
    return ImageResponse(mime_type=state.result.mime_type, data_url=state.result.data_url)


@app.post("/api/images/edit", response_model=ImageResponse)
def edit_image(request: ImageEditRequest, studio: ContentStudio = Depends(get_studio)):
    """Edit an uploaded image with an instruction."""
    state = studio.edit_image(request.image, request.prompt)
    _raise_for_state(state)
    return ImageResponse(mime_type=state.result.mime_type, data_url=state.result.data_url)


@app.get("/api/templates", response_model=list[TemplateResponse])
def list_templates(studio: ContentStudio = Depends(get_studio)):
    """List saved article templates."""
    return [TemplateResponse(**t.to_dict()) for t in studio.templates.all_templates()]


@app.post("/api/templates", response_model=TemplateResponse, status_code=201)
def save_template(request: TemplateRequest, studio: ContentStudio = Depends(get_studio)):
    """Save an article template."""
    try:
        template = studio.templates.save(request.name, _template_config(request.config))
    except TemplateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return TemplateResponse(**template.to_dict())


@app.delete("/api/templates/{template_id}", status_code=204)
def delete_template(template_id: str, studio: ContentStudio = Depends(get_studio)):
    """Delete a saved template."""
    try:
        studio.templates.delete(template_id)
    except TemplateError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/info")
async def api_info():
    """Get API information and usage instructions."""
    return {
        "name": "SEO Content Studio API",
        "version": __version__,
        "description": "SEO article generation with keyword density scoring",
        "endpoints": {
            "GET /api/health": "Health check",
            "POST /api/analyze": "Keyword density of a text (no API key needed)",
            "POST /api/articles": "Generate a structured SEO article with density figures",
            "POST /api/ideas": "Quick content ideas and keywords for a topic",
            "POST /api/research": "Web-search-grounded research",
            "POST /api/local": "Maps-grounded local search",
            "POST /api/chat": "SEO assistant chat",
            "POST /api/images": "Generate a 16:9 image",
            "POST /api/images/edit": "Edit an uploaded image",
            "GET /api/templates": "List saved templates",
            "POST /api/templates": "Save a template",
            "DELETE /api/templates/{id}": "Delete a template",
            "GET /api/info": "This endpoint",
        },
        "documentation": "/docs",
        "openapi": "/openapi.json",
    }
