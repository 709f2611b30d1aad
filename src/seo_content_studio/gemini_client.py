"""
Gemini client for image work and Maps-grounded local search.

Uses the Google google-genai SDK for:
- Image generation (16:9, 1K/2K/4K)
- Image editing from an uploaded image plus an instruction
- Local search grounded on Google Maps, optionally biased to a location
"""

import logging
import os
from typing import Any, Optional, Union

try:
    from google import genai
    from google.genai import types
except ImportError:
    genai = None  # type: ignore
    types = None  # type: ignore

from .config import IMAGE_SIZES
from .models import GeneratedImage, GroundedAnswer, GroundingSource

logger = logging.getLogger(__name__)


DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"
DEFAULT_IMAGE_EDIT_MODEL = "gemini-2.5-flash-image"
DEFAULT_LOCAL_SEARCH_MODEL = "gemini-2.5-flash"


class GeminiClientError(Exception):
    """Raised when Gemini operations fail."""
    pass


class GeminiConfigurationError(GeminiClientError):
    """Raised when the client cannot be configured (missing key or package)."""
    pass


class GeminiClient:
    """
    Client for Gemini image and local-search calls.

    Each call creates its request config from scratch, so one client can be
    shared across tools.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        image_model: str = DEFAULT_IMAGE_MODEL,
        image_edit_model: str = DEFAULT_IMAGE_EDIT_MODEL,
        local_search_model: str = DEFAULT_LOCAL_SEARCH_MODEL,
        aspect_ratio: str = "16:9",
        client: Any = None,
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: Gemini API key. If None, reads from GEMINI_API_KEY env var.
            image_model: Model used for image generation.
            image_edit_model: Model used for image editing.
            local_search_model: Model used for Maps-grounded search.
            aspect_ratio: Aspect ratio for generated images.
            client: Pre-built genai client (skips key and package checks).
        """
        self.image_model = image_model
        self.image_edit_model = image_edit_model
        self.local_search_model = local_search_model
        self.aspect_ratio = aspect_ratio

        if client is not None:
            self.client = client
            return

        api_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not api_key:
            raise GeminiConfigurationError(
                "No API key provided. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )
        if genai is None:
            raise GeminiConfigurationError(
                "google-genai package not installed. Run: pip install google-genai"
            )
        self.client = genai.Client(api_key=api_key)

    def generate_image(self, prompt: str, size: str = "1K") -> Optional[GeneratedImage]:
        """
        Generate an image from a text prompt.

        Args:
            prompt: Description of the image.
            size: Resolution, one of "1K", "2K", "4K".

        Returns:
            The first image in the response, or None if the model returned none.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be blank")
        if size not in IMAGE_SIZES:
            raise ValueError(f"size must be one of {', '.join(IMAGE_SIZES)}, got '{size}'")

        try:
            response = self.client.models.generate_content(
                model=self.image_model,
                contents=prompt.strip(),
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                    image_config=types.ImageConfig(
                        aspect_ratio=self.aspect_ratio,
                        image_size=size,
                    ),
                ),
            )
        except Exception as e:
            logger.error(f"Image generation failed: {e}")
            raise GeminiClientError(f"Image generation failed: {e}") from e

        image = _first_image(response)
        if image is None:
            logger.warning("Image generation returned no image data")
        return image

    def edit_image(
        self,
        image: Union[GeneratedImage, str],
        prompt: str,
    ) -> Optional[GeneratedImage]:
        """
        Edit an existing image with a natural-language instruction.

        Args:
            image: Source image, or a data URL / bare base64 string.
            prompt: Edit instruction.

        Returns:
            The edited image, or None if the model returned none.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be blank")
        if isinstance(image, str):
            image = GeneratedImage.from_data_url(image)

        try:
            response = self.client.models.generate_content(
                model=self.image_edit_model,
                contents=[
                    types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
                    prompt.strip(),
                ],
            )
        except Exception as e:
            logger.error(f"Image edit failed: {e}")
            raise GeminiClientError(f"Image edit failed: {e}") from e

        edited = _first_image(response)
        if edited is None:
            logger.warning("Image edit returned no image data")
        return edited

    def local_search(
        self,
        query: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> GroundedAnswer:
        """
        Answer a local query grounded on Google Maps.

        Args:
            query: Local search question (e.g. "best coffee roasters near me").
            latitude: Optional user latitude.
            longitude: Optional user longitude. Used only with latitude.

        Returns:
            GroundedAnswer with text and Maps/web sources.
        """
        if not query or not query.strip():
            raise ValueError("query must not be blank")

        config_kwargs: dict[str, Any] = {
            "tools": [types.Tool(google_maps=types.GoogleMaps())],
        }
        if latitude is not None and longitude is not None:
            config_kwargs["tool_config"] = types.ToolConfig(
                retrieval_config=types.RetrievalConfig(
                    lat_lng=types.LatLng(latitude=latitude, longitude=longitude),
                ),
            )

        try:
            response = self.client.models.generate_content(
                model=self.local_search_model,
                contents=query.strip(),
                config=types.GenerateContentConfig(**config_kwargs),
            )
        except Exception as e:
            logger.error(f"Local search failed: {e}")
            raise GeminiClientError(f"Local search failed: {e}") from e

        answer = GroundedAnswer(
            text=(getattr(response, "text", None) or "").strip(),
            sources=_grounding_sources(response),
        )
        logger.info(f"Local search answered with {len(answer.sources)} sources")
        return answer


def _candidate_parts(response: Any) -> list:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _first_image(response: Any) -> Optional[GeneratedImage]:
    for part in _candidate_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            return GeneratedImage(
                data=inline.data,
                mime_type=getattr(inline, "mime_type", None) or "image/png",
            )
    return None


def _grounding_sources(response: Any) -> list[GroundingSource]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources: list[GroundingSource] = []
    seen: set[str] = set()
    for chunk in chunks:
        for kind in ("maps", "web"):
            ref = getattr(chunk, kind, None)
            uri = getattr(ref, "uri", None) if ref is not None else None
            if uri and uri not in seen:
                seen.add(uri)
                sources.append(GroundingSource(
                    uri=uri,
                    title=getattr(ref, "title", None) or uri,
                    kind=kind,
                ))
    return sources
