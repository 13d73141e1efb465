"""Vertex AI Gemini client for feedlens."""

import vertexai
from vertexai.generative_models import GenerationConfig, GenerativeModel

from feedlens.utils.logging import get_logger

logger = get_logger(__name__)

KEY_POINTS_PROMPT = """You are a newsroom editor. Summarize the article into 3-5 key points.
Return ONLY a JSON array of strings. Do not wrap in an object.
Each point should be a complete sentence and avoid author bios, ads, navigation, or unrelated info.
Title: {title}
Source: {source}
Content: {content}"""


class GeminiClient:
    """Client for generating key points using Vertex AI Gemini."""

    def __init__(
        self,
        project_id: str,
        region: str = "europe-west1",
        model_name: str = "gemini-2.0-flash-001",
    ) -> None:
        self._project_id = project_id
        self._region = region
        self._model_name = model_name
        self._initialized = False

    async def __aenter__(self) -> "GeminiClient":
        """Async context manager entry - initialize Vertex AI."""
        self._ensure_initialized()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        """Async context manager exit."""

    def _ensure_initialized(self) -> None:
        """Initialize Vertex AI if not already done."""
        if not self._initialized:
            vertexai.init(project=self._project_id, location=self._region)
            self._initialized = True
            logger.info("Vertex AI initialized", project=self._project_id, region=self._region)

    def _get_model(self) -> GenerativeModel:
        """Get the Gemini model instance."""
        self._ensure_initialized()
        return GenerativeModel(self._model_name)

    async def generate_content(
        self,
        prompt: str,
        *,
        temperature: float = 0.2,
        max_output_tokens: int = 320,
    ) -> str:
        """Generate content with custom parameters.

        Args:
            prompt: The prompt to send to the model.
            temperature: Sampling temperature (0.0-1.0).
            max_output_tokens: Maximum tokens in response.

        Returns:
            The generated text.

        Raises:
            RuntimeError: If the model returns no content.
        """
        model = self._get_model()
        config = GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
        response = await model.generate_content_async(prompt, generation_config=config)
        if not response.text:
            raise RuntimeError("Model returned empty response")
        return response.text

    async def key_points(
        self,
        title: str,
        source: str,
        content: str,
        *,
        temperature: float = 0.2,
        max_output_tokens: int = 320,
    ) -> str:
        """Ask the model for an article's key points.

        Args:
            title: The article title.
            source: The feed or site name.
            content: Plain-text article content.

        Returns:
            The raw model reply, expected to be a JSON array of strings.
        """
        logger.info("Requesting key points", title=title)
        prompt = KEY_POINTS_PROMPT.format(title=title, source=source, content=content)
        reply = await self.generate_content(
            prompt,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
        logger.info("Key points received", title=title, reply_length=len(reply))
        return reply
