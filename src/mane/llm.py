"""DSPy-backed language-model collaborators."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

try:  # pragma: no cover - optional dependency
    import dspy  # type: ignore
except ImportError:  # pragma: no cover - executed when DSPy absent
    dspy = None  # type: ignore[assignment]

from mane.config.models import LLMSettings

LOGGER = logging.getLogger(__name__)

OLLAMA_DEFAULT_BASE_URL = "http://localhost:11434"


def _require_dspy(feature: str) -> None:
    if dspy is None:
        raise RuntimeError(
            f"{feature} requires DSPy. Install the 'llm' extra or set llm.enabled to false."
        )


def build_language_model(settings: LLMSettings) -> Any:
    """Return a ``dspy.LM`` configured from ``settings``.

    Raises:
        RuntimeError: If DSPy is unavailable or rejects the configuration.
    """

    _require_dspy("Language-model support")
    model = settings.model
    if settings.provider and settings.provider != "local" and "/" not in model:
        prefix = "ollama_chat" if settings.provider == "ollama" else settings.provider
        model = f"{prefix}/{model}"

    lm_kwargs: dict[str, object] = {
        "model": model,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }
    api_base = settings.api_base_url
    if api_base is None and settings.provider == "ollama":
        api_base = OLLAMA_DEFAULT_BASE_URL
    if api_base:
        lm_kwargs["api_base"] = api_base
    if settings.api_key is not None:
        lm_kwargs["api_key"] = settings.api_key
    elif api_base:
        lm_kwargs["api_key"] = ""

    try:
        return dspy.LM(**lm_kwargs)
    except Exception as exc:  # pragma: no cover - DSPy configuration errors
        raise RuntimeError(
            "Unable to configure the DSPy language model. Verify your llm settings."
        ) from exc


class DspyCompletion:
    """Complete prompts with a DSPy language model."""

    def __init__(self, settings: Optional[LLMSettings] = None, *, lm: Any = None) -> None:
        """Initialise the client.

        Args:
            settings: Language-model configuration.
            lm: Pre-built language model, mainly for tests.

        Raises:
            RuntimeError: If DSPy is unavailable or the model cannot be configured.
        """

        self._settings = settings or LLMSettings()
        self._lm = lm if lm is not None else build_language_model(self._settings)

    def complete(self, prompt: str) -> str:
        """Return the model's completion for ``prompt``."""

        outputs = self._lm(prompt)
        if not outputs:
            raise RuntimeError("Language model returned no completion.")
        first = outputs[0]
        if isinstance(first, dict):
            first = first.get("text", "")
        return str(first).strip()


class DspyCaptioner:
    """Caption images with a vision-capable DSPy language model."""

    def __init__(self, settings: Optional[LLMSettings] = None, *, lm: Any = None) -> None:
        _require_dspy("Image captioning")
        self._settings = settings or LLMSettings()
        self._lm = lm if lm is not None else build_language_model(self._settings)
        self._program = self._build_program()

    def caption(self, path: Path) -> str:
        """Return a one or two sentence description of the image at ``path``."""

        with dspy.context(lm=self._lm):
            prediction = self._program(
                image=self._load_image(path),
                prompt="Describe this image in one or two sentences for search indexing.",
            )
        caption = str(getattr(prediction, "caption", "") or "").strip()
        LOGGER.debug("Captioned %s: %s", path.name, caption)
        return caption

    @staticmethod
    def _build_program():
        """Construct the DSPy program used for image captioning."""

        class ImageCaptionSignature(dspy.Signature):  # type: ignore[misc]
            """Return a short caption describing an image."""

            image: "dspy.Image" = dspy.InputField()
            prompt: str = dspy.InputField()
            caption: str = dspy.OutputField()

        return dspy.Predict(ImageCaptionSignature)

    @staticmethod
    def _load_image(path: Path):
        if hasattr(dspy.Image, "from_file"):
            return dspy.Image.from_file(str(path))
        if hasattr(dspy.Image, "from_bytes"):
            return dspy.Image.from_bytes(path.read_bytes())
        raise RuntimeError("Unable to construct a DSPy image payload from the provided path.")


__all__ = ["DspyCaptioner", "DspyCompletion", "build_language_model"]
