"""
Embedding model wrapper for generating text embeddings.

Uses the sentence-transformers library with a fixed pretrained model in
inference mode. Token embeddings are mean-pooled and L2-normalized, so the
cosine similarity of two vectors is their dot product.
"""

import asyncio
from typing import Optional

from cvmatch.utils.config import get_settings
from cvmatch.utils.logger import get_logger

logger = get_logger(__name__)


class EmbeddingModel:
    """
    Async wrapper for a sentence-transformers embedding model.

    The model is loaded on first use. Callers arriving while the load is
    in flight await the same load instead of starting another one.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        device: Optional[str] = None,
        max_text_length: Optional[int] = None,
    ):
        """
        Initialize the embedding model.

        Args:
            model_name: Name of the sentence-transformers model to use.
                       Defaults to config setting.
            device: Device to run model on ('cpu', 'cuda', 'mps').
                   Defaults to config setting.
            max_text_length: Characters kept from each input text.
                   Defaults to config setting.
        """
        settings = get_settings()
        self.model_name = model_name or settings.ml.embedding_model
        self.device = device or settings.ml.device
        self.max_text_length = max_text_length or settings.ml.max_text_length
        self.cache_folder = settings.ml.models_directory

        self._model = None
        self._loading = False
        self._load_task: Optional[asyncio.Task] = None

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def _load_model(self):
        """Load the sentence-transformer model (blocking)."""
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError:
            logger.error(
                "sentence-transformers not installed. "
                "Install with: pip install sentence-transformers"
            )
            raise

        logger.info(f"Loading embedding model: {self.model_name}")
        model = SentenceTransformer(
            self.model_name,
            device=self.device,
            cache_folder=str(self.cache_folder),
        )
        logger.info(f"Embedding model loaded on device: {self.device}")
        return model

    async def _run_load(self) -> None:
        try:
            self._model = await asyncio.to_thread(self._load_model)
        except Exception as e:
            logger.error(f"Failed to load embedding model: {e}")
            raise
        finally:
            self._loading = False

    async def ensure_loaded(self) -> None:
        """
        Load the model once.

        Raises whatever the load raised; the next call tries again.
        """
        if self._model is not None:
            return

        if not self._loading:
            self._loading = True
            self._load_task = asyncio.ensure_future(self._run_load())

        # Shielded so one cancelled waiter does not cancel the shared load
        await asyncio.shield(self._load_task)

    async def preload(self) -> None:
        """Warm the model up, typically at worker start."""
        await self.ensure_loaded()

    async def embed(self, text: str) -> list[float]:
        """
        Generate a normalized embedding for a text.

        Args:
            text: Text to encode; truncated to max_text_length characters.

        Returns:
            Embedding vector, or an empty list for blank text or when
            inference fails.
        """
        if not text or not text.strip():
            return []

        await self.ensure_loaded()

        try:
            vector = await asyncio.to_thread(
                self._model.encode,
                text[: self.max_text_length],
                normalize_embeddings=True,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
            return vector.tolist()
        except Exception as e:
            logger.error(f"Embedding inference failed: {e}")
            return []


# Singleton instance
_embedding_model: Optional[EmbeddingModel] = None


def get_embedding_model() -> EmbeddingModel:
    """Get the embedding model singleton instance."""
    global _embedding_model
    if _embedding_model is None:
        _embedding_model = EmbeddingModel()
    return _embedding_model
