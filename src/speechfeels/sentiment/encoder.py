"""Sentence-transformer backed sentiment annotator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np
from sentence_transformers import SentenceTransformer

from speechfeels.exceptions import AnnotationError
from speechfeels.models import SentenceResult, SentimentLabel
from speechfeels.sentiment.annotator import Annotator
from speechfeels.utils.text import split_sentences

DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"

logger = logging.getLogger(__name__)

# Anchor phrases whose mean embedding stands for each label.
LABEL_ANCHORS: Dict[SentimentLabel, Tuple[str, ...]] = {
    SentimentLabel.VERY_NEGATIVE: (
        "This is a catastrophe, a terrible and shameful disaster.",
        "We face horror, ruin and despair.",
        "It is the worst, most hateful thing imaginable.",
    ),
    SentimentLabel.NEGATIVE: (
        "This is bad and disappointing.",
        "We have problems, hardship and difficulty.",
        "I am worried and unhappy about it.",
    ),
    SentimentLabel.NEUTRAL: (
        "This is a statement of fact.",
        "The meeting is scheduled for the afternoon.",
        "The report describes the procedure.",
    ),
    SentimentLabel.POSITIVE: (
        "This is good and encouraging.",
        "We are making progress and things are improving.",
        "I am glad and hopeful about it.",
    ),
    SentimentLabel.VERY_POSITIVE: (
        "This is wonderful, a glorious and magnificent triumph.",
        "We are filled with joy, pride and boundless hope.",
        "It is the best, most inspiring thing imaginable.",
    ),
}


def _check_gpu_availability() -> tuple[bool, str | None]:
    """Check if a GPU is available and return its type ("cuda", "mps" or None)."""
    try:
        import torch

        if torch.cuda.is_available():
            logger.debug(f"CUDA GPU detected: {torch.cuda.get_device_name(0)}")
            return (True, "cuda")

        if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
            logger.debug("Apple MPS GPU detected")
            return (True, "mps")

        logger.debug("No GPU detected, will use CPU")
        return (False, None)
    except ImportError:
        logger.debug("PyTorch not available for GPU detection")
        return (False, None)


def detect_device() -> str:
    """Pick the torch device the model should run on."""
    has_gpu, gpu_type = _check_gpu_availability()
    return gpu_type if has_gpu and gpu_type else "cpu"


@dataclass(slots=True)
class AnnotatorConfig:
    model_name: str = DEFAULT_MODEL
    batch_size: int = 16
    device: str | None = None


class EmbeddingSentimentAnnotator(Annotator):
    """Labels sentences by their nearest sentiment prototype in embedding space.

    The underlying ``SentenceTransformer`` shares a fast tokenizer that refuses
    concurrent use, so this annotator is not re-entrant and must be wrapped
    with :func:`~speechfeels.sentiment.annotator.ensure_thread_safe` before it
    is handed to a worker pool.
    """

    thread_safe = False

    def __init__(self, config: AnnotatorConfig | None = None) -> None:
        self.config = config or AnnotatorConfig()
        if self.config.device is None:
            self.config.device = detect_device()

        self._model = SentenceTransformer(self.config.model_name, device=self.config.device)
        self._prototypes = self._build_prototypes()
        logger.info(
            f"Loaded sentiment model {self.config.model_name} | Device: {self.config.device}"
        )

    def _encode(self, sentences: Sequence[str]) -> np.ndarray:
        embeddings = self._model.encode(
            list(sentences),
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return np.asarray(embeddings, dtype="float32")

    def _build_prototypes(self) -> np.ndarray:
        """Return one unit-length prototype row per label, in label order."""
        rows = []
        for label in SentimentLabel:
            centroid = self._encode(LABEL_ANCHORS[label]).mean(axis=0)
            norm = float(np.linalg.norm(centroid))
            if not np.isfinite(norm) or norm == 0.0:
                raise AnnotationError(f"Degenerate prototype embedding for label {label.value!r}")
            rows.append(centroid / norm)
        return np.vstack(rows)

    def annotate(self, text: str) -> List[SentenceResult]:
        sentences = split_sentences(text)
        if not sentences:
            return []
        logger.debug("    Found %d sentences", len(sentences))

        embeddings = self._encode(sentences)
        if (
            embeddings.ndim != 2
            or embeddings.shape[0] != len(sentences)
            or embeddings.shape[1] != self._prototypes.shape[1]
        ):
            raise AnnotationError(
                f"Model returned embeddings of shape {embeddings.shape} "
                f"for {len(sentences)} sentences"
            )

        scores = embeddings @ self._prototypes.T
        if not np.all(np.isfinite(scores)):
            raise AnnotationError("Model produced non-finite sentiment scores")

        classes = np.argmax(scores, axis=1)
        return [
            SentenceResult(text=sentence, label=SentimentLabel.from_class(int(cls)))
            for sentence, cls in zip(sentences, classes)
        ]
