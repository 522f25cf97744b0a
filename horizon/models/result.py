# horizon/models/result.py
"""Per-stage result type for best-effort enrichment."""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union


T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful stage output."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed stage output carrying a typed error."""

    error: E

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]


@dataclass(frozen=True)
class ClassifyError:
    """
    Why a topic could not be produced.

    Kinds:
    - model_unavailable: no usable TopicModel in the store
    - classification_failed: the classifier raised
    """

    kind: str
    message: str = ""


@dataclass(frozen=True)
class EmbedError:
    """
    Why an embedding could not be produced.

    Kinds:
    - embedder_unavailable: the embedding model could not be loaded
    - embedding_failed: inference raised or returned no vector
    """

    kind: str
    message: str = ""
