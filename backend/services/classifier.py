# =============================================================================
# FernID Backend
# services/classifier.py - Fern Classification Service
#
# Image preprocessing plus a pluggable classifier. The default classifier is
# a seeded random simulation; a trained model can be injected through the
# same interface.
# =============================================================================

import io
import random
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from PIL import Image, UnidentifiedImageError

from constants import (
    CONFIDENCE_RANGES,
    FERN_PROBABILITY,
    FERN_SPECIES_SLUGS,
    IMAGE_SIZE,
    PLANT_PROBABILITY_WHEN_NOT_FERN,
)

logger = logging.getLogger(__name__)


@dataclass
class Classification:
    """Outcome of classifying one image."""
    is_plant: bool
    is_fern: bool
    species: Optional[str]
    confidence: float

    def to_dict(self) -> dict:
        return {
            'is_plant': self.is_plant,
            'is_fern': self.is_fern,
            'species': self.species,
            'confidence': self.confidence,
        }


class Classifier(ABC):
    """Interface for anything that turns a preprocessed image into a Classification."""

    name = 'classifier'

    @abstractmethod
    def classify(self, image: np.ndarray) -> Classification:
        ...


class SimulatedClassifier(Classifier):
    """
    Random stand-in for a trained model.

    A fern is drawn with probability 0.7. Otherwise the image is a plant
    with probability 0.5. Fern species are drawn uniformly from the fixed
    slug list. Confidence is uniform within the range for the outcome:
    ferns 0.85-0.99, other plants 0.80-0.95, non-plants 0.70-0.90.

    The image content is ignored.
    """

    name = 'simulated'

    def __init__(self, species_slugs: Sequence[str] = FERN_SPECIES_SLUGS,
                 seed: Optional[int] = None):
        if not species_slugs:
            raise ValueError("species_slugs must not be empty")
        self.species_slugs = list(species_slugs)
        self._random = random.Random(seed)

    def classify(self, image: np.ndarray) -> Classification:
        is_fern = self._random.random() < FERN_PROBABILITY

        if is_fern:
            species = self._random.choice(self.species_slugs)
            low, high = CONFIDENCE_RANGES['fern']
            result = Classification(
                is_plant=True,
                is_fern=True,
                species=species,
                confidence=self._random.uniform(low, high),
            )
        else:
            is_plant = self._random.random() < PLANT_PROBABILITY_WHEN_NOT_FERN
            low, high = CONFIDENCE_RANGES['plant' if is_plant else 'none']
            result = Classification(
                is_plant=is_plant,
                is_fern=False,
                species=None,
                confidence=self._random.uniform(low, high),
            )

        logger.info(
            f"Simulated prediction: fern={result.is_fern} plant={result.is_plant} "
            f"species={result.species} ({result.confidence:.2%})"
        )
        return result


class ClassifierService:
    """
    Preprocesses uploaded images and delegates to the configured classifier.

    Usage:
        service = ClassifierService(SimulatedClassifier(seed=7))
        classification = service.classify(image_bytes)
    """

    IMAGE_SIZE = (IMAGE_SIZE, IMAGE_SIZE)

    def __init__(self, classifier: Optional[Classifier] = None):
        self.classifier = classifier or SimulatedClassifier()

    @property
    def name(self) -> str:
        return self.classifier.name

    def preprocess_image(self, image_data: bytes) -> np.ndarray:
        """
        Decode and normalize an image for classification.

        Args:
            image_data: Raw image bytes

        Returns:
            Array of shape (1, 224, 224, 3), float32 in [0, 1]

        Raises:
            ValueError: If the bytes are not a readable image
        """
        if not image_data:
            raise ValueError("Empty image data")

        try:
            image = Image.open(io.BytesIO(image_data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"Invalid or corrupt image file: {e}") from e

        # Convert to RGB if necessary
        if image.mode != 'RGB':
            image = image.convert('RGB')

        # Resize to model input size
        image = image.resize(self.IMAGE_SIZE, Image.Resampling.LANCZOS)

        img_array = np.asarray(image, dtype=np.float32) / 255.0

        # Add batch dimension
        return np.expand_dims(img_array, axis=0)

    def classify(self, image_data: bytes) -> Classification:
        return self.classifier.classify(self.preprocess_image(image_data))
