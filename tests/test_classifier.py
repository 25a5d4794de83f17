import numpy as np
import pytest

from constants import CONFIDENCE_RANGES, FERN_SPECIES_SLUGS
from services.classifier import ClassifierService, SimulatedClassifier

DRAWS = 4000


def draw(seed=11, count=DRAWS):
    classifier = SimulatedClassifier(seed=seed)
    image = np.zeros((1, 224, 224, 3), dtype=np.float32)
    return [classifier.classify(image) for _ in range(count)]


def test_fern_outcomes_have_species_and_fern_confidence():
    low, high = CONFIDENCE_RANGES['fern']

    for result in draw():
        if result.is_fern:
            assert result.is_plant
            assert result.species in FERN_SPECIES_SLUGS
            assert low <= result.confidence <= high
        else:
            assert result.species is None


def test_non_fern_confidence_ranges():
    plant_low, plant_high = CONFIDENCE_RANGES['plant']
    none_low, none_high = CONFIDENCE_RANGES['none']

    for result in draw():
        if result.is_fern:
            continue
        if result.is_plant:
            assert plant_low <= result.confidence <= plant_high
        else:
            assert none_low <= result.confidence <= none_high


def test_outcome_frequencies():
    results = draw()
    ferns = sum(1 for r in results if r.is_fern)
    plants_not_ferns = sum(1 for r in results if r.is_plant and not r.is_fern)

    assert ferns / DRAWS == pytest.approx(0.7, abs=0.03)
    assert plants_not_ferns / (DRAWS - ferns) == pytest.approx(0.5, abs=0.05)


def test_species_drawn_from_whole_list():
    species = {r.species for r in draw() if r.is_fern}

    assert species == set(FERN_SPECIES_SLUGS)


def test_same_seed_same_sequence():
    assert draw(seed=3, count=50) == draw(seed=3, count=50)


def test_custom_species_list():
    classifier = SimulatedClassifier(species_slugs=['tree-fern'], seed=1)
    image = np.zeros((1, 224, 224, 3), dtype=np.float32)
    results = [classifier.classify(image) for _ in range(100)]

    assert {r.species for r in results if r.is_fern} == {'tree-fern'}


def test_empty_species_list_rejected():
    with pytest.raises(ValueError):
        SimulatedClassifier(species_slugs=[])


# =============================================================================
# Preprocessing
# =============================================================================

def test_preprocess_shape_and_range(png_bytes):
    array = ClassifierService(SimulatedClassifier(seed=1)).preprocess_image(png_bytes)

    assert array.shape == (1, 224, 224, 3)
    assert array.dtype == np.float32
    assert 0.0 <= array.min() and array.max() <= 1.0


@pytest.mark.parametrize('data', [b'', b'definitely not an image'])
def test_preprocess_rejects_unreadable_bytes(data):
    with pytest.raises(ValueError):
        ClassifierService(SimulatedClassifier(seed=1)).preprocess_image(data)


def test_service_delegates_to_injected_classifier(png_bytes, classifier):
    result = ClassifierService(classifier).classify(png_bytes)

    assert result.species == 'maidenhair-fern'
