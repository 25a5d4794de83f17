# =============================================================================
# FernID Backend
# services/__init__.py - Services Package
#
# This package contains business logic services: fern classification and
# the browser-held admin preferences.
# =============================================================================

from .classifier import Classification, Classifier, ClassifierService, SimulatedClassifier

__all__ = ['Classification', 'Classifier', 'ClassifierService', 'SimulatedClassifier']
