"""Rule-table classifiers applied to traced functions."""

from .flow_classifier import DirectionTracker, FlowClassifier
from .state_synthesizer import StateSynthesizer
from .layer_annotator import LayerAnnotator

__all__ = ["DirectionTracker", "FlowClassifier", "StateSynthesizer", "LayerAnnotator"]
