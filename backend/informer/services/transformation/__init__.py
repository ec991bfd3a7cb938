"""AI collaborators used to transform articles."""
from informer.services.transformation.images import ImageGenerator
from informer.services.transformation.rewriter import TextRewriter
from informer.services.transformation.speech import SpeechSynthesizer

__all__ = [
    "ImageGenerator",
    "SpeechSynthesizer",
    "TextRewriter",
]
