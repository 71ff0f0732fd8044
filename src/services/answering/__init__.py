"""Rule-based answer synthesis.

- ``text_utils``  -- OCR text cleaning, sentence splitting, section capture
- ``extractors``  -- pure regex extractors (certificate fields, names,
  dates, amounts, resume sections, ...)
- ``formatter``   -- bold labels and bullet lists
- ``synthesizer`` -- the ordered intent strategy table and its dispatcher
"""

from src.services.answering.synthesizer import (
    DEFAULT_STRATEGIES,
    NO_CONTEXT_ANSWER,
    AnswerSynthesizer,
    IntentStrategy,
    QuestionIntent,
    SynthesisContext,
)

__all__ = [
    "DEFAULT_STRATEGIES",
    "NO_CONTEXT_ANSWER",
    "AnswerSynthesizer",
    "IntentStrategy",
    "QuestionIntent",
    "SynthesisContext",
]
