import copy
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import Settings  # noqa: E402
from models import SentenceAnalysis  # noqa: E402


COMPLETE_PAYLOAD = {
    "originalSentence": "私は美しい花を見ました。",
    "words": [
        {
            "id": "w1",
            "text": "私",
            "reading": "わたし",
            "partOfSpeech": "pronoun",
            "modifies": [],
            "position": 0,
            "attachedParticle": {
                "text": "は",
                "reading": "わ",
                "description": "Marks <strong>私</strong> as the topic<script>alert(1)</script>",
            },
            "isTopic": True,
        },
        {
            "id": "w2",
            "text": "美しい",
            "reading": "うつくしい",
            "partOfSpeech": "adjective",
            "modifies": ["w3"],
            "position": 1,
        },
        {
            "id": "w3",
            "text": "花",
            "reading": "はな",
            "partOfSpeech": "noun",
            "modifies": ["w4"],
            "position": 2,
            "attachedParticle": {"text": "を", "description": "Marks the direct object"},
        },
        {
            "id": "w4",
            "text": "見ました",
            "reading": "みました",
            "partOfSpeech": "verb",
            "position": 3,
        },
    ],
    "explanation": '<p onclick="steal()">This sentence follows the <strong>SOV</strong> pattern.</p>',
    "isFragment": False,
}

FRAGMENT_PAYLOAD = {
    "originalSentence": "美しい花",
    "words": [
        {"id": "w1", "text": "美しい", "partOfSpeech": "adjective", "modifies": ["w2"], "position": 0},
        {"id": "w2", "text": "花", "partOfSpeech": "noun", "position": 1},
    ],
    "explanation": "<p>A noun phrase without a predicate.</p>",
    "isFragment": True,
}


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeAnalyzer:
    """Stands in for SentenceAnalyzer; answers from a sentence -> analysis table."""

    def __init__(self, answers=None, error=None):
        self.answers = answers or {}
        self.error = error
        self.calls = []

    def analyze(self, sentence):
        self.calls.append(sentence)
        if self.error is not None:
            raise self.error
        return self.answers[sentence]


@pytest.fixture
def complete_payload():
    return copy.deepcopy(COMPLETE_PAYLOAD)


@pytest.fixture
def fragment_payload():
    return copy.deepcopy(FRAGMENT_PAYLOAD)


@pytest.fixture
def complete_analysis(complete_payload):
    return SentenceAnalysis.model_validate(complete_payload)


@pytest.fixture
def fragment_analysis(fragment_payload):
    return SentenceAnalysis.model_validate(fragment_payload)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(api_key="test-key")


@pytest.fixture
def fake_analyzer_cls():
    return FakeAnalyzer
