# models.py - structured analysis returned by the model

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AttachedParticle(_Schema):
    """A particle decorating exactly one word (は, を, に, ...)."""

    text: str = Field(description="The particle text.")
    reading: Optional[str] = Field(default=None, description="Hiragana reading of the particle.")
    description: str = Field(
        description="What the particle does in this sentence; may contain <strong>, <em>, <br>."
    )


class WordNode(_Schema):
    """One word or phrase of the sentence, without its particle."""

    id: str
    text: str
    reading: Optional[str] = None
    part_of_speech: str = Field(alias="partOfSpeech")
    modifies: Optional[List[str]] = None
    position: Union[int, float]
    attached_particle: Optional[AttachedParticle] = Field(default=None, alias="attachedParticle")
    is_topic: Optional[bool] = Field(default=None, alias="isTopic")

    @property
    def topic(self) -> bool:
        return bool(self.is_topic)

    @property
    def targets(self) -> List[str]:
        return list(self.modifies or [])


class SentenceAnalysis(_Schema):
    original_sentence: str = Field(alias="originalSentence")
    words: List[WordNode]
    explanation: str
    is_fragment: bool = Field(alias="isFragment")

    @model_validator(mode="after")
    def _check_unique_ids(self):
        seen = set()
        for word in self.words:
            if word.id in seen:
                raise ValueError(f"duplicate word id: {word.id!r}")
            seen.add(word.id)
        return self

    def ordered_words(self) -> List[WordNode]:
        return sorted(self.words, key=lambda word: word.position)

    def topic_words(self) -> List[WordNode]:
        return [word for word in self.ordered_words() if word.topic]

    def main_words(self) -> List[WordNode]:
        return [word for word in self.ordered_words() if not word.topic]

    def word_by_id(self, word_id: str) -> Optional[WordNode]:
        for word in self.words:
            if word.id == word_id:
                return word
        return None

    def to_json_dict(self) -> dict:
        """camelCase JSON shape, absent optional fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: SentenceAnalysis
    timestamp: float
