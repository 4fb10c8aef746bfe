# prompts.py - instruction prompt and output schema for the analysis call

TOOL_NAME = "analyze_sentence"
TOOL_DESCRIPTION = "Provide structured analysis of the Japanese sentence"

ANALYSIS_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "originalSentence": {
            "type": "string",
            "description": "The original Japanese sentence",
        },
        "words": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {
                        "type": "string",
                        "description": "Unique identifier for this word/phrase",
                    },
                    "text": {
                        "type": "string",
                        "description": "Surface text of the word/phrase, WITHOUT its particle (particles go in attachedParticle)",
                    },
                    "reading": {
                        "type": "string",
                        "description": "Hiragana reading of the word (optional)",
                    },
                    "partOfSpeech": {
                        "type": "string",
                        "description": "Part of speech (noun, verb, adjective, adverb, ...)",
                    },
                    "modifies": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "IDs of the words/phrases this word modifies or relates to",
                    },
                    "position": {
                        "type": "number",
                        "description": "Position in the sentence (0-indexed)",
                    },
                    "attachedParticle": {
                        "type": "object",
                        "properties": {
                            "text": {
                                "type": "string",
                                "description": "The particle (は, を, に, が, ...)",
                            },
                            "reading": {
                                "type": "string",
                                "description": "Hiragana reading of the particle (optional)",
                            },
                            "description": {
                                "type": "string",
                                "description": "What this particle does in this particular sentence (1-2 sentences)",
                            },
                        },
                        "required": ["text", "description"],
                        "description": "Particle attached to this word, if any. Particles never get their own word entry.",
                    },
                    "isTopic": {
                        "type": "boolean",
                        "description": "True if this word is the sentence topic. Topics give context and modify nothing.",
                    },
                },
                "required": ["id", "text", "partOfSpeech", "position"],
            },
        },
        "explanation": {
            "type": "string",
            "description": "Short HTML explanation of the sentence structure using <p>, <strong>, <em>, <ul>, <li>.",
        },
        "isFragment": {
            "type": "boolean",
            "description": "True for a fragment or incomplete sentence (no predicate, incomplete thought); false for a complete sentence.",
        },
    },
    "required": ["originalSentence", "words", "explanation", "isFragment"],
    "additionalProperties": False,
}

PROMPT_TEMPLATE = """You are a Japanese grammar teacher. Break the following Japanese sentence into its words and phrases, and for each one say which other words it modifies or relates to. The result is drawn as a diagram with arrows between the words.

Sentence: {sentence}

Step 1: complete sentence or fragment?
- A complete sentence has a predicate (verb, adjective or copula) and expresses a complete thought.
- A fragment lacks key parts (a bare noun phrase, an unfinished clause, ...).
- Set isFragment to true for a fragment and false for a complete sentence.

Step 2: words and particles
1. Attach every particle (は, を, に, が, の, ...) to the word it follows with the attachedParticle field. Never create a separate word entry for a particle.
   Example: "私は" -> {{ "text": "私", "attachedParticle": {{ "text": "は", "description": "..." }} }}
2. Give each particle a short, practical description (1-2 sentences) of its job in THIS sentence.
   - は: marks the topic, what the sentence is about
   - を: marks the direct object of the verb
   - に: marks the destination or direction of movement
3. Mark the topic (marked by は or も) with isTopic: true. A topic gives context and does NOT modify anything: its modifies list is empty or absent.

Step 3: modification
- Adjectives modify nouns.
- Adverbs modify verbs and adjectives.
- Objects (を) modify verbs.
- Topics (は) modify nothing.
Reference words by their id in the modifies list. Give each word a reading and a part of speech.

Step 4: explanation
Write a brief explanation of the sentence structure as HTML, using only <p>, <strong>, <em>, <ul>, <li>. Put grammatical terms in <strong> and use lists for several points.
Example: "<p>This sentence follows the <strong>SOV pattern</strong>. The topic <strong>私</strong> is marked with は.</p>"

Use the {tool_name} tool to structure your response."""

JSON_ONLY_SUFFIX = """

Answer with the JSON object only, with no commentary and no code fences."""

# JSON schema keywords Gemini's response_schema understands
_GEMINI_SCHEMA_KEYS = ("type", "format", "description", "nullable", "enum", "items", "properties", "required")


def build_prompt(sentence: str, json_only: bool = False) -> str:
    prompt = PROMPT_TEMPLATE.format(sentence=sentence, tool_name=TOOL_NAME)
    if json_only:
        prompt = prompt.replace(f"Use the {TOOL_NAME} tool to structure your response.", "").rstrip()
        prompt += JSON_ONLY_SUFFIX
    return prompt


def to_gemini_schema(schema: dict) -> dict:
    """Convert ANALYSIS_SCHEMA to the OpenAPI subset Gemini accepts (upper-case type names)."""
    converted = {}
    for key in _GEMINI_SCHEMA_KEYS:
        if key not in schema:
            continue
        value = schema[key]
        if key == "type":
            value = value.upper()
        elif key == "items":
            value = to_gemini_schema(value)
        elif key == "properties":
            value = {name: to_gemini_schema(sub) for name, sub in value.items()}
        elif key == "required":
            value = list(value)
        converted[key] = value
    return converted
