# app.py - Vercel & local entry point

import logging

from flask import Flask, jsonify, render_template_string, request
from pydantic import ValidationError

from analyzer import SentenceAnalyzer
from cache import ResponseCache
from config import Settings
from errors import AnalysisError, InvalidInput
from layout import DEFAULT_METRICS, layout_diagram
from models import SentenceAnalysis

# ========== 1. Display helpers ==========

# part-of-speech label colours
POS_COLORS = {
    "noun": "#2563eb",
    "pronoun": "#4f46e5",
    "verb": "#059669",
    "adjective": "#d97706",
    "adverb": "#7c3aed",
    "other": "#6b7280",
}

# Japanese labels the model sometimes answers with
JP_POS_MAP = {
    "名詞": "noun",
    "代名詞": "pronoun",
    "動詞": "verb",
    "形容詞": "adjective",
    "形容動詞": "adjective",
    "副詞": "adverb",
}

EXAMPLE_SENTENCES = [
    "私は美しい花を見ました。",
    "猫が静かに部屋に入った。",
    "彼女は新しい本を読んでいる。",
]


def pos_color(part_of_speech: str) -> str:
    label = (part_of_speech or "").strip()
    label = JP_POS_MAP.get(label, label).lower()
    # "pronoun" contains "noun", so check the longer names first
    for key in sorted(POS_COLORS, key=len, reverse=True):
        if key in label:
            return POS_COLORS[key]
    return POS_COLORS["other"]


# ========== 2. Page ==========

PAGE_TEMPLATE = """
<!DOCTYPE html>
<html lang="ja">
<head>
<meta charset="UTF-8">
<title>Japanese Sentence Diagram</title>
<style>
{% raw %}
body {
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
    padding: 32px;
    line-height: 1.7;
    background: #f5f5f7;
}
.container {
    max-width: 960px;
    margin: 0 auto;
    background: #f9fafb;
    border-radius: 24px;
    padding: 24px 28px 32px;
    box-shadow: 0 10px 30px rgba(15, 23, 42, 0.08);
}
h1 { font-size: 1.8rem; margin-bottom: 1rem; }
h3 { font-size: 1.1rem; margin: 1.5rem 0 0.5rem; }
.info { font-size: 0.9rem; color: #6b7280; margin-bottom: 0.5rem; }
.error { font-size: 0.9rem; color: #b91c1c; margin: 0.5rem 0 0.75rem; }
textarea {
    width: 100%;
    height: 80px;
    padding: 8px 10px;
    border-radius: 12px;
    border: 1px solid #d4d4d8;
    font-size: 1rem;
    resize: vertical;
}
button {
    margin-top: 8px;
    padding: 6px 18px;
    border-radius: 999px;
    border: none;
    cursor: pointer;
    font-size: 0.95rem;
    background: #111827;
    color: white;
}
button:hover { opacity: 0.9; }
.examples button { background: #e5e7eb; color: #374151; font-size: 0.85rem; }
.fragment {
    margin: 1rem 0;
    padding: 0.75rem 1rem;
    background: #fefce8;
    border-left: 4px solid #facc15;
    color: #854d0e;
    font-size: 0.9rem;
}
.band { position: relative; margin: 0 auto; }
.topic-band { border-bottom: 2px dashed #d8b4fe; margin-bottom: 24px; }
.band-label { font-size: 0.85rem; color: #9333ea; }
.main-band { background: #f3f4f6; border-radius: 12px; overflow: hidden; }
.main-band svg { position: absolute; left: 0; top: 0; pointer-events: none; z-index: 1; }
.word {
    position: absolute;
    box-sizing: border-box;
    border: 2px solid #d4d4d8;
    border-radius: 8px;
    padding: 16px;
    background: #fff;
    text-align: center;
    z-index: 2;
    box-shadow: 0 1px 3px rgba(0,0,0,0.08);
}
.word.topic { background: #faf5ff; border-color: #d8b4fe; }
.word-text { font-size: 20px; line-height: 28px; font-weight: 700; margin-bottom: 4px; }
.word-reading { font-size: 14px; line-height: 20px; color: #6b7280; margin-bottom: 8px; }
.word-pos { font-size: 12px; line-height: 16px; font-weight: 500; }
/* particle tab: attached to the right of its word, description on hover */
.particle {
    position: absolute;
    box-sizing: border-box;
    padding: 4px 8px;
    border: 2px solid #ea580c;
    border-radius: 6px;
    background: #f97316;
    color: #fff;
    text-align: center;
    font-size: 14px;
    line-height: 20px;
    font-weight: 700;
    z-index: 3;
    cursor: help;
}
.particle-reading { font-size: 12px; line-height: 16px; color: #ffedd5; font-weight: 400; }
.particle .particle-note {
    display: none;
    position: absolute;
    left: 50%;
    top: 120%;
    transform: translateX(-50%);
    width: 220px;
    background: #111827;
    color: #f9fafb;
    padding: 4px 8px;
    border-radius: 6px;
    font-size: 0.75rem;
    font-weight: 400;
    z-index: 10;
}
.particle:hover .particle-note { display: block; }
.legend { font-size: 0.85rem; color: #4b5563; margin-top: 0.75rem; }
.explanation { background: #fff; border-radius: 12px; padding: 0.75rem 1rem; }
.details { list-style: none; padding: 0; }
.details li { background: #f3f4f6; border-radius: 8px; padding: 0.5rem 0.75rem; margin-bottom: 6px; }
.tag-topic {
    font-size: 0.7rem; color: #9333ea; background: #f3e8ff;
    border-radius: 4px; padding: 1px 6px; margin-right: 6px;
}
.detail-particle { color: #ea580c; font-weight: 600; }
.detail-modifies { float: right; color: #6b7280; font-size: 0.85rem; }
.no-result { color: #9ca3af; font-size: 0.9rem; }
{% endraw %}
</style>
</head>
<body>
{% macro word_box(word, p) -%}
  <div class="word{% if word.topic %} topic{% endif %}" data-word-id="{{ word.id }}"
       style="left: {{ '%.1f'|format(p.x) }}px; top: {{ '%.1f'|format(p.y) }}px; width: {{ '%.1f'|format(p.width) }}px; height: {{ '%.1f'|format(p.height) }}px;">
    <div class="word-text">{{ word.text }}</div>
    {% if word.reading %}<div class="word-reading">{{ word.reading }}</div>{% endif %}
    <div class="word-pos" style="color: {{ pos_color(word.part_of_speech) }};">{{ word.part_of_speech }}</div>
  </div>
  {% if word.attached_particle and p.particle %}
  <div class="particle"
       style="left: {{ '%.1f'|format(p.particle.x) }}px; top: {{ '%.1f'|format(p.particle.y) }}px; width: {{ '%.1f'|format(p.particle.width) }}px;">
    {{ word.attached_particle.text }}
    {% if word.attached_particle.reading and word.attached_particle.reading != word.attached_particle.text %}
      <div class="particle-reading">{{ word.attached_particle.reading }}</div>
    {% endif %}
    <span class="particle-note">{{ word.attached_particle.description|safe }}</span>
  </div>
  {% endif %}
{%- endmacro %}
<div class="container">
  <h1>Japanese Sentence Diagram</h1>

  {% if not has_api_key %}
    <div class="error">
      Server configuration error: {{ api_key_env }} is not set.
    </div>
  {% else %}
    <div class="info">
      Enter a Japanese sentence and press "Analyze" to see its words, particles and what modifies what.
    </div>
  {% endif %}

  <form method="post">
    <textarea name="sentence" placeholder="例：私は美しい花を見ました。">{{ sentence }}</textarea><br>
    <button type="submit">Analyze</button>
  </form>

  <div class="examples">
    {% for example in examples %}
      <form method="post" style="display: inline;">
        <input type="hidden" name="sentence" value="{{ example }}">
        <button type="submit">{{ example }}</button>
      </form>
    {% endfor %}
  </div>

  {% if error_msg %}
    <div class="error">{{ error_msg }}</div>
  {% endif %}

  {% if analysis and diagram %}
    <h3>Sentence Structure</h3>

    {% if analysis.is_fragment %}
      <div class="fragment">
        <strong>Sentence Fragment</strong><br>
        This appears to be an incomplete sentence. It may be missing a predicate or not express a complete thought.
      </div>
    {% endif %}

    {% if diagram.topic_band.placements %}
      <div class="band topic-band" style="width: {{ diagram.width }}px; height: {{ '%.1f'|format(diagram.topic_band.height) }}px;">
        <div class="band-label">Topic (Context)</div>
        {% for p in diagram.topic_band.placements %}{{ word_box(words_by_id[p.id], p) }}{% endfor %}
      </div>
    {% endif %}

    <div class="band main-band" style="width: {{ diagram.width }}px; height: {{ '%.1f'|format(diagram.main_band.height) }}px;">
      <svg width="{{ diagram.width }}" height="{{ '%.1f'|format(diagram.main_band.height) }}">
        {% for arrow in diagram.arrows %}
          <g data-from="{{ arrow.source_id }}" data-to="{{ arrow.target_id }}">
            <path d="{{ arrow.path }}" fill="none" stroke="#3b82f6" stroke-width="2"/>
            <polygon points="{{ arrow.arrowhead_points }}" fill="#3b82f6" transform="{{ arrow.transform }}"/>
          </g>
        {% endfor %}
      </svg>
      {% for p in diagram.main_band.placements %}{{ word_box(words_by_id[p.id], p) }}{% endfor %}
    </div>

    <div class="legend">
      <p><strong>Purple boxes:</strong> topic, gives context but does not modify the sentence</p>
      <p><strong>Arrows:</strong> which words modify or relate to other words</p>
      <p><strong>Orange tabs:</strong> particles (は, を, に, ...), hover to see what they do</p>
    </div>

    <h3>Explanation</h3>
    <div class="explanation">{{ analysis.explanation|safe }}</div>

    <h3>Word Details</h3>
    <ul class="details">
      {% for word in analysis.ordered_words() %}
        <li>
          {% if word.topic %}<span class="tag-topic">TOPIC</span>{% endif %}
          <strong>{{ word.text }}</strong>
          {% if word.attached_particle %}<span class="detail-particle">{{ word.attached_particle.text }}</span>{% endif %}
          {% if word.reading %}
            ({{ word.reading }}{% if word.attached_particle and word.attached_particle.reading %} + {{ word.attached_particle.reading }}{% endif %})
          {% endif %}
          <span style="color: {{ pos_color(word.part_of_speech) }};">- {{ word.part_of_speech }}</span>
          {% if word.targets %}
            <span class="detail-modifies">Modifies:
              {% for target in word.targets %}{{ words_by_id[target].text if target in words_by_id else target }}{% if not loop.last %}, {% endif %}{% endfor %}
            </span>
          {% endif %}
        </li>
      {% endfor %}
    </ul>
  {% elif not sentence %}
    <p class="no-result">Type a sentence above and press "Analyze".</p>
  {% endif %}

</div>
</body>
</html>
"""


# ========== 3. Flask app ==========

def create_app(settings: Settings = None, analyzer: SentenceAnalyzer = None, cache: ResponseCache = None) -> Flask:
    """Build the app; the cache and analyzer live as long as the app does."""
    settings = settings or Settings.from_env()
    analyzer = analyzer or SentenceAnalyzer(settings)
    cache = cache or ResponseCache(
        ttl_seconds=settings.cache_ttl_seconds,
        sweep_threshold=settings.cache_sweep_threshold,
    )

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.config["SETTINGS"] = settings
    app.json.ensure_ascii = False
    app.extensions["response_cache"] = cache
    app.extensions["sentence_analyzer"] = analyzer

    def analyze_sentence(sentence: str) -> SentenceAnalysis:
        # the cache is checked before the credential, so cached answers survive a missing key
        return cache.get_or_compute(sentence, lambda: analyzer.analyze(sentence))

    @app.errorhandler(AnalysisError)
    def handle_analysis_error(error):
        if isinstance(error, InvalidInput):
            app.logger.warning("rejected request: %s", error)
        else:
            app.logger.error("Error analyzing sentence: %s", error, exc_info=error)
        body, status = error.to_response()
        return jsonify(body), status

    @app.route("/api/analyze", methods=["POST"])
    def api_analyze():
        body = request.get_json(silent=True)
        sentence = body.get("sentence") if isinstance(body, dict) else None
        if not sentence or not isinstance(sentence, str):
            raise InvalidInput("request body has no usable 'sentence'")

        analysis = analyze_sentence(sentence)
        return jsonify(analysis.to_json_dict())

    @app.route("/api/diagram", methods=["POST"])
    def api_diagram():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise InvalidInput("request body is not a JSON object", public_message="Invalid analysis provided")
        try:
            analysis = SentenceAnalysis.model_validate(body)
        except ValidationError as e:
            raise InvalidInput(str(e), public_message="Invalid analysis provided") from e

        return jsonify(layout_diagram(analysis, DEFAULT_METRICS).to_dict())

    @app.route("/", methods=["GET", "POST"])
    def index():
        sentence = ""
        error_msg = ""
        analysis = None
        diagram = None

        if request.method == "POST":
            sentence = request.form.get("sentence", "").strip()
            if sentence:
                try:
                    analysis = analyze_sentence(sentence)
                    diagram = layout_diagram(analysis)
                except AnalysisError as e:
                    app.logger.error("Error analyzing sentence: %s", e, exc_info=e)
                    error_msg = e.public_message

        return render_template_string(
            PAGE_TEMPLATE,
            sentence=sentence,
            analysis=analysis,
            diagram=diagram,
            words_by_id={word.id: word for word in analysis.words} if analysis else {},
            error_msg=error_msg,
            has_api_key=settings.has_api_key,
            api_key_env=settings.api_key_env,
            examples=EXAMPLE_SENTENCES,
            pos_color=pos_color,
        )

    return app


app = create_app()


# Vercel / local entry point
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=app.config["SETTINGS"].port)
