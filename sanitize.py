# sanitize.py - allow-list HTML cleaning for model-written markup
#
# The explanation and the particle descriptions are rendered as raw markup in
# the page, so everything the model writes there goes through this module.

from bs4 import BeautifulSoup
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter
from bs4.dammit import EntitySubstitution

from models import SentenceAnalysis

EXPLANATION_TAGS = frozenset({"p", "strong", "em", "ul", "li", "ol", "br", "span"})
PARTICLE_TAGS = frozenset({"strong", "em", "br"})

# removed together with their text
DISCARD_TAGS = ["script", "style", "textarea", "option", "noscript"]

# <br> rather than <br/>, and only &, <, > escaped (kana/kanji stay as-is)
_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)


def sanitize_html(markup, allowed_tags=EXPLANATION_TAGS) -> str:
    """Keep only ``allowed_tags`` without attributes; other tags are unwrapped."""
    if not markup:
        return ""

    soup = BeautifulSoup(markup, "html.parser")

    for tag in soup.find_all(DISCARD_TAGS):
        tag.decompose()

    # comments, doctypes, CDATA, processing instructions
    for node in soup.find_all(string=lambda s: isinstance(s, PreformattedString)):
        node.extract()

    for tag in soup.find_all(True):
        if tag.name in allowed_tags:
            tag.attrs = {}
        else:
            tag.unwrap()

    return soup.decode(formatter=_FORMATTER)


def sanitize_analysis(analysis: SentenceAnalysis) -> SentenceAnalysis:
    """Return a copy with the explanation and particle descriptions cleaned."""
    words = []
    for word in analysis.words:
        particle = word.attached_particle
        if particle is not None:
            particle = particle.model_copy(
                update={"description": sanitize_html(particle.description, PARTICLE_TAGS)}
            )
        words.append(word.model_copy(update={"attached_particle": particle}))

    return analysis.model_copy(
        update={
            "explanation": sanitize_html(analysis.explanation, EXPLANATION_TAGS),
            "words": words,
        }
    )
