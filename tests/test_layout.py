import math

import pytest

from layout import (
    DEFAULT_METRICS,
    WordPosition,
    build_arrow,
    compute_arrows,
    flow_layout,
    layout_diagram,
    measure_word,
    text_width,
)
from models import SentenceAnalysis, WordNode


def make_word(word_id, text="語", position=0, modifies=None, is_topic=None, particle=None):
    data = {"id": word_id, "text": text, "partOfSpeech": "noun", "position": position}
    if modifies is not None:
        data["modifies"] = modifies
    if is_topic is not None:
        data["isTopic"] = is_topic
    if particle is not None:
        data["attachedParticle"] = {"text": particle, "description": "marker"}
    return WordNode.model_validate(data)


@pytest.fixture
def two_positions():
    return [
        WordPosition(id="a", center_x=10, center_y=50, width=40, height=20),
        WordPosition(id="b", center_x=110, center_y=50, width=40, height=20),
    ]


def test_arrow_geometry_between_two_boxes(two_positions):
    arrow = build_arrow(*two_positions)

    assert (arrow.start_x, arrow.start_y) == (10, 40)
    assert (arrow.end_x, arrow.end_y) == (110, 40)
    assert arrow.peak_height == pytest.approx(30)
    assert (arrow.control_x, arrow.control_y) == (pytest.approx(60), pytest.approx(10))
    assert arrow.angle == pytest.approx(math.atan2(30, 50))
    assert arrow.path == "M 10 40 Q 60 10 110 40"
    assert arrow.arrowhead_points == "0,-4 8,0 0,4"
    assert arrow.transform.startswith("translate(110,40) rotate(")


def test_arrow_geometry_is_deterministic(two_positions):
    assert build_arrow(*two_positions) == build_arrow(*two_positions)


def test_curve_height_is_capped_for_long_edges():
    a = WordPosition(id="a", center_x=0, center_y=100, width=40, height=20)
    b = WordPosition(id="b", center_x=1000, center_y=100, width=40, height=20)

    arrow = build_arrow(a, b)

    assert arrow.peak_height == 60
    assert arrow.control_y == 90 - 60


def test_control_point_rises_above_the_higher_anchor():
    a = WordPosition(id="a", center_x=0, center_y=100, width=40, height=20)
    b = WordPosition(id="b", center_x=100, center_y=200, width=40, height=20)

    arrow = build_arrow(a, b)

    assert arrow.control_y == pytest.approx(90 - 30)


def test_dangling_target_produces_no_arrow(two_positions):
    words = [make_word("a", modifies=["missing"])]

    assert compute_arrows(words, two_positions) == []


def test_dangling_edges_are_skipped_one_by_one(two_positions):
    words = [make_word("a", modifies=["missing", "b"])]

    arrows = compute_arrows(words, two_positions)

    assert [(arrow.source_id, arrow.target_id) for arrow in arrows] == [("a", "b")]


def test_missing_source_position_is_skipped(two_positions):
    words = [make_word("ghost", modifies=["b"])]

    assert compute_arrows(words, two_positions) == []


def test_topic_words_never_originate_arrows(two_positions):
    words = [make_word("a", modifies=["b"], is_topic=True)]

    assert compute_arrows(words, two_positions) == []


def test_no_positions_means_no_arrows():
    words = [make_word("a", modifies=["b"]), make_word("b")]

    assert compute_arrows(words, []) == []


def test_positions_may_be_a_mapping(two_positions):
    words = [make_word("a", modifies=["b"])]
    by_id = {position.id: position for position in two_positions}

    assert len(compute_arrows(words, by_id)) == 1


def test_wide_characters_measure_wider_than_ascii():
    assert text_width("花花", 20) > text_width("ab", 20)
    assert text_width("花", 20) == pytest.approx(20)


def test_word_box_width_is_capped():
    long_word = make_word("a", text="非常に長い複合語のテキストです")
    short_word = make_word("b", text="花")

    assert measure_word(long_word).width == DEFAULT_METRICS.word_max_width
    assert measure_word(long_word).height > measure_word(short_word).height


def test_flow_wraps_rows_inside_the_container():
    words = [make_word(f"w{i}", text="日本語", position=i, particle="を") for i in range(20)]

    placements = flow_layout(words, origin_y=0)

    rows = sorted({p.y for p in placements})
    assert len(rows) > 1
    for p in placements:
        assert p.x >= DEFAULT_METRICS.padding - 1e-6
        assert p.x + p.group_width <= DEFAULT_METRICS.container_width - DEFAULT_METRICS.padding + 1e-6


def test_particle_tab_sits_to_the_right_of_its_word():
    placement = flow_layout([make_word("a", particle="は")], origin_y=0)[0]

    assert placement.particle is not None
    assert placement.particle.x == pytest.approx(placement.x + placement.width - DEFAULT_METRICS.particle_overlap)
    assert placement.group_width > placement.width


def test_diagram_separates_topic_band_and_draws_main_arrows(complete_analysis):
    diagram = layout_diagram(complete_analysis)

    assert [p.id for p in diagram.topic_band.placements] == ["w1"]
    assert [p.id for p in diagram.main_band.placements] == ["w2", "w3", "w4"]
    assert [(a.source_id, a.target_id) for a in diagram.arrows] == [("w2", "w3"), ("w3", "w4")]

    xs = [p.x for p in diagram.main_band.placements]
    assert xs == sorted(xs)


def test_main_band_is_laid_out_by_position_not_list_order(complete_payload):
    complete_payload["words"].reverse()
    analysis = SentenceAnalysis.model_validate(complete_payload)

    diagram = layout_diagram(analysis)

    assert [p.id for p in diagram.main_band.placements] == ["w2", "w3", "w4"]


def test_topics_never_receive_arrows(complete_payload):
    complete_payload["words"][1]["modifies"] = ["w1", "w3"]
    analysis = SentenceAnalysis.model_validate(complete_payload)

    diagram = layout_diagram(analysis)

    assert all(arrow.target_id != "w1" for arrow in diagram.arrows)
    assert len(diagram.arrows) == 2


def test_layout_is_idempotent(complete_analysis):
    assert layout_diagram(complete_analysis).to_dict() == layout_diagram(complete_analysis).to_dict()


def test_empty_analysis_gives_empty_diagram():
    analysis = SentenceAnalysis.model_validate(
        {"originalSentence": "", "words": [], "explanation": "", "isFragment": True}
    )

    diagram = layout_diagram(analysis)

    assert diagram.arrows == []
    assert diagram.topic_band.height == 0
    assert diagram.main_band.height == DEFAULT_METRICS.min_height


def test_diagram_to_dict_shape(complete_analysis):
    data = layout_diagram(complete_analysis).to_dict()

    assert set(data) == {"width", "height", "topicBand", "mainBand", "arrows"}
    assert data["arrows"][0]["path"].startswith("M ")
    assert {p["id"] for p in data["mainBand"]["positions"]} == {"w2", "w3", "w4"}
