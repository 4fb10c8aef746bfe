# layout.py - word boxes and modification arrows for the sentence diagram
#
# Two passes, no browser involved:
#   1. measure every word box from text metrics
#   2. flow the boxes into centered rows, then derive the arrow curves
#      from the box positions.

import math
import unicodedata
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from models import SentenceAnalysis, WordNode

MAX_CURVE_HEIGHT = 60.0
CURVE_RATIO = 0.3
ARROW_SIZE = 8.0


@dataclass(frozen=True)
class LayoutMetrics:
    """Pixel constants of the diagram; the page template uses the same values."""

    container_width: float = 896.0
    padding: float = 32.0
    band_top: float = 64.0
    band_bottom: float = 32.0
    gap: float = 16.0
    min_height: float = 400.0
    topic_label_height: float = 28.0
    topic_bottom: float = 16.0

    wide_char_em: float = 1.0
    narrow_char_em: float = 0.55

    word_padding: float = 16.0
    word_border: float = 2.0
    word_max_width: float = 150.0
    text_size: float = 20.0
    text_line: float = 28.0
    text_margin: float = 4.0
    reading_size: float = 14.0
    reading_line: float = 20.0
    reading_margin: float = 8.0
    pos_size: float = 12.0
    pos_line: float = 16.0

    particle_size: float = 14.0
    particle_line: float = 20.0
    particle_reading_size: float = 12.0
    particle_reading_line: float = 16.0
    particle_padding_x: float = 8.0
    particle_padding_y: float = 4.0
    particle_border: float = 2.0
    particle_max_width: float = 60.0
    particle_overlap: float = 8.0
    particle_offset_y: float = 14.0


DEFAULT_METRICS = LayoutMetrics()


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


# ========== 1. Measuring ==========

@dataclass
class BoxSize:
    width: float
    height: float


def text_width(text: str, font_size: float, metrics: LayoutMetrics = DEFAULT_METRICS) -> float:
    """Full-width (kana, kanji, full-width punctuation) = 1em, anything else a narrower em."""
    ems = 0.0
    for ch in text or "":
        if unicodedata.east_asian_width(ch) in ("W", "F"):
            ems += metrics.wide_char_em
        else:
            ems += metrics.narrow_char_em
    return ems * font_size


def measure_word(word: WordNode, metrics: LayoutMetrics = DEFAULT_METRICS) -> BoxSize:
    chrome = 2 * (metrics.word_padding + metrics.word_border)
    inner_max = metrics.word_max_width - chrome

    lines = [(word.text, metrics.text_size, metrics.text_line, metrics.text_margin)]
    if word.reading:
        lines.append((word.reading, metrics.reading_size, metrics.reading_line, metrics.reading_margin))
    lines.append((word.part_of_speech, metrics.pos_size, metrics.pos_line, 0.0))

    content_width = 0.0
    content_height = 0.0
    for index, (text, size, line_height, margin) in enumerate(lines):
        width = text_width(text, size, metrics)
        line_count = max(1, math.ceil(width / inner_max)) if width > inner_max else 1
        content_width = max(content_width, min(width, inner_max))
        content_height += line_count * line_height
        if index < len(lines) - 1:
            content_height += margin

    return BoxSize(width=content_width + chrome, height=content_height + chrome)


def measure_particle(word: WordNode, metrics: LayoutMetrics = DEFAULT_METRICS) -> Optional[BoxSize]:
    particle = word.attached_particle
    if particle is None:
        return None

    width = text_width(particle.text, metrics.particle_size, metrics)
    height = metrics.particle_line
    # the reading line is only shown when it differs from the particle itself
    if particle.reading and particle.reading != particle.text:
        width = max(width, text_width(particle.reading, metrics.particle_reading_size, metrics))
        height += metrics.particle_reading_line

    chrome_x = 2 * (metrics.particle_padding_x + metrics.particle_border)
    chrome_y = 2 * (metrics.particle_padding_y + metrics.particle_border)
    return BoxSize(width=min(width + chrome_x, metrics.particle_max_width), height=height + chrome_y)


# ========== 2. Placing ==========

@dataclass
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass
class WordPosition:
    id: str
    center_x: float
    center_y: float
    width: float
    height: float

    @property
    def top(self) -> float:
        return self.center_y - self.height / 2


@dataclass
class WordPlacement:
    """Top-left placement of a word box (and its particle tab) inside a band."""

    id: str
    x: float
    y: float
    width: float
    height: float
    particle: Optional[Rect] = None

    @property
    def group_width(self) -> float:
        if self.particle is None:
            return self.width
        return self.particle.x + self.particle.width - self.x

    @property
    def group_height(self) -> float:
        if self.particle is None:
            return self.height
        return max(self.height, self.particle.y + self.particle.height - self.y)

    def to_position(self) -> WordPosition:
        return WordPosition(
            id=self.id,
            center_x=self.x + self.width / 2,
            center_y=self.y + self.height / 2,
            width=self.width,
            height=self.height,
        )


@dataclass
class Band:
    placements: List[WordPlacement] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0

    def positions(self) -> List[WordPosition]:
        return measure_positions(self.placements)


def measure_positions(placements: Iterable[WordPlacement]) -> List[WordPosition]:
    """Center/size of every placed box that carries a word id."""
    return [placement.to_position() for placement in placements if placement.id]


def _place_group(word, x, y, metrics):
    box = measure_word(word, metrics)
    particle_size = measure_particle(word, metrics)
    particle = None
    if particle_size is not None:
        particle = Rect(
            x=x + box.width - metrics.particle_overlap,
            y=y + metrics.particle_offset_y,
            width=particle_size.width,
            height=particle_size.height,
        )
    return WordPlacement(id=word.id, x=x, y=y, width=box.width, height=box.height, particle=particle)


def flow_layout(
    words: List[WordNode],
    origin_y: float,
    metrics: LayoutMetrics = DEFAULT_METRICS,
) -> List[WordPlacement]:
    """
    Wrap word groups into rows the way a centered flex-wrap container does:
    groups keep their order, a row breaks when the next group would overflow
    the inner width, every row is centered and groups sit at the row top.
    """
    inner_width = metrics.container_width - 2 * metrics.padding

    # measure at the origin, then shift into place row by row
    groups = [(word, _place_group(word, 0.0, 0.0, metrics)) for word in words]

    rows = []
    row = []
    row_width = 0.0
    for word, group in groups:
        needed = group.group_width if not row else row_width + metrics.gap + group.group_width
        if row and needed > inner_width:
            rows.append(row)
            row, row_width = [(word, group)], group.group_width
        else:
            row.append((word, group))
            row_width = needed
    if row:
        rows.append(row)

    placed = []
    y = origin_y
    for row in rows:
        width = sum(g.group_width for _, g in row) + metrics.gap * (len(row) - 1)
        x = metrics.padding + (inner_width - width) / 2
        for word, group in row:
            placed.append(_place_group(word, x, y, metrics))
            x += group.group_width + metrics.gap
        y += max(g.group_height for _, g in row) + metrics.gap
    return placed


def _band_bottom(placements: List[WordPlacement]) -> float:
    return max((p.y + p.group_height for p in placements), default=0.0)


# ========== 3. Arrows ==========

@dataclass
class Arrow:
    source_id: str
    target_id: str
    start_x: float
    start_y: float
    control_x: float
    control_y: float
    end_x: float
    end_y: float
    peak_height: float
    angle: float
    size: float = ARROW_SIZE

    @property
    def path(self) -> str:
        return "M {} {} Q {} {} {} {}".format(
            *map(_fmt, (self.start_x, self.start_y, self.control_x, self.control_y, self.end_x, self.end_y))
        )

    @property
    def angle_degrees(self) -> float:
        return math.degrees(self.angle)

    @property
    def arrowhead_points(self) -> str:
        half = _fmt(self.size / 2)
        return f"0,-{half} {_fmt(self.size)},0 0,{half}"

    @property
    def transform(self) -> str:
        return f"translate({_fmt(self.end_x)},{_fmt(self.end_y)}) rotate({_fmt(self.angle_degrees)})"

    def to_dict(self) -> dict:
        data = asdict(self)
        data.update(
            path=self.path,
            angle_degrees=self.angle_degrees,
            arrowhead_points=self.arrowhead_points,
            transform=self.transform,
        )
        return data


def build_arrow(source: WordPosition, target: WordPosition, size: float = ARROW_SIZE) -> Arrow:
    start_x, start_y = source.center_x, source.top
    end_x, end_y = target.center_x, target.top

    control_x = (start_x + end_x) / 2
    peak_height = min(MAX_CURVE_HEIGHT, abs(end_x - start_x) * CURVE_RATIO)
    control_y = min(start_y, end_y) - peak_height

    return Arrow(
        source_id=source.id,
        target_id=target.id,
        start_x=start_x,
        start_y=start_y,
        control_x=control_x,
        control_y=control_y,
        end_x=end_x,
        end_y=end_y,
        peak_height=peak_height,
        angle=math.atan2(end_y - control_y, end_x - control_x),
        size=size,
    )


def compute_arrows(
    words: Iterable[WordNode],
    positions: Union[Iterable[WordPosition], Dict[str, WordPosition]],
    size: float = ARROW_SIZE,
) -> List[Arrow]:
    """
    One arrow per (word, modified word) pair. Topic words never originate an
    arrow, and an edge whose source or target has no measured position is
    skipped on its own.
    """
    if isinstance(positions, dict):
        by_id = dict(positions)
    else:
        by_id = {}
        for position in positions:
            by_id.setdefault(position.id, position)
    if not by_id:
        return []

    arrows = []
    for word in words:
        if word.topic or not word.targets:
            continue
        source = by_id.get(word.id)
        if source is None:
            continue
        for target_id in word.targets:
            target = by_id.get(target_id)
            if target is None:
                continue
            arrows.append(build_arrow(source, target, size))
    return arrows


# ========== 4. Whole diagram ==========

@dataclass
class Diagram:
    topic_band: Band
    main_band: Band
    arrows: List[Arrow]
    metrics: LayoutMetrics = DEFAULT_METRICS

    @property
    def width(self) -> float:
        return self.metrics.container_width

    @property
    def height(self) -> float:
        return self.topic_band.height + self.main_band.height

    def to_dict(self) -> dict:
        def band(b: Band) -> dict:
            return {
                "width": b.width,
                "height": b.height,
                "placements": [
                    dict(asdict(p), group_width=p.group_width, group_height=p.group_height)
                    for p in b.placements
                ],
                "positions": [asdict(p) for p in b.positions()],
            }

        return {
            "width": self.width,
            "height": self.height,
            "topicBand": band(self.topic_band),
            "mainBand": band(self.main_band),
            "arrows": [arrow.to_dict() for arrow in self.arrows],
        }


def layout_diagram(analysis: SentenceAnalysis, metrics: LayoutMetrics = None) -> Diagram:
    """Lay out topic and main bands and derive the arrows; recomputed from scratch on every call."""
    metrics = metrics or DEFAULT_METRICS

    topic_band = Band(width=metrics.container_width)
    topics = analysis.topic_words()
    if topics:
        placements = flow_layout(topics, metrics.topic_label_height, metrics)
        topic_band.placements = placements
        topic_band.height = _band_bottom(placements) + metrics.topic_bottom

    main = analysis.main_words()
    placements = flow_layout(main, metrics.padding + metrics.band_top, metrics)
    main_band = Band(
        placements=placements,
        width=metrics.container_width,
        height=max(metrics.min_height, _band_bottom(placements) + metrics.padding + metrics.band_bottom),
    )

    # only the main band takes part in arrows, so topics neither send nor receive one
    arrows = compute_arrows(main, main_band.positions())
    return Diagram(topic_band=topic_band, main_band=main_band, arrows=arrows, metrics=metrics)
