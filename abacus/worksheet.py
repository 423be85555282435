"""
Worksheet Module - Printable sets of examples.

Builds a worksheet from the trainer settings and exports it as plain
text or as a PNG image drawn with Pillow.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from PIL import Image, ImageDraw, ImageFont

from .generator import RandomSource
from .service import SettingsLike, coerce_settings, generate_example
from .session import display_steps
from .settings import EXAMPLES_COUNT

logger = logging.getLogger(__name__)

# Image layout (pixels)
CELL_WIDTH = 90
ROW_HEIGHT = 26
HEADER_HEIGHT = 40
MARGIN = 20
COLUMNS_PER_ROW = 10


@dataclass(frozen=True)
class WorksheetExample:
    index: int
    start: int
    steps: List[str]
    answer: int


@dataclass
class Worksheet:
    """
    A generated worksheet.

    Attributes:
        examples: Numbered examples with display-ready steps
        settings: Settings snapshot the worksheet was built from
        created_at: ISO-8601 UTC timestamp
        show_answers: Whether exports include the answer key
    """
    examples: List[WorksheetExample]
    settings: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    show_answers: bool = False

    @property
    def max_steps(self) -> int:
        return max((len(ex.steps) for ex in self.examples), default=0)


_last_worksheet: Optional[Worksheet] = None


def get_last_worksheet() -> Optional[Worksheet]:
    """The most recently generated worksheet, if any."""
    return _last_worksheet


def generate_worksheet(settings: SettingsLike,
                       examples_count: Optional[int] = None,
                       show_answers: bool = False,
                       rng: Optional[RandomSource] = None) -> Worksheet:
    """
    Generate a worksheet.

    Args:
        settings: TrainerSettings or the UI settings dict
        examples_count: Number of examples (defaults to settings.examples.count)
        show_answers: Include the answer key in exports
        rng: Random source shared by all examples

    Returns:
        The new worksheet (also remembered as the last worksheet)
    """
    global _last_worksheet

    parsed = coerce_settings(settings)
    if examples_count is not None and examples_count > 0:
        count = examples_count
    elif parsed.examples.count > 0:
        count = parsed.examples.count
    else:
        count = EXAMPLES_COUNT

    rng = rng or RandomSource()
    examples = []
    for i in range(count):
        example = generate_example(parsed, rng=rng)
        examples.append(WorksheetExample(
            index=i + 1,
            start=int(example.get("start", 0)),
            steps=display_steps(example),
            answer=int(example["answer"]),
        ))

    worksheet = Worksheet(
        examples=examples,
        settings=parsed.to_dict(),
        created_at=datetime.now(timezone.utc).isoformat(),
        show_answers=show_answers,
    )
    _last_worksheet = worksheet
    logger.info(f"Worksheet generated: {count} examples, answers={show_answers}")
    return worksheet


def _text_grid(worksheet: Worksheet, with_answers: bool) -> List[str]:
    lines = []
    examples = worksheet.examples
    width = max([4] + [len(s) for ex in examples for s in ex.steps]
                + [len(str(ex.answer)) for ex in examples]) + 2
    rows = worksheet.max_steps

    for chunk_start in range(0, len(examples), COLUMNS_PER_ROW):
        chunk = examples[chunk_start:chunk_start + COLUMNS_PER_ROW]
        lines.append("".join(f"{ex.index}.".rjust(width) for ex in chunk))
        for row in range(rows):
            cells = [ex.steps[row] if row < len(ex.steps) else "" for ex in chunk]
            lines.append("".join(c.rjust(width) for c in cells))
        lines.append("".join(("=" * (width - 2)).rjust(width) for _ in chunk))
        if with_answers:
            lines.append("".join(str(ex.answer).rjust(width) for ex in chunk))
        else:
            lines.append("".join(("_" * (width - 2)).rjust(width) for _ in chunk))
        lines.append("")
    return lines


def render_worksheet_text(worksheet: Worksheet) -> str:
    """
    Render a worksheet as plain-text columns, one step per row.

    The answer key follows when worksheet.show_answers is set.
    """
    header = f"Worksheet ({len(worksheet.examples)} examples) - {worksheet.created_at}"
    lines = [header, ""]
    lines.extend(_text_grid(worksheet, with_answers=False))

    if worksheet.show_answers:
        lines.append("Answers:")
        lines.extend(f"{ex.index}. {ex.answer}" for ex in worksheet.examples)

    return "\n".join(lines).rstrip() + "\n"


def _load_fonts():
    # Try to load a font, fall back to default
    try:
        font = ImageFont.truetype("DejaVuSans.ttf", 16)
        small_font = ImageFont.truetype("DejaVuSans.ttf", 12)
    except OSError:
        font = ImageFont.load_default()
        small_font = font
    return font, small_font


def _draw_grid(worksheet: Worksheet, with_answers: bool, title: str) -> Image.Image:
    examples = worksheet.examples
    columns = max(1, min(COLUMNS_PER_ROW, len(examples)))
    bands = max(1, -(-len(examples) // COLUMNS_PER_ROW))
    # number row + steps + answer row + gap
    band_rows = worksheet.max_steps + 3
    width = MARGIN * 2 + columns * CELL_WIDTH
    height = HEADER_HEIGHT + MARGIN * 2 + bands * band_rows * ROW_HEIGHT

    image = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(image)
    font, small_font = _load_fonts()

    draw.text((MARGIN, MARGIN), title, fill="black", font=font)

    for i, ex in enumerate(examples):
        band, col = divmod(i, COLUMNS_PER_ROW)
        x = MARGIN + col * CELL_WIDTH
        y = HEADER_HEIGHT + MARGIN + band * band_rows * ROW_HEIGHT

        draw.rectangle(
            [x + 2, y, x + CELL_WIDTH - 2, y + (band_rows - 1) * ROW_HEIGHT],
            outline="gray",
        )
        draw.text((x + 8, y + 4), f"{ex.index}.", fill="blue", font=small_font)
        for row, step in enumerate(ex.steps):
            draw.text((x + 20, y + (row + 1) * ROW_HEIGHT), step, fill="black", font=font)

        answer_y = y + (worksheet.max_steps + 1) * ROW_HEIGHT
        draw.line([x + 8, answer_y - 2, x + CELL_WIDTH - 8, answer_y - 2], fill="black")
        if with_answers:
            draw.text((x + 20, answer_y + 2), str(ex.answer), fill="red", font=font)

    return image


def render_worksheet_image(worksheet: Worksheet,
                           path: Union[str, Path]) -> List[Path]:
    """
    Draw the worksheet grid and save it as PNG.

    Args:
        worksheet: Worksheet to export
        path: Target PNG path; the answer key goes to "<stem>_answers.png"

    Returns:
        Paths of the written files
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    title = f"Worksheet - {len(worksheet.examples)} examples"
    _draw_grid(worksheet, with_answers=False, title=title).save(path, "PNG")
    written = [path]

    if worksheet.show_answers:
        answers_path = path.with_name(f"{path.stem}_answers.png")
        _draw_grid(worksheet, with_answers=True, title=f"{title} (answers)").save(
            answers_path, "PNG"
        )
        written.append(answers_path)

    logger.info(f"Worksheet saved: {', '.join(str(p) for p in written)}")
    return written
