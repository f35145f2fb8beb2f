"""PIL-based key renderer for the MindGym deck."""

from PIL import Image, ImageDraw, ImageFont

SIZE = (96, 96)
FONT_PATH = "/System/Library/Fonts/Helvetica.ttc"

BG = "#060a17"
BG_CARD = "#0b1020"
BG_PRIMARY = "#5b8cff"
BG_GHOST = "#1f2937"
TEXT = "#dfe8ff"
TEXT_DIM = "#9fb3d9"
TEXT_MUTED = "#6e88b7"
ALERT = "#ff8f8f"


def _font(size: int) -> ImageFont.FreeTypeFont:
    try:
        return ImageFont.truetype(FONT_PATH, size)
    except OSError:
        return ImageFont.load_default()


def render_empty(size: tuple[int, int] = SIZE) -> Image.Image:
    return Image.new("RGB", size, BG)


def render_text_button(
    size: tuple[int, int] = SIZE,
    lines: list[str] | None = None,
    bg_color: str = BG_CARD,
    font_sizes: list[int] | None = None,
    colors: list[str] | None = None,
) -> Image.Image:
    """Render a text-only key with big readable text and no icon.

    lines: up to 4 lines of text, centered vertically
    font_sizes: per-line font sizes (default: [22] for 1 line, [18,14] for 2, etc.)
    colors: per-line colors (default: white, then progressively dimmer)
    """
    img = Image.new("RGB", size, bg_color)
    if not lines:
        return img

    draw = ImageDraw.Draw(img)
    n = len(lines)

    if not font_sizes:
        if n == 1:
            font_sizes = [22]
        elif n == 2:
            font_sizes = [18, 14]
        elif n == 3:
            font_sizes = [16, 13, 11]
        else:
            font_sizes = [14, 12, 10, 9]
    font_sizes = list(font_sizes)

    if not colors:
        palette = [TEXT, TEXT_DIM, TEXT_MUTED, TEXT_MUTED]
        colors = palette[:n]
    colors = list(colors)

    # Pad to match lines count
    while len(font_sizes) < n:
        font_sizes.append(font_sizes[-1])
    while len(colors) < n:
        colors.append(colors[-1])

    fonts = [_font(s) for s in font_sizes]
    line_heights = [f.getbbox("Ag")[3] - f.getbbox("Ag")[1] for f in fonts]
    spacing = 4
    total_h = sum(line_heights) + spacing * (n - 1)
    y = (size[1] - total_h) // 2

    for i, text in enumerate(lines):
        draw.text(
            (size[0] // 2, y),
            text, font=fonts[i], fill=colors[i], anchor="mt",
        )
        y += line_heights[i] + spacing

    return img


def render_label_value(label: str, value: str, value_color: str = TEXT,
                       size: tuple[int, int] = SIZE) -> Image.Image:
    """HUD key: small label on top, big value below."""
    img = Image.new("RGB", size, BG_CARD)
    d = ImageDraw.Draw(img)
    d.text((48, 20), label, font=_font(13), fill=TEXT_DIM, anchor="mt")
    d.text((48, 50), value, font=_font(24), fill=value_color, anchor="mt")
    return img


def render_action(title: str, primary: bool = True,
                  size: tuple[int, int] = SIZE) -> Image.Image:
    """Answer / navigation key in the primary or ghost style."""
    bg = BG_PRIMARY if primary else BG_GHOST
    fg = "#071225" if primary else TEXT
    img = Image.new("RGB", size, bg)
    d = ImageDraw.Draw(img)
    d.text((48, 48), title, font=_font(15), fill=fg, anchor="mm")
    return img


def render_back(size: tuple[int, int] = SIZE) -> Image.Image:
    img = Image.new("RGB", size, "#374151")
    d = ImageDraw.Draw(img)
    d.text((48, 30), "<< BACK", font=_font(14), fill="#fbbf24", anchor="mt")
    d.text((48, 52), "HOME", font=_font(14), fill=TEXT_DIM, anchor="mt")
    return img


def render_word(word: str, ink: str, size: tuple[int, int] = SIZE) -> Image.Image:
    """Stroop stimulus: the color word drawn in its ink color."""
    img = Image.new("RGB", size, BG_CARD)
    d = ImageDraw.Draw(img)
    font_size = 22 if len(word) <= 4 else 17
    d.text((48, 48), word, font=_font(font_size), fill=ink, anchor="mm")
    return img


def render_letter(char: str, size: tuple[int, int] = SIZE) -> Image.Image:
    """N-Back stimulus: one large letter."""
    img = Image.new("RGB", size, BG_CARD)
    if char:
        d = ImageDraw.Draw(img)
        d.text((48, 48), char, font=_font(56), fill=TEXT, anchor="mm")
    return img


def render_timer(time_left: int, total: int, size: tuple[int, int] = SIZE) -> Image.Image:
    """Seconds left plus a bar that empties as time runs out."""
    img = Image.new("RGB", size, BG_CARD)
    d = ImageDraw.Draw(img)
    color = ALERT if time_left < 10 else TEXT
    d.text((48, 12), "TIME", font=_font(12), fill=TEXT_DIM, anchor="mt")
    d.text((48, 30), f"{time_left}s", font=_font(22), fill=color, anchor="mt")

    bar_x, bar_y, bar_w, bar_h = 10, 66, 76, 14
    d.rectangle([bar_x, bar_y, bar_x + bar_w, bar_y + bar_h], outline="#38507a", width=1)
    fraction = time_left / total if total > 0 else 0
    fill_w = max(0, int(bar_w * fraction))
    if fill_w > 0:
        d.rectangle([bar_x + 1, bar_y + 1, bar_x + fill_w, bar_y + bar_h - 1], fill=color)
    return img
