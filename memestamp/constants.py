CAPTION_POSITIONS = ("top", "bottom", "center")

# Caption-band layout
FONT_SIZE_DIVISOR = 15
BAND_MARGIN_RATIO = 0.8
LINE_HEIGHT_RATIO = 1.2
SIDE_MARGIN_PX = 20
# Caption outline is font_size // 10 px outward on each side (2px at 26px), twice the
# canvas lineWidth the web client uses. Kept as is pending product review (DESIGN.md).
STROKE_DIVISOR = 10
CAPTION_FILL = "white"
CAPTION_STROKE = "black"

DEFAULT_FONT_FAMILY = "Impact"

# Generic bold sans-serif fallbacks, matched against font file stems.
FALLBACK_FONT_STEMS = (
    "impact",
    "arialbd",
    "Arial Bold",
    "Arial Black",
    "ariblk",
    "DejaVuSans-Bold",
    "LiberationSans-Bold",
    "NotoSans-Bold",
    "FreeSansBold",
    "Helvetica-Bold",
)

OUTPUT_FORMAT = "png"
