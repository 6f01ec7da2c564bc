import logging
import re
import unicodedata

logger = logging.getLogger(__name__)

HAMZA = "\u0621"
ARABIC_CHARS = re.compile("[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]")

# Hamza followed by short vowels/sukun and an alif form renders as detached
# glyphs in Uthmani fonts; collapse each sequence to the composed letter.
# Order matters: earlier rules consume sequences later rules would match.
HAMZA_CORRECTIONS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern), replacement)
    for pattern, replacement in (
        ("\u0621\u064E\u0627", "\u0623"),
        ("\u0621[\u064E\u064F\u0650\u0652]*\u0627", "\u0623"),
        ("\u0621[\u064E\u064F\u0650\u0652]*\u0625", "\u0625"),
        ("\u0621[\u064E\u064F\u0650\u0652]*\u0622", "\u0622"),
        ("\u0621\u0627", "\u0623"),
        ("\u0621\u0623", "\u0623"),
        ("\u0621\u0625", "\u0625"),
        ("\u0621\u0622", "\u0622"),
        ("ٱلْءَاخِرَةِ", "الْآخِرَةِ"),
        ("ءَاخِرَةِ", "آخِرَةِ"),
        ("وَبِٱلْءَاخِرَةِ", "وَبِالْآخِرَةِ"),
        ("بِٱلْءَاخِرَةِ", "بِالْآخِرَةِ"),
        ("ٱلْءَ", "الْآ"),
    )
)


def has_arabic(text: str) -> bool:
    return bool(ARABIC_CHARS.search(text))


def normalize_arabic(text: str) -> str:
    """NFC-compose the text and repair hamza/alif sequences before it is measured or drawn."""
    value = unicodedata.normalize("NFC", text)
    for pattern, replacement in HAMZA_CORRECTIONS:
        value = pattern.sub(replacement, value)
    if HAMZA in value:
        logger.debug("Standalone hamza kept after corrections in %r", value[:40])
    return value
