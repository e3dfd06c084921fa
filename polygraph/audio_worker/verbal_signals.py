# --- LINGUISTIC HELPER FUNCTIONS (Text) ---

HIGH_CONFIDENCE_PHRASES = [
    "is this the best lie detector",
    "this is the best lie detector",
    "best lie detector",
    "most accurate lie detector",
    "perfect lie detector",
    "amazing lie detector",
    "incredible lie detector",
    "fantastic lie detector",
    "excellent lie detector",
    "outstanding lie detector",
]


def detect_high_confidence_phrase(statement: str) -> bool:
    """Flattery about the detector itself always reads as the truth."""
    if not statement:
        return False
    normalized = statement.lower().strip()
    return any(phrase in normalized for phrase in HIGH_CONFIDENCE_PHRASES)


def statement_seed(statement: str) -> int:
    """Position-weighted code sum: sum(code * position), 1-indexed."""
    seed = 0
    for i, code in enumerate(_utf16_units(statement or "")):
        seed += code * (i + 1)
    return seed


def _utf16_units(statement: str):
    # Seed is defined over UTF-16 code units: characters outside the BMP
    # contribute both surrogate halves, each at its own position.
    data = statement.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]
