"""Timing constants shared by the composition stages."""

DEFAULT_SCENE_DURATION_MS = 5000  # silent scene
AUDIO_PADDING_MS = 500            # trailing pad after voiced content
TEXT_DURATION_MS_PER_CHAR = 300
MIN_DURATION_MS = 2000
MAX_DURATION_MS = 600000          # 10 minutes


def clamp_duration(duration_ms: int) -> int:
    """Clamp a scene duration into [MIN_DURATION_MS, MAX_DURATION_MS]."""
    return max(MIN_DURATION_MS, min(MAX_DURATION_MS, int(duration_ms)))


def estimate_text_ms(text: str) -> int:
    """Estimate spoken length of text, floored at MIN_DURATION_MS."""
    return max(MIN_DURATION_MS, len(text or "") * TEXT_DURATION_MS_PER_CHAR)
