"""Legal disclaimer loading.

The disclaimer ships as a .docx; the dashboard shows its plain text and
falls back to a download link when extraction fails.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional
import logging

import mammoth
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DISCLAIMER_ERROR_MESSAGE = "Failed to load disclaimer document. Please try downloading it instead."


class DisclaimerText(BaseModel):
    text: str = ""
    error: Optional[str] = None


def load_disclaimer_text(docx_path: Path | str) -> DisclaimerText:
    path = Path(docx_path)
    if not path.exists():
        logger.warning("Disclaimer document not found: %s", path)
        return DisclaimerText(error=DISCLAIMER_ERROR_MESSAGE)

    try:
        with path.open("rb") as fh:
            result = mammoth.extract_raw_text(fh)
    except Exception:
        logger.exception("Could not extract text from disclaimer %s", path)
        return DisclaimerText(error=DISCLAIMER_ERROR_MESSAGE)

    if result.messages:
        logger.info("Disclaimer conversion messages: %s", result.messages)
    return DisclaimerText(text=result.value)
