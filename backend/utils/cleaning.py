"""
Response cleaning utilities for LLM outputs.
Strips chain-of-thought blocks and pulls the first JSON value out of free text.
"""
import re
import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ResponseCleaner:
    """
    Cleans raw evaluator text before it is trusted.
    Reasoning models (DeepSeek R1 and friends) wrap output in <think> blocks
    and often chat around the JSON they were asked for.
    """

    THINK_PATTERN = re.compile(r'<think>.*?</think>', re.DOTALL | re.IGNORECASE)
    CODE_FENCE_PATTERN = re.compile(r'```(?:json)?', re.IGNORECASE)

    @classmethod
    def strip_reasoning(cls, text: str) -> str:
        """Remove <think> blocks, dangling think tags and markdown fences."""
        if not text:
            return ""

        cleaned = cls.THINK_PATTERN.sub('', text)
        # Unterminated block: everything before the closing tag is reasoning
        if '</think>' in cleaned.lower():
            cleaned = re.split(r'</think>', cleaned, flags=re.IGNORECASE)[-1]
        cleaned = re.sub(r'</?\s*think\s*>', '', cleaned, flags=re.IGNORECASE)
        cleaned = cls.CODE_FENCE_PATTERN.sub('', cleaned)

        return cleaned.strip()

    @classmethod
    def find_balanced(cls, text: str, opener: str, closer: str) -> Optional[str]:
        """
        Return the first balanced opener...closer substring.
        Brackets inside JSON string literals are ignored.
        """
        start = text.find(opener)
        while start != -1:
            depth = 0
            in_string = False
            escaped = False

            for i in range(start, len(text)):
                ch = text[i]
                if in_string:
                    if escaped:
                        escaped = False
                    elif ch == '\\':
                        escaped = True
                    elif ch == '"':
                        in_string = False
                    continue

                if ch == '"':
                    in_string = True
                elif ch == opener:
                    depth += 1
                elif ch == closer:
                    depth -= 1
                    if depth == 0:
                        return text[start:i + 1]

            # Unbalanced from here; try the next opener
            start = text.find(opener, start + 1)

        return None

    @classmethod
    def _parse(cls, candidate: Optional[str]) -> Optional[Any]:
        if candidate is None:
            return None
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            # Fix trailing commas
            fixed = re.sub(r',\s*([}\]])', r'\1', candidate)
            try:
                return json.loads(fixed)
            except json.JSONDecodeError:
                logger.debug(f"Unparseable JSON candidate: {candidate[:200]}")
                return None

    @classmethod
    def extract_json_array(cls, text: str) -> Optional[list]:
        """Extract and parse the first JSON array embedded in the text."""
        cleaned = cls.strip_reasoning(text)
        parsed = cls._parse(cls.find_balanced(cleaned, '[', ']'))
        return parsed if isinstance(parsed, list) else None

    @classmethod
    def extract_json_object(cls, text: str) -> Optional[dict]:
        """Extract and parse the first JSON object embedded in the text."""
        cleaned = cls.strip_reasoning(text)
        parsed = cls._parse(cls.find_balanced(cleaned, '{', '}'))
        return parsed if isinstance(parsed, dict) else None
