from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import httpx

from vocab_lists.data.quota_repo import QuotaRepo
from vocab_lists.models.quota import QuotaStatus
from vocab_lists.service.quota_service import QuotaAccount

logger = logging.getLogger(__name__)

CATEGORY_PROMPTS = {
    "animals": (
        "Generate a list of {count} common animal names in English. Include both domestic and wild animals. "
        "Return only the animal names, one per line, without numbers or additional text. "
        "Examples: Cat, Dog, Elephant, Lion."
    ),
    "food": (
        "Generate a list of {count} common food items in English. Include fruits, vegetables, and prepared dishes. "
        "Return only the food names, one per line, without numbers or additional text. "
        "Examples: Apple, Banana, Pizza, Salad."
    ),
    "household_items": (
        "Generate a list of {count} common household items in English. Include furniture, appliances, and "
        "everyday objects. Return only the item names, one per line, without numbers or additional text. "
        "Examples: Chair, Table, Lamp, Refrigerator."
    ),
    "transport": (
        "Generate a list of {count} common modes of transportation in English. Include vehicles and public "
        "transport. Return only the transport names, one per line, without numbers or additional text. "
        "Examples: Car, Bus, Bicycle, Train."
    ),
    "jobs": (
        "Generate a list of {count} common job titles in English. Include various professions and occupations. "
        "Return only the job titles, one per line, without numbers or additional text. "
        "Examples: Teacher, Doctor, Engineer, Chef."
    ),
}

SYSTEM_PROMPT = (
    "You are a helpful assistant that generates educational word lists. Output only the requested words, "
    "one per line, without any numbering, formatting, or additional text."
)

_NUMBERING = re.compile(r"^\d+[.)]\s*")
_BULLET = re.compile(r"^[-*•]\s*")


class AIGenerationError(Exception):
    def __init__(self, detail: str, retry_after: int = 30):
        super().__init__(detail)
        self.detail = detail
        self.retry_after = retry_after


@dataclass(frozen=True)
class GeneratedItem:
    position: int
    display: str


def parse_generated_text(text: str, expected_count: int, max_len: int = 80) -> List[GeneratedItem]:
    """Turn newline-delimited model output into numbered items.

    Leading list numbering ("1.", "2)") and bullets are dropped, as are blank
    lines and lines longer than ``max_len``.
    """
    lines = []
    for raw in text.splitlines():
        line = _BULLET.sub("", _NUMBERING.sub("", raw.strip())).strip()
        if line and len(line) <= max_len:
            lines.append(line)
    return [GeneratedItem(position=i, display=d) for i, d in enumerate(lines[:expected_count], start=1)]


class OpenRouterClient:
    """Thin chat-completions client. ``http`` is injectable for tests."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        model: str,
        referer: str = "",
        timeout: float = 30.0,
        http: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.referer = referer
        self.timeout = timeout
        self.http = http

    def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise AIGenerationError("AI service not configured.")
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.7,
            "max_tokens": 500,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.referer,
            "X-Title": "Word List Learning App",
        }
        client = self.http or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(self.api_url, json=payload, headers=headers)
        except httpx.RequestError as exc:
            raise AIGenerationError(f"Network error contacting AI provider: {exc}") from exc
        finally:
            if self.http is None:
                client.close()

        if response.status_code < 200 or response.status_code >= 300:
            raise AIGenerationError(f"AI provider error {response.status_code}: {response.text.strip()[:200]}")
        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise AIGenerationError("Unexpected response from AI provider.") from exc
        if not content:
            raise AIGenerationError("AI provider returned no content.")
        return content


class ListGenerator:
    """Quota-gated word-list generation.

    Quota is consumed before the provider is called; a failed generation
    still counts against the day.
    """

    def __init__(self, client: OpenRouterClient, quota: QuotaAccount, max_retries: int = 1, max_len: int = 80):
        self.client = client
        self.quota = quota
        self.max_retries = max_retries
        self.max_len = max_len

    def generate(self, user_id: int, category: str, count: int) -> Tuple[List[GeneratedItem], QuotaStatus]:
        if category not in CATEGORY_PROMPTS:
            raise ValueError(f"Invalid category. Must be one of: {', '.join(CATEGORY_PROMPTS)}.")
        status = self.quota.consume(user_id)
        logger.info("AI quota consumed for user %s. Remaining: %s/%s", user_id, status.remaining, status.limit)

        prompt = CATEGORY_PROMPTS[category].format(count=count)
        items: List[GeneratedItem] = []
        for attempt in range(self.max_retries + 1):
            try:
                items = parse_generated_text(self.client.complete(prompt), count, self.max_len)
            except AIGenerationError as exc:
                logger.warning("Generation attempt %s failed: %s", attempt + 1, exc.detail)
                if attempt >= self.max_retries:
                    raise
                continue
            if len(items) >= count:
                return items, status
            logger.warning("Incomplete generation: %s/%s items (attempt %s)", len(items), count, attempt + 1)
        raise AIGenerationError(f"Only {len(items)}/{count} words generated. Please try again.")


def build_generator(settings, http: Optional[httpx.Client] = None) -> ListGenerator:
    client = OpenRouterClient(
        api_key=settings.OPENROUTER_API_KEY,
        api_url=settings.OPENROUTER_API_URL,
        model=settings.OPENROUTER_MODEL,
        referer=settings.PUBLIC_APP_URL,
        timeout=settings.AI_REQUEST_TIMEOUT,
        http=http,
    )
    quota = QuotaAccount(QuotaRepo(), daily_limit=settings.AI_DAILY_LIMIT)
    return ListGenerator(client, quota, max_retries=settings.AI_MAX_RETRIES, max_len=settings.DISPLAY_MAX_LEN)
