import logging
import requests
import config

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """The generative-AI endpoint could not produce a reply."""


def groq_complete(system_prompt: str, user_prompt: str, temperature: float = 0.4) -> str:
    """Send one chat-completion request to Groq and return the raw reply text.

    Single attempt, no retry. Any failure (missing key, network error, non-2xx
    status, unexpected body) is raised as LLMError so callers can fall back.
    """
    api_key = config.groq_api_key()
    if not api_key:
        raise LLMError("GROQ_API_KEY not set")

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json"
    }
    payload = {
        "model": config.MODEL_NAME,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt}
        ],
        "temperature": temperature,
    }

    try:
        response = requests.post(config.LLM_API_URL, headers=headers, json=payload, timeout=config.LLM_TIMEOUT)
        response.raise_for_status()
        data = response.json()
        raw = data["choices"][0]["message"]["content"]
    except requests.exceptions.RequestException as e:
        raise LLMError(f"Groq request failed: {e}") from e
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise LLMError(f"Unexpected Groq response: {e}") from e

    if not isinstance(raw, str) or not raw.strip():
        raise LLMError("Empty completion from Groq")
    logger.debug("Groq reply: %d chars", len(raw))
    return raw
