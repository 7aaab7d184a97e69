"""Local token counting with tiktoken.

Counts are computed offline from the model's own encoding. There is no
fallback encoding: a model tiktoken does not know is a configuration error,
because a count taken with the wrong encoding is silently wrong.
"""

from __future__ import annotations

from functools import lru_cache
import logging
from typing import TYPE_CHECKING

import tiktoken

from genbridge.errors import ConfigurationError

if TYPE_CHECKING:
    from genbridge.types import ContentsInput

log = logging.getLogger(__name__)

# Turns are joined with this separator before encoding.
TURN_SEPARATOR = "\n"


@lru_cache(maxsize=32)
def encoding_for_model(model: str) -> tiktoken.Encoding:
    """Resolve *model* to its tiktoken encoding.

    Raises:
        ConfigurationError: tiktoken has no encoding for *model*.
    """
    try:
        encoding = tiktoken.encoding_for_model(model)
    except KeyError as e:
        raise ConfigurationError(
            f"No token encoding known for model {model!r}",
            hint="Token counting needs a model tiktoken recognizes, "
            "e.g. 'gpt-4o' or 'gpt-3.5-turbo'.",
        ) from e
    log.debug("Resolved model %s to encoding %s", model, encoding.name)
    return encoding


def count_tokens(contents: ContentsInput, model: str) -> int:
    """Count encoded tokens across all message contents, in turn order."""
    from genbridge.providers._openai_messages import to_openai_messages

    messages = to_openai_messages(contents)
    text = TURN_SEPARATOR.join(message.get("content") or "" for message in messages)
    # Special-token markers in user text are counted as ordinary text.
    return len(encoding_for_model(model).encode(text, disallowed_special=()))
