from typing import Callable, List, Optional, Sequence, Tuple

import pytest

from rhizome_map.completion import CompletionClient
from rhizome_map.exceptions import CompletionError


class ScriptedCompletionClient(CompletionClient):
    """Replays canned responses and records every prompt pair it receives."""

    def __init__(self, responses: Sequence[str], fail_on: Optional[int] = None) -> None:
        self._responses = list(responses)
        self.fail_on = fail_on
        self.calls: List[Tuple[str, str]] = []

    async def complete(self, system: str, user: str) -> str:
        index = len(self.calls)
        self.calls.append((system, user))
        if self.fail_on is not None and index == self.fail_on:
            raise CompletionError("API Error: upstream unavailable", status_code=502)
        if index >= len(self._responses):
            raise AssertionError(f"unexpected completion call #{index + 1}")
        return self._responses[index]


@pytest.fixture
def scripted_client() -> Callable[..., ScriptedCompletionClient]:
    return ScriptedCompletionClient


@pytest.fixture
def narrative() -> str:
    return (
        "The Tower stands at the centre of your spread, a sudden unravelling of old certainties.\n\n"
        "Beside it the Star offers renewal: after collapse comes a quieter, truer hope."
    )
