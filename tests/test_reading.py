import pytest

from rhizome_map.graph_model import ReadingType
from rhizome_map.phases.reading import READING_SEPARATOR, continue_reading, generate_reading


@pytest.mark.asyncio
async def test_generate_reading_names_reading_subject(scripted_client):
    client = scripted_client(["The cards speak."])
    narrative = await generate_reading(client, ReadingType.DEEP, "  Why do I resist change?  ")

    system_prompt, user_prompt = client.calls[0]
    assert narrative == "The cards speak."
    assert "For this deep reading" in system_prompt
    assert '"Why do I resist change?"' in user_prompt
    assert "deep psychological exploration" in user_prompt


@pytest.mark.asyncio
async def test_generate_reading_requires_question(scripted_client):
    with pytest.raises(ValueError):
        await generate_reading(scripted_client([]), "general", "   ")


@pytest.mark.asyncio
async def test_continue_reading_appends_after_separator(scripted_client):
    client = scripted_client(["More light on the Star."])
    extended = await continue_reading(client, "Original reading.", "What about hope?")

    assert extended == f"Original reading.\n\n{READING_SEPARATOR}\n\nMore light on the Star."
    assert "Original reading:\nOriginal reading." in client.calls[0][0]
    assert '"What about hope?"' in client.calls[0][1]


@pytest.mark.asyncio
async def test_continue_reading_requires_followup(scripted_client):
    with pytest.raises(ValueError):
        await continue_reading(scripted_client([]), "Original reading.", "")
