import pytest, pytest_asyncio
from cubecipher import CipherConfig, CipherEngine, MoveHandler

#54 distinct labels, so every facelet can be told apart
DISTINCT_LABELS = [f"{i:02d}" for i in range(54)]

@pytest_asyncio.fixture
async def handler():
    return MoveHandler("DEFAULT")

@pytest_asyncio.fixture
async def engine():
    return CipherEngine.from_config(CipherConfig(seed="DEFAULT", iv="A"))

@pytest.fixture
def distinct_labels():
    return list(DISTINCT_LABELS)
