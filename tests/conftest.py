from __future__ import annotations

from typing import Any, Dict, Iterator

import pytest
from fastapi.testclient import TestClient

from backend.app.main import app


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def sample_body() -> Dict[str, Any]:
    return {
        "title": "Sample",
        "subject": "maths",
        "questions": [
            {
                "questionText": "What is 2+2?",
                "options": ["3", "4", "5", "6"],
                "correctAnswerIndex": 1,
                "explanation": "2+2=4",
            }
        ],
    }
