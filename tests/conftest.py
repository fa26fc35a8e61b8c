"""
Shared fixtures: an in-memory store driven by a fake clock, and a Flask app
wired to it with a known admin token.
"""
import pytest

from arm_submissions.server import create_app
from arm_submissions.services.memory_backend import MemoryBackend
from arm_submissions.services.submission_store import SubmissionStore
from tests.helpers import ADMIN_TOKEN, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend, clock):
    return SubmissionStore(backend, clock=clock)


@pytest.fixture
def book():
    return {
        "title": "Fizika asoslari",
        "type": "Darslik",
        "authors": "Karimov A.",
        "isbn": None,
        "quantity": 1,
        "published_year": 2020,
    }


@pytest.fixture
def submission_data(book):
    return {
        "full_name": "Alisherov Olimjon",
        "institution": "Jizzax Politexnika Instituti",
        "department": "Fizika",
        "position": "Dotsent",
        "is_external": False,
        "submission_date": "2025-03-10",
        "books": [book],
    }


@pytest.fixture
def form_payload(submission_data):
    return dict(submission_data)


@pytest.fixture
def app(store):
    app = create_app(
        store=store,
        ADMIN_API_KEY=ADMIN_TOKEN,
        PUBLIC_BASE_URL="https://arm.example.uz/",
        TESTING=True,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
