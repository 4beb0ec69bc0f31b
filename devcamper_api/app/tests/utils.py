"""
Fakes and helpers shared by the API tests.
"""

from typing import Dict, List, Optional, Tuple

from fastapi.testclient import TestClient

from devcamper_api.app.core.errors import UpstreamError
from devcamper_api.app.core.security import create_access_token, hash_password
from devcamper_api.app.core.store import USERS, DocumentStore
from devcamper_api.app.services.geocoder import Geocoder, Location
from devcamper_api.app.services.mailer import Mailer
from devcamper_api.app.services.photo_storage import PhotoStorage

API = "/api/v1"

# Boston area; the two bootcamp addresses are about 1.5 miles apart and
# the Lowell address is about 25 miles away.
KNOWN_PLACES: Dict[str, Location] = {
    "02215": Location(42.3505, -71.1054, city="Boston", state="MA", zipcode="02215", country="US"),
    "233 Bay State Rd Boston MA 02215": Location(
        42.3505, -71.1054, street="233 Bay State Rd", city="Boston", state="MA", zipcode="02215", country="US"
    ),
    "1 Broadway Cambridge MA 02142": Location(
        42.3629, -71.0839, street="1 Broadway", city="Cambridge", state="MA", zipcode="02142", country="US"
    ),
    "50 Warren St Lowell MA 01852": Location(
        42.6459, -71.3104, street="50 Warren St", city="Lowell", state="MA", zipcode="01852", country="US"
    ),
}


class FakeGeocoder(Geocoder):
    def __init__(self, places: Optional[Dict[str, Location]] = None) -> None:
        self.places = dict(KNOWN_PLACES if places is None else places)
        self.calls: List[str] = []

    def geocode(self, address: str) -> Optional[Location]:
        self.calls.append(address)
        return self.places.get(address)


class RecordingMailer(Mailer):
    """Keeps sent messages; set ``fail`` to simulate a broken mail server."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str]] = []
        self.fail = False

    def send(self, to: str, subject: str, message: str) -> None:
        if self.fail:
            raise UpstreamError("SMTP connection refused")
        self.sent.append((to, subject, message))


class MemoryPhotoStorage(PhotoStorage):
    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}

    def save(self, filename: str, content: bytes) -> str:
        self.files[filename] = content
        return filename


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str, role: str = "user", password: str = "123456") -> Dict[str, str]:
    """Register through the API and return bearer headers for the new user.

    The login cookie is dropped so later requests are anonymous unless
    they pass the returned headers.
    """
    r = client.post(
        f"{API}/auth/register",
        json={"name": email.split("@")[0], "email": email, "password": password, "role": role},
    )
    assert r.status_code == 200, r.text
    client.cookies.clear()
    return auth_headers(r.json()["token"])


def create_admin(store: DocumentStore, email: str = "admin@devcamper.io") -> Tuple[str, Dict[str, str]]:
    """Admins cannot self register; insert one directly and mint its token."""
    user = store.create(
        USERS,
        {"name": "Admin", "email": email, "role": "admin", "password": hash_password("123456")},
    )
    return user["id"], auth_headers(create_access_token({"sub": user["id"]}))


def bootcamp_payload(name: str = "Devworks Bootcamp", **overrides) -> Dict:
    payload = {
        "name": name,
        "description": "Full stack web development bootcamp",
        "website": "https://devworks.com",
        "phone": "(111) 111-1111",
        "email": "enroll@devworks.com",
        "address": "233 Bay State Rd Boston MA 02215",
        "careers": ["Web Development", "UI/UX", "Business"],
        "housing": True,
        "jobAssistance": True,
        "jobGuarantee": False,
        "acceptGi": True,
    }
    payload.update(overrides)
    return payload


def course_payload(title: str = "Front End Web Development", cost: int = 8000, **overrides) -> Dict:
    payload = {
        "title": title,
        "description": "HTML, CSS and JavaScript",
        "weeks": 8,
        "cost": cost,
        "minimumSkill": "beginner",
        "scholarshipAvailable": True,
    }
    payload.update(overrides)
    return payload


def create_bootcamp(client: TestClient, headers: Dict[str, str], **overrides) -> Dict:
    r = client.post(f"{API}/bootcamps", json=bootcamp_payload(**overrides), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def create_course(client: TestClient, headers: Dict[str, str], bootcamp_id: str, **overrides) -> Dict:
    r = client.post(f"{API}/bootcamps/{bootcamp_id}/courses", json=course_payload(**overrides), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def create_review(client: TestClient, headers: Dict[str, str], bootcamp_id: str, rating: int, title: str = "Great") -> Dict:
    r = client.post(
        f"{API}/bootcamps/{bootcamp_id}/reviews",
        json={"title": title, "text": "Learned a lot", "rating": rating},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]
