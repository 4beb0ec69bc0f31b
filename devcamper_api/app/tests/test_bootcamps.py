import threading

import pytest
from fastapi.testclient import TestClient

from devcamper_api.app.core.config import settings
from devcamper_api.app.core.permissions import Identity, Role
from devcamper_api.app.core.store import BOOTCAMPS, COURSES, REVIEWS
from devcamper_api.app.schemas.bootcamp import BootcampCreate
from devcamper_api.app.services.bootcamp_service import BootcampService
from devcamper_api.app.tests.utils import (
    API,
    FakeGeocoder,
    MemoryPhotoStorage,
    bootcamp_payload,
    create_bootcamp,
    create_course,
    create_review,
)


def test_publisher_creates_bootcamp(client: TestClient, publisher_headers) -> None:
    bootcamp = create_bootcamp(client, publisher_headers, name="Devworks Bootcamp")
    assert bootcamp["slug"] == "devworks-bootcamp"
    assert bootcamp["averageCost"] == 0
    assert "averageRating" not in bootcamp
    assert "address" not in bootcamp
    assert bootcamp["photo"] == "no-photo.jpg"
    assert bootcamp["location"]["type"] == "Point"
    assert bootcamp["location"]["coordinates"] == [-71.1054, 42.3505]
    assert bootcamp["location"]["city"] == "Boston"
    assert bootcamp["acceptGi"] is True


def test_create_requires_publisher(client: TestClient, user_headers) -> None:
    r = client.post(f"{API}/bootcamps", json=bootcamp_payload())
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Not authorized to access this route"}
    r = client.post(f"{API}/bootcamps", json=bootcamp_payload(), headers=user_headers)
    assert r.status_code == 403


def test_publisher_may_publish_only_one(client: TestClient, publisher_headers, admin_headers) -> None:
    create_bootcamp(client, publisher_headers, name="First")
    r = client.post(f"{API}/bootcamps", json=bootcamp_payload(name="Second"), headers=publisher_headers)
    assert r.status_code == 400
    assert "has already published a bootcamp" in r.json()["error"]

    create_bootcamp(client, admin_headers, name="Admin One")
    create_bootcamp(client, admin_headers, name="Admin Two")


def test_duplicate_name(client: TestClient, publisher_headers, other_publisher_headers) -> None:
    create_bootcamp(client, publisher_headers, name="Same Name")
    r = client.post(f"{API}/bootcamps", json=bootcamp_payload(name="Same Name"), headers=other_publisher_headers)
    assert r.status_code == 400


def test_invalid_payload(client: TestClient, publisher_headers) -> None:
    r = client.post(
        f"{API}/bootcamps",
        json=bootcamp_payload(careers=["Underwater Basket Weaving"], name="x" * 51),
        headers=publisher_headers,
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_get_and_list(client: TestClient, publisher_headers, admin_headers) -> None:
    first = create_bootcamp(client, publisher_headers, name="Alpha")
    create_bootcamp(client, admin_headers, name="Bravo", careers=["Data Science"], housing=False)
    create_bootcamp(client, admin_headers, name="Charlie", careers=["Business"], address="1 Broadway Cambridge MA 02142")
    create_course(client, publisher_headers, first["id"], cost=9000)

    r = client.get(f"{API}/bootcamps/{first['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["averageCost"] == 9000
    assert [c["cost"] for c in r.json()["data"]["courses"]] == [9000]

    r = client.get(f"{API}/bootcamps", params={"sort": "name"})
    body = r.json()
    assert body["success"] is True
    assert body["count"] == 3
    assert [b["name"] for b in body["data"]] == ["Alpha", "Bravo", "Charlie"]
    assert body["pagination"] == {}

    r = client.get(f"{API}/bootcamps", params={"careers[in]": "Business,Data Science", "sort": "-name"})
    assert [b["name"] for b in r.json()["data"]] == ["Charlie", "Bravo", "Alpha"]

    r = client.get(f"{API}/bootcamps", params={"housing": "false"})
    assert [b["name"] for b in r.json()["data"]] == ["Bravo"]

    r = client.get(f"{API}/bootcamps", params={"averageCost[gt]": "1000"})
    assert [b["name"] for b in r.json()["data"]] == ["Alpha"]

    r = client.get(f"{API}/bootcamps", params={"location.city": "Cambridge"})
    assert [b["name"] for b in r.json()["data"]] == ["Charlie"]


def test_select_and_pagination(client: TestClient, admin_headers) -> None:
    for name in ("A1", "A2", "A3", "A4", "A5"):
        create_bootcamp(client, admin_headers, name=name)

    r = client.get(f"{API}/bootcamps", params={"select": "name", "sort": "name", "page": "2", "limit": "2"})
    body = r.json()
    assert body["count"] == 2
    assert body["total"] == 5
    assert body["data"] == [{"id": body["data"][0]["id"], "name": "A3"}, {"id": body["data"][1]["id"], "name": "A4"}]
    assert body["pagination"] == {"next": {"page": 3, "limit": 2}, "prev": {"page": 1, "limit": 2}}


def test_missing_bootcamp(client: TestClient) -> None:
    r = client.get(f"{API}/bootcamps/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Bootcamp not found with id of does-not-exist"}


def test_update_is_owner_only(client: TestClient, publisher_headers, other_publisher_headers, admin_headers) -> None:
    bootcamp = create_bootcamp(client, publisher_headers, name="Owned")

    r = client.put(f"{API}/bootcamps/{bootcamp['id']}", json={"name": "Stolen"}, headers=other_publisher_headers)
    assert r.status_code == 403

    r = client.put(
        f"{API}/bootcamps/{bootcamp['id']}",
        json={"name": "Owned And Renamed", "address": "1 Broadway Cambridge MA 02142", "averageCost": 1},
        headers=publisher_headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["slug"] == "owned-and-renamed"
    assert data["location"]["city"] == "Cambridge"
    assert data["averageCost"] == 0

    r = client.put(f"{API}/bootcamps/{bootcamp['id']}", json={"housing": False}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["housing"] is False


def test_delete_cascades(client: TestClient, store, publisher_headers, other_publisher_headers, user_headers) -> None:
    bootcamp = create_bootcamp(client, publisher_headers, name="Doomed")
    create_course(client, publisher_headers, bootcamp["id"], cost=1000)
    create_course(client, publisher_headers, bootcamp["id"], title="Back End", cost=2000)
    create_review(client, user_headers, bootcamp["id"], rating=9)

    assert client.delete(f"{API}/bootcamps/{bootcamp['id']}", headers=other_publisher_headers).status_code == 403

    r = client.delete(f"{API}/bootcamps/{bootcamp['id']}", headers=publisher_headers)
    assert r.status_code == 200
    assert store.get_by_id(BOOTCAMPS, bootcamp["id"]) is None
    assert store.find_all(COURSES) == []
    assert store.find_all(REVIEWS) == []
    assert client.delete(f"{API}/bootcamps/{bootcamp['id']}", headers=publisher_headers).status_code == 404


def test_radius_search(client: TestClient, admin_headers) -> None:
    create_bootcamp(client, admin_headers, name="Boston")
    create_bootcamp(client, admin_headers, name="Cambridge", address="1 Broadway Cambridge MA 02142")
    create_bootcamp(client, admin_headers, name="Lowell", address="50 Warren St Lowell MA 01852")
    create_bootcamp(client, admin_headers, name="Nowhere", address="unknown address")

    r = client.get(f"{API}/bootcamps/radius/02215/10")
    assert r.status_code == 200
    assert sorted(b["name"] for b in r.json()["data"]) == ["Boston", "Cambridge"]

    r = client.get(f"{API}/bootcamps/radius/02215/50")
    assert r.json()["count"] == 3

    assert client.get(f"{API}/bootcamps/radius/99999/10").status_code == 400
    assert client.get(f"{API}/bootcamps/radius/02215/0").status_code == 400


def test_photo_upload(client: TestClient, publisher_headers, other_publisher_headers, photo_storage: MemoryPhotoStorage) -> None:
    bootcamp = create_bootcamp(client, publisher_headers, name="Photogenic")
    url = f"{API}/bootcamps/{bootcamp['id']}/photo"

    r = client.put(url, files={"file": ("logo.txt", b"hello", "text/plain")}, headers=publisher_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Please upload an image file"

    r = client.put(url, headers=publisher_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Please upload a file"

    r = client.put(url, files={"file": ("logo.png", b"\x89PNG", "image/png")}, headers=other_publisher_headers)
    assert r.status_code == 403

    r = client.put(url, files={"file": ("logo.PNG", b"\x89PNG", "image/png")}, headers=publisher_headers)
    assert r.status_code == 200
    name = f"photo_{bootcamp['id']}.png"
    assert r.json()["data"] == name
    assert photo_storage.files[name] == b"\x89PNG"
    assert client.get(f"{API}/bootcamps/{bootcamp['id']}").json()["data"]["photo"] == name


def test_photo_size_limit(client: TestClient, publisher_headers, monkeypatch) -> None:
    monkeypatch.setattr(settings, "max_file_upload", 10)
    bootcamp = create_bootcamp(client, publisher_headers, name="Big Photo")
    r = client.put(
        f"{API}/bootcamps/{bootcamp['id']}/photo",
        files={"file": ("big.jpg", b"x" * 11, "image/jpeg")},
        headers=publisher_headers,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Please upload an image less than 10 bytes"


def test_recompute_is_admin_only(client: TestClient, store, publisher_headers, admin_headers) -> None:
    bootcamp = create_bootcamp(client, publisher_headers, name="Drifted")
    create_course(client, publisher_headers, bootcamp["id"], cost=3000)
    store.update(BOOTCAMPS, bootcamp["id"], {"averageCost": 1, "averageRating": 2})

    url = f"{API}/bootcamps/{bootcamp['id']}/recompute"
    assert client.post(url, headers=publisher_headers).status_code == 403

    r = client.post(url, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["averageCost"] == 3000
    assert "averageRating" not in r.json()["data"]


def test_out_of_range_numbers_do_not_break_listing(client: TestClient, admin_headers) -> None:
    create_bootcamp(client, admin_headers, name="Alpha")
    huge = "99999999999999999999"

    r = client.get(f"{API}/bootcamps", params={"page": huge})
    assert r.status_code == 200
    body = r.json()
    assert body["data"] == []
    assert body["total"] == 1
    assert "prev" in body["pagination"]

    r = client.get(f"{API}/bootcamps", params={"averageCost[lte]": huge})
    assert r.status_code == 200
    assert [b["name"] for b in r.json()["data"]] == ["Alpha"]

    r = client.get(f"{API}/courses", params={"cost[gt]": "9" * 400, "weeks": huge})
    assert r.status_code == 200
    assert r.json()["count"] == 0


class ThreadRecordingGeocoder(FakeGeocoder):
    def __init__(self) -> None:
        super().__init__()
        self.threads = set()

    def geocode(self, address):
        self.threads.add(threading.get_ident())
        return super().geocode(address)


@pytest.mark.asyncio
async def test_geocoding_runs_off_the_event_loop(store) -> None:
    geocoder = ThreadRecordingGeocoder()
    service = BootcampService(store, geocoder=geocoder, photo_storage=MemoryPhotoStorage())

    bootcamp = await service.create_bootcamp(
        BootcampCreate.model_validate(bootcamp_payload()), Identity("a1", Role.ADMIN)
    )
    nearby = await service.bootcamps_in_radius("02215", 5)

    assert bootcamp["location"]["city"] == "Boston"
    assert [b["id"] for b in nearby] == [bootcamp["id"]]
    assert geocoder.calls == ["233 Bay State Rd Boston MA 02215", "02215"]
    assert threading.get_ident() not in geocoder.threads
