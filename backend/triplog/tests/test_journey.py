"""
End-to-end journey: sign up, verify, publish a trip, edit it and leave.
"""
import json
import re


def _form(country):
    return {
        "country": country,
        "travelPeriod": json.dumps({"startDate": "2024-03-01", "endDate": "2024-03-08"}),
        "visitedPlaces": json.dumps([{"name": "Kyoto", "rating": 5}]),
        "accommodations": json.dumps([{"name": "Ryokan", "type": "Inn", "cost": 180}]),
        "transportations": json.dumps([{"type": "Shinkansen", "cost": 90}]),
        "budgetItems": json.dumps([{"category": "Food", "amount": 250}]),
    }


def test_traveller_journey(client, mailer, storage):
    client.post("/api/auth/signup", json={"username": "alice", "email": "alice@x.com", "password": "Secret123"})
    otp = re.search(r"\d{6}", mailer.sent[0]["body"]).group(0)
    token = client.post("/api/auth/verify-email-otp", json={"email": "alice@x.com", "otp": otp}).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    created = client.post(
        "/api/tripDetail",
        data=_form("Japan"),
        files=[("photos", ("a.jpg", b"a", "image/jpeg")), ("photos", ("b.jpg", b"b", "image/jpeg"))],
        headers=headers
    )
    assert created.status_code == 201
    trip = created.json()["trip"]
    assert len(trip["photos"]) == 2

    fetched = client.get(f"/api/tripDetail/{trip['id']}")
    assert fetched.json()["country"] == "Japan"
    assert client.get("/api/tripDetail/user/alice").json()[0]["id"] == trip["id"]

    first_photo = trip["photos"][0]["public_id"]
    form = _form("Japan")
    form["deletedPhotos"] = json.dumps([first_photo])
    updated = client.put(f"/api/tripDetail/{trip['id']}", data=form, headers=headers)
    assert updated.status_code == 200
    assert [p["public_id"] for p in updated.json()["trip"]["photos"]] == [trip["photos"][1]["public_id"]]

    public = client.get("/api/user/public/alice").json()["user"]
    assert public["trips"] == [trip["id"]]

    storage.fail_destroy = True
    assert client.delete("/api/user/delete", headers=headers).status_code == 200
    assert trip["photos"][1]["public_id"] in storage.destroyed
    assert client.get(f"/api/tripDetail/{trip['id']}").status_code == 404
    assert client.get("/api/tripDetail/user/alice").status_code == 404
    assert client.get("/api/user/profile", headers=headers).status_code == 404
