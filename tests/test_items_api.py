"""Item endpoints: create, list/filter, update, delete, bulk status, backup, track."""

import json
from datetime import datetime, timezone

from tests.helpers import create_item, csrf_headers, login, sample_item


def test_end_to_end_delete_is_admin_only_and_backup_keeps_item(make_client, item_storage):
    rakesh = make_client()
    rakesh_csrf = login(rakesh, "Rakesh")

    created = create_item(rakesh, rakesh_csrf)
    assert created["status"] == "Received"
    assert created["customerName"] == "ALICE"
    assert created["technicianName"] == "Rakesh"
    assert created["statusHistory"] == []
    assert "metadata" not in created

    response = rakesh.delete(f"/api/items/{created['_id']}", headers=csrf_headers(rakesh_csrf))
    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Forbidden"}

    shyam = make_client()
    shyam_csrf = login(shyam, "Shyam")
    response = shyam.delete(f"/api/items/{created['_id']}", headers=csrf_headers(shyam_csrf))
    assert response.status_code == 200

    listing = shyam.get("/api/items").json()
    assert all(item["jobNumber"] != "JOB-1" for item in listing["items"])
    assert listing["totalItems"] == 0

    backup = shyam.get("/api/items/backup")
    assert backup.status_code == 200
    assert backup.headers["content-disposition"].startswith('attachment; filename="backup-')
    dumped = json.loads(backup.content)
    assert [item["jobNumber"] for item in dumped] == ["JOB-1"]
    assert dumped[0]["isDeleted"] is True


def test_backup_forbidden_for_technicians(client):
    login(client, "Rakesh")
    assert client.get("/api/items/backup").status_code == 403


def test_requires_session(client):
    response = client.get("/api/items")
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"


def test_unsafe_request_without_csrf_header_rejected(client, item_storage):
    login(client, "Rakesh")

    response = client.post("/api/items", json=sample_item())
    assert response.status_code == 403
    assert response.json()["error"] == "CSRF validation failed"

    response = client.post("/api/items", json=sample_item(), headers=csrf_headers("f" * 48))
    assert response.status_code == 403
    assert item_storage.documents == []


def test_duplicate_job_number(client):
    csrf = login(client, "Rakesh")
    create_item(client, csrf)

    response = client.post("/api/items", json=sample_item(customerName="bob"), headers=csrf_headers(csrf))
    assert response.status_code == 400
    assert response.json()["error"] == "Job number already exists"


def test_duplicate_of_deleted_job_number_still_rejected(make_client):
    shyam = make_client()
    csrf = login(shyam, "Shyam")
    item = create_item(shyam, csrf)
    shyam.delete(f"/api/items/{item['_id']}", headers=csrf_headers(csrf))

    response = shyam.post("/api/items", json=sample_item(), headers=csrf_headers(csrf))
    assert response.status_code == 400


def test_phone_number_must_be_ten_digits(client, item_storage):
    csrf = login(client, "Rakesh")

    # Fullwidth and Arabic-Indic digits are rejected too
    for phone in ("12345", "98765432100", "98765-4321", "abcdefghij", "\uff19" * 10, "\u0669" * 10):
        response = client.post("/api/items", json=sample_item(phoneNumber=phone), headers=csrf_headers(csrf))
        assert response.status_code == 400
        assert response.json()["error"] == "Phone number must be exactly 10 digits"

    assert item_storage.documents == []


def test_missing_required_field(client):
    csrf = login(client, "Rakesh")
    body = sample_item()
    del body["brand"]

    response = client.post("/api/items", json=body, headers=csrf_headers(csrf))
    assert response.status_code == 400
    assert response.json()["error"] == "brand is required"


def test_metadata_recorded_and_visible_to_admin_only(make_client):
    rakesh = make_client()
    csrf = login(rakesh, "Rakesh")
    rakesh.post(
        "/api/items",
        json=sample_item(),
        headers={
            **csrf_headers(csrf),
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                          "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        },
    )

    item = rakesh.get("/api/items", params={"includeMetadata": "true"}).json()["items"][0]
    assert "metadata" not in item

    shyam = make_client()
    login(shyam, "Shyam")
    item = shyam.get("/api/items").json()["items"][0]
    assert "metadata" not in item

    item = shyam.get("/api/items", params={"includeMetadata": "true"}).json()["items"][0]
    metadata = item["metadata"]
    assert metadata["browser"].startswith("Chrome")
    assert metadata["os"].startswith("Windows")
    assert metadata["device"] == "desktop"
    assert metadata["userRole"] == "user"


def test_update_appends_status_history_only_on_change(client):
    csrf = login(client, "Rakesh")
    item = create_item(client, csrf)

    response = client.put(
        f"/api/items/{item['_id']}",
        json={"status": "In Progress", "repairNotes": "Replacing screen"},
        headers=csrf_headers(csrf),
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "In Progress"
    assert updated["repairNotes"] == "Replacing screen"
    assert len(updated["statusHistory"]) == 1
    assert updated["statusHistory"][0]["status"] == "In Progress"
    assert updated["statusHistory"][0]["note"] == "Replacing screen"

    response = client.put(
        f"/api/items/{item['_id']}",
        json={"status": "In Progress", "customerName": "alice smith", "finalCost": 1200},
        headers=csrf_headers(csrf),
    )
    updated = response.json()
    assert len(updated["statusHistory"]) == 1
    assert updated["customerName"] == "ALICE SMITH"
    assert updated["finalCost"] == 1200


def test_update_rejects_unknown_status(client):
    csrf = login(client, "Rakesh")
    item = create_item(client, csrf)

    response = client.put(f"/api/items/{item['_id']}", json={"status": "Lost"}, headers=csrf_headers(csrf))
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid status")


def test_update_unknown_or_malformed_id(client):
    csrf = login(client, "Rakesh")

    for item_id in ("000000000000000000000000", "not-an-id"):
        response = client.put(f"/api/items/{item_id}", json={"brand": "Dell"}, headers=csrf_headers(csrf))
        assert response.status_code == 404
        assert response.json()["error"] == "Item not found"


def test_delete_unknown_item(client):
    csrf = login(client, "Shyam")
    response = client.delete("/api/items/000000000000000000000000", headers=csrf_headers(csrf))
    assert response.status_code == 404


def test_pagination(client):
    csrf = login(client, "Rakesh")
    for n in range(3):
        create_item(client, csrf, jobNumber=f"JOB-{n}", cost=100 * (n + 1))

    first = client.get("/api/items", params={"limit": 2, "sortBy": "cost", "sortOrder": "asc"}).json()
    assert first["currentPage"] == 1
    assert first["totalPages"] == 2
    assert first["totalItems"] == 3
    assert [i["jobNumber"] for i in first["items"]] == ["JOB-0", "JOB-1"]

    second = client.get("/api/items", params={"limit": 2, "page": 2, "sortBy": "cost", "sortOrder": "asc"}).json()
    assert [i["jobNumber"] for i in second["items"]] == ["JOB-2"]


def test_limit_out_of_range_rejected(client):
    login(client, "Rakesh")
    assert client.get("/api/items", params={"limit": 500}).status_code == 400
    assert client.get("/api/items", params={"page": 0}).status_code == 400


def test_status_group_filter(client):
    csrf = login(client, "Rakesh")
    ready = create_item(client, csrf, jobNumber="JOB-R")
    create_item(client, csrf, jobNumber="JOB-P")
    client.put(f"/api/items/{ready['_id']}", json={"status": "Ready"}, headers=csrf_headers(csrf))

    result = client.get("/api/items", params={"statusGroup": "ready"}).json()
    assert [i["jobNumber"] for i in result["items"]] == ["JOB-R"]
    assert result["totalItems"] == 1

    result = client.get("/api/items", params={"statusGroup": "inProgress"}).json()
    assert [i["jobNumber"] for i in result["items"]] == ["JOB-P"]

    result = client.get("/api/items", params={"statusGroup": "archived"}).json()
    assert result["totalItems"] == 2


def test_text_search(client):
    csrf = login(client, "Rakesh")
    create_item(client, csrf, jobNumber="JOB-A", customerName="alice", brand="HP")
    create_item(client, csrf, jobNumber="JOB-B", customerName="bob", brand="Lenovo")

    result = client.get("/api/items", params={"search": "Alice"}).json()
    assert [i["jobNumber"] for i in result["items"]] == ["JOB-A"]

    result = client.get("/api/items", params={"search": "lenovo", "statusGroup": "ready"}).json()
    assert result["items"] == []


def test_technician_filter_matches_admin_suffix(make_client):
    shyam = make_client()
    shyam_csrf = login(shyam, "Shyam")
    create_item(shyam, shyam_csrf, jobNumber="JOB-S")

    rakesh = make_client()
    rakesh_csrf = login(rakesh, "Rakesh")
    create_item(rakesh, rakesh_csrf, jobNumber="JOB-K")

    for name in ("Shyam", "Shyam (Admin)", "shyam"):
        result = rakesh.get("/api/items", params={"technicianName": name}).json()
        assert [i["jobNumber"] for i in result["items"]] == ["JOB-S"]

    result = rakesh.get("/api/items", params={"technicianName": "Rakesh"}).json()
    assert [i["jobNumber"] for i in result["items"]] == ["JOB-K"]


def test_stats_cached_and_invalidated(client, item_storage, fake_redis):
    csrf = login(client, "Rakesh")
    first = create_item(client, csrf, jobNumber="JOB-1")
    create_item(client, csrf, jobNumber="JOB-2")

    stats = client.get("/api/items").json()["stats"]
    assert stats == {"total": 2, "inProgress": 2, "ready": 0, "returned": 0}
    assert item_storage.stats_queries == 1
    assert fake_redis.ttls["items:stats"] == 300

    client.get("/api/items", params={"statusGroup": "ready"})
    assert item_storage.stats_queries == 1

    client.put(f"/api/items/{first['_id']}", json={"status": "Ready"}, headers=csrf_headers(csrf))
    stats = client.get("/api/items").json()["stats"]
    assert stats == {"total": 2, "inProgress": 1, "ready": 1, "returned": 0}
    assert item_storage.stats_queries == 2

    # Non-status edits leave the cache alone
    client.put(f"/api/items/{first['_id']}", json={"brand": "Dell"}, headers=csrf_headers(csrf))
    client.get("/api/items")
    assert item_storage.stats_queries == 2


def test_bulk_status_update(client, item_storage):
    csrf = login(client, "Rakesh")
    a = create_item(client, csrf, jobNumber="JOB-A")
    b = create_item(client, csrf, jobNumber="JOB-B")
    create_item(client, csrf, jobNumber="JOB-C")

    response = client.patch(
        "/api/items/bulk-status",
        json={"ids": [a["_id"], b["_id"], "bogus"], "status": "Delivered"},
        headers=csrf_headers(csrf),
    )
    assert response.status_code == 200
    assert response.json() == {"modifiedCount": 2}

    delivered = {d["jobNumber"]: d for d in item_storage.documents if d["status"] == "Delivered"}
    assert set(delivered) == {"JOB-A", "JOB-B"}
    assert delivered["JOB-A"]["statusHistory"][-1]["status"] == "Delivered"

    stats = client.get("/api/items").json()["stats"]
    assert stats["ready"] == 2


def test_bulk_status_validation(client):
    csrf = login(client, "Rakesh")

    response = client.patch("/api/items/bulk-status", json={"ids": [], "status": "Ready"}, headers=csrf_headers(csrf))
    assert response.status_code == 400

    response = client.patch("/api/items/bulk-status", json={"ids": ["x"], "status": "Nope"}, headers=csrf_headers(csrf))
    assert response.status_code == 400

    response = client.patch("/api/items/bulk-status", json={"ids": ["x"]}, headers=csrf_headers(csrf))
    assert response.status_code == 400


def test_public_tracking(make_client):
    staff = make_client()
    csrf = login(staff, "Rakesh")
    create_item(staff, csrf, issue="no power")

    public = make_client()
    response = public.get("/api/items/track", params={"jobNumber": "JOB-1", "phoneNumber": "9876543210"})
    assert response.status_code == 200
    body = response.json()
    assert body["jobNumber"] == "JOB-1"
    assert body["issue"] == "NO POWER"
    assert body["status"] == "Received"
    assert "metadata" not in body
    assert "technicianName" not in body
    assert "phoneNumber" not in body

    response = public.get("/api/items/track", params={"jobNumber": "JOB-1", "phoneNumber": "1111111111"})
    assert response.status_code == 404

    response = public.get("/api/items/track", params={"jobNumber": "JOB-1"})
    assert response.status_code == 400


def test_status_group_returned(client):
    csrf = login(client, "Rakesh")
    pending = create_item(client, csrf, jobNumber="JOB-PEND")
    returned = create_item(client, csrf, jobNumber="JOB-RET")
    create_item(client, csrf, jobNumber="JOB-OPEN")
    client.put(f"/api/items/{pending['_id']}", json={"status": "Pending"}, headers=csrf_headers(csrf))
    client.put(f"/api/items/{returned['_id']}", json={"status": "Return"}, headers=csrf_headers(csrf))

    result = client.get("/api/items", params={"statusGroup": "returned"}).json()
    assert sorted(i["jobNumber"] for i in result["items"]) == ["JOB-PEND", "JOB-RET"]
    assert result["totalItems"] == 2
    assert result["stats"]["returned"] == 2


def test_sort_ascending_with_newest_first_tie_breaker(client, item_storage):
    csrf = login(client, "Rakesh")
    create_item(client, csrf, jobNumber="JOB-OLD", cost=500)
    create_item(client, csrf, jobNumber="JOB-NEW", cost=500)
    create_item(client, csrf, jobNumber="JOB-CHEAP", cost=100)

    created_at = {"JOB-OLD": 1, "JOB-NEW": 3, "JOB-CHEAP": 2}
    for document in item_storage.documents:
        document["createdAt"] = datetime(2024, 5, created_at[document["jobNumber"]], tzinfo=timezone.utc)

    result = client.get("/api/items", params={"sortBy": "cost", "sortOrder": "asc"}).json()
    assert [i["jobNumber"] for i in result["items"]] == ["JOB-CHEAP", "JOB-NEW", "JOB-OLD"]

    result = client.get("/api/items", params={"sortOrder": "asc"}).json()
    assert [i["jobNumber"] for i in result["items"]] == ["JOB-OLD", "JOB-CHEAP", "JOB-NEW"]

    # Unknown sort fields fall back to createdAt
    result = client.get("/api/items", params={"sortBy": "password"}).json()
    assert [i["jobNumber"] for i in result["items"]] == ["JOB-NEW", "JOB-CHEAP", "JOB-OLD"]


def test_stats_recomputed_after_delete(make_client, item_storage):
    shyam = make_client()
    csrf = login(shyam, "Shyam")
    first = create_item(shyam, csrf, jobNumber="JOB-1")
    create_item(shyam, csrf, jobNumber="JOB-2")

    assert shyam.get("/api/items").json()["stats"]["total"] == 2
    queries = item_storage.stats_queries

    response = shyam.delete(f"/api/items/{first['_id']}", headers=csrf_headers(csrf))
    assert response.status_code == 200

    stats = shyam.get("/api/items").json()["stats"]
    assert stats == {"total": 1, "inProgress": 1, "ready": 0, "returned": 0}
    assert item_storage.stats_queries == queries + 1
